from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from fleetlink.config import settings
from fleetlink.models.association_type import AssociationType


# ─── Requests ─────────────────────────────────────────────────────────────────
class DriverAssociationCreateRequest(BaseModel):
    driverId:        str
    associationType: AssociationType
    startDate:       Optional[datetime] = None   # defaults to now
    endDate:         Optional[datetime] = None
    isActive:        bool = True

    @field_validator("driverId")
    @classmethod
    def not_empty(cls, v):
        if not v.strip(): raise ValueError("Driver ID cannot be empty")
        return v.strip()


class VehicleAssociationCreateRequest(BaseModel):
    vehicleId:       str
    associationType: AssociationType
    groupId:         Optional[str] = None
    isActive:        bool = True

    @field_validator("vehicleId")
    @classmethod
    def not_empty(cls, v):
        if not v.strip(): raise ValueError("Vehicle ID cannot be empty")
        return v.strip()


class DriverAssociationUpdateRequest(BaseModel):
    # driverId / accountId are not editable through an association update
    associationType: Optional[AssociationType] = None
    startDate:       Optional[datetime] = None
    endDate:         Optional[datetime] = None   # explicit null clears it
    isActive:        Optional[bool] = None

    model_config = {"extra": "forbid"}


class VehicleAssociationUpdateRequest(BaseModel):
    associationType: Optional[AssociationType] = None
    groupId:         Optional[str] = None        # explicit null removes the group
    isActive:        Optional[bool] = None

    model_config = {"extra": "forbid"}


# ─── Listing ──────────────────────────────────────────────────────────────────
class AssociationQueryParams(BaseModel):
    resourceId:      Optional[str] = None
    associationType: Optional[AssociationType] = None
    isActive:        Optional[bool] = None
    groupId:         Optional[str] = None
    search:          Optional[str] = None
    page:            int = 1
    limit:           int = settings.ASSOCIATION_PAGE_SIZE_DEFAULT
    sortBy:          Optional[str] = None
    sortOrder:       str = "desc"
