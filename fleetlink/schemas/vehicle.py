import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, field_validator

from fleetlink.models.association_type import AssociationType

# Old format AAA1234 or Mercosul AAA1A23
PLATE_PATTERN = re.compile(r"^[A-Z]{3}\d{4}$|^[A-Z]{3}\d[A-Z]\d{2}$")


def _normalize_plate(v: str) -> str:
    v = v.strip().upper()
    if not PLATE_PATTERN.match(v):
        raise ValueError("Invalid plate format. Use AAA1234 or AAA1A23")
    return v


def _check_year(v: int | None) -> int | None:
    if v is not None and not (1900 <= v <= date.today().year + 1):
        raise ValueError(f"Year must be between 1900 and {date.today().year + 1}")
    return v


# ─── Requests ─────────────────────────────────────────────────────────────────
class VehicleCreateRequest(BaseModel):
    plate:           str
    brand:           Optional[str] = None
    model:           Optional[str] = None
    year:            Optional[int] = None
    trackerDeviceId: Optional[str] = None
    trackerType:     Optional[str] = None
    associationType: AssociationType          # first association, usually FLEET
    groupId:         Optional[str] = None

    @field_validator("plate")
    @classmethod
    def check_plate(cls, v):
        return _normalize_plate(v)

    @field_validator("year")
    @classmethod
    def check_year(cls, v):
        return _check_year(v)


class VehicleUpdateRequest(BaseModel):
    plate:           Optional[str] = None
    brand:           Optional[str] = None
    model:           Optional[str] = None
    year:            Optional[int] = None
    trackerDeviceId: Optional[str] = None
    trackerType:     Optional[str] = None

    @field_validator("plate")
    @classmethod
    def check_plate(cls, v):
        return _normalize_plate(v) if v is not None else v

    @field_validator("year")
    @classmethod
    def check_year(cls, v):
        return _check_year(v)


class AssociateExistingRequest(BaseModel):
    vehicleId:       str
    associationType: AssociationType
    groupId:         Optional[str] = None
