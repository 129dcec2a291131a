from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleetlink.config import settings
from fleetlink.database import get_db
from fleetlink.dependencies import get_admin, get_any_member, get_manager_or_admin
from fleetlink.models.association_type import AssociationType
from fleetlink.schemas.association import (
    AssociationQueryParams, VehicleAssociationCreateRequest, VehicleAssociationUpdateRequest,
)
from fleetlink.schemas.common import success_response, paginated_response
from fleetlink.services.association_query import vehicle_association_query
from fleetlink.services.association_service import vehicle_association_service
from fleetlink.utils.security import Principal

router = APIRouter(prefix="/vehicle-associations")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Add or update a vehicle association")
def add_or_update_association(
    body:      VehicleAssociationCreateRequest,
    db:        Session   = Depends(get_db),
    principal: Principal = Depends(get_manager_or_admin),
):
    data = vehicle_association_service.add_or_update(
        db, principal.accountId, body.vehicleId, body.associationType,
        is_active=body.isActive, group_id=body.groupId, actor_id=principal.userId,
    )
    return success_response("Vehicle association saved", data)


@router.get("", summary="List vehicle associations of the current account")
def list_associations(
    vehicleId:       Optional[str]             = Query(None),
    groupId:         Optional[str]             = Query(None),
    associationType: Optional[AssociationType] = Query(None),
    isActive:        Optional[bool]            = Query(None),
    search:          Optional[str]             = Query(None),
    page:            int                       = Query(1, ge=1),
    limit:           int                       = Query(settings.ASSOCIATION_PAGE_SIZE_DEFAULT, ge=1, le=settings.ASSOCIATION_PAGE_SIZE_MAX),
    sortBy:          Optional[str]             = Query(None, description="e.g. createdAt, vehicle.plate"),
    sortOrder:       str                       = Query("desc", description="asc | desc"),
    db:              Session                   = Depends(get_db),
    principal:       Principal                 = Depends(get_any_member),
):
    params = AssociationQueryParams(
        resourceId=vehicleId, groupId=groupId, associationType=associationType, isActive=isActive,
        search=search, page=page, limit=limit, sortBy=sortBy, sortOrder=sortOrder,
    )
    result = vehicle_association_query.list(db, principal.accountId, params)
    return paginated_response("Vehicle associations retrieved", result)


@router.get("/{association_id}", summary="Get a vehicle association")
def get_association(
    association_id: str,
    db:             Session   = Depends(get_db),
    principal:      Principal = Depends(get_any_member),
):
    data = vehicle_association_service.get(db, association_id, principal.accountId)
    return success_response("Vehicle association retrieved", data)


@router.put("/{association_id}", summary="Update a vehicle association")
def update_association(
    association_id: str,
    body:           VehicleAssociationUpdateRequest,
    db:             Session   = Depends(get_db),
    principal:      Principal = Depends(get_manager_or_admin),
):
    data = vehicle_association_service.update(
        db, association_id, principal.accountId, body.model_dump(exclude_unset=True),
        actor_id=principal.userId,
    )
    return success_response("Vehicle association updated", data)


@router.patch("/{association_id}/deactivate", summary="Deactivate a vehicle association")
def deactivate_association(
    association_id: str,
    db:             Session   = Depends(get_db),
    principal:      Principal = Depends(get_manager_or_admin),
):
    data = vehicle_association_service.deactivate(
        db, association_id, principal.accountId, actor_id=principal.userId,
    )
    return success_response("Vehicle association deactivated", data)


@router.delete("/{association_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Remove a non-FLEET vehicle association (Admin)")
def remove_association(
    association_id: str,
    db:             Session   = Depends(get_db),
    principal:      Principal = Depends(get_admin),
):
    vehicle_association_service.remove(db, association_id, principal.accountId, actor_id=principal.userId)
