from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleetlink.config import settings
from fleetlink.database import get_db
from fleetlink.dependencies import get_any_member, get_manager_or_admin
from fleetlink.models.association_type import AssociationType
from fleetlink.schemas.association import (
    AssociationQueryParams, DriverAssociationCreateRequest, DriverAssociationUpdateRequest,
)
from fleetlink.schemas.common import success_response, paginated_response
from fleetlink.services.association_query import driver_association_query
from fleetlink.services.association_service import driver_association_service
from fleetlink.utils.security import Principal

router = APIRouter(prefix="/driver-associations")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Add or update a driver association")
def add_or_update_association(
    body:      DriverAssociationCreateRequest,
    db:        Session   = Depends(get_db),
    principal: Principal = Depends(get_manager_or_admin),
):
    data = driver_association_service.add_or_update(
        db, principal.accountId, body.driverId, body.associationType,
        is_active=body.isActive, start_date=body.startDate, end_date=body.endDate,
        actor_id=principal.userId,
    )
    return success_response("Driver association saved", data)


@router.get("", summary="List driver associations of the current account")
def list_associations(
    driverId:        Optional[str]             = Query(None),
    associationType: Optional[AssociationType] = Query(None),
    isActive:        Optional[bool]            = Query(None),
    search:          Optional[str]             = Query(None),
    page:            int                       = Query(1, ge=1),
    limit:           int                       = Query(settings.ASSOCIATION_PAGE_SIZE_DEFAULT, ge=1, le=settings.ASSOCIATION_PAGE_SIZE_MAX),
    sortBy:          Optional[str]             = Query(None, description="e.g. startDate, driver.fullName"),
    sortOrder:       str                       = Query("desc", description="asc | desc"),
    db:              Session                   = Depends(get_db),
    principal:       Principal                 = Depends(get_any_member),
):
    params = AssociationQueryParams(
        resourceId=driverId, associationType=associationType, isActive=isActive,
        search=search, page=page, limit=limit, sortBy=sortBy, sortOrder=sortOrder,
    )
    result = driver_association_query.list(db, principal.accountId, params)
    return paginated_response("Driver associations retrieved", result)


@router.get("/{association_id}", summary="Get a driver association")
def get_association(
    association_id: str,
    db:             Session   = Depends(get_db),
    principal:      Principal = Depends(get_any_member),
):
    data = driver_association_service.get(db, association_id, principal.accountId)
    return success_response("Driver association retrieved", data)


@router.put("/{association_id}", summary="Update a driver association")
def update_association(
    association_id: str,
    body:           DriverAssociationUpdateRequest,
    db:             Session   = Depends(get_db),
    principal:      Principal = Depends(get_manager_or_admin),
):
    data = driver_association_service.update(
        db, association_id, principal.accountId, body.model_dump(exclude_unset=True),
        actor_id=principal.userId,
    )
    return success_response("Driver association updated", data)


@router.patch("/{association_id}/deactivate", summary="Deactivate a driver association")
def deactivate_association(
    association_id: str,
    db:             Session   = Depends(get_db),
    principal:      Principal = Depends(get_manager_or_admin),
):
    data = driver_association_service.deactivate(
        db, association_id, principal.accountId, actor_id=principal.userId,
    )
    return success_response("Driver association deactivated", data)
