from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleetlink.database import get_db
from fleetlink.dependencies import get_admin, get_any_member, get_manager_or_admin
from fleetlink.models.association_type import AssociationType
from fleetlink.models.driver import DriverStatus
from fleetlink.schemas.common import success_response, paginated_response
from fleetlink.schemas.driver import DriverCreateRequest, DriverUpdateRequest, DriverQueryParams
from fleetlink.services.driver_service import driver_service
from fleetlink.utils.security import Principal

router = APIRouter(prefix="/drivers")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Register a driver")
def create_driver(
    body:      DriverCreateRequest,
    db:        Session   = Depends(get_db),
    principal: Principal = Depends(get_manager_or_admin),
):
    data = driver_service.create_driver(db, body, principal.userId)
    return success_response("Driver registered successfully", data)


@router.get("", summary="List drivers")
def list_drivers(
    search:              Optional[str]             = Query(None),
    status:              Optional[DriverStatus]    = Query(None),
    associationType:     Optional[AssociationType] = Query(None),
    associatedAccountId: Optional[str]             = Query(None),
    page:                int                       = Query(1, ge=1),
    limit:               int                       = Query(10, ge=1, le=100),
    sortBy:              str                       = Query("fullName"),
    sortOrder:           str                       = Query("asc"),
    db:                  Session                   = Depends(get_db),
    _:                   Principal                 = Depends(get_any_member),
):
    params = DriverQueryParams(
        search=search, status=status, associationType=associationType,
        associatedAccountId=associatedAccountId, page=page, limit=limit,
        sortBy=sortBy, sortOrder=sortOrder,
    )
    return paginated_response("Drivers retrieved successfully", driver_service.list_drivers(db, params))


@router.get("/{driver_id}", summary="Get driver by ID")
def get_driver(driver_id: str, db: Session = Depends(get_db), _: Principal = Depends(get_any_member)):
    return success_response("Driver retrieved", driver_service.get_driver(db, driver_id))


@router.put("/{driver_id}", summary="Update driver info")
def update_driver(
    driver_id: str,
    body:      DriverUpdateRequest,
    db:        Session   = Depends(get_db),
    principal: Principal = Depends(get_manager_or_admin),
):
    data = driver_service.update_driver(db, driver_id, body, principal.userId)
    return success_response("Driver updated successfully", data)


@router.delete("/{driver_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a driver (Admin)")
def remove_driver(driver_id: str, db: Session = Depends(get_db), principal: Principal = Depends(get_admin)):
    driver_service.remove_driver(db, driver_id, principal.userId)
