from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleetlink.database import get_db
from fleetlink.dependencies import get_admin, get_any_member, get_manager_or_admin
from fleetlink.schemas.common import success_response, paginated_response
from fleetlink.schemas.vehicle import AssociateExistingRequest, VehicleCreateRequest, VehicleUpdateRequest
from fleetlink.services.vehicle_service import vehicle_service
from fleetlink.utils.security import Principal

router = APIRouter(prefix="/vehicles")


@router.post("/create-new-vehicle", status_code=status.HTTP_201_CREATED,
             summary="Create a vehicle and associate it with the current account")
def create_new_vehicle(
    body:      VehicleCreateRequest,
    db:        Session   = Depends(get_db),
    principal: Principal = Depends(get_manager_or_admin),
):
    data = vehicle_service.create_vehicle_and_association(db, principal.accountId, body, principal.userId)
    return success_response("Vehicle created successfully", data)


@router.post("/associate-existing", status_code=status.HTTP_201_CREATED,
             summary="Associate an existing vehicle with the current account")
def associate_existing(
    body:      AssociateExistingRequest,
    db:        Session   = Depends(get_db),
    principal: Principal = Depends(get_manager_or_admin),
):
    data = vehicle_service.associate_existing(
        db, principal.accountId, body.vehicleId, body.associationType, body.groupId, principal.userId,
    )
    return success_response("Vehicle associated successfully", data)


@router.get("", summary="List vehicles active for the current account")
def list_vehicles(
    page:      int           = Query(1, ge=1),
    limit:     int           = Query(10, ge=1, le=100),
    search:    Optional[str] = Query(None),
    db:        Session       = Depends(get_db),
    principal: Principal     = Depends(get_any_member),
):
    result = vehicle_service.list_for_account(db, principal.accountId, page, limit, search)
    return paginated_response("Vehicles retrieved successfully", result)


@router.get("/{vehicle_id}", summary="Get a vehicle active for the current account")
def get_vehicle(vehicle_id: str, db: Session = Depends(get_db), principal: Principal = Depends(get_any_member)):
    return success_response("Vehicle retrieved", vehicle_service.get_for_account(db, vehicle_id, principal.accountId))


@router.patch("/{vehicle_id}/data", summary="Edit physical vehicle data (FLEET owner)")
def update_vehicle_data(
    vehicle_id: str,
    body:       VehicleUpdateRequest,
    db:         Session   = Depends(get_db),
    principal:  Principal = Depends(get_manager_or_admin),
):
    data = vehicle_service.update_vehicle_data(db, vehicle_id, principal.accountId, body, principal.userId)
    return success_response("Vehicle updated successfully", data)


@router.delete("/{vehicle_id}/physical", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete the vehicle and all its associations (FLEET owner, Admin)")
def delete_vehicle(
    vehicle_id: str,
    db:         Session   = Depends(get_db),
    principal:  Principal = Depends(get_admin),
):
    vehicle_service.delete_vehicle(db, vehicle_id, principal.accountId, principal.userId)
