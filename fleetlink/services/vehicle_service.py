import logging
from datetime import datetime, timezone
from sqlalchemy import or_
from sqlalchemy.orm import Session

from fleetlink.database import transaction
from fleetlink.models.association_type import AssociationType
from fleetlink.models.vehicle import Vehicle
from fleetlink.models.vehicle_association import VehicleAccountAssociation
from fleetlink.schemas.common import paginate
from fleetlink.schemas.vehicle import VehicleCreateRequest, VehicleUpdateRequest
from fleetlink.services.association_service import vehicle_association_service
from fleetlink.services.association_strategies import RequestedAssociation
from fleetlink.services.registry import account_registry, group_store, vehicle_registry
from fleetlink.utils.audit import log_action
from fleetlink.utils.exceptions import (
    DuplicateAssociationException, DuplicateEntryException, ForbiddenException, NotFoundException,
)

logger = logging.getLogger(__name__)


def _serialize(v: Vehicle, association: VehicleAccountAssociation | None = None) -> dict:
    result = {
        "id":              v.id,
        "plate":           v.plate,
        "brand":           v.brand,
        "model":           v.model,
        "year":            v.year,
        "trackerDeviceId": v.trackerDeviceId,
        "trackerType":     v.trackerType,
        "createdAt":       v.createdAt.isoformat() if v.createdAt else None,
    }
    if association is not None:
        result["association"] = {
            "id":              association.id,
            "associationType": association.associationType.value,
            "isActive":        association.isActive,
            "group": ({"id": association.group.id, "name": association.group.name}
                      if association.group else None),
        }
    return result


class VehicleService:
    """
    Physical vehicle records, seen through the calling account's associations.

    Who may edit or delete a vehicle follows from the FLEET holder
    (see AssociationLifecycleManager.exclusive_holder).
    """

    def create_vehicle_and_association(
        self, db: Session, account_id: str, data: VehicleCreateRequest, actor_id: str | None = None,
    ) -> dict:
        account_registry.get(db, account_id)
        if db.query(Vehicle).filter(Vehicle.plate == data.plate).first():
            raise DuplicateEntryException(f"Vehicle with plate {data.plate} already exists", field="plate")
        if data.groupId:
            group_store.get(db, data.groupId, account_id)

        with transaction(db):
            vehicle = Vehicle(**data.model_dump(exclude={"associationType", "groupId"}))
            db.add(vehicle)
            db.flush()

            # A brand-new vehicle has no FLEET holder; the partial unique index still guards it
            association = vehicle_association_service.strategy.new_row(
                RequestedAssociation(
                    resource_id=vehicle.id,
                    account_id=account_id,
                    association_type=data.associationType,
                    is_active=True,
                    group_id=data.groupId,
                ),
                datetime.now(timezone.utc),
            )
            db.add(association)
            db.flush()
            log_action(db, account_id, actor_id, "CREATE", "Vehicle", vehicle.id,
                       f"Created vehicle {vehicle.plate} as {data.associationType.value}")

        db.refresh(vehicle)
        db.refresh(association)
        logger.info(f"Vehicle {vehicle.plate} created by account {account_id}")
        return _serialize(vehicle, association)

    def associate_existing(
        self, db: Session, account_id: str, vehicle_id: str,
        association_type: AssociationType, group_id: str | None = None, actor_id: str | None = None,
    ) -> dict:
        vehicle_registry.get(db, vehicle_id)
        existing = db.query(VehicleAccountAssociation).filter(
            VehicleAccountAssociation.vehicleId == vehicle_id,
            VehicleAccountAssociation.accountId == account_id,
        ).first()
        if existing:
            raise DuplicateAssociationException(
                f"Vehicle {vehicle_id} is already associated with your account as "
                f"{existing.associationType.value}. Use the update route."
            )
        return vehicle_association_service.add_or_update(
            db, account_id, vehicle_id, association_type,
            is_active=True, group_id=group_id, actor_id=actor_id,
        )

    def list_for_account(
        self, db: Session, account_id: str, page: int, limit: int, search: str | None = None,
    ) -> dict:
        q = db.query(VehicleAccountAssociation).join(VehicleAccountAssociation.vehicle).filter(
            VehicleAccountAssociation.accountId == account_id,
            VehicleAccountAssociation.isActive.is_(True),
        )
        if search:
            kw = f"%{search}%"
            q = q.filter(or_(Vehicle.plate.ilike(kw), Vehicle.brand.ilike(kw), Vehicle.model.ilike(kw)))

        total = q.count()
        items = q.order_by(Vehicle.plate).offset((page - 1) * limit).limit(limit).all()
        return paginate([_serialize(a.vehicle, a) for a in items], total, page, limit)

    def get_for_account(self, db: Session, vehicle_id: str, account_id: str) -> dict:
        association = db.query(VehicleAccountAssociation).filter(
            VehicleAccountAssociation.vehicleId == vehicle_id,
            VehicleAccountAssociation.accountId == account_id,
            VehicleAccountAssociation.isActive.is_(True),
        ).first()
        if not association:
            raise NotFoundException(f"Vehicle with ID {vehicle_id} active for this account")
        return _serialize(association.vehicle, association)

    def update_vehicle_data(
        self, db: Session, vehicle_id: str, account_id: str, data: VehicleUpdateRequest,
        actor_id: str | None = None,
    ) -> dict:
        vehicle = vehicle_registry.get(db, vehicle_id)

        own = db.query(VehicleAccountAssociation).filter(
            VehicleAccountAssociation.vehicleId == vehicle_id,
            VehicleAccountAssociation.accountId == account_id,
        ).first()
        if not own:
            raise ForbiddenException("Your account has no association with this vehicle")

        holder = vehicle_association_service.exclusive_holder(db, vehicle_id)
        if holder is not None and holder != account_id:
            raise ForbiddenException("Only the FLEET owner of this vehicle can edit its physical data")
        if holder is None:
            logger.warning(
                f"Vehicle {vehicle_id} has no FLEET owner; physical data edited by "
                f"non-FLEET account {account_id}"
            )

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "plate" in changes and changes["plate"] != vehicle.plate:
            if db.query(Vehicle).filter(Vehicle.plate == changes["plate"], Vehicle.id != vehicle_id).first():
                raise DuplicateEntryException("Plate already in use", field="plate")

        with transaction(db):
            for field, value in changes.items():
                setattr(vehicle, field, value)
            log_action(db, account_id, actor_id, "UPDATE", "Vehicle", vehicle.id,
                       f"Updated vehicle {vehicle.plate}: {', '.join(sorted(changes)) or 'no changes'}")
        db.refresh(vehicle)
        return _serialize(vehicle, own)

    def delete_vehicle(self, db: Session, vehicle_id: str, account_id: str, actor_id: str | None = None) -> None:
        """
        Delete the physical vehicle and, by cascade, every association to it.

        Only the account holding the FLEET link may do this, and only once no
        other account still has an active association with the vehicle.
        """
        vehicle = vehicle_registry.get(db, vehicle_id)

        # A FLEET owner who already deactivated its link may still delete
        if not vehicle_association_service.holds_exclusive(db, vehicle_id, account_id, include_inactive=True):
            raise ForbiddenException("You cannot delete this vehicle. Only its FLEET owner can.")

        others_active = db.query(VehicleAccountAssociation).filter(
            VehicleAccountAssociation.vehicleId == vehicle_id,
            VehicleAccountAssociation.accountId != account_id,
            VehicleAccountAssociation.isActive.is_(True),
        ).count()
        if others_active:
            raise ForbiddenException(
                "This vehicle is still in active use by other accounts. "
                "They must deactivate their associations first."
            )

        with transaction(db):
            log_action(db, account_id, actor_id, "DELETE", "Vehicle", vehicle.id,
                       f"Deleted vehicle {vehicle.plate}")
            db.delete(vehicle)
        logger.info(f"Vehicle {vehicle_id} deleted by FLEET owner {account_id}")


vehicle_service = VehicleService()
