"""
Persistence disciplines for resource/account associations.

The lifecycle manager owns the FLEET rule and the transaction boundary; a
strategy only decides which existing row a request collides with and how the
request is applied to it:

    HistoryPreservingStrategy  drivers   a change supersedes the active row
    SingleRowStrategy          vehicles  one mutable row per (vehicle, account)
"""
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from fleetlink.models.association_type import AssociationType
from fleetlink.models.driver_association import DriverAccountAssociation
from fleetlink.models.vehicle_association import VehicleAccountAssociation


# Outcome of applying a request, used for audit and logging
NOOP      = "NOOP"
CREATE    = "CREATE"
UPDATE    = "UPDATE"
SUPERSEDE = "SUPERSEDE"


@dataclass
class RequestedAssociation:
    resource_id: str
    account_id: str
    association_type: AssociationType
    is_active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None
    group_id: str | None = None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _serialize_base(a) -> dict:
    return {
        "id":              a.id,
        "accountId":       a.accountId,
        "associationType": a.associationType.value,
        "isActive":        a.isActive,
        "startDate":       _iso(a.startDate),
        "endDate":         _iso(a.endDate),
        "createdAt":       _iso(a.createdAt),
        "updatedAt":       _iso(a.updatedAt),
    }


class AssociationStrategy:
    model = None
    resource_column: str = ""
    resource_label: str = ""
    supports_groups: bool = False
    supports_remove: bool = False

    @property
    def entity_type(self) -> str:
        return self.model.__name__

    def resource_id_of(self, row) -> str:
        return getattr(row, self.resource_column)

    def new_row(self, req: RequestedAssociation, now: datetime):
        fields = {
            self.resource_column: req.resource_id,
            "accountId":          req.account_id,
            "associationType":    req.association_type,
            "isActive":           req.is_active,
            "startDate":          req.start_date or now,
            "endDate":            req.end_date,
        }
        if self.supports_groups:
            fields["groupId"] = req.group_id
        return self.model(**fields)

    def find_existing(self, db: Session, resource_id: str, account_id: str):
        raise NotImplementedError

    def apply_transition(self, db: Session, existing, req: RequestedAssociation, now: datetime):
        """Apply the request to the store. Returns (row, outcome)."""
        raise NotImplementedError

    def serialize(self, row) -> dict:
        raise NotImplementedError


class HistoryPreservingStrategy(AssociationStrategy):
    model = DriverAccountAssociation
    resource_column = "driverId"
    resource_label = "Driver"

    def find_existing(self, db: Session, resource_id: str, account_id: str):
        # Only the open row matters; closed rows are history
        return db.query(self.model).filter(
            self.model.driverId == resource_id,
            self.model.accountId == account_id,
            self.model.isActive.is_(True),
        ).first()

    def apply_transition(self, db: Session, existing, req: RequestedAssociation, now: datetime):
        if existing is None:
            row = self.new_row(req, now)
            db.add(row)
            return row, CREATE

        if existing.associationType == req.association_type and existing.isActive == req.is_active:
            return existing, NOOP

        outcome = CREATE
        if req.is_active:
            existing.isActive = False
            existing.endDate  = now
            # Close the old row before the insert so the one-active-per-pair index holds
            db.flush()
            outcome = SUPERSEDE

        row = self.new_row(req, now)
        db.add(row)
        return row, outcome

    def serialize(self, a: DriverAccountAssociation) -> dict:
        result = _serialize_base(a)
        result["driverId"] = a.driverId
        result["driver"] = {
            "id":        a.driver.id,
            "fullName":  a.driver.fullName,
            "cpf":       a.driver.cpf,
            "cnhNumber": a.driver.cnhNumber,
            "status":    a.driver.status.value,
        }
        return result


class SingleRowStrategy(AssociationStrategy):
    model = VehicleAccountAssociation
    resource_column = "vehicleId"
    resource_label = "Vehicle"
    supports_groups = True
    supports_remove = True

    def find_existing(self, db: Session, resource_id: str, account_id: str):
        return db.query(self.model).filter(
            self.model.vehicleId == resource_id,
            self.model.accountId == account_id,
        ).first()

    def apply_transition(self, db: Session, existing, req: RequestedAssociation, now: datetime):
        if existing is None:
            row = self.new_row(req, now)
            db.add(row)
            return row, CREATE

        changed = False
        if existing.associationType != req.association_type:
            existing.associationType = req.association_type
            changed = True
        if req.group_id is not None and existing.groupId != req.group_id:
            existing.groupId = req.group_id
            changed = True
        if existing.isActive and not req.is_active:
            existing.isActive = False
            existing.endDate  = req.end_date or now
            changed = True
        elif not existing.isActive and req.is_active:
            # Reactivation opens a fresh validity window on the same row
            existing.isActive  = True
            existing.startDate = req.start_date or now
            existing.endDate   = None
            changed = True

        return existing, UPDATE if changed else NOOP

    def serialize(self, a: VehicleAccountAssociation) -> dict:
        result = _serialize_base(a)
        result["vehicleId"] = a.vehicleId
        result["groupId"]   = a.groupId
        result["vehicle"] = {
            "id":    a.vehicle.id,
            "plate": a.vehicle.plate,
            "brand": a.vehicle.brand,
            "model": a.vehicle.model,
            "year":  a.vehicle.year,
        }
        result["group"] = {"id": a.group.id, "name": a.group.name} if a.group else None
        result["account"] = {"id": a.account.id, "companyName": a.account.companyName}
        return result
