import logging
from datetime import datetime, timezone
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from fleetlink.database import transaction
from fleetlink.models.driver import Driver
from fleetlink.models.driver_association import DriverAccountAssociation
from fleetlink.schemas.common import paginate
from fleetlink.schemas.driver import DriverCreateRequest, DriverUpdateRequest, DriverQueryParams
from fleetlink.utils.audit import log_action
from fleetlink.utils.exceptions import (
    NotFoundException, DuplicateEntryException, InvalidFieldException,
)

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "fullName":  Driver.fullName,
    "cpf":       Driver.cpf,
    "cnhNumber": Driver.cnhNumber,
    "status":    Driver.status,
    "createdAt": Driver.createdAt,
}


def _serialize(d: Driver, with_associations: bool = True) -> dict:
    result = {
        "id":            d.id,
        "cpf":           d.cpf,
        "fullName":      d.fullName,
        "dateOfBirth":   d.dateOfBirth.isoformat() if d.dateOfBirth else None,
        "phone":         d.phone,
        "email":         d.email,
        "cnhNumber":     d.cnhNumber,
        "cnhCategory":   d.cnhCategory,
        "cnhExpiration": d.cnhExpiration.isoformat() if d.cnhExpiration else None,
        "status":        d.status.value,
        "createdAt":     d.createdAt.isoformat() if d.createdAt else None,
    }
    if with_associations:
        result["activeAssociations"] = [{
            "id":              a.id,
            "associationType": a.associationType.value,
            "account": {"id": a.account.id, "companyName": a.account.companyName},
            "startDate":       a.startDate.isoformat(),
        } for a in d.associations if a.isActive]
    return result


class DriverService:

    def list_drivers(self, db: Session, params: DriverQueryParams) -> dict:
        if params.page < 1 or not (1 <= params.limit <= 100):
            raise InvalidFieldException("Page must be >= 1 and limit between 1 and 100")
        sort_column = SORTABLE_FIELDS.get(params.sortBy)
        if sort_column is None:
            raise InvalidFieldException(f"Cannot sort drivers by '{params.sortBy}'", field="sortBy")
        if params.sortOrder not in ("asc", "desc"):
            raise InvalidFieldException('Sort order must be "asc" or "desc"', field="sortOrder")

        q = db.query(Driver)
        if params.search:
            kw = f"%{params.search}%"
            q = q.filter(or_(
                Driver.fullName.ilike(kw),
                Driver.cpf.ilike(kw),
                Driver.cnhNumber.ilike(kw),
                Driver.email.ilike(kw),
            ))
        if params.status:
            q = q.filter(Driver.status == params.status)
        if params.associationType or params.associatedAccountId:
            criteria = [DriverAccountAssociation.isActive.is_(True)]
            if params.associationType:
                criteria.append(DriverAccountAssociation.associationType == params.associationType)
            if params.associatedAccountId:
                criteria.append(DriverAccountAssociation.accountId == params.associatedAccountId)
            q = q.filter(Driver.associations.any(and_(*criteria)))

        total = q.count()
        ordering = sort_column.asc() if params.sortOrder == "asc" else sort_column.desc()
        items = q.order_by(ordering, Driver.id).offset((params.page - 1) * params.limit).limit(params.limit).all()
        return paginate([_serialize(d) for d in items], total, params.page, params.limit)

    def get_driver(self, db: Session, driver_id: str) -> dict:
        d = db.query(Driver).filter(Driver.id == driver_id).first()
        if not d: raise NotFoundException(f'Driver with ID "{driver_id}"')
        return _serialize(d)

    def create_driver(self, db: Session, data: DriverCreateRequest, actor_id: str | None = None) -> dict:
        if db.query(Driver).filter(Driver.cpf == data.cpf).first():
            raise DuplicateEntryException(f"CPF '{data.cpf}' is already registered for another driver", field="cpf")

        with transaction(db):
            d = Driver(**data.model_dump(exclude_none=True))
            db.add(d)
            db.flush()
            log_action(db, None, actor_id, "CREATE", "Driver", d.id, f"Registered driver {d.fullName} ({d.cpf})")
        db.refresh(d)
        return _serialize(d, with_associations=False)

    def update_driver(self, db: Session, driver_id: str, data: DriverUpdateRequest, actor_id: str | None = None) -> dict:
        d = db.query(Driver).filter(Driver.id == driver_id).first()
        if not d: raise NotFoundException(f'Driver with ID "{driver_id}"')

        with transaction(db):
            for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
                setattr(d, field, value)
            log_action(db, None, actor_id, "UPDATE", "Driver", d.id, f"Updated driver {d.fullName}")
        db.refresh(d)
        return _serialize(d)

    def remove_driver(self, db: Session, driver_id: str, actor_id: str | None = None) -> None:
        d = db.query(Driver).filter(Driver.id == driver_id).first()
        if not d: raise NotFoundException(f'Driver with ID "{driver_id}"')

        with transaction(db):
            # Close open associations first so the audit trail shows when they ended
            closed = db.query(DriverAccountAssociation).filter(
                DriverAccountAssociation.driverId == driver_id,
                DriverAccountAssociation.isActive.is_(True),
            ).update({"isActive": False, "endDate": datetime.now(timezone.utc)}, synchronize_session="fetch")
            log_action(db, None, actor_id, "DELETE", "Driver", d.id,
                       f"Deleted driver {d.fullName} ({closed} active association(s) closed)")
            db.delete(d)
        logger.info(f"Driver {driver_id} deleted, {closed} active association(s) closed")


driver_service = DriverService()
