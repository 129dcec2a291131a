import logging
from datetime import datetime, timezone

from sqlalchemy import delete, func, update
from sqlalchemy.orm import Session

from fleetlink.database import transaction
from fleetlink.models.association_type import AssociationType, is_exclusive
from fleetlink.services.association_strategies import (
    AssociationStrategy, HistoryPreservingStrategy, SingleRowStrategy,
    RequestedAssociation, NOOP,
)
from fleetlink.services.exclusivity import ExclusivityValidator
from fleetlink.services.registry import (
    ResourceRegistry, driver_registry, vehicle_registry, account_registry, group_store,
)
from fleetlink.utils.audit import log_action
from fleetlink.utils.exceptions import (
    NotFoundException, ForbiddenException, InvalidFieldException,
)

logger = logging.getLogger(__name__)

_PATCHABLE = {"associationType", "startDate", "endDate", "isActive"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _association_type(value) -> AssociationType:
    try:
        return AssociationType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in AssociationType)
        raise InvalidFieldException(
            f"Invalid association type '{value}'. Allowed: {allowed}", field="associationType",
        )


def _check_open_end_date(is_active: bool, end_date) -> None:
    # An active association has no end date
    if is_active and end_date is not None:
        raise InvalidFieldException("An active association cannot have an end date", field="endDate")


class AssociationLifecycleManager:
    """
    Creates, transitions and retires associations for one resource kind.

    Every mutating operation runs as a single transaction: the FLEET check and
    the write it guards are committed together or not at all.
    """

    def __init__(self, strategy: AssociationStrategy, registry: ResourceRegistry):
        self.strategy = strategy
        self.registry = registry
        self.model = strategy.model
        self.validator = ExclusivityValidator(
            strategy.model, strategy.resource_column, strategy.resource_label,
        )

    @property
    def label(self) -> str:
        return f"{self.strategy.resource_label} association"

    # ─── Helpers ──────────────────────────────────────────────────────────────
    def _scoped(self, db: Session, association_id: str, account_id: str):
        return db.query(self.model).filter(
            self.model.id == association_id,
            self.model.accountId == account_id,
        )

    def _get_scoped(self, db: Session, association_id: str, account_id: str):
        row = self._scoped(db, association_id, account_id).first()
        if not row:
            raise NotFoundException(f'{self.label} with ID "{association_id}" for this account')
        return row

    def _check_group(self, db: Session, group_id: str | None, account_id: str) -> None:
        if group_id is None:
            return
        if not self.strategy.supports_groups:
            raise InvalidFieldException(
                f"{self.strategy.resource_label} associations do not support groups", field="groupId",
            )
        group_store.get(db, group_id, account_id)

    # ─── Queries ──────────────────────────────────────────────────────────────
    def get(self, db: Session, association_id: str, account_id: str) -> dict:
        return self.strategy.serialize(self._get_scoped(db, association_id, account_id))

    def exclusive_holder(self, db: Session, resource_id: str) -> str | None:
        return self.validator.exclusive_holder(db, resource_id)

    def holds_exclusive(
        self, db: Session, resource_id: str, account_id: str, include_inactive: bool = False,
    ) -> bool:
        return self.validator.holds_exclusive(db, resource_id, account_id, include_inactive)

    # ─── Commands ─────────────────────────────────────────────────────────────
    def add_or_update(
        self,
        db: Session,
        account_id: str,
        resource_id: str,
        association_type: AssociationType,
        is_active: bool = True,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        group_id: str | None = None,
        actor_id: str | None = None,
    ) -> dict:
        if not self.registry.exists(db, resource_id):
            raise NotFoundException(f'{self.strategy.resource_label} with ID "{resource_id}"')
        if not account_registry.exists(db, account_id):
            raise NotFoundException(f'Account with ID "{account_id}"')
        self._check_group(db, group_id, account_id)
        _check_open_end_date(is_active, end_date)

        requested = RequestedAssociation(
            resource_id=resource_id,
            account_id=account_id,
            association_type=_association_type(association_type),
            is_active=is_active,
            start_date=start_date,
            end_date=end_date,
            group_id=group_id,
        )

        with transaction(db):
            if is_exclusive(requested.association_type) and requested.is_active:
                self.validator.check(db, resource_id, account_id)

            existing = self.strategy.find_existing(db, resource_id, account_id)
            row, outcome = self.strategy.apply_transition(db, existing, requested, _now())
            db.flush()

            if outcome != NOOP:
                log_action(db, account_id, actor_id, outcome, self.strategy.entity_type, row.id,
                           f"{self.strategy.resource_label} {resource_id} -> "
                           f"{requested.association_type.value} (active={requested.is_active})")

        db.refresh(row)
        logger.info(f"{self.label} {row.id} for account {account_id}: {outcome}")
        return self.strategy.serialize(row)

    def update(
        self, db: Session, association_id: str, account_id: str, patch: dict,
        actor_id: str | None = None,
    ) -> dict:
        """
        Apply a partial change to one association of the calling account.

        `patch` holds only the fields the caller sent; an explicit None for
        endDate or groupId clears that field.
        """
        allowed = _PATCHABLE | ({"groupId"} if self.strategy.supports_groups else set())
        unknown = set(patch) - allowed
        if unknown:
            raise InvalidFieldException(f"Field(s) not updatable: {', '.join(sorted(unknown))}",
                                        field=sorted(unknown)[0])

        row = self._get_scoped(db, association_id, account_id)
        if "groupId" in patch:
            self._check_group(db, patch["groupId"], account_id)

        # Only endDate and groupId may be cleared with an explicit null
        values = {k: v for k, v in patch.items() if v is not None or k in ("endDate", "groupId")}
        if "associationType" in values:
            values["associationType"] = _association_type(values["associationType"])

        resulting_type = values.get("associationType", row.associationType)
        resulting_active = values.get("isActive", row.isActive)
        _check_open_end_date(resulting_active, values.get("endDate"))

        with transaction(db):
            if is_exclusive(resulting_type) and resulting_active:
                self.validator.check(db, self.strategy.resource_id_of(row), account_id,
                                     exclude_id=row.id)

            if row.isActive and resulting_active is False and values.get("endDate") is None:
                values["endDate"] = _now()
            elif not row.isActive and resulting_active is True and "endDate" not in patch:
                values["endDate"] = None

            if values:
                result = db.execute(
                    update(self.model)
                    .where(self.model.id == association_id, self.model.accountId == account_id)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    # Row vanished between the lookup and the write
                    raise NotFoundException(f'{self.label} with ID "{association_id}" for this account')
                log_action(db, account_id, actor_id, "UPDATE", self.strategy.entity_type, association_id,
                           f"Updated fields: {', '.join(sorted(values))}")

        db.refresh(row)
        return self.strategy.serialize(row)

    def deactivate(
        self, db: Session, association_id: str, account_id: str, actor_id: str | None = None,
    ) -> dict:
        with transaction(db):
            result = db.execute(
                update(self.model)
                .where(
                    self.model.id == association_id,
                    self.model.accountId == account_id,
                    self.model.isActive.is_(True),
                )
                .values(isActive=False, endDate=_now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundException(f'Active {self.label} with ID "{association_id}" for this account')
            log_action(db, account_id, actor_id, "DEACTIVATE", self.strategy.entity_type, association_id,
                       "Association deactivated")

        row = self._get_scoped(db, association_id, account_id)
        db.refresh(row)
        logger.info(f"{self.label} {association_id} deactivated by account {account_id}")
        return self.strategy.serialize(row)

    def remove(
        self, db: Session, association_id: str, account_id: str, actor_id: str | None = None,
    ) -> None:
        if not self.strategy.supports_remove:
            raise ForbiddenException(
                f"{self.label}s keep their history and cannot be deleted. Deactivate the association instead."
            )

        row = self._get_scoped(db, association_id, account_id)
        resource_id = self.strategy.resource_id_of(row)

        if is_exclusive(row.associationType):
            # The FLEET link goes away only together with the resource itself
            total = db.query(func.count(self.model.id)).filter(
                getattr(self.model, self.strategy.resource_column) == resource_id,
            ).scalar()
            if total > 1:
                raise ForbiddenException(
                    f"Cannot remove a FLEET association while the {self.strategy.resource_label.lower()} "
                    f"is still associated with other accounts. Delete the "
                    f"{self.strategy.resource_label.lower()} itself once no one else uses it."
                )
            raise ForbiddenException(
                f"To remove a FLEET {self.strategy.resource_label.lower()}, use the "
                f"{self.strategy.resource_label.lower()} deletion route."
            )

        with transaction(db):
            result = db.execute(
                delete(self.model)
                .where(self.model.id == association_id, self.model.accountId == account_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundException(f'{self.label} with ID "{association_id}" for this account')
            log_action(db, account_id, actor_id, "DELETE", self.strategy.entity_type, association_id,
                       f"Removed association with {self.strategy.resource_label.lower()} {resource_id}")

        db.expunge(row)
        logger.info(f"{self.label} {association_id} removed by account {account_id}")


driver_association_service  = AssociationLifecycleManager(HistoryPreservingStrategy(), driver_registry)
vehicle_association_service = AssociationLifecycleManager(SingleRowStrategy(), vehicle_registry)
