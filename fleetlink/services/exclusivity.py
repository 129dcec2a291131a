import logging
from sqlalchemy.orm import Session

from fleetlink.models.association_type import EXCLUSIVE_ASSOCIATION_TYPE
from fleetlink.utils.exceptions import ExclusivityConflictException

logger = logging.getLogger(__name__)


class ExclusivityValidator:
    """
    Answers "would activating a FLEET association for this resource and account
    violate the one-active-FLEET-per-resource rule?".

    Must run inside the same transaction as the write that follows it. The partial
    unique index on the association table is what actually guarantees the rule;
    this check exists so the caller gets a message naming the current holder.
    """

    def __init__(self, model, resource_column: str, resource_label: str):
        self.model = model
        self.resource_column = resource_column
        self.resource_label = resource_label

    def _exclusive(self, db: Session, resource_id: str, active_only: bool = True):
        q = db.query(self.model).filter(
            getattr(self.model, self.resource_column) == resource_id,
            self.model.associationType == EXCLUSIVE_ASSOCIATION_TYPE,
        )
        return q.filter(self.model.isActive.is_(True)) if active_only else q

    def find_conflict(
        self, db: Session, resource_id: str, account_id: str, exclude_id: str | None = None,
    ):
        """Return the active FLEET row held by someone else, or None."""
        q = self._exclusive(db, resource_id)
        if exclude_id is not None:
            q = q.filter(self.model.id != exclude_id)
        else:
            q = q.filter(self.model.accountId != account_id)
        return q.with_for_update().first()

    def check(
        self, db: Session, resource_id: str, account_id: str, exclude_id: str | None = None,
    ) -> None:
        conflict = self.find_conflict(db, resource_id, account_id, exclude_id)
        if conflict:
            logger.warning(
                f"Rejected FLEET claim on {self.resource_label} {resource_id} by account {account_id}: "
                f"held by account {conflict.accountId}"
            )
            raise ExclusivityConflictException(
                self.resource_label, resource_id, conflict.accountId, conflict.account.companyName,
            )

    def exclusive_holder(self, db: Session, resource_id: str) -> str | None:
        """Account id currently holding the FLEET slot for the resource, if any."""
        row = self._exclusive(db, resource_id).first()
        return row.accountId if row else None

    def holds_exclusive(
        self, db: Session, resource_id: str, account_id: str, include_inactive: bool = False,
    ) -> bool:
        """
        Whether the account holds the FLEET row for the resource. With
        include_inactive a deactivated FLEET row still counts.
        """
        q = self._exclusive(db, resource_id, active_only=not include_inactive)
        return q.filter(self.model.accountId == account_id).first() is not None
