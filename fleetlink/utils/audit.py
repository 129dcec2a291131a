from sqlalchemy.orm import Session
from fleetlink.models.audit_log import AuditLog


def log_action(
    db: Session,
    account_id: str | None,
    actor_id: str | None,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    description: str | None = None,
) -> None:
    """
    Write an audit log entry.

    Args:
        db:          Active DB session (adds but does NOT commit; the caller commits)
        account_id:  Tenant the action was performed under
        actor_id:    ID of user performing the action (None = system action)
        action:      Verb: CREATE, UPDATE, DEACTIVATE, SUPERSEDE, DELETE, etc.
        entity_type: Model name: "DriverAccountAssociation", "Vehicle", etc.
        entity_id:   Primary key of the affected record
        description: Human-readable description

    Usage:
        with transaction(db):
            ...
            log_action(db, account_id, actor_id, "DEACTIVATE", "VehicleAccountAssociation",
                       row.id, f"Vehicle {row.vehicleId} deactivated for account")
    """
    entry = AuditLog(
        accountId=account_id,
        actorId=actor_id,
        action=action,
        entityType=entity_type,
        entityId=entity_id,
        description=description,
    )
    db.add(entry)
    # Committed by the enclosing transaction()
