import uuid
from sqlalchemy import Column, String, Boolean, Enum, ForeignKey, Index, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetlink.database import Base
from fleetlink.models.association_type import AssociationType


class DriverAccountAssociation(Base):
    """
    History-preserving link between a driver and an account.

    Rows are never overwritten: a change of type for the same (driver, account)
    pair closes the active row (isActive=False, endDate set) and inserts a new one.
    """
    __tablename__ = "driver_account_associations"

    id              = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    driverId        = Column(String(36), ForeignKey("drivers.id", ondelete="CASCADE"),
                             nullable=False, index=True)
    accountId       = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"),
                             nullable=False, index=True)
    associationType = Column(Enum(AssociationType), nullable=False)
    isActive        = Column(Boolean, default=True, nullable=False)
    startDate       = Column(TIMESTAMP(timezone=True), nullable=False)
    endDate         = Column(TIMESTAMP(timezone=True), nullable=True)  # NULL = still open
    createdAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                             onupdate=func.now(), nullable=False)

    __table_args__ = (
        # At most one active FLEET row per driver, across all accounts
        Index(
            "ux_driver_assoc_one_active_fleet", "driverId", unique=True,
            postgresql_where=(associationType == AssociationType.FLEET.value) & isActive.is_(True),
            sqlite_where=(associationType == AssociationType.FLEET.value) & isActive.is_(True),
        ),
        # At most one active row per (driver, account) pair
        Index(
            "ux_driver_assoc_one_active_per_account", "driverId", "accountId", unique=True,
            postgresql_where=isActive.is_(True),
            sqlite_where=isActive.is_(True),
        ),
    )

    # ─── Relationships ─────────────────────────────────────────────────────────
    driver  = relationship("Driver", back_populates="associations")
    account = relationship("Account", back_populates="driver_associations")

    def __repr__(self):
        return (f"<DriverAccountAssociation id={self.id} driverId={self.driverId} "
                f"accountId={self.accountId} type={self.associationType} isActive={self.isActive}>")
