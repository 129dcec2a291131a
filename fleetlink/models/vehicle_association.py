import uuid
from sqlalchemy import (
    Column, String, Boolean, Enum, ForeignKey, Index, UniqueConstraint, TIMESTAMP,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetlink.database import Base
from fleetlink.models.association_type import AssociationType


class VehicleAccountAssociation(Base):
    """
    Single-row link between a vehicle and an account.

    Exactly one row may exist per (vehicle, account) pair; re-associating the
    same pair updates that row in place.
    """
    __tablename__ = "vehicle_account_associations"

    id              = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    vehicleId       = Column(String(36), ForeignKey("vehicles.id", ondelete="CASCADE"),
                             nullable=False, index=True)
    accountId       = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"),
                             nullable=False, index=True)
    groupId         = Column(String(36), ForeignKey("vehicle_groups.id", ondelete="SET NULL"),
                             nullable=True)
    associationType = Column(Enum(AssociationType), nullable=False)
    isActive        = Column(Boolean, default=True, nullable=False)
    startDate       = Column(TIMESTAMP(timezone=True), nullable=False)
    endDate         = Column(TIMESTAMP(timezone=True), nullable=True)
    createdAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                             onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("vehicleId", "accountId", name="uq_vehicle_assoc_vehicle_account"),
        # At most one active FLEET row per vehicle, across all accounts
        Index(
            "ux_vehicle_assoc_one_active_fleet", "vehicleId", unique=True,
            postgresql_where=(associationType == AssociationType.FLEET.value) & isActive.is_(True),
            sqlite_where=(associationType == AssociationType.FLEET.value) & isActive.is_(True),
        ),
    )

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle = relationship("Vehicle", back_populates="associations")
    account = relationship("Account", back_populates="vehicle_associations")
    group   = relationship("VehicleGroup", back_populates="associations")

    def __repr__(self):
        return (f"<VehicleAccountAssociation id={self.id} vehicleId={self.vehicleId} "
                f"accountId={self.accountId} type={self.associationType} isActive={self.isActive}>")
