import uuid
from sqlalchemy import Column, String, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetlink.database import Base


class VehicleGroup(Base):
    __tablename__ = "vehicle_groups"

    id        = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    accountId = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"),
                       nullable=False, index=True)
    name      = Column(String(100), nullable=False)
    createdAt = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    account      = relationship("Account", back_populates="vehicle_groups")
    associations = relationship("VehicleAccountAssociation", back_populates="group")

    def __repr__(self):
        return f"<VehicleGroup id={self.id} accountId={self.accountId} name={self.name}>"
