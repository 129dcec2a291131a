import uuid
from sqlalchemy import Column, String, Boolean, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetlink.database import Base


class Account(Base):
    __tablename__ = "accounts"

    id          = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    companyName = Column(String(255), nullable=False)
    isActive    = Column(Boolean, default=True, nullable=False)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                         onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle_groups       = relationship("VehicleGroup", back_populates="account",
                                        cascade="all, delete-orphan")
    driver_associations  = relationship("DriverAccountAssociation", back_populates="account",
                                        cascade="all, delete-orphan")
    vehicle_associations = relationship("VehicleAccountAssociation", back_populates="account",
                                        cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Account id={self.id} companyName={self.companyName}>"
