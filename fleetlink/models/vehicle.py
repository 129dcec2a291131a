import uuid
from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetlink.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id              = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    plate           = Column(String(7), unique=True, nullable=False, index=True)
    brand           = Column(String(100), nullable=True)
    model           = Column(String(100), nullable=True)
    year            = Column(Integer, nullable=True)
    trackerDeviceId = Column(String(100), nullable=True)
    trackerType     = Column(String(50), nullable=True)
    createdAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                             onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    associations = relationship("VehicleAccountAssociation", back_populates="vehicle",
                                cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Vehicle id={self.id} plate={self.plate}>"
