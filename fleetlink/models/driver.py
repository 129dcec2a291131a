import enum
import uuid
from sqlalchemy import Column, String, Date, Enum, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetlink.database import Base


class DriverStatus(str, enum.Enum):
    ACTIVE   = "ACTIVE"
    INACTIVE = "INACTIVE"
    ON_LEAVE = "ON_LEAVE"
    VACATION = "VACATION"


class Driver(Base):
    __tablename__ = "drivers"

    id            = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    cpf           = Column(String(11), unique=True, nullable=False, index=True)
    fullName      = Column(String(255), nullable=False)
    dateOfBirth   = Column(Date, nullable=True)
    phone         = Column(String(20), nullable=True)
    email         = Column(String(255), nullable=True)
    cnhNumber     = Column(String(11), nullable=True)
    cnhCategory   = Column(String(5), nullable=True)
    cnhExpiration = Column(Date, nullable=True)
    status        = Column(Enum(DriverStatus), default=DriverStatus.ACTIVE, nullable=False)
    createdAt     = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt     = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                           onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    associations = relationship("DriverAccountAssociation", back_populates="driver",
                                cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Driver id={self.id} cpf={self.cpf} status={self.status}>"
