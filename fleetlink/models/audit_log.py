from sqlalchemy import Column, Integer, String, Text, TIMESTAMP
from sqlalchemy.sql import func
from fleetlink.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id          = Column(Integer, primary_key=True, index=True)
    accountId   = Column(String(36), nullable=True, index=True)  # tenant the action ran under
    actorId     = Column(String(36), nullable=True)               # NULL = system action
    action      = Column(String(100), nullable=False)             # e.g. CREATE, UPDATE, DEACTIVATE
    entityType  = Column(String(100), nullable=False)             # e.g. VehicleAccountAssociation
    entityId    = Column(String(36), nullable=True)
    description = Column(Text, nullable=True)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<AuditLog id={self.id} action={self.action} entity={self.entityType}:{self.entityId}>"
