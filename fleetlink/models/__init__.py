"""
Import all models here so that:
1. Alembic can auto-detect them when generating migrations
2. Relationships between models resolve correctly

Parent tables are imported before child tables.
"""

from fleetlink.models.association_type import AssociationType
from fleetlink.models.account import Account
from fleetlink.models.driver import Driver, DriverStatus
from fleetlink.models.vehicle import Vehicle
from fleetlink.models.vehicle_group import VehicleGroup
from fleetlink.models.driver_association import DriverAccountAssociation
from fleetlink.models.vehicle_association import VehicleAccountAssociation
from fleetlink.models.audit_log import AuditLog

__all__ = [
    "AssociationType",
    "Account",
    "Driver",
    "DriverStatus",
    "Vehicle",
    "VehicleGroup",
    "DriverAccountAssociation",
    "VehicleAccountAssociation",
    "AuditLog",
]
