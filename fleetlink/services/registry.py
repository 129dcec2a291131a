"""
Read-only lookups for the entities associations point at.

Drivers, vehicles, accounts and vehicle groups are owned by their own CRUD
services; the association engine only needs to know whether they exist (and,
for groups, whether they belong to the calling tenant).
"""
from sqlalchemy.orm import Session

from fleetlink.models.account import Account
from fleetlink.models.driver import Driver
from fleetlink.models.vehicle import Vehicle
from fleetlink.models.vehicle_group import VehicleGroup
from fleetlink.utils.exceptions import NotFoundException


class ResourceRegistry:

    def __init__(self, model, label: str):
        self.model = model
        self.label = label

    def exists(self, db: Session, resource_id: str) -> bool:
        return db.query(self.model.id).filter(self.model.id == resource_id).first() is not None

    def get(self, db: Session, resource_id: str):
        resource = db.query(self.model).filter(self.model.id == resource_id).first()
        if not resource:
            raise NotFoundException(f'{self.label} with ID "{resource_id}"')
        return resource


class AccountRegistry:

    def exists(self, db: Session, account_id: str) -> bool:
        return db.query(Account.id).filter(Account.id == account_id).first() is not None

    def get(self, db: Session, account_id: str) -> Account:
        account = db.query(Account).filter(Account.id == account_id).first()
        if not account:
            raise NotFoundException(f'Account with ID "{account_id}"')
        return account


class GroupStore:

    def get(self, db: Session, group_id: str, account_id: str) -> VehicleGroup:
        # A group owned by another tenant is indistinguishable from a missing one
        group = db.query(VehicleGroup).filter(
            VehicleGroup.id == group_id,
            VehicleGroup.accountId == account_id,
        ).first()
        if not group:
            raise NotFoundException(f'Group with ID "{group_id}" for this account')
        return group


driver_registry  = ResourceRegistry(Driver, "Driver")
vehicle_registry = ResourceRegistry(Vehicle, "Vehicle")
account_registry = AccountRegistry()
group_store      = GroupStore()
