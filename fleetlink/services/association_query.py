import math
from sqlalchemy import or_
from sqlalchemy.orm import Session

from fleetlink.config import settings
from fleetlink.models.driver import Driver
from fleetlink.models.driver_association import DriverAccountAssociation
from fleetlink.models.vehicle import Vehicle
from fleetlink.models.vehicle_association import VehicleAccountAssociation
from fleetlink.models.vehicle_group import VehicleGroup
from fleetlink.schemas.association import AssociationQueryParams
from fleetlink.services.association_strategies import (
    AssociationStrategy, HistoryPreservingStrategy, SingleRowStrategy,
)
from fleetlink.utils.exceptions import InvalidFieldException


class AssociationQueryService:
    """
    Tenant-scoped listing of associations joined with their resource.

    Sort keys are resolved against a fixed whitelist of direct columns and
    one-level joined paths ("vehicle.plate"); anything else is rejected.
    """

    def __init__(
        self,
        strategy: AssociationStrategy,
        resource_relationship,
        search_columns: list,
        sort_paths: dict,
        default_sort: str,
    ):
        self.strategy = strategy
        self.model = strategy.model
        self.resource_relationship = resource_relationship
        self.search_columns = search_columns
        self.sort_paths = sort_paths
        self.default_sort = default_sort

    def _validate(self, params: AssociationQueryParams):
        if params.page < 1:
            raise InvalidFieldException("Page must be greater than or equal to 1", field="page")
        if not (1 <= params.limit <= settings.ASSOCIATION_PAGE_SIZE_MAX):
            raise InvalidFieldException(
                f"Limit must be between 1 and {settings.ASSOCIATION_PAGE_SIZE_MAX}", field="limit",
            )
        order = (params.sortOrder or "desc").lower()
        if order not in ("asc", "desc"):
            raise InvalidFieldException('Sort order must be "asc" or "desc"', field="sortOrder")
        sort_key = params.sortBy or self.default_sort
        if sort_key not in self.sort_paths:
            raise InvalidFieldException(
                f"Cannot sort by '{sort_key}'. Allowed: {', '.join(self.sort_paths)}", field="sortBy",
            )
        if params.groupId and not self.strategy.supports_groups:
            raise InvalidFieldException(
                f"{self.strategy.resource_label} associations do not support groups", field="groupId",
            )
        return self.sort_paths[sort_key], order

    def list(self, db: Session, account_id: str, params: AssociationQueryParams) -> dict:
        if not account_id:
            raise InvalidFieldException("Account ID is required", field="accountId")
        sort_column, order = self._validate(params)

        q = db.query(self.model).join(self.resource_relationship)
        if self.strategy.supports_groups:
            q = q.outerjoin(self.model.group)
        q = q.filter(self.model.accountId == account_id)

        if params.resourceId:
            q = q.filter(getattr(self.model, self.strategy.resource_column) == params.resourceId)
        if params.associationType:
            q = q.filter(self.model.associationType == params.associationType)
        if params.isActive is not None:
            q = q.filter(self.model.isActive.is_(params.isActive))
        if params.groupId:
            q = q.filter(self.model.groupId == params.groupId)
        if params.search:
            kw = f"%{params.search}%"
            q = q.filter(or_(*[c.ilike(kw) for c in self.search_columns]))

        total = q.count()
        ordering = sort_column.asc() if order == "asc" else sort_column.desc()
        items = (
            q.order_by(ordering, self.model.id.asc())
             .offset((params.page - 1) * params.limit)
             .limit(params.limit)
             .all()
        )
        return {
            "data":       [self.strategy.serialize(a) for a in items],
            "total":      total,
            "page":       params.page,
            "limit":      params.limit,
            "totalPages": math.ceil(total / params.limit),
        }


driver_association_query = AssociationQueryService(
    HistoryPreservingStrategy(),
    DriverAccountAssociation.driver,
    search_columns=[Driver.fullName, Driver.cpf, Driver.cnhNumber],
    sort_paths={
        "startDate":        DriverAccountAssociation.startDate,
        "endDate":          DriverAccountAssociation.endDate,
        "createdAt":        DriverAccountAssociation.createdAt,
        "updatedAt":        DriverAccountAssociation.updatedAt,
        "associationType":  DriverAccountAssociation.associationType,
        "isActive":         DriverAccountAssociation.isActive,
        "driver.fullName":  Driver.fullName,
        "driver.cpf":       Driver.cpf,
        "driver.cnhNumber": Driver.cnhNumber,
    },
    default_sort="startDate",
)

vehicle_association_query = AssociationQueryService(
    SingleRowStrategy(),
    VehicleAccountAssociation.vehicle,
    search_columns=[Vehicle.plate, Vehicle.brand, Vehicle.model],
    sort_paths={
        "createdAt":       VehicleAccountAssociation.createdAt,
        "updatedAt":       VehicleAccountAssociation.updatedAt,
        "startDate":       VehicleAccountAssociation.startDate,
        "associationType": VehicleAccountAssociation.associationType,
        "isActive":        VehicleAccountAssociation.isActive,
        "vehicle.plate":   Vehicle.plate,
        "vehicle.brand":   Vehicle.brand,
        "vehicle.model":   Vehicle.model,
        "vehicle.year":    Vehicle.year,
        "group.name":      VehicleGroup.name,
    },
    default_sort="createdAt",
)
