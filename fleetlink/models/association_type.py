import enum


class AssociationType(str, enum.Enum):
    FLEET       = "FLEET"         # exclusive: one active per resource, system-wide
    AGGREGATED  = "AGGREGATED"
    THIRD_PARTY = "THIRD_PARTY"
    OUTSOURCED  = "OUTSOURCED"
    LEASED      = "LEASED"


EXCLUSIVE_ASSOCIATION_TYPE = AssociationType.FLEET


def is_exclusive(association_type: AssociationType | str | None) -> bool:
    return association_type is not None and AssociationType(association_type) == EXCLUSIVE_ASSOCIATION_TYPE
