"""
Column mapping schemas.

A mapping entry says what one uploaded column is imported as:
nothing (skip), a property of a selected entity type, or an
association lookup against an existing record of another type.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from models.base import FrozenSchema


class SkipMapping(FrozenSchema):
    """Column is not imported."""
    kind: Literal["skip"] = "skip"

    @property
    def is_complete(self) -> bool:
        return False


class PropertyMapping(FrozenSchema):
    """Column supplies a value for entity_type's field."""
    kind: Literal["property"] = "property"
    entity_type: str
    field: Optional[str] = None  # None until the user picks a property

    @property
    def is_complete(self) -> bool:
        return self.field is not None


class AssociationMapping(FrozenSchema):
    """Column locates an existing target_entity_type record by field."""
    kind: Literal["association"] = "association"
    target_entity_type: Optional[str] = None
    field: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.target_entity_type is not None and self.field is not None


ColumnMapping = Annotated[
    Union[SkipMapping, PropertyMapping, AssociationMapping],
    Field(discriminator="kind"),
]

# header -> mapping entry; exactly one entry per header
ColumnMappings = dict[str, ColumnMapping]

SKIP = SkipMapping()


# ===================
# DROPDOWN OPTIONS
# ===================

class ImportAsOption(FrozenSchema):
    """One choice of the "Import As" dropdown."""
    value: str
    label: str
    entity_type: Optional[str] = None
    is_association: bool = False
    is_skip: bool = False


class PropertyOption(FrozenSchema):
    """One property of a selected entity type."""
    value: str
    label: str
    field: str


class AssociationPropertyOption(FrozenSchema):
    """One unique identifier of an association target."""
    value: str
    label: str
    entity_type: str
    field: str


class HeaderStatusFilter(str, Enum):
    """Header list filter on the mapping step."""
    ALL = "all"
    MAPPED = "mapped"
    UNMAPPED = "unmapped"
    ASSOCIATIONS = "associations"


# ===================
# VALIDATION
# ===================

class UnmappedField(FrozenSchema):
    """Required primary-type field with no column mapped to it."""
    field: str
    label: str


class MappingStats(FrozenSchema):
    """
    Per-header classification counts.

    Each header lands in exactly one of property_count, association_count
    and skipped_count. inert_property_count is the part of skipped_count
    mapped to the secondary type's own properties.
    """
    property_count: int = 0
    association_count: int = 0
    skipped_count: int = 0
    inert_property_count: int = 0
    total_count: int = 0
    required_missing: int = 0
    is_valid: bool = False

    @property
    def mapped_count(self) -> int:
        return self.property_count + self.association_count


class MappingValidation(FrozenSchema):
    """Result of validate_mappings; gates progression past mapping."""
    is_valid: bool
    errors: tuple[UnmappedField, ...] = ()
    messages: tuple[str, ...] = ()
