"""
Pydantic models and result dataclasses.
"""

from models.base import BaseSchema, FrozenSchema
from models.catalog import (
    FieldType,
    FieldDefinition,
    EntityTypeDefinition,
    EntityCatalog,
    RECORD_ID_KEY,
    RECORD_ID_FIELD,
)
from models.mapping import (
    SkipMapping,
    PropertyMapping,
    AssociationMapping,
    ColumnMapping,
    ColumnMappings,
    SKIP,
    ImportAsOption,
    PropertyOption,
    AssociationPropertyOption,
    HeaderStatusFilter,
    UnmappedField,
    MappingStats,
    MappingValidation,
)
from models.transform import (
    AssociationLookup,
    CoercionWarning,
    TransformedRow,
    TransformBatch,
    TransformResult,
    WarningSummary,
)
from models.import_session import (
    ImportMode,
    OverwriteSetting,
    ImportOptions,
    ImportPayload,
)

__all__ = [
    # Base
    "BaseSchema",
    "FrozenSchema",

    # Catalog
    "FieldType",
    "FieldDefinition",
    "EntityTypeDefinition",
    "EntityCatalog",
    "RECORD_ID_KEY",
    "RECORD_ID_FIELD",

    # Mapping
    "SkipMapping",
    "PropertyMapping",
    "AssociationMapping",
    "ColumnMapping",
    "ColumnMappings",
    "SKIP",
    "ImportAsOption",
    "PropertyOption",
    "AssociationPropertyOption",
    "HeaderStatusFilter",
    "UnmappedField",
    "MappingStats",
    "MappingValidation",

    # Transform
    "AssociationLookup",
    "CoercionWarning",
    "TransformedRow",
    "TransformBatch",
    "TransformResult",
    "WarningSummary",

    # Import session
    "ImportMode",
    "OverwriteSetting",
    "ImportOptions",
    "ImportPayload",
]
