"""
Import engine services.

Every function takes the EntityCatalog as its first argument; only
ImportSession keeps state.
"""

from services.entity_catalog import (
    build_default_catalog,
    get_default_catalog,
    load_catalog,
)
from services.association_service import (
    get_associable_entities,
    get_disabled_tooltip,
    toggle_entity_type,
    resolve_selection,
)
from services.auto_mapper import auto_map_columns
from services.mapping_options import (
    get_import_as_options,
    get_property_options,
    get_association_property_options,
    change_import_as,
    select_property,
    get_sample_values,
    filter_headers,
)
from services.mapping_validator import (
    get_unmapped_required_fields,
    validate_mappings,
    get_mapping_stats,
)
from services.row_transformer import (
    transform_row_with_mappings,
    transform_rows,
    compile_mappings,
    RowTransformStream,
    summarize_warnings,
)
from services.import_session_service import ImportSession, create_import_session

__all__ = [
    # Catalog
    "build_default_catalog",
    "get_default_catalog",
    "load_catalog",

    # Type selection
    "get_associable_entities",
    "get_disabled_tooltip",
    "toggle_entity_type",
    "resolve_selection",

    # Mapping
    "auto_map_columns",
    "get_import_as_options",
    "get_property_options",
    "get_association_property_options",
    "change_import_as",
    "select_property",
    "get_sample_values",
    "filter_headers",
    "get_unmapped_required_fields",
    "validate_mappings",
    "get_mapping_stats",

    # Transform
    "transform_row_with_mappings",
    "transform_rows",
    "compile_mappings",
    "RowTransformStream",
    "summarize_warnings",

    # Session
    "ImportSession",
    "create_import_session",
]
