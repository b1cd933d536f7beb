"""
Mapping validator and statistics.

Only the primary type's required fields are checked: no secondary-type
record is ever created from the file. Coverage is a property of the
mapping, not of individual rows; empty required values in a row are for
the import-execution service to report.
"""

from typing import Sequence

import structlog

from models.catalog import EntityCatalog
from models.mapping import (
    ColumnMappings,
    MappingStats,
    MappingValidation,
    UnmappedField,
)
from services.association_service import resolve_selection

logger = structlog.get_logger(__name__)

NO_SELECTION_MESSAGE = "Select at least one object type to import"


def get_unmapped_required_fields(
    catalog: EntityCatalog,
    mappings: ColumnMappings,
    selected_types: Sequence[str],
) -> list[UnmappedField]:
    """
    Required primary-type fields that no column is mapped to.

    A field is covered iff some entry is Property(primary, field).

    Returns:
        Uncovered fields in catalog declaration order
        (empty when nothing is selected)
    """
    definitions = resolve_selection(catalog, selected_types)
    if not definitions:
        return []

    primary = definitions[0]
    covered = {
        m.field
        for m in mappings.values()
        if m.kind == "property" and m.entity_type == primary.id and m.field
    }

    return [
        UnmappedField(field=f.key, label=f.label)
        for f in primary.fields
        if f.key in primary.required_fields and f.key not in covered
    ]


def validate_mappings(
    catalog: EntityCatalog,
    mappings: ColumnMappings,
    selected_types: Sequence[str],
) -> MappingValidation:
    """
    Gate progression past the mapping step.

    Valid iff a primary type is selected and all of its required fields
    are covered. An invalid selection (unknown ids, more than two types,
    incompatible pair) raises instead of returning a result.
    """
    if not selected_types:
        return MappingValidation(is_valid=False, messages=(NO_SELECTION_MESSAGE,))

    unmapped = get_unmapped_required_fields(catalog, mappings, selected_types)
    messages = tuple(f'Required field "{f.label}" is not mapped' for f in unmapped)

    if unmapped:
        logger.debug(
            "mapping_incomplete",
            primary_type=selected_types[0],
            missing_fields=[f.field for f in unmapped]
        )

    return MappingValidation(
        is_valid=len(unmapped) == 0,
        errors=tuple(unmapped),
        messages=messages,
    )


def get_mapping_stats(
    catalog: EntityCatalog,
    mappings: ColumnMappings,
    selected_types: Sequence[str],
) -> MappingStats:
    """
    Classify every header exactly once.

    - Property(primary, field) -> property
    - Association(target, field) -> association
    - Skip, incomplete entries, and secondary-type properties -> skipped;
      secondary-type properties are also tallied as inert
    """
    validation = validate_mappings(catalog, mappings, selected_types)
    primary_type = selected_types[0] if selected_types else None

    property_count = 0
    association_count = 0
    skipped_count = 0
    inert_property_count = 0

    for mapping in mappings.values():
        if not mapping.is_complete:
            skipped_count += 1
        elif mapping.kind == "association":
            association_count += 1
        elif mapping.entity_type == primary_type:
            property_count += 1
        else:
            skipped_count += 1
            inert_property_count += 1

    return MappingStats(
        property_count=property_count,
        association_count=association_count,
        skipped_count=skipped_count,
        inert_property_count=inert_property_count,
        total_count=len(mappings),
        required_missing=len(validation.errors),
        is_valid=validation.is_valid,
    )
