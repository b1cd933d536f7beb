"""
Column auto-mapper.

Proposes a ColumnMapping for every uploaded header from the selected
entity types. Called when a file is parsed and again, replacing the whole
mapping, whenever the selection changes.

Match order for one header (first hit wins):
    1. primary field key
    2. primary field label
    3. primary field alias
    4. association to the secondary type: header names the secondary type
       (id or singular label) and the rest names one of its unique identifiers,
       e.g. "Owner Email" -> Association(owners, email)
    5. secondary field key / label / alias (inert for record creation)
    6. skip

Within one step, fields are tried in catalog declaration order, so a header
matching two fields equally maps to the first declared one.
"""

from typing import Iterable, Optional, Sequence

import structlog

from models.catalog import EntityCatalog, EntityTypeDefinition, FieldDefinition
from models.mapping import (
    SKIP,
    AssociationMapping,
    ColumnMapping,
    ColumnMappings,
    PropertyMapping,
)
from services.association_service import resolve_selection
from utils.text_utils import normalize_header, remove_token_run

logger = structlog.get_logger(__name__)


def auto_map_columns(
    catalog: EntityCatalog,
    headers: Iterable[str],
    selected_types: Sequence[str],
) -> ColumnMappings:
    """
    Auto-map headers to fields or association lookups.

    Pure: the result depends only on the arguments and never on a previous
    mapping. With nothing selected, every header maps to skip.

    Args:
        catalog: Entity catalog
        headers: Uploaded headers, in file order
        selected_types: Primary type first, optional secondary second

    Returns:
        One mapping entry per header, in header order

    Raises:
        UnknownEntityTypeError, TooManyEntityTypesError, CompatibilityError:
            If the selection itself is invalid
    """
    definitions = resolve_selection(catalog, selected_types)
    headers = list(headers)

    if not definitions:
        return {header: SKIP for header in headers}

    primary = definitions[0]
    secondary = definitions[1] if len(definitions) > 1 else None

    mappings: ColumnMappings = {}
    for header in headers:
        mappings[header] = map_header(header, primary, secondary)

    property_count = sum(1 for m in mappings.values() if m.kind == "property")
    association_count = sum(1 for m in mappings.values() if m.kind == "association")
    logger.info(
        "columns_auto_mapped",
        selected_types=list(selected_types),
        header_count=len(headers),
        property_count=property_count,
        association_count=association_count,
        skipped_count=len(headers) - property_count - association_count,
    )

    return mappings


def map_header(
    header: str,
    primary: EntityTypeDefinition,
    secondary: Optional[EntityTypeDefinition] = None,
) -> ColumnMapping:
    """Map a single header; see module docstring for match order."""
    normalized = normalize_header(header)
    if not normalized:
        return SKIP

    field = match_field(normalized, primary.fields)
    if field:
        return PropertyMapping(entity_type=primary.id, field=field.key)

    if secondary is None:
        return SKIP

    identifier = match_association(normalized, secondary)
    if identifier:
        return AssociationMapping(target_entity_type=secondary.id, field=identifier.key)

    field = match_field(normalized, secondary.fields)
    if field:
        return PropertyMapping(entity_type=secondary.id, field=field.key)

    return SKIP


def match_field(
    normalized: str,
    fields: Sequence[FieldDefinition],
) -> Optional[FieldDefinition]:
    """
    Find the field a normalized header names.

    All keys are tried before any label, and all labels before any alias.
    """
    for f in fields:
        if normalize_header(f.key) == normalized:
            return f

    for f in fields:
        if normalize_header(f.label) == normalized:
            return f

    for f in fields:
        if any(normalize_header(alias) == normalized for alias in f.aliases):
            return f

    return None


def match_association(
    normalized: str,
    target: EntityTypeDefinition,
) -> Optional[FieldDefinition]:
    """
    Match "<target type> <identifier>" headers against a target type.

    The target is recognised by its normalized id or singular label
    (longest first, so "owners_email" is read as owners + email); the rest
    of the header must equal a unique identifier's key or label.
    """
    names = {normalize_header(target.id), normalize_header(target.label_singular)}
    identifiers = target.identifier_fields

    for name in sorted(names, key=lambda n: (-len(n), n)):
        remainder = remove_token_run(normalized, name)
        if not remainder:
            continue

        for f in identifiers:
            if normalize_header(f.key) == remainder:
                return f
        for f in identifiers:
            if normalize_header(f.label) == remainder:
                return f

    return None
