"""
Association compatibility resolver.

Decides which entity types may be selected together in one import.
The first selected type is the primary type (records are created from
the file); the optional second is only ever associated to.
"""

from typing import Optional, Sequence

import structlog

from exceptions import CompatibilityError, TooManyEntityTypesError
from models.catalog import EntityCatalog, EntityTypeDefinition

logger = structlog.get_logger(__name__)

MAX_SELECTED_TYPES = 2

MAX_TYPES_TOOLTIP = "Maximum of 2 object types per import"


def get_associable_entities(
    catalog: EntityCatalog,
    selected_types: Sequence[str],
) -> frozenset[str]:
    """
    Get entity types that could be added to the current selection.

    - Nothing selected: every type
    - One type selected: its compatible types (never itself)
    - Two types selected: nothing; deselecting is still allowed

    Raises:
        UnknownEntityTypeError: If a selected id is not in the catalog
    """
    if not selected_types:
        return frozenset(catalog.ids)

    for type_id in selected_types:
        catalog.get(type_id)

    if len(selected_types) >= MAX_SELECTED_TYPES:
        return frozenset()

    primary = selected_types[0]
    return catalog.associable_with(primary) - {primary}


def get_disabled_tooltip(
    catalog: EntityCatalog,
    entity_id: str,
    selected_types: Sequence[str],
) -> Optional[str]:
    """
    Explain why an entity type cannot be selected.

    Returns:
        None if the type is selectable or already selected,
        otherwise a human-readable reason
    """
    entity = catalog.get(entity_id)

    if not selected_types or entity_id in selected_types:
        return None

    if len(selected_types) >= MAX_SELECTED_TYPES:
        return MAX_TYPES_TOOLTIP

    if entity_id in get_associable_entities(catalog, selected_types):
        return None

    primary = catalog.get(selected_types[0])
    return f"{entity.label} cannot be imported together with {primary.label}"


def toggle_entity_type(
    catalog: EntityCatalog,
    selected_types: Sequence[str],
    entity_id: str,
) -> list[str]:
    """
    Select or deselect one entity type.

    Deselecting is always allowed; if the primary is removed the remaining
    type becomes primary. Selecting a type that is not associable with the
    current selection returns the selection unchanged.

    Returns:
        New selection list (input is not modified)
    """
    catalog.get(entity_id)

    if entity_id in selected_types:
        return [t for t in selected_types if t != entity_id]

    if entity_id not in get_associable_entities(catalog, selected_types):
        logger.debug(
            "entity_type_toggle_ignored",
            entity_type=entity_id,
            selected=list(selected_types)
        )
        return list(selected_types)

    return [*selected_types, entity_id]


def resolve_selection(
    catalog: EntityCatalog,
    selected_types: Sequence[str],
) -> list[EntityTypeDefinition]:
    """
    Validate a selection and return its definitions, primary first.

    Raises:
        UnknownEntityTypeError: If an id is not in the catalog
        TooManyEntityTypesError: If more than two types are selected
        CompatibilityError: If a pair is not mutually associable
    """
    definitions = [catalog.get(type_id) for type_id in selected_types]

    if len(definitions) > MAX_SELECTED_TYPES:
        raise TooManyEntityTypesError(list(selected_types), MAX_SELECTED_TYPES)

    if len(definitions) == MAX_SELECTED_TYPES:
        primary, secondary = definitions
        if not catalog.are_compatible(primary.id, secondary.id):
            raise CompatibilityError(primary.id, secondary.id)

    return definitions
