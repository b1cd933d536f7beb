"""
Option builders and mapping edits for the mapping step.

Options are re-derived from the catalog and the current selection on every
call. Edits return a new mappings dict; the caller's dict is never modified.
"""

from typing import Iterable, Optional, Sequence, Union

from exceptions import InvalidMappingError
from models.catalog import EntityCatalog
from models.mapping import (
    SKIP,
    AssociationMapping,
    AssociationPropertyOption,
    ColumnMapping,
    ColumnMappings,
    HeaderStatusFilter,
    ImportAsOption,
    PropertyMapping,
    PropertyOption,
)

SKIP_OPTION_VALUE = "skip"
ASSOCIATION_OPTION_VALUE = "association"


# ===================
# OPTION BUILDERS
# ===================

def get_import_as_options(
    catalog: EntityCatalog,
    selected_types: Sequence[str],
    primary_type: Optional[str] = None,
) -> list[ImportAsOption]:
    """
    Build the "Import As" dropdown.

    Order: "<Type> properties" per selected type, "Association" when the
    primary type has at least one association target, "Don't import column".
    """
    options: list[ImportAsOption] = []

    for type_id in selected_types:
        entity = catalog.get(type_id)
        options.append(ImportAsOption(
            value=f"{type_id}_properties",
            label=f"{entity.label_singular} properties",
            entity_type=type_id,
        ))

    primary_type = primary_type or (selected_types[0] if selected_types else None)
    if primary_type and catalog.associable_with(primary_type):
        options.append(ImportAsOption(
            value=ASSOCIATION_OPTION_VALUE,
            label="Association",
            is_association=True,
        ))

    options.append(ImportAsOption(
        value=SKIP_OPTION_VALUE,
        label="Don't import column",
        is_skip=True,
    ))

    return options


def get_property_options(catalog: EntityCatalog, entity_type: str) -> list[PropertyOption]:
    """One option per field of entity_type, in declaration order."""
    entity = catalog.get(entity_type)
    return [
        PropertyOption(value=f.key, label=f.label, field=f.key)
        for f in entity.fields
    ]


def get_association_property_options(
    catalog: EntityCatalog,
    primary_type: str,
) -> list[AssociationPropertyOption]:
    """
    Unique identifiers of every type the primary type can associate to.

    Labels read "<field label> (<target singular label>)",
    e.g. "Email (Owner)".
    """
    options: list[AssociationPropertyOption] = []

    for target_id in catalog.ordered(catalog.associable_with(primary_type)):
        target = catalog.get(target_id)
        for identifier in target.identifier_fields:
            options.append(AssociationPropertyOption(
                value=f"{target_id}.{identifier.key}",
                label=f"{identifier.label} ({target.label_singular})",
                entity_type=target_id,
                field=identifier.key,
            ))

    return options


# ===================
# MAPPING EDITS
# ===================

def change_import_as(
    mappings: ColumnMappings,
    header: str,
    option: ImportAsOption,
) -> ColumnMappings:
    """
    Change what a column is imported as.

    - Skip clears everything
    - Association clears target and field; the user picks one next
    - "<Type> properties" keeps the field only if the column already
      mapped to that type's properties
    """
    current = mappings.get(header, SKIP)

    if option.is_skip:
        new_mapping = SKIP
    elif option.is_association:
        new_mapping = AssociationMapping()
    elif option.entity_type:
        if current.kind == "property" and current.entity_type == option.entity_type:
            new_mapping = current
        else:
            new_mapping = PropertyMapping(entity_type=option.entity_type)
    else:
        raise InvalidMappingError(header, f"Import-as option {option.value!r} has no target")

    return {**mappings, header: new_mapping}


def select_property(
    catalog: EntityCatalog,
    mappings: ColumnMappings,
    header: str,
    option: Union[PropertyOption, AssociationPropertyOption],
) -> ColumnMappings:
    """
    Pick the property (or association identifier) for a column.

    Raises:
        InvalidMappingError: If the option does not fit the column's
            current import-as choice or names an unknown field
    """
    current = mappings.get(header, SKIP)

    if isinstance(option, AssociationPropertyOption):
        if current.kind != "association":
            raise InvalidMappingError(header, "Column is not imported as an association")
        target = catalog.get(option.entity_type)
        if target.get_identifier_field(option.field) is None:
            raise InvalidMappingError(
                header,
                f"{option.field} is not a unique identifier of {target.id}"
            )
        new_mapping = AssociationMapping(
            target_entity_type=option.entity_type,
            field=option.field,
        )
    else:
        if current.kind != "property":
            raise InvalidMappingError(header, "Column is not imported as a property")
        entity = catalog.get(current.entity_type)
        if entity.get_field(option.field) is None:
            raise InvalidMappingError(header, f"{entity.id} has no field {option.field}")
        new_mapping = PropertyMapping(entity_type=current.entity_type, field=option.field)

    return {**mappings, header: new_mapping}


# ===================
# MAPPING STEP HELPERS
# ===================

def get_sample_values(
    sample_rows: Iterable[dict],
    header: str,
    limit: int = 3,
) -> list:
    """First non-empty values of a column across the sample rows."""
    values = []
    for row in sample_rows:
        value = row.get(header)
        if value is None or value == "":
            continue
        values.append(value)
        if len(values) >= limit:
            break
    return values


def filter_headers(
    headers: Iterable[str],
    mappings: ColumnMappings,
    status: HeaderStatusFilter = HeaderStatusFilter.ALL,
    query: Optional[str] = None,
) -> list[str]:
    """
    Filter the header list by search text and mapping status.

    The query matches the header text, the mapped property and the
    import-as type. Mapped means a complete non-skip entry; unmapped is
    everything else (missing entry, skip, or no property picked yet).
    """
    result = list(headers)

    if query and query.strip():
        needle = query.strip().lower()
        result = [h for h in result if _matches_query(h, mappings.get(h, SKIP), needle)]

    if status == HeaderStatusFilter.MAPPED:
        result = [h for h in result if mappings.get(h, SKIP).is_complete]
    elif status == HeaderStatusFilter.UNMAPPED:
        result = [h for h in result if not mappings.get(h, SKIP).is_complete]
    elif status == HeaderStatusFilter.ASSOCIATIONS:
        result = [h for h in result if mappings.get(h, SKIP).kind == "association"]

    return result


def _matches_query(header: str, mapping: ColumnMapping, needle: str) -> bool:
    searchable = [
        header,
        getattr(mapping, "field", None),
        getattr(mapping, "entity_type", None),
        getattr(mapping, "target_entity_type", None),
    ]
    return any(needle in text.lower() for text in searchable if text)
