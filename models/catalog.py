"""
Entity catalog schemas.

An EntityCatalog is built once and passed explicitly to every resolver,
mapper, validator and transformer call. Nothing in it is mutable.
"""

from enum import Enum
from typing import Iterable, Iterator, Optional

from pydantic import Field, model_validator

from models.base import FrozenSchema
from exceptions import CatalogError, UnknownEntityTypeError


class FieldType(str, Enum):
    """Declared value type of an importable field."""
    STRING = "string"
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ENUM = "enum"


# Reserved identifier: the record id of an existing record. Usable for
# association lookups without being an importable property.
RECORD_ID_KEY = "id"


class FieldDefinition(FrozenSchema):
    """One importable field of an entity type."""
    key: str = Field(min_length=1)
    label: str = Field(min_length=1)
    type: FieldType = FieldType.STRING
    aliases: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Alternate header spellings matched after key and label"
    )


RECORD_ID_FIELD = FieldDefinition(key=RECORD_ID_KEY, label="Record ID")


class EntityTypeDefinition(FrozenSchema):
    """
    Definition of one importable entity type.

    required_fields must be populated when a record is created.
    unique_identifier_fields can locate an existing record for an
    association; "id" is always allowed there even if not a field.
    associable_with lists types this one may be imported together with.
    """
    id: str = Field(min_length=1)
    label: str
    label_singular: str
    label_plural: Optional[str] = None
    description: str = ""
    fields: tuple[FieldDefinition, ...]
    required_fields: tuple[str, ...] = ()
    unique_identifier_fields: tuple[str, ...] = ()
    associable_with: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _default_plural_label(cls, data):
        if isinstance(data, dict) and not data.get("label_plural"):
            data = {**data, "label_plural": data.get("label")}
        return data

    @model_validator(mode="after")
    def _check_field_references(self) -> "EntityTypeDefinition":
        keys = [f.key for f in self.fields]
        if len(keys) != len(set(keys)):
            raise ValueError(f"{self.id}: duplicate field keys")

        unknown_required = [k for k in self.required_fields if k not in keys]
        if unknown_required:
            raise ValueError(f"{self.id}: required fields not defined: {unknown_required}")

        unknown_ids = [
            k for k in self.unique_identifier_fields
            if k not in keys and k != RECORD_ID_KEY
        ]
        if unknown_ids:
            raise ValueError(f"{self.id}: unique identifier fields not defined: {unknown_ids}")

        return self

    def get_field(self, key: str) -> Optional[FieldDefinition]:
        """Return the field with this key, or None."""
        for f in self.fields:
            if f.key == key:
                return f
        return None

    def get_identifier_field(self, key: str) -> Optional[FieldDefinition]:
        """Return the unique identifier field with this key, or None."""
        if key not in self.unique_identifier_fields:
            return None
        return self.get_field(key) or (RECORD_ID_FIELD if key == RECORD_ID_KEY else None)

    @property
    def identifier_fields(self) -> list[FieldDefinition]:
        """Unique identifier fields in declaration order."""
        return [self.get_identifier_field(k) for k in self.unique_identifier_fields]


class EntityCatalog:
    """
    Immutable registry of entity type definitions.

    The compatibility relation is the union of both directions of every
    associable_with list, so pairing never depends on which side declared it.
    """

    def __init__(self, definitions: Iterable[EntityTypeDefinition]):
        definitions = tuple(definitions)
        by_id: dict[str, EntityTypeDefinition] = {}
        for definition in definitions:
            if definition.id in by_id:
                raise CatalogError(
                    f"Duplicate entity type: {definition.id}",
                    details={"entity_type": definition.id}
                )
            by_id[definition.id] = definition

        compatible: dict[str, set[str]] = {type_id: set() for type_id in by_id}
        for definition in definitions:
            for other in definition.associable_with:
                if other not in by_id:
                    raise CatalogError(
                        f"{definition.id} is associable with unknown type {other}",
                        details={"entity_type": definition.id, "associable_with": other}
                    )
                if other == definition.id:
                    continue
                compatible[definition.id].add(other)
                compatible[other].add(definition.id)

        self._definitions = definitions
        self._by_id = by_id
        self._compatible = {k: frozenset(v) for k, v in compatible.items()}

    def __iter__(self) -> Iterator[EntityTypeDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self._by_id

    def __repr__(self) -> str:
        return f"EntityCatalog({list(self._by_id)})"

    @property
    def ids(self) -> tuple[str, ...]:
        """Entity type ids in declaration order."""
        return tuple(d.id for d in self._definitions)

    def get(self, entity_type: str) -> EntityTypeDefinition:
        """
        Get an entity type definition.

        Raises:
            UnknownEntityTypeError: If the id is not in the catalog
        """
        try:
            return self._by_id[entity_type]
        except KeyError:
            raise UnknownEntityTypeError(entity_type) from None

    def associable_with(self, entity_type: str) -> frozenset[str]:
        """Types that may be imported together with entity_type (symmetric)."""
        self.get(entity_type)
        return self._compatible[entity_type]

    def are_compatible(self, first: str, second: str) -> bool:
        """Check whether two types may share one import."""
        return second in self.associable_with(first)

    def ordered(self, entity_types: Iterable[str]) -> list[str]:
        """Sort ids into catalog declaration order."""
        wanted = set(entity_types)
        return [type_id for type_id in self.ids if type_id in wanted]
