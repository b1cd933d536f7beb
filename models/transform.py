"""
Row transformer output.

Plain dataclasses: built once per row, never mutated, serialized with
to_dict() for the import-execution payload.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class AssociationLookup:
    """Locate an existing record of target_entity_type by match_field."""
    target_entity_type: str
    match_field: str
    match_value: str
    source_header: str

    def to_dict(self) -> dict:
        return {
            "target_entity_type": self.target_entity_type,
            "match_field": self.match_field,
            "match_value": self.match_value,
            "source_header": self.source_header,
        }


@dataclass(frozen=True)
class CoercionWarning:
    """A cell that could not be converted to its field's declared type."""
    row_index: int
    header: str
    field: str
    field_type: str
    value: Any
    message: str

    def to_dict(self) -> dict:
        return {
            "row_index": self.row_index,
            "header": self.header,
            "field": self.field,
            "field_type": self.field_type,
            "value": self.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class TransformedRow:
    """Persistence-ready record plus association lookups for one raw row."""
    row_index: int
    record: dict[str, Any]
    associations: tuple[AssociationLookup, ...] = ()
    warnings: tuple[CoercionWarning, ...] = ()

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def to_dict(self) -> dict:
        """Payload shape consumed by the import-execution service."""
        return {
            "record": dict(self.record),
            "associations": [a.to_dict() for a in self.associations],
        }


@dataclass(frozen=True)
class TransformBatch:
    """Consecutive rows transformed between two yield points."""
    start_index: int
    rows: tuple[TransformedRow, ...]

    @property
    def end_index(self) -> int:
        """Index one past the last row of the batch."""
        return self.start_index + len(self.rows)

    @property
    def warnings(self) -> list[CoercionWarning]:
        return [w for row in self.rows for w in row.warnings]


@dataclass
class TransformResult:
    """Outcome of transforming a dataset, possibly cancelled part-way."""
    rows: list[TransformedRow] = field(default_factory=list)
    total_count: int = 0
    cancelled: bool = False

    @property
    def processed_count(self) -> int:
        return len(self.rows)

    @property
    def remaining_count(self) -> int:
        """Rows not transformed because of cancellation."""
        return self.total_count - self.processed_count

    @property
    def warnings(self) -> list[CoercionWarning]:
        return [w for row in self.rows for w in row.warnings]

    def to_dict(self) -> dict:
        return {
            "data": [row.to_dict() for row in self.rows],
            "processed_count": self.processed_count,
            "remaining_count": self.remaining_count,
            "cancelled": self.cancelled,
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(frozen=True)
class WarningSummary:
    """Coercion warnings of one column aggregated across rows."""
    header: str
    field: str
    field_type: str
    row_count: int
    example_value: Optional[Any] = None

    @property
    def message(self) -> str:
        rows = "row" if self.row_count == 1 else "rows"
        return f"{self.row_count} {rows} had an unparsable {self.field_type} in `{self.header}`"
