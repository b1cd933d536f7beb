"""
Row transformer.

Turns one raw row into {record, associations} using a finalized mapping.
Rows are independent of each other, so a dataset is processed as a lazy
stream of bounded batches with a yield point between batches; the caller
can report progress and cancel there.

Coercion by field type:
    number   -> float                     (invalid -> omitted + warning)
    date     -> "YYYY-MM-DD"              (invalid -> omitted + warning)
    boolean  -> true/false/1/0/yes/no     (invalid -> omitted + warning;
                                           empty -> False)
    string, text, enum -> trimmed string
Empty cells are omitted from the record, except booleans.
"""

import asyncio
import calendar
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Sequence

import pandas as pd
import structlog

from config.settings import get_settings
from exceptions import InvalidMappingError
from models.catalog import EntityCatalog, FieldDefinition, FieldType
from models.mapping import ColumnMappings
from models.transform import (
    AssociationLookup,
    CoercionWarning,
    TransformBatch,
    TransformedRow,
    TransformResult,
    WarningSummary,
)

logger = structlog.get_logger(__name__)

TRUE_VALUES = frozenset({"true", "1", "yes"})
FALSE_VALUES = frozenset({"false", "0", "no"})

# Month-first before day-first: "03/05/2024" is March 5
DATE_FORMATS = ["%Y-%m-%d", "%m/%d/%Y", "%d/%m/%Y", "%Y/%m/%d"]

MONTH_NAMES = frozenset(
    name.lower() for name in (*calendar.month_name[1:], *calendar.month_abbr[1:])
)
TIME_PATTERN = re.compile(r"\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?")
# Time separators, meridiems, zones and ordinal suffixes
DATE_FILLER_WORDS = frozenset({"t", "z", "am", "pm", "utc", "gmt", "st", "nd", "rd", "th"})

CancelCheck = Callable[[], bool]
ProgressCallback = Callable[[int, int], None]


# ===================
# COERCION
# ===================

def is_empty_value(value: Any) -> bool:
    """True for None, NaN and blank strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def coerce_number(value: Any) -> float:
    """Parse a finite float. Raises ValueError."""
    if isinstance(value, bool):
        raise ValueError("expected a number")
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        # float() accepts "1_000"; spreadsheet text never means that
        if "_" in text:
            raise ValueError("expected a number")
        number = float(text)
    if not math.isfinite(number):
        raise ValueError("expected a finite number")
    return number


def coerce_date(value: Any) -> str:
    """Parse a calendar date to ISO-8601 "YYYY-MM-DD". Raises ValueError."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    value_str = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value_str, fmt).date().isoformat()
        except ValueError:
            continue

    # Try pandas parsing as fallback, but only for a fully spelled-out
    # date; pandas fills missing parts from the clock or with year 1
    if not _spells_full_date(value_str):
        raise ValueError("expected a date")
    try:
        parsed = pd.to_datetime(value_str)
    except (ValueError, TypeError, OverflowError):
        raise ValueError("expected a date") from None
    if pd.isna(parsed):
        raise ValueError("expected a date")
    return parsed.date().isoformat()


def _spells_full_date(text: str) -> bool:
    """
    True when text names a year, a month and a day.

    Examples:
        "January 5, 2024"  -> True
        "5 Jan 2024 10:30" -> True
        "March 5"          -> False  (no year)
        "today", "10:30"   -> False
    """
    tokens = re.findall(r"[A-Za-z]+|\d+", TIME_PATTERN.sub(" ", text))
    numbers = [t for t in tokens if t.isdigit()]
    years = [n for n in numbers if len(n) == 4]
    small = [n for n in numbers if len(n) <= 2]
    words = [
        t.lower() for t in tokens
        if t.isalpha() and t.lower() not in DATE_FILLER_WORDS
    ]

    if len(years) != 1 or len(numbers) != len(years) + len(small):
        return False
    if any(word not in MONTH_NAMES for word in words):
        return False
    if words:
        return len(words) == 1 and len(small) == 1
    return len(small) == 2


def coerce_boolean(value: Any) -> bool:
    """Accept true/false/1/0/yes/no in any case. Raises ValueError."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError("expected true/false, yes/no or 1/0")


def coerce_value(value: Any, field_type: FieldType) -> Any:
    """
    Convert a non-empty raw cell to its field's declared type.

    Raises:
        ValueError: If the value cannot be converted
    """
    if field_type == FieldType.NUMBER:
        return coerce_number(value)
    if field_type == FieldType.DATE:
        return coerce_date(value)
    if field_type == FieldType.BOOLEAN:
        return coerce_boolean(value)
    return str(value).strip()


# ===================
# MAPPING COMPILATION
# ===================

@dataclass(frozen=True)
class ColumnPlan:
    """One contributing column of a compiled mapping."""
    header: str
    field: FieldDefinition
    target_entity_type: Optional[str] = None  # set for association lookups

    @property
    def is_association(self) -> bool:
        return self.target_entity_type is not None


def compile_mappings(
    catalog: EntityCatalog,
    mappings: ColumnMappings,
    primary_type: str,
) -> tuple[ColumnPlan, ...]:
    """
    Validate a mapping against the primary type and keep the columns
    that contribute to the output.

    Skipped and incomplete entries and secondary-type properties are
    dropped.

    Raises:
        UnknownEntityTypeError: If a mapping names a type not in the catalog
        InvalidMappingError: If a mapping names a type that cannot be
            selected with the primary type, a field that does not exist,
            or an association field that is not a unique identifier
    """
    primary = catalog.get(primary_type)
    compatible = catalog.associable_with(primary_type)
    plans: list[ColumnPlan] = []

    for header, mapping in mappings.items():
        if not mapping.is_complete:
            continue

        if mapping.kind == "property":
            entity = catalog.get(mapping.entity_type)
            if entity.id != primary.id and entity.id not in compatible:
                raise InvalidMappingError(
                    header,
                    f"{entity.id} is not selectable together with {primary.id}"
                )
            field = entity.get_field(mapping.field)
            if field is None:
                raise InvalidMappingError(header, f"{entity.id} has no field {mapping.field}")
            if entity.id == primary.id:
                plans.append(ColumnPlan(header=header, field=field))
            continue

        target = catalog.get(mapping.target_entity_type)
        if target.id not in compatible:
            raise InvalidMappingError(
                header,
                f"{primary.id} cannot be associated to {target.id}"
            )
        identifier = target.get_identifier_field(mapping.field)
        if identifier is None:
            raise InvalidMappingError(
                header,
                f"{mapping.field} is not a unique identifier of {target.id}"
            )
        plans.append(ColumnPlan(header=header, field=identifier, target_entity_type=target.id))

    return tuple(plans)


def apply_plans(
    plans: Sequence[ColumnPlan],
    row: Mapping[str, Any],
    row_index: int = 0,
) -> TransformedRow:
    """Transform one raw row with a compiled mapping."""
    record: dict[str, Any] = {}
    associations: list[AssociationLookup] = []
    warnings: list[CoercionWarning] = []

    for plan in plans:
        value = row.get(plan.header)

        if plan.is_association:
            if is_empty_value(value):
                continue
            associations.append(AssociationLookup(
                target_entity_type=plan.target_entity_type,
                match_field=plan.field.key,
                match_value=str(value).strip(),
                source_header=plan.header,
            ))
            continue

        if is_empty_value(value):
            if plan.field.type == FieldType.BOOLEAN:
                record[plan.field.key] = False
            continue

        try:
            record[plan.field.key] = coerce_value(value, plan.field.type)
        except ValueError as e:
            warnings.append(CoercionWarning(
                row_index=row_index,
                header=plan.header,
                field=plan.field.key,
                field_type=plan.field.type.value,
                value=value,
                message=f"Could not parse {value!r} as {plan.field.type.value}: {e}",
            ))

    return TransformedRow(
        row_index=row_index,
        record=record,
        associations=tuple(associations),
        warnings=tuple(warnings),
    )


def transform_row_with_mappings(
    catalog: EntityCatalog,
    row: Mapping[str, Any],
    mappings: ColumnMappings,
    primary_type: str,
    row_index: int = 0,
) -> TransformedRow:
    """
    Transform one raw row into a record plus association lookups.

    Neither row nor mappings is modified and no I/O happens. For many rows
    use RowTransformStream, which validates the mapping once.

    Raises:
        UnknownEntityTypeError, InvalidMappingError: If the mapping does not
            fit the primary type (always a caller bug, never bad cell data)
    """
    plans = compile_mappings(catalog, mappings, primary_type)
    return apply_plans(plans, row, row_index)


# ===================
# BATCHED STREAM
# ===================

class RowTransformStream:
    """
    Lazy, finite, restartable sequence of transformed rows.

    Iterating twice transforms the rows twice and yields equal results.
    run()/arun() collect the rows batch by batch and honour cancellation
    between batches only, so no row is ever half-transformed.
    """

    def __init__(
        self,
        catalog: EntityCatalog,
        rows: Sequence[Mapping[str, Any]],
        mappings: ColumnMappings,
        primary_type: str,
        batch_size: Optional[int] = None,
    ):
        self.primary_type = primary_type
        self.batch_size = batch_size or get_settings().transform_batch_size
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._rows = rows
        self._plans = compile_mappings(catalog, mappings, primary_type)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[TransformedRow]:
        for index, row in enumerate(self._rows):
            yield apply_plans(self._plans, row, index)

    def batch_at(self, start: int) -> TransformBatch:
        """Transform the batch of rows beginning at start."""
        end = min(start + self.batch_size, len(self._rows))
        return TransformBatch(
            start_index=start,
            rows=tuple(
                apply_plans(self._plans, self._rows[i], i)
                for i in range(start, end)
            ),
        )

    def batches(self) -> Iterator[TransformBatch]:
        """Yield consecutive batches of at most batch_size rows."""
        for start in range(0, len(self._rows), self.batch_size):
            yield self.batch_at(start)

    def run(
        self,
        should_cancel: Optional[CancelCheck] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TransformResult:
        """
        Transform every row, checking for cancellation before each batch.

        Args:
            should_cancel: Returns True to stop before the next batch
            on_progress: Called with (processed_count, total_count) after
                every batch

        Returns:
            TransformResult with the rows transformed so far
        """
        result = TransformResult(total_count=len(self._rows))

        for start in range(0, len(self._rows), self.batch_size):
            if should_cancel is not None and should_cancel():
                result.cancelled = True
                break
            self._collect(result, self.batch_at(start), on_progress)

        self._log_result(result)
        return result

    async def arun(
        self,
        should_cancel: Optional[CancelCheck] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TransformResult:
        """Same as run(), yielding to the event loop between batches."""
        result = TransformResult(total_count=len(self._rows))

        for start in range(0, len(self._rows), self.batch_size):
            if should_cancel is not None and should_cancel():
                result.cancelled = True
                break
            self._collect(result, self.batch_at(start), on_progress)
            await asyncio.sleep(0)

        self._log_result(result)
        return result

    def _collect(
        self,
        result: TransformResult,
        batch: TransformBatch,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        result.rows.extend(batch.rows)
        logger.debug(
            "transform_batch_done",
            start_index=batch.start_index,
            end_index=batch.end_index,
            total=result.total_count
        )
        if on_progress is not None:
            on_progress(result.processed_count, result.total_count)

    def _log_result(self, result: TransformResult) -> None:
        if result.cancelled:
            logger.info(
                "transform_cancelled",
                primary_type=self.primary_type,
                processed_count=result.processed_count,
                remaining_count=result.remaining_count
            )
        else:
            logger.info(
                "transform_complete",
                primary_type=self.primary_type,
                row_count=result.processed_count,
                warning_count=len(result.warnings)
            )


def transform_rows(
    catalog: EntityCatalog,
    rows: Sequence[Mapping[str, Any]],
    mappings: ColumnMappings,
    primary_type: str,
    should_cancel: Optional[CancelCheck] = None,
    on_progress: Optional[ProgressCallback] = None,
    batch_size: Optional[int] = None,
) -> TransformResult:
    """Transform a whole dataset in batches."""
    stream = RowTransformStream(catalog, rows, mappings, primary_type, batch_size)
    return stream.run(should_cancel=should_cancel, on_progress=on_progress)


# ===================
# WARNING SUMMARY
# ===================

def summarize_warnings(warnings: Iterable[CoercionWarning]) -> list[WarningSummary]:
    """
    Aggregate coercion warnings per column.

    e.g. "14 rows had an unparsable date in `dob`"

    Returns:
        One summary per (header, field), in order of first occurrence
    """
    grouped: dict[tuple[str, str], list[CoercionWarning]] = {}
    for warning in warnings:
        grouped.setdefault((warning.header, warning.field), []).append(warning)

    return [
        WarningSummary(
            header=header,
            field=field,
            field_type=items[0].field_type,
            row_count=len({w.row_index for w in items}),
            example_value=items[0].value,
        )
        for (header, field), items in grouped.items()
    ]
