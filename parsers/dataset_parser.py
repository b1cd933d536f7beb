"""
Upload parser for the bulk import wizard.

Decodes delimited text (CSV, TSV, sniffed .txt) and JSON into a
ParsedDataset of string-valued rows keyed by header.
"""

import csv
import json
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd
import structlog

from config.settings import get_settings
from exceptions import DatasetParseError

logger = structlog.get_logger(__name__)

# extension -> delimiter (None: sniff from the header line)
DELIMITERS: dict[str, Optional[str]] = {"csv": ",", "tsv": "\t", "txt": None}
JSON_EXTENSIONS = frozenset({"json"})


@dataclass
class ParsedDataset:
    """Decoded upload: headers in file order plus every raw row."""
    headers: list[str]
    all_data: list[dict[str, str]]
    sample_rows: list[dict[str, str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.all_data)

    def to_dict(self) -> dict:
        """Convert to dictionary for API response (without all_data)."""
        return {
            "headers": list(self.headers),
            "row_count": self.row_count,
            "sample_rows": [dict(r) for r in self.sample_rows],
        }


def build_dataset(
    headers: list[str],
    rows: list[dict[str, str]],
    sample_row_count: Optional[int] = None,
) -> ParsedDataset:
    """Assemble a dataset, keeping the first rows as samples."""
    if sample_row_count is None:
        sample_row_count = get_settings().sample_row_count
    return ParsedDataset(
        headers=headers,
        all_data=rows,
        sample_rows=rows[:sample_row_count],
    )


def parse_dataset(
    content: Union[str, bytes],
    filename: str,
    sample_row_count: Optional[int] = None,
) -> ParsedDataset:
    """
    Parse an uploaded file by extension.

    Args:
        content: File content (bytes are decoded as UTF-8, BOM tolerated)
        filename: Original filename, used only for its extension
        sample_row_count: Rows kept as sample_rows (settings default)

    Returns:
        ParsedDataset with at least one row

    Raises:
        DatasetParseError: If the format is unsupported, the content cannot
            be decoded, or no rows are found
    """
    extension = Path(filename).suffix.lower().lstrip(".")
    logger.info("parsing_dataset", filename=filename, extension=extension)

    text = _decode(content)

    if extension in JSON_EXTENSIONS:
        headers, rows = parse_json_text(text)
    elif extension in DELIMITERS:
        headers, rows = parse_delimited_text(text, DELIMITERS[extension])
    elif extension in ("xlsx", "xls"):
        raise DatasetParseError(
            "Excel files are not supported. Please convert to CSV first.",
            details={"filename": filename}
        )
    else:
        raise DatasetParseError(
            "Unsupported file format. Please use CSV or JSON.",
            details={"filename": filename}
        )

    if not rows:
        raise DatasetParseError(
            "File appears to be empty or could not be parsed.",
            details={"filename": filename}
        )

    dataset = build_dataset(headers, rows, sample_row_count)
    logger.info(
        "dataset_parsed",
        filename=filename,
        header_count=len(dataset.headers),
        row_count=dataset.row_count
    )
    return dataset


def parse_delimited_text(
    text: str,
    sep: Optional[str] = ",",
) -> tuple[list[str], list[dict[str, str]]]:
    """
    Parse delimited text; the first line is the header row.

    Every cell is read as a string (no NA conversion); headers and
    cells are trimmed.

    Args:
        text: Decoded file content
        sep: Delimiter, or None to sniff it from the header line
            (falls back to comma when sniffing fails)

    Raises:
        DatasetParseError: If pandas cannot read the text
    """
    if not text.strip():
        return [], []

    try:
        df = _read_delimited(text, sep)
    except csv.Error:
        df = _read_delimited(text, ",")

    df.columns = [str(col).strip() for col in df.columns]
    headers = list(df.columns)
    rows = [
        {header: _clean_cell(value) for header, value in record.items()}
        for record in df.to_dict(orient="records")
    ]
    return headers, rows


def parse_json_text(text: str) -> tuple[list[str], list[dict[str, str]]]:
    """
    Parse JSON rows.

    Accepts an array of objects, an object with a "data" array, or a
    single object. Headers are the union of keys in first-seen order.

    Raises:
        DatasetParseError: If the text is not JSON or holds no objects
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("json_read_failed", error=str(e))
        raise DatasetParseError(
            "Failed to read JSON file",
            details={"original_error": str(e)}
        )

    if isinstance(parsed, list):
        records = parsed
    elif isinstance(parsed, dict) and isinstance(parsed.get("data"), list):
        records = parsed["data"]
    else:
        records = [parsed]

    if not all(isinstance(r, dict) for r in records):
        raise DatasetParseError("JSON rows must be objects")

    headers: list[str] = []
    seen: set[str] = set()
    for record in records:
        for key in record:
            key = str(key)
            if key not in seen:
                seen.add(key)
                headers.append(key)

    rows = [
        {header: _stringify(record.get(header)) for header in headers}
        for record in records
    ]
    return headers, rows


# ===================
# HELPER FUNCTIONS
# ===================

def _read_delimited(text: str, sep: Optional[str]) -> pd.DataFrame:
    """Read every cell as a string. Raises csv.Error if sniffing fails."""
    try:
        return pd.read_csv(
            StringIO(text),
            sep=sep,
            engine="python" if sep is None else "c",
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error("delimited_read_failed", error=str(e))
        raise DatasetParseError(
            "Failed to read delimited file",
            details={"original_error": str(e)}
        )


def _decode(content: Union[str, bytes]) -> str:
    if isinstance(content, str):
        return content.lstrip("\ufeff")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DatasetParseError(
            "File is not valid UTF-8 text",
            details={"original_error": str(e)}
        )


def _clean_cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _stringify(value: Any) -> str:
    """Render a JSON value as a raw cell string."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)
