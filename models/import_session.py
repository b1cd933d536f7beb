"""
Import session schemas handed to the import-execution service.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import ConfigDict, Field

from models.base import BaseSchema
from models.mapping import ColumnMappings


class ImportMode(str, Enum):
    """How rows of an entity type are written by the import-execution service."""
    CREATE_UPDATE = "create_update"
    CREATE_ONLY = "create_only"
    UPDATE_ONLY = "update_only"


class OverwriteSetting(str, Enum):
    """Whether an existing non-empty value may be overwritten by a column."""
    OVERWRITE = "overwrite"
    SKIP = "skip"


class ImportOptions(BaseSchema):
    """Duplicate handling chosen on the details step."""
    skip_duplicates: bool = True
    update_existing: bool = False
    create_new_only: bool = False
    unique_identifier: Optional[str] = Field(
        None,
        description="Primary-type field used to detect duplicates"
    )


class ImportPayload(BaseSchema):
    """
    Everything the import-execution service needs for one file.

    data holds one {record, associations} entry per row, in row order.
    Header keys are kept verbatim so they still match the dataset rows.
    """
    model_config = ConfigDict(str_strip_whitespace=False)

    entity_types: list[str]
    primary_type: str
    data: list[dict[str, Any]]
    mappings: ColumnMappings
    import_modes: dict[str, ImportMode]
    overwrite_settings: dict[str, OverwriteSetting] = Field(default_factory=dict)
    options: ImportOptions = Field(default_factory=ImportOptions)
    filename: Optional[str] = None
