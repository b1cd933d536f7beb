"""
Import session service.

Holds the state of one import wizard session: selected types, the parsed
upload, the column mapping, import modes and overwrite settings. Every
change that can invalidate the mapping (new selection, new file) re-runs
the auto-mapper and replaces the mapping wholesale.
"""

from typing import Optional, Sequence, Union

import structlog

from config.settings import Settings, get_settings
from exceptions import MappingIncompleteError, ValidationError
from models.catalog import EntityCatalog
from models.import_session import (
    ImportMode,
    ImportOptions,
    ImportPayload,
    OverwriteSetting,
)
from models.mapping import (
    AssociationPropertyOption,
    ColumnMappings,
    HeaderStatusFilter,
    ImportAsOption,
    MappingStats,
    MappingValidation,
    PropertyOption,
)
from models.transform import TransformResult, WarningSummary
from parsers.dataset_parser import ParsedDataset, parse_dataset
from services.association_service import (
    get_associable_entities,
    get_disabled_tooltip,
    resolve_selection,
    toggle_entity_type,
)
from services.auto_mapper import auto_map_columns
from services.entity_catalog import get_default_catalog
from services.mapping_options import (
    change_import_as,
    filter_headers,
    get_association_property_options,
    get_import_as_options,
    get_property_options,
    get_sample_values,
    select_property,
)
from services.mapping_validator import get_mapping_stats, validate_mappings
from services.row_transformer import (
    CancelCheck,
    ProgressCallback,
    RowTransformStream,
    summarize_warnings,
)

logger = structlog.get_logger(__name__)


class ImportSession:
    """
    State of one bulk import wizard session.

    Nothing is persisted; the session is discarded when the wizard closes.
    """

    def __init__(
        self,
        catalog: EntityCatalog,
        settings: Optional[Settings] = None,
    ):
        self.catalog = catalog
        self.settings = settings or get_settings()
        self.options = ImportOptions()
        self.filename: Optional[str] = None
        self._selected_types: list[str] = []
        self._dataset: Optional[ParsedDataset] = None
        self._mappings: ColumnMappings = {}
        self._import_modes: dict[str, ImportMode] = {}
        self._overwrite_settings: dict[str, OverwriteSetting] = {}

    # ===================
    # STATE ACCESS
    # ===================

    @property
    def selected_types(self) -> list[str]:
        return list(self._selected_types)

    @property
    def primary_type(self) -> Optional[str]:
        return self._selected_types[0] if self._selected_types else None

    @property
    def dataset(self) -> Optional[ParsedDataset]:
        return self._dataset

    @property
    def mappings(self) -> ColumnMappings:
        return dict(self._mappings)

    @property
    def import_modes(self) -> dict[str, ImportMode]:
        return dict(self._import_modes)

    @property
    def overwrite_settings(self) -> dict[str, OverwriteSetting]:
        return dict(self._overwrite_settings)

    # ===================
    # TYPE SELECTION
    # ===================

    def associable_entities(self) -> frozenset[str]:
        return get_associable_entities(self.catalog, self._selected_types)

    def disabled_tooltip(self, entity_id: str) -> Optional[str]:
        return get_disabled_tooltip(self.catalog, entity_id, self._selected_types)

    def toggle_type(self, entity_id: str) -> list[str]:
        """Select or deselect a type; illegal additions are ignored."""
        new_types = toggle_entity_type(self.catalog, self._selected_types, entity_id)
        if new_types != self._selected_types:
            self.set_types(new_types)
        return self.selected_types

    def set_types(self, selected_types: Sequence[str]) -> None:
        """
        Replace the selection, seed import modes and re-run auto-mapping.

        Raises:
            UnknownEntityTypeError, TooManyEntityTypesError, CompatibilityError
        """
        resolve_selection(self.catalog, selected_types)
        self._selected_types = list(selected_types)

        default_mode = ImportMode(self.settings.default_import_mode)
        for type_id in self._selected_types:
            self._import_modes.setdefault(type_id, default_mode)

        logger.info("import_types_changed", selected_types=self.selected_types)
        self._remap()

    # ===================
    # UPLOAD
    # ===================

    def load_file(self, content: Union[str, bytes], filename: str) -> ParsedDataset:
        """
        Parse an upload and make it the session dataset.

        Raises:
            DatasetParseError: If the file cannot be parsed; the previous
                dataset and mapping are cleared either way
        """
        self._clear_upload()
        dataset = parse_dataset(content, filename, self.settings.sample_row_count)
        self.load_dataset(dataset)
        self.filename = filename
        return dataset

    def load_dataset(self, dataset: ParsedDataset) -> None:
        """Use an already parsed dataset; resets mapping and overwrite settings."""
        self._clear_upload()
        self._dataset = dataset
        self._remap()

    def _clear_upload(self) -> None:
        self._dataset = None
        self.filename = None
        self._mappings = {}
        self._overwrite_settings = {}

    def _remap(self) -> None:
        if self._dataset is None or not self._selected_types:
            return
        self._mappings = auto_map_columns(
            self.catalog, self._dataset.headers, self._selected_types
        )

    # ===================
    # MAPPING STEP
    # ===================

    def import_as_options(self) -> list[ImportAsOption]:
        return get_import_as_options(self.catalog, self._selected_types, self.primary_type)

    def property_options(self, entity_type: str) -> list[PropertyOption]:
        return get_property_options(self.catalog, entity_type)

    def association_property_options(self) -> list[AssociationPropertyOption]:
        if self.primary_type is None:
            return []
        return get_association_property_options(self.catalog, self.primary_type)

    def set_import_as(self, header: str, option: ImportAsOption) -> None:
        self._require_header(header)
        self._mappings = change_import_as(self._mappings, header, option)

    def set_property(
        self,
        header: str,
        option: Union[PropertyOption, AssociationPropertyOption],
    ) -> None:
        self._require_header(header)
        self._mappings = select_property(self.catalog, self._mappings, header, option)

    def set_overwrite(self, header: str, setting: OverwriteSetting) -> None:
        self._require_header(header)
        self._overwrite_settings[header] = OverwriteSetting(setting)

    def set_import_mode(self, entity_type: str, mode: ImportMode) -> None:
        if entity_type not in self._selected_types:
            raise ValidationError(
                f"{entity_type} is not selected",
                code="ENTITY_TYPE_NOT_SELECTED",
                details={"entity_type": entity_type}
            )
        self._import_modes[entity_type] = ImportMode(mode)

    def sample_values(self, header: str) -> list:
        if self._dataset is None:
            return []
        return get_sample_values(
            self._dataset.sample_rows, header, self.settings.preview_value_count
        )

    def filtered_headers(
        self,
        status: HeaderStatusFilter = HeaderStatusFilter.ALL,
        query: Optional[str] = None,
    ) -> list[str]:
        if self._dataset is None:
            return []
        return filter_headers(self._dataset.headers, self._mappings, status, query)

    def validate(self) -> MappingValidation:
        return validate_mappings(self.catalog, self._mappings, self._selected_types)

    def stats(self) -> MappingStats:
        return get_mapping_stats(self.catalog, self._mappings, self._selected_types)

    def _require_header(self, header: str) -> None:
        if self._dataset is None or header not in self._dataset.headers:
            raise ValidationError(
                f"Unknown column: {header}",
                code="UNKNOWN_COLUMN",
                details={"header": header}
            )

    # ===================
    # TRANSFORM & HANDOFF
    # ===================

    def stream(self, batch_size: Optional[int] = None) -> RowTransformStream:
        """
        Build the row stream for the current dataset and mapping.

        Raises:
            MappingIncompleteError: If there is no dataset or the mapping
                does not pass validation
        """
        validation = self.validate()
        if self._dataset is None or not validation.is_valid:
            raise MappingIncompleteError([f.field for f in validation.errors])

        return RowTransformStream(
            self.catalog,
            self._dataset.all_data,
            self._mappings,
            self.primary_type,
            batch_size or self.settings.transform_batch_size,
        )

    def transform(
        self,
        should_cancel: Optional[CancelCheck] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TransformResult:
        return self.stream().run(should_cancel=should_cancel, on_progress=on_progress)

    def build_payload(self, result: Optional[TransformResult] = None) -> ImportPayload:
        """
        Assemble the import-execution payload.

        Args:
            result: A completed transform; transformed now if omitted

        Raises:
            MappingIncompleteError: If the mapping does not pass validation
            ValidationError: If the given transform was cancelled
        """
        if result is None:
            result = self.transform()
        elif result.cancelled:
            raise ValidationError(
                "Cannot import a cancelled transform",
                code="TRANSFORM_CANCELLED",
                details={"remaining_count": result.remaining_count}
            )

        payload = ImportPayload(
            entity_types=self.selected_types,
            primary_type=self.primary_type,
            data=[row.to_dict() for row in result.rows],
            mappings=self.mappings,
            import_modes={t: self._import_modes[t] for t in self._selected_types},
            overwrite_settings=self.overwrite_settings,
            options=self.options.model_copy(),
            filename=self.filename,
        )

        logger.info(
            "import_payload_built",
            primary_type=payload.primary_type,
            row_count=len(payload.data),
            warning_count=len(result.warnings)
        )
        return payload

    def warning_summary(self, result: TransformResult) -> list[WarningSummary]:
        return summarize_warnings(result.warnings)


def create_import_session(catalog: Optional[EntityCatalog] = None) -> ImportSession:
    """Start a session on the given catalog (process default if omitted)."""
    return ImportSession(catalog or get_default_catalog())
