"""
Unit tests for ImportSession.

Walks the wizard flow: select types, load a file, adjust the mapping,
transform and build the payload.
"""

import pytest

from config.settings import Settings
from exceptions import (
    CompatibilityError,
    DatasetParseError,
    MappingIncompleteError,
    ValidationError,
)
from models.import_session import ImportMode, OverwriteSetting
from models.mapping import SKIP, AssociationMapping, HeaderStatusFilter, PropertyMapping
from parsers.dataset_parser import build_dataset
from services.import_session_service import ImportSession, create_import_session

CSV = (
    "First Name,Last Name,Email,Pet Name,Visits\n"
    "Jane,,jane@x.com,Rex,3\n"
    "Tom,Hill,tom@x.com,,lots\n"
    "Ana,Ruiz,ana@x.com,Luna,\n"
)


@pytest.fixture
def session(scenario_catalog) -> ImportSession:
    return ImportSession(
        scenario_catalog,
        Settings(sample_row_count=2, preview_value_count=2, transform_batch_size=2),
    )


@pytest.fixture
def ready_session(session) -> ImportSession:
    session.set_types(["owners", "pets"])
    session.load_file(CSV.encode("utf-8"), "owners.csv")
    return session


def option(options, value):
    return next(o for o in options if o.value == value)


# ===================
# TYPE SELECTION
# ===================

class TestTypeSelection:
    """Tests for selecting entity types."""

    def test_toggle(self, session):
        assert session.toggle_type("owners") == ["owners"]
        assert session.primary_type == "owners"
        assert session.toggle_type("pets") == ["owners", "pets"]

    def test_toggle_incompatible_is_noop(self, session):
        session.toggle_type("owners")
        assert session.toggle_type("bookings") == ["owners"]
        assert session.disabled_tooltip("bookings") == "Bookings cannot be imported together with Owners"
        assert "bookings" not in session.associable_entities()

    def test_set_types_rejects_incompatible(self, session):
        with pytest.raises(CompatibilityError):
            session.set_types(["owners", "bookings"])
        assert session.selected_types == []

    def test_import_modes_seeded(self, session):
        session.set_types(["owners", "pets"])
        assert session.import_modes == {
            "owners": ImportMode.CREATE_UPDATE,
            "pets": ImportMode.CREATE_UPDATE,
        }

    def test_default_import_mode_from_settings(self, scenario_catalog):
        session = ImportSession(scenario_catalog, Settings(default_import_mode="create_only"))
        session.set_types(["owners"])
        assert session.import_modes["owners"] == ImportMode.CREATE_ONLY

    def test_selection_change_remaps(self, ready_session):
        assert ready_session.mappings["Pet Name"] == AssociationMapping(
            target_entity_type="pets", field="name"
        )

        ready_session.toggle_type("pets")

        assert ready_session.selected_types == ["owners"]
        assert ready_session.mappings["Pet Name"] == SKIP

    def test_deselect_primary_promotes_secondary(self, ready_session):
        ready_session.toggle_type("owners")
        assert ready_session.primary_type == "pets"
        assert ready_session.mappings["Pet Name"] == PropertyMapping(entity_type="pets", field="name")


# ===================
# UPLOAD
# ===================

class TestUpload:
    """Tests for loading files."""

    def test_load_file_auto_maps(self, ready_session):
        assert ready_session.filename == "owners.csv"
        assert ready_session.dataset.row_count == 3
        assert len(ready_session.dataset.sample_rows) == 2
        assert ready_session.mappings["First Name"] == PropertyMapping(
            entity_type="owners", field="firstName"
        )

    def test_load_before_selection_leaves_mapping_empty(self, session):
        session.load_file(CSV, "owners.csv")
        assert session.mappings == {}

        session.set_types(["owners"])
        assert set(session.mappings) == {"First Name", "Last Name", "Email", "Pet Name", "Visits"}

    def test_new_file_resets_overwrite_settings(self, ready_session):
        ready_session.set_overwrite("Email", OverwriteSetting.SKIP)

        ready_session.load_file("Email\nx@x.com\n", "other.csv")

        assert ready_session.overwrite_settings == {}
        assert list(ready_session.mappings) == ["Email"]

    def test_failed_upload_clears_previous(self, ready_session):
        with pytest.raises(DatasetParseError):
            ready_session.load_file(b"", "empty.csv")
        assert ready_session.dataset is None
        assert ready_session.mappings == {}
        assert ready_session.filename is None

    def test_sample_values(self, ready_session):
        assert ready_session.sample_values("Pet Name") == ["Rex"]
        assert ready_session.sample_values("Email") == ["jane@x.com", "tom@x.com"]


# ===================
# MAPPING STEP
# ===================

class TestMappingStep:
    """Tests for manual mapping edits."""

    def test_map_visits_manually(self, ready_session):
        assert ready_session.mappings["Visits"] == PropertyMapping(entity_type="owners", field="visits")

        ready_session.set_import_as("Visits", option(ready_session.import_as_options(), "skip"))
        assert ready_session.mappings["Visits"] == SKIP

        ready_session.set_import_as("Visits", option(ready_session.import_as_options(), "owners_properties"))
        ready_session.set_property("Visits", option(ready_session.property_options("owners"), "visits"))
        assert ready_session.mappings["Visits"] == PropertyMapping(entity_type="owners", field="visits")

    def test_map_association_manually(self, ready_session):
        ready_session.set_import_as("Email", option(ready_session.import_as_options(), "association"))
        assert "Email" in ready_session.filtered_headers(HeaderStatusFilter.UNMAPPED)

        ready_session.set_property("Email", option(ready_session.association_property_options(), "pets.name"))
        assert ready_session.filtered_headers(HeaderStatusFilter.ASSOCIATIONS) == ["Email", "Pet Name"]

    def test_unknown_header(self, ready_session):
        with pytest.raises(ValidationError):
            ready_session.set_overwrite("Fax", OverwriteSetting.SKIP)

    def test_import_mode_for_unselected_type(self, ready_session):
        with pytest.raises(ValidationError):
            ready_session.set_import_mode("bookings", ImportMode.UPDATE_ONLY)

    def test_validate_and_stats(self, ready_session):
        assert ready_session.validate().is_valid
        stats = ready_session.stats()
        assert (stats.property_count, stats.association_count, stats.skipped_count) == (4, 1, 0)

        ready_session.set_import_as("Last Name", option(ready_session.import_as_options(), "skip"))
        assert not ready_session.validate().is_valid


# ===================
# TRANSFORM & PAYLOAD
# ===================

class TestPayload:
    """Tests for transform and build_payload."""

    def test_build_payload(self, ready_session):
        ready_session.set_overwrite("Email", OverwriteSetting.SKIP)
        ready_session.set_import_mode("owners", ImportMode.UPDATE_ONLY)

        payload = ready_session.build_payload()

        assert payload.entity_types == ["owners", "pets"]
        assert payload.primary_type == "owners"
        assert payload.filename == "owners.csv"
        assert payload.import_modes == {"owners": ImportMode.UPDATE_ONLY, "pets": ImportMode.CREATE_UPDATE}
        assert payload.overwrite_settings == {"Email": OverwriteSetting.SKIP}
        assert payload.data[0] == {
            "record": {"firstName": "Jane", "email": "jane@x.com", "visits": 3.0},
            "associations": [{
                "target_entity_type": "pets",
                "match_field": "name",
                "match_value": "Rex",
                "source_header": "Pet Name",
            }],
        }
        assert payload.data[1]["associations"] == []
        assert len(payload.data) == 3

    def test_payload_requires_valid_mapping(self, ready_session):
        ready_session.set_import_as("First Name", option(ready_session.import_as_options(), "skip"))

        with pytest.raises(MappingIncompleteError) as exc:
            ready_session.build_payload()
        assert exc.value.details["missing_fields"] == ["firstName"]

    def test_payload_requires_dataset(self, session):
        session.set_types(["owners"])
        with pytest.raises(MappingIncompleteError):
            session.build_payload()

    def test_cancelled_transform_rejected(self, ready_session):
        result = ready_session.transform(should_cancel=lambda: True)
        assert result.cancelled

        with pytest.raises(ValidationError) as exc:
            ready_session.build_payload(result)
        assert exc.value.code == "TRANSFORM_CANCELLED"

    def test_warning_summary(self, ready_session):
        result = ready_session.transform()
        summaries = ready_session.warning_summary(result)
        assert [s.message for s in summaries] == ["1 row had an unparsable number in `Visits`"]

    def test_payload_serializes(self, ready_session):
        dumped = ready_session.build_payload().model_dump(mode="json")
        assert dumped["mappings"]["Pet Name"] == {
            "kind": "association",
            "target_entity_type": "pets",
            "field": "name",
        }
        assert dumped["import_modes"]["owners"] == "create_update"

    def test_payload_keeps_header_whitespace(self, session):
        headers = ["First Name", "Last Name", " Email "]
        session.set_types(["owners"])
        session.load_dataset(build_dataset(headers, [
            {"First Name": "Jane", "Last Name": "Doe", " Email ": "jane@x.com"},
        ]))
        session.set_overwrite(" Email ", OverwriteSetting.SKIP)

        payload = session.build_payload()

        assert list(payload.mappings) == headers
        assert payload.mappings[" Email "] == PropertyMapping(entity_type="owners", field="email")
        assert payload.overwrite_settings == {" Email ": OverwriteSetting.SKIP}
        assert payload.data[0]["record"]["email"] == "jane@x.com"


class TestCreateImportSession:
    """Tests for the session factory."""

    def test_default_catalog(self):
        session = create_import_session()
        assert "owners" in session.catalog

    def test_given_catalog(self, scenario_catalog):
        assert create_import_session(scenario_catalog).catalog is scenario_catalog
