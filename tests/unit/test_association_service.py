"""
Unit tests for the association compatibility resolver.
"""

import pytest

from exceptions import (
    CompatibilityError,
    TooManyEntityTypesError,
    UnknownEntityTypeError,
)
from services.association_service import (
    MAX_TYPES_TOOLTIP,
    get_associable_entities,
    get_disabled_tooltip,
    resolve_selection,
    toggle_entity_type,
)


# ===================
# ASSOCIABLE ENTITIES
# ===================

class TestGetAssociableEntities:
    """Tests for get_associable_entities."""

    def test_nothing_selected_returns_all(self, catalog):
        assert get_associable_entities(catalog, []) == frozenset(catalog.ids)

    def test_one_selected_returns_compatible(self, catalog):
        assert get_associable_entities(catalog, ["owners"]) == frozenset({"pets", "bookings"})

    def test_never_includes_selected_type(self, catalog):
        for type_id in catalog.ids:
            assert type_id not in get_associable_entities(catalog, [type_id])

    def test_cap_reached_returns_empty(self, catalog):
        assert get_associable_entities(catalog, ["owners", "pets"]) == frozenset()

    def test_symmetric_pairing(self, scenario_catalog):
        """bookings declares pets only; pets still offers bookings."""
        assert "bookings" in get_associable_entities(scenario_catalog, ["pets"])
        assert "pets" in get_associable_entities(scenario_catalog, ["bookings"])

    def test_standalone_type(self, catalog):
        assert get_associable_entities(catalog, ["invoices"]) == frozenset()

    def test_unknown_selected_type_raises(self, catalog):
        with pytest.raises(UnknownEntityTypeError):
            get_associable_entities(catalog, ["horses"])


# ===================
# DISABLED TOOLTIP
# ===================

class TestGetDisabledTooltip:
    """Tests for get_disabled_tooltip."""

    def test_nothing_selected(self, catalog):
        assert get_disabled_tooltip(catalog, "invoices", []) is None

    def test_selectable_type(self, catalog):
        assert get_disabled_tooltip(catalog, "pets", ["owners"]) is None

    def test_already_selected_type(self, catalog):
        assert get_disabled_tooltip(catalog, "owners", ["owners", "pets"]) is None

    def test_cap_message(self, catalog):
        assert get_disabled_tooltip(catalog, "bookings", ["owners", "pets"]) == MAX_TYPES_TOOLTIP
        assert MAX_TYPES_TOOLTIP == "Maximum of 2 object types per import"

    def test_incompatible_message(self, catalog):
        tooltip = get_disabled_tooltip(catalog, "invoices", ["owners"])
        assert tooltip == "Invoices cannot be imported together with Owners"

    def test_none_iff_associable(self, catalog):
        """With one type selected, a tooltip appears exactly for non-associable types."""
        selected = ["pets"]
        associable = get_associable_entities(catalog, selected)
        for type_id in catalog.ids:
            if type_id in selected:
                continue
            tooltip = get_disabled_tooltip(catalog, type_id, selected)
            assert (tooltip is None) == (type_id in associable)


# ===================
# TOGGLE
# ===================

class TestToggleEntityType:
    """Tests for toggle_entity_type."""

    def test_select_first(self, catalog):
        assert toggle_entity_type(catalog, [], "owners") == ["owners"]

    def test_select_compatible_second(self, catalog):
        assert toggle_entity_type(catalog, ["owners"], "pets") == ["owners", "pets"]

    def test_incompatible_add_is_noop(self, scenario_catalog):
        """Owners then bookings: not paired, selection unchanged."""
        selected = ["owners"]
        assert "bookings" not in get_associable_entities(scenario_catalog, selected)
        assert toggle_entity_type(scenario_catalog, selected, "bookings") == ["owners"]

    def test_third_type_is_noop(self, catalog):
        assert toggle_entity_type(catalog, ["owners", "pets"], "bookings") == ["owners", "pets"]

    def test_deselect_primary_promotes_secondary(self, catalog):
        assert toggle_entity_type(catalog, ["owners", "pets"], "owners") == ["pets"]

    def test_input_not_modified(self, catalog):
        selected = ["owners"]
        toggle_entity_type(catalog, selected, "pets")
        assert selected == ["owners"]


# ===================
# RESOLVE SELECTION
# ===================

class TestResolveSelection:
    """Tests for resolve_selection."""

    def test_returns_definitions_primary_first(self, catalog):
        definitions = resolve_selection(catalog, ["pets", "owners"])
        assert [d.id for d in definitions] == ["pets", "owners"]

    def test_empty(self, catalog):
        assert resolve_selection(catalog, []) == []

    def test_too_many(self, catalog):
        with pytest.raises(TooManyEntityTypesError) as exc:
            resolve_selection(catalog, ["owners", "pets", "bookings"])
        assert exc.value.details["maximum"] == 2

    def test_incompatible_pair(self, catalog):
        with pytest.raises(CompatibilityError) as exc:
            resolve_selection(catalog, ["owners", "invoices"])
        assert exc.value.code == "ENTITY_TYPES_INCOMPATIBLE"

    def test_unknown(self, catalog):
        with pytest.raises(UnknownEntityTypeError):
            resolve_selection(catalog, ["owners", "horses"])
