"""
Shared test fixtures.

Two catalogs are available: the built-in one (`catalog`) and a small
synthetic one (`scenario_catalog`) whose owners use camelCase keys,
require firstName/lastName and cannot be paired with bookings.
"""

import sys
from pathlib import Path

# Add repo root to Python path
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

import pytest

from models.catalog import EntityCatalog, EntityTypeDefinition, FieldDefinition, FieldType
from services.entity_catalog import build_default_catalog
from parsers.dataset_parser import build_dataset


# ===================
# CATALOG FIXTURES
# ===================

@pytest.fixture
def catalog() -> EntityCatalog:
    """Built-in catalog."""
    return build_default_catalog()


def make_scenario_catalog() -> EntityCatalog:
    owners = EntityTypeDefinition(
        id="owners",
        label="Owners",
        label_singular="Owner",
        fields=(
            FieldDefinition(key="firstName", label="First Name"),
            FieldDefinition(key="lastName", label="Last Name"),
            FieldDefinition(key="email", label="Email"),
            FieldDefinition(key="joinedOn", label="Joined On", type=FieldType.DATE),
            FieldDefinition(key="visits", label="Visits", type=FieldType.NUMBER),
            FieldDefinition(key="newsletter", label="Newsletter", type=FieldType.BOOLEAN),
        ),
        required_fields=("firstName", "lastName"),
        unique_identifier_fields=("email", "id"),
        associable_with=("pets",),
    )
    pets = EntityTypeDefinition(
        id="pets",
        label="Pets",
        label_singular="Pet",
        fields=(
            FieldDefinition(key="name", label="Pet Name"),
            FieldDefinition(key="breed", label="Breed"),
        ),
        required_fields=("name",),
        unique_identifier_fields=("name",),
    )
    bookings = EntityTypeDefinition(
        id="bookings",
        label="Bookings",
        label_singular="Booking",
        fields=(
            FieldDefinition(key="startDate", label="Start Date", type=FieldType.DATE),
        ),
        required_fields=("startDate",),
        unique_identifier_fields=("id",),
        associable_with=("pets",),
    )
    return EntityCatalog([owners, pets, bookings])


@pytest.fixture
def scenario_catalog() -> EntityCatalog:
    """Synthetic catalog: owners <-> pets <- bookings (declared on one side only)."""
    return make_scenario_catalog()


# ===================
# DATASET FIXTURES
# ===================

SCENARIO_HEADERS = ["First Name", "Last Name", "Email", "Pet Name"]


@pytest.fixture
def scenario_headers() -> list[str]:
    return list(SCENARIO_HEADERS)


@pytest.fixture
def scenario_dataset():
    rows = [
        {"First Name": "Jane", "Last Name": "", "Email": "jane@x.com", "Pet Name": "Rex"},
        {"First Name": "Tom", "Last Name": "Hill", "Email": "tom@x.com", "Pet Name": ""},
        {"First Name": "Ana", "Last Name": "Ruiz", "Email": "ana@x.com", "Pet Name": "Luna"},
    ]
    return build_dataset(list(SCENARIO_HEADERS), rows, sample_row_count=2)
