"""
Entity catalog construction.

The built-in catalog describes the seven importable business record types.
A deployment can replace it with a JSON file (settings.catalog_path) holding
a list of entity type definitions in the same shape.
"""

from functools import lru_cache
from pathlib import Path
from typing import Union

import structlog
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from config.settings import get_settings
from exceptions import CatalogError
from models.catalog import (
    EntityCatalog,
    EntityTypeDefinition,
    FieldDefinition,
    FieldType,
)

logger = structlog.get_logger(__name__)

_definitions_adapter = TypeAdapter(list[EntityTypeDefinition])


def _field(key: str, label: str, type: FieldType = FieldType.STRING, *aliases: str) -> FieldDefinition:
    return FieldDefinition(key=key, label=label, type=type, aliases=aliases)


S, T, N, B, D, E = (
    FieldType.STRING, FieldType.TEXT, FieldType.NUMBER,
    FieldType.BOOLEAN, FieldType.DATE, FieldType.ENUM,
)


# ===================
# BUILT-IN ENTITY TYPES
# ===================

OWNERS = EntityTypeDefinition(
    id="owners",
    label="Owners",
    label_singular="Owner",
    description="Pet parents and their contact information",
    fields=(
        _field("first_name", "First Name", S, "firstname", "first", "fname", "given_name"),
        _field("last_name", "Last Name", S, "lastname", "last", "lname", "surname", "family_name"),
        _field("email", "Email", S, "email_address", "e-mail", "mail"),
        _field("phone", "Phone", S, "phone_number", "telephone", "mobile", "cell", "contact_number"),
        _field("address_street", "Street Address", S, "address", "street", "street_address", "address1", "address_line1"),
        _field("address_city", "City", S, "city", "town", "municipality"),
        _field("address_state", "State/Province", S, "state", "province", "region", "state_province"),
        _field("address_zip", "Postal Code", S, "zip", "zipcode", "zip_code", "postcode", "postal_code"),
        _field("address_country", "Country", S, "country"),
        _field("emergency_contact_name", "Emergency Contact Name", S, "emergency_name", "alt_contact"),
        _field("emergency_contact_phone", "Emergency Contact Phone", S, "emergency_phone", "alt_phone"),
        _field("notes", "Notes", T, "comments", "remarks", "owner_notes"),
        _field("is_active", "Active", B, "status", "active", "owner_status", "account_status"),
    ),
    required_fields=("email",),
    unique_identifier_fields=("email", "id", "phone"),
    associable_with=("pets", "bookings"),
)

PETS = EntityTypeDefinition(
    id="pets",
    label="Pets",
    label_singular="Pet",
    description="Animals in your care with medical and behavior info",
    fields=(
        _field("name", "Pet Name", S, "pet_name", "animal_name"),
        _field("species", "Species", E, "animal_type", "type", "pet_type"),
        _field("breed", "Breed", S, "pet_breed", "animal_breed"),
        _field("gender", "Gender", E, "sex"),
        _field("color", "Color", S, "coat_color", "fur_color"),
        _field("weight", "Weight", N, "pet_weight", "weight_lbs", "weight_kg"),
        _field("date_of_birth", "Date of Birth", D, "dob", "birth_date", "birthday", "birthdate"),
        _field("microchip_number", "Microchip Number", S, "microchip", "chip_number", "chip_id"),
        _field("medical_notes", "Medical Notes", T, "health_notes", "medical_info", "health_info"),
        _field("dietary_notes", "Dietary Notes", T, "diet", "food_notes", "feeding_notes"),
        _field("behavior_notes", "Behavior Notes", T, "behavior", "temperament", "personality"),
        _field("is_spayed_neutered", "Spayed/Neutered", B, "fixed", "altered", "neutered", "spayed"),
        _field("status", "Status", E, "pet_status"),
    ),
    required_fields=("name",),
    unique_identifier_fields=("id", "name"),
    associable_with=("owners", "bookings", "vaccinations"),
)

BOOKINGS = EntityTypeDefinition(
    id="bookings",
    label="Bookings",
    label_singular="Booking",
    description="Bookings for boarding, daycare, grooming",
    fields=(
        _field("start_date", "Start Date", D, "check_in", "checkin", "arrival", "from_date", "start"),
        _field("end_date", "End Date", D, "check_out", "checkout", "departure", "to_date", "end"),
        _field("service_type", "Service Type", E, "type", "booking_type", "service"),
        _field("kennel_name", "Kennel/Room", S, "kennel", "room", "unit", "accommodation"),
        _field("status", "Status", E, "booking_status", "reservation_status"),
        _field("notes", "Notes", T, "booking_notes", "special_requests", "comments"),
        _field("total_amount", "Total Amount", N, "total", "price", "cost", "amount"),
    ),
    required_fields=("start_date", "end_date"),
    unique_identifier_fields=("id",),
    associable_with=("owners", "pets", "services", "staff"),
)

SERVICES = EntityTypeDefinition(
    id="services",
    label="Services",
    label_singular="Service",
    description="Service types you offer (boarding, grooming, etc.)",
    fields=(
        _field("name", "Service Name", S, "service_name", "title"),
        _field("description", "Description", T, "details", "info"),
        _field("category", "Category", E, "service_category", "type"),
        _field("price", "Price", N, "cost", "rate", "amount", "fee"),
        _field("duration_minutes", "Duration (minutes)", N, "duration", "time", "length"),
        _field("is_active", "Active", B, "active", "enabled", "available"),
    ),
    required_fields=("name",),
    unique_identifier_fields=("name", "id"),
    associable_with=("bookings",),
)

STAFF = EntityTypeDefinition(
    id="staff",
    label="Staff",
    label_singular="Staff Member",
    description="Your team members",
    fields=(
        _field("first_name", "First Name", S, "firstname", "fname"),
        _field("last_name", "Last Name", S, "lastname", "lname"),
        _field("email", "Email", S, "email_address", "work_email"),
        _field("phone", "Phone", S, "phone_number", "mobile"),
        _field("role", "Role", E, "position", "job_title", "title"),
        _field("hire_date", "Hire Date", D, "start_date", "joined"),
        _field("is_active", "Active", B, "active", "employed", "status"),
    ),
    required_fields=("email",),
    unique_identifier_fields=("email", "id"),
    associable_with=("bookings",),
)

INVOICES = EntityTypeDefinition(
    id="invoices",
    label="Invoices",
    label_singular="Invoice",
    description="Billing records and payments",
    fields=(
        _field("invoice_number", "Invoice Number", S, "invoice_id", "number"),
        _field("invoice_date", "Invoice Date", D, "date", "created_date", "issue_date"),
        _field("due_date", "Due Date", D, "payment_due", "due"),
        _field("subtotal", "Subtotal", N, "sub_total"),
        _field("tax", "Tax", N, "tax_amount", "vat"),
        _field("total", "Total", N, "total_amount", "amount", "grand_total"),
        _field("status", "Status", E, "payment_status", "invoice_status"),
        _field("notes", "Notes", T, "description", "memo"),
    ),
    required_fields=("total",),
    unique_identifier_fields=("id", "invoice_number"),
    associable_with=(),  # standalone only
)

VACCINATIONS = EntityTypeDefinition(
    id="vaccinations",
    label="Vaccinations",
    label_singular="Vaccination",
    description="Pet vaccination records",
    fields=(
        _field("vaccine_name", "Vaccine Name", S, "vaccine", "vaccination", "shot", "name"),
        _field("administered_date", "Date Administered", D, "date", "given_date", "shot_date", "vaccination_date"),
        _field("expiration_date", "Expiration Date", D, "expires", "expiry", "valid_until", "due_date"),
        _field("administered_by", "Administered By", S, "vet", "veterinarian", "provider", "clinic"),
        _field("batch_number", "Batch/Lot Number", S, "lot_number", "batch", "lot"),
        _field("notes", "Notes", T, "comments", "remarks"),
    ),
    required_fields=("vaccine_name", "administered_date"),
    unique_identifier_fields=("id",),
    associable_with=("pets",),
)

DEFAULT_ENTITY_TYPES: tuple[EntityTypeDefinition, ...] = (
    OWNERS,
    PETS,
    BOOKINGS,
    SERVICES,
    STAFF,
    INVOICES,
    VACCINATIONS,
)


def build_default_catalog() -> EntityCatalog:
    """Build the built-in catalog."""
    return EntityCatalog(DEFAULT_ENTITY_TYPES)


def load_catalog(path: Union[str, Path]) -> EntityCatalog:
    """
    Load a catalog from a JSON file.

    The file holds a list of entity type definitions, e.g.
    [{"id": "owners", "label": "Owners", "label_singular": "Owner",
      "fields": [{"key": "email", "label": "Email"}], ...}]

    Raises:
        CatalogError: If the file is missing or any definition is invalid
    """
    path = Path(path)
    logger.info("loading_catalog", path=str(path))

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("catalog_read_failed", path=str(path), error=str(e))
        raise CatalogError(
            "Failed to read catalog file",
            details={"path": str(path), "original_error": str(e)}
        )

    try:
        definitions = _definitions_adapter.validate_json(content)
    except PydanticValidationError as e:
        logger.error("catalog_invalid", path=str(path), error_count=e.error_count())
        raise CatalogError(
            "Catalog file contains invalid entity type definitions",
            details={"path": str(path), "errors": [err["msg"] for err in e.errors()]}
        )

    catalog = EntityCatalog(definitions)
    logger.info("catalog_loaded", path=str(path), entity_types=list(catalog.ids))
    return catalog


@lru_cache()
def get_default_catalog() -> EntityCatalog:
    """
    Get the process-wide catalog.

    Uses settings.catalog_path when set, the built-in catalog otherwise.
    Call get_default_catalog.cache_clear() to reload.
    """
    catalog_path = get_settings().catalog_path
    if catalog_path:
        return load_catalog(catalog_path)
    return build_default_catalog()
