"""
Custom exception classes for the import engine.

Only structurally invalid calls raise. Bad cell values are reported as
coercion warnings and missing required mappings as validation results.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all engine errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "ENTITY_TYPE_NOT_FOUND")
        message: Human-readable message
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to a serializable error payload."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Referenced resource does not exist."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Input failed validation."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details=details
        )


# ===================
# CATALOG ERRORS
# ===================

class CatalogError(AppError):
    """Entity catalog is malformed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="CATALOG_ERROR",
            message=message,
            details=details
        )


class UnknownEntityTypeError(NotFoundError):
    """Entity type id is not present in the catalog."""

    def __init__(self, entity_type: str):
        super().__init__(
            resource="Entity type",
            identifier=entity_type,
            code="ENTITY_TYPE_NOT_FOUND"
        )
        self.entity_type = entity_type


# ===================
# SELECTION ERRORS
# ===================

class CompatibilityError(ValidationError):
    """Selected entity types cannot be imported together."""

    def __init__(self, primary_type: str, secondary_type: str):
        super().__init__(
            code="ENTITY_TYPES_INCOMPATIBLE",
            message=f"{secondary_type} cannot be imported together with {primary_type}",
            details={"primary_type": primary_type, "secondary_type": secondary_type}
        )


class TooManyEntityTypesError(ValidationError):
    """More entity types selected than one import allows."""

    def __init__(self, selected: list[str], maximum: int):
        super().__init__(
            code="TOO_MANY_ENTITY_TYPES",
            message=f"Maximum of {maximum} object types per import",
            details={"selected": list(selected), "maximum": maximum}
        )


# ===================
# MAPPING ERRORS
# ===================

class InvalidMappingError(ValidationError):
    """Column mapping is structurally invalid for the selected types."""

    def __init__(self, header: str, message: str):
        super().__init__(
            code="INVALID_COLUMN_MAPPING",
            message=message,
            details={"header": header}
        )


class MappingIncompleteError(ValidationError):
    """Payload requested while required fields are still unmapped."""

    def __init__(self, missing_fields: list[str]):
        super().__init__(
            code="MAPPING_INCOMPLETE",
            message="Required fields are not mapped",
            details={"missing_fields": list(missing_fields)}
        )


# ===================
# DATASET PARSER ERRORS
# ===================

class DatasetParseError(AppError):
    """Uploaded file could not be decoded into rows."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="DATASET_PARSE_ERROR",
            message=message,
            details=details
        )
