"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,

    # Catalog
    CatalogError,
    UnknownEntityTypeError,

    # Selection
    CompatibilityError,
    TooManyEntityTypesError,

    # Mapping
    InvalidMappingError,
    MappingIncompleteError,

    # Dataset parser
    DatasetParseError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",

    # Catalog
    "CatalogError",
    "UnknownEntityTypeError",

    # Selection
    "CompatibilityError",
    "TooManyEntityTypesError",

    # Mapping
    "InvalidMappingError",
    "MappingIncompleteError",

    # Dataset parser
    "DatasetParseError",
]
