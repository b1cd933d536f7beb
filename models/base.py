"""
Base schemas for all models.
"""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Base for mutable schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow attribute-based construction (from_attributes)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class FrozenSchema(BaseModel):
    """
    Base for immutable value schemas.

    Instances are hashable and compare structurally, so two calls that
    build the same value produce equal results.
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        frozen=True
    )
