"""
Engine settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Engine settings.

    All values loaded from .env file or environment variables.
    Every value has a default, so an empty environment is valid.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # CATALOG
    # ===================
    catalog_path: Optional[str] = Field(
        None,
        description="JSON file with entity type definitions (built-in catalog if unset)"
    )

    # ===================
    # UPLOAD PREVIEW
    # ===================
    sample_row_count: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Rows kept as sample_rows on a parsed dataset"
    )
    preview_value_count: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Non-empty sample values shown per column while mapping"
    )

    # ===================
    # ROW TRANSFORMER
    # ===================
    transform_batch_size: int = Field(
        default=250,
        ge=1,
        le=10000,
        description="Rows transformed between yield points"
    )

    # ===================
    # IMPORT DEFAULTS
    # ===================
    default_import_mode: str = Field(
        default="create_update",
        pattern="^(create_update|create_only|update_only)$",
        description="Import mode seeded for newly selected entity types"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Engine settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
