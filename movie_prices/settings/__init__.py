"""Centralized configuration for the movie price comparison service.

All configuration values are sourced from environment variables (.env file).
Every setting has a safe default so the service starts without a .env file;
provider credentials are the only values worth overriding.

Usage:
    from movie_prices.settings import settings

    # Access sub-settings
    settings.providers.cache_minutes
    settings.aggregation.cache_seconds
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from movie_prices.settings.aggregation import AggregationSettings
from movie_prices.settings.api import APISettings, CORSSettings
from movie_prices.settings.base import LoggingSettings
from movie_prices.settings.providers import ProviderSettings

__all__ = [
    # Main
    "Settings",
    "settings",
    # Sections
    "LoggingSettings",
    "ProviderSettings",
    "AggregationSettings",
    "APISettings",
    "CORSSettings",
    # Utilities
    "get_masked_settings",
]


# =============================================================================
# GLOBAL SETTINGS
# =============================================================================


class Settings(BaseSettings):
    """Global application settings.

    Aggregates all configuration sections into a single object.
    Access via the singleton: `from movie_prices.settings import settings`
    """

    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    aggregation: AggregationSettings = Field(default_factory=AggregationSettings)
    api: APISettings = Field(default_factory=APISettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"development", "production", "test"}
        v_lower = v.lower()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid ENVIRONMENT. Valid: {valid_envs}")
        return v_lower


# =============================================================================
# SINGLETON INSTANCE
# =============================================================================

settings = Settings()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_masked_settings(source: Settings | None = None) -> dict[str, Any]:
    """Return settings dict with sensitive values masked.

    Args:
        source: Settings to dump (defaults to the singleton).

    Returns:
        Configuration dictionary safe for logging.
    """
    config = (source or settings).model_dump()
    mask = "***MASKED***"

    # Paths to mask (section, key)
    secrets = [
        ("providers", "source_token"),
        ("providers", "fallback_token"),
    ]

    for section, key in secrets:
        if section in config and key in config[section] and config[section][key]:
            config[section][key] = mask

    return config
