"""Provider registry configuration settings.

Where the registry fetches provider configuration from, how long the
snapshot is cached, and the credentials used for the fallback set.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    """Provider registry configuration.

    Attributes:
        source_url: Configuration service URL. Empty serves the fallback set.
        source_token: Bearer token for the configuration service.
        cache_minutes: Registry snapshot lifetime.
        timeout_seconds: Timeout for the configuration service call.
        fetch_attempts: Attempts before falling back to defaults.
        token_header: Header carrying a provider's API token.
        fallback_token: API token used by the fallback providers.
        fallback_base_url: Base URL shared by the fallback providers.
    """

    source_url: str = Field(default="", alias="PROVIDER_CONFIG_URL")
    source_token: str = Field(default="", alias="PROVIDER_CONFIG_TOKEN")
    cache_minutes: int = Field(default=15, ge=1, alias="PROVIDER_CACHE_MINUTES")
    timeout_seconds: float = Field(default=30.0, gt=0, alias="PROVIDER_TIMEOUT_SECONDS")
    fetch_attempts: int = Field(default=3, ge=1, le=10, alias="PROVIDER_FETCH_ATTEMPTS")
    token_header: str = Field(default="x-access-token", alias="PROVIDER_TOKEN_HEADER")
    fallback_token: str = Field(default="", alias="PROVIDER_FALLBACK_TOKEN")
    fallback_base_url: str = Field(
        default="https://webjetapitest.azurewebsites.net/api",
        alias="PROVIDER_FALLBACK_BASE_URL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_configured(self) -> bool:
        """Check if a configuration service URL is set."""
        return bool(self.source_url)

    @field_validator("fallback_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URL without trailing slash."""
        return v.rstrip("/")
