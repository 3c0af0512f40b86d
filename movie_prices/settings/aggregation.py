"""Aggregation and result cache settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AggregationSettings(BaseSettings):
    """Aggregation engine and result cache configuration.

    Attributes:
        cache_minutes: Absolute lifetime of the aggregated movie list.
        sliding_minutes: Idle lifetime of the aggregated movie list (0 disables).
        cache_max_entries: Capacity of the in-process cache.
        detail_concurrency: Concurrent detail calls per provider (1 = sequential).
        match_on_year: Merge on (title, year) instead of title only.
        single_flight: Coalesce concurrent cache misses.
        resolve_posters: Probe poster URLs during the aggregation pass.
        poster_timeout_seconds: Timeout of one poster probe.
        stale_after_minutes: Age after which a provider price is stale.
    """

    cache_minutes: int = Field(default=5, ge=1, alias="MOVIES_CACHE_MINUTES")
    sliding_minutes: int = Field(default=2, ge=0, alias="MOVIES_CACHE_SLIDING_MINUTES")
    cache_max_entries: int = Field(default=128, ge=1, alias="CACHE_MAX_ENTRIES")
    detail_concurrency: int = Field(
        default=1,
        ge=1,
        le=32,
        alias="AGGREGATION_DETAIL_CONCURRENCY",
    )
    match_on_year: bool = Field(default=False, alias="AGGREGATION_MATCH_ON_YEAR")
    single_flight: bool = Field(default=True, alias="AGGREGATION_SINGLE_FLIGHT")
    resolve_posters: bool = Field(default=True, alias="AGGREGATION_RESOLVE_POSTERS")
    poster_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        alias="POSTER_PROBE_TIMEOUT_SECONDS",
    )
    stale_after_minutes: int = Field(default=10, ge=1, alias="PRICE_STALE_AFTER_MINUTES")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cache_seconds(self) -> float:
        """Absolute lifetime in seconds."""
        return self.cache_minutes * 60.0

    @property
    def sliding_seconds(self) -> float | None:
        """Sliding lifetime in seconds, None when disabled."""
        if self.sliding_minutes <= 0:
            return None
        return self.sliding_minutes * 60.0
