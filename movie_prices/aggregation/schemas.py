"""Domain models for aggregated movie prices.

A ``MovieSummary`` is the cross-provider view of one movie; each provider's
price and poster live in a ``MovieProviderDetail`` owned by the summary.
Nothing here is persisted: summaries live in the result cache until it
expires or is refreshed.
"""

import logging
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DESCRIPTIVE_FIELDS = (
    "year",
    "type",
    "rated",
    "released",
    "runtime",
    "genre",
    "director",
    "writer",
    "actors",
    "plot",
    "language",
    "country",
    "awards",
    "metascore",
    "rating",
    "votes",
)
"""Shared descriptive fields merged with fill-if-absent semantics."""


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


# =============================================================================
# PRICE PARSING
# =============================================================================


def parse_price(raw: str | None) -> Decimal | None:
    """Parse a provider price string.

    Args:
        raw: Raw price as sent by the provider (e.g. ``"25.99"``).

    Returns:
        Decimal price, or None when absent, unparseable or non-finite.
    """
    if raw is None:
        return None

    text = raw.strip().lstrip("$").replace(",", "")
    if not text:
        return None

    try:
        price = Decimal(text)
    except InvalidOperation:
        logger.debug("Unparseable price %r", raw)
        return None

    if not price.is_finite():
        logger.debug("Non-finite price %r", raw)
        return None
    return price


# =============================================================================
# PROVIDER DETAIL
# =============================================================================


class MovieProviderDetail(BaseModel):
    """One provider's price and poster for one movie.

    Attributes:
        provider_id: Provider identifier.
        provider: Provider display name.
        movie_id: Provider-native movie id.
        price: Price, None when the provider sent nothing usable.
        poster_url: Provider poster URL.
        updated_at: When this record was last written.
    """

    model_config = ConfigDict(validate_assignment=True)

    provider_id: str
    provider: str
    movie_id: str
    price: Decimal | None = None
    poster_url: str | None = None
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_valid_price(self) -> bool:
        """A price is usable when present and strictly positive."""
        return self.price is not None and self.price > 0

    def is_stale(self, max_age: timedelta, now: datetime | None = None) -> bool:
        """Check whether the record is older than ``max_age``."""
        return (now or utc_now()) - self.updated_at > max_age


# =============================================================================
# MOVIE SUMMARY
# =============================================================================


class MovieSummary(BaseModel):
    """Cross-provider view of one movie.

    At most one ``MovieProviderDetail`` exists per (provider_id, movie_id).
    """

    title: str

    year: str | None = None
    type: str | None = None
    rated: str | None = None
    released: str | None = None
    runtime: str | None = None
    genre: str | None = None
    director: str | None = None
    writer: str | None = None
    actors: str | None = None
    plot: str | None = None
    language: str | None = None
    country: str | None = None
    awards: str | None = None
    metascore: str | None = None
    rating: str | None = None
    votes: str | None = None
    poster: str | None = None

    provider_details: list[MovieProviderDetail] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=utc_now)

    def update_details(self, values: Mapping[str, Any], now: datetime | None = None) -> None:
        """Fill descriptive fields that are still absent.

        Existing values are kept; ``updated_at`` always advances.

        Args:
            values: Candidate values keyed by field name.
            now: Timestamp to record (defaults to the current time).
        """
        for name in DESCRIPTIVE_FIELDS:
            candidate = values.get(name)
            if getattr(self, name) is None and candidate is not None:
                setattr(self, name, candidate)

        if self.poster is None and values.get("poster"):
            self.poster = values["poster"]

        self.updated_at = now or utc_now()

    def find_detail(self, provider_id: str, movie_id: str) -> MovieProviderDetail | None:
        """Return the detail for a (provider, movie) pair."""
        for detail in self.provider_details:
            if detail.provider_id == provider_id and detail.movie_id == movie_id:
                return detail
        return None

    def add_detail(self, detail: MovieProviderDetail) -> None:
        """Insert a provider detail, replacing any record for the same pair in place."""
        for index, existing in enumerate(self.provider_details):
            if existing.provider_id == detail.provider_id and existing.movie_id == detail.movie_id:
                self.provider_details[index] = detail
                return
        self.provider_details.append(detail)

    def has_movie_id(self, movie_id: str) -> bool:
        """Check whether any provider knows this movie under ``movie_id``."""
        return any(d.movie_id == movie_id for d in self.provider_details)

    def cheapest_price(self) -> MovieProviderDetail | None:
        """Cheapest valid price; the first provider wins ties."""
        cheapest: MovieProviderDetail | None = None
        for detail in self.provider_details:
            if not detail.is_valid_price:
                continue
            if cheapest is None or detail.price < cheapest.price:
                cheapest = detail
        return cheapest

    @property
    def has_valid_prices(self) -> bool:
        """Check whether at least one provider sent a usable price."""
        return any(d.is_valid_price for d in self.provider_details)

    def poster_candidates(self) -> list[str]:
        """Distinct non-empty poster URLs, in provider order."""
        candidates: list[str] = []
        for url in [d.poster_url for d in self.provider_details] + [self.poster]:
            if url and url not in candidates:
                candidates.append(url)
        return candidates


# =============================================================================
# PROVIDER HEALTH
# =============================================================================


class ProviderHealth(BaseModel):
    """Result of probing one provider.

    Attributes:
        provider_id: Provider identifier.
        provider: Provider display name.
        is_enabled: Whether the provider takes part in aggregation.
        is_healthy: Whether the probe succeeded.
        last_checked: Probe timestamp.
        error_message: Failure reason when unhealthy.
    """

    provider_id: str
    provider: str
    is_enabled: bool = True
    is_healthy: bool
    last_checked: datetime = Field(default_factory=utc_now)
    error_message: str | None = None
