"""Pydantic schemas for API responses.

Shapes the aggregation core's ``MovieSummary`` records into list and
detail views. Prices are exposed as JSON numbers.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from pydantic import BaseModel, Field

from movie_prices.aggregation.schemas import MovieProviderDetail, MovieSummary, utc_now

# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(examples=["healthy"])
    version: str = Field(examples=["1.0.0"])
    timestamp: datetime = Field(default_factory=utc_now)


class ProviderHealthResponse(BaseModel):
    """Health of one movie provider."""

    provider_id: str = Field(examples=["cinemaworld"])
    provider: str = Field(examples=["Cinemaworld"])
    is_enabled: bool
    is_healthy: bool
    last_checked: datetime
    error_message: str | None = None


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


# =============================================================================
# PRICES
# =============================================================================


def _as_number(price: Decimal | None) -> float | None:
    return float(price) if price is not None else None


class MoviePriceResponse(BaseModel):
    """One provider's price for a movie."""

    provider_id: str = Field(examples=["filmworld"])
    movie_id: str = Field(examples=["fw0076759"])
    provider: str = Field(examples=["Filmworld"])
    price: float | None = Field(default=None, examples=[25.99])
    poster_url: str | None = None
    updated_at: datetime
    is_stale: bool = False

    @classmethod
    def from_detail(
        cls,
        detail: MovieProviderDetail,
        stale_after: timedelta | None = None,
    ) -> "MoviePriceResponse":
        """Build a price row from a provider detail.

        Args:
            detail: Provider detail of the movie.
            stale_after: Age after which the row is flagged stale.

        Returns:
            Price row.
        """
        return cls(
            provider_id=detail.provider_id,
            movie_id=detail.movie_id,
            provider=detail.provider,
            price=_as_number(detail.price),
            poster_url=detail.poster_url,
            updated_at=detail.updated_at,
            is_stale=detail.is_stale(stale_after) if stale_after else False,
        )


# =============================================================================
# MOVIES
# =============================================================================


class MovieComparison(BaseModel):
    """List view of a movie with its prices."""

    id: str | None = Field(default=None, examples=["cw0076759"])
    title: str = Field(examples=["Star Wars: Episode IV - A New Hope"])
    year: str | None = None
    genre: str | None = None
    director: str | None = None
    actors: str | None = None
    plot: str | None = None
    poster: str | None = None
    rating: str | None = None
    prices: list[MoviePriceResponse] = Field(default_factory=list)
    cheapest_price: MoviePriceResponse | None = None
    has_valid_prices: bool = False

    @classmethod
    def from_summary(
        cls,
        summary: MovieSummary,
        stale_after: timedelta | None = None,
    ) -> "MovieComparison":
        """Build the list view of a summary."""
        return cls(**_common_fields(summary, stale_after))


class MovieDetailResponse(MovieComparison):
    """Detail view of a movie with every descriptive field."""

    type: str | None = None
    rated: str | None = None
    released: str | None = None
    runtime: str | None = None
    writer: str | None = None
    language: str | None = None
    country: str | None = None
    awards: str | None = None
    metascore: str | None = None
    votes: str | None = None
    updated_at: datetime

    @classmethod
    def from_summary(
        cls,
        summary: MovieSummary,
        stale_after: timedelta | None = None,
    ) -> "MovieDetailResponse":
        """Build the detail view of a summary."""
        return cls(
            **_common_fields(summary, stale_after),
            type=summary.type,
            rated=summary.rated,
            released=summary.released,
            runtime=summary.runtime,
            writer=summary.writer,
            language=summary.language,
            country=summary.country,
            awards=summary.awards,
            metascore=summary.metascore,
            votes=summary.votes,
            updated_at=summary.updated_at,
        )


def _common_fields(summary: MovieSummary, stale_after: timedelta | None) -> dict:
    """Fields shared by the list and detail views."""
    cheapest = summary.cheapest_price()
    return {
        "id": summary.provider_details[0].movie_id if summary.provider_details else None,
        "title": summary.title,
        "year": summary.year,
        "genre": summary.genre,
        "director": summary.director,
        "actors": summary.actors,
        "plot": summary.plot,
        "poster": summary.poster,
        "rating": summary.rating,
        "prices": [MoviePriceResponse.from_detail(d, stale_after) for d in summary.provider_details],
        "cheapest_price": MoviePriceResponse.from_detail(cheapest, stale_after) if cheapest else None,
        "has_valid_prices": summary.has_valid_prices,
    }
