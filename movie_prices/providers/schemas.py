"""Pydantic schemas for provider configuration and provider payloads.

Provider configuration arrives from the configuration service in
camelCase; movie payloads arrive from the providers in PascalCase.
Both are normalized to snake_case attributes here.
"""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# =============================================================================
# PROVIDER CONFIGURATION
# =============================================================================


class ProviderEndpoints(BaseModel):
    """Endpoint templates relative to a provider base URL.

    Attributes:
        movies: List endpoint (e.g. ``/movies``).
        movie_detail: Detail endpoint with an ``{id}`` placeholder.
        health: Optional health endpoint.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    movies: str = "/movies"
    movie_detail: str = "/movie/{id}"
    health: str | None = None


class ProviderConfig(BaseModel):
    """Immutable snapshot of one provider's configuration.

    Attributes:
        id: Provider identifier (e.g. ``cinemaworld``).
        name: Short provider name.
        display_name: Human readable name shown next to prices.
        base_url: Base URL all endpoint templates are joined to.
        api_token: Token sent in the provider token header.
        is_enabled: Whether the aggregation pass includes this provider.
        priority: Ordering hint (lower first).
        timeout_seconds: Per-call timeout.
        headers: Extra headers sent on every call.
        endpoints: Endpoint templates.
        last_updated: When the configuration was last changed.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(min_length=1)
    name: str = ""
    display_name: str = ""
    base_url: str = Field(min_length=1)
    api_token: str = ""
    is_enabled: bool = True
    priority: int = 0
    timeout_seconds: float = Field(default=30.0, gt=0)
    headers: dict[str, str] = Field(default_factory=dict)
    endpoints: ProviderEndpoints = Field(default_factory=ProviderEndpoints)
    last_updated: datetime | None = None

    @property
    def label(self) -> str:
        """Name shown to users, falling back to the id."""
        return self.display_name or self.name or self.id

    def build_url(self, template: str, movie_id: str | None = None) -> str:
        """Join the base URL and an endpoint template.

        Args:
            template: Endpoint template, optionally containing ``{id}``.
            movie_id: Value substituted for ``{id}``.

        Returns:
            Absolute request URL.
        """
        path = template.replace("{id}", movie_id) if movie_id is not None else template
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


class ProvidersResponse(BaseModel):
    """Configuration service payload."""

    model_config = ConfigDict(extra="ignore")

    providers: list[ProviderConfig] = Field(default_factory=list)


# =============================================================================
# PROVIDER PAYLOADS
# =============================================================================


def _blank_to_none(value: Any) -> Any:
    """Normalize empty strings and ``N/A`` markers to None."""
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or stripped.upper() == "N/A":
            return None
        return stripped
    return value


class ExternalMovieSummary(BaseModel):
    """One entry of a provider's movie list.

    Attributes:
        title: Movie title (merge key).
        year: Release year as published by the provider.
        id: Provider-native movie id.
        type: Content type (``movie``).
        poster: Poster URL.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    title: str = Field(alias="Title", min_length=1)
    year: str | None = Field(default=None, alias="Year")
    id: str = Field(alias="ID", min_length=1)
    type: str | None = Field(default=None, alias="Type")
    poster: str | None = Field(default=None, alias="Poster")

    @field_validator("year", "type", "poster", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty strings as absent."""
        return _blank_to_none(v)


class ExternalMovieDetail(BaseModel):
    """A provider's full record for one movie.

    ``price`` stays a raw string; parsing happens at merge time so an
    unparseable value never rejects the whole record.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str | None = Field(default=None, alias="Title")
    year: str | None = Field(default=None, alias="Year")
    rated: str | None = Field(default=None, alias="Rated")
    released: str | None = Field(default=None, alias="Released")
    runtime: str | None = Field(default=None, alias="Runtime")
    genre: str | None = Field(default=None, alias="Genre")
    director: str | None = Field(default=None, alias="Director")
    writer: str | None = Field(default=None, alias="Writer")
    actors: str | None = Field(default=None, alias="Actors")
    plot: str | None = Field(default=None, alias="Plot")
    language: str | None = Field(default=None, alias="Language")
    country: str | None = Field(default=None, alias="Country")
    awards: str | None = Field(default=None, alias="Awards")
    poster: str | None = Field(default=None, alias="Poster")
    metascore: str | None = Field(default=None, alias="Metascore")
    rating: str | None = Field(
        default=None,
        validation_alias=AliasChoices("Rating", "ImdbRating", "imdbRating"),
    )
    votes: str | None = Field(
        default=None,
        validation_alias=AliasChoices("Votes", "ImdbVotes", "imdbVotes"),
    )
    id: str | None = Field(default=None, alias="ID")
    type: str | None = Field(default=None, alias="Type")
    price: str | None = Field(default=None, alias="Price")

    @field_validator("*", mode="before")
    @classmethod
    def normalize_value(cls, v: Any) -> Any:
        """Coerce numbers to strings and blanks to None."""
        if isinstance(v, bool):
            return str(v).lower()
        if isinstance(v, int | float):
            return str(v)
        return _blank_to_none(v)
