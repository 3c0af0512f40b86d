"""Provider registry, provider client and provider wire schemas."""

from movie_prices.providers.client import ProviderClient
from movie_prices.providers.registry import (
    PROVIDERS_CACHE_KEY,
    ProviderRegistry,
    build_fallback_providers,
)
from movie_prices.providers.schemas import (
    ExternalMovieDetail,
    ExternalMovieSummary,
    ProviderConfig,
    ProviderEndpoints,
)

__all__ = [
    "PROVIDERS_CACHE_KEY",
    "ExternalMovieDetail",
    "ExternalMovieSummary",
    "ProviderClient",
    "ProviderConfig",
    "ProviderEndpoints",
    "ProviderRegistry",
    "build_fallback_providers",
]
