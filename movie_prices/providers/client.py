"""HTTP client for third-party movie providers.

Every provider exposes a list endpoint and a detail endpoint. Failures of
any kind are logged and reported as "no data" (an empty list or None) so a
single provider outage never aborts an aggregation pass. No retries happen
at this layer.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from movie_prices.monitoring.metrics import PROVIDER_FAILURES_TOTAL
from movie_prices.providers.registry import ProviderRegistry
from movie_prices.providers.schemas import (
    ExternalMovieDetail,
    ExternalMovieSummary,
    ProviderConfig,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_TOKEN_HEADER = "x-access-token"
"""Header carrying the provider API token."""

OPERATION_LIST = "list_movies"
OPERATION_DETAIL = "movie_detail"
OPERATION_HEALTH = "health"


# =============================================================================
# CLIENT
# =============================================================================


class ProviderClient:
    """Calls provider list, detail and health endpoints.

    Attributes:
        token_header: Header name used for the provider token.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        http_client: httpx.AsyncClient,
        *,
        token_header: str = DEFAULT_TOKEN_HEADER,
    ) -> None:
        self.token_header = token_header
        self._registry = registry
        self._http = http_client

    # =========================================================================
    # Public API
    # =========================================================================

    async def list_movies(self, provider_id: str) -> list[ExternalMovieSummary]:
        """Fetch a provider's movie list.

        Args:
            provider_id: Provider identifier.

        Returns:
            Movie stubs; empty on any failure. Malformed entries are skipped.
        """
        provider = await self._usable_provider(provider_id, OPERATION_LIST)
        if provider is None:
            return []

        url = provider.build_url(provider.endpoints.movies)
        payload = await self._get_json(provider, url, OPERATION_LIST)
        if payload is None:
            return []

        entries = _extract_movie_entries(payload)
        if entries is None:
            logger.warning("Unexpected movie list payload from %s", provider.id)
            self._record_failure(provider.id, OPERATION_LIST)
            return []

        movies: list[ExternalMovieSummary] = []
        for entry in entries:
            try:
                movies.append(ExternalMovieSummary.model_validate(entry))
            except ValidationError as e:
                logger.debug("Skipping malformed movie from %s: %s", provider.id, e)

        logger.info("Fetched %d movies from %s", len(movies), provider.id)
        return movies

    async def get_movie_detail(self, provider_id: str, movie_id: str) -> ExternalMovieDetail | None:
        """Fetch one movie's detail record.

        Args:
            provider_id: Provider identifier.
            movie_id: Provider-native movie id.

        Returns:
            Detail record, or None on any failure.
        """
        provider = await self._usable_provider(provider_id, OPERATION_DETAIL)
        if provider is None:
            return None

        url = provider.build_url(provider.endpoints.movie_detail, movie_id)
        payload = await self._get_json(provider, url, OPERATION_DETAIL)
        if payload is None:
            return None

        try:
            return ExternalMovieDetail.model_validate(payload)
        except ValidationError as e:
            logger.warning("Malformed detail for %s from %s: %s", movie_id, provider.id, e)
            self._record_failure(provider.id, OPERATION_DETAIL)
            return None

    async def check_health(self, provider_id: str) -> tuple[bool, str | None]:
        """Probe a provider's health (or list) endpoint.

        Args:
            provider_id: Provider identifier.

        Returns:
            ``(is_healthy, error_message)``.
        """
        provider = await self._registry.get_provider(provider_id)
        if provider is None:
            return False, "Provider not configured"

        template = provider.endpoints.health or provider.endpoints.movies
        url = provider.build_url(template)
        try:
            response = await self._http.get(
                url,
                headers=self._headers(provider),
                timeout=provider.timeout_seconds,
            )
        except httpx.HTTPError as e:
            self._record_failure(provider.id, OPERATION_HEALTH)
            return False, str(e) or type(e).__name__

        if response.is_success:
            return True, None
        self._record_failure(provider.id, OPERATION_HEALTH)
        return False, f"HTTP {response.status_code}"

    # =========================================================================
    # Internals
    # =========================================================================

    async def _usable_provider(self, provider_id: str, operation: str) -> ProviderConfig | None:
        """Resolve a provider that is configured, enabled and has a token."""
        provider = await self._registry.get_provider(provider_id)
        if provider is None:
            logger.warning("Provider %s is not configured", provider_id)
        elif not provider.is_enabled:
            logger.info("Provider %s is disabled, skipping %s", provider_id, operation)
            return None
        elif not provider.api_token:
            logger.warning("No API token configured for provider %s", provider_id)
        else:
            return provider

        self._record_failure(provider_id, operation)
        return None

    def _headers(self, provider: ProviderConfig) -> dict[str, str]:
        headers = {"Accept": "application/json", **provider.headers}
        if provider.api_token:
            headers[self.token_header] = provider.api_token
        return headers

    async def _get_json(self, provider: ProviderConfig, url: str, operation: str) -> Any | None:
        """GET ``url`` and decode JSON, returning None on failure."""
        try:
            response = await self._http.get(
                url,
                headers=self._headers(provider),
                timeout=provider.timeout_seconds,
            )
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException:
            logger.warning("Timeout calling %s (%s)", provider.id, url)
        except httpx.HTTPStatusError as e:
            logger.warning("HTTP %d from %s (%s)", e.response.status_code, provider.id, url)
        except httpx.HTTPError as e:
            logger.warning("Request to %s failed: %s", provider.id, e)
        except ValueError as e:
            logger.warning("Invalid JSON from %s (%s): %s", provider.id, url, e)

        self._record_failure(provider.id, operation)
        return None

    @staticmethod
    def _record_failure(provider_id: str, operation: str) -> None:
        PROVIDER_FAILURES_TOTAL.labels(provider=provider_id, operation=operation).inc()


def _extract_movie_entries(payload: Any) -> list[Any] | None:
    """Return the raw movie entries of a list payload, or None if malformed."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        movies = payload.get("Movies", payload.get("movies"))
        if movies is None:
            return []
        if isinstance(movies, list):
            return movies
    return None
