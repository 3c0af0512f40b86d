"""Provider registry backed by the configuration service.

Serves the configured provider list from a cached snapshot. The snapshot is
replaced whole on refresh and never mutated. When the configuration service
is unreachable or returns garbage, a built-in provider set is served instead
so the aggregation pass always has somewhere to go.
"""

import asyncio
import logging
from typing import Any

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from movie_prices.cache import ResultCache
from movie_prices.providers.schemas import ProviderConfig, ProviderEndpoints, ProvidersResponse

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

PROVIDERS_CACHE_KEY = "api_providers"
"""Cache key of the provider snapshot."""

DEFAULT_FALLBACK_BASE_URL = "https://webjetapitest.azurewebsites.net/api"
"""Base URL shared by the built-in providers."""

DEFAULT_RETRY_WAIT_SECONDS = 1.0
"""Base of the exponential backoff between configuration fetch attempts."""

FALLBACK_CACHE_MINUTES = 1
"""Upper bound on how long a fallback snapshot is served before retrying the source."""


# =============================================================================
# FALLBACK PROVIDERS
# =============================================================================


def build_fallback_providers(
    api_token: str = "",
    base_url: str = DEFAULT_FALLBACK_BASE_URL,
) -> list[ProviderConfig]:
    """Build the built-in provider set.

    Args:
        api_token: Token sent to both providers.
        base_url: Base URL the provider ids are appended to.

    Returns:
        Cinemaworld and Filmworld configurations, in priority order.
    """
    base_url = base_url.rstrip("/")
    endpoints = ProviderEndpoints(movies="/movies", movie_detail="/movie/{id}")
    return [
        ProviderConfig(
            id="cinemaworld",
            name="Cinemaworld",
            display_name="Cinemaworld",
            base_url=f"{base_url}/cinemaworld",
            api_token=api_token,
            is_enabled=True,
            priority=1,
            timeout_seconds=30,
            endpoints=endpoints,
        ),
        ProviderConfig(
            id="filmworld",
            name="Filmworld",
            display_name="Filmworld",
            base_url=f"{base_url}/filmworld",
            api_token=api_token,
            is_enabled=True,
            priority=2,
            timeout_seconds=30,
            endpoints=endpoints,
        ),
    ]


def parse_providers_payload(payload: Any) -> list[ProviderConfig]:
    """Validate a configuration service payload.

    Accepts ``{"providers": [...]}`` or a bare list.

    Raises:
        ValueError: If the payload is malformed (``ValidationError`` included).
    """
    if isinstance(payload, list):
        payload = {"providers": payload}
    if not isinstance(payload, dict):
        raise ValueError(f"Unexpected provider payload type: {type(payload).__name__}")
    return ProvidersResponse.model_validate(payload).providers


# =============================================================================
# REGISTRY
# =============================================================================


class ProviderRegistry:
    """Cached view over the configured movie providers.

    Attributes:
        source_url: Configuration service URL (empty serves the fallback set).
        cache_minutes: Snapshot lifetime.
    """

    def __init__(
        self,
        cache: ResultCache,
        http_client: httpx.AsyncClient,
        *,
        source_url: str = "",
        source_token: str = "",
        cache_minutes: int = 15,
        timeout_seconds: float = 30.0,
        fetch_attempts: int = 3,
        retry_wait_seconds: float = DEFAULT_RETRY_WAIT_SECONDS,
        fallback_token: str = "",
        fallback_base_url: str = DEFAULT_FALLBACK_BASE_URL,
    ) -> None:
        self.source_url = source_url
        self.cache_minutes = cache_minutes
        self._cache = cache
        self._http = http_client
        self._source_token = source_token
        self._timeout = timeout_seconds
        self._fetch_attempts = fetch_attempts
        self._retry_wait = retry_wait_seconds
        self._fallback_token = fallback_token
        self._fallback_base_url = fallback_base_url
        self._lock = asyncio.Lock()

        if not fallback_token:
            logger.warning(
                "No fallback provider token set (PROVIDER_FALLBACK_TOKEN); "
                "built-in providers will be skipped"
            )

    # =========================================================================
    # Public API
    # =========================================================================

    async def list_providers(self) -> list[ProviderConfig]:
        """Return every configured provider, enabled or not.

        Returns:
            Cached snapshot when fresh, otherwise a freshly fetched one.
            Never raises; falls back to the built-in set.
        """
        cached = self._cache.get(PROVIDERS_CACHE_KEY)
        if cached is not None:
            return list(cached)

        async with self._lock:
            cached = self._cache.get(PROVIDERS_CACHE_KEY)
            if cached is not None:
                return list(cached)
            return await self._load()

    async def get_provider(self, provider_id: str) -> ProviderConfig | None:
        """Find a provider by id, ignoring case."""
        wanted = provider_id.casefold()
        for provider in await self.list_providers():
            if provider.id.casefold() == wanted:
                return provider
        return None

    async def is_enabled(self, provider_id: str) -> bool:
        """Check whether a provider exists and is enabled."""
        provider = await self.get_provider(provider_id)
        return provider is not None and provider.is_enabled

    async def enabled_providers(self) -> list[ProviderConfig]:
        """Return enabled providers in registry order."""
        return [p for p in await self.list_providers() if p.is_enabled]

    async def refresh(self) -> list[ProviderConfig]:
        """Drop the cached snapshot and fetch a new one eagerly."""
        async with self._lock:
            self._cache.invalidate(PROVIDERS_CACHE_KEY)
            logger.info("Provider configuration cache cleared")
            return await self._load()

    # =========================================================================
    # Loading
    # =========================================================================

    async def _load(self) -> list[ProviderConfig]:
        """Fetch, sort and cache the provider list, or fall back."""
        fallback = build_fallback_providers(self._fallback_token, self._fallback_base_url)

        if not self.source_url:
            logger.debug("No provider configuration URL set, serving built-in providers")
            return fallback

        try:
            providers = await self._fetch_with_retry()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(
                "Provider configuration unavailable from %s, using fallback providers: %s",
                self.source_url,
                e,
            )
            return self._cache_fallback(fallback)

        if not providers:
            logger.error("Provider configuration service returned no providers, using fallback")
            return self._cache_fallback(fallback)

        providers.sort(key=lambda p: p.priority)
        self._cache.set(PROVIDERS_CACHE_KEY, tuple(providers), absolute_ttl=self.cache_minutes * 60.0)
        logger.info(
            "Loaded %d providers from configuration service (cached %d minutes)",
            len(providers),
            self.cache_minutes,
        )
        return providers

    def _cache_fallback(self, fallback: list[ProviderConfig]) -> list[ProviderConfig]:
        """Cache the fallback set briefly so an outage costs one fetch sequence."""
        minutes = min(self.cache_minutes, FALLBACK_CACHE_MINUTES)
        self._cache.set(PROVIDERS_CACHE_KEY, tuple(fallback), absolute_ttl=minutes * 60.0)
        return fallback

    async def _fetch_with_retry(self) -> list[ProviderConfig]:
        """Fetch the provider list, retrying transport failures.

        Raises:
            httpx.HTTPError: On final transport failure or error status.
            ValueError: On a malformed payload.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError),
            stop=stop_after_attempt(self._fetch_attempts),
            wait=wait_exponential(multiplier=self._retry_wait, max=10),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._fetch_once()
        return []

    async def _fetch_once(self) -> list[ProviderConfig]:
        """Single GET against the configuration service."""
        headers = {"Accept": "application/json"}
        if self._source_token:
            headers["Authorization"] = f"Bearer {self._source_token}"

        response = await self._http.get(self.source_url, headers=headers, timeout=self._timeout)
        response.raise_for_status()

        try:
            return parse_providers_payload(response.json())
        except ValidationError as e:
            raise ValueError(f"Invalid provider configuration: {e.error_count()} errors") from e
