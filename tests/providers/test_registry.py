"""Unit tests for the provider registry."""

from unittest.mock import patch

import httpx
import pytest

from movie_prices.cache import MemoryResultCache
from movie_prices.providers.registry import (
    FALLBACK_CACHE_MINUTES,
    PROVIDERS_CACHE_KEY,
    ProviderRegistry,
    build_fallback_providers,
    parse_providers_payload,
)

pytestmark = pytest.mark.unit

CONFIG_URL = "https://config.test/api/providers"


def _make_provider_payload(**overrides) -> dict:
    base = {
        "id": "cinemaworld",
        "name": "Cinemaworld",
        "displayName": "Cinema World",
        "baseUrl": "https://movies.test/api/cinemaworld",
        "apiToken": "secret",
        "isEnabled": True,
        "priority": 1,
        "timeoutSeconds": 10,
        "headers": {"X-Client": "tests"},
        "endpoints": {"movies": "/movies", "movieDetail": "/movie/{id}"},
        "lastUpdated": "2024-01-01T00:00:00Z",
    }
    base.update(overrides)
    return base


class _ConfigService:
    """Scripted configuration service recording its calls."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        response = self.responses[min(self.calls, len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


def _make_registry(service: _ConfigService, cache=None, **overrides) -> ProviderRegistry:
    kwargs = {
        "source_url": CONFIG_URL,
        "source_token": "config-token",
        "fetch_attempts": 3,
        "retry_wait_seconds": 0,
        "fallback_token": "fallback-token",
    }
    kwargs.update(overrides)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(service))
    return ProviderRegistry(cache if cache is not None else MemoryResultCache(), http_client, **kwargs)


# -------------------------------------------------------------------------
# Fallback providers
# -------------------------------------------------------------------------


class TestFallbackProviders:
    @staticmethod
    def test_two_enabled_providers() -> None:
        providers = build_fallback_providers("token")
        assert [p.id for p in providers] == ["cinemaworld", "filmworld"]
        assert all(p.is_enabled and p.api_token == "token" for p in providers)

    @staticmethod
    def test_urls_follow_base_url() -> None:
        providers = build_fallback_providers(base_url="https://example.test/api/")
        assert providers[0].base_url == "https://example.test/api/cinemaworld"
        assert providers[1].build_url(providers[1].endpoints.movie_detail, "fw1") == (
            "https://example.test/api/filmworld/movie/fw1"
        )

    @staticmethod
    def test_priority_order() -> None:
        providers = build_fallback_providers()
        assert [p.priority for p in providers] == [1, 2]


class TestParseProvidersPayload:
    @staticmethod
    def test_wrapped_payload() -> None:
        providers = parse_providers_payload({"providers": [_make_provider_payload()]})
        assert providers[0].display_name == "Cinema World"
        assert providers[0].endpoints.movie_detail == "/movie/{id}"
        assert providers[0].headers == {"X-Client": "tests"}

    @staticmethod
    def test_bare_list_payload() -> None:
        providers = parse_providers_payload([_make_provider_payload()])
        assert providers[0].id == "cinemaworld"

    @staticmethod
    def test_scalar_payload_rejected() -> None:
        with pytest.raises(ValueError):
            parse_providers_payload("nope")

    @staticmethod
    def test_missing_base_url_rejected() -> None:
        with pytest.raises(ValueError):
            parse_providers_payload([_make_provider_payload(baseUrl="")])


# -------------------------------------------------------------------------
# Registry
# -------------------------------------------------------------------------


class TestListProviders:
    @staticmethod
    async def test_fetches_and_sorts_by_priority() -> None:
        payload = {
            "providers": [
                _make_provider_payload(id="filmworld", priority=2),
                _make_provider_payload(id="cinemaworld", priority=1),
            ]
        }
        registry = _make_registry(_ConfigService(httpx.Response(200, json=payload)))
        providers = await registry.list_providers()
        assert [p.id for p in providers] == ["cinemaworld", "filmworld"]

    @staticmethod
    async def test_sends_bearer_token() -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[_make_provider_payload()])

        registry = _make_registry(handler)
        await registry.list_providers()
        assert seen[0].headers["Authorization"] == "Bearer config-token"

    @staticmethod
    async def test_snapshot_is_cached() -> None:
        service = _ConfigService(httpx.Response(200, json=[_make_provider_payload()]))
        registry = _make_registry(service)
        await registry.list_providers()
        await registry.list_providers()
        assert service.calls == 1

    @staticmethod
    async def test_snapshot_expires_after_cache_minutes(fake_clock) -> None:
        service = _ConfigService(httpx.Response(200, json=[_make_provider_payload()]))
        registry = _make_registry(service, cache=MemoryResultCache(timer=fake_clock), cache_minutes=15)
        await registry.list_providers()
        fake_clock.advance(15 * 60)
        await registry.list_providers()
        assert service.calls == 2

    @staticmethod
    def test_missing_fallback_token_warns() -> None:
        with patch("movie_prices.providers.registry.logger") as mock_logger:
            _make_registry(_ConfigService(httpx.Response(503)), fallback_token="")
        mock_logger.warning.assert_called_once()

    @staticmethod
    def test_fallback_token_set_does_not_warn() -> None:
        with patch("movie_prices.providers.registry.logger") as mock_logger:
            _make_registry(_ConfigService(httpx.Response(503)))
        mock_logger.warning.assert_not_called()

    @staticmethod
    async def test_unconfigured_source_serves_fallback() -> None:
        service = _ConfigService(httpx.Response(500))
        registry = _make_registry(service, source_url="")
        providers = await registry.list_providers()
        assert [p.id for p in providers] == ["cinemaworld", "filmworld"]
        assert providers[0].api_token == "fallback-token"
        assert service.calls == 0


class TestFallbackOnFailure:
    @staticmethod
    async def test_error_status_falls_back() -> None:
        registry = _make_registry(_ConfigService(httpx.Response(503)))
        providers = await registry.list_providers()
        assert [p.id for p in providers] == ["cinemaworld", "filmworld"]

    @staticmethod
    async def test_malformed_json_falls_back() -> None:
        registry = _make_registry(_ConfigService(httpx.Response(200, content=b"<html>")))
        providers = await registry.list_providers()
        assert len(providers) == 2

    @staticmethod
    async def test_invalid_schema_falls_back() -> None:
        registry = _make_registry(_ConfigService(httpx.Response(200, json=[{"id": "x"}])))
        providers = await registry.list_providers()
        assert [p.id for p in providers] == ["cinemaworld", "filmworld"]

    @staticmethod
    async def test_empty_list_falls_back() -> None:
        registry = _make_registry(_ConfigService(httpx.Response(200, json={"providers": []})))
        providers = await registry.list_providers()
        assert len(providers) == 2

    @staticmethod
    async def test_unreachable_source_retried_then_falls_back() -> None:
        service = _ConfigService(httpx.ConnectError("refused"))
        registry = _make_registry(service, fetch_attempts=3)
        providers = await registry.list_providers()
        assert service.calls == 3
        assert len(providers) == 2

    @staticmethod
    async def test_transient_failure_recovers_on_retry() -> None:
        service = _ConfigService(
            httpx.ConnectError("refused"),
            httpx.Response(200, json=[_make_provider_payload(id="custom")]),
        )
        registry = _make_registry(service)
        providers = await registry.list_providers()
        assert [p.id for p in providers] == ["custom"]
        assert service.calls == 2

    @staticmethod
    async def test_fallback_is_cached_briefly(fake_clock) -> None:
        cache = MemoryResultCache(timer=fake_clock)
        service = _ConfigService(httpx.Response(503))
        registry = _make_registry(service, cache=cache, cache_minutes=15)
        await registry.list_providers()
        assert [p.id for p in cache.get(PROVIDERS_CACHE_KEY)] == ["cinemaworld", "filmworld"]
        await registry.get_provider("filmworld")
        assert service.calls == 1
        fake_clock.advance(FALLBACK_CACHE_MINUTES * 60)
        await registry.list_providers()
        assert service.calls == 2

    @staticmethod
    async def test_outage_retries_once_per_sequence() -> None:
        service = _ConfigService(httpx.ConnectError("refused"))
        registry = _make_registry(service, fetch_attempts=3)
        for _ in range(5):
            await registry.get_provider("cinemaworld")
        assert service.calls == 3


class TestLookups:
    @staticmethod
    async def test_get_provider_is_case_insensitive() -> None:
        registry = _make_registry(_ConfigService(httpx.Response(200, json=[_make_provider_payload()])))
        provider = await registry.get_provider("CinemaWorld")
        assert provider is not None
        assert provider.id == "cinemaworld"

    @staticmethod
    async def test_get_unknown_provider() -> None:
        registry = _make_registry(_ConfigService(httpx.Response(200, json=[_make_provider_payload()])))
        assert await registry.get_provider("netflix") is None

    @staticmethod
    async def test_is_enabled() -> None:
        payload = [
            _make_provider_payload(id="cinemaworld"),
            _make_provider_payload(id="filmworld", isEnabled=False),
        ]
        registry = _make_registry(_ConfigService(httpx.Response(200, json=payload)))
        assert await registry.is_enabled("cinemaworld") is True
        assert await registry.is_enabled("filmworld") is False
        assert await registry.is_enabled("unknown") is False

    @staticmethod
    async def test_enabled_providers_filters_disabled() -> None:
        payload = [
            _make_provider_payload(id="cinemaworld"),
            _make_provider_payload(id="filmworld", isEnabled=False),
        ]
        registry = _make_registry(_ConfigService(httpx.Response(200, json=payload)))
        assert [p.id for p in await registry.enabled_providers()] == ["cinemaworld"]


class TestRefresh:
    @staticmethod
    async def test_refresh_replaces_snapshot() -> None:
        service = _ConfigService(
            httpx.Response(200, json=[_make_provider_payload(id="old")]),
            httpx.Response(200, json=[_make_provider_payload(id="new")]),
        )
        registry = _make_registry(service)
        assert [p.id for p in await registry.list_providers()] == ["old"]

        refreshed = await registry.refresh()

        assert [p.id for p in refreshed] == ["new"]
        assert [p.id for p in await registry.list_providers()] == ["new"]
        assert service.calls == 2
