"""Aggregation engine for movie prices.

Fetches every enabled provider's movie list and movie details, folds them
into merged ``MovieSummary`` records and caches the result. A provider that
fails is logged and skipped; the caller always gets whatever was collected.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime

from movie_prices.aggregation.merger import ContributionEntry, DataMerger, ProviderContribution
from movie_prices.aggregation.posters import PosterResolver
from movie_prices.aggregation.schemas import MovieSummary, ProviderHealth, utc_now
from movie_prices.cache import ResultCache
from movie_prices.monitoring.metrics import AGGREGATION_DURATION, CACHE_LOOKUPS_TOTAL
from movie_prices.providers.client import ProviderClient
from movie_prices.providers.registry import ProviderRegistry
from movie_prices.providers.schemas import ExternalMovieSummary, ProviderConfig

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

MOVIES_CACHE_KEY = "movies_list"
"""Cache key of the aggregated movie list."""

SEARCH_FIELDS = ("title", "genre", "director", "actors")
"""Summary fields matched by ``search_movies``."""


# =============================================================================
# AGGREGATION STATISTICS
# =============================================================================


@dataclass
class AggregationStats:
    """Statistics of one aggregation pass.

    Attributes:
        start_time: Pass start timestamp.
        end_time: Pass end timestamp.
        providers: Enabled providers visited.
        failed_providers: Providers whose processing raised.
        empty_providers: Providers that returned no movies.
        failed_details: Detail calls that raised.
        movies: Summaries produced.
    """

    start_time: datetime | None = None
    end_time: datetime | None = None
    providers: int = 0
    failed_providers: int = 0
    empty_providers: int = 0
    failed_details: int = 0
    movies: int = 0

    @property
    def duration_seconds(self) -> float:
        """Calculate pass duration in seconds."""
        if not self.start_time or not self.end_time:
            return 0.0
        return round((self.end_time - self.start_time).total_seconds(), 2)

    def log_summary(self) -> None:
        """Log aggregation pass summary."""
        logger.info(
            "Aggregation complete in %.2fs: %d movies from %d providers (failed=%d, empty=%d)",
            self.duration_seconds,
            self.movies,
            self.providers,
            self.failed_providers,
            self.empty_providers,
        )


# =============================================================================
# MOVIE AGGREGATOR
# =============================================================================


class MovieAggregator:
    """Consumer-facing entry point of the aggregation core.

    Attributes:
        cache_minutes: Absolute lifetime of the cached movie list.
        sliding_minutes: Idle lifetime of the cached movie list (0 disables).
        stats: Statistics of the last aggregation pass.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        client: ProviderClient,
        cache: ResultCache,
        poster_resolver: PosterResolver | None = None,
        *,
        cache_minutes: int = 5,
        sliding_minutes: int = 2,
        detail_concurrency: int = 1,
        match_on_year: bool = False,
        single_flight: bool = True,
        resolve_posters: bool = True,
    ) -> None:
        self.cache_minutes = cache_minutes
        self.sliding_minutes = sliding_minutes
        self.stats = AggregationStats()
        self._registry = registry
        self._client = client
        self._cache = cache
        self._posters = poster_resolver
        self._detail_concurrency = max(1, detail_concurrency)
        self._merger = DataMerger(match_on_year=match_on_year)
        self._single_flight = single_flight
        self._resolve_posters = resolve_posters
        self._lock = asyncio.Lock()

    # =========================================================================
    # Public API
    # =========================================================================

    async def get_all_movies(self) -> list[MovieSummary]:
        """Return merged movies, from cache when fresh.

        Returns:
            Merged summaries; empty when no provider returned anything.
        """
        cached = self._cached_movies()
        if cached is not None:
            return cached

        if not self._single_flight:
            return await self._aggregate_and_cache()

        async with self._lock:
            cached = self._cached_movies(record=False)
            if cached is not None:
                return cached
            return await self._aggregate_and_cache()

    async def refresh_data(self) -> None:
        """Evict cached data, reload providers and warm the cache again."""
        logger.info("Refreshing movie data")
        self._cache.invalidate(MOVIES_CACHE_KEY)
        await self._registry.refresh()
        await self.get_all_movies()

    async def get_movie_detail(self, movie_id: str) -> MovieSummary | None:
        """Find a movie by any provider's native id.

        Args:
            movie_id: Provider-native movie id (e.g. ``cw0076759``).

        Returns:
            Copy of the summary with a resolved poster, or None.
        """
        for summary in await self.get_all_movies():
            if summary.has_movie_id(movie_id):
                return await self._with_poster(summary)
        return None

    async def search_movies(self, query: str) -> list[MovieSummary]:
        """Filter movies by a case-insensitive substring.

        Args:
            query: Text matched against title, genre, director and actors.

        Returns:
            Matching summaries ordered by title; all movies for a blank query.
        """
        movies = await self.get_all_movies()
        needle = query.strip().casefold()
        if needle:
            movies = [m for m in movies if _matches(m, needle)]
        return sorted(movies, key=lambda m: m.title.casefold())

    async def list_providers(self) -> list[ProviderConfig]:
        """Every configured provider, enabled or not."""
        return await self._registry.list_providers()

    async def get_provider_health(self) -> list[ProviderHealth]:
        """Probe every configured provider."""
        report: list[ProviderHealth] = []
        for provider in await self.list_providers():
            is_healthy, error = await self._client.check_health(provider.id)
            report.append(
                ProviderHealth(
                    provider_id=provider.id,
                    provider=provider.label,
                    is_enabled=provider.is_enabled,
                    is_healthy=is_healthy,
                    error_message=error,
                )
            )
        return report

    # =========================================================================
    # Cache
    # =========================================================================

    def _cached_movies(self, record: bool = True) -> list[MovieSummary] | None:
        cached = self._cache.get(MOVIES_CACHE_KEY)
        if record:
            CACHE_LOOKUPS_TOTAL.labels(result="miss" if cached is None else "hit").inc()
        if cached is None:
            return None
        logger.debug("Returning %d movies from cache", len(cached))
        return list(cached)

    async def _aggregate_and_cache(self) -> list[MovieSummary]:
        logger.info("Cache miss - fetching movies from external APIs")
        movies = await self._aggregate()

        sliding = self.sliding_minutes * 60.0 if self.sliding_minutes > 0 else None
        self._cache.set(
            MOVIES_CACHE_KEY,
            tuple(movies),
            absolute_ttl=self.cache_minutes * 60.0,
            sliding_ttl=sliding,
        )
        logger.info("Cached %d movies for %d minutes", len(movies), self.cache_minutes)
        return movies

    # =========================================================================
    # Aggregation Pass
    # =========================================================================

    async def _aggregate(self) -> list[MovieSummary]:
        """Run one full aggregation pass."""
        self.stats = AggregationStats(start_time=utc_now())
        started = time.perf_counter()

        providers = await self._registry.enabled_providers()
        self.stats.providers = len(providers)

        contributions: list[ProviderContribution] = []
        for provider in providers:
            try:
                contribution = await self._collect(provider)
            except Exception:
                self.stats.failed_providers += 1
                logger.exception("Error fetching movies from provider %s", provider.id)
                continue
            if not contribution.entries:
                self.stats.empty_providers += 1
            contributions.append(contribution)

        movies = self._merger.merge(contributions)
        if self._resolve_posters and self._posters is not None:
            for summary in movies:
                summary.poster = await self._posters.resolve_best_poster_url(summary.poster_candidates())

        self.stats.movies = len(movies)
        self.stats.end_time = utc_now()
        self.stats.log_summary()
        AGGREGATION_DURATION.observe(time.perf_counter() - started)
        return movies

    async def _collect(self, provider: ProviderConfig) -> ProviderContribution:
        """Fetch one provider's movie list and details."""
        stubs = await self._client.list_movies(provider.id)
        if not stubs:
            logger.info("No movies returned by provider %s", provider.id)
            return ProviderContribution(provider.id, provider.label)

        if self._detail_concurrency == 1:
            entries = [await self._fetch_entry(provider, stub) for stub in stubs]
        else:
            semaphore = asyncio.Semaphore(self._detail_concurrency)

            async def bounded(stub: ExternalMovieSummary) -> ContributionEntry:
                async with semaphore:
                    return await self._fetch_entry(provider, stub)

            entries = list(await asyncio.gather(*(bounded(stub) for stub in stubs)))

        return ProviderContribution(provider.id, provider.label, entries)

    async def _fetch_entry(self, provider: ProviderConfig, stub: ExternalMovieSummary) -> ContributionEntry:
        """Fetch one movie's detail; a failure keeps the list stub."""
        try:
            detail = await self._client.get_movie_detail(provider.id, stub.id)
        except Exception:
            self.stats.failed_details += 1
            logger.exception("Error fetching detail %s from provider %s", stub.id, provider.id)
            detail = None
        return ContributionEntry(stub=stub, detail=detail)

    async def _with_poster(self, summary: MovieSummary) -> MovieSummary:
        """Copy of ``summary`` whose poster is validated lazily if needed."""
        movie = summary.model_copy(deep=True)
        if not self._resolve_posters and self._posters is not None:
            movie.poster = await self._posters.resolve_best_poster_url(movie.poster_candidates())
        return movie


def _matches(movie: MovieSummary, needle: str) -> bool:
    return any(needle in (getattr(movie, name) or "").casefold() for name in SEARCH_FIELDS)
