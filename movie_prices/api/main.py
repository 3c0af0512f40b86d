"""FastAPI application entry point.

Creates and configures the movie price comparison REST API, wiring the
provider registry, provider client, result cache and aggregation engine
into application state.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from movie_prices.aggregation import MovieAggregator, PosterResolver
from movie_prices.api.routers import movies
from movie_prices.api.schemas import HealthResponse
from movie_prices.cache import MemoryResultCache
from movie_prices.monitoring.middleware import PrometheusMiddleware, mount_metrics
from movie_prices.providers import ProviderClient, ProviderRegistry
from movie_prices.settings import Settings, settings
from movie_prices.utils import setup_logger

logger = logging.getLogger(__name__)


# =============================================================================
# COMPONENT WIRING
# =============================================================================


def build_aggregator(http_client: httpx.AsyncClient, config: Settings = settings) -> MovieAggregator:
    """Assemble the aggregation core from settings.

    Args:
        http_client: Shared HTTP client for providers and poster probes.
        config: Application settings.

    Returns:
        Ready-to-use aggregator.
    """
    cache = MemoryResultCache(maxsize=config.aggregation.cache_max_entries)
    registry = ProviderRegistry(
        cache,
        http_client,
        source_url=config.providers.source_url,
        source_token=config.providers.source_token,
        cache_minutes=config.providers.cache_minutes,
        timeout_seconds=config.providers.timeout_seconds,
        fetch_attempts=config.providers.fetch_attempts,
        fallback_token=config.providers.fallback_token,
        fallback_base_url=config.providers.fallback_base_url,
    )
    client = ProviderClient(registry, http_client, token_header=config.providers.token_header)
    posters = PosterResolver(http_client, timeout_seconds=config.aggregation.poster_timeout_seconds)
    return MovieAggregator(
        registry,
        client,
        cache,
        posters,
        cache_minutes=config.aggregation.cache_minutes,
        sliding_minutes=config.aggregation.sliding_minutes,
        detail_concurrency=config.aggregation.detail_concurrency,
        match_on_year=config.aggregation.match_on_year,
        single_flight=config.aggregation.single_flight,
        resolve_posters=config.aggregation.resolve_posters,
    )


# =============================================================================
# LIFESPAN
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the aggregation core unless one was injected, and closes the
    shared HTTP client on shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None after startup tasks complete.
    """
    if getattr(app.state, "aggregator", None) is not None:
        yield
        return

    async with httpx.AsyncClient(follow_redirects=True) as http_client:
        app.state.aggregator = build_aggregator(http_client)
        logger.info("Movie aggregator ready (environment=%s)", settings.environment)
        yield
        app.state.aggregator = None


# =============================================================================
# APPLICATION FACTORY
# =============================================================================


def create_app(aggregator: MovieAggregator | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        aggregator: Pre-built aggregator (tests); built at startup when None.

    Returns:
        Configured FastAPI instance.
    """
    setup_logger(
        "movie_prices",
        level=settings.logging.level,
        log_dir=Path(settings.logging.log_dir),
        to_file=settings.logging.to_file,
    )
    app = FastAPI(
        title=settings.api.title,
        version=settings.api.version,
        description="Compare movie prices across providers",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    app.state.aggregator = aggregator
    _configure_cors(app)
    app.add_middleware(PrometheusMiddleware)
    mount_metrics(app)
    _register_exception_handlers(app)
    _register_routers(app)
    return app


def _configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware.

    Args:
        app: FastAPI application instance.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )


def _register_exception_handlers(app: FastAPI) -> None:
    """Render errors as ``{"error": ...}`` bodies.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "An unexpected error occurred"},
        )


def _register_routers(app: FastAPI) -> None:
    """Register API routers and root endpoints.

    Args:
        app: FastAPI application instance.
    """
    app.include_router(movies.router, prefix="/api")

    @app.get(
        "/api/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="Health check",
        description="Verify API is running and responsive.",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint.

        Returns:
            API status and version.
        """
        return HealthResponse(status="healthy", version=settings.api.version)


app = create_app()
