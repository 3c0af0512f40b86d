"""Movie endpoints for REST API.

Thin layer over ``MovieAggregator``: lists merged movies with their
provider prices, searches them, returns one movie and triggers refreshes.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status

from movie_prices.api.dependencies import Aggregator, StaleAfter
from movie_prices.api.schemas import (
    MessageResponse,
    MovieComparison,
    MovieDetailResponse,
    ProviderHealthResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Movies"])


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.get(
    "/movies",
    response_model=list[MovieComparison],
    summary="List movies",
    description="All movies merged across providers with their prices.",
)
async def list_movies(aggregator: Aggregator, stale_after: StaleAfter) -> list[MovieComparison]:
    """Get every merged movie.

    Args:
        aggregator: Aggregation engine.
        stale_after: Age after which a price is flagged stale.

    Returns:
        Movies with per-provider prices and the cheapest price.
    """
    movies = await aggregator.get_all_movies()
    return [MovieComparison.from_summary(m, stale_after) for m in movies]


@router.get(
    "/movies/search",
    response_model=list[MovieComparison],
    summary="Search movies",
    description="Case-insensitive match on title, genre, director and actors.",
)
async def search_movies(
    aggregator: Aggregator,
    stale_after: StaleAfter,
    q: Annotated[str, Query(max_length=200)] = "",
) -> list[MovieComparison]:
    """Filter merged movies by text.

    Args:
        aggregator: Aggregation engine.
        stale_after: Age after which a price is flagged stale.
        q: Search text; blank returns every movie.

    Returns:
        Matching movies ordered by title.
    """
    movies = await aggregator.search_movies(q)
    return [MovieComparison.from_summary(m, stale_after) for m in movies]


@router.get(
    "/movies/{movie_id}",
    response_model=MovieDetailResponse,
    summary="Get movie details",
    description="One movie, looked up by any provider's movie id.",
)
async def get_movie(movie_id: str, aggregator: Aggregator, stale_after: StaleAfter) -> MovieDetailResponse:
    """Get a movie by provider movie id.

    Args:
        movie_id: Provider-native movie id.
        aggregator: Aggregation engine.
        stale_after: Age after which a price is flagged stale.

    Returns:
        Detailed movie with resolved poster.

    Raises:
        HTTPException: 404 if no provider knows the id.
    """
    movie = await aggregator.get_movie_detail(movie_id)
    if movie is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Movie with ID {movie_id} not found",
        )
    return MovieDetailResponse.from_summary(movie, stale_after)


@router.post(
    "/refresh",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Refresh movie data",
    description="Evict cached data and re-aggregate in the background.",
)
async def refresh(aggregator: Aggregator, background_tasks: BackgroundTasks) -> MessageResponse:
    """Schedule a cache refresh.

    Args:
        aggregator: Aggregation engine.
        background_tasks: Request background task queue.

    Returns:
        Acknowledgement; the refresh runs after the response is sent.
    """
    background_tasks.add_task(aggregator.refresh_data)
    logger.info("Movie data refresh scheduled")
    return MessageResponse(message="Movie data refresh started")


@router.get(
    "/providers/health",
    response_model=list[ProviderHealthResponse],
    tags=["Health"],
    summary="Provider health",
    description="Probe every configured movie provider.",
)
async def providers_health(aggregator: Aggregator) -> list[ProviderHealthResponse]:
    """Report reachability of every provider.

    Args:
        aggregator: Aggregation engine.

    Returns:
        One entry per configured provider.
    """
    report = await aggregator.get_provider_health()
    return [ProviderHealthResponse.model_validate(h.model_dump()) for h in report]
