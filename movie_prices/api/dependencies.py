"""FastAPI dependencies resolving the aggregation core from app state."""

from datetime import timedelta
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from movie_prices.aggregation import MovieAggregator
from movie_prices.settings import settings


def get_aggregator(request: Request) -> MovieAggregator:
    """Return the aggregator attached to the running application.

    Raises:
        HTTPException: 503 if the application has not finished starting.
    """
    aggregator = getattr(request.app.state, "aggregator", None)
    if aggregator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Movie aggregator not initialized",
        )
    return aggregator


def get_stale_after() -> timedelta:
    """Age after which a provider price is flagged stale."""
    return timedelta(minutes=settings.aggregation.stale_after_minutes)


Aggregator = Annotated[MovieAggregator, Depends(get_aggregator)]
StaleAfter = Annotated[timedelta, Depends(get_stale_after)]
