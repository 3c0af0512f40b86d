"""HTTP request metrics for the movie price API.

``PrometheusMiddleware`` counts and times every API request by route
template; ``mount_metrics`` exposes the default registry at ``/metrics``.
"""

import time

from fastapi import FastAPI
from prometheus_client import Counter, Histogram, make_asgi_app
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

# =============================================================================
# HTTP METRICS
# =============================================================================

METRICS_PATH = "/metrics"
"""Mount point of the Prometheus exposition endpoint."""

HTTP_REQUESTS_TOTAL = Counter(
    "movieprices_http_requests_total",
    "API requests by route template and status",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION = Histogram(
    "movieprices_http_request_duration_seconds",
    "API request latency by route template",
    ["method", "path"],
    # Cold aggregation passes can exceed 10s.
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)


# =============================================================================
# MIDDLEWARE
# =============================================================================


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Record request count and latency per route template.

    ``/api/movies/cw0076759`` is labelled ``/api/movies/{movie_id}``. A
    handler that raises is counted as a 500 before the error propagates.

    Attributes:
        excluded_prefixes: Paths not recorded (the metrics endpoint by default).
    """

    def __init__(self, app: ASGIApp, excluded_prefixes: tuple[str, ...] = (METRICS_PATH,)) -> None:
        super().__init__(app)
        self.excluded_prefixes = excluded_prefixes

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path.startswith(self.excluded_prefixes):
            return await call_next(request)

        start = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            _observe(request, status, time.perf_counter() - start)


def _observe(request: Request, status: int, duration: float) -> None:
    route = request.scope.get("route")
    path = getattr(route, "path", None) or request.url.path
    HTTP_REQUESTS_TOTAL.labels(method=request.method, path=path, status=str(status)).inc()
    HTTP_REQUEST_DURATION.labels(method=request.method, path=path).observe(duration)


def mount_metrics(app: FastAPI) -> None:
    """Serve the default Prometheus registry at ``/metrics``."""
    app.mount(METRICS_PATH, make_asgi_app())
