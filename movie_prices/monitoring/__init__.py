"""Prometheus metrics for HTTP traffic and the aggregation core."""

from movie_prices.monitoring.metrics import (
    AGGREGATION_DURATION,
    CACHE_LOOKUPS_TOTAL,
    PROVIDER_FAILURES_TOTAL,
)
from movie_prices.monitoring.middleware import PrometheusMiddleware, mount_metrics

__all__ = [
    "AGGREGATION_DURATION",
    "CACHE_LOOKUPS_TOTAL",
    "PROVIDER_FAILURES_TOTAL",
    "PrometheusMiddleware",
    "mount_metrics",
]
