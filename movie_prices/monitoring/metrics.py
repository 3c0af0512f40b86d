"""Domain metrics for the aggregation core.

Counters are module-level so every component records into the default
Prometheus registry served by ``/metrics``.
"""

from prometheus_client import Counter, Histogram

CACHE_LOOKUPS_TOTAL = Counter(
    "movieprices_cache_lookups_total",
    "Aggregated movie list cache lookups",
    ["result"],
)

PROVIDER_FAILURES_TOTAL = Counter(
    "movieprices_provider_failures_total",
    "Provider calls that returned no data",
    ["provider", "operation"],
)

AGGREGATION_DURATION = Histogram(
    "movieprices_aggregation_duration_seconds",
    "Duration of a full aggregation pass in seconds",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
)
