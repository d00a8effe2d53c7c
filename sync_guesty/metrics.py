"""
Prometheus metrics for listing sync runs, Guesty API calls and archival.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from sync_guesty.metrics import sync_duration, listings_synced
    >>> with sync_duration.labels(mode="full").time():
    ...     result = orchestrator.run()
    ...     listings_synced.labels(mode="full").inc(result.synced)
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Sync Run Metrics
# =============================================================================

sync_runs_total = Counter(
    "guesty_sync_runs_total",
    "Total number of listing sync runs (success and error)",
    ["mode", "status"],
)
"""
Counter for sync runs.

Labels:
    mode: full or single
    status: success or error
"""

sync_duration = Histogram(
    "guesty_sync_duration_seconds",
    "Duration of listing sync runs in seconds",
    ["mode"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, float("inf")),
)

listings_synced = Counter(
    "guesty_listings_synced_total",
    "Total number of listings upserted into the local mirror",
    ["mode"],
)

listings_archived = Counter(
    "guesty_listings_archived_total",
    "Total number of listings archived because they disappeared upstream",
)

listing_failures = Counter(
    "guesty_listing_failures_total",
    "Recoverable failures during a sync run",
    ["stage"],
)
"""
Counter for recoverable failures.

Labels:
    stage: map, upsert, archive or log
"""

# =============================================================================
# API Metrics
# =============================================================================

api_requests = Counter(
    "guesty_api_requests_total",
    "Total Guesty API requests made",
    ["endpoint", "status_code"],
)
"""
Counter for API requests to Guesty.

Labels:
    endpoint: "token", "listings" (paged catalog) or "listing" (single record)
    status_code: HTTP status code (e.g., "200", "401", "429")
"""

api_latency = Histogram(
    "guesty_api_latency_seconds",
    "Guesty API request latency in seconds",
    ["endpoint"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf")),
)

rate_limit_retries = Counter(
    "guesty_rate_limit_retries_total",
    "Number of times a listings page was re-requested after a 429",
)

rate_limit_remaining = Gauge(
    "guesty_rate_limit_remaining",
    "Remaining Guesty API calls reported by the last response that carried the header",
)
