"""
Prometheus Metrics for the BBVA connector.

This module defines all metrics exposed at the /metrics endpoint.
Metrics are categorized into:

1. Bank API Metrics - one observation per request sent to the bank
   - Latencies and outcomes per logical operation (login, accounts, movements)

2. Retrieval Metrics - shape of the transaction pagination walk
   - Pages fetched, movements dropped by the end-date filter, result sizes

3. HTTP Metrics - requests served by the connector itself
"""
from typing import Optional

from prometheus_client import Counter, Histogram, Info

# =============================================================================
# SERVICE INFO
# =============================================================================

SERVICE_INFO = Info(
    "bbva_connector_service",
    "Service information"
)
SERVICE_INFO.info({
    "version": "0.1.0",
    "service": "bbva-connector",
})

# =============================================================================
# BANK API METRICS
# =============================================================================

# Histogram: Bank request latency by operation
BANK_REQUEST_LATENCY = Histogram(
    "bbva_bank_request_latency_seconds",
    "Time to complete a single request against the bank API",
    ["operation"],  # login, accounts, movements
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

# Counter: Successful bank requests
BANK_REQUEST_SUCCESS = Counter(
    "bbva_bank_request_success_total",
    "Total successful bank API requests",
    ["operation"]
)

# Counter: Failed bank requests
BANK_REQUEST_FAILURES = Counter(
    "bbva_bank_request_failures_total",
    "Total failed bank API requests",
    ["operation", "error_type"]  # timeout, connection_error, http_error
)

# =============================================================================
# RETRIEVAL METRICS
# =============================================================================

# Counter: Movement pages walked
MOVEMENT_PAGES = Counter(
    "bbva_movement_pages_total",
    "Movement pages fetched from the bank API"
)

# Counter: Movements dropped because they are newer than the requested end date
MOVEMENTS_DISCARDED = Counter(
    "bbva_movements_discarded_total",
    "Movements discarded by the client-side end-date filter"
)

# Histogram: Transactions returned per fetch
TRANSACTIONS_PER_FETCH = Histogram(
    "bbva_transactions_per_fetch",
    "Number of transactions returned by a single transaction fetch",
    buckets=[0, 1, 10, 25, 50, 100, 250, 500, 1000]
)

# Histogram: Pages walked per fetch
PAGES_PER_FETCH = Histogram(
    "bbva_pages_per_fetch",
    "Number of movement pages walked by a single transaction fetch",
    buckets=[1, 2, 3, 5, 10, 25, 50, 100]
)

# =============================================================================
# HTTP METRICS (Standard)
# =============================================================================

HTTP_REQUESTS = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

HTTP_REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def record_bank_request(
    operation: str,
    success: bool,
    latency_seconds: float,
    error_type: Optional[str] = None,
) -> None:
    """Record bank API request metrics."""
    BANK_REQUEST_LATENCY.labels(operation=operation).observe(latency_seconds)

    if success:
        BANK_REQUEST_SUCCESS.labels(operation=operation).inc()
    else:
        BANK_REQUEST_FAILURES.labels(
            operation=operation,
            error_type=error_type or "unknown",
        ).inc()


def record_movement_page(discarded: int) -> None:
    """Record one fetched movement page and how many records it lost to filtering."""
    MOVEMENT_PAGES.inc()
    if discarded:
        MOVEMENTS_DISCARDED.inc(discarded)


def record_transaction_fetch(transaction_count: int, page_count: int) -> None:
    """Record the outcome of a complete transaction fetch."""
    TRANSACTIONS_PER_FETCH.observe(transaction_count)
    PAGES_PER_FETCH.observe(page_count)


def record_http_request(method: str, endpoint: str, status: int, latency_seconds: float) -> None:
    """Record a request served by the connector API."""
    HTTP_REQUESTS.labels(method=method, endpoint=endpoint, status=status).inc()
    HTTP_REQUEST_LATENCY.labels(method=method, endpoint=endpoint).observe(latency_seconds)
