"""
Prometheus metrics for Tadabbur observability.

Usage:
    from src.monitoring.metrics import track_store_request

    with track_store_request("list_public"):
        items = await store.list_public()

    # Or manually
    LIFECYCLE_TRANSITIONS.labels(transition="approve", outcome="applied").inc()
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.applications import Starlette
from starlette.responses import Response
from starlette.routing import Route


# =============================================================================
# Metric Definitions
# =============================================================================

LIFECYCLE_TRANSITIONS = Counter(
    "tadabbur_lifecycle_transitions_total",
    "Content lifecycle transitions by outcome",
    ["transition", "outcome"],
)

ROLE_CHANGES = Counter(
    "tadabbur_role_changes_total",
    "Role change requests by outcome",
    ["requested_role", "outcome"],
)

LIKE_MUTATIONS = Counter(
    "tadabbur_like_mutations_total",
    "Like/unlike mutations by outcome",
    ["action", "outcome"],
)

FEED_SOURCE_FAILURES = Counter(
    "tadabbur_feed_source_failures_total",
    "Feed source collections that failed to load",
    ["source"],
)

LIKE_LOOKUP_FALLBACKS = Counter(
    "tadabbur_like_lookup_fallbacks_total",
    "Per-item like status lookups that fell back to not-liked",
)

CONTENT_REPORTS = Counter(
    "tadabbur_content_reports_total",
    "Content report actions by outcome",
    ["action", "outcome"],
)

STORE_REQUESTS = Counter(
    "tadabbur_store_requests_total",
    "Requests made to the content store",
    ["operation", "status"],
)

STORE_LATENCY = Histogram(
    "tadabbur_store_latency_seconds",
    "Latency of content store requests",
    ["operation"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

CIRCUIT_BREAKER_STATE = Gauge(
    "tadabbur_circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=half_open, 2=open)",
    ["service"],
)

CIRCUIT_BREAKER_FAILURES = Counter(
    "tadabbur_circuit_breaker_failures_total",
    "Total failures recorded by circuit breakers",
    ["service"],
)


# =============================================================================
# Tracking Helpers
# =============================================================================


@contextmanager
def track_store_request(operation: str) -> Generator[None, None, None]:
    """
    Context manager to track a content store request.

    Usage:
        with track_store_request("get_item"):
            response = await client.get(...)
    """
    start_time = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        STORE_REQUESTS.labels(operation=operation, status=status).inc()
        STORE_LATENCY.labels(operation=operation).observe(time.perf_counter() - start_time)


def record_transition(transition: str, outcome: str) -> None:
    LIFECYCLE_TRANSITIONS.labels(transition=transition, outcome=outcome).inc()


def record_role_change(requested_role: str, outcome: str) -> None:
    ROLE_CHANGES.labels(requested_role=requested_role, outcome=outcome).inc()


def record_like_mutation(action: str, outcome: str) -> None:
    LIKE_MUTATIONS.labels(action=action, outcome=outcome).inc()


def record_feed_source_failure(source: str) -> None:
    FEED_SOURCE_FAILURES.labels(source=source).inc()


def record_like_lookup_fallback() -> None:
    LIKE_LOOKUP_FALLBACKS.inc()


def record_report(action: str, outcome: str) -> None:
    CONTENT_REPORTS.labels(action=action, outcome=outcome).inc()


def update_circuit_breaker_state(service: str, state: str) -> None:
    """
    Update circuit breaker state gauge.

    Args:
        service: Service name
        state: Circuit state ("closed", "half_open", "open")
    """
    state_map = {"closed": 0, "half_open": 1, "open": 2}
    CIRCUIT_BREAKER_STATE.labels(service=service).set(state_map.get(state, 0))


def record_circuit_breaker_failure(service: str) -> None:
    CIRCUIT_BREAKER_FAILURES.labels(service=service).inc()


# =============================================================================
# Metrics Endpoint
# =============================================================================


async def metrics_endpoint(request) -> Response:
    """Prometheus metrics endpoint handler."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def get_metrics_app() -> Starlette:
    """
    Starlette app serving the Prometheus registry.

    Mounted at /metrics by src.api.main.
    """
    return Starlette(routes=[Route("/", metrics_endpoint)])
