"""
Monitoring and observability for Tadabbur.

Provides Prometheus metrics for lifecycle transitions, role changes,
like mutations, feed degradation and content store health.

Usage:
    from src.monitoring import track_store_request, record_transition

    with track_store_request("get_item"):
        await client.get(path)

    record_transition("approve", "applied")
"""

from src.monitoring.metrics import (
    LIFECYCLE_TRANSITIONS,
    ROLE_CHANGES,
    LIKE_MUTATIONS,
    FEED_SOURCE_FAILURES,
    LIKE_LOOKUP_FALLBACKS,
    STORE_REQUESTS,
    STORE_LATENCY,
    CIRCUIT_BREAKER_STATE,
    track_store_request,
    record_transition,
    record_role_change,
    record_like_mutation,
    record_feed_source_failure,
    record_like_lookup_fallback,
    update_circuit_breaker_state,
    record_circuit_breaker_failure,
    get_metrics_app,
)

__all__ = [
    # Prometheus metrics
    "LIFECYCLE_TRANSITIONS",
    "ROLE_CHANGES",
    "LIKE_MUTATIONS",
    "FEED_SOURCE_FAILURES",
    "LIKE_LOOKUP_FALLBACKS",
    "STORE_REQUESTS",
    "STORE_LATENCY",
    "CIRCUIT_BREAKER_STATE",
    # Context managers
    "track_store_request",
    # Helper functions
    "record_transition",
    "record_role_change",
    "record_like_mutation",
    "record_feed_source_failure",
    "record_like_lookup_fallback",
    "update_circuit_breaker_state",
    "record_circuit_breaker_failure",
    "get_metrics_app",
]
