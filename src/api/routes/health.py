"""Health check endpoints for the Tadabbur API.

Reports content store status without issuing requests against it: the
in-memory store is always healthy, the HTTP store is judged by its circuit
breaker.
"""

from datetime import datetime, timezone
import time
from typing import Optional

import structlog
from fastapi import APIRouter, Depends

from src.api.dependencies import get_store
from src.api.models import HealthCheckResponse, HealthStatus
from src.config.settings import Settings, get_settings
from src.services.base import ContentService
from src.services.http_store import HttpContentService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Health"])

API_VERSION = "0.1.0"

# Track server start time for uptime calculation
_server_start_time: Optional[float] = None


def set_server_start_time() -> None:
    """Set the server start time. Called on application startup."""
    global _server_start_time
    _server_start_time = time.time()


def get_uptime_seconds() -> Optional[float]:
    if _server_start_time is None:
        return None
    return time.time() - _server_start_time


def check_store_health(store: ContentService) -> HealthStatus:
    """Map the store's circuit state onto a health status."""
    if not isinstance(store, HttpContentService):
        return HealthStatus(status="healthy", message="In-memory content store")

    state = store.circuit_state
    if state == "closed":
        return HealthStatus(status="healthy", message="Content API circuit closed")
    if state == "half_open":
        return HealthStatus(status="degraded", message="Content API recovering")
    logger.warning("content_store_unhealthy", circuit_state=state)
    return HealthStatus(status="unhealthy", message="Content API circuit open")


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Health Check",
    description="Check the health status of the API and its content store.",
)
async def health_check(
    settings: Settings = Depends(get_settings),
    store: ContentService = Depends(get_store),
) -> HealthCheckResponse:
    services = {"content_store": check_store_health(store)}

    statuses = [s.status for s in services.values()]
    if all(s == "healthy" for s in statuses):
        overall_status = "healthy"
    elif any(s == "unhealthy" for s in statuses):
        overall_status = "unhealthy"
    else:
        overall_status = "degraded"

    return HealthCheckResponse(
        status=overall_status,
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc),
        services=services,
        uptime_seconds=get_uptime_seconds(),
    )


@router.get(
    "/health/live",
    summary="Liveness Check",
    description="Simple liveness check for container orchestration.",
)
async def liveness() -> dict:
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}
