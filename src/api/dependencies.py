"""FastAPI dependency injection providers.

This module provides dependency functions for injecting services into route handlers.
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException, status

from src.authority.service import RoleService
from src.config.settings import get_settings
from src.core.exceptions import NotFoundError
from src.engagement.engine import EngagementEngine, EngagementRegistry
from src.lifecycle.moderation import ModerationService
from src.lifecycle.reports import ReportService
from src.models.schemas import Actor
from src.services.base import ContentService
from src.services.http_store import HttpContentService
from src.services.memory_store import InMemoryContentService
from src.services.notifications import NotificationInbox

logger = structlog.get_logger(__name__)

ACTOR_HEADER = "X-Actor-Id"

# Global instances for singleton pattern
_store: Optional[ContentService] = None
_inbox: Optional[NotificationInbox] = None
_registry: Optional[EngagementRegistry] = None


def get_store() -> ContentService:
    """
    Get the content store instance.

    Built once from settings: the in-memory store for development or the
    HTTP store pointed at ``content_api_url``.
    """
    global _store

    if _store is None:
        settings = get_settings()
        if settings.store_backend == "http":
            _store = HttpContentService(settings=settings)
        else:
            _store = InMemoryContentService()
        logger.info("content_store_initialized", backend=settings.store_backend)

    return _store


def set_store(store: ContentService) -> None:
    """Replace the content store (tests and custom startup)."""
    global _store, _registry
    _store = store
    _registry = None


def get_inbox() -> NotificationInbox:
    global _inbox

    if _inbox is None:
        _inbox = NotificationInbox()

    return _inbox


def get_engagement_registry(
    store: ContentService = Depends(get_store),
) -> EngagementRegistry:
    global _registry

    if _registry is None:
        _registry = EngagementRegistry(store, get_settings())

    return _registry


def get_moderation_service(
    store: ContentService = Depends(get_store),
    inbox: NotificationInbox = Depends(get_inbox),
) -> ModerationService:
    return ModerationService(store, notifications=inbox)


def get_role_service(
    store: ContentService = Depends(get_store),
    inbox: NotificationInbox = Depends(get_inbox),
) -> RoleService:
    return RoleService(store, notifications=inbox)


def get_report_service(store: ContentService = Depends(get_store)) -> ReportService:
    return ReportService(store)


async def get_current_actor(
    x_actor_id: Optional[str] = Header(None, alias=ACTOR_HEADER),
    store: ContentService = Depends(get_store),
) -> Actor:
    """
    Resolve the acting member from the ``X-Actor-Id`` header.

    Authentication happens upstream; this only looks the id up.

    Raises:
        HTTPException: 401 if the header is missing or names no member.
    """
    if not x_actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {ACTOR_HEADER} header",
        )
    try:
        return await store.get_actor(x_actor_id)
    except NotFoundError:
        logger.warning("unknown_actor", actor_id=x_actor_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown actor",
        )


async def get_viewer_engine(
    actor: Actor = Depends(get_current_actor),
    registry: EngagementRegistry = Depends(get_engagement_registry),
) -> EngagementEngine:
    return registry.for_viewer(actor.id)


async def close_dependencies() -> None:
    """Release network resources held by the content store."""
    if isinstance(_store, HttpContentService):
        await _store.aclose()


def reset_dependencies() -> None:
    """
    Reset all global dependency instances.

    Useful for testing or application shutdown.
    """
    global _store, _inbox, _registry
    _store = None
    _inbox = None
    _registry = None
