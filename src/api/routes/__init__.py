"""API route modules."""

from src.api.routes.health import router as health_router
from src.api.routes.feed import router as feed_router
from src.api.routes.items import router as items_router
from src.api.routes.moderation import router as moderation_router
from src.api.routes.notifications import router as notifications_router
from src.api.routes.reports import router as reports_router
from src.api.routes.users import router as users_router

__all__ = [
    "health_router",
    "feed_router",
    "items_router",
    "moderation_router",
    "notifications_router",
    "reports_router",
    "users_router",
]
