"""
Content store services.

- base: ContentService protocol every store implements
- memory_store: dictionary-backed store for development and tests
- http_store: httpx client for the remote REST API
- notifications: notification events and the in-memory inbox
"""

from src.services.base import ContentService
from src.services.http_store import HttpContentService
from src.services.memory_store import InMemoryContentService
from src.services.notifications import (
    NotificationEvent,
    NotificationInbox,
    NotificationSink,
)

__all__ = [
    "ContentService",
    "HttpContentService",
    "InMemoryContentService",
    "NotificationEvent",
    "NotificationInbox",
    "NotificationSink",
]
