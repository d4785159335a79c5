"""
Member notifications.

Lifecycle and role transitions produce NotificationEvent values; a
NotificationSink receives them. Delivery transport (email, push) lives
outside the core, so the bundled sink is an in-memory inbox that backs the
notifications endpoints: list, unread count, mark read, mark all read and
delete.

Usage:
    inbox = NotificationInbox()
    await inbox.publish(NotificationEvent(
        recipient_id="u1",
        type=NotificationType.APPROVAL,
        title="Your dua was approved",
        message="'Dua for travel' is now visible to everyone.",
        item_id="d1",
    ))
    assert await inbox.unread_count("u1") == 1
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional, Protocol
from uuid import uuid4

import structlog

from src.core.exceptions import NotFoundError
from src.models.schemas import Notification, NotificationType

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class NotificationEvent:
    """A notification to be delivered to one member."""

    recipient_id: str
    type: NotificationType
    title: str
    message: str
    item_id: Optional[str] = None


class NotificationSink(Protocol):
    """Anything that accepts notification events."""

    async def publish(self, event: NotificationEvent) -> None: ...


class NotificationInbox:
    """In-memory per-recipient inbox, newest first."""

    def __init__(self) -> None:
        self._by_recipient: dict[str, list[Notification]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def publish(self, event: NotificationEvent) -> None:
        notification = Notification(
            id=str(uuid4()),
            recipient_id=event.recipient_id,
            type=event.type,
            title=event.title,
            message=event.message,
            item_id=event.item_id,
        )
        async with self._lock:
            self._by_recipient[event.recipient_id].insert(0, notification)
        logger.info(
            "notification_published",
            recipient_id=event.recipient_id,
            type=event.type.value,
            item_id=event.item_id,
        )

    async def list_for(
        self, recipient_id: str, unread_only: bool = False
    ) -> list[Notification]:
        notifications = list(self._by_recipient.get(recipient_id, []))
        if unread_only:
            notifications = [n for n in notifications if not n.is_read]
        return notifications

    async def unread_count(self, recipient_id: str) -> int:
        return sum(1 for n in self._by_recipient.get(recipient_id, []) if not n.is_read)

    async def mark_read(self, recipient_id: str, notification_id: str) -> Notification:
        async with self._lock:
            inbox = self._by_recipient.get(recipient_id, [])
            for index, notification in enumerate(inbox):
                if notification.id == notification_id:
                    inbox[index] = notification.evolve(is_read=True)
                    return inbox[index]
        raise NotFoundError(
            "mark_notification_read",
            "Notification not found",
            {"actor_id": recipient_id, "notification_id": notification_id},
        )

    async def mark_all_read(self, recipient_id: str) -> int:
        """Mark every unread notification read; returns how many changed."""
        async with self._lock:
            inbox = self._by_recipient.get(recipient_id, [])
            changed = 0
            for index, notification in enumerate(inbox):
                if not notification.is_read:
                    inbox[index] = notification.evolve(is_read=True)
                    changed += 1
            return changed

    async def delete(self, recipient_id: str, notification_id: str) -> None:
        async with self._lock:
            inbox = self._by_recipient.get(recipient_id, [])
            remaining = [n for n in inbox if n.id != notification_id]
            if len(remaining) == len(inbox):
                raise NotFoundError(
                    "delete_notification",
                    "Notification not found",
                    {"actor_id": recipient_id, "notification_id": notification_id},
                )
            self._by_recipient[recipient_id] = remaining
