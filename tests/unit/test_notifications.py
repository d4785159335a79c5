"""Unit tests for the notification inbox."""

import pytest

from src.core.exceptions import NotFoundError
from src.models.schemas import NotificationType
from src.services.notifications import NotificationEvent, NotificationInbox


def _event(recipient: str = "u1", title: str = "Approved") -> NotificationEvent:
    return NotificationEvent(
        recipient_id=recipient,
        type=NotificationType.APPROVAL,
        title=title,
        message="Your dua passed review.",
        item_id="d1",
    )


class TestNotificationInbox:
    """Test inbox operations."""

    @pytest.mark.asyncio
    async def test_newest_first_per_recipient(self):
        inbox = NotificationInbox()
        await inbox.publish(_event(title="first"))
        await inbox.publish(_event(title="second"))
        await inbox.publish(_event(recipient="u2"))

        notifications = await inbox.list_for("u1")

        assert [n.title for n in notifications] == ["second", "first"]
        assert await inbox.unread_count("u2") == 1

    @pytest.mark.asyncio
    async def test_mark_read(self):
        inbox = NotificationInbox()
        await inbox.publish(_event())
        notification = (await inbox.list_for("u1"))[0]

        updated = await inbox.mark_read("u1", notification.id)

        assert updated.is_read
        assert await inbox.unread_count("u1") == 0
        assert await inbox.list_for("u1", unread_only=True) == []

    @pytest.mark.asyncio
    async def test_cannot_read_someone_elses_notification(self):
        inbox = NotificationInbox()
        await inbox.publish(_event())
        notification = (await inbox.list_for("u1"))[0]

        with pytest.raises(NotFoundError):
            await inbox.mark_read("u2", notification.id)

    @pytest.mark.asyncio
    async def test_mark_all_read_counts_changes(self):
        inbox = NotificationInbox()
        for _ in range(3):
            await inbox.publish(_event())

        assert await inbox.mark_all_read("u1") == 3
        assert await inbox.mark_all_read("u1") == 0

    @pytest.mark.asyncio
    async def test_delete(self):
        inbox = NotificationInbox()
        await inbox.publish(_event())
        notification = (await inbox.list_for("u1"))[0]

        await inbox.delete("u1", notification.id)

        assert await inbox.list_for("u1") == []
        with pytest.raises(NotFoundError):
            await inbox.delete("u1", notification.id)
