"""
Moderation Service.

Applies lifecycle transitions against the content store. Every operation
follows the same shape:

1. Validate input that needs no network (rejection reason).
2. Fetch the current item from the store (NotFoundError if absent).
3. Run the pure transition, which authorizes the actor and checks state.
4. Issue the single atomic store mutation; never retried automatically.
5. Publish the owner notification and return the stored item.

Usage:
    service = ModerationService(store, notifications=inbox)
    item = await service.approve("d1", scholar)
    item = await service.reject("d2", scholar, "Source could not be confirmed")
"""

from dataclasses import dataclass, field
from typing import Optional

import structlog

from src.authority.roles import has_minimum_role
from src.core.exceptions import UnauthorizedError
from src.lifecycle import transitions
from src.lifecycle.transitions import TransitionResult
from src.models.schemas import Actor, ApprovalStatus, ContentItem, ContentType, Role
from src.monitoring.metrics import record_transition
from src.services.base import ContentService
from src.services.notifications import NotificationEvent, NotificationSink

logger = structlog.get_logger(__name__)


@dataclass
class ApprovalCounts:
    """Item counts per approval status."""

    pending: int = 0
    approved: int = 0
    rejected: int = 0
    verified: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.approved + self.rejected


@dataclass
class ApprovalStats:
    """Approval counts broken down by content type."""

    by_type: dict[ContentType, ApprovalCounts] = field(default_factory=dict)

    def for_type(self, content_type: ContentType) -> ApprovalCounts:
        return self.by_type.get(content_type, ApprovalCounts())


def approval_stats(items: list[ContentItem]) -> ApprovalStats:
    """Count items per content type and approval status."""
    stats = ApprovalStats(by_type={t: ApprovalCounts() for t in ContentType})
    for item in items:
        counts = stats.by_type[item.content_type]
        if item.approval_status == ApprovalStatus.PENDING:
            counts.pending += 1
        elif item.approval_status == ApprovalStatus.APPROVED:
            counts.approved += 1
        else:
            counts.rejected += 1
        if item.is_verified:
            counts.verified += 1
    return stats


class ModerationService:
    """Create, edit, approve, reject, verify, resubmit and delete items in the store."""

    def __init__(
        self,
        store: ContentService,
        notifications: Optional[NotificationSink] = None,
    ):
        self._store = store
        self._notifications = notifications

    async def _notify(self, event: Optional[NotificationEvent]) -> None:
        """Publish an owner notification.

        The store mutation has already committed, so a delivery failure is
        logged rather than reported as a failed transition.
        """
        if event is None or self._notifications is None:
            return
        try:
            await self._notifications.publish(event)
        except Exception as e:
            logger.error(
                "notification_publish_failed",
                recipient_id=event.recipient_id,
                item_id=event.item_id,
                type=event.type.value,
                error=str(e),
            )

    def _log_result(
        self, transition: str, result: TransitionResult, actor: Actor
    ) -> None:
        outcome = "applied" if result.changed else "noop"
        record_transition(transition, outcome)
        logger.info(
            "lifecycle_transition",
            transition=transition,
            outcome=outcome,
            item_id=result.item.id,
            actor_id=actor.id,
            approval_status=result.item.approval_status.value,
            is_verified=result.item.is_verified,
        )

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def approve(self, item_id: str, actor: Actor) -> ContentItem:
        item = await self._store.get_item(item_id)
        result = transitions.approve(item, actor)
        if not result.changed:
            self._log_result("approve", result, actor)
            return item

        stored = await self._store.set_approval(item_id, ApprovalStatus.APPROVED)
        self._log_result("approve", result, actor)
        await self._notify(result.notification)
        return stored

    async def reject(self, item_id: str, actor: Actor, reason: Optional[str]) -> ContentItem:
        reason = transitions.require_reason(reason, item_id)
        item = await self._store.get_item(item_id)
        result = transitions.reject(item, actor, reason)
        if not result.changed:
            self._log_result("reject", result, actor)
            return item

        stored = await self._store.set_approval(item_id, ApprovalStatus.REJECTED, reason)
        if stored.is_verified:
            # Stores that keep verification separate get an explicit revoke.
            stored = await self._store.set_verified(item_id, False)
        self._log_result("reject", result, actor)
        await self._notify(result.notification)
        return stored

    async def set_verified(self, item_id: str, actor: Actor, verified: bool) -> ContentItem:
        item = await self._store.get_item(item_id)
        result = transitions.set_verified(item, actor, verified)
        transition = "verify" if verified else "unverify"
        if not result.changed:
            self._log_result(transition, result, actor)
            return item

        stored = await self._store.set_verified(item_id, verified)
        self._log_result(transition, result, actor)
        await self._notify(result.notification)
        return stored

    async def resubmit(self, item_id: str, actor: Actor) -> ContentItem:
        item = await self._store.get_item(item_id)
        result = transitions.resubmit(item, actor)
        stored = await self._store.set_approval(item_id, ApprovalStatus.PENDING)
        self._log_result("resubmit", result, actor)
        return stored

    # -------------------------------------------------------------------------
    # Authoring
    # -------------------------------------------------------------------------

    async def create_item(
        self,
        actor: Actor,
        title: str,
        content_type: ContentType = ContentType.DUA,
        purpose: Optional[str] = None,
        body: Optional[str] = None,
        is_public: bool = False,
    ) -> ContentItem:
        """Create an item owned by ``actor``; it always starts pending."""
        title = transitions.require_title(title, "create_item")
        transitions.require_active(actor, "create_item")

        item = await self._store.create_item(
            actor.id,
            title,
            content_type=content_type,
            purpose=purpose,
            body=body,
            is_public=is_public,
        )
        record_transition("create", "applied")
        logger.info(
            "item_created",
            item_id=item.id,
            actor_id=actor.id,
            content_type=item.content_type.value,
        )
        return item

    async def edit_item(
        self,
        item_id: str,
        actor: Actor,
        title: Optional[str] = None,
        purpose: Optional[str] = None,
        body: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> ContentItem:
        """Owner edit; ``None`` leaves a field unchanged."""
        changes = {
            key: value
            for key, value in (
                ("title", title),
                ("purpose", purpose),
                ("body", body),
                ("is_public", is_public),
            )
            if value is not None
        }
        if "title" in changes:
            changes["title"] = transitions.require_title(title, "edit_item", item_id)

        item = await self._store.get_item(item_id)
        result = transitions.edit(item, actor, changes)
        if not result.changed:
            self._log_result("edit", result, actor)
            return item

        stored = await self._store.update_item(item_id, **changes)
        self._log_result("edit", result, actor)
        return stored

    async def delete_item(self, item_id: str, actor: Actor) -> None:
        """Delete an item; the store drops its like edges with it."""
        item = await self._store.get_item(item_id)
        if not transitions.can_delete(item, actor):
            raise UnauthorizedError(
                "delete_item",
                "Only the owner or a moderator can delete this item",
                {"item_id": item_id, "actor_id": actor.id},
            )
        await self._store.delete_item(item_id)
        record_transition("delete", "applied")
        logger.info("item_deleted", item_id=item_id, actor_id=actor.id)

    # -------------------------------------------------------------------------
    # Review queue
    # -------------------------------------------------------------------------

    async def pending_queue(
        self, actor: Actor, content_type: Optional[ContentType] = None
    ) -> list[ContentItem]:
        """Items awaiting review, oldest first."""
        transitions.require_moderator(actor, None, "pending_queue")
        items = await self._store.list_pending(content_type)
        return sorted(items, key=lambda i: i.created_at)

    async def stats(
        self, actor: Actor, content_type: Optional[ContentType] = None
    ) -> ApprovalStats:
        """Per-type approval counts for the admin panel (manager floor)."""
        if not (actor.is_active and has_minimum_role(actor.role, Role.MANAGER)):
            raise UnauthorizedError(
                "approval_stats",
                "Manager role or above required",
                {"actor_id": actor.id, "role": actor.role.value},
            )
        return approval_stats(await self._store.list_all(content_type))
