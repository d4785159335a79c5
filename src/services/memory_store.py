"""In-memory content store.

Reference implementation of the ContentService protocol. It keeps items,
actors and like edges in dictionaries and enforces the store-side
invariants: like counts equal the number of distinct likers, deleting an
item drops its like edges, and moderation writes never produce an item
that violates the ContentItem invariants. Reports outlive the item they
point at so the review history stays intact.

Used by the API in development (store_backend="memory") and by the tests.
"""

import asyncio
from collections import defaultdict
from typing import Optional
from uuid import uuid4

import structlog

from src.core.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from src.models.schemas import (
    Actor,
    ApprovalStatus,
    ContentItem,
    ContentReport,
    ContentType,
    LikeCount,
    LikeStatus,
    ReportReason,
    ReportStatus,
    Role,
    utcnow,
)

logger = structlog.get_logger(__name__)


class InMemoryContentService:
    """
    Dictionary-backed content store.

    WARNING: Does not persist across restarts and does not share
    state between multiple application instances.
    """

    def __init__(self) -> None:
        self._items: dict[str, ContentItem] = {}
        self._actors: dict[str, Actor] = {}
        self._likes: dict[str, set[str]] = defaultdict(set)
        self._reports: dict[str, ContentReport] = {}
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Seeding
    # -------------------------------------------------------------------------

    def seed_actor(self, actor: Actor) -> Actor:
        self._actors[actor.id] = actor
        return actor

    def seed_item(self, item: ContentItem, liked_by: tuple[str, ...] = ()) -> ContentItem:
        """Insert ``item``; ``liked_by`` creates its like edges and fixes the count."""
        self._likes[item.id] = set(liked_by)
        item = item.evolve(like_count=len(self._likes[item.id]))
        self._items[item.id] = item
        return item

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_item(self, item_id: str, operation: str) -> ContentItem:
        try:
            return self._items[item_id]
        except KeyError:
            raise NotFoundError(operation, "Item not found", {"item_id": item_id})

    def _require_actor(self, actor_id: str, operation: str) -> Actor:
        try:
            return self._actors[actor_id]
        except KeyError:
            raise NotFoundError(operation, "Actor not found", {"actor_id": actor_id})

    def _store(self, item: ContentItem) -> ContentItem:
        item = item.evolve(updated_at=utcnow())
        self._items[item.id] = item
        return item

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    async def list_owned(self, actor_id: str) -> list[ContentItem]:
        items = [i for i in self._items.values() if i.owner_id == actor_id]
        return sorted(items, key=lambda i: i.created_at, reverse=True)

    async def list_public(self) -> list[ContentItem]:
        items = [i for i in self._items.values() if i.is_publicly_visible]
        return sorted(items, key=lambda i: i.created_at, reverse=True)

    async def list_pending(
        self, content_type: Optional[ContentType] = None
    ) -> list[ContentItem]:
        items = [
            i
            for i in self._items.values()
            if i.approval_status == ApprovalStatus.PENDING
            and (content_type is None or i.content_type == content_type)
        ]
        return sorted(items, key=lambda i: i.created_at)

    async def list_all(
        self, content_type: Optional[ContentType] = None
    ) -> list[ContentItem]:
        items = [
            i
            for i in self._items.values()
            if content_type is None or i.content_type == content_type
        ]
        return sorted(items, key=lambda i: i.created_at, reverse=True)

    async def get_item(self, item_id: str) -> ContentItem:
        return self._require_item(item_id, "get_item")

    async def create_item(
        self,
        owner_id: str,
        title: str,
        content_type: ContentType = ContentType.DUA,
        purpose: Optional[str] = None,
        body: Optional[str] = None,
        is_public: bool = False,
    ) -> ContentItem:
        if not title or not title.strip():
            raise InvalidArgumentError(
                "create_item", "Title is required", {"actor_id": owner_id}
            )
        async with self._lock:
            self._require_actor(owner_id, "create_item")
            item = ContentItem(
                id=str(uuid4()),
                content_type=content_type,
                owner_id=owner_id,
                title=title.strip(),
                purpose=purpose,
                body=body,
                is_public=is_public,
            )
            self._items[item.id] = item
        logger.info("item_created", item_id=item.id, actor_id=owner_id)
        return item

    async def update_item(
        self,
        item_id: str,
        title: Optional[str] = None,
        purpose: Optional[str] = None,
        body: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> ContentItem:
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
        if "title" in changes and not changes["title"].strip():
            raise InvalidArgumentError("update_item", "Title cannot be empty", {"item_id": item_id})
        async with self._lock:
            item = self._require_item(item_id, "update_item")
            return self._store(item.evolve(**changes))

    async def delete_item(self, item_id: str) -> None:
        async with self._lock:
            self._require_item(item_id, "delete_item")
            del self._items[item_id]
            self._likes.pop(item_id, None)
        logger.info("item_deleted", item_id=item_id)

    # -------------------------------------------------------------------------
    # Moderation
    # -------------------------------------------------------------------------

    async def set_approval(
        self,
        item_id: str,
        status: ApprovalStatus,
        reason: Optional[str] = None,
    ) -> ContentItem:
        status = ApprovalStatus(status)
        if status == ApprovalStatus.REJECTED and not (reason and reason.strip()):
            raise InvalidArgumentError(
                "set_approval", "A rejection reason is required", {"item_id": item_id}
            )
        async with self._lock:
            item = self._require_item(item_id, "set_approval")
            changes: dict = {"approval_status": status, "rejection_reason": None}
            if status == ApprovalStatus.REJECTED:
                changes.update(rejection_reason=reason.strip(), is_verified=False)
            elif status == ApprovalStatus.PENDING:
                changes["is_verified"] = False
            return self._store(item.evolve(**changes))

    async def set_verified(self, item_id: str, verified: bool) -> ContentItem:
        async with self._lock:
            item = self._require_item(item_id, "set_verified")
            if verified and item.approval_status != ApprovalStatus.APPROVED:
                raise ConflictError(
                    "set_verified",
                    "Only approved items can be verified",
                    {"item_id": item_id, "approval_status": item.approval_status.value},
                )
            return self._store(item.evolve(is_verified=verified))

    # -------------------------------------------------------------------------
    # Engagement
    # -------------------------------------------------------------------------

    async def _set_like(self, actor_id: str, item_id: str, liked: bool) -> LikeCount:
        operation = "like" if liked else "unlike"
        async with self._lock:
            item = self._require_item(item_id, operation)
            likers = self._likes[item_id]
            if liked:
                likers.add(actor_id)
            else:
                likers.discard(actor_id)
            if item.like_count != len(likers):
                self._items[item_id] = item.evolve(like_count=len(likers))
            return LikeCount(like_count=len(likers))

    async def like(self, actor_id: str, item_id: str) -> LikeCount:
        return await self._set_like(actor_id, item_id, True)

    async def unlike(self, actor_id: str, item_id: str) -> LikeCount:
        return await self._set_like(actor_id, item_id, False)

    async def get_like_status(self, actor_id: str, item_id: str) -> LikeStatus:
        item = self._require_item(item_id, "get_like_status")
        return LikeStatus(
            liked=actor_id in self._likes.get(item_id, set()),
            like_count=item.like_count,
        )

    # -------------------------------------------------------------------------
    # Actors
    # -------------------------------------------------------------------------

    async def get_actor(self, actor_id: str) -> Actor:
        return self._require_actor(actor_id, "get_actor")

    async def list_actors(self) -> list[Actor]:
        return sorted(self._actors.values(), key=lambda a: a.joined_at)

    async def set_role(self, actor_id: str, role: Role) -> Actor:
        async with self._lock:
            actor = self._require_actor(actor_id, "set_role")
            actor = actor.evolve(role=Role(role))
            self._actors[actor_id] = actor
            return actor

    async def set_active(self, actor_id: str, is_active: bool) -> Actor:
        async with self._lock:
            actor = self._require_actor(actor_id, "set_active")
            actor = actor.evolve(is_active=is_active)
            self._actors[actor_id] = actor
            return actor

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    async def create_report(
        self,
        reporter_id: str,
        item_id: str,
        content_type: ContentType,
        reason: ReportReason,
        description: Optional[str] = None,
    ) -> ContentReport:
        async with self._lock:
            self._require_item(item_id, "create_report")
            for report in self._reports.values():
                if (
                    report.reporter_id == reporter_id
                    and report.item_id == item_id
                    and report.status == ReportStatus.PENDING
                ):
                    raise ConflictError(
                        "create_report",
                        "You have already reported this item",
                        {"item_id": item_id, "actor_id": reporter_id, "report_id": report.id},
                    )
            report = ContentReport(
                id=str(uuid4()),
                reporter_id=reporter_id,
                item_id=item_id,
                content_type=content_type,
                reason=ReportReason(reason),
                description=description,
            )
            self._reports[report.id] = report
        logger.info("report_created", report_id=report.id, item_id=item_id, actor_id=reporter_id)
        return report

    async def list_reports(
        self, status: Optional[ReportStatus] = None
    ) -> list[ContentReport]:
        reports = [
            r for r in self._reports.values() if status is None or r.status == status
        ]
        return sorted(reports, key=lambda r: r.created_at, reverse=True)

    async def set_report_status(
        self,
        report_id: str,
        status: ReportStatus,
        reviewer_id: str,
        admin_notes: Optional[str] = None,
    ) -> ContentReport:
        async with self._lock:
            try:
                report = self._reports[report_id]
            except KeyError:
                raise NotFoundError(
                    "set_report_status", "Report not found", {"report_id": report_id}
                )
            report = report.evolve(
                status=ReportStatus(status),
                reviewed_by=reviewer_id,
                admin_notes=admin_notes if admin_notes is not None else report.admin_notes,
                updated_at=utcnow(),
            )
            self._reports[report_id] = report
            return report
