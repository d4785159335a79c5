"""Content and identity store contract.

The remote store is the single source of truth for items, like edges and
actors. The core only talks to it through this protocol; both
InMemoryContentService and HttpContentService implement it.

Every method raises a ServiceError subclass on failure (UnauthorizedError,
NotFoundError, InvalidArgumentError, ConflictError, UnavailableError).
"""

from typing import Optional, Protocol

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
)


class ContentService(Protocol):
    """Protocol for content store implementations."""

    # -- items ---------------------------------------------------------------

    async def list_owned(self, actor_id: str) -> list[ContentItem]: ...

    async def list_public(self) -> list[ContentItem]: ...

    async def list_pending(
        self, content_type: Optional[ContentType] = None
    ) -> list[ContentItem]: ...

    async def list_all(
        self, content_type: Optional[ContentType] = None
    ) -> list[ContentItem]: ...

    async def get_item(self, item_id: str) -> ContentItem: ...

    async def create_item(
        self,
        owner_id: str,
        title: str,
        content_type: ContentType = ContentType.DUA,
        purpose: Optional[str] = None,
        body: Optional[str] = None,
        is_public: bool = False,
    ) -> ContentItem: ...

    async def update_item(
        self,
        item_id: str,
        title: Optional[str] = None,
        purpose: Optional[str] = None,
        body: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> ContentItem: ...

    async def delete_item(self, item_id: str) -> None: ...

    # -- moderation ----------------------------------------------------------

    async def set_approval(
        self,
        item_id: str,
        status: ApprovalStatus,
        reason: Optional[str] = None,
    ) -> ContentItem: ...

    async def set_verified(self, item_id: str, verified: bool) -> ContentItem: ...

    # -- engagement ----------------------------------------------------------

    async def like(self, actor_id: str, item_id: str) -> LikeCount: ...

    async def unlike(self, actor_id: str, item_id: str) -> LikeCount: ...

    async def get_like_status(self, actor_id: str, item_id: str) -> LikeStatus: ...

    # -- actors --------------------------------------------------------------

    async def get_actor(self, actor_id: str) -> Actor: ...

    async def list_actors(self) -> list[Actor]: ...

    async def set_role(self, actor_id: str, role: Role) -> Actor: ...

    async def set_active(self, actor_id: str, is_active: bool) -> Actor: ...

    # -- reports -------------------------------------------------------------

    async def create_report(
        self,
        reporter_id: str,
        item_id: str,
        content_type: ContentType,
        reason: ReportReason,
        description: Optional[str] = None,
    ) -> ContentReport: ...

    async def list_reports(
        self, status: Optional[ReportStatus] = None
    ) -> list[ContentReport]: ...

    async def set_report_status(
        self,
        report_id: str,
        status: ReportStatus,
        reviewer_id: str,
        admin_notes: Optional[str] = None,
    ) -> ContentReport: ...
