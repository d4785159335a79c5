"""
Data Models.

Core domain entities shared by every component:

- Actor: a member with a role tier and account status
- ContentItem: a dua, blog or question with its moderation state
- LikeStatus / LikeCount: engagement read models returned by the store
- Notification: inbox entries emitted on moderation and role events
- ContentReport: a member report on an item, reviewed by managers and admins

Example:
    from src.models import ContentItem, ApprovalStatus

    item = ContentItem(id="d1", owner_id="u1", title="Dua for travel")
    assert item.approval_status is ApprovalStatus.PENDING
"""

from src.models.schemas import (
    Actor,
    ApprovalStatus,
    BaseEntity,
    ContentItem,
    ContentReport,
    ContentType,
    LikeCount,
    LikeStatus,
    Notification,
    NotificationType,
    ReportReason,
    ReportStatus,
    Role,
    utcnow,
)

__all__ = [
    # Enums
    "Role",
    "ApprovalStatus",
    "ContentType",
    "NotificationType",
    "ReportReason",
    "ReportStatus",
    # Entities
    "BaseEntity",
    "Actor",
    "ContentItem",
    "Notification",
    "ContentReport",
    # Engagement read models
    "LikeStatus",
    "LikeCount",
    "utcnow",
]
