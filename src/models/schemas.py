"""Pydantic models for Tadabbur core entities."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """Member role tiers, lowest first."""

    USER = "user"
    SCHOLAR = "scholar"
    MANAGER = "manager"
    ADMIN = "admin"


class ApprovalStatus(str, Enum):
    """Moderation gate controlling public visibility eligibility."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ContentType(str, Enum):
    """Kinds of member-submitted content."""

    DUA = "dua"
    BLOG = "blog"
    QUESTION = "question"


class NotificationType(str, Enum):
    """Events delivered to a member's inbox."""

    APPROVAL = "approval"
    REJECTION = "rejection"
    VERIFICATION = "verification"
    ROLE_CHANGE = "role_change"
    ACCOUNT_STATUS = "account_status"


class ReportReason(str, Enum):
    """Why a member flagged an item."""

    INACCURATE = "inaccurate"
    INAPPROPRIATE = "inappropriate"
    SPAM = "spam"
    COPYRIGHT = "copyright"
    OTHER = "other"


class ReportStatus(str, Enum):
    """Review state of a content report."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


# =============================================================================
# Base Models
# =============================================================================


class BaseEntity(BaseModel):
    """Immutable base model; changes produce a new validated instance."""

    model_config = ConfigDict(from_attributes=True, frozen=True, extra="ignore")

    def evolve(self, **changes: Any) -> "BaseEntity":
        """Return a copy with ``changes`` applied, re-running validation.

        Unlike ``model_copy(update=...)`` this enforces the model invariants
        on the result, so an illegal combination can never be constructed.
        """
        return type(self).model_validate({**self.model_dump(), **changes})


# =============================================================================
# Core Entity Models
# =============================================================================


class Actor(BaseEntity):
    """A member of the platform."""

    id: str = Field(..., min_length=1, description="Unique identifier")
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    email: Optional[str] = Field(None, max_length=255)
    role: Role = Field(Role.USER, description="Role tier; changed only through RoleService")
    is_active: bool = Field(True, description="Account status managed by managers and admins")
    joined_at: datetime = Field(default_factory=utcnow, description="Join timestamp (immutable)")


class ContentItem(BaseEntity):
    """A dua, blog or question together with its moderation state.

    Invariants enforced on every construction:
    - rejection_reason is set if and only if approval_status is rejected
    - is_verified implies the item has been approved at least once and is
      not currently pending
    """

    id: str = Field(..., min_length=1)
    content_type: ContentType = ContentType.DUA
    owner_id: Optional[str] = Field(
        None, description="Owning actor; may dangle if the owner was deleted"
    )
    title: str = Field(..., min_length=1, max_length=400)
    purpose: Optional[str] = None
    body: Optional[str] = None
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    rejection_reason: Optional[str] = None
    is_verified: bool = False
    has_been_approved: bool = False
    is_public: bool = Field(False, description="Owner intent to publish")
    like_count: int = Field(0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="before")
    @classmethod
    def mark_approved_history(cls, data: Any) -> Any:
        if isinstance(data, dict):
            status = data.get("approval_status")
            if status is not None and ApprovalStatus(status) == ApprovalStatus.APPROVED:
                data = {**data, "has_been_approved": True}
        return data

    @model_validator(mode="after")
    def check_invariants(self) -> "ContentItem":
        rejected = self.approval_status == ApprovalStatus.REJECTED
        has_reason = bool(self.rejection_reason and self.rejection_reason.strip())
        if rejected != has_reason:
            raise ValueError("rejection_reason must be set exactly when approval_status is rejected")
        if self.is_verified:
            if self.approval_status == ApprovalStatus.PENDING:
                raise ValueError("a pending item cannot be verified")
            if not self.has_been_approved:
                raise ValueError("only items that have been approved can be verified")
        return self

    @property
    def is_publicly_visible(self) -> bool:
        """Effective public visibility: owner intent and moderation outcome."""
        return self.is_public and self.approval_status == ApprovalStatus.APPROVED

    def matches(self, query: str) -> bool:
        """Case-insensitive text match over title, purpose and body."""
        needle = query.strip().lower()
        if not needle:
            return True
        return any(
            needle in field.lower()
            for field in (self.title, self.purpose, self.body)
            if field
        )


class LikeStatus(BaseModel):
    """The viewer's like state for one item plus its aggregate count."""

    liked: bool
    like_count: int = Field(..., ge=0)


class LikeCount(BaseModel):
    """Server-confirmed aggregate count returned by like/unlike."""

    like_count: int = Field(..., ge=0)


class Notification(BaseEntity):
    """A message in a member's inbox."""

    id: str
    recipient_id: str
    type: NotificationType
    title: str
    message: str
    item_id: Optional[str] = None
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class ContentReport(BaseEntity):
    """A member's report that an item breaks the content guidelines."""

    id: str = Field(..., min_length=1)
    reporter_id: str = Field(..., min_length=1)
    item_id: str = Field(..., min_length=1)
    content_type: ContentType = ContentType.DUA
    reason: ReportReason
    description: Optional[str] = Field(None, max_length=1000)
    status: ReportStatus = ReportStatus.PENDING
    admin_notes: Optional[str] = Field(None, max_length=2000)
    reviewed_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
