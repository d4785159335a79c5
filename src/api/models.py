"""Pydantic models for API requests and responses.

This module defines all the request/response schemas for the Tadabbur API.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.engagement.projections import FeedEntry, Projection
from src.lifecycle.moderation import ApprovalStats
from src.lifecycle.reports import ReportStats
from src.models.schemas import (
    Actor,
    ApprovalStatus,
    ContentItem,
    ContentReport,
    ContentType,
    Notification,
    NotificationType,
    ReportReason,
    ReportStatus,
    Role,
)


# =============================================================================
# Item Models
# =============================================================================


class ItemResponse(BaseModel):
    """Response model for a content item."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Item identifier")
    content_type: ContentType = Field(..., description="dua, blog or question")
    owner_id: Optional[str] = Field(None, description="Author's actor id")
    title: str = Field(..., description="Item title")
    purpose: Optional[str] = Field(None, description="Short purpose line")
    body: Optional[str] = Field(None, description="Item text")
    approval_status: ApprovalStatus = Field(..., description="Moderation status")
    rejection_reason: Optional[str] = Field(None, description="Set only when rejected")
    is_verified: bool = Field(..., description="Scholar verification overlay")
    is_public: bool = Field(..., description="Owner intent to publish")
    like_count: int = Field(..., description="Aggregate like count")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_item(cls, item: ContentItem) -> "ItemResponse":
        return cls.model_validate(item)


class FeedEntryResponse(BaseModel):
    """A feed row: the item plus the viewer's like state."""

    item: ItemResponse
    liked: bool = Field(..., description="Whether the viewer likes this item")
    like_count: int = Field(..., description="Like count including optimistic changes")
    pending: bool = Field(False, description="A like change is still in flight")

    @classmethod
    def from_entry(cls, entry: FeedEntry) -> "FeedEntryResponse":
        return cls(
            item=ItemResponse.from_item(entry.item),
            liked=entry.liked,
            like_count=entry.like_count,
            pending=entry.pending,
        )


class FeedResponse(BaseModel):
    """Response model for a feed projection."""

    tab: Projection = Field(..., description="Projection that was applied")
    entries: list[FeedEntryResponse] = Field(..., description="Feed rows")
    total: int = Field(..., description="Number of rows")
    degraded_sources: list[str] = Field(
        default_factory=list,
        description="Feed sources that failed on the last load",
    )


class CreateItemRequest(BaseModel):
    """Request model for authoring an item."""

    title: str = Field(..., max_length=400, description="Item title")
    content_type: ContentType = Field(ContentType.DUA, description="dua, blog or question")
    purpose: Optional[str] = Field(None, description="Short purpose line")
    body: Optional[str] = Field(None, description="Item text")
    is_public: bool = Field(False, description="Publish once approved")


class UpdateItemRequest(BaseModel):
    """Request model for an owner edit; omitted fields are left unchanged."""

    title: Optional[str] = Field(None, max_length=400)
    purpose: Optional[str] = None
    body: Optional[str] = None
    is_public: Optional[bool] = None


class RejectRequest(BaseModel):
    """Request model for rejecting an item."""

    reason: Optional[str] = Field(
        None,
        max_length=2000,
        description="Why the item was rejected; shown to the author",
        json_schema_extra={"example": "The chain of narration could not be confirmed"},
    )


class VerificationRequest(BaseModel):
    """Request model for toggling scholarly verification."""

    verified: bool = Field(..., description="Target verification flag")


# =============================================================================
# Moderation Models
# =============================================================================


class QueueResponse(BaseModel):
    """Response model for the review queue."""

    items: list[ItemResponse] = Field(..., description="Pending items, oldest first")
    total: int


class ApprovalCountsResponse(BaseModel):
    pending: int
    approved: int
    rejected: int
    verified: int
    total: int


class ApprovalStatsResponse(BaseModel):
    """Per content type approval counts."""

    by_type: dict[ContentType, ApprovalCountsResponse]

    @classmethod
    def from_stats(cls, stats: ApprovalStats) -> "ApprovalStatsResponse":
        return cls(
            by_type={
                content_type: ApprovalCountsResponse(
                    pending=counts.pending,
                    approved=counts.approved,
                    rejected=counts.rejected,
                    verified=counts.verified,
                    total=counts.total,
                )
                for content_type, counts in stats.by_type.items()
            }
        )


# =============================================================================
# User Models
# =============================================================================


class RoleChangeRequest(BaseModel):
    role: Role = Field(..., description="Requested role for the target member")


class StatusChangeRequest(BaseModel):
    is_active: bool = Field(..., description="Whether the account should be active")


class ActorResponse(BaseModel):
    """Response model for a member."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: Role
    is_active: bool
    joined_at: datetime

    @classmethod
    def from_actor(cls, actor: Actor) -> "ActorResponse":
        return cls.model_validate(actor)


class MemberListResponse(BaseModel):
    """Members for the admin panel and the roles the caller may grant."""

    users: list[ActorResponse]
    total: int
    assignable_roles: list[Role] = Field(
        ..., description="Roles the caller may assign, highest first"
    )


# =============================================================================
# Report Models
# =============================================================================


class ReportRequest(BaseModel):
    item_id: str = Field(..., min_length=1, description="Reported item")
    reason: ReportReason
    description: Optional[str] = Field(None, max_length=1000)


class ReportStatusRequest(BaseModel):
    status: ReportStatus = Field(..., description="reviewed, resolved or dismissed")
    admin_notes: Optional[str] = Field(None, max_length=2000)


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    reporter_id: str
    item_id: str
    content_type: ContentType
    reason: ReportReason
    description: Optional[str] = None
    status: ReportStatus
    admin_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_report(cls, report: ContentReport) -> "ReportResponse":
        return cls.model_validate(report)


class ReportListResponse(BaseModel):
    reports: list[ReportResponse] = Field(..., description="Newest first")
    total: int


class ReportStatsResponse(BaseModel):
    total: int
    by_status: dict[ReportStatus, int]
    by_reason: dict[ReportReason, int]

    @classmethod
    def from_stats(cls, stats: ReportStats) -> "ReportStatsResponse":
        return cls(total=stats.total, by_status=stats.by_status, by_reason=stats.by_reason)


# =============================================================================
# Notification Models
# =============================================================================


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: NotificationType
    title: str
    message: str
    item_id: Optional[str] = None
    is_read: bool
    created_at: datetime

    @classmethod
    def from_notification(cls, notification: Notification) -> "NotificationResponse":
        return cls.model_validate(notification)


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int = Field(..., description="Notifications that changed to read")


# =============================================================================
# Health Models
# =============================================================================


class HealthStatus(BaseModel):
    """Individual service health status."""

    status: Literal["healthy", "unhealthy", "degraded"] = Field(
        ..., description="Service status"
    )
    latency_ms: Optional[float] = Field(None, description="Response latency in milliseconds")
    message: Optional[str] = Field(None, description="Additional status message")


class HealthCheckResponse(BaseModel):
    """Response model for health check endpoint."""

    status: Literal["healthy", "unhealthy", "degraded"] = Field(
        ..., description="Overall system status"
    )
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Check timestamp")
    services: dict[str, HealthStatus] = Field(
        default_factory=dict,
        description="Individual service statuses",
    )
    uptime_seconds: Optional[float] = Field(None, description="Server uptime in seconds")


# =============================================================================
# Error Models
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error kind")
    message: str = Field(..., description="Human-readable error message")
    operation: Optional[str] = Field(None, description="Operation that failed")
    item_id: Optional[str] = Field(None, description="Item the operation targeted")
    detail: Optional[str] = Field(None, description="Additional error details")
    path: Optional[str] = Field(None, description="Request path that caused the error")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Error timestamp",
    )


class ValidationErrorDetail(BaseModel):
    """Details for validation errors."""

    field: str = Field(..., description="Field that failed validation")
    message: str = Field(..., description="Validation error message")
    value: Optional[Any] = Field(None, description="Invalid value provided")


class ValidationErrorResponse(BaseModel):
    """Response for request validation failures."""

    error: str = Field(default="validation_error")
    message: str = Field(default="Request validation failed")
    errors: list[ValidationErrorDetail] = Field(default_factory=list)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
