"""
Content Lifecycle.

- transitions: pure approve/reject/verify/resubmit state machine
- moderation: ModerationService applying transitions to the content store
- reports: ReportService for member reports on content

Example:
    from src.lifecycle import ModerationService

    service = ModerationService(store, notifications=inbox)
    await service.approve(item_id, scholar)
"""

from src.lifecycle.moderation import (
    ApprovalCounts,
    ApprovalStats,
    ModerationService,
    approval_stats,
)
from src.lifecycle.reports import ReportService, ReportStats, report_stats
from src.lifecycle.transitions import (
    MODERATOR_FLOOR,
    TransitionResult,
    approve,
    can_delete,
    is_moderator,
    reject,
    resubmit,
    set_verified,
)

__all__ = [
    "ModerationService",
    "ApprovalCounts",
    "ApprovalStats",
    "approval_stats",
    "ReportService",
    "ReportStats",
    "report_stats",
    "TransitionResult",
    "MODERATOR_FLOOR",
    "approve",
    "reject",
    "set_verified",
    "resubmit",
    "can_delete",
    "is_moderator",
]
