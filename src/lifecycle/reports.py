"""
Report Service.

Members flag items that break the content guidelines; managers work the
resulting queue from the admin panel.

Any active member may report an item once while their earlier report on it
is still pending. Listing reports, changing their status and reading the
counts need the manager role or above. A report never moves back to
pending once it has been handled.

Usage:
    service = ReportService(store)
    report = await service.report(member, "d1", ReportReason.INACCURATE, "Wrong hadith grade")
    await service.set_status(manager, report.id, ReportStatus.RESOLVED, "Source fixed")
"""

from dataclasses import dataclass, field
from typing import Optional

import structlog

from src.authority.roles import has_minimum_role
from src.core.exceptions import InvalidArgumentError, UnauthorizedError
from src.lifecycle.transitions import require_active
from src.models.schemas import Actor, ContentReport, ReportReason, ReportStatus, Role
from src.monitoring.metrics import record_report
from src.services.base import ContentService

logger = structlog.get_logger(__name__)

REVIEWER_FLOOR = Role.MANAGER
MAX_DESCRIPTION_LENGTH = 1000
MAX_ADMIN_NOTES_LENGTH = 2000


@dataclass
class ReportStats:
    """Report counts for the admin panel."""

    by_status: dict[ReportStatus, int] = field(default_factory=dict)
    by_reason: dict[ReportReason, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.by_status.values())

    @property
    def pending(self) -> int:
        return self.by_status.get(ReportStatus.PENDING, 0)


def report_stats(reports: list[ContentReport]) -> ReportStats:
    stats = ReportStats(
        by_status={s: 0 for s in ReportStatus},
        by_reason={r: 0 for r in ReportReason},
    )
    for report in reports:
        stats.by_status[report.status] += 1
        stats.by_reason[report.reason] += 1
    return stats


def _clean_text(
    value: Optional[str], limit: int, operation: str, name: str
) -> Optional[str]:
    if value is None or not value.strip():
        return None
    value = value.strip()
    if len(value) > limit:
        raise InvalidArgumentError(
            operation,
            f"{name} must be at most {limit} characters",
            {"length": len(value)},
        )
    return value


class ReportService:
    """File content reports and review them."""

    def __init__(self, store: ContentService):
        self._store = store

    def _require_reviewer(self, actor: Actor, operation: str) -> None:
        if not (actor.is_active and has_minimum_role(actor.role, REVIEWER_FLOOR)):
            record_report(operation, "denied")
            raise UnauthorizedError(
                operation,
                "Manager role or above required",
                {"actor_id": actor.id, "role": actor.role.value},
            )

    async def report(
        self,
        actor: Actor,
        item_id: str,
        reason: ReportReason,
        description: Optional[str] = None,
    ) -> ContentReport:
        """Report ``item_id``; raises ConflictError for a duplicate pending report."""
        reason = ReportReason(reason)
        description = _clean_text(
            description, MAX_DESCRIPTION_LENGTH, "report_item", "Description"
        )
        require_active(actor, "report_item", item_id)

        item = await self._store.get_item(item_id)
        report = await self._store.create_report(
            actor.id,
            item.id,
            item.content_type,
            reason,
            description,
        )
        record_report("create", "applied")
        logger.info(
            "content_reported",
            report_id=report.id,
            item_id=item.id,
            actor_id=actor.id,
            reason=reason.value,
        )
        return report

    async def list_reports(
        self, actor: Actor, status: Optional[ReportStatus] = None
    ) -> list[ContentReport]:
        """Reports newest first, optionally narrowed to one status."""
        self._require_reviewer(actor, "list_reports")
        reports = await self._store.list_reports(
            ReportStatus(status) if status is not None else None
        )
        return sorted(reports, key=lambda r: r.created_at, reverse=True)

    async def set_status(
        self,
        actor: Actor,
        report_id: str,
        status: ReportStatus,
        admin_notes: Optional[str] = None,
    ) -> ContentReport:
        status = ReportStatus(status)
        if status == ReportStatus.PENDING:
            raise InvalidArgumentError(
                "set_report_status",
                "A report cannot be moved back to pending",
                {"report_id": report_id},
            )
        admin_notes = _clean_text(
            admin_notes, MAX_ADMIN_NOTES_LENGTH, "set_report_status", "Admin notes"
        )
        self._require_reviewer(actor, "set_report_status")

        report = await self._store.set_report_status(
            report_id, status, actor.id, admin_notes
        )
        record_report("set_status", "applied")
        logger.info(
            "report_status_changed",
            report_id=report_id,
            actor_id=actor.id,
            status=status.value,
        )
        return report

    async def stats(self, actor: Actor) -> ReportStats:
        self._require_reviewer(actor, "report_stats")
        return report_stats(await self._store.list_reports())
