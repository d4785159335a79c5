"""Unit tests for ReportService against the in-memory store."""

import pytest
from unittest.mock import AsyncMock

from src.core.exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    UnauthorizedError,
)
from src.lifecycle.reports import ReportService, report_stats
from src.models.schemas import ApprovalStatus, ContentType, ReportReason, ReportStatus


@pytest.fixture
def service(store, make_item):
    store.seed_item(
        make_item("d1", approval_status=ApprovalStatus.APPROVED, is_public=True)
    )
    store.seed_item(
        make_item(
            "q1",
            content_type=ContentType.QUESTION,
            approval_status=ApprovalStatus.APPROVED,
            is_public=True,
        )
    )
    return ReportService(store)


class TestReport:
    """Test filing reports."""

    @pytest.mark.asyncio
    async def test_member_reports_item(self, service, other_member):
        report = await service.report(
            other_member, "q1", ReportReason.INACCURATE, "  Weak chain  "
        )

        assert report.reporter_id == "u-other"
        assert report.item_id == "q1"
        assert report.content_type == ContentType.QUESTION
        assert report.description == "Weak chain"
        assert report.status == ReportStatus.PENDING

    @pytest.mark.asyncio
    async def test_duplicate_pending_report_conflicts(self, service, other_member):
        await service.report(other_member, "d1", ReportReason.SPAM)

        with pytest.raises(ConflictError):
            await service.report(other_member, "d1", ReportReason.OTHER)

    @pytest.mark.asyncio
    async def test_can_report_again_once_handled(self, service, other_member, manager):
        first = await service.report(other_member, "d1", ReportReason.SPAM)
        await service.set_status(manager, first.id, ReportStatus.DISMISSED)

        second = await service.report(other_member, "d1", ReportReason.SPAM)

        assert second.id != first.id

    @pytest.mark.asyncio
    async def test_missing_item(self, service, other_member):
        with pytest.raises(NotFoundError):
            await service.report(other_member, "nope", ReportReason.SPAM)

    @pytest.mark.asyncio
    async def test_inactive_member_cannot_report(self, service, other_member):
        with pytest.raises(UnauthorizedError):
            await service.report(
                other_member.evolve(is_active=False), "d1", ReportReason.SPAM
            )

    @pytest.mark.asyncio
    async def test_long_description_never_reaches_store(self, other_member):
        store = AsyncMock()
        service = ReportService(store)

        with pytest.raises(InvalidArgumentError):
            await service.report(other_member, "d1", ReportReason.OTHER, "x" * 1001)

        store.create_report.assert_not_awaited()


class TestReview:
    """Test the manager review queue."""

    @pytest.mark.asyncio
    async def test_manager_resolves_report(self, service, store, other_member, manager):
        report = await service.report(other_member, "d1", ReportReason.COPYRIGHT)

        updated = await service.set_status(
            manager, report.id, ReportStatus.RESOLVED, "Attribution added"
        )

        assert updated.status == ReportStatus.RESOLVED
        assert updated.reviewed_by == "u-manager"
        assert updated.admin_notes == "Attribution added"
        assert await store.list_reports(ReportStatus.PENDING) == []

    @pytest.mark.asyncio
    async def test_status_filter(self, service, member, other_member, manager):
        first = await service.report(other_member, "d1", ReportReason.SPAM)
        await service.report(member, "q1", ReportReason.INAPPROPRIATE)
        await service.set_status(manager, first.id, ReportStatus.REVIEWED)

        pending = await service.list_reports(manager, ReportStatus.PENDING)
        everything = await service.list_reports(manager)

        assert [r.item_id for r in pending] == ["q1"]
        assert len(everything) == 2

    @pytest.mark.asyncio
    async def test_cannot_move_back_to_pending(self, service, other_member, manager):
        report = await service.report(other_member, "d1", ReportReason.SPAM)

        with pytest.raises(InvalidArgumentError):
            await service.set_status(manager, report.id, ReportStatus.PENDING)

    @pytest.mark.asyncio
    async def test_unknown_report(self, service, admin):
        with pytest.raises(NotFoundError):
            await service.set_status(admin, "r-missing", ReportStatus.REVIEWED)

    @pytest.mark.parametrize("role_fixture", ["member", "scholar"])
    @pytest.mark.asyncio
    async def test_review_requires_manager(self, request, service, role_fixture):
        actor = request.getfixturevalue(role_fixture)

        with pytest.raises(UnauthorizedError):
            await service.list_reports(actor)
        with pytest.raises(UnauthorizedError):
            await service.set_status(actor, "r1", ReportStatus.DISMISSED)
        with pytest.raises(UnauthorizedError):
            await service.stats(actor)


class TestStats:
    @pytest.mark.asyncio
    async def test_counts_by_status_and_reason(self, service, member, other_member, admin):
        first = await service.report(other_member, "d1", ReportReason.SPAM)
        await service.report(member, "q1", ReportReason.SPAM)
        await service.report(other_member, "q1", ReportReason.INACCURATE)
        await service.set_status(admin, first.id, ReportStatus.RESOLVED)

        stats = await service.stats(admin)

        assert stats.total == 3
        assert stats.pending == 2
        assert stats.by_status[ReportStatus.RESOLVED] == 1
        assert stats.by_reason[ReportReason.SPAM] == 2
        assert stats.by_reason[ReportReason.COPYRIGHT] == 0

    def test_empty(self):
        stats = report_stats([])

        assert stats.total == 0
        assert set(stats.by_status) == set(ReportStatus)
