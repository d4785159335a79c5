"""Unit tests for the pure content lifecycle transitions."""

import pytest

from src.core.exceptions import ConflictError, InvalidArgumentError, UnauthorizedError
from src.lifecycle import transitions
from src.models.schemas import ApprovalStatus, NotificationType


class TestApprove:
    """Test approve transitions."""

    def test_pending_to_approved(self, make_item, scholar):
        item = make_item()

        result = transitions.approve(item, scholar)

        assert result.changed
        assert result.item.approval_status == ApprovalStatus.APPROVED
        assert result.item.has_been_approved
        assert result.notification.type == NotificationType.APPROVAL
        assert result.notification.recipient_id == item.owner_id

    def test_approve_is_idempotent(self, make_item, scholar):
        item = make_item(approval_status=ApprovalStatus.APPROVED)

        result = transitions.approve(item, scholar)

        assert not result.changed
        assert result.item is item
        assert result.notification is None

    def test_approve_clears_rejection_reason(self, make_item, scholar):
        item = make_item(approval_status=ApprovalStatus.REJECTED)

        result = transitions.approve(item, scholar)

        assert result.item.rejection_reason is None

    def test_member_cannot_approve(self, make_item, member):
        with pytest.raises(UnauthorizedError) as exc_info:
            transitions.approve(make_item(), member)

        assert exc_info.value.operation == "approve"

    def test_inactive_scholar_cannot_approve(self, make_item, scholar):
        with pytest.raises(UnauthorizedError):
            transitions.approve(make_item(), scholar.evolve(is_active=False))

    def test_ownerless_item_emits_no_notification(self, make_item, scholar):
        result = transitions.approve(make_item(owner_id=None), scholar)

        assert result.changed
        assert result.notification is None


class TestReject:
    """Test reject transitions."""

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_blank_reason_rejected(self, make_item, scholar, reason):
        item = make_item()

        with pytest.raises(InvalidArgumentError):
            transitions.reject(item, scholar, reason)

        assert item.approval_status == ApprovalStatus.PENDING

    def test_blank_reason_checked_before_role(self, make_item, member):
        with pytest.raises(InvalidArgumentError):
            transitions.reject(make_item(), member, "")

    def test_rejection_revokes_verification(self, make_item, scholar):
        item = make_item(approval_status=ApprovalStatus.APPROVED, is_verified=True)

        result = transitions.reject(item, scholar, "Weak chain of narration")

        assert result.item.approval_status == ApprovalStatus.REJECTED
        assert result.item.rejection_reason == "Weak chain of narration"
        assert result.item.is_verified is False
        assert result.notification.type == NotificationType.REJECTION
        assert "Weak chain of narration" in result.notification.message

    def test_reason_is_stripped(self, make_item, scholar):
        result = transitions.reject(make_item(), scholar, "  Needs source  ")

        assert result.item.rejection_reason == "Needs source"

    def test_same_rejection_is_noop(self, make_item, scholar):
        item = make_item(approval_status=ApprovalStatus.REJECTED)

        result = transitions.reject(item, scholar, item.rejection_reason)

        assert not result.changed

    def test_new_reason_replaces_old(self, make_item, scholar):
        item = make_item(approval_status=ApprovalStatus.REJECTED)

        result = transitions.reject(item, scholar, "Different reason")

        assert result.changed
        assert result.item.rejection_reason == "Different reason"


class TestSetVerified:
    """Test verification overlay."""

    @pytest.mark.parametrize("status", [ApprovalStatus.PENDING, ApprovalStatus.REJECTED])
    def test_verify_requires_approved(self, make_item, scholar, status):
        with pytest.raises(ConflictError):
            transitions.set_verified(make_item(approval_status=status), scholar, True)

    def test_verify_approved_item(self, make_item, scholar):
        item = make_item(approval_status=ApprovalStatus.APPROVED)

        result = transitions.set_verified(item, scholar, True)

        assert result.item.is_verified
        assert result.notification.type == NotificationType.VERIFICATION

    def test_unverify_has_no_status_precondition(self, make_item, scholar):
        item = make_item(approval_status=ApprovalStatus.APPROVED, is_verified=True)

        result = transitions.set_verified(item, scholar, False)

        assert result.changed
        assert not result.item.is_verified
        assert result.notification is None

    def test_unverify_unverified_is_noop(self, make_item, scholar):
        result = transitions.set_verified(make_item(), scholar, False)

        assert not result.changed

    def test_member_cannot_verify(self, make_item, member):
        item = make_item(approval_status=ApprovalStatus.APPROVED)

        with pytest.raises(UnauthorizedError):
            transitions.set_verified(item, member, True)


class TestResubmit:
    """Test owner resubmission."""

    def test_owner_resubmits_rejected(self, make_item, member):
        item = make_item(approval_status=ApprovalStatus.REJECTED)

        result = transitions.resubmit(item, member)

        assert result.item.approval_status == ApprovalStatus.PENDING
        assert result.item.rejection_reason is None

    def test_non_owner_cannot_resubmit(self, make_item, scholar):
        item = make_item(approval_status=ApprovalStatus.REJECTED)

        with pytest.raises(UnauthorizedError):
            transitions.resubmit(item, scholar)

    @pytest.mark.parametrize("status", [ApprovalStatus.PENDING, ApprovalStatus.APPROVED])
    def test_only_rejected_items_resubmit(self, make_item, member, status):
        with pytest.raises(ConflictError):
            transitions.resubmit(make_item(approval_status=status), member)


class TestCanDelete:
    def test_owner_and_moderators_may_delete(self, make_item, member, scholar, other_member):
        item = make_item()

        assert transitions.can_delete(item, member)
        assert transitions.can_delete(item, scholar)
        assert not transitions.can_delete(item, other_member)


class TestEdit:
    """Test owner edits."""

    def test_owner_edit_keeps_moderation_state(self, make_item, member):
        item = make_item(approval_status=ApprovalStatus.APPROVED, is_verified=True)

        result = transitions.edit(item, member, {"title": "  Dua before sleep ", "is_public": True})

        assert result.changed
        assert result.item.title == "Dua before sleep"
        assert result.item.is_public
        assert result.item.approval_status == ApprovalStatus.APPROVED
        assert result.item.is_verified
        assert result.notification is None

    def test_unchanged_edit_is_noop(self, make_item, member):
        item = make_item(title="Same")

        result = transitions.edit(item, member, {"title": "Same"})

        assert not result.changed

    def test_non_owner_cannot_edit(self, make_item, scholar):
        with pytest.raises(UnauthorizedError):
            transitions.edit(make_item(), scholar, {"title": "Hijacked"})

    def test_inactive_owner_cannot_edit(self, make_item, member):
        with pytest.raises(UnauthorizedError):
            transitions.edit(make_item(), member.evolve(is_active=False), {"title": "New"})

    @pytest.mark.parametrize(
        "changes",
        [{"approval_status": ApprovalStatus.APPROVED}, {"title": "   "}, {"owner_id": "u-other"}],
    )
    def test_invalid_changes(self, make_item, member, changes):
        with pytest.raises(InvalidArgumentError):
            transitions.edit(make_item(), member, changes)
