"""Unit tests for role ranking and promotion rules."""

import pytest

from src.authority.roles import (
    INSUFFICIENT_PRIVILEGE,
    assignable_roles,
    can_change_status,
    can_manage_roles,
    can_promote,
    has_minimum_role,
    rank,
)
from src.models.schemas import Role


class TestRank:
    """Test the role total order."""

    def test_strict_order(self):
        assert rank(Role.USER) < rank(Role.SCHOLAR) < rank(Role.MANAGER) < rank(Role.ADMIN)

    def test_accepts_string_values(self):
        assert rank("manager") == rank(Role.MANAGER)

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            rank("superuser")

    @pytest.mark.parametrize(
        "role,floor,expected",
        [
            (Role.USER, Role.SCHOLAR, False),
            (Role.SCHOLAR, Role.SCHOLAR, True),
            (Role.ADMIN, Role.SCHOLAR, True),
            (Role.SCHOLAR, Role.MANAGER, False),
        ],
    )
    def test_has_minimum_role(self, role, floor, expected):
        assert has_minimum_role(role, floor) is expected

    def test_only_managers_and_admins_manage_roles(self):
        assert can_manage_roles(Role.ADMIN)
        assert can_manage_roles(Role.MANAGER)
        assert not can_manage_roles(Role.SCHOLAR)
        assert not can_manage_roles(Role.USER)

    def test_assignable_roles_highest_first(self):
        assert assignable_roles(Role.ADMIN) == [Role.MANAGER, Role.SCHOLAR, Role.USER]
        assert assignable_roles(Role.MANAGER) == [Role.SCHOLAR, Role.USER]
        assert assignable_roles(Role.SCHOLAR) == []


class TestCanPromote:
    """Test can_promote decisions."""

    def test_manager_never_grants_admin(self):
        decision = can_promote(Role.MANAGER, Role.USER, "t", "a", Role.ADMIN)

        assert not decision
        assert decision.reason == INSUFFICIENT_PRIVILEGE

    def test_manager_cannot_grant_manager(self):
        assert not can_promote(Role.MANAGER, Role.USER, "t", "a", Role.MANAGER)

    @pytest.mark.parametrize("requested", [Role.SCHOLAR, Role.USER])
    def test_manager_grants_scholar_and_user(self, requested):
        assert can_promote(Role.MANAGER, Role.USER, "t", "a", requested).allowed

    @pytest.mark.parametrize("requested", [Role.MANAGER, Role.SCHOLAR, Role.USER])
    def test_admin_grants_below_admin(self, requested):
        assert can_promote(Role.ADMIN, Role.USER, "t", "a", requested)

    def test_admin_cannot_create_admin(self):
        decision = can_promote(Role.ADMIN, Role.MANAGER, "t", "a", Role.ADMIN)

        assert not decision
        assert decision.reason == INSUFFICIENT_PRIVILEGE

    @pytest.mark.parametrize("acting", [Role.USER, Role.SCHOLAR])
    def test_lower_tiers_cannot_change_roles(self, acting):
        decision = can_promote(acting, Role.USER, "t", "a", Role.USER)

        assert not decision
        assert "only managers and admins" in decision.reason

    @pytest.mark.parametrize(
        "current,requested",
        [
            (Role.ADMIN, Role.MANAGER),
            (Role.ADMIN, Role.USER),
            (Role.MANAGER, Role.SCHOLAR),
        ],
    )
    def test_self_demotion_denied(self, current, requested):
        decision = can_promote(current, current, "same", "same", requested)

        assert not decision
        assert decision.reason == "cannot reduce your own role"

    def test_self_demotion_checked_before_role_floor(self):
        """A scholar demoting themself gets the self-demotion reason."""
        decision = can_promote(Role.SCHOLAR, Role.SCHOLAR, "me", "me", Role.USER)

        assert decision.reason == "cannot reduce your own role"

    def test_same_role_for_self_is_not_a_demotion(self):
        decision = can_promote(Role.ADMIN, Role.ADMIN, "me", "me", Role.ADMIN)

        assert decision.reason == INSUFFICIENT_PRIVILEGE


class TestCanChangeStatus:
    """Test account status permissions."""

    def test_cannot_change_own_status(self):
        decision = can_change_status(Role.ADMIN, Role.ADMIN, "me", "me")

        assert not decision
        assert "own account" in decision.reason

    def test_manager_cannot_deactivate_manager(self):
        assert not can_change_status(Role.MANAGER, Role.MANAGER, "t", "a")

    def test_manager_can_deactivate_scholar(self):
        assert can_change_status(Role.MANAGER, Role.SCHOLAR, "t", "a")

    def test_admin_can_deactivate_manager(self):
        assert can_change_status(Role.ADMIN, Role.MANAGER, "t", "a")

    def test_admin_cannot_deactivate_admin(self):
        assert not can_change_status(Role.ADMIN, Role.ADMIN, "t", "a")

    def test_scholar_cannot_change_status(self):
        assert not can_change_status(Role.SCHOLAR, Role.USER, "t", "a")
