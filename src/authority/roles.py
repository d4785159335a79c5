"""Role hierarchy and promotion rules.

The hierarchy is a strict total order expressed by ``rank``; every
authority rule is written against ranks, never against a particular
encoding of the roles. Everything here is pure: no storage, no logging.
"""

from dataclasses import dataclass
from typing import Optional

from src.models.schemas import Role

_RANKS: dict[Role, int] = {
    Role.USER: 1,
    Role.SCHOLAR: 2,
    Role.MANAGER: 3,
    Role.ADMIN: 4,
}

# Roles each tier may hand out through a role change.
_ASSIGNABLE: dict[Role, frozenset[Role]] = {
    Role.ADMIN: frozenset({Role.MANAGER, Role.SCHOLAR, Role.USER}),
    Role.MANAGER: frozenset({Role.SCHOLAR, Role.USER}),
}

INSUFFICIENT_PRIVILEGE = "insufficient privilege"


def rank(role: Role | str) -> int:
    """Position of ``role`` in the hierarchy (user=1 ... admin=4)."""
    return _RANKS[Role(role)]


def has_minimum_role(role: Role | str, floor: Role | str) -> bool:
    return rank(role) >= rank(floor)


def can_manage_roles(role: Role | str) -> bool:
    """Only managers and admins may change anyone's role or account status."""
    return Role(role) in _ASSIGNABLE


def assignable_roles(acting_role: Role | str) -> list[Role]:
    """Roles ``acting_role`` may grant, highest first."""
    allowed = _ASSIGNABLE.get(Role(acting_role), frozenset())
    return sorted(allowed, key=rank, reverse=True)


@dataclass(frozen=True)
class RoleDecision:
    """Outcome of a promotion check."""

    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "RoleDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "RoleDecision":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed


def can_promote(
    acting_role: Role | str,
    target_current_role: Role | str,
    target_actor_id: str,
    acting_actor_id: str,
    requested_role: Role | str,
) -> RoleDecision:
    """Decide whether ``acting_role`` may move the target to ``requested_role``.

    Rules, in order:
    1. Nobody may lower their own role.
    2. Only managers and admins change roles.
    3. Admins grant manager, scholar or user; never a second admin.
    4. Managers grant scholar or user.
    """
    acting = Role(acting_role)
    current = Role(target_current_role)
    requested = Role(requested_role)

    if acting_actor_id == target_actor_id and rank(requested) < rank(current):
        return RoleDecision.deny("cannot reduce your own role")

    if not can_manage_roles(acting):
        return RoleDecision.deny("only managers and admins can change roles")

    if requested in _ASSIGNABLE[acting]:
        return RoleDecision.allow()

    return RoleDecision.deny(INSUFFICIENT_PRIVILEGE)


def can_change_status(
    acting_role: Role | str,
    target_role: Role | str,
    target_actor_id: str,
    acting_actor_id: str,
) -> RoleDecision:
    """Decide whether ``acting_role`` may activate or deactivate the target account."""
    if acting_actor_id == target_actor_id:
        return RoleDecision.deny("cannot change your own account status")

    acting = Role(acting_role)
    if not can_manage_roles(acting):
        return RoleDecision.deny("only managers and admins can change account status")

    if Role(target_role) not in _ASSIGNABLE[acting]:
        return RoleDecision.deny(INSUFFICIENT_PRIVILEGE)

    return RoleDecision.allow()
