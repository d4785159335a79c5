"""
Role Authority.

- roles: rank ordering and pure promotion/status decisions
- service: RoleService applying decisions against the store
"""

from src.authority.roles import (
    INSUFFICIENT_PRIVILEGE,
    RoleDecision,
    assignable_roles,
    can_change_status,
    can_manage_roles,
    can_promote,
    has_minimum_role,
    rank,
)
from src.authority.service import RoleService

__all__ = [
    "rank",
    "has_minimum_role",
    "can_manage_roles",
    "assignable_roles",
    "can_promote",
    "can_change_status",
    "RoleDecision",
    "INSUFFICIENT_PRIVILEGE",
    "RoleService",
]
