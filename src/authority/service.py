"""
Role Service.

Stateful wrapper around the promotion rules in ``roles``. Every request is
authorized by the pure decision functions before the store is touched; a
denied request raises UnauthorizedError and no mutation is issued.
"""

from typing import Optional

import structlog

from src.authority.roles import can_change_status, can_manage_roles, can_promote
from src.core.exceptions import UnauthorizedError
from src.models.schemas import Actor, NotificationType, Role
from src.monitoring.metrics import record_role_change
from src.services.base import ContentService
from src.services.notifications import NotificationEvent, NotificationSink

logger = structlog.get_logger(__name__)


class RoleService:
    """List members and change their roles and account status."""

    def __init__(
        self,
        store: ContentService,
        notifications: Optional[NotificationSink] = None,
    ):
        self._store = store
        self._notifications = notifications

    async def _notify(self, event: NotificationEvent) -> None:
        if self._notifications is None:
            return
        try:
            await self._notifications.publish(event)
        except Exception as e:
            logger.error(
                "notification_publish_failed",
                recipient_id=event.recipient_id,
                type=event.type.value,
                error=str(e),
            )

    async def list_members(
        self,
        acting: Actor,
        role: Optional[Role] = None,
        query: Optional[str] = None,
    ) -> list[Actor]:
        """Members for the admin panel, optionally by role or name/email substring."""
        if not (acting.is_active and can_manage_roles(acting.role)):
            raise UnauthorizedError(
                "list_members",
                "Manager role or above required",
                {"actor_id": acting.id, "role": acting.role.value},
            )

        members = await self._store.list_actors()
        if role is not None:
            members = [m for m in members if m.role == Role(role)]
        if query and query.strip():
            needle = query.strip().casefold()
            members = [
                m
                for m in members
                if needle in (m.name or "").casefold() or needle in (m.email or "").casefold()
            ]
        return members

    async def change_role(
        self, acting: Actor, target_id: str, requested_role: Role
    ) -> Actor:
        """Move ``target_id`` to ``requested_role`` if ``acting`` may do so.

        Requesting the role the target already holds is a successful no-op.
        """
        requested_role = Role(requested_role)
        target = await self._store.get_actor(target_id)

        decision = can_promote(
            acting_role=acting.role,
            target_current_role=target.role,
            target_actor_id=target.id,
            acting_actor_id=acting.id,
            requested_role=requested_role,
        )
        if not acting.is_active or not decision:
            reason = decision.reason if acting.is_active else "account is inactive"
            record_role_change(requested_role.value, "denied")
            logger.warning(
                "role_change_denied",
                actor_id=acting.id,
                target_id=target_id,
                requested_role=requested_role.value,
                reason=reason,
            )
            raise UnauthorizedError(
                "change_role",
                f"Role change denied: {reason}",
                {
                    "actor_id": acting.id,
                    "target_id": target_id,
                    "requested_role": requested_role.value,
                    "reason": reason,
                },
            )

        if target.role == requested_role:
            record_role_change(requested_role.value, "noop")
            return target

        updated = await self._store.set_role(target_id, requested_role)
        record_role_change(requested_role.value, "applied")
        logger.info(
            "role_changed",
            actor_id=acting.id,
            target_id=target_id,
            previous_role=target.role.value,
            role=updated.role.value,
        )
        await self._notify(
            NotificationEvent(
                recipient_id=target_id,
                type=NotificationType.ROLE_CHANGE,
                title="Your role has changed",
                message=f"Your role is now {updated.role.value}.",
            )
        )
        return updated

    async def set_active(self, acting: Actor, target_id: str, is_active: bool) -> Actor:
        """Activate or deactivate the target account."""
        target = await self._store.get_actor(target_id)

        decision = can_change_status(
            acting_role=acting.role,
            target_role=target.role,
            target_actor_id=target.id,
            acting_actor_id=acting.id,
        )
        if not acting.is_active or not decision:
            reason = decision.reason if acting.is_active else "account is inactive"
            logger.warning(
                "account_status_change_denied",
                actor_id=acting.id,
                target_id=target_id,
                reason=reason,
            )
            raise UnauthorizedError(
                "set_active",
                f"Status change denied: {reason}",
                {"actor_id": acting.id, "target_id": target_id, "reason": reason},
            )

        if target.is_active == is_active:
            return target

        updated = await self._store.set_active(target_id, is_active)
        logger.info(
            "account_status_changed",
            actor_id=acting.id,
            target_id=target_id,
            is_active=is_active,
        )
        await self._notify(
            NotificationEvent(
                recipient_id=target_id,
                type=NotificationType.ACCOUNT_STATUS,
                title="Account activated" if is_active else "Account deactivated",
                message=(
                    "Your account has been reactivated."
                    if is_active
                    else "Your account has been deactivated by a manager."
                ),
            )
        )
        return updated
