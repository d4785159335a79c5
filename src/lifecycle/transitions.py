"""Content lifecycle state machine.

Pure transition functions over ContentItem. Each one authorizes the actor,
validates the current state, and returns a TransitionResult holding the new
item and the notification (if any) owed to the owner. Nothing here touches
the store; ModerationService applies results remotely.

    pending  --approve-->  approved
    pending  --reject--->  rejected
    approved --reject--->  rejected   (re-review)
    rejected --resubmit->  pending    (owner only)

New items start in pending. Owner edits (content fields, ``is_public``) do
not move an item between states.

``is_verified`` is an overlay toggled by set_verified; it can only be
switched on for approved items and every rejection switches it off.
"""

from dataclasses import dataclass
from typing import Optional

from src.authority.roles import has_minimum_role
from src.core.exceptions import ConflictError, InvalidArgumentError, UnauthorizedError
from src.models.schemas import (
    Actor,
    ApprovalStatus,
    ContentItem,
    ContentType,
    NotificationType,
    Role,
)
from src.services.notifications import NotificationEvent

MODERATOR_FLOOR = Role.SCHOLAR

_TYPE_LABELS = {
    ContentType.DUA: "dua",
    ContentType.BLOG: "blog post",
    ContentType.QUESTION: "question",
}


@dataclass(frozen=True)
class TransitionResult:
    """New item state plus the owner notification the transition owes."""

    item: ContentItem
    changed: bool
    notification: Optional[NotificationEvent] = None


def is_moderator(actor: Actor) -> bool:
    return actor.is_active and has_minimum_role(actor.role, MODERATOR_FLOOR)


def require_moderator(actor: Actor, item_id: Optional[str], operation: str) -> None:
    """Raise UnauthorizedError unless ``actor`` is an active scholar or above."""
    if not is_moderator(actor):
        raise UnauthorizedError(
            operation,
            "Scholar role or above required",
            {"item_id": item_id, "actor_id": actor.id, "role": actor.role.value},
        )


def require_reason(reason: Optional[str], item_id: Optional[str]) -> str:
    """Return the stripped rejection reason or raise InvalidArgumentError."""
    if reason is None or not reason.strip():
        raise InvalidArgumentError(
            "reject", "A rejection reason is required", {"item_id": item_id}
        )
    return reason.strip()


def _owner_event(
    item: ContentItem,
    type: NotificationType,
    title: str,
    message: str,
) -> Optional[NotificationEvent]:
    if item.owner_id is None:
        return None
    return NotificationEvent(
        recipient_id=item.owner_id,
        type=type,
        title=title,
        message=message,
        item_id=item.id,
    )


def approve(item: ContentItem, actor: Actor) -> TransitionResult:
    """Approve ``item``. Approving an approved item is a successful no-op."""
    require_moderator(actor, item.id, "approve")

    if item.approval_status == ApprovalStatus.APPROVED:
        return TransitionResult(item=item, changed=False)

    approved = item.evolve(
        approval_status=ApprovalStatus.APPROVED,
        rejection_reason=None,
    )
    label = _TYPE_LABELS[item.content_type]
    return TransitionResult(
        item=approved,
        changed=True,
        notification=_owner_event(
            approved,
            NotificationType.APPROVAL,
            f"Your {label} was approved",
            f"'{item.title}' passed review.",
        ),
    )


def reject(item: ContentItem, actor: Actor, reason: Optional[str]) -> TransitionResult:
    """Reject ``item`` with a reason; always revokes verification.

    The reason is validated before the actor, so an empty reason is an
    InvalidArgumentError for everyone.
    """
    reason = require_reason(reason, item.id)
    require_moderator(actor, item.id, "reject")

    if (
        item.approval_status == ApprovalStatus.REJECTED
        and item.rejection_reason == reason
        and not item.is_verified
    ):
        return TransitionResult(item=item, changed=False)

    rejected = item.evolve(
        approval_status=ApprovalStatus.REJECTED,
        rejection_reason=reason,
        is_verified=False,
    )
    label = _TYPE_LABELS[item.content_type]
    return TransitionResult(
        item=rejected,
        changed=True,
        notification=_owner_event(
            rejected,
            NotificationType.REJECTION,
            f"Your {label} was not approved",
            f"'{item.title}' was rejected: {reason}",
        ),
    )


def set_verified(item: ContentItem, actor: Actor, verified: bool) -> TransitionResult:
    """Toggle scholarly verification.

    Verifying requires an approved item; unverifying is always allowed.
    """
    require_moderator(actor, item.id, "set_verified")

    if verified and item.approval_status != ApprovalStatus.APPROVED:
        raise ConflictError(
            "set_verified",
            "Only approved content can be verified",
            {
                "item_id": item.id,
                "actor_id": actor.id,
                "approval_status": item.approval_status.value,
            },
        )

    if item.is_verified == verified:
        return TransitionResult(item=item, changed=False)

    updated = item.evolve(is_verified=verified)
    notification = None
    if verified:
        notification = _owner_event(
            updated,
            NotificationType.VERIFICATION,
            f"Your {_TYPE_LABELS[item.content_type]} was verified",
            f"A scholar verified '{item.title}'.",
        )
    return TransitionResult(item=updated, changed=True, notification=notification)


def resubmit(item: ContentItem, actor: Actor) -> TransitionResult:
    """Send a rejected item back to the review queue (owner only)."""
    if item.owner_id is None or actor.id != item.owner_id:
        raise UnauthorizedError(
            "resubmit",
            "Only the owner can resubmit an item",
            {"item_id": item.id, "actor_id": actor.id},
        )

    if item.approval_status != ApprovalStatus.REJECTED:
        raise ConflictError(
            "resubmit",
            "Only rejected items can be resubmitted",
            {"item_id": item.id, "approval_status": item.approval_status.value},
        )

    pending = item.evolve(
        approval_status=ApprovalStatus.PENDING,
        rejection_reason=None,
        is_verified=False,
    )
    return TransitionResult(item=pending, changed=True)


EDITABLE_FIELDS = frozenset({"title", "purpose", "body", "is_public"})


def require_active(actor: Actor, operation: str, item_id: Optional[str] = None) -> None:
    if not actor.is_active:
        raise UnauthorizedError(
            operation,
            "Account is deactivated",
            {"item_id": item_id, "actor_id": actor.id},
        )


def require_title(title: Optional[str], operation: str, item_id: Optional[str] = None) -> str:
    if title is None or not title.strip():
        raise InvalidArgumentError(operation, "Title is required", {"item_id": item_id})
    return title.strip()


def edit(item: ContentItem, actor: Actor, changes: dict) -> TransitionResult:
    """Apply an owner edit to content fields and ``is_public``.

    Moderation state is left as it is: an approved item stays approved and
    a rejected one keeps its reason until it is resubmitted.
    """
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise InvalidArgumentError(
            "edit_item",
            f"Fields cannot be edited: {', '.join(sorted(unknown))}",
            {"item_id": item.id},
        )
    if "title" in changes:
        changes = {**changes, "title": require_title(changes["title"], "edit_item", item.id)}

    require_active(actor, "edit_item", item.id)
    if item.owner_id is None or actor.id != item.owner_id:
        raise UnauthorizedError(
            "edit_item",
            "Only the owner can edit an item",
            {"item_id": item.id, "actor_id": actor.id},
        )

    updated = item.evolve(**changes)
    return TransitionResult(item=updated, changed=updated != item)


def can_delete(item: ContentItem, actor: Actor) -> bool:
    """Owners and moderators may delete an item."""
    return (item.owner_id is not None and actor.id == item.owner_id) or is_moderator(actor)
