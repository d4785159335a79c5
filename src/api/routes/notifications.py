"""Notification inbox endpoints for the acting member."""

from fastapi import APIRouter, Depends, Query, Response, status

from src.api.dependencies import get_current_actor, get_inbox
from src.api.models import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from src.models.schemas import Actor
from src.services.notifications import NotificationInbox

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse, summary="List notifications")
async def list_notifications(
    unread_only: bool = Query(False),
    actor: Actor = Depends(get_current_actor),
    inbox: NotificationInbox = Depends(get_inbox),
) -> NotificationListResponse:
    notifications = await inbox.list_for(actor.id, unread_only=unread_only)
    return NotificationListResponse(
        notifications=[NotificationResponse.from_notification(n) for n in notifications],
        unread_count=await inbox.unread_count(actor.id),
    )


@router.post(
    "/read-all",
    response_model=MarkAllReadResponse,
    summary="Mark every notification read",
)
async def mark_all_read(
    actor: Actor = Depends(get_current_actor),
    inbox: NotificationInbox = Depends(get_inbox),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=await inbox.mark_all_read(actor.id))


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification read",
)
async def mark_read(
    notification_id: str,
    actor: Actor = Depends(get_current_actor),
    inbox: NotificationInbox = Depends(get_inbox),
) -> NotificationResponse:
    notification = await inbox.mark_read(actor.id, notification_id)
    return NotificationResponse.from_notification(notification)


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: str,
    actor: Actor = Depends(get_current_actor),
    inbox: NotificationInbox = Depends(get_inbox),
) -> Response:
    await inbox.delete(actor.id, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
