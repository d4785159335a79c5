"""Approval panel endpoints: review queue and per-type stats."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_current_actor, get_moderation_service
from src.api.models import (
    ApprovalStatsResponse,
    ErrorResponse,
    ItemResponse,
    QueueResponse,
)
from src.lifecycle.moderation import ModerationService
from src.models.schemas import Actor, ContentType

router = APIRouter(prefix="/moderation", tags=["Moderation"])


@router.get(
    "/queue",
    response_model=QueueResponse,
    summary="Items awaiting review",
    responses={403: {"model": ErrorResponse, "description": "Scholar role required"}},
)
async def review_queue(
    type: Optional[ContentType] = Query(None, description="Restrict to one content type"),
    actor: Actor = Depends(get_current_actor),
    service: ModerationService = Depends(get_moderation_service),
) -> QueueResponse:
    items = await service.pending_queue(actor, type)
    return QueueResponse(
        items=[ItemResponse.from_item(i) for i in items],
        total=len(items),
    )


@router.get(
    "/stats",
    response_model=ApprovalStatsResponse,
    summary="Approval counts per content type",
    responses={403: {"model": ErrorResponse, "description": "Manager role required"}},
)
async def moderation_stats(
    actor: Actor = Depends(get_current_actor),
    service: ModerationService = Depends(get_moderation_service),
) -> ApprovalStatsResponse:
    return ApprovalStatsResponse.from_stats(await service.stats(actor))
