"""Item endpoints: authoring, likes and lifecycle transitions.

Likes go through the viewer's engagement engine so an outstanding like or
unlike blocks a second one. Authoring and lifecycle transitions go through
ModerationService; each successful change marks the cached feeds stale.
"""

import structlog
from fastapi import APIRouter, Depends, Response, status

from src.api.dependencies import (
    get_current_actor,
    get_engagement_registry,
    get_moderation_service,
    get_viewer_engine,
)
from src.api.models import (
    CreateItemRequest,
    ErrorResponse,
    FeedEntryResponse,
    ItemResponse,
    RejectRequest,
    UpdateItemRequest,
    VerificationRequest,
)
from src.engagement.engine import EngagementEngine, EngagementRegistry
from src.lifecycle.moderation import ModerationService
from src.models.schemas import Actor

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/items", tags=["Items"])

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    401: {"model": ErrorResponse, "description": "Missing or unknown actor"},
    403: {"model": ErrorResponse, "description": "Role does not permit the operation"},
    404: {"model": ErrorResponse, "description": "Item not found"},
    409: {"model": ErrorResponse, "description": "Item state does not permit the operation"},
    503: {"model": ErrorResponse, "description": "Content store unavailable"},
}


# =============================================================================
# Authoring
# =============================================================================


@router.post(
    "",
    response_model=ItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an item; it starts in the review queue",
    responses=_ERRORS,
)
async def create_item(
    request: CreateItemRequest,
    actor: Actor = Depends(get_current_actor),
    service: ModerationService = Depends(get_moderation_service),
    registry: EngagementRegistry = Depends(get_engagement_registry),
) -> ItemResponse:
    item = await service.create_item(
        actor,
        request.title,
        content_type=request.content_type,
        purpose=request.purpose,
        body=request.body,
        is_public=request.is_public,
    )
    registry.invalidate([actor.id])
    return ItemResponse.from_item(item)


@router.put(
    "/{item_id}",
    response_model=ItemResponse,
    summary="Edit an item (owner only)",
    responses=_ERRORS,
)
async def edit_item(
    item_id: str,
    request: UpdateItemRequest,
    actor: Actor = Depends(get_current_actor),
    service: ModerationService = Depends(get_moderation_service),
    registry: EngagementRegistry = Depends(get_engagement_registry),
) -> ItemResponse:
    item = await service.edit_item(
        item_id,
        actor,
        title=request.title,
        purpose=request.purpose,
        body=request.body,
        is_public=request.is_public,
    )
    registry.invalidate()
    return ItemResponse.from_item(item)


# =============================================================================
# Likes
# =============================================================================


async def _set_like(engine: EngagementEngine, item_id: str, liked: bool) -> FeedEntryResponse:
    if not engine.is_loaded or not engine.has_item(item_id):
        await engine.load()
    entry = await engine.set_like(item_id, liked)
    return FeedEntryResponse.from_entry(entry)


@router.post(
    "/{item_id}/like",
    response_model=FeedEntryResponse,
    summary="Like an item",
    responses=_ERRORS,
)
async def like_item(
    item_id: str,
    engine: EngagementEngine = Depends(get_viewer_engine),
) -> FeedEntryResponse:
    return await _set_like(engine, item_id, True)


@router.delete(
    "/{item_id}/like",
    response_model=FeedEntryResponse,
    summary="Remove a like",
    responses=_ERRORS,
)
async def unlike_item(
    item_id: str,
    engine: EngagementEngine = Depends(get_viewer_engine),
) -> FeedEntryResponse:
    return await _set_like(engine, item_id, False)


# =============================================================================
# Lifecycle
# =============================================================================


@router.post(
    "/{item_id}/approve",
    response_model=ItemResponse,
    summary="Approve an item",
    responses=_ERRORS,
)
async def approve_item(
    item_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ModerationService = Depends(get_moderation_service),
    registry: EngagementRegistry = Depends(get_engagement_registry),
) -> ItemResponse:
    item = await service.approve(item_id, actor)
    registry.invalidate()
    return ItemResponse.from_item(item)


@router.post(
    "/{item_id}/reject",
    response_model=ItemResponse,
    summary="Reject an item with a reason",
    responses=_ERRORS,
)
async def reject_item(
    item_id: str,
    request: RejectRequest,
    actor: Actor = Depends(get_current_actor),
    service: ModerationService = Depends(get_moderation_service),
    registry: EngagementRegistry = Depends(get_engagement_registry),
) -> ItemResponse:
    item = await service.reject(item_id, actor, request.reason)
    registry.invalidate()
    return ItemResponse.from_item(item)


@router.put(
    "/{item_id}/verification",
    response_model=ItemResponse,
    summary="Set scholarly verification",
    responses=_ERRORS,
)
async def set_verification(
    item_id: str,
    request: VerificationRequest,
    actor: Actor = Depends(get_current_actor),
    service: ModerationService = Depends(get_moderation_service),
    registry: EngagementRegistry = Depends(get_engagement_registry),
) -> ItemResponse:
    item = await service.set_verified(item_id, actor, request.verified)
    registry.invalidate()
    return ItemResponse.from_item(item)


@router.post(
    "/{item_id}/resubmit",
    response_model=ItemResponse,
    summary="Resubmit a rejected item for review",
    responses=_ERRORS,
)
async def resubmit_item(
    item_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ModerationService = Depends(get_moderation_service),
    registry: EngagementRegistry = Depends(get_engagement_registry),
) -> ItemResponse:
    item = await service.resubmit(item_id, actor)
    registry.invalidate()
    return ItemResponse.from_item(item)


@router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an item",
    responses=_ERRORS,
)
async def delete_item(
    item_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ModerationService = Depends(get_moderation_service),
    registry: EngagementRegistry = Depends(get_engagement_registry),
) -> Response:
    await service.delete_item(item_id, actor)
    registry.invalidate()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
