"""Viewer feed endpoint.

Serves the all/mine/favorites projections from the viewer's cached union.
The union is fetched on first use or when ``refresh`` is set; switching tabs
reads the cache.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_viewer_engine
from src.api.models import ErrorResponse, FeedEntryResponse, FeedResponse
from src.engagement.engine import EngagementEngine
from src.engagement.projections import Projection

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/feed", tags=["Feed"])


@router.get(
    "",
    response_model=FeedResponse,
    summary="Get the viewer's feed",
    responses={
        401: {"model": ErrorResponse, "description": "Missing or unknown actor"},
        503: {"model": ErrorResponse, "description": "Content store unavailable"},
    },
)
async def get_feed(
    tab: Projection = Query(Projection.ALL, description="all, mine or favorites"),
    q: Optional[str] = Query(None, max_length=200, description="Search title, purpose and body"),
    refresh: bool = Query(False, description="Refetch the union from the store"),
    engine: EngagementEngine = Depends(get_viewer_engine),
) -> FeedResponse:
    if refresh or not engine.is_loaded:
        await engine.load()

    entries = engine.projection(tab, q)
    return FeedResponse(
        tab=tab,
        entries=[FeedEntryResponse.from_entry(e) for e in entries],
        total=len(entries),
        degraded_sources=list(engine.degraded_sources),
    )
