"""
Engagement.

- state: immutable like state and its reducer
- projections: feed union and all/mine/favorites filters
- engine: EngagementEngine loading the union and applying optimistic likes
"""

from src.engagement.engine import EngagementEngine, EngagementRegistry
from src.engagement.projections import FeedEntry, Projection, merge_feeds, project
from src.engagement.state import (
    EngagementState,
    ItemsReset,
    LikeSnapshot,
    LikeStatusesLoaded,
    LikeToggleConfirmed,
    LikeToggleFailed,
    LikeToggleRequested,
    reduce,
)

__all__ = [
    "EngagementEngine",
    "EngagementRegistry",
    "FeedEntry",
    "Projection",
    "merge_feeds",
    "project",
    "EngagementState",
    "LikeSnapshot",
    "ItemsReset",
    "LikeStatusesLoaded",
    "LikeToggleRequested",
    "LikeToggleConfirmed",
    "LikeToggleFailed",
    "reduce",
]
