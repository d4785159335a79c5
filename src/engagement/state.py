"""
Engagement state reducer.

Per-viewer like state keyed by item id. ``reduce(state, event)`` is the only
way state changes; it never mutates its input. An optimistic toggle stores a
snapshot of the pre-toggle flag and count in ``in_flight`` so a failure can
restore them exactly, and its presence marks the item as having a mutation
outstanding.

    state = EngagementState()
    state = reduce(state, ItemsReset(counts={"d1": 3}))
    state = reduce(state, LikeToggleRequested("d1"))   # liked, count 4
    state = reduce(state, LikeToggleFailed("d1"))      # not liked, count 3
"""

from dataclasses import dataclass, field, replace
from typing import Mapping, Union

import structlog

from src.models.schemas import LikeStatus

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LikeSnapshot:
    liked: bool
    like_count: int


@dataclass(frozen=True)
class EngagementState:
    """Immutable like state for one viewer."""

    liked: frozenset[str] = frozenset()
    counts: Mapping[str, int] = field(default_factory=dict)
    in_flight: Mapping[str, LikeSnapshot] = field(default_factory=dict)

    def is_liked(self, item_id: str) -> bool:
        return item_id in self.liked

    def count(self, item_id: str) -> int:
        return self.counts.get(item_id, 0)

    def is_pending(self, item_id: str) -> bool:
        return item_id in self.in_flight


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ItemsReset:
    """A new union was fetched; ``counts`` holds each item's last-known count."""

    counts: Mapping[str, int]


@dataclass(frozen=True)
class LikeStatusesLoaded:
    statuses: Mapping[str, LikeStatus]


@dataclass(frozen=True)
class LikeToggleRequested:
    item_id: str


@dataclass(frozen=True)
class LikeToggleConfirmed:
    item_id: str
    like_count: int


@dataclass(frozen=True)
class LikeToggleFailed:
    item_id: str


EngagementEvent = Union[
    ItemsReset,
    LikeStatusesLoaded,
    LikeToggleRequested,
    LikeToggleConfirmed,
    LikeToggleFailed,
]


# -----------------------------------------------------------------------------
# Reducer
# -----------------------------------------------------------------------------


def _without(mapping: Mapping[str, LikeSnapshot], item_id: str) -> dict[str, LikeSnapshot]:
    return {k: v for k, v in mapping.items() if k != item_id}


def reduce(state: EngagementState, event: EngagementEvent) -> EngagementState:
    """Return the state after applying ``event``."""
    if isinstance(event, ItemsReset):
        # Outstanding toggles keep their optimistic values until they settle.
        counts = dict(event.counts)
        liked = set()
        in_flight = {k: v for k, v in state.in_flight.items() if k in counts}
        for item_id in in_flight:
            counts[item_id] = state.count(item_id)
            if state.is_liked(item_id):
                liked.add(item_id)
        return EngagementState(
            liked=frozenset(liked), counts=counts, in_flight=in_flight
        )

    if isinstance(event, LikeStatusesLoaded):
        liked = set(state.liked)
        counts = dict(state.counts)
        for item_id, status in event.statuses.items():
            if item_id in state.in_flight:
                continue
            counts[item_id] = status.like_count
            if status.liked:
                liked.add(item_id)
            else:
                liked.discard(item_id)
        return replace(state, liked=frozenset(liked), counts=counts)

    if isinstance(event, LikeToggleRequested):
        item_id = event.item_id
        if item_id in state.in_flight:
            return state
        was_liked = state.is_liked(item_id)
        previous = state.count(item_id)
        snapshot = LikeSnapshot(liked=was_liked, like_count=previous)
        if was_liked:
            liked = state.liked - {item_id}
            count = max(previous - 1, 0)
        else:
            liked = state.liked | {item_id}
            count = previous + 1
        return EngagementState(
            liked=liked,
            counts={**state.counts, item_id: count},
            in_flight={**state.in_flight, item_id: snapshot},
        )

    if isinstance(event, LikeToggleConfirmed):
        if event.item_id not in state.in_flight:
            return state
        return replace(
            state,
            counts={**state.counts, event.item_id: event.like_count},
            in_flight=_without(state.in_flight, event.item_id),
        )

    if isinstance(event, LikeToggleFailed):
        snapshot = state.in_flight.get(event.item_id)
        if snapshot is None:
            return state
        if snapshot.liked:
            liked = state.liked | {event.item_id}
        else:
            liked = state.liked - {event.item_id}
        return EngagementState(
            liked=liked,
            counts={**state.counts, event.item_id: snapshot.like_count},
            in_flight=_without(state.in_flight, event.item_id),
        )

    logger.warning("unknown_engagement_event", event_type=type(event).__name__)
    return state
