"""Feed union and viewer projections.

The union is built once per load; ``all``, ``mine`` and ``favorites`` are
filters over it combined with the current like state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from src.engagement.state import EngagementState
from src.models.schemas import ContentItem


class Projection(str, Enum):
    ALL = "all"
    MINE = "mine"
    FAVORITES = "favorites"


@dataclass(frozen=True)
class FeedEntry:
    """One row of a projection: the item plus the viewer's like state."""

    item: ContentItem
    liked: bool
    like_count: int
    pending: bool = False


def merge_feeds(
    owned: Iterable[ContentItem], public: Iterable[ContentItem]
) -> list[ContentItem]:
    """Union of owned and public items by id.

    Owned items come first in their original order and win over the public
    copy of the same id; the remaining public items follow.
    """
    merged: dict[str, ContentItem] = {}
    for item in owned:
        merged.setdefault(item.id, item)
    for item in public:
        merged.setdefault(item.id, item)
    return list(merged.values())


def project(
    union: Iterable[ContentItem],
    state: EngagementState,
    projection: Projection | str,
    viewer_id: str,
    query: Optional[str] = None,
) -> list[FeedEntry]:
    projection = Projection(projection)
    entries = []
    for item in union:
        if projection is Projection.MINE and item.owner_id != viewer_id:
            continue
        if projection is Projection.FAVORITES and not state.is_liked(item.id):
            continue
        if query and not item.matches(query):
            continue
        entries.append(
            FeedEntry(
                item=item,
                liked=state.is_liked(item.id),
                like_count=state.count(item.id),
                pending=state.is_pending(item.id),
            )
        )
    return entries
