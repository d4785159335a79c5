"""
Engagement Reconciliation Engine.

Builds one viewer's feed from the content store and keeps their like state
consistent while mutations are outstanding.

Loading:
    1. Fetch owned and public items concurrently. A failed source is logged
       and the feed degrades to the one that succeeded.
    2. Merge them into a single union (owned copy wins).
    3. Look up like status for every union item concurrently, each lookup
       bounded by ``like_lookup_timeout_seconds``. A failed lookup falls back
       to not-liked with the item's last-known count.

Reading:
    ``projection(tab, query)`` filters the cached union; switching tabs never
    goes back to the store.

Liking:
    ``toggle_like(item_id)`` applies the optimistic change at once, then either
    adopts the confirmed count or restores the previous flag and count.

Usage:
    engine = EngagementEngine(store, viewer_id="u1")
    await engine.load()
    favorites = engine.projection(Projection.FAVORITES)
    entry = await engine.toggle_like("d1")
"""

import asyncio
from collections import OrderedDict
from typing import Iterable, Optional

import structlog

from src.config.settings import Settings, get_settings
from src.core.exceptions import (
    ConflictError,
    NotFoundError,
    ServiceError,
    UnavailableError,
)
from src.engagement.projections import FeedEntry, Projection, merge_feeds, project
from src.engagement.state import (
    EngagementEvent,
    EngagementState,
    ItemsReset,
    LikeStatusesLoaded,
    LikeToggleConfirmed,
    LikeToggleFailed,
    LikeToggleRequested,
    reduce,
)
from src.models.schemas import ContentItem, LikeStatus
from src.monitoring.metrics import (
    record_feed_source_failure,
    record_like_lookup_fallback,
    record_like_mutation,
)
from src.services.base import ContentService

logger = structlog.get_logger(__name__)


class EngagementEngine:
    """Cached feed union and like state for a single viewer."""

    def __init__(
        self,
        store: ContentService,
        viewer_id: str,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self._store = store
        self.viewer_id = viewer_id
        self._lookup_timeout = settings.like_lookup_timeout_seconds
        self._union: list[ContentItem] = []
        self._by_id: dict[str, ContentItem] = {}
        self._state = EngagementState()
        self._loaded = False
        self.degraded_sources: tuple[str, ...] = ()

    @property
    def state(self) -> EngagementState:
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def items(self) -> list[ContentItem]:
        return list(self._union)

    def has_item(self, item_id: str) -> bool:
        return item_id in self._by_id

    def mark_stale(self) -> None:
        """Force the next read to refetch; like state in flight is kept."""
        self._loaded = False

    def _dispatch(self, event: EngagementEvent) -> EngagementState:
        self._state = reduce(self._state, event)
        return self._state

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load(self) -> list[FeedEntry]:
        """Fetch the union and its like statuses; returns the ``all`` projection."""
        owned_result, public_result = await asyncio.gather(
            self._store.list_owned(self.viewer_id),
            self._store.list_public(),
            return_exceptions=True,
        )

        sources = {"owned": owned_result, "public": public_result}
        failed = {
            name: result
            for name, result in sources.items()
            if isinstance(result, BaseException)
        }
        for name, error in failed.items():
            if not isinstance(error, Exception):
                raise error
            record_feed_source_failure(name)
            logger.warning(
                "feed_source_failed",
                source=name,
                viewer_id=self.viewer_id,
                error=str(error),
            )

        if len(failed) == len(sources):
            error = failed["owned"]
            if isinstance(error, ServiceError):
                raise error
            raise UnavailableError(
                "load_feed",
                "Both feed sources failed",
                {"actor_id": self.viewer_id, "error": str(error)},
            ) from error

        owned = [] if "owned" in failed else owned_result
        public = [] if "public" in failed else public_result
        union = merge_feeds(owned, public)

        self._union = union
        self._by_id = {item.id: item for item in union}
        self.degraded_sources = tuple(failed)
        self._dispatch(ItemsReset(counts={item.id: item.like_count for item in union}))

        statuses = await asyncio.gather(*(self._lookup(item) for item in union))
        self._dispatch(
            LikeStatusesLoaded(
                statuses={item.id: status for item, status in zip(union, statuses)}
            )
        )
        self._loaded = True

        logger.info(
            "feed_loaded",
            viewer_id=self.viewer_id,
            owned=len(owned),
            public=len(public),
            union=len(union),
            degraded_sources=list(failed),
        )
        return self.projection(Projection.ALL)

    async def _lookup(self, item: ContentItem) -> LikeStatus:
        try:
            return await asyncio.wait_for(
                self._store.get_like_status(self.viewer_id, item.id),
                timeout=self._lookup_timeout,
            )
        except Exception as e:
            record_like_lookup_fallback()
            logger.warning(
                "like_lookup_fallback",
                item_id=item.id,
                viewer_id=self.viewer_id,
                error=str(e) or type(e).__name__,
                error_type=type(e).__name__,
            )
            return LikeStatus(liked=False, like_count=item.like_count)

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def projection(
        self, tab: Projection | str = Projection.ALL, query: Optional[str] = None
    ) -> list[FeedEntry]:
        return project(self._union, self._state, tab, self.viewer_id, query)

    def entry(self, item_id: str) -> FeedEntry:
        item = self._require_item(item_id, "get_entry")
        return FeedEntry(
            item=item,
            liked=self._state.is_liked(item_id),
            like_count=self._state.count(item_id),
            pending=self._state.is_pending(item_id),
        )

    def _require_item(self, item_id: str, operation: str) -> ContentItem:
        try:
            return self._by_id[item_id]
        except KeyError:
            raise NotFoundError(
                operation,
                "Item is not in the viewer's feed",
                {"item_id": item_id, "actor_id": self.viewer_id},
            )

    # -------------------------------------------------------------------------
    # Liking
    # -------------------------------------------------------------------------

    async def toggle_like(self, item_id: str) -> FeedEntry:
        """Flip the viewer's like on ``item_id`` optimistically.

        Raises ConflictError if a like or unlike for the item is still
        outstanding. Store failures are re-raised after the rollback.
        """
        self._require_item(item_id, "toggle_like")
        was_liked = self._state.is_liked(item_id)
        action = "unlike" if was_liked else "like"

        if self._state.is_pending(item_id):
            record_like_mutation(action, "conflict")
            raise ConflictError(
                action,
                "A like change for this item is already in progress",
                {"item_id": item_id, "actor_id": self.viewer_id},
            )

        self._dispatch(LikeToggleRequested(item_id))
        mutate = self._store.unlike if was_liked else self._store.like
        try:
            result = await mutate(self.viewer_id, item_id)
        except (Exception, asyncio.CancelledError) as e:
            self._dispatch(LikeToggleFailed(item_id))
            record_like_mutation(action, "rolled_back")
            logger.warning(
                "like_toggle_rolled_back",
                action=action,
                item_id=item_id,
                viewer_id=self.viewer_id,
                error=str(e) or type(e).__name__,
            )
            raise

        self._dispatch(LikeToggleConfirmed(item_id, result.like_count))
        record_like_mutation(action, "confirmed")
        logger.info(
            "like_toggle_confirmed",
            action=action,
            item_id=item_id,
            viewer_id=self.viewer_id,
            like_count=result.like_count,
        )
        return self.entry(item_id)

    async def set_like(self, item_id: str, liked: bool) -> FeedEntry:
        """Bring the like flag to ``liked``; a no-op when it already matches."""
        self._require_item(item_id, "set_like")
        if self._state.is_liked(item_id) == liked and not self._state.is_pending(item_id):
            return self.entry(item_id)
        return await self.toggle_like(item_id)


class EngagementRegistry:
    """One engine per viewer, so in-flight guards span requests.

    Holds at most ``engagement_max_viewers`` engines. Past that the least
    recently used engine with no like change in flight is evicted.
    """

    def __init__(self, store: ContentService, settings: Optional[Settings] = None):
        self._store = store
        self._settings = settings
        self._max_viewers = (settings or get_settings()).engagement_max_viewers
        self._engines: OrderedDict[str, EngagementEngine] = OrderedDict()

    def __len__(self) -> int:
        return len(self._engines)

    def __contains__(self, viewer_id: str) -> bool:
        return viewer_id in self._engines

    def for_viewer(self, viewer_id: str) -> EngagementEngine:
        engine = self._engines.get(viewer_id)
        if engine is None:
            engine = EngagementEngine(self._store, viewer_id, self._settings)
            self._engines[viewer_id] = engine
            self._evict()
        else:
            self._engines.move_to_end(viewer_id)
        return engine

    def _evict(self) -> None:
        # The newest engine is the one being handed out.
        for viewer_id in list(self._engines)[:-1]:
            if len(self._engines) <= self._max_viewers:
                return
            if self._engines[viewer_id].state.in_flight:
                continue
            del self._engines[viewer_id]
            logger.debug("engagement_engine_evicted", viewer_id=viewer_id)

    def invalidate(self, viewer_ids: Optional[Iterable[str]] = None) -> None:
        """Mark cached feeds stale so their next read refetches the union.

        With no ``viewer_ids`` every cached feed is marked, since a lifecycle
        change can move an item into or out of everyone's public source.
        """
        targets = self._engines.keys() if viewer_ids is None else viewer_ids
        for viewer_id in list(targets):
            engine = self._engines.get(viewer_id)
            if engine is not None:
                engine.mark_stale()

    def clear(self) -> None:
        self._engines.clear()
