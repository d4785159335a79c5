"""Unit tests for the EngagementEngine."""

import asyncio

import pytest
from unittest.mock import AsyncMock

from src.config.settings import Settings
from src.core.exceptions import ConflictError, NotFoundError, UnavailableError
from src.engagement.engine import EngagementEngine, EngagementRegistry
from src.engagement.projections import Projection
from src.models.schemas import ApprovalStatus, LikeCount, LikeStatus


@pytest.fixture
def feed_items(make_item):
    """Viewer owns A (pending) and B (public); C belongs to someone else."""
    a = make_item("A", title="A pending")
    b_owned = make_item(
        "B", title="B owned copy", approval_status=ApprovalStatus.APPROVED, is_public=True
    )
    b_public = b_owned.evolve(title="B public copy")
    c = make_item(
        "C", owner_id="u-other", approval_status=ApprovalStatus.APPROVED, is_public=True,
        like_count=2,
    )
    return a, b_owned, b_public, c


@pytest.fixture
def mock_store(feed_items):
    a, b_owned, b_public, c = feed_items
    store = AsyncMock()
    store.list_owned.return_value = [a, b_owned]
    store.list_public.return_value = [b_public, c]
    statuses = {
        "A": LikeStatus(liked=False, like_count=0),
        "B": LikeStatus(liked=False, like_count=0),
        "C": LikeStatus(liked=True, like_count=2),
    }

    async def get_like_status(actor_id, item_id):
        return statuses[item_id]

    store.get_like_status.side_effect = get_like_status
    return store


class TestLoad:
    """Test feed loading and reconciliation."""

    @pytest.mark.asyncio
    async def test_union_with_owned_copy(self, mock_store, settings):
        engine = EngagementEngine(mock_store, "u-member", settings)

        entries = await engine.load()

        assert [e.item.id for e in entries] == ["A", "B", "C"]
        assert entries[1].item.title == "B owned copy"
        assert entries[2].liked is True

    @pytest.mark.asyncio
    async def test_favorites_derived_without_refetch(self, mock_store, settings):
        engine = EngagementEngine(mock_store, "u-member", settings)
        await engine.load()

        favorites = engine.projection(Projection.FAVORITES)
        mine = engine.projection(Projection.MINE)
        engine.projection(Projection.ALL)

        assert [e.item.id for e in favorites] == ["C"]
        assert [e.item.id for e in mine] == ["A", "B"]
        assert mock_store.list_owned.await_count == 1
        assert mock_store.list_public.await_count == 1
        assert mock_store.get_like_status.await_count == 3

    @pytest.mark.asyncio
    async def test_public_failure_degrades_to_owned(self, mock_store, settings):
        mock_store.list_public.side_effect = UnavailableError("list_public", "down")
        engine = EngagementEngine(mock_store, "u-member", settings)

        entries = await engine.load()

        assert [e.item.id for e in entries] == ["A", "B"]
        assert engine.degraded_sources == ("public",)

    @pytest.mark.asyncio
    async def test_owned_failure_degrades_to_public(self, mock_store, settings):
        mock_store.list_owned.side_effect = UnavailableError("list_owned", "down")
        engine = EngagementEngine(mock_store, "u-member", settings)

        entries = await engine.load()

        assert [e.item.id for e in entries] == ["B", "C"]
        assert entries[0].item.title == "B public copy"

    @pytest.mark.asyncio
    async def test_both_sources_failing_raises(self, mock_store, settings):
        mock_store.list_owned.side_effect = UnavailableError("list_owned", "down")
        mock_store.list_public.side_effect = UnavailableError("list_public", "down")
        engine = EngagementEngine(mock_store, "u-member", settings)

        with pytest.raises(UnavailableError):
            await engine.load()

        assert not engine.is_loaded

    @pytest.mark.asyncio
    async def test_failed_lookup_falls_back_to_not_liked(self, mock_store, settings):
        async def get_like_status(actor_id, item_id):
            if item_id == "C":
                raise UnavailableError("get_like_status", "down", {"item_id": item_id})
            return LikeStatus(liked=False, like_count=0)

        mock_store.get_like_status.side_effect = get_like_status
        engine = EngagementEngine(mock_store, "u-member", settings)

        await engine.load()
        entry = engine.entry("C")

        assert entry.liked is False
        assert entry.like_count == 2

    @pytest.mark.asyncio
    async def test_unexpected_lookup_error_falls_back(self, mock_store, settings):
        async def get_like_status(actor_id, item_id):
            if item_id == "C":
                raise ValueError("Expecting value: line 1 column 1")
            if item_id == "B":
                raise TypeError("int() argument must be a string, not 'NoneType'")
            return LikeStatus(liked=True, like_count=1)

        mock_store.get_like_status.side_effect = get_like_status
        engine = EngagementEngine(mock_store, "u-member", settings)

        entries = await engine.load()

        assert [e.item.id for e in entries] == ["A", "B", "C"]
        assert engine.entry("A").liked is True
        assert engine.entry("B").liked is False
        assert engine.entry("C").liked is False
        assert engine.entry("C").like_count == 2

    @pytest.mark.asyncio
    async def test_slow_lookup_times_out(self, mock_store, settings):
        async def get_like_status(actor_id, item_id):
            if item_id == "C":
                await asyncio.sleep(5)
            return LikeStatus(liked=True, like_count=9)

        mock_store.get_like_status.side_effect = get_like_status
        engine = EngagementEngine(mock_store, "u-member", settings)

        await engine.load()

        assert engine.entry("C").liked is False
        assert engine.entry("C").like_count == 2
        assert engine.entry("A").liked is True


class TestToggleLike:
    """Test optimistic like toggling."""

    @pytest.mark.asyncio
    async def test_confirmed_like(self, mock_store, settings):
        mock_store.like.return_value = LikeCount(like_count=5)
        engine = EngagementEngine(mock_store, "u-member", settings)
        await engine.load()

        entry = await engine.toggle_like("B")

        assert entry.liked is True
        assert entry.like_count == 5
        assert [e.item.id for e in engine.projection(Projection.FAVORITES)] == ["B", "C"]
        mock_store.like.assert_awaited_once_with("u-member", "B")

    @pytest.mark.asyncio
    async def test_unlike_of_liked_item(self, mock_store, settings):
        mock_store.unlike.return_value = LikeCount(like_count=1)
        engine = EngagementEngine(mock_store, "u-member", settings)
        await engine.load()

        entry = await engine.toggle_like("C")

        assert entry.liked is False
        assert entry.like_count == 1
        assert engine.projection(Projection.FAVORITES) == []

    @pytest.mark.asyncio
    async def test_failure_rolls_back(self, mock_store, settings):
        mock_store.unlike.side_effect = UnavailableError("unlike", "down")
        engine = EngagementEngine(mock_store, "u-member", settings)
        await engine.load()

        with pytest.raises(UnavailableError):
            await engine.toggle_like("C")

        entry = engine.entry("C")
        assert entry.liked is True
        assert entry.like_count == 2
        assert entry.pending is False
        mock_store.unlike.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_optimistic_state_visible_while_in_flight(self, mock_store, settings):
        release = asyncio.Event()

        async def slow_like(actor_id, item_id):
            await release.wait()
            return LikeCount(like_count=1)

        mock_store.like.side_effect = slow_like
        engine = EngagementEngine(mock_store, "u-member", settings)
        await engine.load()

        task = asyncio.create_task(engine.toggle_like("A"))
        await asyncio.sleep(0)

        pending = engine.entry("A")
        assert pending.liked is True
        assert pending.like_count == 1
        assert pending.pending is True

        with pytest.raises(ConflictError):
            await engine.toggle_like("A")

        release.set()
        confirmed = await task
        assert confirmed.pending is False
        assert mock_store.like.await_count == 1

    @pytest.mark.asyncio
    async def test_unknown_item(self, mock_store, settings):
        engine = EngagementEngine(mock_store, "u-member", settings)
        await engine.load()

        with pytest.raises(NotFoundError):
            await engine.toggle_like("Z")

    @pytest.mark.asyncio
    async def test_set_like_noop_when_already_liked(self, mock_store, settings):
        engine = EngagementEngine(mock_store, "u-member", settings)
        await engine.load()

        entry = await engine.set_like("C", True)

        assert entry.liked is True
        mock_store.like.assert_not_awaited()


class TestRegistry:
    def test_one_engine_per_viewer(self, mock_store, settings):
        registry = EngagementRegistry(mock_store, settings)

        assert registry.for_viewer("u1") is registry.for_viewer("u1")
        assert registry.for_viewer("u1") is not registry.for_viewer("u2")

    def test_least_recently_used_engine_evicted(self, mock_store):
        registry = EngagementRegistry(
            mock_store, Settings(_env_file=None, engagement_max_viewers=2)
        )
        first = registry.for_viewer("u1")
        registry.for_viewer("u2")
        registry.for_viewer("u1")

        registry.for_viewer("u3")

        assert len(registry) == 2
        assert "u2" not in registry
        assert registry.for_viewer("u1") is first

    @pytest.mark.asyncio
    async def test_engine_with_like_in_flight_is_kept(self, mock_store):
        registry = EngagementRegistry(
            mock_store,
            Settings(_env_file=None, engagement_max_viewers=1, like_lookup_timeout_seconds=0.2),
        )
        release = asyncio.Event()

        async def slow_like(actor_id, item_id):
            await release.wait()
            return LikeCount(like_count=1)

        mock_store.like.side_effect = slow_like
        busy = registry.for_viewer("u1")
        await busy.load()
        task = asyncio.create_task(busy.toggle_like("A"))
        await asyncio.sleep(0)

        registry.for_viewer("u2")

        assert "u1" in registry
        assert "u2" in registry
        release.set()
        await task

        registry.for_viewer("u3")
        assert len(registry) == 1
        assert "u3" in registry

    @pytest.mark.asyncio
    async def test_invalidate_marks_feeds_stale(self, mock_store, settings):
        registry = EngagementRegistry(mock_store, settings)
        first = registry.for_viewer("u1")
        second = registry.for_viewer("u2")
        await first.load()
        await second.load()

        registry.invalidate(["u1"])
        assert not first.is_loaded
        assert second.is_loaded

        registry.invalidate()
        assert not second.is_loaded
