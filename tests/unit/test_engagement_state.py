"""Unit tests for the engagement reducer and projections."""

from src.engagement.projections import Projection, merge_feeds, project
from src.engagement.state import (
    EngagementState,
    ItemsReset,
    LikeStatusesLoaded,
    LikeToggleConfirmed,
    LikeToggleFailed,
    LikeToggleRequested,
    reduce,
)
from src.models.schemas import ApprovalStatus, LikeStatus


def _loaded(counts: dict, liked: set = frozenset()) -> EngagementState:
    state = reduce(EngagementState(), ItemsReset(counts=counts))
    return reduce(
        state,
        LikeStatusesLoaded(
            statuses={k: LikeStatus(liked=k in liked, like_count=v) for k, v in counts.items()}
        ),
    )


class TestReducer:
    """Test reduce transitions."""

    def test_statuses_loaded(self):
        state = _loaded({"a": 3, "b": 0}, liked={"a"})

        assert state.is_liked("a")
        assert not state.is_liked("b")
        assert state.count("a") == 3

    def test_toggle_requested_is_optimistic(self):
        state = reduce(_loaded({"a": 3}), LikeToggleRequested("a"))

        assert state.is_liked("a")
        assert state.count("a") == 4
        assert state.is_pending("a")

    def test_unlike_never_goes_negative(self):
        state = reduce(_loaded({"a": 0}, liked={"a"}), LikeToggleRequested("a"))

        assert state.count("a") == 0
        assert not state.is_liked("a")

    def test_confirmed_adopts_server_count(self):
        state = reduce(_loaded({"a": 3}), LikeToggleRequested("a"))
        state = reduce(state, LikeToggleConfirmed("a", 7))

        assert state.is_liked("a")
        assert state.count("a") == 7
        assert not state.is_pending("a")

    def test_failed_restores_exactly(self):
        before = _loaded({"a": 3, "b": 1}, liked={"b"})

        after = reduce(reduce(before, LikeToggleRequested("b")), LikeToggleFailed("b"))

        assert after.liked == before.liked
        assert dict(after.counts) == dict(before.counts)
        assert not after.in_flight

    def test_second_request_while_pending_ignored(self):
        state = reduce(_loaded({"a": 3}), LikeToggleRequested("a"))

        assert reduce(state, LikeToggleRequested("a")) is state

    def test_reducer_does_not_mutate_input(self):
        before = _loaded({"a": 3})

        reduce(before, LikeToggleRequested("a"))

        assert not before.is_liked("a")
        assert before.count("a") == 3

    def test_loaded_statuses_skip_in_flight_items(self):
        state = reduce(_loaded({"a": 3}), LikeToggleRequested("a"))

        state = reduce(
            state, LikeStatusesLoaded(statuses={"a": LikeStatus(liked=False, like_count=3)})
        )

        assert state.is_liked("a")
        assert state.count("a") == 4

    def test_reset_keeps_outstanding_toggle(self):
        state = reduce(_loaded({"a": 3, "b": 1}), LikeToggleRequested("a"))

        state = reduce(state, ItemsReset(counts={"a": 3}))

        assert state.is_pending("a")
        assert state.count("a") == 4
        assert "b" not in state.counts


class TestMergeFeeds:
    """Test the owned/public union."""

    def test_union_owned_copy_wins(self, make_item):
        owned = [
            make_item("A", title="A pending"),
            make_item("B", title="B owned copy", approval_status=ApprovalStatus.APPROVED, is_public=True),
        ]
        public = [
            make_item("B", title="B public copy", approval_status=ApprovalStatus.APPROVED, is_public=True),
            make_item("C", owner_id="u-other", approval_status=ApprovalStatus.APPROVED, is_public=True),
        ]

        union = merge_feeds(owned, public)

        assert [i.id for i in union] == ["A", "B", "C"]
        assert union[1].title == "B owned copy"

    def test_empty_sources(self):
        assert merge_feeds([], []) == []


class TestProject:
    """Test projections over the union."""

    def test_tabs(self, make_item):
        union = [
            make_item("A"),
            make_item("C", owner_id="u-other", approval_status=ApprovalStatus.APPROVED, is_public=True),
        ]
        state = _loaded({"A": 0, "C": 2}, liked={"C"})

        assert [e.item.id for e in project(union, state, Projection.ALL, "u-member")] == ["A", "C"]
        assert [e.item.id for e in project(union, state, Projection.MINE, "u-member")] == ["A"]
        assert [e.item.id for e in project(union, state, "favorites", "u-member")] == ["C"]

    def test_query_matches_title_and_body(self, make_item):
        union = [
            make_item("A", title="Dua for travel"),
            make_item("B", title="Morning remembrance", body="Said before TRAVEL"),
            make_item("C", title="Evening adhkar"),
        ]
        state = _loaded({"A": 0, "B": 0, "C": 0})

        entries = project(union, state, Projection.ALL, "u-member", query="travel")

        assert [e.item.id for e in entries] == ["A", "B"]
