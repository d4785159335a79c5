"""
Pytest Configuration and Shared Fixtures.

This module provides common fixtures for all tests:

- member / scholar / manager / admin: one active actor per role tier
- store: InMemoryContentService seeded with those actors
- inbox: empty NotificationInbox
- make_item: factory for ContentItem values
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.config.settings import Settings, get_settings
from src.core.circuit_breaker import reset_all_circuit_breakers
from src.models.schemas import Actor, ApprovalStatus, ContentItem, Role
from src.services.memory_store import InMemoryContentService
from src.services.notifications import NotificationInbox

BASE_TIME = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _isolate_globals():
    """Fresh settings cache and closed circuits for every test."""
    get_settings.cache_clear()
    reset_all_circuit_breakers()
    yield
    get_settings.cache_clear()
    reset_all_circuit_breakers()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, like_lookup_timeout_seconds=0.2)


@pytest.fixture
def member() -> Actor:
    return Actor(id="u-member", name="Aisha", role=Role.USER)


@pytest.fixture
def other_member() -> Actor:
    return Actor(id="u-other", name="Bilal", role=Role.USER)


@pytest.fixture
def scholar() -> Actor:
    return Actor(id="u-scholar", name="Shaykh Yusuf", role=Role.SCHOLAR)


@pytest.fixture
def manager() -> Actor:
    return Actor(id="u-manager", name="Maryam", role=Role.MANAGER)


@pytest.fixture
def admin() -> Actor:
    return Actor(id="u-admin", name="Khalid", role=Role.ADMIN)


@pytest.fixture
def make_item():
    """Build ContentItem values with sensible defaults."""
    counter = {"n": 0}

    def _make(item_id: str | None = None, **fields) -> ContentItem:
        counter["n"] += 1
        defaults = {
            "id": item_id or f"d{counter['n']}",
            "owner_id": "u-member",
            "title": f"Dua {counter['n']}",
            "created_at": BASE_TIME + timedelta(minutes=counter["n"]),
        }
        if fields.get("approval_status") == ApprovalStatus.REJECTED:
            defaults["rejection_reason"] = "Needs a source"
        return ContentItem(**{**defaults, **fields})

    return _make


@pytest.fixture
def store(member, other_member, scholar, manager, admin) -> InMemoryContentService:
    service = InMemoryContentService()
    for actor in (member, other_member, scholar, manager, admin):
        service.seed_actor(actor)
    return service


@pytest.fixture
def inbox() -> NotificationInbox:
    return NotificationInbox()
