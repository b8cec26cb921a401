"""
Shared test fixtures for the Social Battery.

This module provides common fixtures used across all test modules:
- Environment setup (dev mode, memory storage, no OpenAI key)
- A fixed reference time and a controllable clock
- An interaction factory with sensible defaults
- A store backed by an in-memory blob store

Usage:
    All fixtures are automatically available to any test in the tests/ directory.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta

import pytest

# ---------------------------------------------------------------------------
# 1. Environment setup -- must run before any application imports
# ---------------------------------------------------------------------------

os.environ.setdefault("SOCIAL_BATTERY_DEV_MODE", "1")
os.environ.setdefault("SOCIAL_BATTERY_STORAGE", "memory")
os.environ.pop("OPENAI_API_KEY", None)

# ---------------------------------------------------------------------------
# Application imports (after env vars are set)
# ---------------------------------------------------------------------------

from src.models.battery import (  # noqa: E402
    InteractionType,
    SocialContext,
    SocialInteraction,
)
from src.services.persistence import MemoryBlobStore, SnapshotRepository  # noqa: E402
from src.services.state_store import SocialBatteryStore  # noqa: E402

# Wednesday, 12 June 2024, 14:00 UTC (week starts Sunday 9 June)
REFERENCE_NOW = datetime(2024, 6, 12, 14, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock for the store and scheduler."""

    def __init__(self, now: datetime = REFERENCE_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def build_interaction(**overrides) -> SocialInteraction:
    """SocialInteraction with defaults for every required field."""
    fields = {
        "id": "interaction_test",
        "timestamp": REFERENCE_NOW,
        "type": InteractionType.WORK_MEETING,
        "context": SocialContext.WORK,
        "duration": 60,
        "intensity": 5,
        "people_count": 3,
        "enjoyment": 5,
        "energy_before": 75,
        "energy_after": 65,
    }
    fields.update(overrides)
    return SocialInteraction(**fields)


# ---------------------------------------------------------------------------
# 2. Time
# ---------------------------------------------------------------------------


@pytest.fixture()
def now() -> datetime:
    """The fixed reference time used across tests."""
    return REFERENCE_NOW


@pytest.fixture()
def clock() -> FakeClock:
    """A clock starting at REFERENCE_NOW that tests can advance."""
    return FakeClock()


# ---------------------------------------------------------------------------
# 3. Interactions
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_interaction():
    """
    Factory for SocialInteraction records.

    Example usage in a test::

        def test_something(make_interaction):
            interaction = make_interaction(type=InteractionType.SOLO_TIME)
    """
    return build_interaction


@pytest.fixture()
def interaction_payload() -> dict:
    """Scenario A input: a draining work meeting."""
    return {
        "type": "work_meeting",
        "context": "work",
        "duration": 60,
        "intensity": 8,
        "people_count": 5,
        "enjoyment": 3,
        "energy_before": 75,
        "energy_after": 64.6,
    }


# ---------------------------------------------------------------------------
# 4. Store
# ---------------------------------------------------------------------------


@pytest.fixture()
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture()
def store(blob_store, clock) -> SocialBatteryStore:
    """A SocialBatteryStore on an in-memory blob store and the fake clock."""
    return SocialBatteryStore(SnapshotRepository(blob_store), clock=clock)
