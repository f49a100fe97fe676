"""Shared test fixtures for prefsync."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def memory_store():
    from preferences.store import InMemoryPreferenceStore

    return InMemoryPreferenceStore()


@pytest.fixture
def repository(memory_store):
    from preferences.repository import PreferenceRepository

    return PreferenceRepository(memory_store)


@pytest.fixture
def default_profile():
    from preferences.defaults import create_default_profile

    return create_default_profile("user-1")


@pytest.fixture
def stored_profile(repository, default_profile):
    """Default profile already persisted at version 1."""
    return repository.replace_profile(default_profile)


@pytest.fixture
def service(memory_store):
    """Loaded service over an in-memory store, with fast retries."""
    from sync.service import PreferenceSyncService

    svc = PreferenceSyncService(
        memory_store,
        user_id="user-1",
        config={"retry": {"max_attempts": 3, "min_wait": 0, "max_wait": 0}},
    )
    assert svc.load()
    return svc


@pytest.fixture
def companion_profile():
    """A companion who likes Italian and Thai, cheap food and hard hikes."""
    from preferences.defaults import create_default_profile
    from preferences.models import IntensityRange, PriceRange, TypeChoice

    profile = create_default_profile("companion-1")
    profile.dining.cuisine_types = [
        TypeChoice(type="italian", strength="moderate"),
        TypeChoice(type="thai", strength="strong"),
    ]
    profile.dining.price_range = PriceRange(min=1, max=2, strength="strong")
    profile.activities.physical_intensity = IntensityRange(
        min="moderate", max="extreme", preferred="vigorous"
    )
    return profile


@pytest.fixture
def sample_events():
    """Three Thai bookings and one Mexican booking within the last week."""
    from learning.models import PreferenceLearningEvent

    now = datetime.now()

    def booking(i, cuisine, days_ago):
        return PreferenceLearningEvent(
            id=f"event_{i}",
            timestamp=(now - timedelta(days=days_ago)).isoformat(),
            event_type="booking",
            item_type="restaurant",
            item_id=f"rest_{i}",
            item_attributes={"cuisine": cuisine},
            user_action={"type": "booking"},
        )

    return [
        booking(1, "thai", 6),
        booking(2, "mexican", 5),
        booking(3, "thai", 3),
        booking(4, "thai", 1),
    ]
