"""Tests for PreferenceSyncService, the façade over store, engines and sync bookkeeping."""

import json

import pytest

from preferences.store import InMemoryPreferenceStore, StoreKey
from shared_types import (
    InsightStatus,
    PreferenceSource,
    Strength,
    SyncOutcome,
    SyncStatus,
)
from sync.service import PreferenceSyncService


def _restaurant(id, cuisine, price_level, ambiance):
    return {"id": id, "cuisine": cuisine, "priceLevel": price_level, "ambiance": ambiance}


@pytest.fixture
def with_companion(service, companion_profile):
    companion = service.add_companion(
        {"name": "Sam", "relationship": "partner", "preferences": companion_profile.model_dump()}
    )
    return service, companion


class TestLoad:
    def test_creates_default_profile(self, service, memory_store):
        assert service.preferences.user_id == "user-1"
        assert service.preferences.version == 1
        assert service.sync_status == SyncStatus.SYNCED
        assert memory_store.get(StoreKey.USER_PREFERENCES) is not None

    def test_reload_keeps_existing_profile(self, service, memory_store):
        service.update_preference("social", "travelStyle", "solo")
        other = PreferenceSyncService(memory_store, user_id="someone-else")
        assert other.load()
        assert other.preferences.user_id == "user-1"
        assert other.preferences.social.travel_style == "solo"

    def test_corrupt_profile_replaced_with_default(self, memory_store):
        memory_store.set(StoreKey.USER_PREFERENCES, "{garbage")
        svc = PreferenceSyncService(memory_store, user_id="u9")
        assert svc.load()
        assert svc.preferences.user_id == "u9"


class TestPreferences:
    def test_update(self, service):
        assert service.update_preference("dining", "priceRange", {"min": 1, "max": 2}, "strong")
        assert service.preferences.dining.price_range.max == 2
        assert service.preferences.version == 2
        assert service.sync_status == SyncStatus.PENDING
        assert service.get_preference_strength("dining", "priceRange") == Strength.STRONG
        assert service.get_preference_source("dining", "price_range") == PreferenceSource.EXPLICIT

    def test_update_unknown_field(self, service):
        assert not service.update_preference("dining", "michelinStars", 3)
        assert service.preferences.version == 1

    def test_accessor_defaults(self, service):
        assert service.get_preference_strength("dining", "ambiance") == Strength.NEUTRAL
        assert service.get_preference_source("dining", "ambiance") == PreferenceSource.DEFAULT
        assert service.get_preference_strength("dining", "nope") == Strength.NEUTRAL

    def test_completeness(self, service):
        assert service.get_category_completeness("dining") == 78
        assert service.get_category_completeness("shopping") == 0

    def test_reset(self, service):
        service.update_preference("social", "travelStyle", "solo")
        assert service.reset_preferences()
        assert service.preferences.social.travel_style == "couple"
        assert service.preferences.metadata == {}


class TestCompanions:
    def test_add_assigns_fresh_id(self, service):
        companion = service.add_companion({"id": "chosen", "name": "Sam"})
        assert companion.id != "chosen"
        assert companion.id.startswith("companion_")
        assert [c.name for c in service.companions] == ["Sam"]

    def test_add_invalid(self, service):
        assert service.add_companion({"relationship": "partner"}) is None

    def test_update_and_remove(self, service):
        companion = service.add_companion({"name": "Sam"})
        assert service.update_companion(companion.model_copy(update={"name": "Samantha"}))
        assert [c.name for c in service.companions] == ["Samantha"]
        assert service.remove_companion(companion.id)
        assert service.companions == []


class TestMerge:
    def test_no_companions(self, service):
        assert service.merge_with_companions([]) is None
        assert service.merge_with_companions(["companion_missing"]) is None

    def test_companion_without_preferences_skipped(self, service):
        companion = service.add_companion({"name": "Sam"})
        assert service.merge_with_companions([companion.id]) is None

    def test_sync_disabled_companion_skipped(self, service, companion_profile):
        companion = service.add_companion(
            {"name": "Sam", "preferences": companion_profile.model_dump(), "sync_enabled": False}
        )
        assert service.merge_with_companions([companion.id]) is None

    def test_merge_persists_snapshot(self, with_companion, memory_store):
        service, companion = with_companion
        merged = service.merge_with_companions([companion.id])
        assert [p.name for p in merged.participants] == ["You", "Sam"]
        assert service.merged_preferences.id == merged.id
        reloaded = PreferenceSyncService(memory_store)
        assert reloaded.load()
        assert reloaded.merged_preferences.id == merged.id

    def test_resolve_conflict(self, with_companion, memory_store):
        service, companion = with_companion
        service.update_preference("dining", "priceRange", {"min": 3, "max": 4})
        merged = service.merge_with_companions([companion.id])
        assert service.unresolved_conflict_count == 1
        conflict_id = merged.conflicts[0].id

        assert service.resolve_conflict(conflict_id, "average")
        assert service.unresolved_conflict_count == 0
        assert service.conflicts[0].resolved_value["min"] == 2
        # idempotent
        assert service.resolve_conflict(conflict_id, "average")
        assert not service.resolve_conflict(conflict_id, "user_wins")
        assert not service.resolve_conflict(conflict_id, "strongest_wins")

        stored = json.loads(memory_store.get(StoreKey.MERGED_PREFERENCES))
        assert stored["unresolvedConflicts"] == 0

    def test_resolve_without_merge(self, service):
        assert not service.resolve_conflict("conflict_x", "average")

    def test_clear_merged(self, with_companion, memory_store):
        service, companion = with_companion
        service.merge_with_companions([companion.id])
        assert service.clear_merged_preferences()
        assert service.merged_preferences is None
        assert memory_store.get(StoreKey.MERGED_PREFERENCES) is None


class TestScoring:
    def test_personalization_off_is_neutral(self, service):
        assert service.update_suggestion_settings(enable_personalization=False)
        result = service.score_restaurant(_restaurant("r1", "italian", 2, "romantic"))
        assert result.overall_score == 50
        assert result.personalized is False

    def test_strict_filtering_and_order(self, service):
        service.update_suggestion_settings(strict_filtering=True, min_score=60)
        items = [
            _restaurant("r_mid", "thai", 4, "quiet"),
            _restaurant("r_top", "italian", 2, "romantic"),
            _restaurant("r_low", "thai", 5, "quiet"),
        ]
        scores = service.score_items(items, "restaurant")
        assert [s.item_id for s in scores] == ["r_top", "r_mid"]
        assert [s.overall_score for s in scores] == [76, 62]

    def test_without_strict_filtering_keeps_all(self, service):
        items = [_restaurant("a", "thai", 5, "quiet"), _restaurant("b", "italian", 2, "romantic")]
        assert [s.item_id for s in service.score_items(items, "restaurant")] == ["b", "a"]

    def test_invalid_item_scores_neutral(self, service):
        result = service.score_activity({"name": "no id"})
        assert result.overall_score == 50
        assert result.item_id == "unknown"

    def test_invalid_settings_rejected(self, service):
        assert not service.update_suggestion_settings(min_score=150)
        assert service.suggestion_settings.min_score == 40

    def test_unknown_item_type_scores_neutral(self, service):
        scores = service.score_items([{"id": "x"}, {"id": "y"}], "museum")
        assert [s.overall_score for s in scores] == [50, 50]
        assert {s.item_type for s in scores} == {"museum"}
        assert all(not s.personalized for s in scores)

    def test_unknown_setting_rejected(self, service):
        assert not service.update_suggestion_settings(min_scor=70)
        assert service.suggestion_settings.min_score == 40

    def test_uses_merged_profile(self, with_companion):
        service, companion = with_companion
        service.merge_with_companions([companion.id])
        result = service.score_activity({"id": "a1", "type": "cultural", "intensity": "light", "duration": 9})
        duration = next(m for m in result.match_breakdown if m.field == "duration")
        assert duration.score == 50


class TestLearning:
    def test_events_generate_and_apply_insight(self, service, sample_events):
        for event in sample_events:
            assert service.record_event(event.model_dump())
        assert len(service.pending_insights) == 1
        insight = service.pending_insights[0]
        assert insight.based_on == ["event_1", "event_3", "event_4"]

        assert service.apply_insight(insight.id)
        assert service.pending_insights == []
        assert service.learning_insights[0].status == InsightStatus.ACCEPTED
        assert "thai" in {c.type for c in service.preferences.dining.cuisine_types}
        assert service.sync_status == SyncStatus.PENDING

    def test_reject(self, service, sample_events):
        for event in sample_events:
            service.record_event(event)
        insight_id = service.pending_insights[0].id
        assert service.reject_insight(insight_id)
        assert not service.apply_insight(insight_id)

    def test_invalid_event(self, service):
        assert not service.record_event({"eventType": "booking"})

    def test_bad_timestamp_not_persisted(self, service, sample_events):
        bad = {**sample_events[0].model_dump(), "id": "event_bad", "timestamp": "yesterday"}
        assert not service.record_event(bad)
        assert service.repository.load_events() == []

        assert all(service.record_event(event) for event in sample_events)
        assert len(service.pending_insights) == 1


class TestSync:
    def test_sync_marks_synced_once(self, service):
        service.update_preference("social", "travelStyle", "solo")
        first = service.sync_now()
        assert first.status == SyncOutcome.SUCCESS
        assert first.changes_applied == 1
        assert service.sync_status == SyncStatus.SYNCED
        version = service.preferences.version
        synced_at = service.last_sync_time

        second = service.sync_now()
        assert second.status == SyncOutcome.SUCCESS
        assert second.changes_applied == 0
        assert service.preferences.version == version
        assert service.last_sync_time == synced_at
        assert [r.id for r in service.sync_history] == [first.id, second.id]

    def test_sync_after_close_fails(self, service):
        service.close()
        assert service.sync_now().status == SyncOutcome.FAILED


class TestClose:
    def test_calls_refused_after_close(self, service):
        service.close()
        assert not service.update_preference("social", "travelStyle", "solo")
        assert service.merge_with_companions(["c"]) is None
        assert service.export_preferences() is None
        assert not service.load()

    def test_late_results_dropped(self, service):
        before = service.preferences
        service.close()
        service._apply(profile=None, companions=["late"])
        assert service.preferences is before
        assert service.companions == []


class TestExportImport:
    def test_round_trip_to_new_store(self, with_companion, sample_events):
        service, _ = with_companion
        service.update_preference("social", "travelStyle", "friends")
        for event in sample_events:
            service.record_event(event)
        payload = service.export_preferences()

        target = PreferenceSyncService(InMemoryPreferenceStore(), user_id="other")
        assert target.load()
        assert target.import_preferences(payload)
        assert target.preferences.user_id == "user-1"
        assert target.preferences.social.travel_style == "friends"
        assert [c.name for c in target.companions] == ["Sam"]
        assert len(target.repository.load_events()) == 4

    def test_import_rejects_bad_event_timestamp(self, service, sample_events):
        for event in sample_events:
            service.record_event(event)
        data = json.loads(service.export_preferences())
        data["learningHistory"][0]["timestamp"] = "yesterday"
        data["preferences"]["social"]["travelStyle"] = "solo"

        assert not service.import_preferences(data)
        assert service.preferences.social.travel_style == "couple"
        assert len(service.repository.load_events()) == 4

    def test_import_rejects_bad_payload(self, service):
        assert not service.import_preferences("not json")
        assert not service.import_preferences(json.dumps({"version": "9.9"}))
        assert service.preferences.user_id == "user-1"

    def test_clear_all_data(self, with_companion, memory_store):
        service, _ = with_companion
        service.update_preference("social", "travelStyle", "solo")
        assert service.clear_all_data()
        assert service.companions == []
        assert service.preferences.social.travel_style == "couple"
        assert memory_store.keys() == [StoreKey.USER_PREFERENCES]
