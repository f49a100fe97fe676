"""PreferenceSyncService is the façade the app talks to.

Wraps the repository and engines behind bool / None results: engine errors
are logged and never escape. The service caches the last loaded state
(profile, companions, merged snapshot, settings, insights, sync history);
once ``close()`` is called, results that complete afterwards are not applied
to the cache and new calls are refused.
"""

import threading
from datetime import datetime
from functools import wraps
from typing import Any, Optional

import structlog

from cli.retry import stale_write_retry
from errors import PreferenceSyncError
from learning.insights import LearningInsightEngine, default_rules
from learning.models import LearningInsight, PreferenceLearningEvent
from merge.engine import USER_NAME, MergeEngine
from merge.models import MergedPreferences
from merge.resolver import ConflictResolver, unresolved_count
from preferences.defaults import create_default_profile
from preferences.models import Companion, PreferenceProfile
from preferences.registry import category_completeness, get_field
from preferences.repository import PreferenceRepository
from preferences.store import PreferenceStore
from preferences.updater import PreferenceUpdater
from shared_types import (
    ConflictStrategy,
    InsightStatus,
    ItemType,
    PreferenceCategory,
    PreferenceSource,
    Strength,
    SyncOutcome,
    SyncStatus,
)
from suggestions.models import SuggestionScore, SuggestionSettings
from suggestions.scoring import SuggestionScorer

from .export import build_export, export_json, parse_export
from .models import LOCAL_DEVICE_ID, LOCAL_DEVICE_NAME, SyncRecord

logger = structlog.get_logger().bind(source="sync_service")

DEFAULT_USER_ID = "default_user"


def _guarded(default: Any = False):
    """Log and swallow failures of a façade operation, returning ``default``."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(self, *args, **kwargs):
            if self.closed:
                logger.warning("service.closed", operation=fn.__name__)
                return default
            try:
                return fn(self, *args, **kwargs)
            except (PreferenceSyncError, ValueError) as e:
                logger.warning("service.operation_rejected", operation=fn.__name__, error=str(e))
                return default
            except Exception as e:
                logger.error("service.operation_failed", operation=fn.__name__, error=str(e))
                return default

        return wrapper

    return decorator


class PreferenceSyncService:
    """Preference CRUD, companions, merging, scoring, learning and sync bookkeeping."""

    def __init__(
        self,
        store: PreferenceStore,
        user_id: str = DEFAULT_USER_ID,
        config: Optional[dict] = None,
    ):
        config = config or {}
        learning_cfg = config.get("learning", {})
        merge_cfg = config.get("merge", {})
        sync_cfg = config.get("sync", {})
        retry_cfg = config.get("retry", {})

        self.user_id = user_id
        self.device_id = sync_cfg.get("device_id", LOCAL_DEVICE_ID)
        self.device_name = sync_cfg.get("device_name", LOCAL_DEVICE_NAME)

        self.repository = PreferenceRepository(
            store,
            max_events=learning_cfg.get("max_events", 500),
            max_insights=learning_cfg.get("max_insights", 50),
        )
        self.updater = PreferenceUpdater(self.repository, retry_cfg)
        self.merge_engine = MergeEngine(
            set_keep_threshold=merge_cfg.get("set_keep_threshold", 0.3),
            intensity_conflict_spread=merge_cfg.get("intensity_conflict_spread", 2),
        )
        self.resolver = ConflictResolver()
        self.scorer = SuggestionScorer()
        self.learning = LearningInsightEngine(
            self.repository,
            self.updater,
            window_days=learning_cfg.get("window_days", 30),
            rules=default_rules(
                booking_threshold=learning_cfg.get("booking_threshold", 3),
                rating_threshold=learning_cfg.get("rating_threshold", 2),
                high_rating=learning_cfg.get("high_rating", 4),
            ),
        )
        self._sync_write = stale_write_retry(
            max_attempts=retry_cfg.get("max_attempts", 5),
            min_wait=retry_cfg.get("min_wait", 0.01),
            max_wait=retry_cfg.get("max_wait", 0.2),
        )(self._sync_once)

        self._lock = threading.RLock()
        self.closed = False
        self._profile: Optional[PreferenceProfile] = None
        self._companions: list[Companion] = []
        self._merged: Optional[MergedPreferences] = None
        self._settings = SuggestionSettings()
        self._insights: list[LearningInsight] = []
        self._history: list[SyncRecord] = []

    # --- state ---

    def _apply(self, **changes) -> None:
        """Write results into the cache unless the service has been closed."""
        with self._lock:
            if self.closed:
                logger.info("service.result_dropped", fields=sorted(changes))
                return
            for name, value in changes.items():
                setattr(self, f"_{name}", value)

    def close(self) -> None:
        with self._lock:
            self.closed = True
        logger.debug("service.closed_by_owner")

    @_guarded(default=False)
    def load(self) -> bool:
        """Load everything from the store, creating a default profile if none exists."""
        profile = self.repository.load_profile()
        if profile is None:
            profile = self.repository.replace_profile(create_default_profile(self.user_id))
            logger.info("profile.created_default", user_id=self.user_id)
        self._apply(
            profile=profile,
            companions=self.repository.load_companions(),
            merged=self.repository.load_merged(),
            settings=self.repository.load_settings(),
            insights=self.repository.load_insights(),
            history=self.repository.load_history(),
        )
        return True

    def refresh(self) -> bool:
        return self.load()

    @property
    def preferences(self) -> Optional[PreferenceProfile]:
        return self._profile

    @property
    def companions(self) -> list[Companion]:
        return list(self._companions)

    @property
    def merged_preferences(self) -> Optional[MergedPreferences]:
        return self._merged

    @property
    def conflicts(self) -> list:
        return list(self._merged.conflicts) if self._merged else []

    @property
    def suggestion_settings(self) -> SuggestionSettings:
        return self._settings

    @property
    def learning_insights(self) -> list[LearningInsight]:
        return list(self._insights)

    @property
    def sync_history(self) -> list[SyncRecord]:
        return list(self._history)

    @property
    def sync_status(self) -> Optional[SyncStatus]:
        return self._profile.sync_status if self._profile else None

    @property
    def last_sync_time(self) -> Optional[str]:
        return self._profile.last_synced if self._profile else None

    # --- preferences ---

    @_guarded(default=False)
    def update_preference(
        self,
        category: PreferenceCategory | str,
        field: str,
        value: Any,
        strength: Strength | str = Strength.MODERATE,
        source: PreferenceSource | str = PreferenceSource.EXPLICIT,
    ) -> bool:
        saved = self.updater.update_preference(category, field, value, strength, source)
        if saved is None:
            return False
        self._apply(profile=saved)
        return True

    @_guarded(default=False)
    def reset_preferences(self) -> bool:
        profile = self.repository.replace_profile(create_default_profile(self.user_id))
        self._apply(profile=profile)
        logger.info("profile.reset", user_id=self.user_id)
        return True

    # --- companions ---

    @_guarded(default=None)
    def add_companion(self, data: Companion | dict) -> Optional[Companion]:
        """Store a new companion under a freshly generated id."""
        fields = data.model_dump() if isinstance(data, Companion) else dict(data)
        fields.pop("id", None)
        companion = Companion.model_validate(fields)
        companions = [*self.repository.load_companions(), companion]
        self.repository.save_companions(companions)
        self._apply(companions=companions)
        logger.info("companion.added", companion_id=companion.id, name=companion.name)
        return companion

    @_guarded(default=False)
    def update_companion(self, companion: Companion | dict) -> bool:
        """Replace the companion with the same id, or append it if unknown."""
        companion = Companion.model_validate(companion)
        companions = self.repository.load_companions()
        for idx, existing in enumerate(companions):
            if existing.id == companion.id:
                companions[idx] = companion
                break
        else:
            companions.append(companion)
        self.repository.save_companions(companions)
        self._apply(companions=companions)
        return True

    @_guarded(default=False)
    def remove_companion(self, companion_id: str) -> bool:
        companions = [c for c in self.repository.load_companions() if c.id != companion_id]
        self.repository.save_companions(companions)
        self._apply(companions=companions)
        logger.info("companion.removed", companion_id=companion_id)
        return True

    # --- merging ---

    @_guarded(default=None)
    def merge_with_companions(
        self, companion_ids: list[str], weights: Optional[list[float]] = None
    ) -> Optional[MergedPreferences]:
        """Merge the user with the selected companions that have preferences and sync on.

        Returns None when there is no profile or no eligible companion.
        """
        profile = self.repository.load_profile()
        if profile is None:
            return None
        wanted = set(companion_ids)
        eligible = [c for c in self.repository.load_companions() if c.id in wanted and c.can_merge]
        if not eligible:
            logger.info("merge.no_companions", requested=len(companion_ids))
            return None

        merged = self.merge_engine.merge(
            [profile, *(c.preferences for c in eligible)],
            [USER_NAME, *(c.name for c in eligible)],
            weights,
        )
        self.repository.save_merged(merged)
        self._apply(merged=merged)
        return merged

    @_guarded(default=False)
    def clear_merged_preferences(self) -> bool:
        self.repository.clear_merged()
        self._apply(merged=None)
        return True

    @_guarded(default=False)
    def resolve_conflict(
        self,
        conflict_id: str,
        strategy: ConflictStrategy | str,
        manual_value: Any = None,
    ) -> bool:
        merged = self.repository.load_merged()
        if merged is None:
            logger.warning("conflict.no_merge", conflict_id=conflict_id)
            return False
        resolved = self.resolver.resolve(merged, conflict_id, strategy, manual_value)
        self.repository.save_merged(resolved)
        self._apply(merged=resolved)
        return True

    @property
    def unresolved_conflict_count(self) -> int:
        return unresolved_count(self._merged)

    # --- suggestions ---

    @_guarded(default=False)
    def update_suggestion_settings(self, **changes) -> bool:
        unknown = sorted(set(changes) - set(SuggestionSettings.model_fields))
        if unknown:
            raise ValueError(f"Unknown suggestion settings: {unknown}")
        settings = SuggestionSettings.model_validate({**self._settings.model_dump(), **changes})
        self.repository.save_settings(settings)
        self._apply(settings=settings)
        return True

    def _scoring_profile(self):
        if not self._settings.enable_personalization:
            return None
        return self._merged or self._profile

    def _score(self, item: Any, item_type: ItemType | str, profile) -> SuggestionScore:
        try:
            return self.scorer.score(item, item_type, profile)
        except (TypeError, ValueError) as e:
            item_id = item.get("id", "unknown") if isinstance(item, dict) else "unknown"
            logger.warning(
                "suggestion.invalid_item", item_id=item_id, item_type=str(item_type), error=str(e)
            )
            return self.scorer.neutral_score(str(item_id), str(item_type))

    def score_restaurant(self, item: Any) -> SuggestionScore:
        return self._score(item, ItemType.RESTAURANT, self._scoring_profile())

    def score_activity(self, item: Any) -> SuggestionScore:
        return self._score(item, ItemType.ACTIVITY, self._scoring_profile())

    def score_items(self, items: list, item_type: ItemType | str) -> list[SuggestionScore]:
        """Score a batch, best first. With strict filtering, drop items below min_score."""
        profile = self._scoring_profile()
        scores = [self._score(item, item_type, profile) for item in items or []]
        if self._settings.strict_filtering:
            scores = [s for s in scores if s.overall_score >= self._settings.min_score]
        return sorted(scores, key=lambda s: s.overall_score, reverse=True)

    # --- learning ---

    @_guarded(default=False)
    def record_event(self, event: PreferenceLearningEvent | dict) -> bool:
        event = PreferenceLearningEvent.model_validate(event)
        self.learning.record_event(event)
        self._apply(insights=self.repository.load_insights())
        return True

    @_guarded(default=False)
    def apply_insight(self, insight_id: str) -> bool:
        if not self.learning.apply_insight(insight_id):
            return False
        self._apply(
            insights=self.repository.load_insights(),
            profile=self.repository.load_profile(),
        )
        return True

    @_guarded(default=False)
    def reject_insight(self, insight_id: str) -> bool:
        if not self.learning.reject_insight(insight_id):
            return False
        self._apply(insights=self.repository.load_insights())
        return True

    @property
    def pending_insights(self) -> list[LearningInsight]:
        return [i for i in self._insights if i.status == InsightStatus.PENDING]

    # --- sync ---

    def _sync_once(self) -> Optional[PreferenceProfile]:
        profile = self.repository.load_profile()
        if profile is None or profile.sync_status == SyncStatus.SYNCED:
            return None
        synced = profile.model_copy(
            update={"sync_status": SyncStatus.SYNCED, "last_synced": datetime.now().isoformat()}
        )
        return self.repository.save_profile(synced, bump_version=False)

    def sync_now(self) -> SyncRecord:
        """Mark a pending profile synced and append a history record.

        Safe to repeat: an already-synced profile is left untouched and the
        record reports zero changes.
        """
        record = SyncRecord(device_id=self.device_id, device_name=self.device_name)
        if self.closed:
            logger.warning("service.closed", operation="sync_now")
            record.status = SyncOutcome.FAILED
            return record
        try:
            saved = self._sync_write()
            record.changes_applied = 1 if saved else 0
            history = self.repository.append_history(record)
        except Exception as e:
            record.status = SyncOutcome.FAILED
            logger.error("sync.failed", error=str(e))
            return record

        self._apply(profile=self.repository.load_profile(), history=history)
        logger.info("sync.completed", changes=record.changes_applied, record_id=record.id)
        return record

    # --- export / import ---

    @_guarded(default=None)
    def export_preferences(self) -> Optional[str]:
        profile = self.repository.load_profile()
        if profile is None:
            return None
        export = build_export(
            profile, self.repository.load_companions(), self.repository.load_events()
        )
        return export_json(export)

    @_guarded(default=False)
    def import_preferences(self, payload: str | dict) -> bool:
        """Overwrite profile, companions and the learning log from an export."""
        export = parse_export(payload)
        self.repository.replace_profile(export.preferences)
        self.repository.save_companions(export.companions)
        self.repository.save_events(export.learning_history)
        logger.info(
            "import.completed",
            user_id=export.user_id,
            companions=len(export.companions),
            events=len(export.learning_history),
        )
        return self.load()

    @_guarded(default=False)
    def clear_all_data(self) -> bool:
        self.repository.clear_all()
        return self.load()

    # --- accessors ---

    def get_preference_strength(self, category: PreferenceCategory | str, field: str) -> Strength:
        entry = self._metadata_entry(category, field)
        return entry.strength if entry else Strength.NEUTRAL

    def get_preference_source(
        self, category: PreferenceCategory | str, field: str
    ) -> PreferenceSource:
        entry = self._metadata_entry(category, field)
        return entry.source if entry else PreferenceSource.DEFAULT

    def get_category_completeness(self, category: PreferenceCategory | str) -> int:
        if self._profile is None:
            return 0
        try:
            return category_completeness(self._profile, category)
        except ValueError:
            return 0

    def _metadata_entry(self, category, field):
        if self._profile is None:
            return None
        try:
            key = get_field(category, field).metadata_key
        except PreferenceSyncError:
            return None
        return self._profile.metadata.get(key)
