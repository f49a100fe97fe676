"""Typed repository over a PreferenceStore.

Each store key holds one JSON blob. Reads never raise: malformed JSON or a
blob that fails validation is logged and treated as absent. Profile writes
go through ``save_profile``, which serialises writers with a lock and a
compare-and-set on the stored version.
"""

import json
import threading
from typing import Any, Optional, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from errors import StaleProfileError
from learning.models import LearningInsight, PreferenceLearningEvent
from merge.models import MergedPreferences
from suggestions.models import SuggestionSettings
from sync.models import SyncRecord

from .models import Companion, PreferenceProfile
from .store import PreferenceStore, StoreKey

logger = structlog.get_logger().bind(source="repository")

M = TypeVar("M", bound=BaseModel)

MAX_EVENTS = 500
MAX_INSIGHTS = 50
MAX_SYNC_HISTORY = 20


def _dump(model: BaseModel) -> str:
    return model.model_dump_json(by_alias=True)


def _dump_list(models: list[BaseModel]) -> str:
    return json.dumps([m.model_dump(mode="json", by_alias=True) for m in models])


class PreferenceRepository:
    """Load and persist preference data through a key/value store."""

    def __init__(
        self,
        store: PreferenceStore,
        max_events: int = MAX_EVENTS,
        max_insights: int = MAX_INSIGHTS,
        max_history: int = MAX_SYNC_HISTORY,
    ):
        self.store = store
        self.max_events = max_events
        self.max_insights = max_insights
        self.max_history = max_history
        self._profile_lock = threading.RLock()

    # --- raw helpers ---

    def _decode(self, key: StoreKey, raw: Optional[str]) -> Any:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("store.malformed_json", key=str(key), error=str(e))
            return None

    def _read_json(self, key: StoreKey) -> Any:
        return self._decode(key, self.store.get(key))

    def _read_model(
        self, key: StoreKey, model: type[M], raw: Optional[str] = None
    ) -> Optional[M]:
        data = self._read_json(key) if raw is None else self._decode(key, raw)
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning("store.invalid_blob", key=str(key), errors=e.error_count())
            return None

    def _read_list(self, key: StoreKey, model: type[M]) -> list[M]:
        data = self._read_json(key)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("store.invalid_blob", key=str(key), reason="not a list")
            return []
        items = []
        for i, entry in enumerate(data):
            try:
                items.append(model.model_validate(entry))
            except ValidationError as e:
                logger.warning(
                    "store.invalid_entry", key=str(key), index=i, errors=e.error_count()
                )
        return items

    # --- profile ---

    def load_profile(self) -> Optional[PreferenceProfile]:
        return self._read_model(StoreKey.USER_PREFERENCES, PreferenceProfile)

    def save_profile(
        self, profile: PreferenceProfile, bump_version: bool = True
    ) -> PreferenceProfile:
        """Persist profile if the stored version still matches ``profile.version``.

        Returns the stored copy (version incremented unless ``bump_version``
        is False).

        Raises:
            StaleProfileError: another writer persisted first.
        """
        with self._profile_lock:
            raw = self.store.get(StoreKey.USER_PREFERENCES)
            current = (
                self._read_model(StoreKey.USER_PREFERENCES, PreferenceProfile, raw)
                if raw is not None
                else None
            )
            stored_version = current.version if current else None
            if stored_version != profile.version:
                raise StaleProfileError(profile.version, stored_version)

            version = profile.version + 1 if bump_version else profile.version
            updated = profile.model_copy(update={"version": version}, deep=True)
            if not self.store.compare_and_set(StoreKey.USER_PREFERENCES, raw, _dump(updated)):
                raise StaleProfileError(profile.version, None)

        logger.debug("profile.saved", version=updated.version, status=str(updated.sync_status))
        return updated

    def replace_profile(self, profile: PreferenceProfile) -> PreferenceProfile:
        """Unconditional write (create, reset, import)."""
        with self._profile_lock:
            self.store.set(StoreKey.USER_PREFERENCES, _dump(profile))
        return profile

    # --- companions ---

    def load_companions(self) -> list[Companion]:
        return self._read_list(StoreKey.COMPANIONS, Companion)

    def save_companions(self, companions: list[Companion]) -> None:
        self.store.set(StoreKey.COMPANIONS, _dump_list(companions))

    # --- merged snapshot ---

    def load_merged(self) -> Optional[MergedPreferences]:
        return self._read_model(StoreKey.MERGED_PREFERENCES, MergedPreferences)

    def save_merged(self, merged: MergedPreferences) -> None:
        self.store.set(StoreKey.MERGED_PREFERENCES, _dump(merged))

    def clear_merged(self) -> None:
        self.store.delete(StoreKey.MERGED_PREFERENCES)

    # --- suggestion settings ---

    def load_settings(self) -> SuggestionSettings:
        return self._read_model(StoreKey.SUGGESTION_SETTINGS, SuggestionSettings) or (
            SuggestionSettings()
        )

    def save_settings(self, settings: SuggestionSettings) -> None:
        self.store.set(StoreKey.SUGGESTION_SETTINGS, _dump(settings))

    # --- learning ---

    def load_events(self) -> list[PreferenceLearningEvent]:
        return self._read_list(StoreKey.LEARNING_EVENTS, PreferenceLearningEvent)

    def save_events(self, events: list[PreferenceLearningEvent]) -> list[PreferenceLearningEvent]:
        kept = events[-self.max_events :]
        self.store.set(StoreKey.LEARNING_EVENTS, _dump_list(kept))
        return kept

    def append_event(self, event: PreferenceLearningEvent) -> list[PreferenceLearningEvent]:
        """Append to the capped event log; returns the retained log."""
        return self.save_events([*self.load_events(), event])

    def load_insights(self) -> list[LearningInsight]:
        return self._read_list(StoreKey.LEARNING_INSIGHTS, LearningInsight)

    def save_insights(self, insights: list[LearningInsight]) -> list[LearningInsight]:
        kept = insights[-self.max_insights :]
        self.store.set(StoreKey.LEARNING_INSIGHTS, _dump_list(kept))
        return kept

    # --- sync history ---

    def load_history(self) -> list[SyncRecord]:
        return self._read_list(StoreKey.SYNC_HISTORY, SyncRecord)

    def append_history(self, record: SyncRecord) -> list[SyncRecord]:
        kept = [*self.load_history(), record][-self.max_history :]
        self.store.set(StoreKey.SYNC_HISTORY, _dump_list(kept))
        return kept

    def clear_all(self) -> None:
        for key in StoreKey:
            self.store.delete(key)
        logger.info("store.cleared")
