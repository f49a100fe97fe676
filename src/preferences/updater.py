"""Preference Update Engine: single-field mutations with provenance."""

from datetime import datetime
from typing import Any, Optional

import structlog

from cli.retry import stale_write_retry
from errors import StaleProfileError, UnknownFieldError
from shared_types import PreferenceCategory, PreferenceSource, Strength, SyncStatus

from .models import PreferenceProfile, PreferenceValue
from .registry import get_field
from .repository import PreferenceRepository

logger = structlog.get_logger().bind(source="updater")

EXPLICIT_CONFIDENCE = 1.0
INFERRED_CONFIDENCE = 0.7


def apply_update(
    profile: PreferenceProfile,
    category: PreferenceCategory | str,
    field: str,
    value: Any,
    strength: Strength | str = Strength.MODERATE,
    source: PreferenceSource | str = PreferenceSource.EXPLICIT,
    now: Optional[datetime] = None,
    learned_from: Optional[list[str]] = None,
) -> PreferenceProfile:
    """Return a copy of profile with one field written and its metadata upserted.

    The version is left alone; the repository bumps it on save.

    Raises:
        UnknownFieldError: category/field not registered.
        ValidationError: value does not fit the field's type.
    """
    spec = get_field(category, field)
    source = PreferenceSource(source)
    updated = profile.model_copy(deep=True)
    spec.write(updated, value)
    updated.metadata[spec.metadata_key] = PreferenceValue(
        value=spec.dump(spec.read(updated)),
        strength=Strength(strength),
        source=source,
        confidence=EXPLICIT_CONFIDENCE if source == PreferenceSource.EXPLICIT else INFERRED_CONFIDENCE,
        last_updated=(now or datetime.now()).isoformat(),
        learned_from=learned_from,
    )
    updated.sync_status = SyncStatus.PENDING
    return updated


class PreferenceUpdater:
    """Applies field updates against the stored profile, retrying stale writes."""

    def __init__(self, repository: PreferenceRepository, retry_config: Optional[dict] = None):
        self.repository = repository
        cfg = retry_config or {}
        self._write = stale_write_retry(
            max_attempts=cfg.get("max_attempts", 5),
            min_wait=cfg.get("min_wait", 0.01),
            max_wait=cfg.get("max_wait", 0.2),
        )(self._write_once)

    def _write_once(self, category, field, value, strength, source, learned_from):
        profile = self.repository.load_profile()
        if profile is None:
            return None
        updated = apply_update(
            profile, category, field, value, strength, source, learned_from=learned_from
        )
        return self.repository.save_profile(updated)

    def update_preference(
        self,
        category: PreferenceCategory | str,
        field: str,
        value: Any,
        strength: Strength | str = Strength.MODERATE,
        source: PreferenceSource | str = PreferenceSource.EXPLICIT,
        learned_from: Optional[list[str]] = None,
    ) -> Optional[PreferenceProfile]:
        """Write one field. Returns the saved profile, or None on any failure."""
        try:
            saved = self._write(category, field, value, strength, source, learned_from)
        except UnknownFieldError as e:
            logger.warning("preference.unknown_field", category=str(category), field=field, error=str(e))
            return None
        except ValueError as e:  # pydantic ValidationError, bad strength/source
            logger.warning("preference.invalid_value", category=str(category), field=field, error=str(e))
            return None
        except StaleProfileError as e:
            logger.error("preference.write_conflict", category=str(category), field=field, error=str(e))
            return None

        if saved is None:
            logger.warning("preference.no_profile", category=str(category), field=field)
            return None
        logger.info(
            "preference.updated",
            category=str(category),
            field=field,
            source=str(source),
            version=saved.version,
        )
        return saved
