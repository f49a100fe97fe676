"""Export / import of a full preference snapshot (mobile-compatible JSON)."""

import json
from datetime import datetime
from typing import Optional

import structlog
from pydantic import ValidationError

from errors import InvalidExportError
from learning.models import PreferenceLearningEvent
from preferences.models import Companion, PreferenceProfile

from .models import EXPORT_VERSION, PreferenceExport

logger = structlog.get_logger()

SUPPORTED_VERSIONS = {EXPORT_VERSION}


def build_export(
    profile: PreferenceProfile,
    companions: list[Companion],
    events: list[PreferenceLearningEvent],
    now: Optional[datetime] = None,
) -> PreferenceExport:
    return PreferenceExport(
        version=EXPORT_VERSION,
        exported_at=(now or datetime.now()).isoformat(),
        user_id=profile.user_id,
        preferences=profile,
        companions=companions,
        learning_history=events,
    )


def export_json(export: PreferenceExport) -> str:
    return json.dumps(export.to_wire(), indent=2)


def parse_export(data: str | dict) -> PreferenceExport:
    """Parse and validate an export payload.

    Raises:
        InvalidExportError: bad JSON, unknown version or schema mismatch.
    """
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise InvalidExportError(f"Export is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidExportError("Export must be a JSON object")

    version = data.get("version")
    if version not in SUPPORTED_VERSIONS:
        raise InvalidExportError(f"Unsupported export version: {version!r}")

    try:
        export = PreferenceExport.model_validate(data)
    except ValidationError as e:
        raise InvalidExportError(f"Export failed validation: {e.error_count()} errors") from e

    logger.debug(
        "export.parsed",
        user_id=export.user_id,
        companions=len(export.companions),
        events=len(export.learning_history),
    )
    return export
