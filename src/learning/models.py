"""Behavioural events and the insights mined from them."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from preferences.models import WireModel
from shared_types import EventType, InsightStatus, ItemType, PreferenceCategory


class UserAction(WireModel):
    type: str
    value: Optional[float] = None
    duration: Optional[float] = None


class PreferenceLearningEvent(WireModel):
    id: str = Field(default_factory=lambda: f"event_{uuid.uuid4().hex[:12]}")
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    event_type: EventType
    item_type: ItemType
    item_id: str
    item_attributes: dict[str, Any] = Field(default_factory=dict)
    user_action: UserAction
    inferred_preferences: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: str) -> str:
        try:
            datetime.fromisoformat(v)
        except (TypeError, ValueError):
            raise ValueError(f"timestamp must be ISO-8601, got {v!r}")
        return v

    @property
    def occurred_at(self) -> datetime:
        """Timestamp as naive local time (imported events may carry a UTC offset)."""
        ts = datetime.fromisoformat(self.timestamp)
        if ts.tzinfo is not None:
            ts = ts.astimezone().replace(tzinfo=None)
        return ts


class SuggestedUpdate(WireModel):
    field: str
    current_value: Any = None
    suggested_value: Any = None
    reason: str = ""


class LearningInsight(WireModel):
    id: str = Field(default_factory=lambda: f"insight_{uuid.uuid4().hex[:12]}")
    category: PreferenceCategory
    insight: str
    confidence: float = Field(ge=0.0, le=1.0)
    based_on: list[str] = Field(default_factory=list)
    suggested_update: SuggestedUpdate
    status: InsightStatus = InsightStatus.PENDING
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())
