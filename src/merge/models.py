"""Merged group profile and conflict models."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from preferences.models import (
    AccessibilityPreferences,
    DailyBudget,
    IntensityRange,
    ModeChoice,
    PriceRange,
    SizeChoice,
    StarRating,
    StyleChoice,
    TimeChoice,
    TypeChoice,
    WireModel,
)
from shared_types import ConflictStrategy, PreferenceCategory, Strength


class Participant(WireModel):
    user_id: str
    name: str
    weight: float


class PreferenceConflict(WireModel):
    """One irreconcilable field between the first two participants.

    Values are stored in wire form so the snapshot round-trips through the
    store unchanged. Terminal once ``resolved_value`` is set.
    """

    id: str
    category: PreferenceCategory
    field: str
    display_name: str
    user_value: Any = None
    user_strength: Strength = Strength.MODERATE
    companion_value: Any = None
    companion_strength: Strength = Strength.MODERATE
    companion_name: str = "Companion"
    suggested_resolution: ConflictStrategy = ConflictStrategy.AVERAGE
    resolved_value: Any = None
    resolved_by: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved_value is not None


# Per-category partial records: only the fields the merge engine reduces.


class MergedDining(WireModel):
    cuisine_types: list[TypeChoice] = Field(default_factory=list)
    dining_styles: list[StyleChoice] = Field(default_factory=list)
    ambiance: list[TypeChoice] = Field(default_factory=list)
    dietary_restrictions: list[str] = Field(default_factory=list)
    price_range: Optional[PriceRange] = None


class MergedActivities(WireModel):
    activity_types: list[TypeChoice] = Field(default_factory=list)
    group_size_preference: list[SizeChoice] = Field(default_factory=list)
    physical_intensity: Optional[IntensityRange] = None
    child_friendly: bool = False
    pet_friendly: bool = False


class MergedAccommodation(WireModel):
    types: list[TypeChoice] = Field(default_factory=list)
    must_have_amenities: list[str] = Field(default_factory=list)
    star_rating: Optional[StarRating] = None


class MergedTransportation(WireModel):
    local_transport: list[ModeChoice] = Field(default_factory=list)
    max_walking_distance: Optional[int] = None


class MergedBudget(WireModel):
    daily_budget: Optional[DailyBudget] = None


class MergedTiming(WireModel):
    preferred_activity_times: list[TimeChoice] = Field(default_factory=list)
    pacing_style: Optional[str] = None


class MergedSocial(WireModel):
    travel_style: Optional[str] = None


class MergedPreferences(WireModel):
    id: str = Field(default_factory=lambda: f"merged_{uuid.uuid4().hex[:12]}")
    participants: list[Participant] = Field(default_factory=list)
    merged_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    conflicts: list[PreferenceConflict] = Field(default_factory=list)
    unresolved_conflicts: int = 0

    dining: MergedDining = Field(default_factory=MergedDining)
    activities: MergedActivities = Field(default_factory=MergedActivities)
    accommodation: MergedAccommodation = Field(default_factory=MergedAccommodation)
    transportation: MergedTransportation = Field(default_factory=MergedTransportation)
    budget: MergedBudget = Field(default_factory=MergedBudget)
    timing: MergedTiming = Field(default_factory=MergedTiming)
    accessibility: AccessibilityPreferences = Field(default_factory=AccessibilityPreferences)
    social: MergedSocial = Field(default_factory=MergedSocial)

    def recount_unresolved(self) -> int:
        self.unresolved_conflicts = sum(1 for c in self.conflicts if not c.is_resolved)
        return self.unresolved_conflicts

    def find_conflict(self, conflict_id: str) -> Optional[PreferenceConflict]:
        return next((c for c in self.conflicts if c.id == conflict_id), None)
