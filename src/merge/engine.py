"""Merge Engine: reduce N participants' profiles into one group profile.

Each field is reduced according to its shape:

- weighted sets accumulate ``strength_weight * participant_weight`` per
  choice, keep choices scoring at least ``set_keep_threshold`` and bucket the
  score back onto the strength scale;
- ranges take the midpoint between the tightest and the widest bounds and
  raise a conflict when the participants' ranges are disjoint;
- ordinal bounds take the safe intersection, raising a conflict when the
  participants' upper bounds are too far apart; pacing takes the most
  relaxed value;
- safety flags and lists are OR-ed / unioned, and numeric limits take the
  most restrictive value.

Conflicts always describe the first two participants (the user and the
first companion).
"""

import uuid
from typing import Optional, Sequence

import structlog

from observability import metrics
from preferences.models import (
    INTENSITY_LEVELS,
    PACING_ORDER,
    AccessibilityPreferences,
    DailyBudget,
    DietaryMedical,
    IntensityRange,
    MobilityRequirements,
    PreferenceProfile,
    PriceRange,
    SensoryRequirements,
    StarRating,
    WeightedChoice,
)
from preferences.registry import get_field
from preferences.strength import round_half_up, score_to_strength, strength_weight
from shared_types import ConflictStrategy, PreferenceCategory, Strength

from .models import (
    MergedAccommodation,
    MergedActivities,
    MergedBudget,
    MergedDining,
    MergedPreferences,
    MergedSocial,
    MergedTiming,
    MergedTransportation,
    Participant,
    PreferenceConflict,
)

logger = structlog.get_logger().bind(source="merge")

USER_NAME = "You"
DEFAULT_COMPANION_NAME = "Companion"


def merge_weighted_choices(
    lists: Sequence[Sequence[WeightedChoice]],
    weights: Sequence[float],
    keep_threshold: float = 0.3,
) -> list[WeightedChoice]:
    """Accumulate weighted strengths per choice; keep those at or above the threshold.

    Output keeps first-appearance order. Absent choices contribute nothing.
    """
    scores: dict[str, float] = {}
    kinds: dict[str, type[WeightedChoice]] = {}
    for entries, weight in zip(lists, weights):
        for entry in entries:
            scores[entry.choice] = scores.get(entry.choice, 0.0) + (
                strength_weight(entry.strength) * weight
            )
            kinds.setdefault(entry.choice, type(entry))
    return [
        kinds[choice].of(choice, score_to_strength(score))
        for choice, score in scores.items()
        if score >= keep_threshold
    ]


def merge_bounds(bounds: Sequence[tuple[int, int]]) -> tuple[int, int, bool]:
    """Midpoint-merge (min, max) bounds.

    Returns ``(min, max, disjoint)`` where min is the half-up rounded midpoint
    of the largest minimum and the global minimum, max likewise for the
    smallest maximum and the global maximum.
    """
    mins = [lo for lo, _ in bounds]
    maxes = [hi for _, hi in bounds]
    min_max = max(mins)
    max_min = min(maxes)
    merged_min = round_half_up((min_max + min(mins)) / 2)
    merged_max = round_half_up((max_min + max(maxes)) / 2)
    return merged_min, merged_max, min_max > max_min


def _union(lists: Sequence[Sequence[str]]) -> list[str]:
    seen: dict[str, None] = {}
    for values in lists:
        for v in values:
            seen.setdefault(v, None)
    return list(seen)


class MergeEngine:
    """Reduces a user profile plus companion profiles into MergedPreferences."""

    def __init__(self, set_keep_threshold: float = 0.3, intensity_conflict_spread: int = 2):
        self.set_keep_threshold = set_keep_threshold
        self.intensity_conflict_spread = intensity_conflict_spread

    def merge(
        self,
        profiles: Sequence[PreferenceProfile],
        names: Sequence[str],
        weights: Optional[Sequence[float]] = None,
    ) -> MergedPreferences:
        """Merge participants. ``profiles[0]`` is the user.

        Raises:
            ValueError: no profiles, or names/weights length mismatch.
        """
        if not profiles:
            raise ValueError("merge needs at least one profile")
        if len(names) != len(profiles):
            raise ValueError(f"expected {len(profiles)} names, got {len(names)}")
        n = len(profiles)
        weights = list(weights) if weights is not None else [1 / n] * n
        if len(weights) != n:
            raise ValueError(f"expected {n} weights, got {len(weights)}")

        conflicts: list[PreferenceConflict] = []
        with metrics.timer("merge"):
            merged = MergedPreferences(
                participants=[
                    Participant(user_id=p.user_id, name=name, weight=w)
                    for p, name, w in zip(profiles, names, weights)
                ],
                dining=self._merge_dining(profiles, names, weights, conflicts),
                activities=self._merge_activities(profiles, names, weights, conflicts),
                accommodation=self._merge_accommodation(profiles, weights),
                transportation=self._merge_transportation(profiles, weights),
                budget=self._merge_budget(profiles, names, conflicts),
                timing=self._merge_timing(profiles, weights),
                accessibility=self._merge_accessibility(profiles),
                social=self._merge_social(profiles),
                conflicts=conflicts,
            )
            merged.recount_unresolved()

        metrics.counter("merge_runs")
        metrics.counter("conflicts_detected", len(conflicts))
        logger.info(
            "merge.completed",
            participants=n,
            conflicts=len(conflicts),
            merged_id=merged.id,
        )
        return merged

    # --- conflicts ---

    def _conflict(
        self,
        category: PreferenceCategory,
        field: str,
        values: list,
        strengths: list[Strength],
        names: Sequence[str],
        resolution: ConflictStrategy,
    ) -> PreferenceConflict:
        spec = get_field(category, field)
        companion_value = values[1] if len(values) > 1 else None
        conflict = PreferenceConflict(
            id=f"conflict_{category.value}_{spec.wire_name}_{uuid.uuid4().hex[:8]}",
            category=category,
            field=spec.wire_name,
            display_name=spec.display_name,
            user_value=spec.dump(values[0]),
            user_strength=strengths[0],
            companion_value=spec.dump(companion_value) if companion_value is not None else None,
            companion_strength=strengths[1] if len(strengths) > 1 else Strength.MODERATE,
            companion_name=names[1] if len(names) > 1 else DEFAULT_COMPANION_NAME,
            suggested_resolution=resolution,
        )
        logger.info(
            "merge.conflict_detected",
            category=category.value,
            field=spec.wire_name,
            resolution=resolution.value,
        )
        return conflict

    # --- categories ---

    def _merge_dining(self, profiles, names, weights, conflicts) -> MergedDining:
        dinings = [p.dining for p in profiles]
        ranges = [d.price_range for d in dinings]
        lo, hi, disjoint = merge_bounds([(r.min, r.max) for r in ranges])
        if disjoint:
            conflicts.append(
                self._conflict(
                    PreferenceCategory.DINING,
                    "price_range",
                    ranges[:2],
                    [r.strength for r in ranges[:2]],
                    names,
                    ConflictStrategy.AVERAGE,
                )
            )
        strongest = max((r.strength for r in ranges), key=strength_weight)
        return MergedDining(
            cuisine_types=self._weighted([d.cuisine_types for d in dinings], weights),
            dining_styles=self._weighted([d.dining_styles for d in dinings], weights),
            ambiance=self._weighted([d.ambiance for d in dinings], weights),
            dietary_restrictions=_union([d.dietary_restrictions for d in dinings]),
            price_range=PriceRange(min=lo, max=hi, strength=strongest),
        )

    def _merge_activities(self, profiles, names, weights, conflicts) -> MergedActivities:
        acts = [p.activities for p in profiles]
        intensities = [a.physical_intensity for a in acts]
        max_idx = [INTENSITY_LEVELS.index(i.max) for i in intensities]
        if max(max_idx) - min(max_idx) > self.intensity_conflict_spread:
            conflicts.append(
                self._conflict(
                    PreferenceCategory.ACTIVITIES,
                    "physical_intensity",
                    intensities[:2],
                    [Strength.MODERATE, Strength.MODERATE],
                    names,
                    ConflictStrategy.AVERAGE,
                )
            )
        # safe intersection: tightest bounds every participant tolerates
        merged_intensity = IntensityRange(
            min=INTENSITY_LEVELS[max(INTENSITY_LEVELS.index(i.min) for i in intensities)],
            max=INTENSITY_LEVELS[min(max_idx)],
            preferred=INTENSITY_LEVELS[min(INTENSITY_LEVELS.index(i.preferred) for i in intensities)],
        )
        return MergedActivities(
            activity_types=self._weighted([a.activity_types for a in acts], weights),
            group_size_preference=self._weighted([a.group_size_preference for a in acts], weights),
            physical_intensity=merged_intensity,
            child_friendly=any(a.child_friendly for a in acts),
            pet_friendly=any(a.pet_friendly for a in acts),
        )

    def _merge_accommodation(self, profiles, weights) -> MergedAccommodation:
        accs = [p.accommodation for p in profiles]
        return MergedAccommodation(
            types=self._weighted([a.types for a in accs], weights),
            must_have_amenities=_union([a.must_have_amenities for a in accs]),
            star_rating=StarRating(
                min=max(a.star_rating.min for a in accs),
                preferred=max(a.star_rating.preferred for a in accs),
            ),
        )

    def _merge_transportation(self, profiles, weights) -> MergedTransportation:
        trans = [p.transportation for p in profiles]
        return MergedTransportation(
            local_transport=self._weighted([t.local_transport for t in trans], weights),
            max_walking_distance=min(t.max_walking_distance for t in trans),
        )

    def _merge_budget(self, profiles, names, conflicts) -> MergedBudget:
        budgets = [p.budget.daily_budget for p in profiles]
        lo, hi, disjoint = merge_bounds([(b.min, b.max) for b in budgets])
        if disjoint:
            conflicts.append(
                self._conflict(
                    PreferenceCategory.BUDGET,
                    "daily_budget",
                    budgets[:2],
                    [Strength.STRONG, Strength.STRONG],
                    names,
                    ConflictStrategy.MANUAL,
                )
            )
        return MergedBudget(daily_budget=DailyBudget(min=lo, max=hi, currency=budgets[0].currency))

    def _merge_timing(self, profiles, weights) -> MergedTiming:
        timings = [p.timing for p in profiles]
        return MergedTiming(
            preferred_activity_times=self._weighted(
                [t.preferred_activity_times for t in timings], weights
            ),
            pacing_style=PACING_ORDER[max(PACING_ORDER.index(t.pacing_style) for t in timings)],
        )

    def _merge_accessibility(self, profiles) -> AccessibilityPreferences:
        access = [p.accessibility for p in profiles]
        mobility = [a.mobility_requirements for a in access]
        sensory = [a.sensory_requirements for a in access]
        medical = [a.dietary_medical for a in access]
        return AccessibilityPreferences(
            mobility_requirements=MobilityRequirements(
                wheelchair_accessible=any(m.wheelchair_accessible for m in mobility),
                limited_walking=any(m.limited_walking for m in mobility),
                max_stairs=min(m.max_stairs for m in mobility),
                elevator_required=any(m.elevator_required for m in mobility),
            ),
            sensory_requirements=SensoryRequirements(
                hearing_accommodations=any(s.hearing_accommodations for s in sensory),
                visual_accommodations=any(s.visual_accommodations for s in sensory),
                quiet_environments=any(s.quiet_environments for s in sensory),
            ),
            dietary_medical=DietaryMedical(
                food_allergies=_union([m.food_allergies for m in medical]),
                medication_storage=any(m.medication_storage for m in medical),
                near_medical_facilities=any(m.near_medical_facilities for m in medical),
            ),
            service_animal=any(a.service_animal for a in access),
        )

    def _merge_social(self, profiles) -> MergedSocial:
        if len(profiles) == 1:
            return MergedSocial(travel_style=profiles[0].social.travel_style)
        return MergedSocial(travel_style="group" if len(profiles) > 2 else "couple")

    def _weighted(self, lists, weights) -> list:
        return merge_weighted_choices(lists, weights, self.set_keep_threshold)
