"""Suggestion Scorer: rate a restaurant or activity against a profile.

Works on an individual PreferenceProfile or a MergedPreferences snapshot;
sub-records a merged profile does not carry (duration, for instance) score
a neutral 50.
"""

from typing import Any, Optional, Union

import structlog

from merge.models import MergedPreferences
from observability import metrics
from preferences.models import INTENSITY_LEVELS, PreferenceProfile
from preferences.strength import round_half_up, strength_weight
from shared_types import ItemType, MatchType

from .models import ActivityCandidate, RestaurantCandidate, SuggestionMatch, SuggestionScore

logger = structlog.get_logger()

Profile = Union[PreferenceProfile, MergedPreferences]

NEUTRAL_SCORE = 50
TOP_MATCH_THRESHOLD = 80
ISSUE_THRESHOLD = 40
RESTAURANT_CONFIDENCE = 0.85
ACTIVITY_CONFIDENCE = 0.8

WEIGHTS = {
    "cuisineTypes": 0.30,
    "priceRange": 0.20,
    "ambiance": 0.15,
    "dietaryRestrictions": 0.35,
    "activityTypes": 0.40,
    "physicalIntensity": 0.30,
    "duration": 0.30,
}

# Score when the choice is not in the user's list
UNMATCHED_SCORES = {"cuisineTypes": 30, "ambiance": 40, "activityTypes": 30}


def _match(field, display_name, match_type, score, user_pref=None, item_value=None):
    return SuggestionMatch(
        field=field,
        display_name=display_name,
        match_type=match_type,
        user_preference=user_pref,
        item_value=item_value,
        score=round(score, 2),
        weight=WEIGHTS[field],
    )


def _neutral_match(field, display_name, item_value=None):
    return _match(field, display_name, MatchType.NO_MATCH, NEUTRAL_SCORE, None, item_value)


def score_choice(field: str, display_name: str, item_value: Optional[str], choices: list) -> SuggestionMatch:
    """Exact when item_value case-insensitively equals a listed choice."""
    wanted = item_value.lower() if item_value else None
    hit = next((c for c in choices if wanted and c.choice.lower() == wanted), None)
    return _match(
        field,
        display_name,
        MatchType.EXACT if hit else MatchType.NO_MATCH,
        strength_weight(hit.strength) * 100 if hit else UNMATCHED_SCORES[field],
        [c.choice for c in choices],
        item_value,
    )


def score_price(price_level: Optional[int], price_range) -> SuggestionMatch:
    if price_range is None or price_level is None:
        return _neutral_match("priceRange", "Price", price_level)
    pref = {"min": price_range.min, "max": price_range.max}
    if price_range.min <= price_level <= price_range.max:
        return _match("priceRange", "Price", MatchType.EXACT, 100, pref, price_level)
    if price_range.min - 1 <= price_level <= price_range.max + 1:
        return _match("priceRange", "Price", MatchType.PARTIAL, 60, pref, price_level)
    return _match("priceRange", "Price", MatchType.NO_MATCH, 20, pref, price_level)


def score_dietary(options: list[str], restrictions: list[str]) -> SuggestionMatch:
    """Share of the user's restrictions some offered option covers (substring match)."""
    if not restrictions:
        return _match("dietaryRestrictions", "Dietary", MatchType.EXACT, 100, [], options)
    lowered = [o.lower() for o in options]
    met = [r for r in restrictions if any(r.lower() in o for o in lowered)]
    share = len(met) / len(restrictions)
    if share == 1:
        match_type = MatchType.EXACT
    elif share > 0:
        match_type = MatchType.PARTIAL
    else:
        match_type = MatchType.NO_MATCH
    return _match("dietaryRestrictions", "Dietary", match_type, share * 100, restrictions, options)


def score_intensity(intensity: Optional[str], pref) -> SuggestionMatch:
    if pref is None or intensity not in INTENSITY_LEVELS:
        return _neutral_match("physicalIntensity", "Intensity", intensity)
    level = INTENSITY_LEVELS.index(intensity)
    lo = INTENSITY_LEVELS.index(pref.min)
    hi = INTENSITY_LEVELS.index(pref.max)
    user_pref = {"min": pref.min, "max": pref.max}
    if lo <= level <= hi:
        return _match("physicalIntensity", "Intensity", MatchType.EXACT, 100, user_pref, intensity)
    score = max(0.0, 100 - abs(level - (lo + hi) / 2) * 30)
    return _match("physicalIntensity", "Intensity", MatchType.NO_MATCH, score, user_pref, intensity)


def score_duration(hours: Optional[float], pref) -> SuggestionMatch:
    if pref is None or hours is None:
        return _neutral_match("duration", "Duration", hours)
    user_pref = {
        "minHours": pref.min_hours,
        "maxHours": pref.max_hours,
        "preferredHours": pref.preferred_hours,
    }
    in_range = pref.min_hours <= hours <= pref.max_hours
    if in_range and abs(hours - pref.preferred_hours) <= 1:
        return _match("duration", "Duration", MatchType.EXACT, 100, user_pref, hours)
    if in_range:
        return _match("duration", "Duration", MatchType.PARTIAL, 70, user_pref, hours)
    return _match("duration", "Duration", MatchType.NO_MATCH, 30, user_pref, hours)


def overall_score(matches: list[SuggestionMatch]) -> int:
    """Weighted mean of field scores, rounded half-up and clamped to 0-100."""
    total_weight = sum(m.weight for m in matches)
    if total_weight <= 0:
        return NEUTRAL_SCORE
    weighted = sum(m.score * m.weight for m in matches)
    return max(0, min(100, round_half_up(weighted / total_weight)))


class SuggestionScorer:
    """Scores candidate items against a preference profile or a merged profile."""

    def neutral_score(self, item_id: str, item_type: ItemType | str) -> SuggestionScore:
        return SuggestionScore(
            item_id=item_id,
            item_type=item_type,
            overall_score=NEUTRAL_SCORE,
            personalized=False,
            confidence=0.0,
        )

    def score_restaurant(self, item: Any, profile: Optional[Profile]) -> SuggestionScore:
        restaurant = RestaurantCandidate.model_validate(item)
        dining = getattr(profile, "dining", None)
        if dining is None:
            return self.neutral_score(restaurant.id, ItemType.RESTAURANT)

        matches = [
            score_choice("cuisineTypes", "Cuisine", restaurant.cuisine, dining.cuisine_types),
            score_price(restaurant.price_level, dining.price_range),
            score_choice("ambiance", "Ambiance", restaurant.ambiance, dining.ambiance),
            score_dietary(restaurant.dietary_options, dining.dietary_restrictions),
        ]
        return self._build(restaurant.id, ItemType.RESTAURANT, matches, RESTAURANT_CONFIDENCE)

    def score_activity(self, item: Any, profile: Optional[Profile]) -> SuggestionScore:
        activity = ActivityCandidate.model_validate(item)
        activities = getattr(profile, "activities", None)
        if activities is None:
            return self.neutral_score(activity.id, ItemType.ACTIVITY)

        matches = [
            score_choice("activityTypes", "Activity Type", activity.type, activities.activity_types),
            score_intensity(activity.intensity, activities.physical_intensity),
            score_duration(activity.duration, getattr(activities, "duration", None)),
        ]
        return self._build(activity.id, ItemType.ACTIVITY, matches, ACTIVITY_CONFIDENCE)

    def score(self, item: Any, item_type: ItemType | str, profile: Optional[Profile]) -> SuggestionScore:
        if ItemType(item_type) == ItemType.RESTAURANT:
            return self.score_restaurant(item, profile)
        if ItemType(item_type) == ItemType.ACTIVITY:
            return self.score_activity(item, profile)
        raise ValueError(f"Unsupported item type for scoring: {item_type}")

    def _build(self, item_id, item_type, matches, confidence) -> SuggestionScore:
        result = SuggestionScore(
            item_id=item_id,
            item_type=item_type,
            overall_score=overall_score(matches),
            match_breakdown=matches,
            top_matches=[m.display_name for m in matches if m.score >= TOP_MATCH_THRESHOLD],
            potential_issues=[m.display_name for m in matches if m.score < ISSUE_THRESHOLD],
            personalized=True,
            confidence=confidence,
        )
        metrics.counter("scores_computed")
        logger.debug(
            "suggestion.scored",
            item_id=item_id,
            item_type=str(item_type),
            score=result.overall_score,
        )
        return result
