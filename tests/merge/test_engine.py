"""Tests for MergeEngine: weighted sets, ranges, ordinals, safety unions."""

import pytest

from merge.engine import MergeEngine, merge_bounds, merge_weighted_choices
from preferences.defaults import create_default_profile
from preferences.models import (
    DailyBudget,
    IntensityRange,
    ModeChoice,
    PriceRange,
    TypeChoice,
)
from shared_types import ConflictStrategy, PreferenceCategory, Strength


@pytest.fixture
def engine():
    return MergeEngine()


def _profile(user_id="u1", **overrides):
    profile = create_default_profile(user_id)
    for path, value in overrides.items():
        category, field = path.split("__")
        setattr(getattr(profile, category), field, value)
    return profile


class TestWeightedChoices:
    def test_strong_plus_moderate_is_moderate(self):
        merged = merge_weighted_choices(
            [
                [TypeChoice(type="italian", strength="strong")],
                [TypeChoice(type="italian", strength="moderate")],
            ],
            [0.5, 0.5],
        )
        # 0.8 * 0.5 + 0.5 * 0.5 = 0.65
        assert merged == [TypeChoice(type="italian", strength=Strength.MODERATE)]

    def test_one_sided_moderate_dropped(self):
        merged = merge_weighted_choices(
            [[TypeChoice(type="sushi", strength="moderate")], []],
            [0.5, 0.5],
        )
        assert merged == []

    def test_one_sided_must_have_kept(self):
        merged = merge_weighted_choices(
            [[], [TypeChoice(type="vegan", strength="must_have")]],
            [0.5, 0.5],
        )
        # 1.0 * 0.5 = 0.5
        assert merged == [TypeChoice(type="vegan", strength=Strength.MODERATE)]

    def test_first_appearance_order_and_type(self):
        merged = merge_weighted_choices(
            [
                [ModeChoice(mode="walking", strength="strong")],
                [ModeChoice(mode="taxi", strength="must_have"), ModeChoice(mode="walking", strength="strong")],
            ],
            [0.5, 0.5],
        )
        assert [m.mode for m in merged] == ["walking", "taxi"]
        assert all(isinstance(m, ModeChoice) for m in merged)

    def test_single_participant_unchanged(self):
        entries = [
            TypeChoice(type="italian", strength="strong"),
            TypeChoice(type="thai", strength="moderate"),
            TypeChoice(type="diner", strength="slight"),
        ]
        assert merge_weighted_choices([entries], [1.0]) == entries


class TestMergeBounds:
    def test_disjoint_ranges(self):
        assert merge_bounds([(3, 4), (1, 2)]) == (2, 3, True)

    def test_overlapping_ranges(self):
        assert merge_bounds([(2, 3), (2, 4)]) == (2, 4, False)

    def test_half_rounds_up(self):
        # mins (1, 2) -> 1.5 -> 2; maxes (3, 4) -> 3.5 -> 4
        assert merge_bounds([(1, 3), (2, 4)]) == (2, 4, False)

    def test_single_range(self):
        assert merge_bounds([(150, 300)]) == (150, 300, False)


class TestMergeValidation:
    def test_empty(self, engine):
        with pytest.raises(ValueError):
            engine.merge([], [])

    def test_name_mismatch(self, engine):
        with pytest.raises(ValueError):
            engine.merge([_profile()], ["You", "Sam"])

    def test_weight_mismatch(self, engine):
        with pytest.raises(ValueError):
            engine.merge([_profile(), _profile("u2")], ["You", "Sam"], [1.0])


class TestDining:
    def test_disjoint_price_range_conflict(self, engine):
        user = _profile(dining__price_range=PriceRange(min=3, max=4, strength="strong"))
        companion = _profile("u2", dining__price_range=PriceRange(min=1, max=2))
        merged = engine.merge([user, companion], ["You", "Sam"])

        assert (merged.dining.price_range.min, merged.dining.price_range.max) == (2, 3)
        assert merged.dining.price_range.strength == Strength.STRONG
        assert len(merged.conflicts) == 1
        conflict = merged.conflicts[0]
        assert conflict.category == PreferenceCategory.DINING
        assert conflict.field == "priceRange"
        assert conflict.id.startswith("conflict_dining_priceRange_")
        assert conflict.user_value == {"min": 3, "max": 4, "strength": "strong"}
        assert conflict.companion_value == {"min": 1, "max": 2, "strength": "moderate"}
        assert conflict.user_strength == Strength.STRONG
        assert conflict.companion_name == "Sam"
        assert conflict.suggested_resolution == ConflictStrategy.AVERAGE
        assert merged.unresolved_conflicts == 1

    def test_overlapping_price_range_no_conflict(self, engine):
        merged = engine.merge([_profile(), _profile("u2")], ["You", "Sam"])
        assert merged.conflicts == []
        assert merged.unresolved_conflicts == 0

    def test_dietary_union(self, engine):
        user = _profile(dining__dietary_restrictions=["vegetarian"])
        companion = _profile("u2", dining__dietary_restrictions=["gluten_free", "vegetarian"])
        merged = engine.merge([user, companion], ["You", "Sam"])
        assert merged.dining.dietary_restrictions == ["vegetarian", "gluten_free"]

    def test_participants(self, engine):
        merged = engine.merge([_profile(), _profile("u2")], ["You", "Sam"], [0.7, 0.3])
        assert [(p.user_id, p.name, p.weight) for p in merged.participants] == [
            ("u1", "You", 0.7),
            ("u2", "Sam", 0.3),
        ]


class TestActivities:
    def test_intensity_intersection(self, engine):
        user = _profile(
            activities__physical_intensity=IntensityRange(min="light", max="vigorous", preferred="moderate")
        )
        companion = _profile(
            "u2",
            activities__physical_intensity=IntensityRange(min="moderate", max="extreme", preferred="vigorous"),
        )
        merged = engine.merge([user, companion], ["You", "Sam"])
        intensity = merged.activities.physical_intensity
        assert (intensity.min, intensity.max, intensity.preferred) == ("moderate", "vigorous", "moderate")
        assert merged.conflicts == []

    def test_wide_intensity_spread_conflicts(self, engine):
        user = _profile(
            activities__physical_intensity=IntensityRange(min="sedentary", max="light", preferred="light")
        )
        companion = _profile(
            "u2",
            activities__physical_intensity=IntensityRange(min="vigorous", max="extreme", preferred="extreme"),
        )
        merged = engine.merge([user, companion], ["You", "Sam"])
        assert [c.field for c in merged.conflicts] == ["physicalIntensity"]
        assert merged.conflicts[0].companion_value["max"] == "extreme"

    def test_flags_are_ored(self, engine):
        merged = engine.merge(
            [_profile(), _profile("u2", activities__child_friendly=True)], ["You", "Sam"]
        )
        assert merged.activities.child_friendly is True
        assert merged.activities.pet_friendly is False


class TestOtherCategories:
    def test_star_rating_takes_max(self, engine):
        companion = _profile("u2")
        companion.accommodation.star_rating.min = 4
        companion.accommodation.star_rating.preferred = 5
        merged = engine.merge([_profile(), companion], ["You", "Sam"])
        assert (merged.accommodation.star_rating.min, merged.accommodation.star_rating.preferred) == (4, 5)

    def test_walking_distance_takes_min(self, engine):
        companion = _profile("u2", transportation__max_walking_distance=800)
        merged = engine.merge([_profile(), companion], ["You", "Sam"])
        assert merged.transportation.max_walking_distance == 800

    def test_disjoint_budget_needs_manual_resolution(self, engine):
        user = _profile(budget__daily_budget=DailyBudget(min=400, max=600, currency="EUR"))
        companion = _profile("u2", budget__daily_budget=DailyBudget(min=100, max=200))
        merged = engine.merge([user, companion], ["You", "Sam"])
        budget = merged.budget.daily_budget
        assert (budget.min, budget.max, budget.currency) == (250, 400, "EUR")
        conflict = merged.conflicts[0]
        assert conflict.field == "dailyBudget"
        assert conflict.suggested_resolution == ConflictStrategy.MANUAL
        assert conflict.user_strength == conflict.companion_strength == Strength.STRONG

    def test_pacing_takes_most_relaxed(self, engine):
        merged = engine.merge(
            [_profile(timing__pacing_style="packed"), _profile("u2", timing__pacing_style="relaxed")],
            ["You", "Sam"],
        )
        assert merged.timing.pacing_style == "relaxed"

    def test_travel_style_by_group_size(self, engine):
        two = engine.merge([_profile(), _profile("u2")], ["You", "Sam"])
        three = engine.merge([_profile(), _profile("u2"), _profile("u3")], ["You", "Sam", "Alex"])
        assert two.social.travel_style == "couple"
        assert three.social.travel_style == "group"


class TestAccessibilitySafety:
    def test_requirements_never_dropped(self, engine):
        companion = _profile("u2")
        companion.accessibility.mobility_requirements.wheelchair_accessible = True
        companion.accessibility.mobility_requirements.max_stairs = 5
        companion.accessibility.dietary_medical.food_allergies = ["peanuts"]
        companion.accessibility.service_animal = True
        user = _profile()
        user.accessibility.sensory_requirements.quiet_environments = True
        user.accessibility.dietary_medical.food_allergies = ["shellfish"]

        merged = engine.merge([user, companion], ["You", "Sam"])
        access = merged.accessibility
        assert access.mobility_requirements.wheelchair_accessible is True
        assert access.mobility_requirements.max_stairs == 5
        assert access.sensory_requirements.quiet_environments is True
        assert access.dietary_medical.food_allergies == ["shellfish", "peanuts"]
        assert access.service_animal is True


class TestSingleParticipant:
    def test_merge_of_one_reflects_profile(self, engine):
        profile = _profile(social__travel_style="solo")
        merged = engine.merge([profile], ["You"])
        assert merged.dining.cuisine_types == profile.dining.cuisine_types
        assert merged.transportation.local_transport == profile.transportation.local_transport
        assert merged.dining.price_range.min == profile.dining.price_range.min
        assert merged.dining.price_range.max == profile.dining.price_range.max
        assert merged.social.travel_style == "solo"
        assert merged.conflicts == []
