"""Tests for strength weights, score bucketing and half-up rounding."""

import pytest

from preferences.strength import round_half_up, score_to_strength, strength_weight
from shared_types import Strength


class TestStrengthWeight:
    def test_ordering(self):
        weights = [strength_weight(s) for s in Strength]
        assert weights == sorted(weights, reverse=True)

    def test_accepts_strings(self):
        assert strength_weight("strong") == 0.8
        assert strength_weight(Strength.NEUTRAL) == 0.1

    def test_unknown_raises(self):
        with pytest.raises(ValueError):
            strength_weight("mandatory")


class TestScoreToStrength:
    @pytest.mark.parametrize(
        "score,expected",
        [
            (1.2, Strength.MUST_HAVE),
            (0.9, Strength.MUST_HAVE),
            (0.89, Strength.STRONG),
            (0.7, Strength.STRONG),
            (0.65, Strength.MODERATE),
            (0.4, Strength.MODERATE),
            (0.3, Strength.SLIGHT),
            (0.2, Strength.SLIGHT),
            (0.19, Strength.NEUTRAL),
            (0.0, Strength.NEUTRAL),
        ],
    )
    def test_buckets(self, score, expected):
        assert score_to_strength(score) == expected


class TestRoundHalfUp:
    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(77.5) == 78

    def test_negative_half_rounds_toward_positive(self):
        assert round_half_up(-0.5) == 0

    def test_plain_values(self):
        assert round_half_up(2.4) == 2
        assert round_half_up(3.0) == 3
