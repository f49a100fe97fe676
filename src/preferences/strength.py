"""Strength weights and the score-to-strength bucketing shared by merge and scoring."""

import math

from shared_types import Strength

STRENGTH_WEIGHTS: dict[Strength, float] = {
    Strength.MUST_HAVE: 1.0,
    Strength.STRONG: 0.8,
    Strength.MODERATE: 0.5,
    Strength.SLIGHT: 0.3,
    Strength.NEUTRAL: 0.1,
}

# (lower bound, strength), checked top-down
_STRENGTH_BUCKETS: tuple[tuple[float, Strength], ...] = (
    (0.9, Strength.MUST_HAVE),
    (0.7, Strength.STRONG),
    (0.4, Strength.MODERATE),
    (0.2, Strength.SLIGHT),
)


def strength_weight(strength: Strength | str) -> float:
    return STRENGTH_WEIGHTS[Strength(strength)]


def score_to_strength(score: float) -> Strength:
    """Map an accumulated weighted score back onto the strength scale."""
    for lower, strength in _STRENGTH_BUCKETS:
        if score >= lower:
            return strength
    return Strength.NEUTRAL


def round_half_up(value: float) -> int:
    """Round .5 away from zero toward +inf, the way the mobile client rounds."""
    return int(math.floor(value + 0.5))
