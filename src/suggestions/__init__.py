"""Suggestion scoring against individual or merged profiles."""

from .models import (
    ActivityCandidate,
    RestaurantCandidate,
    SuggestionMatch,
    SuggestionScore,
    SuggestionSettings,
)
from .scoring import SuggestionScorer

__all__ = [
    "ActivityCandidate",
    "RestaurantCandidate",
    "SuggestionMatch",
    "SuggestionScore",
    "SuggestionSettings",
    "SuggestionScorer",
]
