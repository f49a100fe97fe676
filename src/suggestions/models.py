"""Scoring inputs and outputs."""

from typing import Any, Optional

from pydantic import Field

from preferences.models import WireModel
from shared_types import ItemType, MatchType


class SuggestionSettings(WireModel):
    enable_personalization: bool = True
    strict_filtering: bool = False
    show_scores: bool = True
    min_score: int = Field(default=40, ge=0, le=100)
    prioritize_new_experiences: bool = True
    balance_categories: bool = True


class RestaurantCandidate(WireModel):
    id: str
    name: Optional[str] = None
    cuisine: Optional[str] = None
    price_level: Optional[int] = None
    ambiance: Optional[str] = None
    dietary_options: list[str] = Field(default_factory=list)


class ActivityCandidate(WireModel):
    id: str
    name: Optional[str] = None
    type: Optional[str] = None
    intensity: Optional[str] = None
    duration: Optional[float] = None  # hours


class SuggestionMatch(WireModel):
    field: str
    display_name: str
    match_type: MatchType
    user_preference: Any = None
    item_value: Any = None
    score: float
    weight: float


class SuggestionScore(WireModel):
    item_id: str
    item_type: ItemType | str  # unrecognised types are echoed back on neutral scores
    overall_score: int = Field(ge=0, le=100)
    match_breakdown: list[SuggestionMatch] = Field(default_factory=list)
    top_matches: list[str] = Field(default_factory=list)
    potential_issues: list[str] = Field(default_factory=list)
    personalized: bool = True
    confidence: float = 0.0
