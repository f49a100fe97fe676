"""Preference learning from recorded behaviour."""

from .insights import LearningInsightEngine, PatternRule, default_rules
from .models import LearningInsight, PreferenceLearningEvent, SuggestedUpdate, UserAction

__all__ = [
    "LearningInsightEngine",
    "PatternRule",
    "default_rules",
    "LearningInsight",
    "PreferenceLearningEvent",
    "SuggestedUpdate",
    "UserAction",
]
