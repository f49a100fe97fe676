"""Group merge: reduce several travellers' profiles and resolve conflicts."""

from .engine import MergeEngine
from .models import MergedPreferences, Participant, PreferenceConflict
from .resolver import ConflictResolver

__all__ = [
    "MergeEngine",
    "MergedPreferences",
    "Participant",
    "PreferenceConflict",
    "ConflictResolver",
]
