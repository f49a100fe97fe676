"""Shared enums and types for wander-prefsync."""

from enum import StrEnum


class PreferenceCategory(StrEnum):
    DINING = "dining"
    ACTIVITIES = "activities"
    ACCOMMODATION = "accommodation"
    TRANSPORTATION = "transportation"
    BUDGET = "budget"
    TIMING = "timing"
    ACCESSIBILITY = "accessibility"
    SOCIAL = "social"


class Strength(StrEnum):
    """Ordinal importance of a preference value, strongest first."""

    MUST_HAVE = "must_have"
    STRONG = "strong"
    MODERATE = "moderate"
    SLIGHT = "slight"
    NEUTRAL = "neutral"


class PreferenceSource(StrEnum):
    EXPLICIT = "explicit"
    INFERRED = "inferred"
    IMPORTED = "imported"
    COMPANION = "companion"
    DEFAULT = "default"


class SyncStatus(StrEnum):
    SYNCED = "synced"
    PENDING = "pending"
    SYNCING = "syncing"
    ERROR = "error"


class ConflictStrategy(StrEnum):
    USER_WINS = "user_wins"
    COMPANION_WINS = "companion_wins"
    STRONGEST_WINS = "strongest_wins"
    AVERAGE = "average"
    EITHER = "either"
    MANUAL = "manual"


class MatchType(StrEnum):
    EXACT = "exact"
    PARTIAL = "partial"
    NO_MATCH = "no_match"


class ItemType(StrEnum):
    RESTAURANT = "restaurant"
    ACTIVITY = "activity"
    HOTEL = "hotel"
    TRANSPORT = "transport"


class EventType(StrEnum):
    BOOKING = "booking"
    RATING = "rating"
    SEARCH = "search"
    FAVORITE = "favorite"
    SKIP = "skip"
    VIEW_TIME = "view_time"


class InsightStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class SyncDirection(StrEnum):
    UPLOAD = "upload"
    DOWNLOAD = "download"
    MERGE = "merge"


class SyncOutcome(StrEnum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
