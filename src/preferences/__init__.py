"""Preference profiles: models, defaults, field registry and key/value stores."""

from .defaults import create_default_profile
from .models import Companion, PreferenceProfile, PreferenceValue
from .registry import FIELD_REGISTRY, category_completeness, get_field
from .store import InMemoryPreferenceStore, SqlitePreferenceStore, StoreKey
from .strength import score_to_strength, strength_weight

__all__ = [
    "Companion",
    "PreferenceProfile",
    "PreferenceValue",
    "create_default_profile",
    "FIELD_REGISTRY",
    "category_completeness",
    "get_field",
    "InMemoryPreferenceStore",
    "SqlitePreferenceStore",
    "StoreKey",
    "score_to_strength",
    "strength_weight",
]
