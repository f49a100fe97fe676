"""Sync bookkeeping and export envelope models."""

import uuid
from datetime import datetime

from pydantic import Field

from learning.models import PreferenceLearningEvent
from preferences.models import Companion, PreferenceProfile, WireModel
from shared_types import SyncDirection, SyncOutcome

EXPORT_VERSION = "1.0"
LOCAL_DEVICE_ID = "local_device"
LOCAL_DEVICE_NAME = "This Device"


class SyncRecord(WireModel):
    id: str = Field(default_factory=lambda: f"sync_{uuid.uuid4().hex[:12]}")
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    direction: SyncDirection = SyncDirection.UPLOAD
    status: SyncOutcome = SyncOutcome.SUCCESS
    changes_applied: int = 0
    conflicts: int = 0
    device_id: str = LOCAL_DEVICE_ID
    device_name: str = LOCAL_DEVICE_NAME


class PreferenceExport(WireModel):
    version: str = EXPORT_VERSION
    exported_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    user_id: str
    preferences: PreferenceProfile
    companions: list[Companion] = Field(default_factory=list)
    learning_history: list[PreferenceLearningEvent] = Field(default_factory=list)
