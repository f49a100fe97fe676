"""Pydantic configuration models for wander-prefsync."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator


class PathsConfig(BaseModel):
    """File paths configuration."""

    db_path: Path = Path("~/.prefsync/preferences.db")
    log_file: Path = Path("~/.prefsync/prefsync.log")
    export_dir: Path = Path("~/.prefsync/exports")

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.db_path = self.db_path.expanduser()
        self.log_file = self.log_file.expanduser()
        self.export_dir = self.export_dir.expanduser()
        return self


class SyncConfig(BaseModel):
    """Auto-sync configuration."""

    auto_sync: bool = True
    interval_minutes: float = 5.0
    user_id: str = "default_user"
    device_id: str = "local_device"
    device_name: str = "This Device"

    @field_validator("interval_minutes")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"interval_minutes must be positive, got {v}")
        return v


class LearningConfig(BaseModel):
    """Insight mining configuration."""

    window_days: int = Field(default=30, ge=1)
    max_events: int = Field(default=500, ge=1)
    max_insights: int = Field(default=50, ge=1)
    booking_threshold: int = Field(default=3, ge=1)
    rating_threshold: int = Field(default=2, ge=1)
    high_rating: float = Field(default=4, ge=0, le=5)


class MergeConfig(BaseModel):
    """Group merge tuning."""

    set_keep_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    intensity_conflict_spread: int = Field(default=2, ge=0, le=4)


class RetryConfig(BaseModel):
    """Retry/backoff configuration for stale profile writes."""

    max_attempts: int = 5
    min_wait: float = 0.01
    max_wait: float = 0.2

    @model_validator(mode="after")
    def validate_waits(self):
        if self.min_wait > self.max_wait:
            raise ValueError(f"min_wait {self.min_wait} exceeds max_wait {self.max_wait}")
        return self


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    file_level: str = "DEBUG"
    json_mode: bool = Field(default=False, alias="json")

    model_config = {"populate_by_name": True}

    @field_validator("level", "file_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class PrefSyncConfig(BaseModel):
    """Main configuration model."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    learning: LearningConfig = Field(default_factory=LearningConfig)
    merge: MergeConfig = Field(default_factory=MergeConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "PrefSyncConfig":
        """Create config from dict; string paths are converted to Path."""
        if "paths" in data and isinstance(data["paths"], dict):
            for key in ["db_path", "log_file", "export_dir"]:
                if key in data["paths"] and isinstance(data["paths"][key], str):
                    data["paths"][key] = Path(data["paths"][key])

        return cls.model_validate(data)

    def to_dict(self) -> dict:
        """Plain dict form, as handed to PreferenceSyncService."""
        return self.model_dump(mode="python")
