"""Configuration loading and management."""

from pathlib import Path
from typing import Optional

import yaml

from .config_models import PrefSyncConfig

# Default config dict
DEFAULT_CONFIG = PrefSyncConfig().to_dict()


def find_config() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / "prefsync.yaml",
        Path.home() / ".prefsync" / "config.yaml",
    ]
    for loc in locations:
        if loc.exists():
            return loc
    return None


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration as a plain dict. Use load_config_model() for typed access."""
    return load_config_model(config_path).to_dict()


def load_config_model(config_path: Optional[Path] = None) -> PrefSyncConfig:
    """Load configuration as Pydantic model with validation."""
    base_config = {}

    path = config_path or find_config()
    if path and path.exists():
        try:
            with open(path) as f:
                base_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")

    if not isinstance(base_config, dict):
        raise ValueError(f"Config file must contain a mapping, got {type(base_config).__name__}")

    try:
        return PrefSyncConfig.from_dict(base_config)
    except Exception as e:
        raise ValueError(f"Config validation failed: {e}")


def get_paths(config: dict) -> dict:
    """Get expanded paths from config."""
    paths = config.get("paths", DEFAULT_CONFIG["paths"])
    return {
        "db_path": Path(paths["db_path"]).expanduser(),
        "log_file": Path(paths.get("log_file", "~/.prefsync/prefsync.log")).expanduser(),
        "export_dir": Path(paths.get("export_dir", "~/.prefsync/exports")).expanduser(),
    }
