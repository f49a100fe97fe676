"""Shared CLI utilities."""

import json
import sys
from pathlib import Path

import structlog
from rich.console import Console

console = Console()
logger = structlog.get_logger()


def get_components():
    """Build the store and preference service from config.

    Returns a dict so commands (and tests) can swap pieces individually.
    """
    from cli.config import get_paths, load_config_model
    from preferences.store import SqlitePreferenceStore
    from sync.service import PreferenceSyncService

    try:
        config_model = load_config_model()
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        sys.exit(1)
    config = config_model.to_dict()
    paths = get_paths(config)

    store = SqlitePreferenceStore(paths["db_path"])
    service = PreferenceSyncService(store, user_id=config_model.sync.user_id, config=config)
    if not service.load():
        console.print("[red]Could not load preferences from[/] " + str(paths["db_path"]))
        sys.exit(1)

    return {
        "config": config,
        "config_model": config_model,
        "paths": paths,
        "store": store,
        "service": service,
    }


def load_json_arg(value: str):
    """Parse a CLI argument as JSON, falling back to the raw string."""
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def read_json_file(path: Path):
    with open(path) as f:
        return json.load(f)
