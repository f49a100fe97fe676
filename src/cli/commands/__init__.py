"""CLI command modules."""

from .companions import companions
from .data import data
from .learn import learn
from .merge_cmd import merge
from .prefs import prefs
from .score import score
from .sync_cmd import sync

__all__ = [
    "prefs",
    "companions",
    "merge",
    "score",
    "learn",
    "sync",
    "data",
]
