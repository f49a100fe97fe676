"""Shared SQLite helpers: WAL mode and busy timeout."""

import sqlite3
from pathlib import Path


def wal_connect(db_path: str | Path, autocommit: bool = False) -> sqlite3.Connection:
    """Open SQLite connection with WAL journal mode.

    Args:
        db_path: Path to database file.
        autocommit: If True, open with isolation_level=None so callers can
            issue their own BEGIN IMMEDIATE for compare-and-set writes.
    """
    conn = sqlite3.connect(str(db_path), timeout=5.0)
    conn.execute("PRAGMA journal_mode=WAL")
    if autocommit:
        conn.isolation_level = None
    return conn
