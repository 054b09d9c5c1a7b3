"""FastAPI dependency injection for bubbles."""

import sqlite3
from collections.abc import Generator
from typing import Any

from bubbles.config import DEFAULTS
from db.client import get_connection


# Module-level DB path and config: set by app startup
_db_path: str = ""
_config: dict[str, Any] = dict(DEFAULTS)


def set_db_path(path: str) -> None:
    """Set the database path used by the DB dependency."""
    global _db_path  # noqa: PLW0603
    _db_path = path


def set_config(config: dict[str, Any] | None) -> None:
    """Set the config dict used for rendering; None restores the defaults."""
    global _config  # noqa: PLW0603
    _config = dict(DEFAULTS) if config is None else config


def get_config() -> dict[str, Any]:
    return _config


def get_db() -> Generator[sqlite3.Connection, None, None]:
    """FastAPI dependency that yields a DB connection per request."""
    conn = get_connection(_db_path)
    try:
        yield conn
    finally:
        conn.close()
