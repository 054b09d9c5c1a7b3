"""Schema creation and migration logic for bubbles.

Migrations are idempotent: running them multiple times has no effect
because all CREATE statements use IF NOT EXISTS and every upgrade step
checks the current schema first.

Can be run directly:
    python -m db.migrations [db_path]
"""

import logging
import sqlite3
import sys
from pathlib import Path

from db.client import get_connection
from db.schema import INDEXES, TABLE_CREATION_ORDER, TABLES

logger = logging.getLogger(__name__)


def run_migrations(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes in dependency order. Idempotent."""
    for table_name in TABLE_CREATION_ORDER:
        conn.execute(TABLES[table_name])
    conn.commit()

    # Migration: databases from the single-binary deployment keyed projects
    # by a column called "project"
    _migrate_project_key(conn)

    # Migration: collapse duplicate rows left behind before the unique
    # indexes existed, then create the indexes
    _dedupe_rows(conn)
    for index_sql in INDEXES.values():
        conn.execute(index_sql)
    conn.commit()


def _column_names(conn: sqlite3.Connection, table: str) -> list[str]:
    return [c[1] for c in conn.execute(f"PRAGMA table_info({table})").fetchall()]


def _index_exists(conn: sqlite3.Connection, name: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'index' AND name = ?", (name,)
    ).fetchone()
    return row is not None


def _migrate_project_key(conn: sqlite3.Connection) -> None:
    """Rename projects.project to projects.id on old databases."""
    col_names = _column_names(conn, "projects")
    if "id" in col_names or "project" not in col_names:
        return  # New schema, nothing to migrate

    logger.info("Renaming legacy projects.project column to id")
    conn.execute("ALTER TABLE projects RENAME COLUMN project TO id")
    conn.commit()


def _dedupe_rows(conn: sqlite3.Connection) -> None:
    """Keep the first pair row and the last bubble state row of each group."""
    if not _index_exists(conn, "pairs_unique"):
        removed = conn.execute(
            """DELETE FROM pairs WHERE rowid NOT IN (
                   SELECT MIN(rowid) FROM pairs GROUP BY project, "left", "right"
               )"""
        ).rowcount
        if removed:
            logger.info("Removed %d duplicate pair rows", removed)

    if not _index_exists(conn, "bubbles_project_bubble"):
        removed = conn.execute(
            """DELETE FROM bubbles WHERE rowid NOT IN (
                   SELECT MAX(rowid) FROM bubbles GROUP BY project, bubble
               )"""
        ).rowcount
        if removed:
            logger.info("Removed %d duplicate bubble state rows", removed)

    conn.commit()


def init_db(db_path: str | Path) -> sqlite3.Connection:
    """Open a connection, run migrations, and return the ready connection."""
    conn = get_connection(db_path)
    run_migrations(conn)
    return conn


def main() -> None:
    """CLI entry point for running migrations directly."""
    if len(sys.argv) > 1:
        db_path = sys.argv[1]
    else:
        db_path = "state.db"

    print(f"Running migrations on {db_path}...")
    conn = init_db(db_path)

    # Verify WAL mode
    journal_mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
    print(f"Journal mode: {journal_mode}")

    # Verify tables
    tables = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    ).fetchall()
    print(f"Tables created: {[t[0] for t in tables]}")

    conn.close()
    print("Done.")


if __name__ == "__main__":
    main()
