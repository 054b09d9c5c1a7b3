"""Row-level store operations for bubbles.

Each function takes a sqlite3.Connection and explicit params. Nothing here
locks or commits: callers own the transaction and the store lock.
"""

import sqlite3


# ── Projects ───────────────────────────────────────────────


def create_project(conn: sqlite3.Connection, name: str) -> int:
    cursor = conn.execute("INSERT INTO projects (name) VALUES (?)", (name,))
    return int(cursor.lastrowid)


def get_project(conn: sqlite3.Connection, project_id: int) -> sqlite3.Row | None:
    return conn.execute(
        "SELECT id, name FROM projects WHERE id = ?", (project_id,)
    ).fetchone()


def list_projects(conn: sqlite3.Connection) -> list[sqlite3.Row]:
    return conn.execute("SELECT id, name FROM projects ORDER BY id").fetchall()


def delete_project_pairs(conn: sqlite3.Connection, project_id: int) -> int:
    return conn.execute(
        "DELETE FROM pairs WHERE project = ?", (project_id,)
    ).rowcount


def delete_project_states(conn: sqlite3.Connection, project_id: int) -> int:
    return conn.execute(
        "DELETE FROM bubbles WHERE project = ?", (project_id,)
    ).rowcount


def delete_project_row(conn: sqlite3.Connection, project_id: int) -> int:
    return conn.execute("DELETE FROM projects WHERE id = ?", (project_id,)).rowcount


# ── Pairs ──────────────────────────────────────────────────


def list_pairs(conn: sqlite3.Connection, project_id: int) -> list[sqlite3.Row]:
    """Return every pair of a project, in no particular order."""
    return conn.execute(
        'SELECT "left", "right" FROM pairs WHERE project = ?', (project_id,)
    ).fetchall()


def insert_pair(
    conn: sqlite3.Connection, project_id: int, left: str, right: str
) -> bool:
    """Insert a pair unless it already exists. Returns True if a row was added."""
    cursor = conn.execute(
        """INSERT INTO pairs (project, "left", "right") VALUES (?, ?, ?)
           ON CONFLICT (project, "left", "right") DO NOTHING""",
        (project_id, left, right),
    )
    return cursor.rowcount > 0


def delete_pair(
    conn: sqlite3.Connection, project_id: int, left: str, right: str
) -> bool:
    cursor = conn.execute(
        'DELETE FROM pairs WHERE project = ? AND "left" = ? AND "right" = ?',
        (project_id, left, right),
    )
    return cursor.rowcount > 0


def delete_pairs_touching(
    conn: sqlite3.Connection, project_id: int, bubble: str
) -> int:
    return conn.execute(
        'DELETE FROM pairs WHERE project = ? AND ("left" = ? OR "right" = ?)',
        (project_id, bubble, bubble),
    ).rowcount


def rename_in_pairs(
    conn: sqlite3.Connection, project_id: int, old: str, new: str
) -> tuple[int, int]:
    """Rename a bubble in both pair columns.

    Rows whose renamed form would duplicate an existing pair are skipped by
    the unique index and then removed, so no row keeps the old name.
    Returns (renamed, merged), both counted in rows.
    """
    renamed = conn.execute(
        """UPDATE OR IGNORE pairs
           SET "left" = CASE WHEN "left" = ? THEN ? ELSE "left" END,
               "right" = CASE WHEN "right" = ? THEN ? ELSE "right" END
           WHERE project = ? AND ("left" = ? OR "right" = ?)""",
        (old, new, old, new, project_id, old, old),
    ).rowcount
    merged = delete_pairs_touching(conn, project_id, old)
    return renamed, merged


# ── Bubble states ──────────────────────────────────────────


def list_bubble_states(
    conn: sqlite3.Connection, project_id: int
) -> list[sqlite3.Row]:
    return conn.execute(
        "SELECT bubble, state FROM bubbles WHERE project = ?", (project_id,)
    ).fetchall()


def get_bubble_state(
    conn: sqlite3.Connection, project_id: int, bubble: str
) -> sqlite3.Row | None:
    return conn.execute(
        "SELECT bubble, state FROM bubbles WHERE project = ? AND bubble = ?",
        (project_id, bubble),
    ).fetchone()


def upsert_bubble_state(
    conn: sqlite3.Connection, project_id: int, bubble: str, state: str
) -> None:
    conn.execute(
        """INSERT INTO bubbles (project, bubble, state) VALUES (?, ?, ?)
           ON CONFLICT (project, bubble) DO UPDATE SET state = excluded.state""",
        (project_id, bubble, state),
    )


def rename_bubble_state(
    conn: sqlite3.Connection, project_id: int, old: str, new: str
) -> int:
    """Re-key a state row. An existing row for ``new`` wins over ``old``'s."""
    if get_bubble_state(conn, project_id, new) is not None:
        conn.execute(
            "DELETE FROM bubbles WHERE project = ? AND bubble = ?", (project_id, old)
        )
        return 0
    return conn.execute(
        "UPDATE bubbles SET bubble = ? WHERE project = ? AND bubble = ?",
        (new, project_id, old),
    ).rowcount
