"""Mutation engine for bubbles.

Each function takes a sqlite3.Connection and explicit params and returns a
dict. Client-input problems come back as ``{"error": ..., "message": ...}``
before the store is touched; store errors propagate after the transaction
is rolled back.

Every operation holds ``store_lock`` for its whole store conversation, so
reads never observe a half-applied mutation.
"""

import logging
import sqlite3
from typing import Any

from bubbles.graph import GraphModel, load_graph
from db import store
from db.client import store_lock, transaction
from db.state_machine import advance

logger = logging.getLogger(__name__)


def _not_found(project_id: int) -> dict[str, Any]:
    return {"error": "not_found", "message": f"Project '{project_id}' not found"}


def _invalid(message: str) -> dict[str, Any]:
    return {"error": "invalid_input", "message": message}


def _clean(value: str | None) -> str:
    return (value or "").strip()


# ── Projects ───────────────────────────────────────────────


def create_project(conn: sqlite3.Connection, name: str) -> dict[str, Any]:
    name = _clean(name)
    if not name:
        return _invalid("Project name must not be empty")

    with store_lock, transaction(conn):
        project_id = store.create_project(conn, name)
    logger.info("Created project %d (%s)", project_id, name)
    return {"id": project_id, "name": name}


def list_projects(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    with store_lock:
        rows = store.list_projects(conn)
    return [dict(row) for row in rows]


def delete_project(conn: sqlite3.Connection, project_id: int) -> dict[str, Any]:
    """Remove a project with all of its pairs and states, all or nothing."""
    with store_lock, transaction(conn):
        if store.get_project(conn, project_id) is None:
            return _not_found(project_id)
        pairs = store.delete_project_pairs(conn, project_id)
        states = store.delete_project_states(conn, project_id)
        store.delete_project_row(conn, project_id)

    logger.info(
        "Deleted project %d (%d pairs, %d states)", project_id, pairs, states
    )
    return {"id": project_id, "pairs": pairs, "states": states}


# ── Graph reads ────────────────────────────────────────────


def read_graph(conn: sqlite3.Connection, project_id: int) -> GraphModel | None:
    """Snapshot a project's graph under the store lock."""
    with store_lock:
        return load_graph(conn, project_id)


# ── Pair mutations ─────────────────────────────────────────


def add_triple(
    conn: sqlite3.Connection,
    project_id: int,
    left: str = "",
    center: str = "",
    right: str = "",
) -> dict[str, Any]:
    """Store ``left -> center`` and ``center -> right`` where both ends are given.

    Zero, one or two pairs may result. Existing pairs are left alone.
    Returns the pairs that were actually added.
    """
    left, center, right = _clean(left), _clean(center), _clean(right)

    candidates: list[tuple[str, str]] = []
    if center and right:
        candidates.append((center, right))
    if left and center:
        candidates.append((left, center))

    with store_lock, transaction(conn):
        if store.get_project(conn, project_id) is None:
            return _not_found(project_id)
        inserted = [
            {"left": a, "right": b}
            for a, b in candidates
            if store.insert_pair(conn, project_id, a, b)
        ]

    if inserted:
        logger.info("Project %d: added pairs %s", project_id, inserted)
    return {"inserted": inserted}


def remove_edge(
    conn: sqlite3.Connection, project_id: int, left: str, right: str
) -> dict[str, Any]:
    """Delete one pair. A pair that does not exist is not an error."""
    with store_lock, transaction(conn):
        if store.get_project(conn, project_id) is None:
            return _not_found(project_id)
        removed = store.delete_pair(conn, project_id, left, right)

    if removed:
        logger.info("Project %d: removed pair %r -> %r", project_id, left, right)
    return {"removed": removed}


def delete_activity(
    conn: sqlite3.Connection, project_id: int, bubble: str
) -> dict[str, Any]:
    """Drop every pair touching a bubble. Its state row is left orphaned."""
    bubble = _clean(bubble)
    if not bubble:
        return _invalid("Activity name must not be empty")

    with store_lock, transaction(conn):
        if store.get_project(conn, project_id) is None:
            return _not_found(project_id)
        removed = store.delete_pairs_touching(conn, project_id, bubble)

    logger.info("Project %d: deleted activity %r (%d pairs)", project_id, bubble, removed)
    return {"activity": bubble, "removed": removed}


def rename_activity(
    conn: sqlite3.Connection, project_id: int, old: str, new: str
) -> dict[str, Any]:
    """Rename a bubble across pairs and state rows in one transaction.

    Renaming into an existing name merges the two bubbles: pairs that
    would duplicate an existing pair are dropped, and the target's state
    row wins over the renamed one.
    """
    old, new = _clean(old), _clean(new)
    if not old or not new:
        return _invalid("Both 'from' and 'to' must be non-empty")
    if old == new:
        return {"from": old, "to": new, "renamed": 0, "merged": 0, "states": 0}

    with store_lock, transaction(conn):
        if store.get_project(conn, project_id) is None:
            return _not_found(project_id)
        renamed, merged = store.rename_in_pairs(conn, project_id, old, new)
        states = store.rename_bubble_state(conn, project_id, old, new)

    logger.info(
        "Project %d: renamed %r to %r (%d pairs, %d merged)",
        project_id,
        old,
        new,
        renamed,
        merged,
    )
    return {"from": old, "to": new, "renamed": renamed, "merged": merged, "states": states}


# ── State flips ────────────────────────────────────────────


def flip_state(
    conn: sqlite3.Connection, project_id: int, bubble: str
) -> dict[str, Any]:
    """Advance a bubble one step along its state cycle."""
    bubble = _clean(bubble)
    if not bubble:
        return _invalid("Bubble name must not be empty")

    with store_lock, transaction(conn):
        if store.get_project(conn, project_id) is None:
            return _not_found(project_id)
        row = store.get_bubble_state(conn, project_id, bubble)
        if row is None:
            new_state = advance(None, exists=False)
        else:
            new_state = advance(row["state"])
        store.upsert_bubble_state(conn, project_id, bubble, new_state.value)

    logger.info("Project %d: %r is now %s", project_id, bubble, new_state.value)
    return {"bubble": bubble, "state": new_state.value}
