"""In-memory graph model for one project.

The set of known bubbles is derived from the pairs on every read and never
stored. State rows are reconciled against it: rows for names no pair
mentions are dropped, and known names without a row stay unstyled.
"""

import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass, field

from db import store
from db.state_machine import BubbleState


@dataclass(frozen=True, order=True)
class Edge:
    """A precedence arc: ``left`` must happen before ``right``."""

    left: str
    right: str


@dataclass
class GraphModel:
    project_id: int
    name: str
    edges: list[Edge] = field(default_factory=list)
    # Known bubbles with a state row, and those without one
    states: dict[str, BubbleState] = field(default_factory=dict)
    unstyled: list[str] = field(default_factory=list)

    @property
    def activities(self) -> list[str]:
        """Sorted union of all pair endpoints."""
        return sorted([*self.states, *self.unstyled])

    def state_of(self, bubble: str) -> BubbleState | None:
        return self.states.get(bubble)


def reconcile(
    project_id: int,
    name: str,
    pairs: Iterable[tuple[str, str]],
    state_rows: Iterable[tuple[str, str | None]],
) -> GraphModel:
    """Build a GraphModel from raw pair and state rows.

    Output ordering comes from explicit sorting, so it does not depend on
    the order rows were read in.
    """
    edges: list[Edge] = []
    known: set[str] = set()
    for left, right in pairs:
        known.add(left)
        known.add(right)
        edges.append(Edge(left, right))
    edges.sort()

    remaining = set(known)
    states: dict[str, BubbleState] = {}
    for bubble, state in state_rows:
        if bubble not in remaining:
            continue
        remaining.discard(bubble)
        states[bubble] = BubbleState.from_persisted(state)

    return GraphModel(
        project_id=project_id,
        name=name,
        edges=edges,
        states=dict(sorted(states.items())),
        unstyled=sorted(remaining),
    )


def load_graph(conn: sqlite3.Connection, project_id: int) -> GraphModel | None:
    """Read a project's pairs and states from the store. None if no such project."""
    project = store.get_project(conn, project_id)
    if project is None:
        return None

    pairs = [(row["left"], row["right"]) for row in store.list_pairs(conn, project_id)]
    state_rows = [
        (row["bubble"], row["state"])
        for row in store.list_bubble_states(conn, project_id)
    ]
    return reconcile(project_id, project["name"], pairs, state_rows)
