"""Tests for bubbles/graph.py: graph model and state reconciliation."""

import sqlite3
from pathlib import Path

import pytest

from bubbles.graph import Edge, load_graph, reconcile
from db import store
from db.migrations import init_db
from db.state_machine import BubbleState


@pytest.fixture()
def conn(tmp_path: Path) -> sqlite3.Connection:
    connection = init_db(tmp_path / "test.db")
    yield connection
    connection.close()


class TestReconcile:
    def test_known_activities_are_pair_endpoints(self) -> None:
        graph = reconcile(1, "P", [("design", "build"), ("build", "ship")], [])
        assert graph.activities == ["build", "design", "ship"]
        assert graph.unstyled == ["build", "design", "ship"]
        assert graph.states == {}

    def test_edges_sorted_by_left_then_right(self) -> None:
        pairs = [("design", "build"), ("build", "ship"), ("build", "docs")]
        graph = reconcile(1, "P", pairs, [])
        assert graph.edges == [
            Edge("build", "docs"),
            Edge("build", "ship"),
            Edge("design", "build"),
        ]

    def test_sorting_is_by_code_point(self) -> None:
        graph = reconcile(1, "P", [("b", "x"), ("B", "x"), ("a", "x")], [])
        assert [e.left for e in graph.edges] == ["B", "a", "b"]

    def test_orphaned_state_rows_ignored(self) -> None:
        graph = reconcile(1, "P", [("a", "b")], [("gone", "done"), ("a", "started")])
        assert "gone" not in graph.activities
        assert graph.states == {"a": BubbleState.STARTED}
        assert graph.unstyled == ["b"]

    def test_unknown_state_value_reads_as_initial(self) -> None:
        graph = reconcile(1, "P", [("a", "b")], [("a", "")])
        assert graph.state_of("a") is BubbleState.INITIAL

    def test_missing_state_is_none(self) -> None:
        graph = reconcile(1, "P", [("a", "b")], [])
        assert graph.state_of("a") is None

    def test_independent_of_read_order(self) -> None:
        pairs = [("a", "b"), ("c", "d"), ("b", "c")]
        states = [("b", "done"), ("d", "aborted")]
        one = reconcile(1, "P", pairs, states)
        two = reconcile(1, "P", list(reversed(pairs)), list(reversed(states)))
        assert one == two

    def test_empty_project(self) -> None:
        graph = reconcile(1, "P", [], [("a", "done")])
        assert graph.edges == []
        assert graph.activities == []


class TestLoadGraph:
    def test_missing_project(self, conn: sqlite3.Connection) -> None:
        assert load_graph(conn, 42) is None

    def test_reads_store(self, conn: sqlite3.Connection) -> None:
        pid = store.create_project(conn, "Release")
        store.insert_pair(conn, pid, "design", "build")
        store.insert_pair(conn, pid, "build", "ship")
        store.upsert_bubble_state(conn, pid, "build", "started")
        conn.commit()

        graph = load_graph(conn, pid)

        assert graph is not None
        assert graph.name == "Release"
        assert graph.edges == [Edge("build", "ship"), Edge("design", "build")]
        assert graph.states == {"build": BubbleState.STARTED}
        assert graph.unstyled == ["design", "ship"]

    def test_scoped_to_project(self, conn: sqlite3.Connection) -> None:
        p1 = store.create_project(conn, "one")
        p2 = store.create_project(conn, "two")
        store.insert_pair(conn, p1, "a", "b")
        store.insert_pair(conn, p2, "x", "y")
        conn.commit()

        graph = load_graph(conn, p2)
        assert graph is not None
        assert graph.activities == ["x", "y"]
