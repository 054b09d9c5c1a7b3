"""Tests for the database layer.

Verifies:
- DB creation and migrations
- WAL mode and foreign keys enabled
- Unique indexes on pairs and bubble states
- Idempotent migrations (running twice doesn't error)
- Upgrade of databases written by the old single-binary deployment
- Transaction helper commits and rolls back
"""

import sqlite3
from pathlib import Path

import pytest

from db import store
from db.client import get_connection, transaction
from db.migrations import init_db, run_migrations


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture()
def conn(db_path: Path) -> sqlite3.Connection:
    connection = init_db(db_path)
    yield connection
    connection.close()


def _seed_project(conn: sqlite3.Connection, name: str = "Test") -> int:
    project_id = store.create_project(conn, name)
    conn.commit()
    return project_id


class TestMigrations:
    def test_creates_all_tables(self, conn: sqlite3.Connection) -> None:
        tables = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' "
            "AND name NOT LIKE 'sqlite_%' ORDER BY name"
        ).fetchall()
        assert [t[0] for t in tables] == ["bubbles", "pairs", "projects"]

    def test_creates_unique_indexes(self, conn: sqlite3.Connection) -> None:
        indexes = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='index' ORDER BY name"
        ).fetchall()
        names = [i[0] for i in indexes]
        assert "pairs_unique" in names
        assert "bubbles_project_bubble" in names

    def test_wal_mode_enabled(self, conn: sqlite3.Connection) -> None:
        mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
        assert mode == "wal"

    def test_foreign_keys_enabled(self, conn: sqlite3.Connection) -> None:
        fk = conn.execute("PRAGMA foreign_keys").fetchone()[0]
        assert fk == 1

    def test_idempotent(self, conn: sqlite3.Connection) -> None:
        """Running migrations twice should not raise or lose data."""
        pid = _seed_project(conn)
        store.insert_pair(conn, pid, "a", "b")
        conn.commit()

        run_migrations(conn)

        assert len(store.list_pairs(conn, pid)) == 1

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        nested = tmp_path / "a" / "b" / "state.db"
        connection = init_db(nested)
        connection.close()
        assert nested.exists()


class TestLegacyUpgrade:
    def _legacy_db(self, db_path: Path) -> None:
        conn = sqlite3.connect(str(db_path))
        conn.executescript(
            """
            create table pairs (project bigint, left text, right text);
            create table bubbles (project bigint, bubble text, state text);
            create table projects (project integer primary key autoincrement, name text);
            insert into projects (name) values ('old');
            insert into pairs values (1, 'a', 'b');
            insert into pairs values (1, 'a', 'b');
            insert into pairs values (1, 'b', 'c');
            insert into bubbles values (1, 'a', 'started');
            insert into bubbles values (1, 'a', 'done');
            """
        )
        conn.commit()
        conn.close()

    def test_renames_project_key(self, db_path: Path) -> None:
        self._legacy_db(db_path)
        conn = init_db(db_path)
        try:
            project = store.get_project(conn, 1)
            assert project is not None
            assert project["name"] == "old"
        finally:
            conn.close()

    def test_collapses_duplicate_rows(self, db_path: Path) -> None:
        self._legacy_db(db_path)
        conn = init_db(db_path)
        try:
            pairs = sorted(tuple(r) for r in store.list_pairs(conn, 1))
            assert pairs == [("a", "b"), ("b", "c")]
            states = [tuple(r) for r in store.list_bubble_states(conn, 1)]
            # The latest row for a bubble is the one kept
            assert states == [("a", "done")]
        finally:
            conn.close()


class TestStoreConstraints:
    def test_insert_pair_if_absent(self, conn: sqlite3.Connection) -> None:
        pid = _seed_project(conn)
        assert store.insert_pair(conn, pid, "a", "b") is True
        assert store.insert_pair(conn, pid, "a", "b") is False
        conn.commit()
        assert len(store.list_pairs(conn, pid)) == 1

    def test_same_pair_in_two_projects(self, conn: sqlite3.Connection) -> None:
        p1 = _seed_project(conn, "one")
        p2 = _seed_project(conn, "two")
        assert store.insert_pair(conn, p1, "a", "b") is True
        assert store.insert_pair(conn, p2, "a", "b") is True

    def test_pair_requires_existing_project(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(sqlite3.IntegrityError):
            store.insert_pair(conn, 999, "a", "b")

    def test_upsert_bubble_state(self, conn: sqlite3.Connection) -> None:
        pid = _seed_project(conn)
        store.upsert_bubble_state(conn, pid, "a", "started")
        store.upsert_bubble_state(conn, pid, "a", "done")
        conn.commit()
        rows = store.list_bubble_states(conn, pid)
        assert [tuple(r) for r in rows] == [("a", "done")]


class TestTransaction:
    def test_commits_on_success(self, db_path: Path, conn: sqlite3.Connection) -> None:
        with transaction(conn):
            store.create_project(conn, "kept")

        other = get_connection(db_path)
        try:
            assert [r["name"] for r in store.list_projects(other)] == ["kept"]
        finally:
            other.close()

    def test_rolls_back_on_error(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(RuntimeError):
            with transaction(conn):
                store.create_project(conn, "lost")
                raise RuntimeError("boom")

        assert store.list_projects(conn) == []
