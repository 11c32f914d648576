"""
Unit tests for the snapshot store and statement handles.

Tests cover:
- run / get_one / get_all semantics
- Flush after mutations, no flush on reads
- Round-trip through the snapshot file
- Corrupt snapshot handling
- Error translation
- Best-effort PRAGMA configuration
- Transactions (including a failed COMMIT) and export/import
- DDL and RETURNING statements through run()
"""

import logging
import shutil
import sqlite3
import tempfile
from pathlib import Path

import pytest

from cms.content_store.errors import (
    ConstraintViolationError,
    SnapshotCorruptError,
    SnapshotWriteError,
    StatementError,
    StoreNotInitializedError,
)
from cms.content_store.store import RunResult, SnapshotStore

ITEMS_DDL = """
    CREATE TABLE IF NOT EXISTS items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT UNIQUE NOT NULL,
        qty INTEGER DEFAULT 0
    );
"""


class TestSnapshotStore:
    """Tests for SnapshotStore."""

    @pytest.fixture
    def data_dir(self):
        """Create temporary data directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    @pytest.fixture
    def snapshot_path(self, data_dir):
        return data_dir / "content.db"

    @pytest.fixture
    def store(self, snapshot_path):
        """Create an initialized store with an items table."""
        store = SnapshotStore(snapshot_path)
        store.initialize()
        store.exec(ITEMS_DDL)
        yield store
        store.close()

    def test_run_returns_inserted_id(self, store):
        """Inserts report one affected row and the new id."""
        insert = store.prepare("INSERT INTO items (name, qty) VALUES (?, ?)")

        first = insert.run("apple", 3)
        second = insert.run("pear", 5)

        assert first == RunResult(rows_affected=1, inserted_id=1)
        assert second == RunResult(rows_affected=1, inserted_id=2)

    def test_update_reports_rows_affected(self, store):
        """Updates report affected rows and no inserted id."""
        insert = store.prepare("INSERT INTO items (name) VALUES (?)")
        insert.run("apple")
        insert.run("pear")

        result = store.prepare("UPDATE items SET qty = ?").run(7)

        assert result.rows_affected == 2
        assert result.inserted_id == 0

    def test_get_one(self, store):
        """get_one returns the row as a dict."""
        store.prepare("INSERT INTO items (name, qty) VALUES (?, ?)").run("apple", 3)

        row = store.prepare("SELECT name, qty FROM items WHERE name = ?").get_one("apple")

        assert row == {"name": "apple", "qty": 3}

    def test_get_one_absent(self, store):
        """get_one returns None when nothing matches."""
        assert store.prepare("SELECT * FROM items WHERE id = ?").get_one(42) is None

    def test_get_all_materialized_in_order(self, store):
        """get_all returns a list in statement order."""
        insert = store.prepare("INSERT INTO items (name, qty) VALUES (?, ?)")
        insert.run("b", 2)
        insert.run("a", 1)
        insert.run("c", 3)

        rows = store.prepare("SELECT name FROM items ORDER BY qty DESC").get_all()

        assert isinstance(rows, list)
        assert [row["name"] for row in rows] == ["c", "b", "a"]

    def test_get_all_empty(self, store):
        assert store.prepare("SELECT * FROM items").get_all() == []

    def test_mutation_flushes_snapshot(self, store, snapshot_path):
        """A mutation is on disk when run() returns."""
        before = store.flush_count

        store.prepare("INSERT INTO items (name) VALUES (?)").run("apple")

        assert store.flush_count == before + 1
        conn = sqlite3.connect(str(snapshot_path))
        try:
            names = [row[0] for row in conn.execute("SELECT name FROM items")]
        finally:
            conn.close()
        assert names == ["apple"]

    def test_reads_do_not_flush(self, store):
        """Reads never touch disk."""
        store.prepare("INSERT INTO items (name) VALUES (?)").run("apple")
        before = store.flush_count

        store.prepare("SELECT * FROM items").get_all()
        store.prepare("SELECT * FROM items WHERE id = ?").get_one(1)

        assert store.flush_count == before

    def test_noop_mutation_does_not_flush(self, store):
        """A statement that changes no rows does not rewrite the snapshot."""
        before = store.flush_count

        result = store.prepare("UPDATE items SET qty = 1 WHERE id = ?").run(999)

        assert result.rows_affected == 0
        assert store.flush_count == before

    def test_schema_change_flushed(self, store, snapshot_path):
        """DDL run through a statement handle reaches the snapshot file."""
        before = store.flush_count

        result = store.prepare("CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT)").run()

        assert result == RunResult(rows_affected=0, inserted_id=0)
        assert store.flush_count == before + 1
        store.close()

        reopened = SnapshotStore(snapshot_path)
        reopened.initialize()
        try:
            table = reopened.prepare(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?"
            ).get_one("notes")
        finally:
            reopened.close()
        assert table == {"name": "notes"}

    def test_drop_table_flushed(self, store, snapshot_path):
        store.prepare("DROP TABLE items").run()
        store.close()

        conn = sqlite3.connect(str(snapshot_path))
        try:
            tables = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
        finally:
            conn.close()
        assert ("items",) not in tables

    def test_insert_returning(self, store):
        """RETURNING statements still report the insert."""
        insert = store.prepare("INSERT INTO items (name) VALUES (?) RETURNING id")

        assert insert.run("apple") == RunResult(rows_affected=1, inserted_id=1)
        assert insert.run("pear") == RunResult(rows_affected=1, inserted_id=2)

    def test_update_returning(self, store):
        insert = store.prepare("INSERT INTO items (name) VALUES (?)")
        insert.run("apple")
        insert.run("pear")
        before = store.flush_count

        result = store.prepare("UPDATE items SET qty = qty + 1 RETURNING id").run()

        assert result == RunResult(rows_affected=2, inserted_id=0)
        assert store.flush_count == before + 1

    def test_round_trip(self, store, snapshot_path):
        """A new store loaded from the snapshot sees the same rows."""
        insert = store.prepare("INSERT INTO items (name, qty) VALUES (?, ?)")
        for i in range(10):
            insert.run(f"item_{i}", i * 10)
        expected = store.prepare("SELECT * FROM items ORDER BY id").get_all()
        store.close()

        reopened = SnapshotStore(snapshot_path)
        reopened.initialize()
        try:
            rows = reopened.prepare("SELECT * FROM items ORDER BY id").get_all()
        finally:
            reopened.close()

        assert rows == expected
        assert len(rows) == 10

    def test_corrupt_snapshot_is_fatal(self, snapshot_path):
        """A snapshot that is not a database is never replaced."""
        garbage = b"this is not a sqlite database" * 100
        snapshot_path.write_bytes(garbage)

        store = SnapshotStore(snapshot_path)
        with pytest.raises(SnapshotCorruptError):
            store.initialize()

        assert not store.is_initialized
        assert snapshot_path.read_bytes() == garbage

    def test_empty_snapshot_is_fatal(self, snapshot_path):
        """A zero-length snapshot is treated as corrupt."""
        snapshot_path.write_bytes(b"")

        with pytest.raises(SnapshotCorruptError):
            SnapshotStore(snapshot_path).initialize()

    def test_missing_snapshot_starts_empty(self, data_dir):
        """No snapshot file means an empty database and a created directory."""
        path = data_dir / "nested" / "content.db"
        store = SnapshotStore(path)
        store.initialize()
        try:
            assert store.is_initialized
            assert path.parent.exists()
            tables = store.prepare("SELECT name FROM sqlite_master WHERE type = 'table'").get_all()
            assert tables == []
        finally:
            store.close()

    def test_write_failure_reported_to_caller(self, data_dir):
        """A failed snapshot write fails the mutation call."""
        path = data_dir / "volume" / "content.db"
        store = SnapshotStore(path)
        store.initialize()
        store.exec(ITEMS_DDL)

        shutil.rmtree(path.parent)

        try:
            with pytest.raises(SnapshotWriteError) as exc_info:
                store.prepare("INSERT INTO items (name) VALUES (?)").run("apple")

            assert exc_info.value.code == "SNAPSHOT_WRITE_FAILED"
            # Change stays in memory only
            assert store.prepare("SELECT name FROM items").get_one() == {"name": "apple"}
        finally:
            store.close()

    def test_prepare_before_initialize(self, snapshot_path):
        """Statements on an unopened store fail with not-initialized."""
        store = SnapshotStore(snapshot_path)

        with pytest.raises(StoreNotInitializedError):
            store.prepare("SELECT 1")

    def test_missing_table_before_schema(self, snapshot_path):
        """Referencing a table before the schema is applied is not-initialized."""
        store = SnapshotStore(snapshot_path)
        store.initialize()
        try:
            with pytest.raises(StoreNotInitializedError):
                store.prepare("SELECT * FROM events").get_all()
        finally:
            store.close()

    def test_missing_table_after_schema(self, store):
        """Once the schema is applied an unknown table is a statement error."""
        store.schema_applied = True

        with pytest.raises(StatementError) as exc_info:
            store.prepare("SELECT * FROM no_such_table").get_all()

        assert not isinstance(exc_info.value, StoreNotInitializedError)

    def test_malformed_statement(self, store):
        with pytest.raises(StatementError) as exc_info:
            store.prepare("SELEKT * FROM items").get_all()

        assert exc_info.value.code == "STATEMENT_ERROR"
        assert exc_info.value.to_dict()["details"]["sql"] == "SELEKT * FROM items"

    def test_parameter_count_mismatch(self, store):
        with pytest.raises(StatementError):
            store.prepare("INSERT INTO items (name, qty) VALUES (?, ?)").run("apple")

    def test_constraint_violation(self, store):
        """Unique collisions surface as constraint violations."""
        insert = store.prepare("INSERT INTO items (name) VALUES (?)")
        insert.run("apple")

        with pytest.raises(ConstraintViolationError) as exc_info:
            insert.run("apple")

        assert isinstance(exc_info.value, StatementError)
        assert exc_info.value.code == "CONSTRAINT_VIOLATION"

    def test_configure_supported_pragma(self, store):
        assert store.configure("foreign_keys = ON") is True

    def test_configure_unsupported_pragma_logged(self, store, caplog):
        """WAL cannot apply to an in-memory database; reported, not raised."""
        with caplog.at_level(logging.WARNING):
            assert store.configure("journal_mode = WAL") is False

        assert "journal_mode" in caplog.text

    def test_configure_invalid_pragma(self, store, caplog):
        with caplog.at_level(logging.WARNING):
            assert store.configure("this is not a pragma") is False

        assert "not supported" in caplog.text

    def test_transaction_flushes_once(self, store):
        """Several mutations in one transaction cost one flush."""
        before = store.flush_count

        with store.transaction():
            insert = store.prepare("INSERT INTO items (name) VALUES (?)")
            insert.run("apple")
            insert.run("pear")
            store.prepare("UPDATE items SET qty = 2").run()

        assert store.flush_count == before + 1
        assert len(store.prepare("SELECT * FROM items").get_all()) == 2

    def test_transaction_rollback(self, store):
        """An error inside a transaction rolls back and skips the flush."""
        before = store.flush_count

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.prepare("INSERT INTO items (name) VALUES (?)").run("apple")
                raise RuntimeError("boom")

        assert store.prepare("SELECT * FROM items").get_all() == []
        assert store.flush_count == before
        assert not store.in_transaction

    def test_failed_commit_rolls_back(self, store):
        """A constraint failing at COMMIT rolls back and surfaces as a store error."""
        store.exec(
            """
            CREATE TABLE parents (id INTEGER PRIMARY KEY);
            CREATE TABLE children (
                id INTEGER PRIMARY KEY,
                parent_id INTEGER NOT NULL REFERENCES parents(id)
            );
            """
        )
        before = store.flush_count

        with pytest.raises(ConstraintViolationError) as exc_info:
            with store.transaction():
                store.prepare("PRAGMA defer_foreign_keys = ON").run()
                store.prepare("INSERT INTO children (parent_id) VALUES (?)").run(99)

        assert exc_info.value.to_dict()["details"]["sql"] == "COMMIT"
        assert not store.in_transaction
        assert store.prepare("SELECT * FROM children").get_all() == []
        assert store.flush_count == before

        with store.transaction():
            parent_id = store.prepare("INSERT INTO parents DEFAULT VALUES").run().inserted_id
            store.prepare("INSERT INTO children (parent_id) VALUES (?)").run(parent_id)
        assert len(store.prepare("SELECT * FROM children").get_all()) == 1

    def test_nested_transaction_joins_outer(self, store):
        before = store.flush_count

        with store.transaction():
            store.prepare("INSERT INTO items (name) VALUES (?)").run("apple")
            with store.transaction():
                store.prepare("INSERT INTO items (name) VALUES (?)").run("pear")

        assert store.flush_count == before + 1
        assert len(store.prepare("SELECT * FROM items").get_all()) == 2

    def test_export_import(self, store, data_dir):
        """An exported image loads into another store."""
        store.prepare("INSERT INTO items (name, qty) VALUES (?, ?)").run("apple", 3)
        image = store.export_snapshot()

        other = SnapshotStore(data_dir / "other.db")
        other.initialize()
        try:
            other.import_snapshot(image)
            assert other.prepare("SELECT name, qty FROM items").get_all() == [
                {"name": "apple", "qty": 3}
            ]
            assert (data_dir / "other.db").exists()
        finally:
            other.close()

    def test_import_corrupt_image_keeps_data(self, store):
        """A bad image is rejected before the live database is touched."""
        store.prepare("INSERT INTO items (name) VALUES (?)").run("apple")

        with pytest.raises(SnapshotCorruptError):
            store.import_snapshot(b"garbage" * 200)

        assert store.prepare("SELECT name FROM items").get_all() == [{"name": "apple"}]
