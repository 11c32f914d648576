"""
Snapshot-persisted SQLite store.

The SnapshotStore owns one in-memory SQLite database and one snapshot file
on disk holding the full binary image of that database. Every execution
that changes the database (rows, schema or header) serializes the whole
database and replaces the snapshot file before the call returns. Reads
never touch disk.

Snapshot format:
    A plain SQLite database file, as produced by Connection.serialize().
    It can be opened directly with the sqlite3 shell for inspection.

Invariants:
    - One process owns a snapshot file at a time
    - All executions are serialized through one re-entrant lock
    - A snapshot that exists but cannot be loaded is fatal, never replaced
    - A failed snapshot write is raised to the caller of the mutation
    - The snapshot file is replaced atomically (temp file + rename)

How to change safely:
    - Keep the snapshot a plain SQLite image so old files stay loadable
    - Group related mutations with transaction() to pay for one flush
    - Test corrupt and unwritable snapshot paths after changing load/flush
"""

from __future__ import annotations

import contextlib
import logging
import os
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from ..errors import (
    ConstraintViolationError,
    ContentStoreError,
    SnapshotCorruptError,
    SnapshotWriteError,
    StatementError,
    StoreNotInitializedError,
)
from .statement import StatementHandle

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "on", "true", "yes")
_FALSE_VALUES = ("0", "off", "false", "no")


def _normalize_pragma_value(value: Any) -> str:
    text = str(value).strip().strip("'\"").lower()
    if text in _TRUE_VALUES:
        return "1"
    if text in _FALSE_VALUES:
        return "0"
    return text


class SnapshotStore:
    """In-memory SQLite database persisted as a single snapshot file.

    Attributes:
        snapshot_path: Path of the snapshot file
        foreign_keys: Whether foreign key enforcement is requested
        schema_applied: Set once the table schema has been created

    Thread safety:
        The connection is shared; every execution holds the store lock.
        transaction() and exclusive() hold it for the whole block.

    Example:
        >>> store = SnapshotStore("/var/lib/cms/content.db")
        >>> store.initialize()
        >>> store.prepare("INSERT INTO news_ticker (text) VALUES (?)").run("Hello")
        RunResult(rows_affected=1, inserted_id=1)
    """

    def __init__(self, snapshot_path: str | Path, foreign_keys: bool = True) -> None:
        """Create an unopened store.

        Args:
            snapshot_path: Snapshot file location
            foreign_keys: Request foreign key enforcement on initialize
        """
        self.snapshot_path = Path(snapshot_path)
        self.foreign_keys = foreign_keys
        self.schema_applied = False
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._tx_depth = 0
        self._flush_count = 0

    @property
    def is_initialized(self) -> bool:
        return self._conn is not None

    @property
    def flush_count(self) -> int:
        """Number of snapshot writes since the store was created."""
        return self._flush_count

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    def initialize(self) -> None:
        """Load the snapshot file, or start empty if there is none.

        Raises:
            SnapshotCorruptError: If the snapshot exists but cannot be loaded
        """
        with self._lock:
            if self._conn is not None:
                logger.warning("Snapshot store already initialized")
                return

            self._conn = self._load()
            if self.foreign_keys:
                self.configure("foreign_keys = ON")

        logger.info(
            "Snapshot store initialized",
            extra={"snapshot_path": str(self.snapshot_path)},
        )

    def _open_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            ":memory:",
            isolation_level=None,  # Autocommit by default, explicit transactions
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        return conn

    def _load(self) -> sqlite3.Connection:
        conn = self._open_connection()

        if not self.snapshot_path.exists():
            self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"No snapshot at {self.snapshot_path}, starting with an empty database")
            return conn

        try:
            data = self.snapshot_path.read_bytes()
            self._deserialize_into(conn, data, source=str(self.snapshot_path))
        except OSError as e:
            conn.close()
            raise SnapshotCorruptError(
                f"Cannot read snapshot {self.snapshot_path}: {e}",
                path=str(self.snapshot_path),
            ) from e
        except SnapshotCorruptError:
            conn.close()
            raise

        logger.info(
            "Loaded snapshot",
            extra={"snapshot_path": str(self.snapshot_path), "size_bytes": len(data)},
        )
        return conn

    def _deserialize_into(self, conn: sqlite3.Connection, data: bytes, source: str) -> None:
        # A zero-length file is what a torn write leaves behind
        if not data:
            raise SnapshotCorruptError(f"Snapshot is empty: {source}", path=source)

        try:
            conn.deserialize(data)
            row = conn.execute("PRAGMA quick_check").fetchone()
        except sqlite3.DatabaseError as e:
            raise SnapshotCorruptError(
                f"Snapshot is not a valid database: {source}: {e}", path=source
            ) from e

        if row is None or row[0] != "ok":
            raise SnapshotCorruptError(
                f"Snapshot failed integrity check: {source}: {row[0] if row else 'no result'}",
                path=source,
            )

    def _require_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreNotInitializedError(
                "Snapshot store not initialized. Call initialize() first."
            )
        return self._conn

    def _translate_error(self, error: sqlite3.Error, sql: str) -> ContentStoreError:
        message = str(error)
        if isinstance(error, sqlite3.IntegrityError):
            return ConstraintViolationError(message, sql=sql)
        if (
            isinstance(error, sqlite3.OperationalError)
            and message.startswith("no such table")
            and not self.schema_applied
        ):
            return StoreNotInitializedError(
                f"Schema not initialized: {message}", details={"sql": sql}
            )
        return StatementError(message, sql=sql)

    def _change_marker(self, conn: sqlite3.Connection) -> tuple[int, int, int]:
        # Row changes, schema changes (DDL) and header changes all alter the image
        return (
            conn.total_changes,
            conn.execute("PRAGMA schema_version").fetchone()[0],
            conn.execute("PRAGMA user_version").fetchone()[0],
        )

    def last_statement_counts(self) -> tuple[int, int]:
        """Rows changed and last inserted row id of the most recent DML statement."""
        with self._lock:
            row = self._require_connection().execute(
                "SELECT changes(), last_insert_rowid()"
            ).fetchone()
            return row[0], row[1]

    def prepare(self, sql: str) -> StatementHandle:
        """Bind statement text to this store without executing it."""
        self._require_connection()
        return StatementHandle(self, sql)

    @contextmanager
    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> Iterator[sqlite3.Cursor]:
        """Execute one statement and yield its cursor.

        The cursor is closed on every exit path. If the execution changed the
        database the snapshot is flushed after the block, outside a transaction.

        Raises:
            StoreNotInitializedError: Store or schema not initialized
            StatementError: Statement failed
        """
        with self._lock:
            conn = self._require_connection()
            marker_before = self._change_marker(conn)
            cursor = conn.cursor()
            try:
                cursor.execute(sql, params)
                yield cursor
            except sqlite3.Error as e:
                raise self._translate_error(e, sql) from e
            finally:
                cursor.close()

            if not self._tx_depth and self._change_marker(conn) != marker_before:
                self.flush()

    def exec(self, script: str) -> None:
        """Run a batch of statements (schema DDL) and flush.

        Raises:
            StatementError: If any statement fails or a transaction is open
        """
        with self._lock:
            conn = self._require_connection()
            if self._tx_depth:
                raise StatementError("exec() cannot run inside a transaction", sql=script)
            try:
                conn.executescript(script)
            except sqlite3.Error as e:
                raise self._translate_error(e, script) from e
            self.flush()

    def configure(self, pragma: str) -> bool:
        """Apply a PRAGMA on a best-effort basis.

        Args:
            pragma: Pragma text without the PRAGMA keyword, e.g. "foreign_keys = ON"

        Returns:
            True if the engine accepted the setting, False otherwise
        """
        name, _, value = pragma.partition("=")
        name = name.strip()
        value = value.strip()

        with self._lock:
            conn = self._require_connection()
            try:
                conn.execute(f"PRAGMA {pragma}")
                actual = conn.execute(f"PRAGMA {name}").fetchone() if value else None
            except sqlite3.Error as e:
                logger.warning(f"PRAGMA {pragma} not supported, ignoring: {e}")
                return False

        accepted = actual is not None and (
            _normalize_pragma_value(actual[0]) == _normalize_pragma_value(value)
        )
        if value and not accepted:
            logger.warning(
                f"PRAGMA {pragma} not supported by engine, ignoring",
                extra={"pragma": name, "requested": value, "actual": actual[0] if actual else None},
            )
            return False

        logger.debug(f"Applied PRAGMA {pragma}")
        return True

    def flush(self) -> None:
        """Write the full database image over the snapshot file.

        Raises:
            SnapshotWriteError: If the file cannot be written
        """
        with self._lock:
            conn = self._require_connection()
            data = conn.serialize()
            tmp_path = self.snapshot_path.with_name(f"{self.snapshot_path.name}.tmp")

            try:
                with open(tmp_path, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.snapshot_path)
            except OSError as e:
                with contextlib.suppress(OSError):
                    tmp_path.unlink(missing_ok=True)
                logger.error(
                    f"Snapshot write failed: {e}",
                    extra={"snapshot_path": str(self.snapshot_path)},
                )
                raise SnapshotWriteError(
                    f"Failed to write snapshot {self.snapshot_path}: {e}",
                    path=str(self.snapshot_path),
                ) from e

            self._flush_count += 1

        logger.debug(
            "Flushed snapshot",
            extra={"snapshot_path": str(self.snapshot_path), "size_bytes": len(data)},
        )

    @contextmanager
    def transaction(self) -> Iterator[SnapshotStore]:
        """Group statements into one atomic unit with a single flush.

        Nested calls join the outermost transaction. On error the
        transaction is rolled back and nothing is flushed.
        """
        with self._lock:
            conn = self._require_connection()

            if self._tx_depth:
                self._tx_depth += 1
                try:
                    yield self
                finally:
                    self._tx_depth -= 1
                return

            marker_before = self._change_marker(conn)
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise self._translate_error(e, "BEGIN IMMEDIATE") from e
            self._tx_depth = 1
            try:
                yield self
            except BaseException:
                self._tx_depth = 0
                self._rollback(conn)
                raise

            self._tx_depth = 0
            try:
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                # A failed COMMIT (deferred constraint) leaves the transaction open
                self._rollback(conn)
                raise self._translate_error(e, "COMMIT") from e

            if self._change_marker(conn) != marker_before:
                self.flush()

    def _rollback(self, conn: sqlite3.Connection) -> None:
        if not conn.in_transaction:
            return
        try:
            conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            logger.error(f"Rollback failed: {e}", exc_info=True)
            raise self._translate_error(e, "ROLLBACK") from e

    @contextmanager
    def exclusive(self) -> Iterator[SnapshotStore]:
        """Hold the store lock across several calls without a transaction."""
        with self._lock:
            self._require_connection()
            yield self

    def export_snapshot(self) -> bytes:
        """Return the full database image."""
        with self._lock:
            return self._require_connection().serialize()

    def import_snapshot(self, data: bytes) -> None:
        """Replace the whole database with the given image and flush.

        The image is validated on a scratch connection first, so a bad
        image leaves the live database untouched.

        Raises:
            SnapshotCorruptError: If the image is not a valid database
        """
        scratch = self._open_connection()
        try:
            self._deserialize_into(scratch, data, source="<import>")
        finally:
            scratch.close()

        with self._lock:
            conn = self._require_connection()
            if self._tx_depth:
                raise StatementError("import_snapshot() cannot run inside a transaction")
            conn.deserialize(data)
            if self.foreign_keys:
                self.configure("foreign_keys = ON")
            self.flush()

        logger.info("Imported snapshot", extra={"size_bytes": len(data)})

    def close(self) -> None:
        """Close the in-memory database. The snapshot file is left as is."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.info("Snapshot store closed")
