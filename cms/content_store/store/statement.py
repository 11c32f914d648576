"""
Prepared statement handles bound to a SnapshotStore.

A StatementHandle is the only way collaborators read or write rows.
Execution is delegated to the owning store, which serializes access
and flushes the snapshot after any execution that changed rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .snapshot_store import SnapshotStore

_INSERT_KEYWORDS = ("INSERT", "REPLACE")
_DML_KEYWORDS = _INSERT_KEYWORDS + ("UPDATE", "DELETE")


@dataclass(frozen=True)
class RunResult:
    """Outcome of a mutating statement.

    Attributes:
        rows_affected: Number of rows inserted, updated or deleted
        inserted_id: Row id of the inserted row, 0 for other statements
    """

    rows_affected: int
    inserted_id: int


class StatementHandle:
    """A parameterized statement bound to a store.

    Preparing does not execute anything; each call to run(), get_one()
    or get_all() executes the statement once with the given parameters.

    Example:
        >>> handle = store.prepare("SELECT * FROM events WHERE status = ?")
        >>> rows = handle.get_all("upcoming")
    """

    def __init__(self, store: SnapshotStore, sql: str) -> None:
        self._store = store
        self.sql = sql
        head = sql.lstrip().upper()
        self._inserts = head.startswith(_INSERT_KEYWORDS)
        self._dml = head.startswith(_DML_KEYWORDS)

    def run(self, *params: Any) -> RunResult:
        """Execute a mutating statement.

        The snapshot is flushed before this returns when the database changed,
        unless a store transaction is open (then the flush happens at commit).

        Raises:
            StatementError: Malformed statement or parameter mismatch
            SnapshotWriteError: Change applied in memory but not written to disk
        """
        with self._store.execute(self.sql, params) as cursor:
            # RETURNING rows must be drained before the change counts are final
            cursor.fetchall()
            if self._dml:
                rows_affected, last_rowid = self._store.last_statement_counts()
            else:
                rows_affected, last_rowid = max(cursor.rowcount, 0), cursor.lastrowid or 0
        # last_insert_rowid is connection-wide and only meaningful for inserts
        inserted_id = last_rowid if self._inserts and rows_affected else 0
        return RunResult(rows_affected=rows_affected, inserted_id=inserted_id)

    def get_one(self, *params: Any) -> dict[str, Any] | None:
        """Return the first matching row, or None when nothing matched."""
        with self._store.execute(self.sql, params) as cursor:
            row = cursor.fetchone()
        return dict(row) if row is not None else None

    def get_all(self, *params: Any) -> list[dict[str, Any]]:
        """Return every matching row in engine order, fully materialized."""
        with self._store.execute(self.sql, params) as cursor:
            rows = cursor.fetchall()
        return [dict(row) for row in rows]

    def __repr__(self) -> str:
        return f"StatementHandle({self.sql!r})"
