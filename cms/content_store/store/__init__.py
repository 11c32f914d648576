"""
Store module for the content store.

This module provides:
- SnapshotStore: in-memory SQLite database persisted as one snapshot file
- StatementHandle: prepared statement with run/get_one/get_all execution
- RunResult: rows affected and inserted id of a mutation

Invariants:
    - Every execution that changes rows is on disk before the call returns
    - Reads never touch disk
"""

from .snapshot_store import SnapshotStore
from .statement import RunResult, StatementHandle

__all__ = ["SnapshotStore", "StatementHandle", "RunResult"]
