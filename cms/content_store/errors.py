"""
Error types for the content store.

Every failure raised by the store, the lifecycle scheduler and the content
repositories derives from ContentStoreError. Collaborators (HTTP handlers,
CLI) convert them with to_dict() at their boundary.

Invariants:
    - All errors carry a stable code for programmatic handling
    - Snapshot read failures at startup are fatal, never replaced silently
    - Snapshot write failures reach the caller of the mutation

How to change safely:
    - Never change an existing code value, clients switch on it
    - Add new error kinds as subclasses of the closest existing one
"""

from __future__ import annotations

from typing import Any


class ContentStoreError(Exception):
    """Base exception for all content store errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    default_code = "CONTENT_STORE_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Structured form for the collaborator boundary."""
        return {"error": self.message, "error_code": self.code, "details": self.details}


class StoreNotInitializedError(ContentStoreError):
    """Store used before initialize() completed."""

    default_code = "NOT_INITIALIZED"


class StatementError(ContentStoreError):
    """Statement could not be executed.

    Raised when:
    - Statement text is malformed
    - Parameter count does not match the placeholders
    - A value has an unsupported type
    """

    default_code = "STATEMENT_ERROR"

    def __init__(self, message: str, sql: str | None = None, code: str | None = None) -> None:
        super().__init__(message, code=code, details={"sql": sql})
        self.sql = sql


class ConstraintViolationError(StatementError):
    """Statement violated a UNIQUE, NOT NULL, CHECK or FOREIGN KEY constraint."""

    default_code = "CONSTRAINT_VIOLATION"


class SnapshotCorruptError(ContentStoreError):
    """Snapshot file exists but cannot be loaded."""

    default_code = "SNAPSHOT_CORRUPT"

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message, details={"path": path})
        self.path = path


class SnapshotWriteError(ContentStoreError):
    """Snapshot could not be written after a mutation.

    The mutation is applied in memory but is not on disk.
    """

    default_code = "SNAPSHOT_WRITE_FAILED"

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message, details={"path": path})
        self.path = path


class RecordNotFoundError(ContentStoreError):
    """Requested row does not exist."""

    default_code = "NOT_FOUND"

    def __init__(self, table: str, record_id: int) -> None:
        super().__init__(
            f"{table} record {record_id} not found",
            details={"table": table, "id": record_id},
        )
        self.table = table
        self.record_id = record_id


class InvalidCredentialsError(ContentStoreError):
    """Username or password did not match."""

    default_code = "INVALID_CREDENTIALS"


class StatusOverrideError(ContentStoreError):
    """Manual status change rejected because the event already left 'upcoming'."""

    default_code = "STATUS_OVERRIDE_REJECTED"
