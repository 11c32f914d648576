"""
Admin credential access.

Passwords are stored as werkzeug password hashes and never returned.
"""

from __future__ import annotations

import logging
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from ..errors import InvalidCredentialsError
from ..store import SnapshotStore

logger = logging.getLogger(__name__)


class CredentialRepository:
    """Reads and updates admin credentials."""

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    def get(self, username: str) -> dict[str, Any] | None:
        """Return id, username and created_at, without the password hash."""
        return self.store.prepare(
            "SELECT id, username, created_at FROM admin WHERE username = ?"
        ).get_one(username)

    def verify(self, username: str, password: str) -> bool:
        """Check a username/password pair."""
        row = self.store.prepare("SELECT password FROM admin WHERE username = ?").get_one(username)
        if row is None:
            return False
        return check_password_hash(row["password"], password)

    def change_password(self, username: str, current_password: str, new_password: str) -> None:
        """Replace the password after checking the current one.

        Raises:
            InvalidCredentialsError: If the current password does not match
        """
        with self.store.transaction():
            if not self.verify(username, current_password):
                raise InvalidCredentialsError("Current password is incorrect")

            self.store.prepare("UPDATE admin SET password = ? WHERE username = ?").run(
                generate_password_hash(new_password), username
            )

        logger.info("Password changed", extra={"username": username})
