"""
Site popups.

Invariants:
    - At most one popup has active = 1
    - Activation and deactivation of the others happen in one transaction
"""

from __future__ import annotations

import logging
from typing import Any

from ..errors import RecordNotFoundError
from ..store import SnapshotStore
from .models import PopupInput

logger = logging.getLogger(__name__)


class PopupRepository:
    """CRUD for popups with single-active enforcement."""

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    def list_popups(self) -> list[dict[str, Any]]:
        return self.store.prepare("SELECT * FROM popup ORDER BY created_at DESC, id DESC").get_all()

    def get_active(self) -> dict[str, Any] | None:
        return self.store.prepare(
            "SELECT * FROM popup WHERE active = 1 ORDER BY created_at DESC, id DESC LIMIT 1"
        ).get_one()

    def _require(self, popup_id: int) -> dict[str, Any]:
        popup = self.store.prepare("SELECT * FROM popup WHERE id = ?").get_one(popup_id)
        if popup is None:
            raise RecordNotFoundError("popup", popup_id)
        return popup

    def _deactivate_others(self, popup_id: int | None = None) -> None:
        if popup_id is None:
            self.store.prepare("UPDATE popup SET active = 0 WHERE active != 0").run()
        else:
            self.store.prepare("UPDATE popup SET active = 0 WHERE active != 0 AND id != ?").run(
                popup_id
            )

    def create_popup(self, data: PopupInput) -> int:
        with self.store.transaction():
            if data.active:
                self._deactivate_others()

            result = self.store.prepare(
                """
                INSERT INTO popup (image, event_name, description, layout,
                                   button_text, button_link, active)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """
            ).run(
                data.image,
                data.event_name,
                data.description,
                data.layout,
                data.button_text,
                data.button_link,
                int(data.active),
            )

        return result.inserted_id

    def update_popup(self, popup_id: int, data: PopupInput) -> str | None:
        """Overwrite a popup. An empty image keeps the stored one.

        Returns:
            The replaced image path, for the caller to remove, or None

        Raises:
            RecordNotFoundError: If the popup does not exist
        """
        with self.store.transaction():
            existing = self._require(popup_id)
            if data.active:
                self._deactivate_others(popup_id)

            self.store.prepare(
                """
                UPDATE popup SET image = ?, event_name = ?, description = ?, layout = ?,
                    button_text = ?, button_link = ?, active = ?
                WHERE id = ?
                """
            ).run(
                data.image or existing["image"],
                data.event_name,
                data.description,
                data.layout,
                data.button_text,
                data.button_link,
                int(data.active),
                popup_id,
            )

        replaced = existing["image"]
        if data.image and replaced and replaced != data.image:
            return replaced
        return None

    def delete_popup(self, popup_id: int) -> str:
        """Delete a popup.

        Returns:
            Its image path ("" if it had none)

        Raises:
            RecordNotFoundError: If the popup does not exist
        """
        with self.store.transaction():
            popup = self._require(popup_id)
            self.store.prepare("DELETE FROM popup WHERE id = ?").run(popup_id)
        return popup["image"] or ""

    def activate(self, popup_id: int) -> None:
        """Make this popup the only active one.

        Raises:
            RecordNotFoundError: If the popup does not exist
        """
        with self.store.transaction():
            self._require(popup_id)
            self._deactivate_others(popup_id)
            self.store.prepare("UPDATE popup SET active = 1 WHERE id = ?").run(popup_id)

        logger.info("Activated popup", extra={"popup_id": popup_id})

    def toggle(self, popup_id: int) -> bool:
        """Flip a popup's active flag.

        Returns:
            The new active flag

        Raises:
            RecordNotFoundError: If the popup does not exist
        """
        with self.store.transaction():
            popup = self._require(popup_id)
            if popup["active"]:
                self.store.prepare("UPDATE popup SET active = 0 WHERE id = ?").run(popup_id)
                return False
            self.activate(popup_id)
            return True
