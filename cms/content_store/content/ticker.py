"""
News ticker items.
"""

from __future__ import annotations

from typing import Any

from ..errors import RecordNotFoundError
from ..store import SnapshotStore
from .models import TickerItemInput


class TickerRepository:
    """CRUD for news ticker items, displayed by sort_order."""

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    def list_items(self, active_only: bool = False) -> list[dict[str, Any]]:
        if active_only:
            return self.store.prepare(
                "SELECT id, text, link FROM news_ticker WHERE active = 1 ORDER BY sort_order ASC"
            ).get_all()
        return self.store.prepare("SELECT * FROM news_ticker ORDER BY sort_order ASC").get_all()

    def create(self, item: TickerItemInput) -> int:
        result = self.store.prepare(
            "INSERT INTO news_ticker (text, link, active, sort_order) VALUES (?, ?, ?, ?)"
        ).run(item.text, item.link, int(item.active), item.sort_order)
        return result.inserted_id

    def update(self, item_id: int, item: TickerItemInput) -> None:
        """Overwrite an item.

        Raises:
            RecordNotFoundError: If the item does not exist
        """
        result = self.store.prepare(
            "UPDATE news_ticker SET text = ?, link = ?, active = ?, sort_order = ? WHERE id = ?"
        ).run(item.text, item.link, int(item.active), item.sort_order, item_id)
        if result.rows_affected == 0:
            raise RecordNotFoundError("news_ticker", item_id)

    def delete(self, item_id: int) -> bool:
        result = self.store.prepare("DELETE FROM news_ticker WHERE id = ?").run(item_id)
        return result.rows_affected > 0
