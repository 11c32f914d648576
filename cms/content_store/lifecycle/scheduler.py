"""
Event lifecycle scheduler.

The LifecycleScheduler re-derives event status from calendar dates:
- on demand, before any read of the event collection
- periodically, so status stays correct without read traffic

Each refresh reads all events, applies next_status() and writes the
changed rows in one store transaction, so a refresh costs at most one
snapshot flush and a refresh with nothing to change costs none.

Invariants:
    - Refreshes are idempotent for a fixed day and fixed data
    - Refreshes never overlap; they hold the store lock for their duration
    - The next periodic tick is scheduled only after the previous one finishes

How to change safely:
    - Put new status rules in transitions.py, not here
    - Keep the clock injectable so tests can pin "today"
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import date
from typing import Any

from ..store import SnapshotStore
from .transitions import EventStatus, next_status, parse_event_date, utc_today

logger = logging.getLogger(__name__)


class LifecycleScheduler:
    """Keeps event status in line with the calendar.

    Attributes:
        store: Store holding the events table
        interval_seconds: Seconds between periodic refreshes
        clock: Callable returning today's date (UTC by default)

    Example:
        >>> scheduler = LifecycleScheduler(store, interval_seconds=300)
        >>> scheduler.refresh_event_lifecycle()  # on demand
        0
        >>> await scheduler.start()  # periodic, runs until stopped
    """

    def __init__(
        self,
        store: SnapshotStore,
        interval_seconds: int = 300,
        clock: Callable[[], date] | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            store: Initialized SnapshotStore with the schema applied
            interval_seconds: Interval between periodic refreshes
            clock: Optional replacement for utc_today()
        """
        self.store = store
        self.interval_seconds = interval_seconds
        self.clock = clock or utc_today

        self._running = False
        self._refresh_count = 0
        self._transition_count = 0

    def refresh_event_lifecycle(self) -> int:
        """Bring every event's status up to date.

        Returns:
            Number of events whose status changed

        Raises:
            SnapshotWriteError: If the changes could not be flushed
        """
        today = self.clock()
        changed = 0

        with self.store.transaction():
            rows = self.store.prepare(
                "SELECT id, date, end_date, status FROM events"
            ).get_all()
            update = self.store.prepare("UPDATE events SET status = ? WHERE id = ?")

            for row in rows:
                new_status = self._evaluate(row, today)
                if new_status is None:
                    continue
                update.run(new_status.value, row["id"])
                changed += 1
                logger.info(
                    "Event status changed",
                    extra={
                        "event_id": row["id"],
                        "from_status": row["status"],
                        "to_status": new_status.value,
                    },
                )

        self._refresh_count += 1
        self._transition_count += changed
        return changed

    def _evaluate(self, row: dict[str, Any], today: date) -> EventStatus | None:
        """Return the new status for a row, or None if it stays."""
        try:
            current = EventStatus(row["status"])
            start_date = parse_event_date(row["date"])
            end_date = parse_event_date(row["end_date"])
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping event {row['id']} with invalid lifecycle data: {e}")
            return None

        if start_date is None:
            logger.warning(f"Skipping event {row['id']} without a start date")
            return None

        new_status = next_status(current, start_date, end_date, today)
        return new_status if new_status != current else None

    async def start(self) -> None:
        """Run the periodic refresh loop until stopped."""
        if self._running:
            logger.warning("Lifecycle scheduler already running")
            return

        self._running = True
        logger.info(
            "Starting lifecycle scheduler",
            extra={"interval_seconds": self.interval_seconds},
        )

        loop = asyncio.get_running_loop()
        try:
            while self._running:
                try:
                    await loop.run_in_executor(None, self.refresh_event_lifecycle)
                except Exception as e:
                    logger.error(f"Lifecycle refresh failed: {e}", exc_info=True)
                await asyncio.sleep(self.interval_seconds)

        except asyncio.CancelledError:
            logger.info("Lifecycle scheduler cancelled")
        finally:
            self._running = False

    async def stop(self) -> None:
        """Stop the refresh loop after the current tick."""
        self._running = False
        logger.info("Stopping lifecycle scheduler")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stats(self) -> dict[str, Any]:
        """Get scheduler statistics."""
        return {
            "running": self._running,
            "refresh_count": self._refresh_count,
            "transition_count": self._transition_count,
        }
