"""
Events and their gallery images.

Every read of the event collection runs a lifecycle refresh first, in the
same locked section, so callers never see a stale status.

Invariants:
    - Gallery rows are deleted together with their event
    - A manual status change is accepted only while the event is upcoming
    - Image files are never touched here; deletions return their paths
"""

from __future__ import annotations

import logging
from typing import Any

from ..errors import RecordNotFoundError, StatusOverrideError
from ..lifecycle import EventStatus, LifecycleScheduler
from ..store import SnapshotStore
from .models import EventDeletion, EventInput

logger = logging.getLogger(__name__)


class EventRepository:
    """Event CRUD with lifecycle-aware reads.

    Example:
        >>> events = EventRepository(store, scheduler)
        >>> event_id = events.create_event(EventInput(name="Job Fair", date="2026-03-15"))
        >>> events.list_events(EventStatus.UPCOMING)
    """

    def __init__(self, store: SnapshotStore, lifecycle: LifecycleScheduler) -> None:
        self.store = store
        self.lifecycle = lifecycle

    def _attach_gallery(self, events: list[dict[str, Any]]) -> list[dict[str, Any]]:
        gallery = self.store.prepare(
            "SELECT id, image_path FROM event_gallery WHERE event_id = ? ORDER BY id ASC"
        )
        for event in events:
            event["gallery"] = gallery.get_all(event["id"])
        return events

    def list_events(self, status: EventStatus | None = None) -> list[dict[str, Any]]:
        """List events with their gallery images.

        Args:
            status: Only events in this status. Upcoming and ongoing events
                are ordered soonest first, everything else newest first.
        """
        with self.store.exclusive():
            self.lifecycle.refresh_event_lifecycle()

            if status is None:
                events = self.store.prepare("SELECT * FROM events ORDER BY date DESC").get_all()
            else:
                order = "DESC" if status == EventStatus.RECENT else "ASC"
                events = self.store.prepare(
                    f"SELECT * FROM events WHERE status = ? ORDER BY date {order}"
                ).get_all(EventStatus(status).value)

            return self._attach_gallery(events)

    def get_event(self, event_id: int) -> dict[str, Any]:
        """Get one event with its gallery.

        Raises:
            RecordNotFoundError: If the event does not exist
        """
        with self.store.exclusive():
            self.lifecycle.refresh_event_lifecycle()
            event = self.store.prepare("SELECT * FROM events WHERE id = ?").get_one(event_id)
            if event is None:
                raise RecordNotFoundError("events", event_id)
            return self._attach_gallery([event])[0]

    def create_event(self, data: EventInput) -> int:
        result = self.store.prepare(
            """
            INSERT INTO events (name, date, end_date, venue, description, cover_image,
                                registration_open, is_paid, price, registration_link, status)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """
        ).run(
            data.name,
            data.date.isoformat(),
            data.end_date.isoformat() if data.end_date else None,
            data.venue,
            data.description,
            data.cover_image,
            int(data.registration_open),
            int(data.is_paid),
            data.price,
            data.registration_link,
            (data.status or EventStatus.UPCOMING).value,
        )
        logger.info("Created event", extra={"event_id": result.inserted_id, "event_name": data.name})
        return result.inserted_id

    def update_event(self, event_id: int, data: EventInput) -> str | None:
        """Overwrite an event.

        An empty cover_image keeps the stored one.

        Returns:
            The replaced cover image path, for the caller to remove, or None

        Raises:
            RecordNotFoundError: If the event does not exist
            StatusOverrideError: If the status is changed on a non-upcoming event
        """
        with self.store.transaction():
            existing = self.store.prepare(
                "SELECT status, cover_image FROM events WHERE id = ?"
            ).get_one(event_id)
            if existing is None:
                raise RecordNotFoundError("events", event_id)

            status = existing["status"]
            if data.status is not None and data.status.value != status:
                if status != EventStatus.UPCOMING.value:
                    raise StatusOverrideError(
                        f"Cannot change status of event {event_id} from {status} "
                        f"to {data.status.value}; only upcoming events can be overridden",
                        details={"event_id": event_id, "status": status},
                    )
                status = data.status.value

            cover_image = data.cover_image or existing["cover_image"]

            self.store.prepare(
                """
                UPDATE events SET name = ?, date = ?, end_date = ?, venue = ?, description = ?,
                    cover_image = ?, registration_open = ?, is_paid = ?, price = ?,
                    registration_link = ?, status = ?
                WHERE id = ?
                """
            ).run(
                data.name,
                data.date.isoformat(),
                data.end_date.isoformat() if data.end_date else None,
                data.venue,
                data.description,
                cover_image,
                int(data.registration_open),
                int(data.is_paid),
                data.price,
                data.registration_link,
                status,
                event_id,
            )

        replaced = existing["cover_image"]
        if data.cover_image and replaced and replaced != data.cover_image:
            return replaced
        return None

    def delete_event(self, event_id: int) -> EventDeletion:
        """Delete an event and its gallery rows.

        Returns:
            The image paths the caller should remove from disk

        Raises:
            RecordNotFoundError: If the event does not exist
        """
        with self.store.transaction():
            event = self.store.prepare("SELECT cover_image FROM events WHERE id = ?").get_one(
                event_id
            )
            if event is None:
                raise RecordNotFoundError("events", event_id)

            gallery = self.store.prepare(
                "SELECT image_path FROM event_gallery WHERE event_id = ?"
            ).get_all(event_id)

            self.store.prepare("DELETE FROM event_gallery WHERE event_id = ?").run(event_id)
            self.store.prepare("DELETE FROM events WHERE id = ?").run(event_id)

        logger.info("Deleted event", extra={"event_id": event_id, "gallery_count": len(gallery)})
        return EventDeletion(
            event_id=event_id,
            cover_image=event["cover_image"] or "",
            gallery_paths=[row["image_path"] for row in gallery],
        )

    def add_gallery_images(self, event_id: int, image_paths: list[str]) -> list[dict[str, Any]]:
        """Attach already stored images to an event.

        Raises:
            RecordNotFoundError: If the event does not exist
        """
        images = []
        with self.store.transaction():
            if self.store.prepare("SELECT id FROM events WHERE id = ?").get_one(event_id) is None:
                raise RecordNotFoundError("events", event_id)

            insert = self.store.prepare(
                "INSERT INTO event_gallery (event_id, image_path) VALUES (?, ?)"
            )
            for image_path in image_paths:
                result = insert.run(event_id, image_path)
                images.append({"id": result.inserted_id, "image_path": image_path})

        return images

    def delete_gallery_image(self, image_id: int) -> str | None:
        """Delete one gallery row.

        Returns:
            The image path to remove, or None if the row did not exist
        """
        with self.store.transaction():
            image = self.store.prepare(
                "SELECT image_path FROM event_gallery WHERE id = ?"
            ).get_one(image_id)
            if image is None:
                return None
            self.store.prepare("DELETE FROM event_gallery WHERE id = ?").run(image_id)

        return image["image_path"]
