"""
Event status state machine.

Status is derived from the event's calendar dates relative to "today".
Rules are checked in priority order; the first one that matches wins:

    1. end_date set and before today, status not recent     -> recent
    2. start before today, end unset or before today,
       status ongoing                                        -> recent
    3. start is today, end unset or today or later,
       status upcoming                                       -> ongoing
    4. start after today, end unset or after today,
       status recent or ongoing                              -> upcoming

Invariants:
    - An upcoming event is never expired by rule 2; only rule 1 or an
      admin override moves it to recent
    - Applying next_status to its own result returns the same status
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum


class EventStatus(str, Enum):
    """Lifecycle status of an event."""

    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    RECENT = "recent"


def utc_today() -> date:
    """Current calendar date in UTC, the reference day for all transitions."""
    return datetime.now(timezone.utc).date()


def parse_event_date(value: str | date | None) -> date | None:
    """Parse a stored event date.

    Only the YYYY-MM-DD prefix is used, so "2026-03-15T10:00" is the 15th.

    Raises:
        ValueError: If the value is not an ISO date
    """
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def next_status(
    current: EventStatus,
    start_date: date,
    end_date: date | None,
    today: date,
) -> EventStatus:
    """Return the status an event should have today.

    Args:
        current: Stored status
        start_date: Event start date
        end_date: Event end date, None for single-day or open events
        today: Reference day

    Returns:
        The new status, or current if no rule applies
    """
    if end_date is not None and end_date < today and current != EventStatus.RECENT:
        return EventStatus.RECENT

    if (
        start_date < today
        and (end_date is None or end_date < today)
        and current == EventStatus.ONGOING
    ):
        return EventStatus.RECENT

    if (
        start_date == today
        and (end_date is None or end_date >= today)
        and current == EventStatus.UPCOMING
    ):
        return EventStatus.ONGOING

    if (
        start_date > today
        and (end_date is None or end_date > today)
        and current in (EventStatus.RECENT, EventStatus.ONGOING)
    ):
        return EventStatus.UPCOMING

    return current
