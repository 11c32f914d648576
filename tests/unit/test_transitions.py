"""
Unit tests for the event status state machine.

Tests cover:
- Each transition rule
- Rule precedence
- Upcoming exemption from date-based expiry
- Stability of the result
- Stored date parsing
"""

from datetime import date, timedelta

import pytest

from cms.content_store.lifecycle.transitions import EventStatus, next_status, parse_event_date

TODAY = date(2026, 3, 15)
YESTERDAY = TODAY - timedelta(days=1)
TOMORROW = TODAY + timedelta(days=1)
LAST_WEEK = TODAY - timedelta(days=7)
NEXT_WEEK = TODAY + timedelta(days=7)


class TestNextStatus:
    """Tests for next_status()."""

    def test_ended_event_becomes_recent(self):
        """Rule 1: an end date in the past makes the event recent."""
        assert next_status(EventStatus.ONGOING, LAST_WEEK, YESTERDAY, TODAY) == EventStatus.RECENT

    def test_end_date_expiry_overrides_upcoming_exemption(self):
        """Rule 1 applies even to upcoming events."""
        assert next_status(EventStatus.UPCOMING, LAST_WEEK, YESTERDAY, TODAY) == EventStatus.RECENT

    def test_recent_event_with_past_end_date_unchanged(self):
        assert next_status(EventStatus.RECENT, LAST_WEEK, YESTERDAY, TODAY) == EventStatus.RECENT

    def test_past_ongoing_event_expires(self):
        """Rule 2: an ongoing event whose start passed and has no end becomes recent."""
        assert next_status(EventStatus.ONGOING, YESTERDAY, None, TODAY) == EventStatus.RECENT

    def test_past_upcoming_event_left_alone(self):
        """Rule 2 never expires an upcoming event."""
        assert next_status(EventStatus.UPCOMING, YESTERDAY, None, TODAY) == EventStatus.UPCOMING

    def test_multi_day_ongoing_event_stays_ongoing(self):
        """An ongoing event whose end date is still ahead is not expired."""
        assert next_status(EventStatus.ONGOING, YESTERDAY, TOMORROW, TODAY) == EventStatus.ONGOING

    def test_day_of_promotion(self):
        """Rule 3: an upcoming event starting today becomes ongoing."""
        assert next_status(EventStatus.UPCOMING, TODAY, None, TODAY) == EventStatus.ONGOING

    def test_day_of_promotion_with_end_today(self):
        assert next_status(EventStatus.UPCOMING, TODAY, TODAY, TODAY) == EventStatus.ONGOING

    def test_day_of_does_not_touch_recent(self):
        """Rule 3 only promotes upcoming events."""
        assert next_status(EventStatus.RECENT, TODAY, None, TODAY) == EventStatus.RECENT

    @pytest.mark.parametrize("current", [EventStatus.ONGOING, EventStatus.RECENT])
    def test_future_event_restored_to_upcoming(self, current):
        """Rule 4: a future event that was advanced returns to upcoming."""
        assert next_status(current, NEXT_WEEK, None, TODAY) == EventStatus.UPCOMING

    def test_future_event_with_end_today_not_restored(self):
        """Rule 4 requires the end date to be after today as well."""
        assert next_status(EventStatus.ONGOING, TOMORROW, TODAY, TODAY) == EventStatus.ONGOING

    def test_future_upcoming_unchanged(self):
        assert next_status(EventStatus.UPCOMING, NEXT_WEEK, None, TODAY) == EventStatus.UPCOMING

    @pytest.mark.parametrize(
        "current,start,end",
        [
            (EventStatus.UPCOMING, LAST_WEEK, YESTERDAY),
            (EventStatus.ONGOING, YESTERDAY, None),
            (EventStatus.UPCOMING, TODAY, None),
            (EventStatus.RECENT, NEXT_WEEK, None),
            (EventStatus.UPCOMING, YESTERDAY, None),
        ],
    )
    def test_result_is_stable(self, current, start, end):
        """Applying the function to its own output changes nothing."""
        once = next_status(current, start, end, TODAY)
        assert next_status(once, start, end, TODAY) == once


class TestParseEventDate:
    """Tests for parse_event_date()."""

    def test_iso_date(self):
        assert parse_event_date("2026-03-15") == date(2026, 3, 15)

    def test_datetime_string_truncated_to_day(self):
        assert parse_event_date("2026-03-15T18:30") == date(2026, 3, 15)

    def test_empty_values(self):
        assert parse_event_date(None) is None
        assert parse_event_date("") is None

    def test_date_passthrough(self):
        assert parse_event_date(TODAY) is TODAY

    def test_invalid_date_raises(self):
        with pytest.raises(ValueError):
            parse_event_date("next friday")
