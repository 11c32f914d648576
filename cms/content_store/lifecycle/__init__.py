"""
Lifecycle module for the content store.

This module handles time-driven event status:
- next_status(): pure transition function (upcoming / ongoing / recent)
- LifecycleScheduler: on-demand and periodic refresh against the store

Invariants:
    - "Today" is the UTC calendar date unless a clock is injected
    - Upcoming events are never auto-expired by start date alone
"""

from .scheduler import LifecycleScheduler
from .transitions import EventStatus, next_status, parse_event_date, utc_today

__all__ = [
    "EventStatus",
    "LifecycleScheduler",
    "next_status",
    "parse_event_date",
    "utc_today",
]
