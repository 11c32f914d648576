"""
Content Store - embedded durable store for a small content-management backend.

This package implements the persistence core of the site backend:
- An in-memory SQLite database persisted as a single snapshot file
- Prepared statement handles (run / get_one / get_all)
- Schema and first-run seed data (admin, news ticker, events, gallery, popup)
- A time-driven lifecycle state machine for event status
- Content repositories used by the web layer

Architecture:
    ┌──────────────┐     ┌──────────────┐     ┌─────────────────┐
    │  Web layer   │────▶│ Repositories │────▶│ StatementHandle │
    │ (external)   │     └──────┬───────┘     └────────┬────────┘
    └──────────────┘            │                      │
                                ▼                      ▼
                       ┌─────────────────┐    ┌─────────────────┐
                       │ Lifecycle       │───▶│ SnapshotStore   │
                       │ Scheduler       │    │ (SQLite memory) │
                       └─────────────────┘    └────────┬────────┘
                                                       │ flush after
                                                       ▼ every change
                                              ┌─────────────────┐
                                              │ snapshot file   │
                                              └─────────────────┘

Invariants:
    - Every change is on disk before the mutating call returns
    - One process owns the snapshot file
    - Event status is derived from dates, refreshed before every event read

How to change safely:
    - Schema statements must stay CREATE ... IF NOT EXISTS
    - Keep status rules in lifecycle/transitions.py
"""

from ._version import __version__

__all__ = ["__version__"]
