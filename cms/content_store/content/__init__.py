"""
Content module - repositories used by the web collaborators.

This module handles:
- Admin credentials (hash check, password change)
- News ticker items
- Events with gallery images and lifecycle-aware reads
- Popups with single-active enforcement

Files (cover images, gallery images) are managed by the caller; deletions
return the paths to remove.
"""

from .credentials import CredentialRepository
from .events import EventRepository
from .models import EventDeletion, EventInput, PopupInput, TickerItemInput
from .popups import PopupRepository
from .ticker import TickerRepository

__all__ = [
    "CredentialRepository",
    "EventDeletion",
    "EventInput",
    "EventRepository",
    "PopupInput",
    "PopupRepository",
    "TickerItemInput",
    "TickerRepository",
]
