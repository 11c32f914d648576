"""
Schema module for the content store.

This module provides:
- SCHEMA_SQL and apply_schema(): idempotent DDL for the five tables
- seed_defaults(): first-run admin credential and news ticker items
"""

from .seed import DEFAULT_TICKER_ITEMS, seed_defaults
from .tables import (
    ALL_TABLES,
    CREDENTIAL_TABLE,
    EVENT_TABLE,
    GALLERY_TABLE,
    POPUP_TABLE,
    SCHEMA_SQL,
    TICKER_TABLE,
    apply_schema,
)

__all__ = [
    "ALL_TABLES",
    "CREDENTIAL_TABLE",
    "DEFAULT_TICKER_ITEMS",
    "EVENT_TABLE",
    "GALLERY_TABLE",
    "POPUP_TABLE",
    "SCHEMA_SQL",
    "TICKER_TABLE",
    "apply_schema",
    "seed_defaults",
]
