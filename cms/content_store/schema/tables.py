"""
Table schema for the content store.

Table schema:
    admin:
        - id INTEGER PRIMARY KEY
        - username TEXT UNIQUE
        - password TEXT (werkzeug password hash)
        - created_at DATETIME

    news_ticker:
        - id, text, link, active (0/1), sort_order, created_at

    events:
        - id, name, date (start, YYYY-MM-DD), end_date (nullable)
        - venue, description, cover_image
        - registration_open (0/1), is_paid (0/1), price, registration_link
        - status (upcoming | ongoing | recent), created_at

    event_gallery:
        - id, event_id -> events(id) ON DELETE CASCADE, image_path, created_at

    popup:
        - id, image, event_name, description, layout, button_text, button_link
        - active (0/1, at most one row active), created_at

How to change safely:
    - Statements must stay CREATE ... IF NOT EXISTS, they run on every start
    - New columns need defaults so older snapshots keep loading
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..store import SnapshotStore

logger = logging.getLogger(__name__)

CREDENTIAL_TABLE = "admin"
TICKER_TABLE = "news_ticker"
EVENT_TABLE = "events"
GALLERY_TABLE = "event_gallery"
POPUP_TABLE = "popup"

ALL_TABLES = (CREDENTIAL_TABLE, TICKER_TABLE, EVENT_TABLE, GALLERY_TABLE, POPUP_TABLE)

SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS admin (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT UNIQUE NOT NULL,
        password TEXT NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS news_ticker (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        text TEXT NOT NULL,
        link TEXT DEFAULT '',
        active INTEGER DEFAULT 1,
        sort_order INTEGER DEFAULT 0,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        date TEXT NOT NULL,
        end_date TEXT,
        venue TEXT DEFAULT '',
        description TEXT DEFAULT '',
        cover_image TEXT DEFAULT '',
        registration_open INTEGER DEFAULT 0,
        is_paid INTEGER DEFAULT 0,
        price REAL DEFAULT 0,
        registration_link TEXT DEFAULT '',
        status TEXT DEFAULT 'upcoming'
            CHECK (status IN ('upcoming', 'ongoing', 'recent')),
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS event_gallery (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        event_id INTEGER NOT NULL,
        image_path TEXT NOT NULL,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (event_id) REFERENCES events(id) ON DELETE CASCADE
    );

    CREATE TABLE IF NOT EXISTS popup (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        image TEXT DEFAULT '',
        event_name TEXT NOT NULL,
        description TEXT DEFAULT '',
        layout TEXT DEFAULT 'center',
        button_text TEXT DEFAULT 'Learn More',
        button_link TEXT DEFAULT '',
        active INTEGER DEFAULT 0,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );
"""


def apply_schema(store: SnapshotStore) -> None:
    """Create all tables that do not exist yet.

    Safe to run on every start against an existing snapshot.
    """
    store.exec(SCHEMA_SQL)
    store.schema_applied = True
    logger.info("Schema applied", extra={"tables": list(ALL_TABLES)})
