"""
First-run seed data.

Seeds one admin credential and the default news ticker items when their
tables are empty. Running it again against a seeded store is a no-op.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from werkzeug.security import generate_password_hash

from ..config import SeedConfig

if TYPE_CHECKING:
    from ..store import SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_TICKER_ITEMS: tuple[tuple[str, str], ...] = (
    (
        "New Industry Partnership: TTPOA collaborates with 50+ Fortune 500 companies "
        "for campus placements",
        "/TTPOA/services/",
    ),
    (
        "Upcoming Workshop: Advanced Interview Preparation scheduled for March 2026",
        "/TTPOA/services/",
    ),
    (
        "Achievement: 95% placement success rate recorded in 2025-26 academic year",
        "/TTPOA/about/",
    ),
    (
        "Job Fair Alert: Mega recruitment drive on March 15, 2026 - Register Now!",
        "/TTPOA/contact/",
    ),
    (
        "Scholarship Announcement: Merit-based scholarships available for eligible students",
        "/TTPOA/services/",
    ),
)


def seed_defaults(store: SnapshotStore, config: SeedConfig | None = None) -> dict[str, int]:
    """Insert default rows into empty tables.

    Args:
        store: Initialized store with the schema applied
        config: Seed configuration (defaults if omitted)

    Returns:
        Number of rows inserted per table
    """
    config = config or SeedConfig()
    inserted = {"admin": 0, "news_ticker": 0}

    with store.transaction():
        admin_count = store.prepare("SELECT COUNT(*) AS count FROM admin").get_one()
        if admin_count["count"] == 0:
            store.prepare("INSERT INTO admin (username, password) VALUES (?, ?)").run(
                config.admin_username,
                generate_password_hash(config.admin_password),
            )
            inserted["admin"] = 1
            logger.info(f"Default admin user created ({config.admin_username})")

        ticker_count = store.prepare("SELECT COUNT(*) AS count FROM news_ticker").get_one()
        if config.seed_ticker and ticker_count["count"] == 0:
            insert = store.prepare(
                "INSERT INTO news_ticker (text, link, sort_order) VALUES (?, ?, ?)"
            )
            for index, (text, link) in enumerate(DEFAULT_TICKER_ITEMS):
                insert.run(text, link, index)
            inserted["news_ticker"] = len(DEFAULT_TICKER_ITEMS)
            logger.info("Default news ticker items created")

    return inserted
