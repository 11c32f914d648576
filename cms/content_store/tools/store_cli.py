"""
Operator CLI for the content store.

Commands:
- init: Create or open the snapshot, apply schema, seed defaults
- export: Write a copy of the database image to a file
- import: Replace the database with an image file
- refresh-events: Run one lifecycle refresh and report transitions
- events: Print events as JSON, optionally filtered by status

Usage:
    content-store init
    content-store export --output backup.db
    content-store import --input backup.db
    content-store refresh-events
    content-store events --status upcoming

Invariants:
    - Uses the same environment configuration as the service
    - Must not run against a snapshot the service currently owns
    - Errors exit with a non-zero code
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from ..config import ServerConfig
from ..content import EventRepository
from ..database import open_store
from ..errors import ContentStoreError
from ..lifecycle import EventStatus, LifecycleScheduler
from ..schema import ALL_TABLES, apply_schema
from ..store import SnapshotStore

logger = logging.getLogger(__name__)


class StoreCLI:
    """CLI operations over an open store.

    Example:
        >>> cli = StoreCLI(open_store())
        >>> cli.table_counts()
        {'admin': 1, 'news_ticker': 5, 'events': 0, 'event_gallery': 0, 'popup': 0}
    """

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    def table_counts(self) -> dict[str, int]:
        """Row count per table."""
        return {
            table: self.store.prepare(f"SELECT COUNT(*) AS count FROM {table}").get_one()["count"]
            for table in ALL_TABLES
        }

    def export(self, output_path: str) -> int:
        """Write the database image to a file.

        Returns:
            Number of bytes written
        """
        data = self.store.export_snapshot()
        Path(output_path).write_bytes(data)
        return len(data)

    def import_(self, input_path: str) -> dict[str, int]:
        """Replace the database with an image file.

        Missing tables are created after the import.

        Returns:
            Row count per table after the import
        """
        self.store.import_snapshot(Path(input_path).read_bytes())
        apply_schema(self.store)
        return self.table_counts()

    def refresh_events(self) -> int:
        return LifecycleScheduler(self.store).refresh_event_lifecycle()

    def events(self, status: str | None = None) -> list[dict[str, Any]]:
        repository = EventRepository(self.store, LifecycleScheduler(self.store))
        return repository.list_events(EventStatus(status) if status else None)


def main() -> None:
    """CLI entry point for the store tool."""
    parser = argparse.ArgumentParser(description="Content store management tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Open the snapshot, apply schema and seed defaults")

    export_parser = subparsers.add_parser("export", help="Export the database image")
    export_parser.add_argument("--output", "-o", required=True, help="Output file")

    import_parser = subparsers.add_parser("import", help="Replace the database with an image")
    import_parser.add_argument("--input", "-i", required=True, help="Input file")

    subparsers.add_parser("refresh-events", help="Run one event lifecycle refresh")

    events_parser = subparsers.add_parser("events", help="List events as JSON")
    events_parser.add_argument(
        "--status",
        choices=[status.value for status in EventStatus],
        help="Only events in this status",
    )

    args = parser.parse_args()

    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level)

    try:
        store = open_store(config.storage, config.seed)
    except ContentStoreError as e:
        print(f"Cannot open store: {e.message}", file=sys.stderr)
        sys.exit(1)

    cli = StoreCLI(store)
    try:
        if args.command == "init":
            print(json.dumps(cli.table_counts(), indent=2))

        elif args.command == "export":
            size = cli.export(args.output)
            print(f"Exported {size} bytes to {args.output}", file=sys.stderr)

        elif args.command == "import":
            counts = cli.import_(args.input)
            print(f"Imported {args.input}", file=sys.stderr)
            print(json.dumps(counts, indent=2))

        elif args.command == "refresh-events":
            changed = cli.refresh_events()
            print(f"{changed} event(s) changed status")

        elif args.command == "events":
            print(json.dumps(cli.events(args.status), indent=2))

    except (ContentStoreError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        store.close()


if __name__ == "__main__":
    main()
