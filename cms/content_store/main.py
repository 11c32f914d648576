"""
Content store - main entry point.

This module runs the content store with all components:
- Snapshot store (loaded from SNAPSHOT_PATH, schema applied, defaults seeded)
- Lifecycle scheduler loop (event status refresh every interval)
- Content repositories, handed to the web collaborators by reference

Usage:
    python -m cms.content_store.main

Configuration is entirely via environment variables.
See config.py for all available settings.

Invariants:
    - A corrupt snapshot aborts startup, it is never replaced
    - Repositories and the scheduler share one store instance
    - Shutdown stops the scheduler before closing the store

How to change safely:
    - Add new components with enable/disable flags
    - Test shutdown sequence thoroughly
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

import json_log_formatter

from . import database
from .config import ServerConfig
from .content import CredentialRepository, EventRepository, PopupRepository, TickerRepository
from .errors import ContentStoreError
from .lifecycle import LifecycleScheduler
from .store import SnapshotStore

logger = logging.getLogger(__name__)


def setup_logging(config: ServerConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Server configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]


class ContentBackend:
    """Content store orchestrator.

    Manages the lifecycle of all components:
    - Snapshot store
    - Lifecycle scheduler loop
    - Content repositories

    Attributes:
        config: Server configuration
        store: Snapshot store
        lifecycle: Event lifecycle scheduler
        credentials: Admin credential repository
        ticker: News ticker repository
        events: Event repository
        popups: Popup repository

    Example:
        >>> backend = ContentBackend()
        >>> backend.open()
        >>> backend.events.list_events()
        >>> await backend.start()  # runs the scheduler until shutdown
    """

    def __init__(self, config: ServerConfig | None = None) -> None:
        """Initialize the backend.

        Args:
            config: Optional server configuration (loaded from env if not provided)
        """
        self.config = config or ServerConfig.from_env()
        self._running = False
        self._shutdown_event = asyncio.Event()

        # Components (initialized in open())
        self.store: SnapshotStore | None = None
        self.lifecycle: LifecycleScheduler | None = None
        self.credentials: CredentialRepository | None = None
        self.ticker: TickerRepository | None = None
        self.events: EventRepository | None = None
        self.popups: PopupRepository | None = None

        self._tasks: list[asyncio.Task] = []

    def open(self) -> None:
        """Open the store and build the components on top of it.

        Raises:
            SnapshotCorruptError: If the snapshot cannot be loaded
        """
        if self.store is not None:
            return

        self.store = database.initialize(self.config)
        self.lifecycle = LifecycleScheduler(
            self.store,
            interval_seconds=self.config.lifecycle.interval_seconds,
        )
        self.credentials = CredentialRepository(self.store)
        self.ticker = TickerRepository(self.store)
        self.events = EventRepository(self.store, self.lifecycle)
        self.popups = PopupRepository(self.store)

    async def start(self) -> None:
        """Start background components and wait for shutdown."""
        if self._running:
            logger.warning("Content backend already running")
            return

        logger.info("Starting content backend")
        self.config.log_config()

        try:
            self.open()

            if self.config.lifecycle.enabled:
                self._tasks.append(asyncio.create_task(self.lifecycle.start()))

            self._running = True
            logger.info("Content backend started successfully")

            await self._shutdown_event.wait()

        except Exception as e:
            logger.error(f"Content backend startup failed: {e}", exc_info=True)
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the backend gracefully."""
        logger.info("Stopping content backend")

        if self.lifecycle:
            await self.lifecycle.stop()

        for task in self._tasks:
            task.cancel()

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        if self.store is not None:
            database.reset_store()
            self.store = None

        self._running = False
        logger.info("Content backend stopped")

    def request_shutdown(self) -> None:
        """Request graceful shutdown."""
        self._shutdown_event.set()


def main() -> None:
    """Main entry point."""
    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    backend = ContentBackend(config)

    def handle_signal(sig: int) -> None:
        logger.info(f"Received signal {sig}, initiating shutdown")
        backend.request_shutdown()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal, sig)

    exit_code = 0
    try:
        loop.run_until_complete(backend.start())
    except ContentStoreError as e:
        print(f"Startup error: {e.message}", file=sys.stderr)
        exit_code = 1
    except KeyboardInterrupt:
        pass
    finally:
        loop.run_until_complete(backend.stop())
        loop.close()

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
