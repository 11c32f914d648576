"""
Store bootstrap and the process-wide store accessor.

open_store() returns a fully initialized store (snapshot loaded, schema
applied, defaults seeded). Components should receive that store by
reference. initialize()/get_store() keep one published store per process
for collaborators that cannot be handed a reference.

Invariants:
    - The global store is published only after schema and seed complete
    - get_store() never returns a partially initialized store
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .config import SeedConfig, ServerConfig, StorageConfig
from .errors import StoreNotInitializedError
from .schema import apply_schema, seed_defaults
from .store import SnapshotStore

logger = logging.getLogger(__name__)

_global_store: Optional[SnapshotStore] = None
_store_lock = threading.Lock()


def open_store(
    storage: StorageConfig | None = None,
    seed: SeedConfig | None = None,
) -> SnapshotStore:
    """Open the snapshot, apply the schema and seed defaults.

    Args:
        storage: Storage configuration
        seed: Seed configuration

    Returns:
        Initialized SnapshotStore

    Raises:
        SnapshotCorruptError: If the snapshot exists but cannot be loaded
    """
    storage = storage or StorageConfig()
    store = SnapshotStore(storage.snapshot_path, foreign_keys=storage.foreign_keys)
    store.initialize()
    try:
        apply_schema(store)
        seed_defaults(store, seed)
    except Exception:
        store.close()
        raise

    logger.info("Database initialized successfully")
    return store


def initialize(config: ServerConfig | None = None) -> SnapshotStore:
    """Open the store and publish it as the process-wide store.

    Returns the already published store if called again.
    """
    global _global_store
    config = config or ServerConfig()
    with _store_lock:
        if _global_store is None:
            _global_store = open_store(config.storage, config.seed)
        return _global_store


def get_store() -> SnapshotStore:
    """Get the process-wide store.

    Raises:
        StoreNotInitializedError: If initialize() has not completed
    """
    with _store_lock:
        if _global_store is None:
            raise StoreNotInitializedError(
                "Database not initialized. Call initialize() first."
            )
        return _global_store


def reset_store() -> None:
    """Close and forget the process-wide store (for shutdown and tests)."""
    global _global_store
    with _store_lock:
        if _global_store is not None:
            _global_store.close()
            _global_store = None
