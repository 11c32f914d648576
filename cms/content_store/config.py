"""
Configuration management for the content store.

All configuration is done via environment variables.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development
    - Production deployments MUST set ADMIN_PASSWORD explicitly
    - The admin password is never logged

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Keep SNAPSHOT_PATH stable, a new path means a new empty database
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

LOG_FORMATS = ("json", "text")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class StorageConfig:
    """Snapshot storage configuration.

    Attributes:
        snapshot_path: File holding the full database image
        foreign_keys: Request foreign key enforcement from SQLite
    """

    snapshot_path: str = "data/content.db"
    foreign_keys: bool = True

    @classmethod
    def from_env(cls) -> StorageConfig:
        """Load configuration from environment variables."""
        return cls(
            snapshot_path=os.getenv("SNAPSHOT_PATH", "data/content.db"),
            foreign_keys=_env_bool("SQLITE_FOREIGN_KEYS", "true"),
        )


@dataclass(frozen=True)
class LifecycleConfig:
    """Event lifecycle scheduler configuration.

    Attributes:
        enabled: Whether the periodic refresh loop runs
        interval_seconds: Seconds between periodic refreshes
    """

    enabled: bool = True
    interval_seconds: int = 300  # 5 minutes

    @classmethod
    def from_env(cls) -> LifecycleConfig:
        """Load configuration from environment variables."""
        return cls(
            enabled=_env_bool("LIFECYCLE_ENABLED", "true"),
            interval_seconds=int(os.getenv("LIFECYCLE_INTERVAL_SECONDS", "300")),
        )


@dataclass(frozen=True)
class SeedConfig:
    """First-run seed data.

    Attributes:
        admin_username: Username of the seeded credential
        admin_password: Plain password hashed into the seeded credential
        seed_ticker: Whether to insert the default ticker items
    """

    admin_username: str = "admin"
    admin_password: str = "Admin@123"
    seed_ticker: bool = True

    @classmethod
    def from_env(cls) -> SeedConfig:
        """Load configuration from environment variables."""
        return cls(
            admin_username=os.getenv("ADMIN_USERNAME", "admin"),
            admin_password=os.getenv("ADMIN_PASSWORD", "Admin@123"),
            seed_ticker=_env_bool("SEED_TICKER", "true"),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json").lower(),
        )


@dataclass
class ServerConfig:
    """Complete content store configuration.

    Attributes:
        storage: Snapshot storage configuration
        lifecycle: Lifecycle scheduler configuration
        seed: First-run seed data
        observability: Logging configuration
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)
    seed: SeedConfig = field(default_factory=SeedConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Load complete configuration from environment variables.

        Returns:
            ServerConfig with all sections populated from environment.

        Raises:
            ValueError: If configuration is missing or invalid.
        """
        config = cls(
            storage=StorageConfig.from_env(),
            lifecycle=LifecycleConfig.from_env(),
            seed=SeedConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )

        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not self.storage.snapshot_path:
            raise ValueError("SNAPSHOT_PATH must not be empty")

        if self.lifecycle.interval_seconds <= 0:
            raise ValueError(
                f"LIFECYCLE_INTERVAL_SECONDS must be positive, got {self.lifecycle.interval_seconds}"
            )

        if not self.seed.admin_username:
            raise ValueError("ADMIN_USERNAME must not be empty")

        if self.observability.log_format not in LOG_FORMATS:
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

        snapshot_dir = Path(self.storage.snapshot_path).parent
        if not snapshot_dir.exists():
            logger.warning(
                f"Snapshot directory does not exist: {snapshot_dir}. "
                "It will be created on initialization."
            )

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Content store configuration loaded",
            extra={
                "snapshot_path": self.storage.snapshot_path,
                "foreign_keys": self.storage.foreign_keys,
                "lifecycle_enabled": self.lifecycle.enabled,
                "lifecycle_interval_seconds": self.lifecycle.interval_seconds,
                "admin_username": self.seed.admin_username,
                "seed_ticker": self.seed.seed_ticker,
                "log_level": self.observability.log_level,
            },
        )
