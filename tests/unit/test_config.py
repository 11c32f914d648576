"""
Unit tests for environment configuration.

Tests cover:
- Defaults
- Environment overrides
- Validation errors
- Secret redaction in the configuration log
"""

import logging

import pytest

from cms.content_store.config import (
    LifecycleConfig,
    ObservabilityConfig,
    SeedConfig,
    ServerConfig,
    StorageConfig,
)

CONFIG_ENV_VARS = (
    "SNAPSHOT_PATH",
    "SQLITE_FOREIGN_KEYS",
    "LIFECYCLE_ENABLED",
    "LIFECYCLE_INTERVAL_SECONDS",
    "ADMIN_USERNAME",
    "ADMIN_PASSWORD",
    "SEED_TICKER",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every content store variable from the environment."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestServerConfig:
    """Tests for ServerConfig.from_env()."""

    def test_defaults(self, clean_env):
        config = ServerConfig.from_env()

        assert config.storage.snapshot_path == "data/content.db"
        assert config.storage.foreign_keys is True
        assert config.lifecycle.enabled is True
        assert config.lifecycle.interval_seconds == 300
        assert config.seed.admin_username == "admin"
        assert config.seed.seed_ticker is True
        assert config.observability.log_format == "json"

    def test_environment_overrides(self, clean_env, tmp_path):
        clean_env.setenv("SNAPSHOT_PATH", str(tmp_path / "site.db"))
        clean_env.setenv("SQLITE_FOREIGN_KEYS", "false")
        clean_env.setenv("LIFECYCLE_ENABLED", "0")
        clean_env.setenv("LIFECYCLE_INTERVAL_SECONDS", "60")
        clean_env.setenv("ADMIN_USERNAME", "root")
        clean_env.setenv("SEED_TICKER", "no")
        clean_env.setenv("LOG_FORMAT", "TEXT")

        config = ServerConfig.from_env()

        assert config.storage == StorageConfig(str(tmp_path / "site.db"), foreign_keys=False)
        assert config.lifecycle == LifecycleConfig(enabled=False, interval_seconds=60)
        assert config.seed.admin_username == "root"
        assert config.seed.seed_ticker is False
        assert config.observability.log_format == "text"

    def test_non_positive_interval_rejected(self, clean_env):
        clean_env.setenv("LIFECYCLE_INTERVAL_SECONDS", "0")

        with pytest.raises(ValueError, match="LIFECYCLE_INTERVAL_SECONDS"):
            ServerConfig.from_env()

    def test_non_numeric_interval_rejected(self, clean_env):
        clean_env.setenv("LIFECYCLE_INTERVAL_SECONDS", "often")

        with pytest.raises(ValueError):
            ServerConfig.from_env()

    def test_unknown_log_format_rejected(self, clean_env):
        clean_env.setenv("LOG_FORMAT", "xml")

        with pytest.raises(ValueError, match="LOG_FORMAT"):
            ServerConfig.from_env()

    def test_empty_snapshot_path_rejected(self):
        config = ServerConfig(storage=StorageConfig(snapshot_path=""))

        with pytest.raises(ValueError, match="SNAPSHOT_PATH"):
            config.validate()

    def test_empty_admin_username_rejected(self):
        config = ServerConfig(seed=SeedConfig(admin_username=""))

        with pytest.raises(ValueError, match="ADMIN_USERNAME"):
            config.validate()

    def test_missing_snapshot_directory_warns(self, tmp_path, caplog):
        config = ServerConfig(storage=StorageConfig(str(tmp_path / "missing" / "content.db")))

        with caplog.at_level(logging.WARNING):
            config.validate()

        assert "will be created" in caplog.text

    def test_log_config_redacts_password(self, caplog):
        config = ServerConfig(
            seed=SeedConfig(admin_password="s3cret-value"),
            observability=ObservabilityConfig(log_level="DEBUG"),
        )

        with caplog.at_level(logging.INFO):
            config.log_config()

        assert caplog.records
        for record in caplog.records:
            assert "s3cret-value" not in str(record.__dict__)
