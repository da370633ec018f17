"""
Pytest configuration and fixtures for load generator tests.
Provides shared fixtures for SQLite stores, aggregators and run configs.
"""

import logging
import os
from pathlib import Path

import pytest

from sqlload.config import LoadConfig
from sqlload.engine import LatencyAggregator
from sqlload.store import open_store
from sqlload.utils.logging import ConsoleFormatter, JSONFormatter


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def postgres_url() -> str:
    """PostgreSQL URL for integration tests; skips when not configured."""
    url = os.getenv("SQLLOAD_TEST_POSTGRES_URL")
    if not url:
        pytest.skip("SQLLOAD_TEST_POSTGRES_URL not set")
    return url


@pytest.fixture(autouse=True)
def clear_load_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment from leaking into config resolution."""
    for key in (
        "SQLLOAD_DATABASE_URL",
        "SQLLOAD_RATE",
        "SQLLOAD_DURATION",
        "SQLLOAD_MAX_CONNECTIONS",
        "SQLLOAD_MAX_IDLE",
        "SQLLOAD_CONN_LIFETIME",
        "LOG_LEVEL",
        "LOG_FILE",
        "LOG_JSON",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Drop handlers installed by setup_logging during a test."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, (JSONFormatter, ConsoleFormatter)):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """URL of a fresh SQLite database file."""
    return f"sqlite:///{tmp_path / 'load.db'}"


@pytest.fixture
def sqlite_store(sqlite_url: str):
    """Migrated SQLite store with a small pool; closed after the test."""
    store = open_store(
        sqlite_url,
        max_open_connections=4,
        max_idle_connections=4,
        acquire_timeout=10.0,
    )
    store.migrate()
    yield store
    store.close()


@pytest.fixture
def aggregator() -> LatencyAggregator:
    return LatencyAggregator()


@pytest.fixture
def make_config(sqlite_url: str):
    """Factory for LoadConfig pointing at the test SQLite database."""

    def _make(**overrides) -> LoadConfig:
        values = {
            "rate": 10,
            "duration": 1,
            "database_url": sqlite_url,
            "max_open_connections": 4,
            "max_idle_connections": 4,
            "acquire_timeout": 10.0,
            "drain_timeout": 5.0,
        }
        values.update(overrides)
        return LoadConfig(**values)

    return _make
