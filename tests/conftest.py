"""
cachebridge - Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import logging
import os
import time
from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock

import pytest

from cachebridge.facade import CacheFacade
from cachebridge.storage.interface import Storage
from cachebridge.storage.memory import MemoryStorage

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"


class FakeClock:
    """Controllable replacement for time.time()."""

    def __init__(self, start: float) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Freeze the clock used by MemoryStorage; advance it explicitly."""
    fake = FakeClock(time.time())
    monkeypatch.setattr("cachebridge.storage.memory.time.time", fake)
    return fake


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation)."""
    return os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest.fixture
def storage() -> MemoryStorage:
    """Fresh memory storage."""
    return MemoryStorage(max_size=100)


@pytest.fixture
def cache(storage: MemoryStorage) -> CacheFacade:
    """Facade over a fresh memory storage."""
    return CacheFacade(storage)


@pytest.fixture
def broken_storage() -> MagicMock:
    """Storage whose every operation raises."""
    mock = MagicMock(spec=Storage)
    error = OSError("disk unavailable")
    mock.load.side_effect = error
    mock.save.side_effect = error
    mock.remove.side_effect = error
    mock.bulk_load.side_effect = error
    mock.clean.side_effect = error
    return mock


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for memory backend."""
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("CACHE_MAX_SIZE", "100")
    monkeypatch.setenv("CACHE_NAMESPACE", "TestNamespace")


@pytest.fixture
def sample_cache_data() -> dict[str, Any]:
    """Sample data for cache testing."""
    return {
        "simple_string": "hello",
        "simple_int": 42,
        "simple_float": 3.14,
        "simple_bool": True,
        "complex_dict": {
            "nested": {
                "key": "value",
                "number": 123,
                "list": [1, 2, 3],
            }
        },
        "complex_list": [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ],
    }


@pytest.fixture(autouse=True)
def reset_cache_factory() -> Generator[None, None, None]:
    """Reset cache factory and config singleton after each test to prevent state leakage."""
    package_logger = logging.getLogger("cachebridge")
    level = package_logger.level
    yield
    package_logger.setLevel(level)
    from cachebridge.config import loader
    from cachebridge.factory import reset_cache_factory

    reset_cache_factory()
    loader._config_instance = None
