"""
tagcache - Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import logging
import os
import socket
from collections.abc import Generator

import pytest

from tagcache.cache.backends.memory import MemoryCacheBackend
from tagcache.config import reset_config

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"


def is_redis_available() -> bool:
    """Check if a Redis server is available for testing."""
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex(("localhost", 6379))
        sock.close()
        return result == 0
    except OSError:
        return False


# Skip marker for Redis tests
redis_available = pytest.mark.skipif(not is_redis_available(), reason="Redis server not available")


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_backend(fake_clock: FakeClock) -> MemoryCacheBackend:
    """Memory backend driven by the fake clock."""
    return MemoryCacheBackend(default_ttl=3600, namespace="test", clock=fake_clock)


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation)."""
    return os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for memory cache backend."""
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "3600")
    monkeypatch.setenv("CACHE_NAMESPACE", "test")


@pytest.fixture
def mock_env_redis(monkeypatch: pytest.MonkeyPatch, test_redis_url: str) -> None:
    """Set environment variables for Redis cache backend."""
    if not is_redis_available():
        pytest.skip("Redis not available")
    monkeypatch.setenv("CACHE_BACKEND", "redis")
    monkeypatch.setenv("REDIS_URL", test_redis_url)
    monkeypatch.setenv("REDIS_MAX_CONNECTIONS", "5")
    monkeypatch.setenv("REDIS_SOCKET_TIMEOUT", "2")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "3600")
    monkeypatch.setenv("CACHE_NAMESPACE", "test")


@pytest.fixture(autouse=True)
def reset_loaded_config() -> Generator[None, None, None]:
    """Drop the cached configuration after each test to prevent state leakage."""
    yield
    reset_config()


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None, None, None]:
    """Undo logger level and handler changes made by configure_logging()."""
    package_logger = logging.getLogger("tagcache")
    root_logger = logging.getLogger()
    package_level = package_logger.level
    root_level = root_logger.level
    root_handlers = list(root_logger.handlers)
    yield
    package_logger.setLevel(package_level)
    root_logger.setLevel(root_level)
    for handler in root_logger.handlers[:]:
        if handler not in root_handlers:
            root_logger.removeHandler(handler)
