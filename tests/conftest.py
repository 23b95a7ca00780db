"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator, Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from modelkit.base.registry import default_provider
from modelkit.cache import CacheManager, MemoryStorage
from modelkit.config import get_settings


class FakeClock:
    """Manually advanced clock, in seconds like ``time.monotonic``."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, milliseconds: float) -> None:
        self.now += milliseconds / 1000


# Registry Fixtures
@pytest.fixture(autouse=True)
def clean_registries() -> Generator[None, None, None]:
    """Start and end every test with an empty default registry."""
    default_provider.teardown()
    yield
    default_provider.teardown()


# Cache Fixtures
@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_storage(fake_clock: FakeClock) -> MemoryStorage[Any]:
    """Small in-memory store driven by the fake clock."""
    return MemoryStorage(max_size_bytes=1024, clock=fake_clock)


@pytest.fixture
def memory_cache() -> CacheManager[Any]:
    return CacheManager(MemoryStorage())


# Mock Redis Fixtures
@pytest.fixture
def mock_redis_async_client() -> AsyncMock:
    """Mock Redis async client for unit tests."""
    client = AsyncMock()

    client.set.return_value = True
    client.get.return_value = None
    client.delete.return_value = 1

    keys = [b"cache:key1", b"cache:key2"]

    async def scan_iter(*args: Any, **kwargs: Any) -> AsyncIterator[bytes]:
        for key in keys:
            yield key

    client.scan_iter = MagicMock(side_effect=scan_iter)
    return client


# Test Model Fixtures
@pytest.fixture
def sample_user_data() -> dict[str, Any]:
    """Sample user data for testing."""
    return {
        "id": "user-1",
        "name": "John Doe",
        "email": "john@example.com",
        "age": 30,
        "tags": ["developer", "python"],
    }


# Environment Fixtures
@pytest.fixture(autouse=True)
def mock_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run every test against default settings with a known Redis URL."""
    for name in (
        "MODELKIT_CACHE_BACKEND",
        "MODELKIT_CACHE_MAX_BYTES",
        "MODELKIT_CACHE_PREFIX",
        "MODELKIT_REDIS_URL",
        "MODELKIT_DEFAULT_TTL_MS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379")

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# Pytest Markers
def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as unit test (no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "cache: mark test as cache-specific"
    )
    config.addinivalue_line(
        "markers", "redis: mark test as Redis-specific"
    )
    config.addinivalue_line(
        "markers", "async_test: mark test as async test"
    )


# Test Collection Rules
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Modify test collection to add markers based on file paths."""
    for item in items:
        path = str(item.path)

        if "unit" in path:
            item.add_marker(pytest.mark.unit)

        if "cache" in path:
            item.add_marker(pytest.mark.cache)

        if "redis" in path:
            item.add_marker(pytest.mark.redis)

        if "async" in path or item.name.startswith("test_async"):
            item.add_marker(pytest.mark.async_test)
