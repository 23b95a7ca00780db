from __future__ import annotations

from ..config import Settings, get_settings
from .redis_storage import RedisStorage
from .storage import MemoryStorage, StorageAdapter


class CacheManager[T]:
    """Front for a storage adapter adding a key prefix and a default TTL."""

    def __init__(self, storage: StorageAdapter[T], prefix: str = "", default_ttl: int = 0) -> None:
        self.storage = storage
        self.prefix = prefix
        self.default_ttl = default_ttl

    async def set(self, key: str, value: T, ttl: int | None = None) -> None:
        await self.storage.set(self.prefix + key, value, self.default_ttl if ttl is None else ttl)

    async def get(self, key: str) -> T | None:
        return await self.storage.get(self.prefix + key)

    async def delete(self, key: str) -> None:
        await self.storage.delete(self.prefix + key)

    async def clear(self) -> None:
        await self.storage.clear()


def create_cache_manager[T](
    max_size_bytes: int | None = None,
    settings: Settings | None = None,
) -> CacheManager[T]:
    """Build a cache manager on the backend named by the settings.

    Args:
        max_size_bytes: Budget for the in-memory backend, overriding settings
        settings: Settings to use instead of the environment-derived ones
    """
    settings = settings or get_settings()
    storage: StorageAdapter[T]
    if settings.cache_backend == "redis":
        storage = RedisStorage(prefix=settings.cache_prefix, connection_string=settings.redis_url)
    else:
        storage = MemoryStorage(max_size_bytes or settings.cache_max_bytes)
    return CacheManager(storage, default_ttl=settings.default_ttl_ms)
