from __future__ import annotations

import json
from typing import Any

import redis.asyncio as aioredis

from .key_patterns import CacheKeyPattern
from .storage import StorageAdapter


class RedisStorage[T](StorageAdapter[T]):
    """Redis-backed store scoped by a key prefix.

    Values are stored as JSON strings; TTLs use Redis' native millisecond
    expiry, and ``clear`` only removes keys under this prefix.
    """

    def __init__(
        self,
        prefix: str = "cache:",
        connection_string: str = "redis://localhost:6379",
        **redis_kwargs: Any,
    ) -> None:
        """Initialize the Redis storage.

        Args:
            prefix: Key prefix every entry is stored under
            connection_string: Redis connection string
            **redis_kwargs: Additional arguments passed to aioredis
        """
        CacheKeyPattern.validate_prefix(prefix)
        self.prefix = prefix
        self.connection_string = connection_string
        self.redis_kwargs = redis_kwargs
        self.client: aioredis.Redis | None = None

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if self.client is None:
            self.client = aioredis.from_url(self.connection_string, **self.redis_kwargs)

    async def disconnect(self) -> None:
        """Close connection to Redis."""
        if self.client:
            await self.client.aclose()
            self.client = None

    async def _get_client(self) -> aioredis.Redis:
        if self.client is None:
            await self.connect()
        return self.client  # type: ignore[return-value]

    async def set(self, key: str, value: T, ttl: int | None = 0) -> None:
        client = await self._get_client()
        await client.set(CacheKeyPattern.build_key(self.prefix, key), json.dumps(value), px=ttl or None)

    async def get(self, key: str) -> T | None:
        client = await self._get_client()
        raw = await client.get(CacheKeyPattern.build_key(self.prefix, key))
        if raw is None:
            return None
        return json.loads(raw)

    async def delete(self, key: str) -> None:
        client = await self._get_client()
        await client.delete(CacheKeyPattern.build_key(self.prefix, key))

    async def clear(self) -> None:
        client = await self._get_client()
        pattern = CacheKeyPattern.build_pattern(self.prefix)
        keys = [key async for key in client.scan_iter(match=pattern)]
        if keys:
            await client.delete(*keys)
