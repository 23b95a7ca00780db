from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..config import DEFAULT_CACHE_MAX_BYTES
from ..exceptions import CacheCapacityError

logger = logging.getLogger("modelkit.cache")


class StorageAdapter[T](ABC):
    """Key/value store used behind a cache manager.

    ``ttl`` is in milliseconds; ``0`` or ``None`` means the entry never expires.
    """

    @abstractmethod
    async def set(self, key: str, value: T, ttl: int | None = 0) -> None:
        ...

    @abstractmethod
    async def get(self, key: str) -> T | None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...


@dataclass(slots=True)
class CacheEntry[T]:
    value: T
    size: int
    expires: float  # monotonic milliseconds, 0 = never


class MemoryStorage[T](StorageAdapter[T]):
    """In-process store bounded by the JSON-encoded size of its values.

    When an insert would exceed the budget, expired entries are purged, then
    entries are evicted soonest-expiry first; entries without expiry go last,
    oldest insert first.
    """

    def __init__(
        self,
        max_size_bytes: int = DEFAULT_CACHE_MAX_BYTES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_size = max_size_bytes
        self.current_size = 0
        self._store: dict[str, CacheEntry[T]] = {}
        self._clock = clock

    @staticmethod
    def item_size(value: Any) -> int:
        return len(json.dumps(value, default=str).encode("utf-8"))

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def _is_expired(self, entry: CacheEntry[T], now: float) -> bool:
        return bool(entry.expires) and entry.expires <= now

    async def set(self, key: str, value: T, ttl: int | None = 0) -> None:
        size = self.item_size(value)
        if size > self.max_size:
            raise CacheCapacityError(size, self.max_size)

        self._discard(key)
        if self.current_size + size > self.max_size:
            self._purge_expired()
        while self.current_size + size > self.max_size:
            victim = self._eviction_candidate()
            if victim is None:
                break
            logger.debug(f"Evicting cache key '{victim}' to fit {size} bytes")
            self._discard(victim)

        expires = self._now_ms() + ttl if ttl else 0
        self._store[key] = CacheEntry(value, size, expires)
        self.current_size += size

    async def get(self, key: str) -> T | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self._now_ms()):
            self._discard(key)
            return None
        return entry.value

    async def delete(self, key: str) -> None:
        self._discard(key)

    async def clear(self) -> None:
        self._store.clear()
        self.current_size = 0

    def _discard(self, key: str) -> None:
        entry = self._store.pop(key, None)
        if entry is not None:
            self.current_size -= entry.size

    def _purge_expired(self) -> None:
        now = self._now_ms()
        for key in [key for key, entry in self._store.items() if self._is_expired(entry, now)]:
            self._discard(key)

    def _eviction_candidate(self) -> str | None:
        expiring = [(key, entry.expires) for key, entry in self._store.items() if entry.expires]
        if expiring:
            return min(expiring, key=lambda item: item[1])[0]
        return next(iter(self._store), None)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store
