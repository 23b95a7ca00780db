"""Cache collaborators used by model managers."""

from .key_patterns import CacheKeyPattern
from .manager import CacheManager, create_cache_manager
from .redis_storage import RedisStorage
from .storage import CacheEntry, MemoryStorage, StorageAdapter

__all__ = [
    "CacheEntry",
    "CacheKeyPattern",
    "CacheManager",
    "MemoryStorage",
    "RedisStorage",
    "StorageAdapter",
    "create_cache_manager",
]
