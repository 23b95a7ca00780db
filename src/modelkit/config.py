from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import ClassVar

from .exceptions import ConfigurationError

DEFAULT_CACHE_MAX_BYTES = 100 * 1024 * 1024


@dataclass(slots=True, frozen=True)
class Settings:
    """Process settings, read from ``MODELKIT_*`` environment variables."""

    BACKENDS: ClassVar[tuple[str, ...]] = ("memory", "redis")

    cache_backend: str = "memory"
    cache_max_bytes: int = DEFAULT_CACHE_MAX_BYTES
    cache_prefix: str = "cache:"
    redis_url: str = "redis://localhost:6379"
    default_ttl_ms: int = 0

    def __post_init__(self) -> None:
        if self.cache_backend not in self.BACKENDS:
            raise ConfigurationError(
                f"Unknown cache backend '{self.cache_backend}', expected one of {self.BACKENDS}"
            )
        if self.cache_max_bytes <= 0:
            raise ConfigurationError("Cache size budget must be positive")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        try:
            cache_max_bytes = int(env.get("MODELKIT_CACHE_MAX_BYTES", DEFAULT_CACHE_MAX_BYTES))
            default_ttl_ms = int(env.get("MODELKIT_DEFAULT_TTL_MS", 0))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid modelkit setting: {exc}") from exc

        return cls(
            cache_backend=env.get("MODELKIT_CACHE_BACKEND", "memory").strip().lower(),
            cache_max_bytes=cache_max_bytes,
            cache_prefix=env.get("MODELKIT_CACHE_PREFIX", "cache:"),
            redis_url=(
                env.get("MODELKIT_REDIS_URL") or env.get("REDIS_URL") or "redis://localhost:6379"
            ).strip(),
            default_ttl_ms=default_ttl_ms,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
