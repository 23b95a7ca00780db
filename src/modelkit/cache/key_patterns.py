from __future__ import annotations

from typing import Any


class CacheKeyPattern:
    """Utilities for prefix-scoped cache keys."""

    @staticmethod
    def build_key(prefix: str, key: Any) -> str:
        return f"{prefix}{key}"

    @staticmethod
    def parse_key(key: str, prefix: str) -> str:
        """Strip ``prefix`` from a stored key."""
        if not key.startswith(prefix):
            raise ValueError(f"Key '{key}' does not match prefix '{prefix}'")
        return key[len(prefix):]

    @staticmethod
    def build_pattern(prefix: str) -> str:
        """Glob pattern matching every key under ``prefix``, with glob characters escaped."""
        escaped = "".join(f"\\{char}" if char in "*?[]\\" else char for char in prefix)
        return f"{escaped}*"

    @staticmethod
    def validate_prefix(prefix: str) -> None:
        if not prefix:
            raise ValueError("Prefix cannot be empty")
        if not prefix.endswith(":"):
            raise ValueError("Prefix should end with ':'")
        if " " in prefix:
            raise ValueError("Prefix should not contain spaces")
