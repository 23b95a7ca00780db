from __future__ import annotations

from typing import Any


class ModelKitError(Exception):
    """Base class for every error raised by modelkit."""


class ConfigurationError(ModelKitError, ValueError):
    """Raised for unsupported rule, filter or model configuration."""


class DuplicateModelError(ModelKitError):
    """Raised when a model name is already taken and overwrite is disabled."""

    def __init__(self, name: str, registry: str) -> None:
        super().__init__(
            f"Model '{name}' already exists in registry '{registry}'. "
            "If it is intended, enable allow_overwrite option"
        )
        self.name = name
        self.registry = registry


DuplicateRegistrationError = DuplicateModelError


class CacheCapacityError(ModelKitError):
    """Raised when a single item is larger than the cache budget."""

    def __init__(self, size: int, max_size: int) -> None:
        super().__init__(f"Item too large for cache ({size} > {max_size} bytes)")
        self.size = size
        self.max_size = max_size


class InstanceNotFoundError(ModelKitError, KeyError):
    """Raised by a manager when no stored instance has the given key."""

    def __init__(self, model: str, primary_key: Any) -> None:
        super().__init__(f"No {model} found with primary key {primary_key!r}")
        self.model = model
        self.primary_key = primary_key

    def __str__(self) -> str:
        return str(self.args[0])


class InstanceValidationError(ModelKitError, ValueError):
    """Raised by a manager when values fail model validation."""

    def __init__(self, model: str, values: dict[str, Any]) -> None:
        super().__init__(f"Invalid values for {model}: {values!r}")
        self.model = model
        self.values = values
