from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from ..exceptions import DuplicateModelError
from .events import ModelRegistryEvents

if TYPE_CHECKING:
    from .fields import FieldSpec
    from .model import ModelSpec

logger = logging.getLogger("modelkit.registry")


@dataclass(slots=True, frozen=True)
class RegistryOptions:
    allow_overwrite: bool = False
    default_registry: str | None = None

    @classmethod
    def coerce(cls, options: RegistryOptions | Mapping[str, Any] | None) -> RegistryOptions:
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls(**options)


class ModelRegistry:
    """Named table of model specs with an overwrite policy."""

    def __init__(self, name: str, options: RegistryOptions | Mapping[str, Any] | None = None) -> None:
        self.name = name
        self.options = RegistryOptions.coerce(options)
        self.events = ModelRegistryEvents(name)
        self._models: dict[str, ModelSpec] = {}

    @classmethod
    def get_instance(
        cls,
        name: str,
        options: RegistryOptions | Mapping[str, Any] | None = None,
    ) -> ModelRegistry:
        """Return the process-wide registry called ``name``, creating it on first use."""
        return default_provider.get_instance(name, options)

    def register(self, name: str, model: ModelSpec) -> None:
        """Add ``model`` under ``name``.

        Raises:
            DuplicateModelError: If ``name`` is taken and overwrite is disabled.
        """
        existing = self._models.get(name)
        if existing is not None and not self.options.allow_overwrite:
            raise DuplicateModelError(name, self.name)

        self.events.before_register.emit(name, model)
        if existing is not None:
            logger.warning(f"Overwriting model '{name}' in registry '{self.name}'")
            self.events.before_overwrite.emit(name, existing, model)

        self._models[name] = model

        if existing is not None:
            self.events.after_overwrite.emit(name, existing, model)
        self.events.after_register.emit(name, model)
        logger.debug(f"Registered model '{name}' in registry '{self.name}'")

    def get_model(self, name: str) -> ModelSpec | None:
        return self._models.get(name)

    def get_all_models(self) -> dict[str, ModelSpec]:
        """Snapshot of the registered models."""
        return dict(self._models)

    def find_field_owners(self, field: FieldSpec[Any]) -> list[str]:
        """Names of the registered models whose field table holds ``field``."""
        return [
            name for name, model in self._models.items()
            if any(candidate is field for candidate in model.fields.values())
        ]

    def clear(self) -> None:
        self._models.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._models))

    def __repr__(self) -> str:
        return f"ModelRegistry({self.name!r}, models={len(self._models)})"


class RegistryProvider:
    """Owns a set of named registries, including the default one.

    Applications normally use the module-level ``default_provider``; tests
    can build their own provider or call :meth:`teardown` between cases.
    """

    DEFAULT_NAME: ClassVar[str] = "default"

    def __init__(self) -> None:
        self._registries: dict[str, ModelRegistry] = {}
        self.default = self.get_instance(self.DEFAULT_NAME, RegistryOptions(allow_overwrite=True))

    def get_instance(
        self,
        name: str,
        options: RegistryOptions | Mapping[str, Any] | None = None,
    ) -> ModelRegistry:
        """Return the registry for ``name``; options only apply on creation."""
        registry = self._registries.get(name)
        if registry is None:
            registry = ModelRegistry(name, options)
            self._registries[name] = registry
            logger.debug(f"Created registry '{name}' (allow_overwrite={registry.options.allow_overwrite})")
        return registry

    def names(self) -> list[str]:
        return list(self._registries)

    def teardown(self) -> None:
        """Clear the default registry and drop every named one."""
        self.default.clear()
        self._registries = {self.DEFAULT_NAME: self.default}


default_provider = RegistryProvider()
DefaultModelRegistry = default_provider.default
