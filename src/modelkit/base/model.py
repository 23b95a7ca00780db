from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from enum import StrEnum
from typing import TYPE_CHECKING, Any, TypedDict

from ..exceptions import ConfigurationError
from .events import ModelEvents
from .fields import FieldInstance, FieldSpec, is_valid_field
from .options import MISSING, camel_case, kebab_case, merge_options, snake_case
from .registry import ModelRegistry, default_provider

if TYPE_CHECKING:
    from .manager import ModelManager

logger = logging.getLogger("modelkit.model")


class Casing(StrEnum):
    SNAKE_CASE = "snake_case"
    CAMEL_CASE = "camel_case"
    KEBAB_CASE = "kebab_case"


CASING_CONVERTERS: dict[Casing, Callable[[str], str]] = {
    Casing.SNAKE_CASE: snake_case,
    Casing.CAMEL_CASE: camel_case,
    Casing.KEBAB_CASE: kebab_case,
}


class ModelMeta(TypedDict, total=False):
    name: str
    plural_name: str
    singular_name: str
    description: str
    display_field: str
    display_name: str
    order: list[str]
    indices: list[str | list[str]]
    casing: Casing | str
    pagination: dict[str, Any]
    primary_key: str
    abstract: bool


def _resolve_registry(registry: ModelRegistry | str | None) -> ModelRegistry:
    if registry is None:
        return default_provider.default
    if isinstance(registry, str):
        return default_provider.get_instance(registry)
    return registry


class ModelSpec:
    """A named bundle of field specs plus metadata.

    Building a spec names and attaches its fields and registers it under
    ``meta["name"]``. ``extend``, ``merge`` and ``omit`` never touch the
    source spec; each returns and registers a new one in the same registry.
    Calling the spec with values returns a :class:`ModelInstance`.
    """

    objects: ModelManager

    def __init__(
        self,
        fields: Mapping[str, FieldSpec[Any]],
        meta: Mapping[str, Any],
        registry: ModelRegistry | str | None = None,
        events: ModelEvents | None = None,
    ) -> None:
        self.fields: dict[str, FieldSpec[Any]] = dict(fields)
        self.meta: dict[str, Any] = dict(meta)
        self.registry = _resolve_registry(registry)
        self.events = events if events is not None else ModelEvents(self.meta.get("name") or "abstract")
        self.events.before_init.emit(self)

        name = self.meta.get("name")
        if not name and not self.is_abstract:
            raise ConfigurationError("Model meta requires a 'name' unless the model is abstract")

        for field_name, field in self.fields.items():
            if not is_valid_field(field):
                raise ConfigurationError(f"Field '{field_name}' is not a field spec: {field!r}")
            if field_name in RESERVED_FIELD_NAMES:
                raise ConfigurationError(
                    f"Field name '{field_name}' clashes with a model instance attribute"
                )

        previous_models = [(field, field.model) for field in self.fields.values()]
        for field_name, field in self.fields.items():
            field.set_name(field_name)
            field.set_model(self)

        if not self.is_abstract:
            from .manager import ModelManager

            self.objects = ModelManager(self)

        self.events.after_init.emit(self)

        if name:
            self.events.before_register.emit(self)
            try:
                self.registry.register(name, self)
            except Exception:
                for field, previous in previous_models:
                    field.set_model(previous)
                raise
            self.events.after_register.emit(self)
        else:
            logger.debug("Abstract model without a name was not registered")

    @property
    def name(self) -> str | None:
        return self.meta.get("name")

    @property
    def is_abstract(self) -> bool:
        return bool(self.meta.get("abstract"))

    # Composition

    def create(self, fields: Mapping[str, FieldSpec[Any]], meta: Mapping[str, Any]) -> ModelSpec:
        """Build an unrelated spec in this spec's registry."""
        return ModelSpec(fields, meta, registry=self.registry)

    def extend(
        self,
        fields: Mapping[str, FieldSpec[Any]] | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> ModelSpec:
        """New spec with ``fields`` added or replacing same-named fields."""
        return ModelSpec(
            {**self.fields, **(fields or {})},
            {**self.meta, **(meta or {})},
            registry=self.registry,
        )

    def merge(self, models: Iterable[ModelSpec], meta: Mapping[str, Any] | None = None) -> ModelSpec:
        """New spec folding ``models`` over this one; later models win, ``meta`` wins last."""
        fields = dict(self.fields)
        merged_meta = dict(self.meta)
        for model in models:
            fields.update(model.fields)
            merged_meta.update(model.meta)
        merged_meta.update(meta or {})
        return ModelSpec(fields, merged_meta, registry=self.registry)

    def omit(self, field_names: Iterable[str], meta: Mapping[str, Any] | None = None) -> ModelSpec:
        """New spec without ``field_names``; unknown names are ignored."""
        omitted = set(field_names)
        fields = {name: field for name, field in self.fields.items() if name not in omitted}
        return ModelSpec(fields, {**self.meta, **(meta or {})}, registry=self.registry)

    # Field helpers

    def get_field(self, name: str) -> FieldSpec[Any] | None:
        return self.fields.get(name)

    def get_field_names(self) -> list[str]:
        return list(self.fields)

    def is_valid_field(self, field: Any) -> bool:
        """Whether ``field`` is a field spec belonging to this model."""
        return is_valid_field(field) and any(candidate is field for candidate in self.fields.values())

    async def validate(
        self,
        values: Mapping[str, Any],
        options: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> bool:
        """Validate raw values field by field; every field must pass.

        Args:
            values: Field values; absent keys are validated as missing.
            options: Per-field option overrides keyed by field name.
        """
        options = options or {}
        results: dict[str, bool] = {}
        for name, field in self.fields.items():
            results[name] = await field.validate(values.get(name, MISSING), **(options.get(name) or {}))
        return all(results.values())

    def __call__(
        self,
        values: Mapping[str, Any] | None = None,
        options: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> ModelInstance:
        values = values or {}
        options = options or {}
        instances = {
            name: field(values.get(name, MISSING), **merge_options(field.options, options.get(name)))
            for name, field in self.fields.items()
        }
        return ModelInstance(self, instances)

    def __repr__(self) -> str:
        return f"ModelSpec({self.name!r}, fields={self.get_field_names()!r})"


class ModelInstance:
    """A model spec bound to concrete values, one field instance per field."""

    def __init__(self, model: ModelSpec, fields: dict[str, FieldInstance[Any]]) -> None:
        self.model = model
        self.fields = fields

    def __getattr__(self, item: str) -> FieldInstance[Any]:
        fields = self.__dict__.get("fields", {})
        if item in fields:
            return fields[item]
        raise AttributeError(f"{type(self).__name__!s} has no field '{item}'")

    def __getitem__(self, item: str) -> FieldInstance[Any]:
        return self.fields[item]

    def __contains__(self, item: object) -> bool:
        return item in self.fields

    @property
    def pk(self) -> Any:
        field = self.fields.get(self.model.meta.get("primary_key", "id"))
        return field.value if field is not None else None

    async def validate(self) -> bool:
        """Re-validate every bound value with the options it was bound with."""
        results = {name: await field.validate() for name, field in self.fields.items()}
        return all(results.values())

    def values(self) -> dict[str, Any]:
        return {name: field.value for name, field in self.fields.items()}

    def raw_values(self) -> dict[str, Any]:
        """Only the values that were actually given."""
        return {name: field.raw_value for name, field in self.fields.items() if field.raw_value is not MISSING}

    def to_dict(self) -> dict[str, Any]:
        """Bound values with computed fields filled in, keyed per ``meta["casing"]``."""
        data = self.values()
        for name, field in self.fields.items():
            if field.compute is not None:
                data[name] = field.compute(dict(data))

        casing = self.model.meta.get("casing")
        if not casing:
            return data
        convert = CASING_CONVERTERS[Casing(casing)]
        return {convert(key): value for key, value in data.items()}

    async def save(self, commit: bool = True) -> ModelInstance:
        return await self._manager().save(self, commit=commit)

    async def update(self, values: Mapping[str, Any], commit: bool = True) -> ModelInstance:
        return await self._manager().update(self.pk, values, commit=commit)

    async def delete(self, commit: bool = True) -> None:
        await self._manager().delete(self.pk, commit=commit)

    def _manager(self) -> ModelManager:
        manager = getattr(self.model, "objects", None)
        if manager is None:
            raise ConfigurationError(f"Model {self.model.name!r} is abstract and has no manager")
        return manager

    def __repr__(self) -> str:
        return f"ModelInstance({self.model.name!r}, {self.values()!r})"


# Attribute access on an instance would never reach fields with these names.
RESERVED_FIELD_NAMES = frozenset({"model", "fields"}) | {
    name for name in vars(ModelInstance) if not name.startswith("_")
}


def model_factory(
    fields: Mapping[str, FieldSpec[Any]],
    meta: Mapping[str, Any],
    registry: ModelRegistry | str | None = None,
    events: ModelEvents | None = None,
) -> ModelSpec:
    """Build and register a model spec.

    Args:
        fields: Field specs keyed by field name; order is kept.
        meta: Model metadata, ``name`` is required unless ``abstract`` is set.
        registry: A registry, the name of one in the default provider, or
            ``None`` for the default registry.
        events: Hooks to use for the model. Pass a prepared ``ModelEvents``
            to observe ``before_init``, ``after_init``, ``before_register``
            and ``after_register``, which fire while the spec is built.
    """
    return ModelSpec(fields, meta, registry=registry, events=events)
