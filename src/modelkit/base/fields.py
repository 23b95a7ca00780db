from __future__ import annotations

import weakref
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from .options import (
    MISSING,
    capital_case,
    display_options,
    merge_options,
    resolve_default,
)
from .rules import PredicateRule, Rule, as_rule, matches, refine

if TYPE_CHECKING:
    from .model import ModelSpec


class _FieldAttributes:
    """Option attributes shared by field specs and field instances."""

    required: bool
    read_only: bool
    nullable: bool
    default: Any
    display_name: str
    validators: list[Callable[[Any], Any]]
    order: int | None
    hidden: bool
    visually_hidden: bool
    compute: Callable[[dict[str, Any]], Any] | None

    def _bind_options(self, options: Mapping[str, Any], name: str | None, *, null_default: bool) -> None:
        for key, value in display_options(options, name, null_default=null_default).items():
            setattr(self, key, value)


class FieldSpec[T](_FieldAttributes):
    """Reusable blueprint for one model attribute.

    Created by a :class:`FieldFactory`. The spec keeps the factory's base
    rule and the merged factory/definition options; calling it binds a value
    and returns a :class:`FieldInstance`.
    """

    def __init__(self, base_rule: Any, options: Mapping[str, Any] | None = None) -> None:
        options = dict(options or {})
        self._name: str | None = options.pop("name", None) or None
        self._model_ref: weakref.ReferenceType[ModelSpec] | None = None
        self.base_rule: Rule = as_rule(base_rule)
        self.options: dict[str, Any] = options
        self._bind_options(options, self._name, null_default=False)
        self.value: T | None = resolve_default(options.get("default"))

    @property
    def name(self) -> str | None:
        return self._name

    def get_name(self) -> str | None:
        return self._name

    def set_name(self, name: str) -> None:
        """Assign the field name unless one is already set."""
        self._name = self._name or name
        if not self.display_name:
            self.display_name = capital_case(name)

    @property
    def model(self) -> ModelSpec | None:
        """The model this spec was last attached to, if it is still alive."""
        return self._model_ref() if self._model_ref is not None else None

    def set_model(self, model: ModelSpec | None) -> None:
        self._model_ref = weakref.ref(model) if model is not None else None

    async def validate(self, value: Any = MISSING, /, **extra_options: Any) -> bool:
        """Check ``value`` against this field with optional per-call overrides."""
        rule = refine(self.base_rule, merge_options(self.options, extra_options))
        return await matches(rule, value)

    def __call__(self, value: Any = MISSING, /, **extra_options: Any) -> FieldInstance[T]:
        """Bind ``value`` and return a field instance.

        A ``name`` given here renames this spec as well.
        """
        options = merge_options(self.options, extra_options)
        self._name = options.pop("name", None) or self._name
        return FieldInstance(self, value, options)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, rule={self.base_rule!r})"


class FieldInstance[T](_FieldAttributes):
    """A field spec bound to one concrete value."""

    def __init__(self, field: FieldSpec[T], value: Any, options: dict[str, Any]) -> None:
        self.field = field
        self.options = options
        self.name = field.name
        self.model = field.model
        self._raw_value = value
        self._bind_options(options, self.name, null_default=True)

        if value is None or value is not MISSING:
            self.value: T | None = value
        else:
            self.value = resolve_default(options.get("default"))

    @property
    def raw_value(self) -> Any:
        """The value as passed, ``MISSING`` when none was given."""
        return self._raw_value

    def get_name(self) -> str | None:
        return self.name

    async def validate(self, **extra_options: Any) -> bool:
        """Re-check the bound value, optionally with further overrides."""
        rule = refine(self.field.base_rule, merge_options(self.options, extra_options))
        return await matches(rule, self._raw_value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, value={self.value!r})"


class FieldFactory[T]:
    """Builds field specs that share a base rule and factory-level options."""

    def __init__(self, base_rule: Any, **factory_options: Any) -> None:
        self.base_rule: Rule = as_rule(base_rule)
        self.options: dict[str, Any] = factory_options

    def __call__(self, **field_options: Any) -> FieldSpec[T]:
        return FieldSpec(self.base_rule, merge_options(self.options, field_options))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(rule={self.base_rule!r}, options={self.options!r})"


def field_factory(base_rule: Any, **factory_options: Any) -> FieldFactory[Any]:
    """Create a field factory from a base rule (a class, classes or a check)."""
    return FieldFactory(base_rule, **factory_options)


def is_valid_field(field: Any) -> bool:
    return isinstance(field, FieldSpec)


StringField: FieldFactory[str] = FieldFactory(str)
IntField: FieldFactory[int] = FieldFactory(int)
FloatField: FieldFactory[float] = FieldFactory((int, float))
BoolField: FieldFactory[bool] = FieldFactory(bool)
ListField: FieldFactory[list[Any]] = FieldFactory(list)
DictField: FieldFactory[dict[str, Any]] = FieldFactory(dict)
AnyField: FieldFactory[Any] = FieldFactory(PredicateRule(lambda value: True, "any"))
