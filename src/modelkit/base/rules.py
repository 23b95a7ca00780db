"""Type-check rules.

A field's base rule is a small tree of the node types below. ``refine``
wraps a base rule with the default, nullable and optional nodes an option
set asks for, and ``matches`` evaluates the resulting tree against a value.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

from ..exceptions import ConfigurationError
from .options import MISSING, resolve_options

logger = logging.getLogger("modelkit.rules")

Check: TypeAlias = Callable[[Any], bool | Awaitable[bool]]


@dataclass(slots=True, frozen=True)
class TypeRule:
    """Accepts instances of the given type(s).

    ``bool`` values are only accepted when ``bool`` (or ``object``) is listed,
    so an ``int`` rule does not take ``True``.
    """

    types: type | tuple[type, ...]

    def __post_init__(self) -> None:
        if isinstance(self.types, type):
            object.__setattr__(self, "types", (self.types,))
        if not self.types or not all(isinstance(t, type) for t in self.types):
            raise ConfigurationError(f"TypeRule expects classes, got {self.types!r}")

    def accepts(self, value: Any) -> bool:
        if value is MISSING or value is None:
            return False
        if isinstance(value, bool) and bool not in self.types and object not in self.types:
            return False
        return isinstance(value, self.types)


@dataclass(slots=True, frozen=True)
class PredicateRule:
    """Accepts any present value the check function returns truthy for."""

    check: Check
    label: str = "predicate"


@dataclass(slots=True, frozen=True)
class ValidatorsRule:
    """Runs custom validators on values the inner rule accepted."""

    inner: Rule
    validators: tuple[Check, ...]


@dataclass(slots=True, frozen=True)
class DefaultRule:
    """Substitutes ``provider()`` for a missing value."""

    inner: Rule
    provider: Callable[[], Any]


@dataclass(slots=True, frozen=True)
class NullableRule:
    """Accepts ``None`` outright."""

    inner: Rule


@dataclass(slots=True, frozen=True)
class ExcludeRule:
    """Rejects a specific marker (``None`` or ``MISSING``) after the inner rule ran."""

    inner: Rule
    excluded: Any


@dataclass(slots=True, frozen=True)
class OptionalRule:
    """Accepts a missing value outright."""

    inner: Rule


Rule: TypeAlias = (
    TypeRule | PredicateRule | ValidatorsRule | DefaultRule | NullableRule | ExcludeRule | OptionalRule
)

_RULE_TYPES = (TypeRule, PredicateRule, ValidatorsRule, DefaultRule, NullableRule, ExcludeRule, OptionalRule)


def as_rule(base: Any) -> Rule:
    """Coerce a class, tuple of classes or check function into a rule."""
    if isinstance(base, _RULE_TYPES):
        return base
    if isinstance(base, type):
        return TypeRule((base,))
    if isinstance(base, tuple):
        return TypeRule(base)
    if callable(base):
        return PredicateRule(base, getattr(base, "__name__", "predicate"))
    raise ConfigurationError(f"Unsupported base rule: {base!r}")


def refine(base: Any, options: Mapping[str, Any] | None = None) -> Rule:
    """Derive the rule one validation call runs with.

    The default node sits closest to the base rule, then the null handling,
    then the optional node. ``nullable`` never makes a field optional: a
    nullable field still rejects a missing value unless ``required`` is off.
    """
    resolved = resolve_options(options)
    rule = as_rule(base)

    validators = tuple(resolved.get("validators") or ())
    if validators:
        if not all(callable(validator) for validator in validators):
            raise ConfigurationError(f"Validators must be callables, got {validators!r}")
        rule = ValidatorsRule(rule, validators)

    default = resolved.get("default")
    if default is not None:
        provider = default if callable(default) else (lambda: default)
        rule = DefaultRule(rule, provider)

    nullable = bool(resolved.get("nullable"))
    if nullable:
        rule = ExcludeRule(NullableRule(rule), MISSING)
    else:
        rule = ExcludeRule(rule, None)

    if not resolved.get("required"):
        rule = OptionalRule(rule)
    elif nullable:
        rule = NullableRule(rule)

    return rule


async def matches(rule: Rule, value: Any = MISSING) -> bool:
    """Return whether ``value`` satisfies ``rule``. Bad data never raises."""
    ok, _ = await _evaluate(rule, value)
    return ok


async def _evaluate(rule: Rule, value: Any) -> tuple[bool, Any]:
    if isinstance(rule, OptionalRule):
        if value is MISSING:
            return True, MISSING
        return await _evaluate(rule.inner, value)

    if isinstance(rule, NullableRule):
        if value is None:
            return True, None
        return await _evaluate(rule.inner, value)

    if isinstance(rule, ExcludeRule):
        ok, output = await _evaluate(rule.inner, value)
        return ok and output is not rule.excluded, output

    if isinstance(rule, DefaultRule):
        if value is MISSING:
            value = rule.provider()
        return await _evaluate(rule.inner, value)

    if isinstance(rule, ValidatorsRule):
        ok, output = await _evaluate(rule.inner, value)
        if not ok:
            return False, output
        for validator in rule.validators:
            if not await _run_check(validator, output):
                return False, output
        return True, output

    if isinstance(rule, TypeRule):
        return rule.accepts(value), value

    if isinstance(rule, PredicateRule):
        if value is MISSING:
            return False, value
        return await _run_check(rule.check, value), value

    raise ConfigurationError(f"Unknown rule type: {type(rule).__name__}")


async def _run_check(check: Check, value: Any) -> bool:
    try:
        result = check(value)
        if inspect.isawaitable(result):
            result = await result
    except (ValueError, TypeError) as exc:
        logger.debug(f"Check {check!r} rejected {value!r}: {exc}")
        return False
    return bool(result)
