from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..exceptions import ConfigurationError
from .operators import LOGICAL_OPERATORS, FilterOperator

logger = logging.getLogger("modelkit.filter")

# JSON lists, booleans and quoted scalars given as strings, e.g. "['a']" or "'42'"
_JSON_LIKE = re.compile(r"""^(?:\[.*\]|true|false|["'](?:\d+|\w+)["'])$""", re.DOTALL)


@dataclass(slots=True, frozen=True)
class ComparisonOptions:
    case_sensitive: bool = True
    strict: bool = True


@dataclass(slots=True, frozen=True)
class FilterCondition:
    """One ``field <operator> value`` test."""

    field: str
    operator: FilterOperator | str
    value: Any = None
    options: ComparisonOptions | None = None


def coerce_comparison_value(value: Any) -> Any:
    """Decode string comparison values that look like JSON literals."""
    if not isinstance(value, str) or not _JSON_LIKE.match(value):
        return value
    try:
        return json.loads(value.replace("'", '"', 2))
    except json.JSONDecodeError as exc:
        logger.debug(f"Keeping comparison value {value!r} as a string: {exc}")
        return value


def type_tag(value: Any) -> str:
    """JavaScript-style type name, so ints and floats compare as one type."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    return "object"


def _fold(value: Any) -> Any:
    if isinstance(value, str):
        return value.lower()
    if isinstance(value, list):
        return [_fold(item) for item in value]
    return value


def _contains(text: str, part: str) -> bool:
    return part in text


# operator -> (test, case_insensitive, negated)
_STRING_OPERATORS: dict[FilterOperator, tuple[Callable[[str, str], bool], bool, bool]] = {
    FilterOperator.CONTAINS: (_contains, False, False),
    FilterOperator.NCONTAINS: (_contains, False, True),
    FilterOperator.CONTAINSS: (_contains, True, False),
    FilterOperator.NCONTAINSS: (_contains, True, True),
    FilterOperator.STARTS_WITH: (str.startswith, False, False),
    FilterOperator.NSTARTS_WITH: (str.startswith, False, True),
    FilterOperator.STARTS_WITHS: (str.startswith, True, False),
    FilterOperator.NSTARTS_WITHS: (str.startswith, True, True),
    FilterOperator.ENDS_WITH: (str.endswith, False, False),
    FilterOperator.NENDS_WITH: (str.endswith, False, True),
    FilterOperator.ENDS_WITHS: (str.endswith, True, False),
    FilterOperator.NENDS_WITHS: (str.endswith, True, True),
}

# Operators that compare across types and skip the strict type check
_TYPE_AGNOSTIC = frozenset({
    FilterOperator.EQ,
    FilterOperator.NE,
    FilterOperator.IN,
    FilterOperator.NIN,
    FilterOperator.INA,
    FilterOperator.NINA,
    FilterOperator.BETWEEN,
    FilterOperator.NBETWEEN,
})


class FilterUtils:
    """Filtering of plain records (mappings or objects) by field comparisons."""

    @classmethod
    def filter_items[T](
        cls,
        items: Iterable[T],
        field: str,
        operator: FilterOperator | str,
        comparison_value: Any,
        options: ComparisonOptions | None = None,
    ) -> list[T]:
        """Return the items whose ``field`` passes the comparison."""
        return [
            item for item in items
            if cls.compare_values(cls.field_value(item, field), comparison_value, operator, options)
        ]

    @classmethod
    def multi_filter[T](cls, items: Iterable[T], conditions: Iterable[FilterCondition]) -> list[T]:
        """Return the items passing every condition."""
        conditions = list(conditions)
        return [
            item for item in items
            if all(
                cls.compare_values(
                    cls.field_value(item, condition.field),
                    condition.value,
                    condition.operator,
                    condition.options,
                )
                for condition in conditions
            )
        ]

    @staticmethod
    def field_value(item: Any, field: str) -> Any:
        if isinstance(item, Mapping):
            return item.get(field)
        return getattr(item, field, None)

    @classmethod
    def compare_values(
        cls,
        value: Any,
        comparison_value: Any,
        operator: FilterOperator | str,
        options: ComparisonOptions | None = None,
    ) -> bool:
        """Compare ``value`` against ``comparison_value``.

        Raises:
            ConfigurationError: For logical or unknown operators.
        """
        operator = cls._coerce_operator(operator)
        options = options or ComparisonOptions()
        comparison = coerce_comparison_value(comparison_value)

        if operator is FilterOperator.NULL:
            return value is None
        if operator is FilterOperator.NNULL:
            return value is not None

        if not options.case_sensitive:
            value, comparison = _fold(value), _fold(comparison)

        if options.strict and operator not in _TYPE_AGNOSTIC and type_tag(value) != type_tag(comparison):
            return False

        if operator in _STRING_OPERATORS:
            test, insensitive, negated = _STRING_OPERATORS[operator]
            if not isinstance(value, str) or not isinstance(comparison, str):
                return False
            if insensitive:
                value, comparison = value.lower(), comparison.lower()
            return test(value, comparison) != negated

        match operator:
            case FilterOperator.EQ:
                return cls._equals(value, comparison, options.strict)
            case FilterOperator.NE:
                return not cls._equals(value, comparison, options.strict)
            case FilterOperator.LT | FilterOperator.GT | FilterOperator.LTE | FilterOperator.GTE:
                return cls._order(value, comparison, operator)
            case FilterOperator.IN:
                if isinstance(comparison, list):
                    return any(cls._member(value, candidate) for candidate in comparison)
                return cls._member(value, comparison)
            case FilterOperator.NIN:
                if isinstance(comparison, list):
                    if value is None:
                        return True
                    return not any(cls._member(value, candidate) for candidate in comparison)
                if isinstance(value, list):
                    return comparison not in value
                return value != comparison
            case FilterOperator.INA:
                return cls._array_contains(value, comparison)
            case FilterOperator.NINA:
                return not cls._array_contains(value, comparison)
            case FilterOperator.BETWEEN:
                return cls._between(value, comparison)
            case FilterOperator.NBETWEEN:
                return value is not None and not cls._between(value, comparison)

        raise ConfigurationError(f"Unsupported operator: {operator}")

    @staticmethod
    def _coerce_operator(operator: FilterOperator | str) -> FilterOperator:
        try:
            operator = FilterOperator(operator)
        except ValueError as exc:
            raise ConfigurationError(f"Unsupported operator: {operator}") from exc
        if operator in LOGICAL_OPERATORS:
            raise ConfigurationError(f"Logical operator '{operator}' cannot compare values")
        return operator

    @staticmethod
    def _equals(value: Any, comparison: Any, strict: bool) -> bool:
        if strict:
            return type_tag(value) == type_tag(comparison) and value == comparison
        return value == comparison or (
            value is not None and comparison is not None and str(value) == str(comparison)
        )

    @staticmethod
    def _order(value: Any, comparison: Any, operator: FilterOperator) -> bool:
        if value is None or comparison is None:
            return False
        try:
            match operator:
                case FilterOperator.LT:
                    return value < comparison
                case FilterOperator.GT:
                    return value > comparison
                case FilterOperator.LTE:
                    return value <= comparison
                case _:
                    return value >= comparison
        except TypeError:
            return False

    @staticmethod
    def _member(value: Any, candidate: Any) -> bool:
        if isinstance(value, list):
            return candidate in value
        return value == candidate

    @staticmethod
    def _array_contains(value: Any, comparison: Any) -> bool:
        if not isinstance(value, list):
            return False
        if isinstance(comparison, list):
            return all(item in value for item in comparison)
        return comparison in value

    @staticmethod
    def _between(value: Any, comparison: Any) -> bool:
        if not isinstance(comparison, list | tuple) or len(comparison) != 2:
            raise ConfigurationError(f"Between needs a [low, high] pair, got {comparison!r}")
        low, high = comparison
        if value is None:
            return False
        try:
            return low <= value <= high
        except TypeError:
            return False
