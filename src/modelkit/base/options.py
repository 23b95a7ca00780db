"""Field option layering.

Options reach a field from four places, weakest first: the built-in
defaults below, the field factory, the field definition inside a model and
the per-call overrides given to ``validate`` or to a model instantiation.
Later layers replace same-named keys of earlier ones (shallow merge).
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any, Final, TypedDict


class _Missing:
    """Marker for an absent value, distinct from an explicit ``None``."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


class FieldOptions(TypedDict, total=False):
    name: str
    required: bool
    read_only: bool
    nullable: bool
    default: Any
    display_name: str
    validators: list[Callable[[Any], Any]]
    order: int
    hidden: bool
    visually_hidden: bool
    compute: Callable[[dict[str, Any]], Any]


OPTION_DEFAULTS: Final[Mapping[str, Any]] = {
    "required": True,
    "read_only": False,
    "nullable": False,
    "hidden": False,
    "visually_hidden": False,
    "validators": (),
}


def merge_options(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Shallow-merge option layers left to right, skipping empty layers."""
    merged: dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


def resolve_options(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Resolve the options a validation call runs with.

    Starts from ``OPTION_DEFAULTS`` and applies each layer in order. A key
    counts as set when it is present with a value other than ``None``, so an
    explicit ``required=False`` survives. ``name`` never takes part in
    validation and is dropped.
    """
    resolved = dict(OPTION_DEFAULTS)
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if value is not None:
                resolved[key] = value
    resolved.pop("name", None)
    return resolved


def display_options(
    options: Mapping[str, Any],
    name: str | None,
    *,
    null_default: bool = False,
) -> dict[str, Any]:
    """Build the option attributes exposed on a field or field instance.

    Falsy values fall back to the defaults (``required`` therefore always
    reads ``True`` here). Existing callers depend on this; validation uses
    :func:`resolve_options` and honours explicit falsy values.
    """
    default = options.get("default")
    return {
        "required": options.get("required") or True,
        "read_only": options.get("read_only") or False,
        "nullable": options.get("nullable") or False,
        "default": (default or None) if null_default else default,
        "display_name": options.get("display_name") or capital_case(name or ""),
        "validators": list(options.get("validators") or []),
        "order": options.get("order"),
        "hidden": options.get("hidden") or False,
        "visually_hidden": options.get("visually_hidden") or False,
        "compute": options.get("compute"),
    }


def resolve_default(default: Any) -> Any:
    """Return the literal default, calling it first when it is a factory."""
    return default() if callable(default) else default


# Casing helpers

_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")


def split_words(value: str) -> list[str]:
    """Split an identifier on case changes and non-alphanumeric runs."""
    spaced = _ACRONYM.sub(r"\1 \2", _LOWER_UPPER.sub(r"\1 \2", value))
    return [word for word in _SEPARATORS.split(spaced) if word]


def capital_case(value: str) -> str:
    """``"display_name"`` -> ``"Display Name"``."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in split_words(value))


def snake_case(value: str) -> str:
    return "_".join(word.lower() for word in split_words(value))


def kebab_case(value: str) -> str:
    return "-".join(word.lower() for word in split_words(value))


def camel_case(value: str) -> str:
    words = split_words(value)
    if not words:
        return ""
    head, *tail = words
    return head.lower() + "".join(word[:1].upper() + word[1:].lower() for word in tail)
