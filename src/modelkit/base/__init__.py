"""Field, model and registry building blocks."""

from .events import Event, EventDirectory, ModelEvents, ModelRegistryEvents
from .fields import (
    AnyField,
    BoolField,
    DictField,
    FieldFactory,
    FieldInstance,
    FieldSpec,
    FloatField,
    IntField,
    ListField,
    StringField,
    field_factory,
    is_valid_field,
)
from .manager import ModelManager, ModelQueryMode
from .model import Casing, ModelInstance, ModelMeta, ModelSpec, model_factory
from .options import MISSING, FieldOptions, merge_options, resolve_options
from .registry import DefaultModelRegistry, ModelRegistry, RegistryOptions, RegistryProvider, default_provider
from .rules import matches, refine

__all__ = [
    "MISSING",
    "AnyField",
    "BoolField",
    "Casing",
    "DefaultModelRegistry",
    "DictField",
    "Event",
    "EventDirectory",
    "FieldFactory",
    "FieldInstance",
    "FieldOptions",
    "FieldSpec",
    "FloatField",
    "IntField",
    "ListField",
    "ModelEvents",
    "ModelInstance",
    "ModelManager",
    "ModelMeta",
    "ModelQueryMode",
    "ModelRegistry",
    "ModelRegistryEvents",
    "ModelSpec",
    "RegistryOptions",
    "RegistryProvider",
    "StringField",
    "default_provider",
    "field_factory",
    "is_valid_field",
    "matches",
    "merge_options",
    "model_factory",
    "refine",
    "resolve_options",
]
