"""Declarative models: typed, validated fields composed into registered models."""

from .base import (
    MISSING,
    AnyField,
    BoolField,
    Casing,
    DefaultModelRegistry,
    DictField,
    FieldInstance,
    FieldSpec,
    FloatField,
    IntField,
    ListField,
    ModelInstance,
    ModelManager,
    ModelQueryMode,
    ModelRegistry,
    ModelSpec,
    RegistryOptions,
    RegistryProvider,
    StringField,
    default_provider,
    field_factory,
    model_factory,
)
from .config import Settings, get_settings
from .exceptions import (
    CacheCapacityError,
    ConfigurationError,
    DuplicateModelError,
    DuplicateRegistrationError,
    InstanceNotFoundError,
    InstanceValidationError,
    ModelKitError,
)
from .filter import FilterCondition, FilterOperator, FilterUtils

__version__ = "0.1.0"

__all__ = [
    "MISSING",
    "AnyField",
    "BoolField",
    "CacheCapacityError",
    "Casing",
    "ConfigurationError",
    "DefaultModelRegistry",
    "DictField",
    "DuplicateModelError",
    "DuplicateRegistrationError",
    "FieldInstance",
    "FieldSpec",
    "FilterCondition",
    "FilterOperator",
    "FilterUtils",
    "FloatField",
    "InstanceNotFoundError",
    "InstanceValidationError",
    "IntField",
    "ListField",
    "ModelInstance",
    "ModelKitError",
    "ModelManager",
    "ModelQueryMode",
    "ModelRegistry",
    "ModelSpec",
    "RegistryOptions",
    "RegistryProvider",
    "Settings",
    "StringField",
    "default_provider",
    "field_factory",
    "get_settings",
    "model_factory",
]
