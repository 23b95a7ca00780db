"""Record filtering by field comparisons."""

from .core import ComparisonOptions, FilterCondition, FilterUtils, coerce_comparison_value, type_tag
from .operators import LOGICAL_OPERATORS, FilterOperator

__all__ = [
    "LOGICAL_OPERATORS",
    "ComparisonOptions",
    "FilterCondition",
    "FilterOperator",
    "FilterUtils",
    "coerce_comparison_value",
    "type_tag",
]
