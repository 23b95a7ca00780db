from __future__ import annotations

from enum import StrEnum


class FilterOperator(StrEnum):
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    GT = "gt"
    LTE = "lte"
    GTE = "gte"
    IN = "in"  # value in a list
    NIN = "nin"
    INA = "ina"  # list value contains the comparison value
    NINA = "nina"
    CONTAINS = "contains"
    NCONTAINS = "ncontains"
    CONTAINSS = "containss"  # case-insensitive
    NCONTAINSS = "ncontainss"
    BETWEEN = "between"  # inclusive [low, high]
    NBETWEEN = "nbetween"
    NULL = "null"
    NNULL = "nnull"
    STARTS_WITH = "startswith"
    NSTARTS_WITH = "nstartswith"
    STARTS_WITHS = "startswiths"
    NSTARTS_WITHS = "nstartswiths"
    ENDS_WITH = "endswith"
    NENDS_WITH = "nendswith"
    ENDS_WITHS = "endswiths"
    NENDS_WITHS = "nendswiths"
    OR = "or"
    AND = "and"


LOGICAL_OPERATORS = frozenset({FilterOperator.OR, FilterOperator.AND})
