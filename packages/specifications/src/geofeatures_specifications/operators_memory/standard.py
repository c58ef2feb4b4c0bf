"""Standard comparison operators: =, !=, >, <, >=, <=."""

from __future__ import annotations

from typing import Any

from ..evaluator import MemoryOperator
from ..operators import FilterOperator


def _ordered(field_value: Any, condition_value: Any, compare: Any) -> bool:
    # Missing values and incomparable types never satisfy an ordering.
    if field_value is None:
        return False
    try:
        return bool(compare(field_value, condition_value))
    except TypeError:
        return False


class EqualOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.EQ

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return bool(field_value == condition_value)


class NotEqualOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NE

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return bool(field_value != condition_value)


class GreaterThanOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.GT

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return _ordered(field_value, condition_value, lambda a, b: a > b)


class LessThanOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.LT

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return _ordered(field_value, condition_value, lambda a, b: a < b)


class GreaterEqualOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.GE

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return _ordered(field_value, condition_value, lambda a, b: a >= b)


class LessEqualOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.LE

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        return _ordered(field_value, condition_value, lambda a, b: a <= b)
