"""
Local evaluation of attribute operators.

Residual and refinement filters run against decoded feature records
after the store has returned its candidates.  Each attribute operator
is a small strategy object; a registry maps ``FilterOperator`` values
to those strategies and is injected into every filter that needs it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .operators import FilterOperator


class MemoryOperator(ABC):
    """One attribute operator evaluated against a resolved attribute value."""

    @property
    @abstractmethod
    def name(self) -> FilterOperator: ...

    @abstractmethod
    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        """
        Args:
            field_value: Attribute value of the candidate feature; ``None``
                when the attribute is absent.
            condition_value: Operand carried by the filter.
        """


class MemoryOperatorRegistry:
    """
    Operator strategies keyed by ``FilterOperator``.

    Usage::

        registry = MemoryOperatorRegistry()
        registry.register(WithinOperator())
        registry.evaluate(FilterOperator.WITHIN, park_geometry, region)
    """

    def __init__(self) -> None:
        self._operators: dict[FilterOperator, MemoryOperator] = {}

    def register(self, operator: MemoryOperator) -> None:
        """Add *operator*, replacing any strategy for the same name."""
        self._operators[operator.name] = operator

    def register_all(self, *operators: MemoryOperator) -> None:
        for operator in operators:
            self.register(operator)

    def unregister(self, name: FilterOperator) -> None:
        self._operators.pop(name, None)

    def get(self, name: FilterOperator) -> MemoryOperator | None:
        return self._operators.get(name)

    def has(self, name: FilterOperator) -> bool:
        return name in self._operators

    def __iter__(self) -> Iterator[MemoryOperator]:
        return iter(self._operators.values())

    @property
    def supported_operators(self) -> set[FilterOperator]:
        return set(self._operators)

    def evaluate(self, name: FilterOperator, field_value: Any, condition_value: Any) -> bool:
        """
        Raises:
            ValueError: No strategy is registered for *name*.
        """
        operator = self._operators.get(name)
        if operator is None:
            raise ValueError(f"Unsupported operator for local evaluation: {name}")
        return operator.evaluate(field_value, condition_value)
