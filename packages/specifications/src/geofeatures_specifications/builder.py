"""
Fluent builder for constructing filter trees.

Example::

    flt = (
        FilterBuilder()
        .where("kind", "=", "park")
        .bbox("geom", (0, 0, 10, 10))
        .build()
    )
    # → AND(kind == "park", BBOX(geom, 0 0 10 10))

    flt = (
        FilterBuilder()
        .or_group()
            .where("kind", "=", "park")
            .where("kind", "=", "garden")
        .end_group()
        .where("area", ">", 100)
        .build()
    )
    # → AND(OR(kind == "park", kind == "garden"), area > 100)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .ast import AttributeFilter, FeatureIdFilter
from .base import AndFilter, NotFilter, OrFilter
from .operators import FilterOperator
from .operators_memory import build_default_registry

if TYPE_CHECKING:
    from geofeatures_core.specification import IFilter

    from .evaluator import MemoryOperatorRegistry
    from .expressions import Expression


class FilterBuilder:
    """
    Fluent builder for composing filter trees.

    Conditions added at the same level are combined with AND by default.
    Use ``or_group()`` / ``and_group()`` / ``not_group()`` for explicit
    grouping, and ``end_group()`` to close the current group.
    """

    def __init__(
        self,
        registry: MemoryOperatorRegistry | None = None,
    ) -> None:
        self._registry = registry if registry is not None else build_default_registry()
        self._filters: list[IFilter] = []
        self._stack: list[tuple[str, list[IFilter]]] = []
        # stack items: (group_operator, filters_list)

    # -- leaf conditions -----------------------------------------------------

    def where(
        self,
        attr: str | Expression,
        op: FilterOperator | str,
        val: Any = None,
    ) -> FilterBuilder:
        """Add a single attribute condition to the current group."""
        self._current_list().append(
            AttributeFilter(attr, op, val, registry=self._registry)
        )
        return self

    def bbox(self, attr: str, envelope: Any) -> FilterBuilder:
        """Shortcut for ``where(attr, "bbox", envelope)``."""
        return self.where(attr, FilterOperator.BBOX, envelope)

    def fid(self, *ids: str) -> FilterBuilder:
        """Match features by identifier."""
        self._current_list().append(FeatureIdFilter(ids))
        return self

    def add(self, filter_: IFilter) -> FilterBuilder:
        """Add an already-constructed filter to the current group."""
        self._current_list().append(filter_)
        return self

    # -- grouping ------------------------------------------------------------

    def and_group(self) -> FilterBuilder:
        """Open a new AND group.  Close with ``end_group()``."""
        self._stack.append(("and", []))
        return self

    def or_group(self) -> FilterBuilder:
        """Open a new OR group.  Close with ``end_group()``."""
        self._stack.append(("or", []))
        return self

    def not_group(self) -> FilterBuilder:
        """Open a new NOT group (single child).  Close with ``end_group()``."""
        self._stack.append(("not", []))
        return self

    def end_group(self) -> FilterBuilder:
        """Close the current group and add it to the parent."""
        if not self._stack:
            raise ValueError("No open group to close")
        group_op, filters = self._stack.pop()
        self._current_list().append(_combine(group_op, filters))
        return self

    # -- build ---------------------------------------------------------------

    def build(self) -> IFilter:
        """
        Finalise and return the composed filter.

        If there is a single condition, returns it directly.
        Multiple conditions at the top level are combined with AND.

        Raises:
            ValueError: If groups are still open or no conditions were added.
        """
        if self._stack:
            raise ValueError(
                f"{len(self._stack)} group(s) still open; "
                f"call end_group() before build()"
            )
        if not self._filters:
            raise ValueError("No conditions added to builder")
        return _combine("and", self._filters)

    def reset(self) -> FilterBuilder:
        """Clear all conditions and return ``self`` for reuse."""
        self._filters.clear()
        self._stack.clear()
        return self

    # -- internals -----------------------------------------------------------

    def _current_list(self) -> list[IFilter]:
        if self._stack:
            return self._stack[-1][1]
        return self._filters


def _combine(op: str, filters: list[IFilter]) -> IFilter:
    """Combine a list of filters with the given logical operator."""
    if not filters:
        raise ValueError("Cannot create an empty group")
    if op == "and":
        return filters[0] if len(filters) == 1 else AndFilter(*filters)
    if op == "or":
        return filters[0] if len(filters) == 1 else OrFilter(*filters)
    if op == "not":
        if len(filters) != 1:
            raise ValueError("NOT group must contain exactly one condition")
        return NotFilter(filters[0])
    raise ValueError(f"Unknown group operator: {op}")
