"""
Strategies that evaluate residual and refinement filters on decoded records.

Each module groups one family of ``FilterOperator`` values: comparisons,
set membership, string patterns, null checks and Shapely predicates.
Filters never share a registry implicitly; build one and pass it in::

    registry = build_default_registry()
    AttributeFilter("geom", "within", region, registry=registry)
"""

from __future__ import annotations

from ..evaluator import MemoryOperatorRegistry
from .geometry import (
    BboxOperator,
    ContainsGeomOperator,
    CrossesOperator,
    DisjointOperator,
    DWithinOperator,
    GeomEqualsOperator,
    IntersectsOperator,
    OverlapsOperator,
    TouchesOperator,
    WithinOperator,
)
from .null import IsNotNullOperator, IsNullOperator
from .set import BetweenOperator, InOperator, NotBetweenOperator, NotInOperator
from .standard import (
    EqualOperator,
    GreaterEqualOperator,
    GreaterThanOperator,
    LessEqualOperator,
    LessThanOperator,
    NotEqualOperator,
)
from .string import (
    ContainsOperator,
    EndsWithOperator,
    ILikeOperator,
    IRegexOperator,
    LikeOperator,
    NotLikeOperator,
    RegexOperator,
    StartsWithOperator,
)


def build_default_registry() -> MemoryOperatorRegistry:
    """
    A new registry covering every operator a filter can name.

    Example:
        >>> registry = build_default_registry()
        >>> registry.evaluate(FilterOperator.EQ, "park", "park")
        True
    """
    registry = MemoryOperatorRegistry()
    registry.register_all(
        # Standard comparison
        EqualOperator(),
        NotEqualOperator(),
        GreaterThanOperator(),
        LessThanOperator(),
        GreaterEqualOperator(),
        LessEqualOperator(),
        # Set
        InOperator(),
        NotInOperator(),
        BetweenOperator(),
        NotBetweenOperator(),
        # String
        LikeOperator(),
        NotLikeOperator(),
        ILikeOperator(),
        ContainsOperator(),
        StartsWithOperator(),
        EndsWithOperator(),
        RegexOperator(),
        IRegexOperator(),
        # Null
        IsNullOperator(),
        IsNotNullOperator(),
        # Geometry
        BboxOperator(),
        IntersectsOperator(),
        WithinOperator(),
        ContainsGeomOperator(),
        TouchesOperator(),
        CrossesOperator(),
        OverlapsOperator(),
        DisjointOperator(),
        GeomEqualsOperator(),
        DWithinOperator(),
    )
    return registry


__all__ = [
    "MemoryOperatorRegistry",
    "build_default_registry",
]
