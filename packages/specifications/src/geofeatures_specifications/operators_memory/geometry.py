"""
Geometry operators for in-memory evaluation.

Uses `Shapely <https://shapely.readthedocs.io/>`_ for geometry
predicates.  Field values may be Shapely geometries (decoded features)
or GeoJSON mappings; condition values are any literal accepted by
:func:`~geofeatures_specifications.geometry.to_shapely`.
"""

from __future__ import annotations

from typing import Any

from ..evaluator import MemoryOperator
from ..geometry import Envelope, to_shapely
from ..operators import FilterOperator


class _PredicateOperator(MemoryOperator):
    """Applies one binary Shapely predicate: ``field.<predicate>(condition)``."""

    operator: FilterOperator
    predicate: str

    @property
    def name(self) -> FilterOperator:
        return self.operator

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        geom = to_shapely(field_value)
        return bool(getattr(geom, self.predicate)(to_shapely(condition_value)))


class IntersectsOperator(_PredicateOperator):
    """Check if geometries intersect."""

    operator = FilterOperator.INTERSECTS
    predicate = "intersects"


class WithinOperator(_PredicateOperator):
    """Check if field geometry is within the query geometry."""

    operator = FilterOperator.WITHIN
    predicate = "within"


class ContainsGeomOperator(_PredicateOperator):
    """Check if field geometry contains the query geometry."""

    operator = FilterOperator.CONTAINS_GEOM
    predicate = "contains"


class TouchesOperator(_PredicateOperator):
    operator = FilterOperator.TOUCHES
    predicate = "touches"


class CrossesOperator(_PredicateOperator):
    operator = FilterOperator.CROSSES
    predicate = "crosses"


class OverlapsOperator(_PredicateOperator):
    operator = FilterOperator.OVERLAPS
    predicate = "overlaps"


class DisjointOperator(_PredicateOperator):
    """Check if geometries are disjoint.  A missing geometry is not disjoint."""

    operator = FilterOperator.DISJOINT
    predicate = "disjoint"


class GeomEqualsOperator(_PredicateOperator):
    operator = FilterOperator.GEOM_EQUALS
    predicate = "equals"


class BboxOperator(MemoryOperator):
    """
    Check if the field geometry intersects an envelope.

    Expects ``condition_value`` to be an ``Envelope`` or
    ``(minx, miny, maxx, maxy)``.
    """

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.BBOX

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        envelope = Envelope.coerce(condition_value)
        return bool(to_shapely(field_value).intersects(envelope.to_shapely()))


class DWithinOperator(MemoryOperator):
    """
    Check if geometries are within a given distance.

    Expects ``condition_value = (geometry, distance)``.
    Distance is in the same units as the coordinate system.
    """

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.DWITHIN

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        geom, distance = condition_value
        return bool(to_shapely(field_value).distance(to_shapely(geom)) <= distance)
