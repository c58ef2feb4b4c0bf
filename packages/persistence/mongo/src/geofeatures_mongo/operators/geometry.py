"""Geometry operators -> $geoIntersects, $geoWithin (2dsphere)."""

from __future__ import annotations

from typing import Any

from geofeatures_core.exceptions import FilterTranslationError
from geofeatures_specifications.geometry import Envelope, as_geojson
from geofeatures_specifications.operators import FilterOperator

#: Operators whose MongoDB form matches a superset of the exact predicate.
#: The exact predicate must be re-checked locally.
APPROXIMATE_OPERATORS: frozenset[FilterOperator] = frozenset(
    {FilterOperator.CONTAINS_GEOM, FilterOperator.OVERLAPS}
)


def _geometry_operand(op: FilterOperator, val: Any) -> dict[str, Any]:
    try:
        if op is FilterOperator.BBOX:
            return Envelope.coerce(val).to_geojson()
        return as_geojson(val)
    except ValueError as e:
        raise FilterTranslationError(f"{op.value}: {e}") from e


def compile_geometry(field: str, op: FilterOperator, val: Any) -> dict[str, Any] | None:
    """Compile geometry operators for a 2dsphere index.

    Returns ``None`` when the operator has no MongoDB form.
    """
    if op is FilterOperator.WITHIN:
        return {field: {"$geoWithin": {"$geometry": _geometry_operand(op, val)}}}
    if op in (
        FilterOperator.BBOX,
        FilterOperator.INTERSECTS,
        FilterOperator.CONTAINS_GEOM,
        FilterOperator.OVERLAPS,
    ):
        return {field: {"$geoIntersects": {"$geometry": _geometry_operand(op, val)}}}
    if op is FilterOperator.DISJOINT:
        geometry = _geometry_operand(op, val)
        return {
            "$and": [
                {field: {"$exists": True, "$ne": None}},
                {"$nor": [{field: {"$geoIntersects": {"$geometry": geometry}}}]},
            ]
        }
    return None
