from __future__ import annotations

from enum import Enum

from geofeatures_core.capabilities import FilterType


class FilterOperator(str, Enum):
    """Supported operators for filter nodes."""

    # Standard comparison
    EQ = "="
    NE = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"
    NOT_BETWEEN = "not_between"

    # String operations
    LIKE = "like"
    NOT_LIKE = "not_like"
    ILIKE = "ilike"
    CONTAINS = "contains"
    STARTSWITH = "startswith"
    ENDSWITH = "endswith"
    REGEX = "regex"
    IREGEX = "iregex"

    # Null checks
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"

    # Geometry operations
    BBOX = "bbox"
    INTERSECTS = "intersects"
    WITHIN = "within"
    CONTAINS_GEOM = "contains_geom"
    TOUCHES = "touches"
    CROSSES = "crosses"
    OVERLAPS = "overlaps"
    DISJOINT = "disjoint"
    GEOM_EQUALS = "geom_equals"
    DWITHIN = "dwithin"

    # Identity and no-op filters
    FID = "fid"
    INCLUDE = "include"
    EXCLUDE = "exclude"

    # Logical operators
    AND = "and"
    OR = "or"
    NOT = "not"


#: Operators a leaf ``AttributeFilter`` may carry.
ATTRIBUTE_OPERATORS: frozenset[FilterOperator] = frozenset(
    set(FilterOperator)
    - {
        FilterOperator.FID,
        FilterOperator.INCLUDE,
        FilterOperator.EXCLUDE,
        FilterOperator.AND,
        FilterOperator.OR,
        FilterOperator.NOT,
    }
)

SPATIAL_OPERATORS: frozenset[FilterOperator] = frozenset(
    {
        FilterOperator.BBOX,
        FilterOperator.INTERSECTS,
        FilterOperator.WITHIN,
        FilterOperator.CONTAINS_GEOM,
        FilterOperator.TOUCHES,
        FilterOperator.CROSSES,
        FilterOperator.OVERLAPS,
        FilterOperator.DISJOINT,
        FilterOperator.GEOM_EQUALS,
        FilterOperator.DWITHIN,
    }
)

#: Capabilities a store must declare to evaluate an operator remotely.
OPERATOR_FILTER_TYPES: dict[FilterOperator, frozenset[FilterType]] = {
    FilterOperator.EQ: frozenset({FilterType.COMPARE_EQUALS}),
    FilterOperator.NE: frozenset({FilterType.COMPARE_NOT_EQUALS}),
    FilterOperator.GT: frozenset({FilterType.COMPARE_GREATER_THAN}),
    FilterOperator.LT: frozenset({FilterType.COMPARE_LESS_THAN}),
    FilterOperator.GE: frozenset({FilterType.COMPARE_GREATER_THAN_EQUAL}),
    FilterOperator.LE: frozenset({FilterType.COMPARE_LESS_THAN_EQUAL}),
    FilterOperator.IN: frozenset({FilterType.SET_MEMBERSHIP}),
    FilterOperator.NOT_IN: frozenset({FilterType.SET_MEMBERSHIP}),
    FilterOperator.BETWEEN: frozenset({FilterType.BETWEEN}),
    FilterOperator.NOT_BETWEEN: frozenset({FilterType.BETWEEN, FilterType.LOGICAL_NOT}),
    FilterOperator.LIKE: frozenset({FilterType.LIKE}),
    FilterOperator.NOT_LIKE: frozenset({FilterType.LIKE, FilterType.LOGICAL_NOT}),
    FilterOperator.ILIKE: frozenset({FilterType.LIKE}),
    FilterOperator.CONTAINS: frozenset({FilterType.LIKE}),
    FilterOperator.STARTSWITH: frozenset({FilterType.LIKE}),
    FilterOperator.ENDSWITH: frozenset({FilterType.LIKE}),
    FilterOperator.REGEX: frozenset({FilterType.REGEX}),
    FilterOperator.IREGEX: frozenset({FilterType.REGEX}),
    FilterOperator.IS_NULL: frozenset({FilterType.NULL_CHECK}),
    FilterOperator.IS_NOT_NULL: frozenset({FilterType.NULL_CHECK}),
    FilterOperator.BBOX: frozenset({FilterType.SPATIAL_BBOX}),
    FilterOperator.INTERSECTS: frozenset({FilterType.SPATIAL_INTERSECT}),
    FilterOperator.WITHIN: frozenset({FilterType.SPATIAL_WITHIN}),
    FilterOperator.CONTAINS_GEOM: frozenset({FilterType.SPATIAL_CONTAINS}),
    FilterOperator.TOUCHES: frozenset({FilterType.SPATIAL_TOUCHES}),
    FilterOperator.CROSSES: frozenset({FilterType.SPATIAL_CROSSES}),
    FilterOperator.OVERLAPS: frozenset({FilterType.SPATIAL_OVERLAPS}),
    FilterOperator.DISJOINT: frozenset({FilterType.SPATIAL_DISJOINT}),
    FilterOperator.GEOM_EQUALS: frozenset({FilterType.SPATIAL_EQUALS}),
    FilterOperator.DWITHIN: frozenset({FilterType.SPATIAL_DWITHIN}),
    FilterOperator.FID: frozenset({FilterType.FID}),
    FilterOperator.INCLUDE: frozenset({FilterType.NONE}),
    FilterOperator.EXCLUDE: frozenset({FilterType.NONE}),
    FilterOperator.AND: frozenset({FilterType.LOGICAL_AND}),
    FilterOperator.OR: frozenset({FilterType.LOGICAL_OR}),
    FilterOperator.NOT: frozenset({FilterType.LOGICAL_NOT}),
}
