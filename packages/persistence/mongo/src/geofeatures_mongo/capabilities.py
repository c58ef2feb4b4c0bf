"""Declared query and filter capabilities of the MongoDB binding.

These records are the contract callers use to decide which filtering
they must still perform themselves.  They are built by pure functions
and never recomputed during translation.
"""

from __future__ import annotations

from geofeatures_core.capabilities import (
    LOGICAL,
    SIMPLE_COMPARISONS,
    FilterCapabilities,
    FilterType,
    QueryCapabilities,
)

MONGO_FILTER_TYPES: frozenset[FilterType] = (
    LOGICAL
    | SIMPLE_COMPARISONS
    | {
        FilterType.FID,
        FilterType.LIKE,
        FilterType.NULL_CHECK,
        FilterType.SIMPLE_ARITHMETIC,
        FilterType.SPATIAL_BBOX,
        FilterType.SPATIAL_CONTAINS,
        FilterType.SPATIAL_DISJOINT,
        FilterType.SPATIAL_INTERSECT,
        FilterType.SPATIAL_OVERLAPS,
        FilterType.SPATIAL_WITHIN,
        FilterType.NONE,
    }
)


def build_query_capabilities() -> QueryCapabilities:
    return QueryCapabilities(
        joining_supported=True,
        offset_supported=True,
        reliable_fid_supported=True,
        use_provided_fid_supported=False,
        version_supported=False,
        arbitrary_sort_supported=True,
    )


def build_filter_capabilities() -> FilterCapabilities:
    return FilterCapabilities(MONGO_FILTER_TYPES)
