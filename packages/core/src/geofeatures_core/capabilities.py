"""
Capability records.

A store declares once which query features and which filter types it
can evaluate remotely.  Translators consult these records to decide
what to push down; callers consult them to decide what they must still
evaluate themselves.  Both records are immutable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .query import SortBy


class FilterType(str, Enum):
    """Filter node kinds a store may support."""

    # Logical
    LOGICAL_AND = "and"
    LOGICAL_OR = "or"
    LOGICAL_NOT = "not"

    # Simple comparisons
    COMPARE_EQUALS = "equals"
    COMPARE_NOT_EQUALS = "not_equals"
    COMPARE_GREATER_THAN = "greater_than"
    COMPARE_GREATER_THAN_EQUAL = "greater_than_equal"
    COMPARE_LESS_THAN = "less_than"
    COMPARE_LESS_THAN_EQUAL = "less_than_equal"
    BETWEEN = "between"

    # Other attribute predicates
    LIKE = "like"
    NULL_CHECK = "null_check"
    FID = "fid"
    SIMPLE_ARITHMETIC = "simple_arithmetic"
    SET_MEMBERSHIP = "set_membership"
    REGEX = "regex"

    # Spatial
    SPATIAL_BBOX = "bbox"
    SPATIAL_CONTAINS = "contains"
    SPATIAL_CROSSES = "crosses"
    SPATIAL_DISJOINT = "disjoint"
    SPATIAL_DWITHIN = "dwithin"
    SPATIAL_EQUALS = "geom_equals"
    SPATIAL_INTERSECT = "intersects"
    SPATIAL_OVERLAPS = "overlaps"
    SPATIAL_TOUCHES = "touches"
    SPATIAL_WITHIN = "within"

    # Include / exclude
    NONE = "none"


LOGICAL: frozenset[FilterType] = frozenset(
    {FilterType.LOGICAL_AND, FilterType.LOGICAL_OR, FilterType.LOGICAL_NOT}
)

SIMPLE_COMPARISONS: frozenset[FilterType] = frozenset(
    {
        FilterType.COMPARE_EQUALS,
        FilterType.COMPARE_NOT_EQUALS,
        FilterType.COMPARE_GREATER_THAN,
        FilterType.COMPARE_GREATER_THAN_EQUAL,
        FilterType.COMPARE_LESS_THAN,
        FilterType.COMPARE_LESS_THAN_EQUAL,
        FilterType.BETWEEN,
    }
)

SPATIAL: frozenset[FilterType] = frozenset(
    {
        FilterType.SPATIAL_BBOX,
        FilterType.SPATIAL_CONTAINS,
        FilterType.SPATIAL_CROSSES,
        FilterType.SPATIAL_DISJOINT,
        FilterType.SPATIAL_DWITHIN,
        FilterType.SPATIAL_EQUALS,
        FilterType.SPATIAL_INTERSECT,
        FilterType.SPATIAL_OVERLAPS,
        FilterType.SPATIAL_TOUCHES,
        FilterType.SPATIAL_WITHIN,
    }
)


@dataclass(frozen=True)
class QueryCapabilities:
    """Query-level features a store supports."""

    joining_supported: bool = False
    offset_supported: bool = False
    reliable_fid_supported: bool = False
    use_provided_fid_supported: bool = False
    version_supported: bool = False
    arbitrary_sort_supported: bool = False

    def supports_sorting(self, sort_by: Sequence[SortBy]) -> bool:
        """
        Whether the store can sort by *sort_by*.

        Natural order is always acceptable; any property key requires
        ``arbitrary_sort_supported``.
        """
        if self.arbitrary_sort_supported:
            return True
        return all(s.is_natural for s in sort_by)


@dataclass(frozen=True)
class FilterCapabilities:
    """The set of filter types a store evaluates remotely."""

    types: frozenset[FilterType] = field(default_factory=frozenset)

    def supports(self, filter_type: FilterType) -> bool:
        return filter_type in self.types

    def supports_all(self, filter_types: Iterable[FilterType]) -> bool:
        return all(t in self.types for t in filter_types)

    def with_types(self, *filter_types: FilterType | Iterable[FilterType]) -> FilterCapabilities:
        """Return a copy extended with individual types or groups of types."""
        added: set[FilterType] = set()
        for item in filter_types:
            if isinstance(item, FilterType):
                added.add(item)
            else:
                added.update(item)
        return FilterCapabilities(self.types | added)
