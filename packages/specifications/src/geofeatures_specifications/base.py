from __future__ import annotations

from typing import Any

from geofeatures_core.capabilities import FilterType
from geofeatures_core.specification import IFilter


class BaseFilter(IFilter):
    """Base class for filters with logic operator support."""

    @property
    def filter_types(self) -> frozenset[FilterType]:
        raise NotImplementedError

    def is_satisfied_by(self, candidate: Any) -> bool:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError

    def property_names(self) -> frozenset[str]:
        """Attribute names this filter reads when evaluated in memory."""
        return frozenset()

    def __and__(self, other: IFilter) -> AndFilter:
        return AndFilter(self, other)

    def __or__(self, other: IFilter) -> OrFilter:
        return OrFilter(self, other)

    def __invert__(self) -> NotFilter:
        return NotFilter(self)

    def merge(self, other: IFilter) -> AndFilter:
        """Merge with another filter using logical AND."""
        return AndFilter(self, other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BaseFilter):
            return NotImplemented
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((type(self).__name__, repr(self.to_dict())))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_dict()!r})"


def property_names_of(filter_: IFilter) -> frozenset[str] | None:
    """Attribute names *filter_* reads, or ``None`` when it cannot say."""
    if not isinstance(filter_, BaseFilter):
        return None
    try:
        return filter_.property_names()
    except LookupError:
        return None


def _union_property_names(filters: tuple[IFilter, ...]) -> frozenset[str]:
    names: set[str] = set()
    for f in filters:
        found = property_names_of(f)
        if found is None:
            raise LookupError(f"Cannot determine properties of {f!r}")
        names.update(found)
    return frozenset(names)


class AndFilter(BaseFilter):
    """Logical AND composite filter."""

    def __init__(self, *filters: IFilter) -> None:
        self.filters = filters

    @property
    def filter_types(self) -> frozenset[FilterType]:
        return frozenset({FilterType.LOGICAL_AND})

    def is_satisfied_by(self, candidate: Any) -> bool:
        return all(f.is_satisfied_by(candidate) for f in self.filters)

    def property_names(self) -> frozenset[str]:
        return _union_property_names(self.filters)

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": "and",
            "conditions": [f.to_dict() for f in self.filters],
        }


class OrFilter(BaseFilter):
    """Logical OR composite filter."""

    def __init__(self, *filters: IFilter) -> None:
        self.filters = filters

    @property
    def filter_types(self) -> frozenset[FilterType]:
        return frozenset({FilterType.LOGICAL_OR})

    def is_satisfied_by(self, candidate: Any) -> bool:
        return any(f.is_satisfied_by(candidate) for f in self.filters)

    def property_names(self) -> frozenset[str]:
        return _union_property_names(self.filters)

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": "or",
            "conditions": [f.to_dict() for f in self.filters],
        }


class NotFilter(BaseFilter):
    """Logical NOT composite filter."""

    def __init__(self, filter_: IFilter) -> None:
        self.filter = filter_

    @property
    def filter_types(self) -> frozenset[FilterType]:
        return frozenset({FilterType.LOGICAL_NOT})

    def is_satisfied_by(self, candidate: Any) -> bool:
        return not self.filter.is_satisfied_by(candidate)

    def property_names(self) -> frozenset[str]:
        return _union_property_names((self.filter,))

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": "not",
            "conditions": [self.filter.to_dict()],
        }


class IncludeFilter(BaseFilter):
    """Matches every candidate."""

    @property
    def filter_types(self) -> frozenset[FilterType]:
        return frozenset({FilterType.NONE})

    def is_satisfied_by(self, candidate: Any) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"op": "include"}


class ExcludeFilter(BaseFilter):
    """Matches no candidate."""

    @property
    def filter_types(self) -> frozenset[FilterType]:
        return frozenset({FilterType.NONE})

    def is_satisfied_by(self, candidate: Any) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"op": "exclude"}


INCLUDE = IncludeFilter()
EXCLUDE = ExcludeFilter()
