"""
Abstract feature queries: filter, projection, sorting and paging.

``FeatureQuery`` wraps a filter with result-shaping parameters.  The
filter defines *what* to match; the query defines *how* results come
back.  Queries are immutable once built; the ``with_*`` helpers return
modified copies.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .specification import IFilter

#: Pseudo property that sorts or selects by feature identifier.
FEATURE_ID_PROPERTY = "@id"


class SortOrder(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class SortBy:
    """
    One sort key.

    ``property_name`` of ``None`` denotes the store's natural order
    (ascending) or its reverse (descending).
    """

    property_name: str | None
    order: SortOrder = SortOrder.ASCENDING

    @classmethod
    def natural(cls) -> SortBy:
        return cls(None, SortOrder.ASCENDING)

    @classmethod
    def reverse_natural(cls) -> SortBy:
        return cls(None, SortOrder.DESCENDING)

    @classmethod
    def parse(cls, text: str) -> SortBy:
        """Parse ``"name"``, ``"+name"`` or ``"-name"``."""
        item = text.strip()
        if item.startswith("-"):
            return cls(item[1:], SortOrder.DESCENDING)
        if item.startswith("+"):
            return cls(item[1:], SortOrder.ASCENDING)
        return cls(item, SortOrder.ASCENDING)

    @property
    def is_natural(self) -> bool:
        return self.property_name is None

    @property
    def descending(self) -> bool:
        return self.order is SortOrder.DESCENDING

    def __str__(self) -> str:
        name = self.property_name or "<natural>"
        return f"-{name}" if self.descending else name


def _coerce_sort(items: Iterable[SortBy | str]) -> tuple[SortBy, ...]:
    return tuple(SortBy.parse(i) if isinstance(i, str) else i for i in items)


@dataclass(frozen=True)
class FeatureQuery:
    """
    Immutable request for features of one layer.

    Attributes:
        type_name: Local name of the target layer.
        filter: Filter tree; ``None`` matches every feature.
        properties: Attributes to return; ``None`` returns all of them.
        sort_by: Ordered sort keys.
        offset: Number of matches to skip.
        limit: Maximum number of matches to request.
    """

    type_name: str
    filter: IFilter | None = None
    properties: tuple[str, ...] | None = None
    sort_by: tuple[SortBy, ...] = field(default_factory=tuple)
    offset: int | None = None
    limit: int | None = None

    def __post_init__(self) -> None:
        if self.offset is not None and self.offset < 0:
            raise ValueError(f"offset must be >= 0, got {self.offset}")
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be >= 0, got {self.limit}")
        if self.properties is not None:
            object.__setattr__(self, "properties", tuple(self.properties))
        object.__setattr__(self, "sort_by", _coerce_sort(self.sort_by))

    @classmethod
    def all(cls, type_name: str) -> FeatureQuery:
        """Every feature, every attribute, natural order."""
        return cls(type_name)

    @property
    def retrieves_all_properties(self) -> bool:
        return self.properties is None

    def with_filter(self, filter_: IFilter | None) -> FeatureQuery:
        return replace(self, filter=filter_)

    def with_pagination(
        self,
        limit: int | None = None,
        offset: int | None = None,
    ) -> FeatureQuery:
        """Return a copy with updated paging; ``None`` keeps the current value."""
        return replace(
            self,
            limit=limit if limit is not None else self.limit,
            offset=offset if offset is not None else self.offset,
        )

    def with_sorting(self, *sort_by: SortBy | str) -> FeatureQuery:
        return replace(self, sort_by=_coerce_sort(sort_by))

    def with_properties(self, *names: str) -> FeatureQuery:
        return replace(self, properties=tuple(names))

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dictionary."""
        result: dict[str, Any] = {"type_name": self.type_name}
        if self.filter is not None:
            result["filter"] = self.filter.to_dict()
        if self.properties is not None:
            result["properties"] = list(self.properties)
        if self.sort_by:
            result["sort_by"] = [str(s) for s in self.sort_by]
        if self.offset is not None:
            result["offset"] = self.offset
        if self.limit is not None:
            result["limit"] = self.limit
        return result
