"""The lowered, protocol-native form of a feature query."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from geofeatures_core.feature import FeatureRecord

if TYPE_CHECKING:
    from collections.abc import Sequence

    from geofeatures_core.specification import IFilter


def top_level(path: str) -> str:
    return path.split(".", 1)[0]


def select_paths(value: Any, paths: Sequence[str]) -> Any:
    """
    Keep only the dotted *paths* of a nested mapping.

    Arrays are traversed element-wise as ``$project`` does; a path whose
    parent is not a mapping keeps nothing below it.
    """
    if isinstance(value, list):
        return [select_paths(v, paths) for v in value if isinstance(v, Mapping)]
    nested: dict[str, list[str]] = {}
    for path in paths:
        head, _, rest = path.partition(".")
        nested.setdefault(head, []).append(rest)
    selected: dict[str, Any] = {}
    for name, item in value.items():
        rests = nested.get(name)
        if rests is None:
            continue
        if "" in rests:
            selected[name] = item
        elif isinstance(item, (Mapping, list)):
            selected[name] = select_paths(item, rests)
    return selected


@dataclass(frozen=True)
class RemoteQueryRequest:
    """
    An aggregation request against one collection.

    Attributes:
        collection: Collection holding the layer's documents.
        match: ``$match`` document; ``{}`` matches every document.
        sort: ``(field, 1 | -1)`` pairs in priority order.
        skip: Documents to skip on the server.
        limit: Documents to request; ``None`` requests all.
        projection: Field paths to fetch; ``None`` fetches whole documents.
        output_properties: Attributes returned to the caller; ``None``
            returns all of them.
        residual: Part of the filter the server did not evaluate.
        refinement: Exact predicates the server only approximated.
    """

    collection: str
    match: dict[str, Any] = field(default_factory=dict)
    sort: tuple[tuple[str, int], ...] = ()
    skip: int = 0
    limit: int | None = None
    projection: tuple[str, ...] | None = None
    output_properties: tuple[str, ...] | None = None
    residual: IFilter | None = None
    refinement: IFilter | None = None

    @property
    def post_filters(self) -> tuple[IFilter, ...]:
        """Filters every decoded record must satisfy before it is yielded."""
        return tuple(f for f in (self.residual, self.refinement) if f is not None)

    @property
    def hidden(self) -> frozenset[str]:
        """Attributes fetched only for local evaluation."""
        if self.projection is None or self.output_properties is None:
            return frozenset()
        keep = {top_level(p) for p in self.output_properties}
        return frozenset(top_level(p) for p in self.projection) - keep

    def accepts(self, record: FeatureRecord) -> bool:
        return all(f.is_satisfied_by(record) for f in self.post_filters)

    def shape(self, record: FeatureRecord) -> FeatureRecord:
        """Drop every attribute and nested path the caller did not ask for."""
        if self.output_properties is None:
            return record
        selected = select_paths(record.attributes, self.output_properties)
        if selected == record.attributes:
            return record
        return FeatureRecord(fid=record.fid, layer=record.layer, attributes=selected)

    def _filter_stages(self) -> list[dict[str, Any]]:
        stages: list[dict[str, Any]] = []
        if self.match:
            stages.append({"$match": self.match})
        if self.sort:
            stages.append({"$sort": dict(self.sort)})
        if self.skip:
            stages.append({"$skip": self.skip})
        if self.limit is not None:
            stages.append({"$limit": self.limit})
        return stages

    def pipeline(self) -> list[dict[str, Any]]:
        """Render the aggregation pipeline."""
        stages = self._filter_stages()
        if self.projection is not None:
            project: dict[str, Any] = {"_id": 1}
            project.update(dict.fromkeys(self.projection, 1))
            stages.append({"$project": project})
        return stages

    def count_pipeline(self) -> list[dict[str, Any]]:
        """Pipeline counting the documents ``pipeline()`` would return."""
        stages = [s for s in self._filter_stages() if "$sort" not in s]
        stages.append({"$count": "count"})
        return stages
