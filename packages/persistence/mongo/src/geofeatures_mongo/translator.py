"""
Query translation: lower a ``FeatureQuery`` into a ``RemoteQueryRequest``.

Filters are lowered in two phases.  Every node whose filter types are all
declared in the capability record is compiled to a ``$match`` fragment and
evaluated by the server; everything else becomes the *residual* filter
applied to decoded records.  Geometry predicates MongoDB can only
approximate (contains, overlaps) are sent as a ``$geoIntersects``
pre-filter and kept as a *refinement* re-checked locally.

The pushed-down ``$match`` therefore always matches a superset of what the
full filter accepts; the post filters narrow it back to the exact set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from geofeatures_core.exceptions import FilterTranslationError, UnsupportedSortError
from geofeatures_core.query import FEATURE_ID_PROPERTY
from geofeatures_specifications.ast import AttributeFilter, FeatureIdFilter
from geofeatures_specifications.base import (
    AndFilter,
    ExcludeFilter,
    IncludeFilter,
    NotFilter,
    OrFilter,
    property_names_of,
)
from geofeatures_specifications.expressions import Expression, PropertyName
from geofeatures_specifications.operators import FilterOperator
from geofeatures_specifications.utils import parse_list_value

from .operators import (
    APPROXIMATE_OPERATORS,
    MATCH_NONE,
    compile_arithmetic,
    compile_exclude,
    compile_fid,
    compile_geometry,
    compile_include,
    compile_null,
    compile_standard,
    compile_string,
)
from .request import RemoteQueryRequest

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from geofeatures_core.capabilities import FilterCapabilities, QueryCapabilities
    from geofeatures_core.feature import FeatureType, LayerName
    from geofeatures_core.query import FeatureQuery, SortBy
    from geofeatures_core.specification import IFilter

logger = logging.getLogger("geofeatures.mongo.translator")

_COMPILERS = [
    compile_standard,
    compile_string,
    compile_null,
    compile_geometry,
]


@dataclass(frozen=True)
class FilterLowering:
    """Result of lowering one filter node."""

    match: dict[str, Any]
    residual: IFilter | None = None
    refinement: IFilter | None = None

    @property
    def exact(self) -> bool:
        """Whether ``match`` alone selects exactly what the node accepts."""
        return self.residual is None and self.refinement is None


def _conjoin(filters: Sequence[IFilter]) -> IFilter | None:
    if not filters:
        return None
    if len(filters) == 1:
        return filters[0]
    return AndFilter(*filters)


def _and_match(fragments: Iterable[dict[str, Any]]) -> dict[str, Any]:
    parts = [f for f in fragments if f]
    if not parts:
        return {}
    if len(parts) == 1:
        return parts[0]
    return {"$and": parts}


def _check_field(path: str) -> str:
    if not path or path.startswith("$") or "\x00" in path:
        raise FilterTranslationError(f"Invalid field path {path!r}")
    return path


class _FilterLowerer:
    def __init__(self, capabilities: FilterCapabilities, layer: LayerName) -> None:
        self._capabilities = capabilities
        self._layer = layer

    def lower(self, node: IFilter) -> FilterLowering:
        if not self._capabilities.supports_all(node.filter_types):
            return FilterLowering({}, residual=node)
        if isinstance(node, AndFilter):
            return self._lower_and(node)
        if isinstance(node, OrFilter):
            return self._lower_or(node)
        if isinstance(node, NotFilter):
            return self._lower_not(node)
        if isinstance(node, IncludeFilter):
            return FilterLowering(compile_include())
        if isinstance(node, ExcludeFilter):
            return FilterLowering(compile_exclude())
        if isinstance(node, FeatureIdFilter):
            return FilterLowering(compile_fid(node.ids, self._layer))
        if isinstance(node, AttributeFilter):
            return self._lower_attribute(node)
        # Foreign filter implementations are always evaluated locally
        return FilterLowering({}, residual=node)

    def _lower_and(self, node: AndFilter) -> FilterLowering:
        parts = [self.lower(child) for child in node.filters]
        return FilterLowering(
            _and_match(p.match for p in parts),
            residual=_conjoin([p.residual for p in parts if p.residual is not None]),
            refinement=_conjoin([p.refinement for p in parts if p.refinement is not None]),
        )

    def _lower_or(self, node: OrFilter) -> FilterLowering:
        if not node.filters:
            return FilterLowering(compile_exclude())
        parts = [self.lower(child) for child in node.filters]
        if any(p.residual is not None for p in parts):
            return FilterLowering({}, residual=node)
        refinement = node if any(p.refinement is not None for p in parts) else None
        if any(not p.match for p in parts):
            return FilterLowering({}, refinement=refinement)
        if len(parts) == 1:
            return FilterLowering(parts[0].match, refinement=refinement)
        return FilterLowering({"$or": [p.match for p in parts]}, refinement=refinement)

    def _lower_not(self, node: NotFilter) -> FilterLowering:
        inner = self.lower(node.filter)
        if inner.exact:
            if not inner.match:
                return FilterLowering(dict(MATCH_NONE))
            return FilterLowering({"$nor": [inner.match]})
        if inner.residual is None:
            return FilterLowering({}, refinement=node)
        return FilterLowering({}, residual=node)

    def _lower_attribute(self, node: AttributeFilter) -> FilterLowering:
        fragment = self._compile_attribute(node)
        if fragment is None:
            return FilterLowering({}, residual=node)
        if node.op in APPROXIMATE_OPERATORS:
            return FilterLowering(fragment, refinement=node)
        return FilterLowering(fragment)

    def _compile_attribute(self, node: AttributeFilter) -> dict[str, Any] | None:
        attr = node.attr
        if isinstance(attr, Expression):
            if attr.is_arithmetic:
                return compile_arithmetic(attr, node.op, node.val)
            if not isinstance(attr, PropertyName):
                return None
            attr = attr.name
        if attr == FEATURE_ID_PROPERTY:
            return self._compile_fid_comparison(node)
        field = _check_field(attr)
        for compiler in _COMPILERS:
            result = compiler(field, node.op, node.val)
            if result is not None:
                return result
        return None

    def _compile_fid_comparison(self, node: AttributeFilter) -> dict[str, Any] | None:
        if node.op is FilterOperator.EQ:
            return compile_fid([str(node.val)], self._layer)
        if node.op is FilterOperator.IN:
            return compile_fid([str(v) for v in parse_list_value(node.val)], self._layer)
        return None


def lower_filter(
    filter_: IFilter | None,
    capabilities: FilterCapabilities,
    layer: LayerName,
) -> FilterLowering:
    """
    Split *filter_* into a server-side ``$match`` and local post filters.

    Pure: consults only *capabilities* and never touches the network.

    Raises:
        FilterTranslationError: A pushable node carries a malformed operand.
    """
    if filter_ is None:
        return FilterLowering({})
    return _FilterLowerer(capabilities, layer).lower(filter_)


@dataclass(frozen=True)
class TranslatedQuery:
    request: RemoteQueryRequest
    residual: IFilter | None = None
    refinement: IFilter | None = None


def _is_sortable_path(path: str) -> bool:
    return bool(path) and not path.startswith("$") and "\x00" not in path and all(path.split("."))


def _collapse_paths(paths: Iterable[str]) -> tuple[str, ...]:
    """Drop duplicates and paths nested under another selected path."""
    unique = list(dict.fromkeys(paths))
    return tuple(
        p for p in unique if not any(p != q and p.startswith(q + ".") for q in unique)
    )


class MongoQueryTranslator:
    """Lower feature queries using fixed capability records."""

    def __init__(
        self,
        query_capabilities: QueryCapabilities,
        filter_capabilities: FilterCapabilities,
    ) -> None:
        self._query_capabilities = query_capabilities
        self._filter_capabilities = filter_capabilities

    def translate(
        self,
        query: FeatureQuery,
        layer: LayerName,
        feature_type: FeatureType | None = None,
    ) -> TranslatedQuery:
        """
        Lower *query* against *layer*.

        Raises:
            UnsupportedSortError: A sort key cannot be expressed remotely.
            FilterTranslationError: The filter carries a malformed operand.
        """
        lowering = lower_filter(query.filter, self._filter_capabilities, layer)
        sort = self.lower_sort(query.sort_by, feature_type)
        projection, output = self._lower_projection(
            query.properties,
            [f for f in (lowering.residual, lowering.refinement) if f is not None],
        )
        request = RemoteQueryRequest(
            collection=layer.local_part,
            match=lowering.match,
            sort=sort,
            skip=query.offset or 0,
            limit=query.limit,
            projection=projection,
            output_properties=output,
            residual=lowering.residual,
            refinement=lowering.refinement,
        )
        logger.debug(
            "Lowered query on %s: match=%s residual=%r refinement=%r sort=%s",
            layer.uri,
            request.match,
            request.residual,
            request.refinement,
            request.sort,
        )
        return TranslatedQuery(request, lowering.residual, lowering.refinement)

    def lower_sort(
        self,
        sort_by: Sequence[SortBy],
        feature_type: FeatureType | None = None,
    ) -> tuple[tuple[str, int], ...]:
        if not self._query_capabilities.supports_sorting(sort_by):
            key = next(s for s in sort_by if not s.is_natural)
            raise UnsupportedSortError(str(key), "sorting by attributes is not supported")
        keys: list[tuple[str, int]] = []
        seen: set[str] = set()
        for item in sort_by:
            if item.is_natural:
                if item.descending:
                    raise UnsupportedSortError(str(item), "reverse natural order is not supported")
                continue
            name = item.property_name or ""
            if name == FEATURE_ID_PROPERTY:
                field = "_id"
            elif not _is_sortable_path(name):
                raise UnsupportedSortError(str(item), f"{name!r} is not a sortable field path")
            elif feature_type is not None and feature_type.is_geometry(name):
                raise UnsupportedSortError(str(item), f"{name!r} is a geometry attribute")
            else:
                field = name
            if field in seen:
                continue
            seen.add(field)
            keys.append((field, -1 if item.descending else 1))
        return tuple(keys)

    def _lower_projection(
        self,
        properties: Sequence[str] | None,
        post_filters: Sequence[IFilter],
    ) -> tuple[tuple[str, ...] | None, tuple[str, ...] | None]:
        if properties is None:
            return None, None
        output = tuple(dict.fromkeys(p for p in properties if p != FEATURE_ID_PROPERTY))
        needed = list(output)
        for post_filter in post_filters:
            names = property_names_of(post_filter)
            if names is None:
                # Unknown inputs: fetch whole documents, trim locally
                return None, output
            needed.extend(sorted(names))
        for path in needed:
            _check_field(path)
        return _collapse_paths(needed), output
