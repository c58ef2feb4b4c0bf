"""
MongoFeatureStore: exposes the collections of one database as feature layers.

The store wires a shared :class:`MongoConnectionManager` into the catalog
resolver and the executor, owns the capability records and the
translator, and hands out per-layer :class:`MongoFeatureSource` views.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from geofeatures_core.feature import LayerName
from geofeatures_core.query import FeatureQuery

from .capabilities import build_filter_capabilities, build_query_capabilities
from .catalog import MongoCatalogResolver
from .decoding import MongoFeatureDecoder
from .executor import DEFAULT_BATCH_SIZE, MongoQueryExecutor
from .translator import MongoQueryTranslator, TranslatedQuery

if TYPE_CHECKING:
    from types import TracebackType

    from geofeatures_core.capabilities import FilterCapabilities, QueryCapabilities
    from geofeatures_core.feature import FeatureRecord, FeatureType
    from geofeatures_core.specification import IFilter
    from geofeatures_core.stream import FeatureStream

    from .connection import MongoConnectionManager

logger = logging.getLogger("geofeatures.mongo.datastore")


class MongoFeatureStore:
    """
    Feature access over one MongoDB database.

    Usage::

        store = MongoFeatureStore(connection, "http://example.org/geo")
        names = await store.get_names()
        parks = store.get_feature_source("parks")
        records = await parks.get_features(bbox_filter)
    """

    def __init__(
        self,
        connection: MongoConnectionManager,
        namespace_uri: str | None,
        *,
        catalog_collection: str | None = None,
        strict_catalog: bool = False,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self._connection = connection
        self._namespace_uri = namespace_uri
        self._resolver = MongoCatalogResolver(
            connection,
            namespace_uri,
            catalog_collection=catalog_collection,
            strict=strict_catalog,
        )
        self._executor = MongoQueryExecutor(connection, batch_size=batch_size)
        self._query_capabilities: QueryCapabilities | None = None
        self._filter_capabilities: FilterCapabilities | None = None
        self._translator: MongoQueryTranslator | None = None
        self._names: tuple[LayerName, ...] | None = None
        self._schemas: dict[str, FeatureType] = {}

    @property
    def namespace_uri(self) -> str | None:
        return self._namespace_uri

    @property
    def connection(self) -> MongoConnectionManager:
        return self._connection

    # -- catalog ------------------------------------------------------------

    async def list_layer_names(self) -> list[LayerName]:
        """Look up the layers now; an empty list may mean the lookup failed."""
        return await self._resolver.list_layer_names()

    async def get_names(self) -> list[LayerName]:
        """Layer names, cached once a non-empty listing has been obtained."""
        if self._names is None:
            names = await self.list_layer_names()
            if not names:
                return []
            self._names = tuple(names)
        return list(self._names)

    async def get_type_names(self) -> list[str]:
        return [name.local_part for name in await self.get_names()]

    def layer_name(self, type_name: str) -> LayerName:
        return LayerName(self._namespace_uri, type_name)

    # -- schemas ------------------------------------------------------------

    def register_schema(self, feature_type: FeatureType) -> None:
        """Attach an externally supplied schema to the layer of the same name."""
        self._schemas[feature_type.name] = feature_type

    def get_schema(self, type_name: str) -> FeatureType | None:
        return self._schemas.get(type_name)

    # -- capabilities -------------------------------------------------------

    def query_capabilities(self) -> QueryCapabilities:
        if self._query_capabilities is None:
            self._query_capabilities = build_query_capabilities()
        return self._query_capabilities

    def filter_capabilities(self) -> FilterCapabilities:
        if self._filter_capabilities is None:
            self._filter_capabilities = build_filter_capabilities()
        return self._filter_capabilities

    @property
    def translator(self) -> MongoQueryTranslator:
        if self._translator is None:
            self._translator = MongoQueryTranslator(
                self.query_capabilities(), self.filter_capabilities()
            )
        return self._translator

    # -- queries ------------------------------------------------------------

    def translate(self, query: FeatureQuery) -> TranslatedQuery:
        return self.translator.translate(
            query, self.layer_name(query.type_name), self.get_schema(query.type_name)
        )

    def execute(self, query: FeatureQuery) -> FeatureStream[FeatureRecord]:
        """
        Run *query* and return its lazy result stream.

        Translation happens here, so translation errors are raised before
        any request reaches the server.

        Raises:
            UnsupportedSortError: A sort key cannot be expressed remotely.
            FilterTranslationError: The filter carries a malformed operand.
        """
        translated = self.translate(query)
        decoder = MongoFeatureDecoder(
            self.layer_name(query.type_name), self.get_schema(query.type_name)
        )
        return self._executor.execute(translated.request, decoder)

    async def count(self, query: FeatureQuery) -> int:
        """Number of features *query* returns."""
        translated = self.translate(query)
        if not translated.request.post_filters:
            return await self._executor.count(translated.request)
        decoder = MongoFeatureDecoder(
            self.layer_name(query.type_name), self.get_schema(query.type_name)
        )
        total = 0
        async with self._executor.execute(translated.request, decoder) as records:
            async for _ in records:
                total += 1
        return total

    def get_feature_source(self, type_name: str) -> MongoFeatureSource:
        logger.info("Creating feature source for %s", self.layer_name(type_name).uri)
        return MongoFeatureSource(self, type_name)

    # -- lifecycle ----------------------------------------------------------

    def close(self) -> None:
        self._connection.close()

    async def __aenter__(self) -> MongoFeatureStore:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class MongoFeatureSource:
    """Read-only view of one layer of a :class:`MongoFeatureStore`."""

    def __init__(self, store: MongoFeatureStore, type_name: str) -> None:
        self._store = store
        self._type_name = type_name

    @property
    def name(self) -> LayerName:
        return self._store.layer_name(self._type_name)

    @property
    def schema(self) -> FeatureType | None:
        return self._store.get_schema(self._type_name)

    def _query(self, query_or_filter: FeatureQuery | IFilter | None) -> FeatureQuery:
        if query_or_filter is None:
            return FeatureQuery.all(self._type_name)
        if isinstance(query_or_filter, FeatureQuery):
            if query_or_filter.type_name != self._type_name:
                raise ValueError(
                    f"Query targets {query_or_filter.type_name!r}, "
                    f"not {self._type_name!r}"
                )
            return query_or_filter
        return FeatureQuery(self._type_name, filter=query_or_filter)

    def get_features(
        self, query_or_filter: FeatureQuery | IFilter | None = None
    ) -> FeatureStream[FeatureRecord]:
        return self._store.execute(self._query(query_or_filter))

    async def get_count(self, query_or_filter: FeatureQuery | IFilter | None = None) -> int:
        return await self._store.count(self._query(query_or_filter))

    def __repr__(self) -> str:
        return f"MongoFeatureSource({self.name.uri!r})"
