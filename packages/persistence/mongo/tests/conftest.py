"""Test configuration for the MongoDB feature store.

MongoDB is replaced by mongomock-motor behind thin wrappers shaped like the
parts of Motor the store uses, with hooks for failure injection.  mongomock
does not evaluate geospatial query operators, so ``$geoIntersects`` and
``$geoWithin`` clauses are checked here with Shapely (planar geometry).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from bson import ObjectId
from mongomock.aggregate import process_pipeline
from mongomock.filtering import filter_applies
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import ConfigurationError
from shapely.geometry import box, mapping, shape

from geofeatures_core.feature import LayerName
from geofeatures_mongo.connection import MongoConnectionManager
from geofeatures_mongo.datastore import MongoFeatureStore
from geofeatures_specifications.operators_memory import build_default_registry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

NAMESPACE = "http://example.org/geo"

_GEO_OPERATORS = ("$geoIntersects", "$geoWithin")

RIVERSIDE_ID = ObjectId("65a000000000000000000001")
HILLTOP_ID = ObjectId("65a000000000000000000002")
HARBOUR_ID = ObjectId("65a000000000000000000003")


def _lookup(document: dict[str, Any], path: str) -> Any:
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _geo_matches(path: str, condition: dict[str, Any], document: dict[str, Any]) -> bool:
    value = _lookup(document, path)
    if not isinstance(value, dict):
        return False
    geometry = shape(value)
    for operator, operand in condition.items():
        literal = shape(operand["$geometry"])
        if operator == "$geoIntersects" and not geometry.intersects(literal):
            return False
        if operator == "$geoWithin" and not literal.covers(geometry):
            return False
    return True


def matches(query: dict[str, Any], document: dict[str, Any]) -> bool:
    """Evaluate a ``$match`` document, including geospatial clauses."""
    for key, value in query.items():
        if key == "$and":
            ok = all(matches(q, document) for q in value)
        elif key == "$or":
            ok = any(matches(q, document) for q in value)
        elif key == "$nor":
            ok = not any(matches(q, document) for q in value)
        elif isinstance(value, dict) and any(op in value for op in _GEO_OPERATORS):
            ok = _geo_matches(key, value, document)
        else:
            ok = filter_applies({key: value}, document)
        if not ok:
            return False
    return True


class FakeCursor:
    """
    Async cursor that loads its documents on first iteration.

    Can be told to fail after a number of documents.
    """

    def __init__(
        self,
        load: Callable[[], Awaitable[list[dict[str, Any]]]],
        *,
        fail_after: int | None = None,
        error: Exception | None = None,
    ) -> None:
        self._load = load
        self._documents: list[dict[str, Any]] | None = None
        self._position = 0
        self._fail_after = fail_after
        self._error = error
        self.closed = False
        self.fetched = 0

    def __aiter__(self) -> FakeCursor:
        return self

    async def __anext__(self) -> dict[str, Any]:
        if self._documents is None:
            self._documents = await self._load()
        if self._fail_after is not None and self._position >= self._fail_after:
            assert self._error is not None
            raise self._error
        if self._position >= len(self._documents):
            raise StopAsyncIteration
        document = self._documents[self._position]
        self._position += 1
        self.fetched += 1
        return document

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        items = []
        async for document in self:
            items.append(document)
            if length is not None and len(items) >= length:
                break
        return items

    async def close(self) -> None:
        self.closed = True


class FakeCollection:
    """mongomock-motor collection whose aggregations understand geo ``$match``."""

    def __init__(self, client: FakeMotorClient, name: str, collection: Any) -> None:
        self._client = client
        self.name = name
        self._collection = collection

    async def insert_many(self, documents: list[dict[str, Any]]) -> None:
        await self._collection.insert_many(documents)

    def aggregate(self, pipeline: list[dict[str, Any]], **kwargs: Any) -> FakeCursor:
        self._client.aggregate_calls.append((self.name, pipeline, kwargs))

        async def load() -> list[dict[str, Any]]:
            documents = await self._collection.find({}).to_list(None)
            stages = list(pipeline)
            while stages and "$match" in stages[0]:
                query = stages.pop(0)["$match"]
                documents = [d for d in documents if matches(query, d)]
            if stages:
                documents = list(process_pipeline(documents, None, stages, None))
            return documents

        cursor = FakeCursor(
            load,
            fail_after=self._client.fail_cursor_after,
            error=self._client.cursor_error,
        )
        self._client.cursors.append(cursor)
        return cursor

    def find(self, query: dict[str, Any] | None = None, projection: Any = None) -> Any:
        if self._client.list_error is not None:
            raise self._client.list_error
        return self._collection.find(query or {}, projection)


class FakeDatabase:
    def __init__(self, client: FakeMotorClient, name: str) -> None:
        self._client = client
        self.name = name
        self._database = client.backend[name]

    def __getitem__(self, name: str) -> FakeCollection:
        return FakeCollection(self._client, name, self._database[name])

    async def list_collection_names(self) -> list[str]:
        if self._client.list_error is not None:
            raise self._client.list_error
        return await self._database.list_collection_names()


class FakeAdmin:
    def __init__(self, client: FakeMotorClient) -> None:
        self._client = client

    async def command(self, name: str) -> dict[str, Any]:
        self._client.commands.append(name)
        if self._client.ping_error is not None:
            raise self._client.ping_error
        return {"ok": 1}


class FakeMotorClient:
    """
    ``AsyncMongoMockClient`` behind the subset of ``AsyncIOMotorClient``
    the store relies on, with hooks for failure injection.
    """

    def __init__(self) -> None:
        self.backend = AsyncMongoMockClient()
        self.admin = FakeAdmin(self)
        self.url: str | None = None
        self.options: dict[str, Any] = {}
        self.closed = False
        self.default_database_name: str | None = None
        self.commands: list[str] = []
        self.aggregate_calls: list[tuple[str, list[dict[str, Any]], dict[str, Any]]] = []
        self.cursors: list[FakeCursor] = []
        self.ping_error: Exception | None = None
        self.list_error: Exception | None = None
        self.cursor_error: Exception | None = None
        self.fail_cursor_after: int | None = None

    def __getitem__(self, name: str) -> FakeDatabase:
        return FakeDatabase(self, name)

    def get_default_database(self) -> FakeDatabase:
        if self.default_database_name is None:
            raise ConfigurationError("No default database name defined or provided.")
        return self[self.default_database_name]

    def close(self) -> None:
        self.closed = True

    def factory(self, url: str, **options: Any) -> FakeMotorClient:
        """Stand-in for the Motor client constructor."""
        self.url = url
        self.options = options
        return self


@pytest.fixture
def fake_client() -> FakeMotorClient:
    return FakeMotorClient()


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def layer() -> LayerName:
    return LayerName(NAMESPACE, "parks")


@pytest.fixture
def park_documents() -> list[dict[str, Any]]:
    return [
        {
            "_id": RIVERSIDE_ID,
            "name": "Riverside",
            "kind": "park",
            "area": 40,
            "address": {"city": "Springfield"},
            "geom": dict(mapping(box(1, 1, 4, 4))),
        },
        {
            "_id": HILLTOP_ID,
            "name": "Hilltop",
            "kind": "garden",
            "area": 12.5,
            "address": {"city": "Shelbyville"},
            "geom": dict(mapping(box(20, 20, 25, 25))),
        },
        {
            "_id": HARBOUR_ID,
            "name": "Harbour",
            "kind": "park",
            "area": 7,
            "address": {"city": "Springfield"},
            "geom": {"type": "Point", "coordinates": [-30.0, -30.0]},
        },
    ]


@pytest.fixture
async def connection(fake_client: FakeMotorClient, park_documents) -> MongoConnectionManager:
    await fake_client["geo"]["parks"].insert_many(park_documents)
    await fake_client["geo"]["rivers"].insert_many(
        [
            {
                "_id": 1,
                "name": "Long River",
                "geom": {"type": "LineString", "coordinates": [[0, 0], [5, 5]]},
            }
        ]
    )
    return await MongoConnectionManager.open(
        "localhost", 27017, None, "geo", client_factory=fake_client.factory
    )


@pytest.fixture
def store(connection: MongoConnectionManager) -> MongoFeatureStore:
    return MongoFeatureStore(connection, NAMESPACE)
