"""Run lowered requests and stream decoded, post-filtered feature records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pymongo.errors import PyMongoError

from geofeatures_core.stream import FeatureStream

from .exceptions import MongoQueryError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from geofeatures_core.feature import FeatureRecord

    from .connection import MongoConnectionManager
    from .decoding import MongoFeatureDecoder
    from .request import RemoteQueryRequest

logger = logging.getLogger("geofeatures.mongo.executor")

DEFAULT_BATCH_SIZE = 100


class MongoQueryExecutor:
    """
    Send aggregation requests over a shared connection.

    Results are never buffered beyond one server batch.  The server cursor
    is closed when the stream is exhausted, fails, or is closed early.
    """

    def __init__(
        self,
        connection: MongoConnectionManager,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be > 0, got {batch_size}")
        self._connection = connection
        self._batch_size = batch_size

    def execute(
        self,
        request: RemoteQueryRequest,
        decoder: MongoFeatureDecoder,
    ) -> FeatureStream[FeatureRecord]:
        """Return a lazy stream; nothing is sent until it is consumed."""
        return FeatureStream(lambda: self._iterate(request, decoder))

    async def _iterate(
        self,
        request: RemoteQueryRequest,
        decoder: MongoFeatureDecoder,
    ) -> AsyncGenerator[FeatureRecord, None]:
        if request.limit == 0:
            return
        pipeline = request.pipeline()
        logger.debug("Aggregating on %s: %s", request.collection, pipeline)
        collection = self._connection.get_collection(request.collection)
        try:
            cursor = collection.aggregate(pipeline, batchSize=self._batch_size)
        except PyMongoError as e:
            raise MongoQueryError(f"Query on {request.collection!r} failed: {e}") from e

        yielded = dropped = 0
        try:
            async for document in cursor:
                record = decoder.decode(document)
                if not request.accepts(record):
                    dropped += 1
                    continue
                yielded += 1
                yield request.shape(record)
        except PyMongoError as e:
            raise MongoQueryError(f"Query on {request.collection!r} failed: {e}") from e
        finally:
            await cursor.close()
            logger.debug(
                "Closed cursor on %s (%d yielded, %d rejected locally)",
                request.collection,
                yielded,
                dropped,
            )

    async def count(self, request: RemoteQueryRequest) -> int:
        """Count matching documents on the server with a ``$count`` stage."""
        if request.limit == 0:
            return 0
        pipeline = request.count_pipeline()
        logger.debug("Counting on %s: %s", request.collection, pipeline)
        collection = self._connection.get_collection(request.collection)
        try:
            cursor = collection.aggregate(pipeline)
            documents: list[dict[str, Any]] = await cursor.to_list(length=1)
        except PyMongoError as e:
            raise MongoQueryError(f"Count on {request.collection!r} failed: {e}") from e
        return int(documents[0]["count"]) if documents else 0
