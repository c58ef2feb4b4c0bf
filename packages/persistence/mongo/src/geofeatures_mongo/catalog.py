"""Layer catalog: which collections of the database are exposed as layers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pymongo.errors import PyMongoError

from geofeatures_core.exceptions import CatalogError, NetworkError
from geofeatures_core.feature import LayerName

if TYPE_CHECKING:
    from .connection import MongoConnectionManager

logger = logging.getLogger("geofeatures.mongo.catalog")


class MongoCatalogResolver:
    """
    Resolve the layer names a store exposes.

    Without a ``catalog_collection`` every collection of the database is
    a layer, except ``system.*`` collections.  With one, the ``name``
    field of each document in that collection lists the layers.

    ``list_layer_names()`` degrades to an empty list when the lookup
    fails, logging the error; pass ``strict=True`` to propagate
    :class:`CatalogError` instead.  ``resolve()`` always raises.
    """

    def __init__(
        self,
        connection: MongoConnectionManager,
        namespace_uri: str | None,
        *,
        catalog_collection: str | None = None,
        strict: bool = False,
    ) -> None:
        self._connection = connection
        self._namespace_uri = namespace_uri
        self._catalog_collection = catalog_collection
        self._strict = strict

    @property
    def strict(self) -> bool:
        return self._strict

    async def resolve(self) -> list[LayerName]:
        """Look up layer names, sorted by local name.

        Raises:
            CatalogError: The database could not be listed.
        """
        try:
            if self._catalog_collection:
                raw = await self._registered_names()
            else:
                raw = await self._connection.database.list_collection_names()
        except (PyMongoError, NetworkError) as e:
            raise CatalogError(f"Listing layers failed: {e}") from e

        names = sorted(
            {n for n in raw if n and not n.startswith("system.") and n != self._catalog_collection}
        )
        return [LayerName(self._namespace_uri, n) for n in names]

    async def _registered_names(self) -> list[str]:
        coll = self._connection.get_collection(self._catalog_collection or "")
        cursor = coll.find({}, {"name": 1})
        return [doc["name"] async for doc in cursor if isinstance(doc.get("name"), str)]

    async def list_layer_names(self) -> list[LayerName]:
        try:
            return await self.resolve()
        except CatalogError:
            if self._strict:
                raise
            logger.exception("Could not list layers; reporting none")
            return []
