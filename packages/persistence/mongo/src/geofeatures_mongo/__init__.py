"""MongoDB feature store.

Exposes the collections of a MongoDB database as queryable feature layers:
catalog lookup, capability declarations, two-phase query translation
(server-side ``$match`` plus local residual filtering), and streamed
decoding into feature records.
"""

from __future__ import annotations

from .capabilities import (
    MONGO_FILTER_TYPES,
    build_filter_capabilities,
    build_query_capabilities,
)
from .catalog import MongoCatalogResolver
from .config import MongoDataStoreParams, create_datastore
from .connection import AuthContext, MongoConnectionManager
from .datastore import MongoFeatureSource, MongoFeatureStore
from .decoding import MongoFeatureDecoder, decode_value
from .exceptions import MongoAuthError, MongoConnectionError, MongoQueryError
from .executor import MongoQueryExecutor
from .request import RemoteQueryRequest
from .translator import (
    FilterLowering,
    MongoQueryTranslator,
    TranslatedQuery,
    lower_filter,
)

__all__ = [
    # Store
    "MongoFeatureStore",
    "MongoFeatureSource",
    "MongoDataStoreParams",
    "create_datastore",
    # Components
    "AuthContext",
    "MongoConnectionManager",
    "MongoCatalogResolver",
    "MongoQueryTranslator",
    "MongoQueryExecutor",
    "MongoFeatureDecoder",
    "RemoteQueryRequest",
    "TranslatedQuery",
    "FilterLowering",
    "lower_filter",
    "decode_value",
    # Capabilities
    "MONGO_FILTER_TYPES",
    "build_filter_capabilities",
    "build_query_capabilities",
    # Exceptions
    "MongoAuthError",
    "MongoConnectionError",
    "MongoQueryError",
]
