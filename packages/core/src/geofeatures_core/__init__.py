"""geofeatures-core: shared data model for geospatial feature access.

Layer names, feature records and types, abstract queries, capability
records, lazy feature streams and the exception taxonomy.  No
infrastructure dependencies.
"""

from __future__ import annotations

from .capabilities import (
    LOGICAL,
    SIMPLE_COMPARISONS,
    SPATIAL,
    FilterCapabilities,
    FilterType,
    QueryCapabilities,
)
from .exceptions import (
    AuthError,
    CatalogError,
    DataStoreError,
    DecodeError,
    ExecutionError,
    FilterTranslationError,
    GeoFeaturesError,
    NetworkError,
    StreamConsumedError,
    TranslationError,
    UnsupportedSortError,
)
from .feature import (
    AttributeDescriptor,
    AttributeType,
    FeatureRecord,
    FeatureType,
    LayerName,
)
from .query import FEATURE_ID_PROPERTY, FeatureQuery, SortBy, SortOrder
from .specification import IFilter
from .stream import FeatureStream

__all__ = [
    "FEATURE_ID_PROPERTY",
    "LOGICAL",
    "SIMPLE_COMPARISONS",
    "SPATIAL",
    "AttributeDescriptor",
    "AttributeType",
    "AuthError",
    "CatalogError",
    "DataStoreError",
    "DecodeError",
    "ExecutionError",
    "FeatureQuery",
    "FeatureRecord",
    "FeatureStream",
    "FeatureType",
    "FilterCapabilities",
    "FilterTranslationError",
    "FilterType",
    "GeoFeaturesError",
    "IFilter",
    "LayerName",
    "NetworkError",
    "QueryCapabilities",
    "SortBy",
    "SortOrder",
    "StreamConsumedError",
    "TranslationError",
    "UnsupportedSortError",
]
