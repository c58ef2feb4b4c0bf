"""MongoDB binding exceptions."""

from __future__ import annotations

from geofeatures_core.exceptions import AuthError, ExecutionError, NetworkError


class MongoAuthError(AuthError):
    """Raised when the server rejects the supplied credentials."""


class MongoConnectionError(NetworkError):
    """Raised when connection to MongoDB fails."""


class MongoQueryError(ExecutionError):
    """Raised when an aggregation fails while opening or reading its cursor."""
