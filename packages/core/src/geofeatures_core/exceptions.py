"""Exception taxonomy shared by every geofeatures package."""

from __future__ import annotations

from typing import Any


class GeoFeaturesError(Exception):
    """Root exception for the entire geofeatures toolkit."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


# ── Data store / infrastructure ───────────────────────────────────────


class DataStoreError(GeoFeaturesError):
    """Base class for errors raised while talking to a remote store."""


class AuthError(DataStoreError):
    """Credential or session failure while opening a connection.

    Fatal for the connection attempt; never retried by this library.
    """


class NetworkError(DataStoreError):
    """Transport failure: unreachable host, timeout, closed handle."""


class ExecutionError(DataStoreError):
    """Transport or remote failure while a query is executing.

    Terminates the in-flight feature stream.
    """


class CatalogError(DataStoreError):
    """Listing the layers of a store failed."""


class DecodeError(DataStoreError):
    """A remote document could not be decoded into a feature record.

    Usage: raised by decoders; ends the feature stream at the offending
    document instead of skipping it, since a bad decode points at a
    schema or version mismatch.
    """

    def __init__(self, message: str, *, document_id: object = None) -> None:
        self.document_id = document_id
        if document_id is not None:
            message = f"{message} (document _id={document_id!r})"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "DECODE_ERROR",
            "message": str(self),
            "document_id": None if self.document_id is None else str(self.document_id),
        }


# ── Translation ───────────────────────────────────────────────────────


class TranslationError(GeoFeaturesError):
    """Base class for failures while lowering a query to a native request.

    Raised before any network traffic takes place.
    """


class UnsupportedSortError(TranslationError):
    """A requested sort key cannot be expressed by the remote store."""

    def __init__(self, sort_key: str | None, reason: str) -> None:
        self.sort_key = sort_key
        self.reason = reason
        super().__init__(f"Cannot sort on {sort_key!r}: {reason}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNSUPPORTED_SORT",
            "sort_key": self.sort_key,
            "reason": self.reason,
        }


class FilterTranslationError(TranslationError):
    """A filter operand is malformed for the remote query language."""


# ── Streams ───────────────────────────────────────────────────────────


class StreamConsumedError(GeoFeaturesError):
    """A forward-only feature stream was consumed a second time."""
