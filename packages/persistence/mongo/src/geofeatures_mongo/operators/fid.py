"""Feature identifiers -> ``_id $in``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from bson import ObjectId

if TYPE_CHECKING:
    from collections.abc import Iterable

    from geofeatures_core.feature import LayerName


def document_id_candidates(raw: str) -> list[Any]:
    """Every ``_id`` value whose rendering is *raw*."""
    candidates: list[Any] = [raw]
    if ObjectId.is_valid(raw) and len(raw) == 24:
        candidates.append(ObjectId(raw))
    if raw.isascii() and raw.isdigit() and str(int(raw)) == raw:
        candidates.append(int(raw))
    return candidates


def compile_fid(ids: Iterable[str], layer: LayerName) -> dict[str, Any]:
    """
    Match documents by feature identifier.

    Identifiers have the form ``<layer>.<_id>``; identifiers of other
    layers match nothing.
    """
    prefix = f"{layer.local_part}."
    values: list[Any] = []
    for fid in ids:
        if not fid.startswith(prefix) or len(fid) == len(prefix):
            continue
        for candidate in document_id_candidates(fid[len(prefix):]):
            if candidate not in values:
                values.append(candidate)
    return {"_id": {"$in": values}}
