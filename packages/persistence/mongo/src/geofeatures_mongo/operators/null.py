"""Null checks -> $exists, $eq: null."""

from __future__ import annotations

from typing import Any

from geofeatures_specifications.operators import FilterOperator


def compile_null(field: str, op: FilterOperator, _val: Any) -> dict[str, Any] | None:
    """Compile null operators. Returns None if not a null op."""
    if op is FilterOperator.IS_NULL:
        return {"$or": [{field: {"$exists": False}}, {field: {"$eq": None}}]}
    if op is FilterOperator.IS_NOT_NULL:
        return {field: {"$exists": True, "$ne": None}}
    return None
