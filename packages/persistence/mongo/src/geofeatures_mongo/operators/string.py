"""String operators -> anchored $regex with $options."""

from __future__ import annotations

import re
from typing import Any

from geofeatures_core.exceptions import FilterTranslationError
from geofeatures_specifications.operators import FilterOperator
from geofeatures_specifications.utils import like_to_regex

_STRING_OPS = frozenset(
    {
        FilterOperator.LIKE,
        FilterOperator.NOT_LIKE,
        FilterOperator.ILIKE,
        FilterOperator.CONTAINS,
        FilterOperator.STARTSWITH,
        FilterOperator.ENDSWITH,
        FilterOperator.REGEX,
        FilterOperator.IREGEX,
    }
)


def compile_string(field: str, op: FilterOperator, val: Any) -> dict[str, Any] | None:
    """Compile string operators to MongoDB $regex. Returns None if not a string op."""
    if op not in _STRING_OPS:
        return None
    if not isinstance(val, str):
        raise FilterTranslationError(f"String operator {op.value} requires a string pattern")

    if op in (FilterOperator.LIKE, FilterOperator.ILIKE):
        # "s" lets % and _ match newlines, as in-memory evaluation does
        options = "is" if op is FilterOperator.ILIKE else "s"
        return {field: {"$regex": like_to_regex(val), "$options": options}}
    if op is FilterOperator.NOT_LIKE:
        return {
            field: {
                "$ne": None,
                "$not": {"$regex": like_to_regex(val), "$options": "s"},
            }
        }
    if op is FilterOperator.CONTAINS:
        return {field: {"$regex": re.escape(val)}}
    if op is FilterOperator.STARTSWITH:
        return {field: {"$regex": "^" + re.escape(val)}}
    if op is FilterOperator.ENDSWITH:
        return {field: {"$regex": re.escape(val) + "$"}}
    options = "i" if op is FilterOperator.IREGEX else ""
    return {field: {"$regex": val, "$options": options}}
