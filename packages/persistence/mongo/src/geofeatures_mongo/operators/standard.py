"""Standard comparison operators for MongoDB query compilation."""

from __future__ import annotations

from typing import Any

from geofeatures_core.exceptions import FilterTranslationError
from geofeatures_specifications.operators import FilterOperator
from geofeatures_specifications.utils import parse_list_value

COMPARISON_OPS: dict[FilterOperator, str] = {
    FilterOperator.EQ: "$eq",
    FilterOperator.NE: "$ne",
    FilterOperator.GT: "$gt",
    FilterOperator.GE: "$gte",
    FilterOperator.LT: "$lt",
    FilterOperator.LE: "$lte",
}


def compile_standard(field: str, op: FilterOperator, val: Any) -> dict[str, Any] | None:
    """Compile comparison, set and range operators to MongoDB query fragments."""
    mongo_op = COMPARISON_OPS.get(op)
    if mongo_op:
        return {field: {mongo_op: val}}

    if op is FilterOperator.IN:
        return {field: {"$in": parse_list_value(val)}}
    if op is FilterOperator.NOT_IN:
        return {field: {"$nin": parse_list_value(val)}}

    if op is FilterOperator.BETWEEN:
        lo, hi = validate_range_operand(val, op_name="between")
        return {field: {"$gte": lo, "$lte": hi}}

    if op is FilterOperator.NOT_BETWEEN:
        lo, hi = validate_range_operand(val, op_name="not_between")
        return {"$or": [{field: {"$lt": lo}}, {field: {"$gt": hi}}]}

    return None


def validate_range_operand(val: Any, *, op_name: str) -> tuple[Any, Any]:
    if not isinstance(val, list | tuple) or len(val) != 2:
        raise FilterTranslationError(f"{op_name} requires a list of two values")
    return val[0], val[1]
