"""Arithmetic comparisons -> $expr with $add/$subtract/$multiply/$divide."""

from __future__ import annotations

from typing import Any

from geofeatures_core.exceptions import FilterTranslationError
from geofeatures_specifications.expressions import (
    Add,
    Divide,
    Expression,
    Literal,
    Multiply,
    PropertyName,
    Subtract,
)
from geofeatures_specifications.operators import FilterOperator

from .standard import COMPARISON_OPS, validate_range_operand

_AGGREGATION_OPS: dict[type[Expression], str] = {
    Add: "$add",
    Subtract: "$subtract",
    Multiply: "$multiply",
}


def to_aggregation(expr: Expression) -> Any:
    """Render an expression as an aggregation expression."""
    if isinstance(expr, PropertyName):
        if expr.name.startswith("$"):
            raise FilterTranslationError(f"Invalid property name {expr.name!r}")
        return f"${expr.name}"
    if isinstance(expr, Literal):
        return {"$literal": expr.value}
    if isinstance(expr, Divide):
        left, right = to_aggregation(expr.left), to_aggregation(expr.right)
        # Division by zero yields null instead of failing the whole query
        return {"$cond": [{"$eq": [right, 0]}, None, {"$divide": [left, right]}]}
    mongo_op = _AGGREGATION_OPS.get(type(expr))
    if mongo_op is None:
        raise FilterTranslationError(f"Unsupported expression {expr!r}")
    left, right = expr.left, expr.right  # type: ignore[attr-defined]
    return {mongo_op: [to_aggregation(left), to_aggregation(right)]}


def compile_arithmetic(expr: Expression, op: FilterOperator, val: Any) -> dict[str, Any] | None:
    """
    Compile a comparison whose left-hand side is an arithmetic expression.

    Non-numeric results never match, mirroring in-memory evaluation where
    a missing operand yields ``None``.
    """
    agg = to_aggregation(expr)
    mongo_op = COMPARISON_OPS.get(op)
    if mongo_op:
        comparisons = [{mongo_op: [agg, {"$literal": val}]}]
    elif op is FilterOperator.BETWEEN:
        lo, hi = validate_range_operand(val, op_name="between")
        comparisons = [
            {"$gte": [agg, {"$literal": lo}]},
            {"$lte": [agg, {"$literal": hi}]},
        ]
    else:
        return None
    return {"$expr": {"$and": [{"$isNumber": agg}, *comparisons]}}
