"""
Arithmetic expressions usable as the left-hand side of a comparison.

    AttributeFilter(PropertyName("area") * 2, ">", 100, registry=registry)

Expressions evaluate against a candidate in memory and serialise to
nested dictionaries (``{"add": [{"property": "a"}, {"literal": 1}]}``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar

from geofeatures_core.feature import FeatureRecord
from geofeatures_core.query import FEATURE_ID_PROPERTY


def resolve_property(candidate: Any, path: str) -> Any:
    """
    Resolve a dot-separated property path on *candidate*.

    Feature records resolve against their attributes (``@id`` resolves to
    the feature identifier).  Mappings are indexed, other objects use
    attribute access, and lists are traversed implicitly.
    """
    if isinstance(candidate, FeatureRecord):
        if path == FEATURE_ID_PROPERTY:
            return candidate.fid
        candidate = candidate.attributes
    obj = candidate
    parts = path.split(".")
    for idx, part in enumerate(parts):
        if obj is None:
            return None
        if isinstance(obj, list | tuple):
            rest = ".".join(parts[idx:])
            return [resolve_property(item, rest) for item in obj]
        obj = obj.get(part) if isinstance(obj, Mapping) else getattr(obj, part, None)
    return obj


class Expression(ABC):
    """Base class for arithmetic expressions."""

    @abstractmethod
    def evaluate(self, candidate: Any) -> Any: ...

    @abstractmethod
    def property_names(self) -> frozenset[str]: ...

    @abstractmethod
    def to_dict(self) -> dict[str, Any]: ...

    @property
    def is_arithmetic(self) -> bool:
        return False

    def __add__(self, other: Any) -> Add:
        return Add(self, _wrap(other))

    def __sub__(self, other: Any) -> Subtract:
        return Subtract(self, _wrap(other))

    def __mul__(self, other: Any) -> Multiply:
        return Multiply(self, _wrap(other))

    def __truediv__(self, other: Any) -> Divide:
        return Divide(self, _wrap(other))

    @staticmethod
    def from_dict(data: Any) -> Expression:
        """Rebuild an expression from its ``to_dict`` form.

        Raises:
            ValueError: If *data* is not a recognised expression mapping.
        """
        if not isinstance(data, Mapping) or len(data) != 1:
            raise ValueError(f"Not an expression: {data!r}")
        ((key, value),) = data.items()
        if key == "property":
            return PropertyName(value)
        if key == "literal":
            return Literal(value)
        binary = _BINARY_BY_KEY.get(key)
        if binary is None or not isinstance(value, list) or len(value) != 2:
            raise ValueError(f"Not an expression: {data!r}")
        return binary(Expression.from_dict(value[0]), Expression.from_dict(value[1]))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Expression) and self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash(repr(self.to_dict()))


class PropertyName(Expression):
    def __init__(self, name: str) -> None:
        if not name:
            raise ValueError("Property name must not be empty")
        self.name = name

    def evaluate(self, candidate: Any) -> Any:
        return resolve_property(candidate, self.name)

    def property_names(self) -> frozenset[str]:
        return frozenset({self.name})

    def to_dict(self) -> dict[str, Any]:
        return {"property": self.name}

    def __repr__(self) -> str:
        return f"PropertyName({self.name!r})"


class Literal(Expression):
    def __init__(self, value: Any) -> None:
        self.value = value

    def evaluate(self, candidate: Any) -> Any:
        return self.value

    def property_names(self) -> frozenset[str]:
        return frozenset()

    def to_dict(self) -> dict[str, Any]:
        return {"literal": self.value}

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"


class BinaryExpression(Expression):
    """Two operands combined by an arithmetic operator.

    A ``None`` operand, a non-numeric operand or a division by zero
    evaluates to ``None``, which no comparison accepts.
    """

    key: ClassVar[str]
    symbol: ClassVar[str]

    def __init__(self, left: Expression, right: Expression) -> None:
        self.left = left
        self.right = right

    @property
    def is_arithmetic(self) -> bool:
        return True

    @abstractmethod
    def apply(self, left: Any, right: Any) -> Any: ...

    def evaluate(self, candidate: Any) -> Any:
        left = self.left.evaluate(candidate)
        right = self.right.evaluate(candidate)
        if left is None or right is None:
            return None
        try:
            return self.apply(left, right)
        except (TypeError, ZeroDivisionError):
            return None

    def property_names(self) -> frozenset[str]:
        return self.left.property_names() | self.right.property_names()

    def to_dict(self) -> dict[str, Any]:
        return {self.key: [self.left.to_dict(), self.right.to_dict()]}

    def __repr__(self) -> str:
        return f"({self.left!r} {self.symbol} {self.right!r})"


class Add(BinaryExpression):
    key = "add"
    symbol = "+"

    def apply(self, left: Any, right: Any) -> Any:
        return left + right


class Subtract(BinaryExpression):
    key = "sub"
    symbol = "-"

    def apply(self, left: Any, right: Any) -> Any:
        return left - right


class Multiply(BinaryExpression):
    key = "mul"
    symbol = "*"

    def apply(self, left: Any, right: Any) -> Any:
        return left * right


class Divide(BinaryExpression):
    key = "div"
    symbol = "/"

    def apply(self, left: Any, right: Any) -> Any:
        return left / right


_BINARY_BY_KEY: dict[str, type[BinaryExpression]] = {
    cls.key: cls for cls in (Add, Subtract, Multiply, Divide)
}


def _wrap(value: Any) -> Expression:
    return value if isinstance(value, Expression) else Literal(value)
