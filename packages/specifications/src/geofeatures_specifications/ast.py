from __future__ import annotations

import json
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from shapely.geometry import mapping
from shapely.geometry.base import BaseGeometry

from geofeatures_core.capabilities import FilterType
from geofeatures_core.feature import FeatureRecord
from geofeatures_core.query import FEATURE_ID_PROPERTY

from .base import EXCLUDE, INCLUDE, AndFilter, BaseFilter, NotFilter, OrFilter
from .exceptions import OperatorNotFoundError, ValidationError
from .expressions import Expression, resolve_property
from .geometry import Envelope
from .operators import ATTRIBUTE_OPERATORS, OPERATOR_FILTER_TYPES, FilterOperator

if TYPE_CHECKING:
    from collections.abc import Sequence

    from geofeatures_core.specification import IFilter

    from .evaluator import MemoryOperatorRegistry

# Pre-compute valid operator values for validation
_VALID_OPERATORS: frozenset[str] = frozenset(m.value for m in ATTRIBUTE_OPERATORS)
_LOGICAL_OPERATORS: frozenset[str] = frozenset(
    {FilterOperator.AND.value, FilterOperator.OR.value, FilterOperator.NOT.value}
)
_NOOP_OPERATORS: frozenset[str] = frozenset(
    {FilterOperator.INCLUDE.value, FilterOperator.EXCLUDE.value}
)


def _serialise_value(value: Any) -> Any:
    if isinstance(value, Envelope):
        return value.to_list()
    if isinstance(value, BaseGeometry):
        return dict(mapping(value))
    if isinstance(value, tuple):
        return [_serialise_value(v) for v in value]
    return value


class AttributeFilter(BaseFilter):
    """
    Filter that checks a single attribute value.

    ``attr`` is either a property path or an arithmetic
    :class:`~geofeatures_specifications.expressions.Expression`.

    Delegates in-memory evaluation to a :class:`MemoryOperatorRegistry`
    (strategy pattern). A registry MUST be explicitly provided via
    dependency injection for better testability and explicit dependencies.
    """

    def __init__(
        self,
        attr: str | Expression,
        op: FilterOperator | str,
        val: Any = None,
        *,
        registry: MemoryOperatorRegistry,
    ) -> None:
        self.attr = attr
        self.op = FilterOperator(op) if isinstance(op, str) else op
        if self.op not in ATTRIBUTE_OPERATORS:
            raise ValueError(f"{self.op.value!r} is not an attribute operator")
        if self.op is FilterOperator.BBOX:
            val = Envelope.coerce(val)
        self.val = val
        if registry is None:
            raise ValueError(
                "registry parameter is required. "
                "Use build_default_registry() from operators_memory to create one."
            )
        self._registry = registry

    @property
    def property_name(self) -> str | None:
        """The plain property path, or ``None`` for expression operands."""
        return self.attr if isinstance(self.attr, str) else None

    @property
    def filter_types(self) -> frozenset[FilterType]:
        types = OPERATOR_FILTER_TYPES[self.op]
        if isinstance(self.attr, Expression) and self.attr.is_arithmetic:
            types = types | {FilterType.SIMPLE_ARITHMETIC}
        return types

    def property_names(self) -> frozenset[str]:
        if isinstance(self.attr, Expression):
            return self.attr.property_names()
        if self.attr == FEATURE_ID_PROPERTY:
            return frozenset()
        return frozenset({self.attr})

    def is_satisfied_by(self, candidate: Any) -> bool:
        if isinstance(self.attr, Expression):
            actual_val = self.attr.evaluate(candidate)
        else:
            actual_val = resolve_property(candidate, self.attr)
        return self._registry.evaluate(self.op, actual_val, self.val)

    # -- serialisation -------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": self.op.value,
            "attr": self.attr.to_dict() if isinstance(self.attr, Expression) else self.attr,
            "val": _serialise_value(self.val),
        }


class FeatureIdFilter(BaseFilter):
    """Matches features whose identifier is one of ``ids``."""

    def __init__(self, ids: Iterable[str]) -> None:
        if isinstance(ids, str):
            ids = [ids]
        self.ids: tuple[str, ...] = tuple(dict.fromkeys(str(i) for i in ids))

    @property
    def filter_types(self) -> frozenset[FilterType]:
        return OPERATOR_FILTER_TYPES[FilterOperator.FID]

    def is_satisfied_by(self, candidate: Any) -> bool:
        if isinstance(candidate, FeatureRecord):
            fid = candidate.fid
        else:
            fid = resolve_property(candidate, FEATURE_ID_PROPERTY)
        return fid in self.ids

    def to_dict(self) -> dict[str, Any]:
        return {"op": FilterOperator.FID.value, "ids": list(self.ids)}


class FilterFactory:
    """
    Factory for creating filters from dictionary / JSON representations.

    Supports:
    - ``from_dict(data)``: parse a nested dict tree
    - ``from_json(text)``: parse a JSON string
    - ``validate(data)``: validate without constructing
    """

    # ------------------------------------------------------------------ #
    # Public API                                                          #
    # ------------------------------------------------------------------ #

    @staticmethod
    def from_dict(
        data: dict[str, Any],
        *,
        allowed_fields: Sequence[str] | None = None,
        registry: MemoryOperatorRegistry,
    ) -> IFilter:
        """
        Create a filter tree from a dictionary.

        Parameters
        ----------
        data:
            The filter dictionary (potentially nested).
        allowed_fields:
            Optional whitelist of valid attribute names.  If provided,
            any ``attr`` not in this list raises :class:`ValidationError`.
        registry:
            Required :class:`MemoryOperatorRegistry` to be injected
            into every :class:`AttributeFilter` leaf.
        """
        FilterFactory._validate_node(data, allowed_fields=allowed_fields)
        return FilterFactory._build(data, registry=registry)

    @staticmethod
    def from_json(
        text: str,
        *,
        allowed_fields: Sequence[str] | None = None,
        registry: MemoryOperatorRegistry,
    ) -> IFilter:
        """Parse a JSON string and build a filter tree."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValidationError(
                f"Invalid JSON: {exc}",
                path="<root>",
            ) from exc

        if not isinstance(data, dict):
            raise ValidationError(
                "Top-level JSON value must be an object",
                path="<root>",
            )

        return FilterFactory.from_dict(
            data,
            allowed_fields=allowed_fields,
            registry=registry,
        )

    @staticmethod
    def validate(
        data: dict[str, Any],
        *,
        allowed_fields: Sequence[str] | None = None,
    ) -> list[str]:
        """
        Validate a filter dict and return a list of error messages.

        Returns an empty list when the structure is valid.
        """
        errors: list[str] = []
        FilterFactory._collect_errors(
            data, errors, path="<root>", allowed_fields=allowed_fields
        )
        return errors

    # ------------------------------------------------------------------ #
    # Internal: recursive build                                           #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build(data: dict[str, Any], *, registry: MemoryOperatorRegistry) -> IFilter:
        op_str = data["op"].lower()

        if op_str in _LOGICAL_OPERATORS:
            conditions = data.get("conditions")
            if not conditions:
                conditions = [data["condition"]]
            children = [FilterFactory._build(c, registry=registry) for c in conditions]
            if op_str == FilterOperator.AND:
                return AndFilter(*children)
            if op_str == FilterOperator.OR:
                return OrFilter(*children)
            return NotFilter(children[0])

        if op_str == FilterOperator.INCLUDE:
            return INCLUDE
        if op_str == FilterOperator.EXCLUDE:
            return EXCLUDE
        if op_str == FilterOperator.FID:
            return FeatureIdFilter(data["ids"])

        # Leaf node
        raw_attr = data["attr"]
        attr = Expression.from_dict(raw_attr) if isinstance(raw_attr, dict) else raw_attr
        val = data.get("val")
        if op_str == FilterOperator.DWITHIN and isinstance(val, list):
            val = tuple(val)
        return AttributeFilter(attr, op_str, val, registry=registry)

    # ------------------------------------------------------------------ #
    # Internal: validation                                                #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _leaf_attr_names(attr: Any) -> frozenset[str]:
        """Property names referenced by a leaf ``attr``; raises ValueError."""
        if isinstance(attr, str) and attr:
            return frozenset() if attr == FEATURE_ID_PROPERTY else frozenset({attr})
        if isinstance(attr, dict):
            return Expression.from_dict(attr).property_names()
        raise ValueError("missing 'attr'")

    @staticmethod
    def _validate_logical_node(
        data: dict[str, Any],
        op_str: str,
        path: str,
        allowed_fields: Sequence[str] | None,
    ) -> None:
        """Validate logical operator node."""
        conditions = data.get("conditions")
        if not conditions and "condition" not in data:
            raise ValidationError(
                f"Logical operator '{op_str}' requires 'conditions' list",
                path=path,
            )
        if conditions is not None:
            if not isinstance(conditions, list):
                raise ValidationError(
                    "'conditions' must be a list",
                    path=path,
                )
            if op_str.lower() == FilterOperator.NOT and len(conditions) != 1:
                raise ValidationError(
                    "Logical operator 'not' takes exactly one condition",
                    path=path,
                )
            for idx, child in enumerate(conditions):
                FilterFactory._validate_node(
                    child,
                    path=f"{path}.conditions[{idx}]",
                    allowed_fields=allowed_fields,
                )
        elif "condition" in data:
            FilterFactory._validate_node(
                data["condition"],
                path=f"{path}.condition",
                allowed_fields=allowed_fields,
            )

    @staticmethod
    def _validate_leaf_node(
        data: dict[str, Any],
        op_lower: str,
        path: str,
        allowed_fields: Sequence[str] | None,
    ) -> None:
        """Validate leaf node."""
        if op_lower == FilterOperator.FID:
            ids = data.get("ids")
            if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
                raise ValidationError("'fid' requires an 'ids' list of strings", path=path)
            return

        if op_lower not in _VALID_OPERATORS:
            raise OperatorNotFoundError(
                op_lower,
                sorted(_VALID_OPERATORS | _LOGICAL_OPERATORS | _NOOP_OPERATORS | {"fid"}),
            )

        try:
            names = FilterFactory._leaf_attr_names(data.get("attr"))
        except ValueError as exc:
            raise ValidationError(
                f"Leaf filter has invalid 'attr' ({exc}): {data}",
                path=path,
            ) from exc

        if allowed_fields is not None:
            for name in sorted(names):
                if name not in allowed_fields:
                    raise ValidationError(
                        f"Field '{name}' is not in the allowed fields list",
                        path=path,
                    )

    @staticmethod
    def _validate_node(
        data: dict[str, Any],
        *,
        path: str = "<root>",
        allowed_fields: Sequence[str] | None = None,
    ) -> None:
        """Raise on first validation error (fail-fast)."""
        if not isinstance(data, dict):
            raise ValidationError(
                f"Expected a dict, got {type(data).__name__}",
                path=path,
            )

        op_str = data.get("op")
        if not op_str or not isinstance(op_str, str):
            raise ValidationError("Missing or empty 'op' key", path=path)

        op_lower = op_str.lower()

        if op_lower in _LOGICAL_OPERATORS:
            FilterFactory._validate_logical_node(data, op_str, path, allowed_fields)
        elif op_lower not in _NOOP_OPERATORS:
            FilterFactory._validate_leaf_node(data, op_lower, path, allowed_fields)

    @staticmethod
    def _collect_errors(
        data: Any,
        errors: list[str],
        *,
        path: str,
        allowed_fields: Sequence[str] | None = None,
    ) -> None:
        """Recursive error collection (non-throwing)."""
        if not isinstance(data, dict):
            errors.append(f"{path}: expected dict, got {type(data).__name__}")
            return

        op_str = data.get("op")
        if not op_str or not isinstance(op_str, str):
            errors.append(f"{path}: missing or empty 'op' key")
            return

        op_lower = op_str.lower()

        if op_lower in _LOGICAL_OPERATORS:
            conditions = data.get("conditions")
            if conditions is None and "condition" in data:
                conditions = [data["condition"]]
            if not conditions:
                errors.append(f"{path}: logical '{op_str}' requires 'conditions'")
                return
            if not isinstance(conditions, list):
                errors.append(f"{path}: 'conditions' must be a list")
                return
            for idx, child in enumerate(conditions):
                FilterFactory._collect_errors(
                    child,
                    errors,
                    path=f"{path}.conditions[{idx}]",
                    allowed_fields=allowed_fields,
                )
            return

        if op_lower in _NOOP_OPERATORS:
            return

        if op_lower == FilterOperator.FID:
            if not isinstance(data.get("ids"), list):
                errors.append(f"{path}: 'fid' requires an 'ids' list")
            return

        if op_lower not in _VALID_OPERATORS:
            errors.append(f"{path}: unknown operator '{op_lower}'")

        try:
            names = FilterFactory._leaf_attr_names(data.get("attr"))
        except ValueError:
            errors.append(f"{path}: missing 'attr'")
            return

        if allowed_fields is not None:
            errors.extend(
                f"{path}: field '{name}' not allowed"
                for name in sorted(names)
                if name not in allowed_fields
            )
