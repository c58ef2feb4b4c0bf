"""
Errors raised while a filter is being built or parsed.

They are raised before any query reaches a store. ``to_dict()`` gives a
plain mapping that callers can hand back to whoever sent the filter.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any

from geofeatures_core.exceptions import GeoFeaturesError


class FilterError(GeoFeaturesError):
    """A filter could not be built."""


class ValidationError(FilterError):
    """A filter mapping is malformed; *path* locates the offending key."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "VALIDATION_ERROR",
            "message": self.message,
            "path": self.path,
        }


class OperatorNotFoundError(FilterError):
    """An operator name is not one of ``FilterOperator``; close names are suggested."""

    def __init__(self, operator: str, valid_operators: list[str]) -> None:
        self.operator = operator
        self.valid_operators = valid_operators
        self.suggestions = get_close_matches(operator, valid_operators, n=3, cutoff=0.6)

        message = f"Unknown operator: '{operator}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        message += f" Valid operators: {', '.join(sorted(valid_operators)[:10])}..."
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "OPERATOR_NOT_FOUND",
            "operator": self.operator,
            "suggestions": self.suggestions,
            "valid_operators": sorted(self.valid_operators),
        }
