"""String operators: like, not_like, ilike, contains, startswith, endswith, regex."""

from __future__ import annotations

import re
from typing import Any

from ..evaluator import MemoryOperator
from ..operators import FilterOperator
from ..utils import like_to_regex


class LikeOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.LIKE

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return bool(re.match(like_to_regex(str(condition_value)), str(field_value), re.DOTALL))


class NotLikeOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NOT_LIKE

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return not re.match(like_to_regex(str(condition_value)), str(field_value), re.DOTALL)


class ILikeOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.ILIKE

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return bool(
            re.match(
                like_to_regex(str(condition_value)),
                str(field_value),
                re.IGNORECASE | re.DOTALL,
            )
        )


class ContainsOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.CONTAINS

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return str(condition_value) in str(field_value)


class StartsWithOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.STARTSWITH

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return str(field_value).startswith(str(condition_value))


class EndsWithOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.ENDSWITH

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return str(field_value).endswith(str(condition_value))


class RegexOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.REGEX

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return bool(re.search(str(condition_value), str(field_value)))


class IRegexOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.IREGEX

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None:
            return False
        return bool(re.search(str(condition_value), str(field_value), re.IGNORECASE))
