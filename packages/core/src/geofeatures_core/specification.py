"""Filter protocol shared by the filter algebra and the store bindings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .capabilities import FilterType


@runtime_checkable
class IFilter(Protocol):
    """
    Protocol for filter expressions.

    A filter evaluates itself against a decoded feature (used for the
    residual part of a query) and serialises to a dictionary.
    """

    @property
    def filter_types(self) -> frozenset[FilterType]:
        """Capabilities a store must declare to evaluate this node remotely."""
        ...

    def is_satisfied_by(self, candidate: Any) -> bool:
        """Evaluate the filter in memory against one candidate."""
        ...

    def to_dict(self) -> dict[str, Any]:
        """
        Return a dictionary representation of the filter.
        Useful for serialising criteria across process boundaries.
        """
        ...
