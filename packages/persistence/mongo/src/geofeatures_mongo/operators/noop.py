"""Include / exclude filters."""

from __future__ import annotations

from typing import Any

#: A constraint no document satisfies (every document has an ``_id``).
MATCH_NONE: dict[str, Any] = {"_id": {"$exists": False}}


def compile_include() -> dict[str, Any]:
    return {}


def compile_exclude() -> dict[str, Any]:
    return dict(MATCH_NONE)
