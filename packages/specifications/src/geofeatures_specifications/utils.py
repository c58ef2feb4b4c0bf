"""
Shared utility functions for the filter package.

These are pure-Python helpers with no infrastructure dependencies.
"""

from __future__ import annotations

import re
from typing import Any

# ---------------------------------------------------------------------------
# LIKE patterns
# ---------------------------------------------------------------------------


def like_to_regex(pattern: str, *, escape: str = "\\") -> str:
    """
    Convert a LIKE pattern to an anchored regular expression.

    ``%`` matches any run of characters, ``_`` exactly one; the escape
    character makes the next character literal.  Everything else is
    escaped, so the result is valid for both Python ``re`` and the
    PCRE dialect of the document store.
    """
    parts: list[str] = ["^"]
    chars = iter(pattern)
    for char in chars:
        if char == escape:
            literal = next(chars, escape)
            parts.append(re.escape(literal))
        elif char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    parts.append("$")
    return "".join(parts)


# ---------------------------------------------------------------------------
# List parsing
# ---------------------------------------------------------------------------


def parse_list_value(value: Any) -> list[Any]:
    """
    Parse a value into a list.

    Supports:
    - Python collections (list, tuple, set, frozenset)
    - Comma-separated strings: ``"val1, val2"``
    - Bracketed strings: ``"[val1, val2]"`` or ``"['val1', 'val2']"``
    """
    if isinstance(value, list | tuple | set | frozenset):
        return list(value)
    if isinstance(value, str):
        content = value.strip()
        if content.startswith("[") and content.endswith("]"):
            content = content[1:-1].strip()
        if not content:
            return []
        return [v.strip().strip("'").strip('"') for v in content.split(",")]
    return [value]
