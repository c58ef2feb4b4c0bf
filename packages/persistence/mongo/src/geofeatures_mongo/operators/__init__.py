"""MongoDB operator compilers for filter leaves."""

from __future__ import annotations

from .arithmetic import compile_arithmetic, to_aggregation
from .fid import compile_fid, document_id_candidates
from .geometry import APPROXIMATE_OPERATORS, compile_geometry
from .noop import MATCH_NONE, compile_exclude, compile_include
from .null import compile_null
from .standard import compile_standard
from .string import compile_string

__all__ = [
    "APPROXIMATE_OPERATORS",
    "MATCH_NONE",
    "compile_arithmetic",
    "compile_exclude",
    "compile_fid",
    "compile_geometry",
    "compile_include",
    "compile_null",
    "compile_standard",
    "compile_string",
    "document_id_candidates",
    "to_aggregation",
]
