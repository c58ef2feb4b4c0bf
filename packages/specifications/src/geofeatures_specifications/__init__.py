from .ast import AttributeFilter, FeatureIdFilter, FilterFactory
from .base import (
    EXCLUDE,
    INCLUDE,
    AndFilter,
    BaseFilter,
    ExcludeFilter,
    IncludeFilter,
    NotFilter,
    OrFilter,
    property_names_of,
)
from .builder import FilterBuilder
from .evaluator import MemoryOperator, MemoryOperatorRegistry
from .exceptions import FilterError, OperatorNotFoundError, ValidationError
from .expressions import (
    Add,
    Divide,
    Expression,
    Literal,
    Multiply,
    PropertyName,
    Subtract,
    resolve_property,
)
from .geometry import Envelope, as_geojson, to_shapely
from .operators import OPERATOR_FILTER_TYPES, SPATIAL_OPERATORS, FilterOperator
from .operators_memory import build_default_registry
from .utils import like_to_regex, parse_list_value

__all__ = [
    # Core types
    "FilterOperator",
    "OPERATOR_FILTER_TYPES",
    "SPATIAL_OPERATORS",
    "AttributeFilter",
    "FeatureIdFilter",
    "FilterFactory",
    "BaseFilter",
    "AndFilter",
    "OrFilter",
    "NotFilter",
    "IncludeFilter",
    "ExcludeFilter",
    "INCLUDE",
    "EXCLUDE",
    "property_names_of",
    # Expressions
    "Expression",
    "PropertyName",
    "Literal",
    "Add",
    "Subtract",
    "Multiply",
    "Divide",
    "resolve_property",
    # Geometry
    "Envelope",
    "as_geojson",
    "to_shapely",
    # Builder
    "FilterBuilder",
    # Evaluator / strategy
    "MemoryOperator",
    "MemoryOperatorRegistry",
    "build_default_registry",
    # Exceptions
    "FilterError",
    "ValidationError",
    "OperatorNotFoundError",
    # Utilities
    "like_to_regex",
    "parse_list_value",
]
