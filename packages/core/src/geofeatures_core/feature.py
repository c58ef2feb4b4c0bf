"""Layer names, feature types and decoded feature records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, model_validator

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping


@dataclass(frozen=True, order=True)
class LayerName:
    """
    Qualified name of one queryable collection.

    Unique within a store instance.  ``uri`` renders the conventional
    ``namespace:local`` form; ``str()`` returns the bare local part.
    """

    namespace_uri: str | None
    local_part: str

    @property
    def uri(self) -> str:
        if not self.namespace_uri:
            return self.local_part
        return f"{self.namespace_uri}:{self.local_part}"

    def __str__(self) -> str:
        return self.local_part


class AttributeType(str, Enum):
    """Value bindings an attribute may declare."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    GEOMETRY = "geometry"
    OBJECT = "object"


class AttributeDescriptor(BaseModel):
    """One attribute of a feature type."""

    model_config = ConfigDict(frozen=True)

    name: str
    binding: AttributeType = AttributeType.STRING
    nillable: bool = True


class FeatureType(BaseModel):
    """
    Schema of a layer, supplied by an external schema collaborator.

    Used for typed decoding and to recognise geometry attributes; never
    used to validate filters.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    attributes: tuple[AttributeDescriptor, ...] = ()
    default_geometry: str | None = None

    @model_validator(mode="after")
    def _check_default_geometry(self) -> FeatureType:
        if self.default_geometry is None:
            return self
        descriptor = self.descriptor(self.default_geometry)
        if descriptor is None or descriptor.binding is not AttributeType.GEOMETRY:
            raise ValueError(
                f"default_geometry {self.default_geometry!r} is not a geometry "
                f"attribute of {self.name!r}"
            )
        return self

    def descriptor(self, name: str) -> AttributeDescriptor | None:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None

    @property
    def geometry_attributes(self) -> tuple[str, ...]:
        return tuple(
            a.name for a in self.attributes if a.binding is AttributeType.GEOMETRY
        )

    def is_geometry(self, name: str) -> bool:
        descriptor = self.descriptor(name)
        return descriptor is not None and descriptor.binding is AttributeType.GEOMETRY


def _is_geometry_value(value: Any) -> bool:
    # Shapely geometries expose geom_type; avoids importing shapely here.
    return hasattr(value, "geom_type") and hasattr(value, "bounds")


@dataclass(frozen=True)
class FeatureRecord:
    """
    One decoded result item.

    Attributes:
        fid: Stable feature identifier (``<layer>.<document id>``).
        layer: Qualified name of the layer the record came from.
        attributes: Ordered, read-only mapping of attribute name to value.
    """

    fid: str
    layer: LayerName
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    def get(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self.attributes[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.attributes)

    @property
    def geometry(self) -> Any:
        """The first geometry-valued attribute, or ``None``."""
        for value in self.attributes.values():
            if _is_geometry_value(value):
                return value
        return None

    def without(self, names: Iterable[str]) -> FeatureRecord:
        """Return a copy with the given attributes removed."""
        drop = set(names)
        if not drop.intersection(self.attributes):
            return self
        return FeatureRecord(
            fid=self.fid,
            layer=self.layer,
            attributes={k: v for k, v in self.attributes.items() if k not in drop},
        )
