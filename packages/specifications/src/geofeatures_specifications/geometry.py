"""
Geometry literals used by spatial filters.

Spatial operands may be given as Shapely geometries, GeoJSON mappings,
WKT strings, ``Envelope`` instances or ``(minx, miny, maxx, maxy)``
sequences.  ``to_shapely`` normalises all of them; ``as_geojson``
renders the GeoJSON form the document store understands.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from shapely import wkt
from shapely.errors import ShapelyError
from shapely.geometry import box, mapping, shape
from shapely.geometry.base import BaseGeometry


@dataclass(frozen=True)
class Envelope:
    """Axis-aligned bounding box in the layer's coordinate system."""

    minx: float
    miny: float
    maxx: float
    maxy: float
    crs: str | None = None

    def __post_init__(self) -> None:
        if self.minx > self.maxx or self.miny > self.maxy:
            raise ValueError(
                f"Envelope minimum exceeds maximum: "
                f"({self.minx}, {self.miny}, {self.maxx}, {self.maxy})"
            )

    @classmethod
    def coerce(cls, value: Any) -> Envelope:
        """Accept an ``Envelope`` or a four-number sequence."""
        if isinstance(value, Envelope):
            return value
        if isinstance(value, Sequence) and not isinstance(value, str) and len(value) == 4:
            minx, miny, maxx, maxy = (float(v) for v in value)
            return cls(minx, miny, maxx, maxy)
        raise ValueError(f"Cannot interpret {value!r} as an envelope")

    def to_list(self) -> list[float]:
        return [self.minx, self.miny, self.maxx, self.maxy]

    def to_shapely(self) -> BaseGeometry:
        return box(self.minx, self.miny, self.maxx, self.maxy)

    def to_geojson(self) -> dict[str, Any]:
        """Closed counter-clockwise polygon ring covering the envelope."""
        return {
            "type": "Polygon",
            "coordinates": [
                [
                    [self.minx, self.miny],
                    [self.maxx, self.miny],
                    [self.maxx, self.maxy],
                    [self.minx, self.maxy],
                    [self.minx, self.miny],
                ]
            ],
        }


def is_geometry(value: Any) -> bool:
    return isinstance(value, BaseGeometry)


#: GeoJSON geometry types and the member holding their contents.
GEOJSON_GEOMETRY_TYPES = {
    "Point": "coordinates",
    "MultiPoint": "coordinates",
    "LineString": "coordinates",
    "MultiLineString": "coordinates",
    "Polygon": "coordinates",
    "MultiPolygon": "coordinates",
    "GeometryCollection": "geometries",
}


def looks_like_geojson(value: Any) -> bool:
    """Whether *value* is shaped like a GeoJSON geometry object."""
    if not isinstance(value, Mapping) or not isinstance(value.get("type"), str):
        return False
    member = GEOJSON_GEOMETRY_TYPES.get(value["type"])
    return member is not None and member in value


def to_shapely(value: Any) -> BaseGeometry | None:
    """Convert a geometry literal to a Shapely geometry.

    Raises:
        ValueError: If *value* is not a recognised geometry literal.
    """
    if value is None:
        return None
    if isinstance(value, BaseGeometry):
        return value
    if isinstance(value, Envelope):
        return value.to_shapely()
    try:
        if isinstance(value, Mapping):
            return shape(value)
        if isinstance(value, str):
            return wkt.loads(value)
    except (ShapelyError, KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Invalid geometry literal: {exc}") from exc
    if isinstance(value, Sequence) and len(value) == 4:
        return Envelope.coerce(value).to_shapely()
    raise ValueError(f"Cannot convert {type(value).__name__} to geometry")


def as_geojson(value: Any) -> dict[str, Any]:
    """Render a geometry literal as a GeoJSON geometry mapping."""
    if isinstance(value, Envelope):
        return value.to_geojson()
    if looks_like_geojson(value):
        return dict(value)
    geom = to_shapely(value)
    if geom is None:
        raise ValueError("Geometry literal is null")
    return dict(mapping(geom))
