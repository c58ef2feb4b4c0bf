"""BSON document -> FeatureRecord (GeoJSON, Decimal128, ObjectId, typed bindings)."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from bson import Decimal128, ObjectId
from pydantic import ConfigDict, TypeAdapter
from shapely.errors import ShapelyError
from shapely.geometry import shape

from geofeatures_core.exceptions import DecodeError
from geofeatures_core.feature import AttributeType, FeatureRecord
from geofeatures_specifications.geometry import looks_like_geojson, to_shapely

if TYPE_CHECKING:
    from collections.abc import Mapping

    from geofeatures_core.feature import FeatureType, LayerName

_ADAPTERS: dict[AttributeType, TypeAdapter[Any]] = {
    AttributeType.STRING: TypeAdapter(str, config=ConfigDict(coerce_numbers_to_str=True)),
    AttributeType.INTEGER: TypeAdapter(int),
    AttributeType.FLOAT: TypeAdapter(float),
    AttributeType.BOOLEAN: TypeAdapter(bool),
    AttributeType.DATE: TypeAdapter(date),
    AttributeType.DATETIME: TypeAdapter(datetime),
}


def decode_value(value: Any) -> Any:
    """Convert BSON types to Python types; GeoJSON becomes a Shapely geometry."""
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        if looks_like_geojson(value):
            return shape(value)
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def coerce_value(value: Any, binding: AttributeType) -> Any:
    """Coerce a decoded value to a declared binding.

    Raises:
        ValueError: The value cannot represent the binding.
    """
    if value is None or binding is AttributeType.OBJECT:
        return value
    if binding is AttributeType.GEOMETRY:
        return to_shapely(value)
    if binding is AttributeType.DATE and isinstance(value, datetime):
        # BSON has no date type; dates are stored as midnight datetimes
        return value.date()
    return _ADAPTERS[binding].validate_python(value)


def render_document_id(document_id: Any) -> str:
    return str(document_id)


class MongoFeatureDecoder:
    """
    Turn documents of one layer into feature records.

    The feature id is ``<local_part>.<_id>``.  When a feature type is
    known, attribute values are coerced to their declared bindings and
    non-nillable attributes must not be null.
    """

    def __init__(self, layer: LayerName, feature_type: FeatureType | None = None) -> None:
        self.layer = layer
        self.feature_type = feature_type

    def fid_for(self, document_id: Any) -> str:
        return f"{self.layer.local_part}.{render_document_id(document_id)}"

    def decode(self, document: Mapping[str, Any]) -> FeatureRecord:
        """
        Raises:
            DecodeError: The document has no ``_id`` or a value cannot be decoded.
        """
        if "_id" not in document:
            raise DecodeError(f"Document of layer {self.layer.local_part!r} has no _id")
        document_id = document["_id"]
        attributes: dict[str, Any] = {}
        for name, raw in document.items():
            if name == "_id":
                continue
            try:
                attributes[name] = self._decode_attribute(name, raw)
            except (ValueError, TypeError, KeyError, ShapelyError) as e:
                raise DecodeError(
                    f"Cannot decode attribute {name!r} of document {document_id!r}: {e}",
                    document_id=document_id,
                ) from e
        return FeatureRecord(self.fid_for(document_id), self.layer, attributes)

    def _decode_attribute(self, name: str, raw: Any) -> Any:
        value = decode_value(raw)
        if self.feature_type is None:
            return value
        descriptor = self.feature_type.descriptor(name)
        if descriptor is None:
            return value
        if value is None and not descriptor.nillable:
            raise ValueError(f"{name!r} is not nillable")
        return coerce_value(value, descriptor.binding)
