"""Shared fixtures for filter tests."""

from __future__ import annotations

import pytest
from shapely.geometry import Point, Polygon

from geofeatures_core.feature import FeatureRecord, LayerName
from geofeatures_specifications.operators_memory import build_default_registry


@pytest.fixture
def registry():
    """Default in-memory operator registry for building filters."""
    return build_default_registry()


@pytest.fixture
def layer() -> LayerName:
    return LayerName("http://example.org/geo", "parks")


@pytest.fixture
def park(layer: LayerName) -> FeatureRecord:
    return FeatureRecord(
        fid="parks.p1",
        layer=layer,
        attributes={
            "name": "Central Park",
            "kind": "park",
            "area": 40,
            "visitors": 1200,
            "address": {"city": "Springfield"},
            "closed": None,
            "geom": Polygon([(0, 0), (4, 0), (4, 4), (0, 4)]),
        },
    )


@pytest.fixture
def fountain(layer: LayerName) -> FeatureRecord:
    return FeatureRecord(
        fid="parks.p2",
        layer=layer,
        attributes={"name": "Fountain", "kind": "landmark", "area": 1, "geom": Point(20, 20)},
    )
