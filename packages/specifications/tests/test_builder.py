"""Tests for the FilterBuilder fluent API."""

from __future__ import annotations

import pytest

from geofeatures_core.feature import FeatureRecord
from geofeatures_specifications import (
    AndFilter,
    AttributeFilter,
    FeatureIdFilter,
    FilterBuilder,
    FilterOperator,
    NotFilter,
    OrFilter,
)


@pytest.fixture
def builder(registry) -> FilterBuilder:
    return FilterBuilder(registry=registry)


# -- Single condition -------------------------------------------------------


def test_single_where(builder: FilterBuilder, park: FeatureRecord):
    flt = builder.where("name", "=", "Central Park").build()
    assert isinstance(flt, AttributeFilter)
    assert flt.is_satisfied_by(park) is True


def test_single_where_enum_op(builder: FilterBuilder, park: FeatureRecord):
    flt = builder.where("area", FilterOperator.GT, 10).build()
    assert flt.is_satisfied_by(park) is True


# -- Implicit AND -----------------------------------------------------------


def test_multiple_where_is_and(
    builder: FilterBuilder, park: FeatureRecord, fountain: FeatureRecord
):
    flt = builder.where("kind", "=", "park").bbox("geom", (0, 0, 10, 10)).build()
    assert isinstance(flt, AndFilter)
    assert flt.is_satisfied_by(park) is True
    assert flt.is_satisfied_by(fountain) is False


# -- Groups -----------------------------------------------------------------


def test_or_group(builder: FilterBuilder, park: FeatureRecord, fountain: FeatureRecord):
    flt = (
        builder.or_group()
        .where("kind", "=", "park")
        .where("kind", "=", "landmark")
        .end_group()
        .build()
    )
    assert isinstance(flt, OrFilter)
    assert flt.is_satisfied_by(park) is True
    assert flt.is_satisfied_by(fountain) is True


def test_not_group(builder: FilterBuilder, park: FeatureRecord):
    flt = builder.not_group().where("kind", "=", "park").end_group().build()
    assert isinstance(flt, NotFilter)
    assert flt.is_satisfied_by(park) is False


def test_not_group_requires_one_condition(builder: FilterBuilder):
    builder.not_group().where("a", "=", 1).where("b", "=", 2)
    with pytest.raises(ValueError, match="exactly one"):
        builder.end_group()


def test_fid_and_add(builder: FilterBuilder, registry):
    extra = AttributeFilter("area", ">", 1, registry=registry)
    flt = builder.fid("parks.p1", "parks.p2").add(extra).build()
    assert isinstance(flt, AndFilter)
    assert isinstance(flt.filters[0], FeatureIdFilter)
    assert flt.filters[1] is extra


# -- Errors -----------------------------------------------------------------


def test_build_with_open_group(builder: FilterBuilder):
    builder.or_group().where("a", "=", 1)
    with pytest.raises(ValueError, match="still open"):
        builder.build()


def test_build_empty(builder: FilterBuilder):
    with pytest.raises(ValueError, match="No conditions"):
        builder.build()


def test_end_group_without_open(builder: FilterBuilder):
    with pytest.raises(ValueError, match="No open group"):
        builder.end_group()


def test_reset(builder: FilterBuilder):
    builder.where("a", "=", 1).or_group()
    builder.reset()
    with pytest.raises(ValueError, match="No conditions"):
        builder.build()


def test_default_registry_is_created():
    flt = FilterBuilder().where("a", "=", 1).build()
    assert flt.is_satisfied_by({"a": 1}) is True
