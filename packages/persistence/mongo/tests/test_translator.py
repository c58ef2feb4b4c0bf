"""Tests for filter lowering, sort and projection translation (no network)."""

from __future__ import annotations

from typing import Any

import pytest
from bson import ObjectId
from shapely.geometry import box

from geofeatures_core.capabilities import FilterCapabilities, FilterType, QueryCapabilities
from geofeatures_core.exceptions import FilterTranslationError, UnsupportedSortError
from geofeatures_core.feature import AttributeDescriptor, AttributeType, FeatureType
from geofeatures_core.query import FeatureQuery, SortBy
from geofeatures_mongo.capabilities import build_filter_capabilities, build_query_capabilities
from geofeatures_mongo.translator import MongoQueryTranslator, lower_filter
from geofeatures_specifications import (
    EXCLUDE,
    INCLUDE,
    AttributeFilter,
    FeatureIdFilter,
    PropertyName,
)

ENVELOPE_POLYGON = {
    "type": "Polygon",
    "coordinates": [[[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]],
}


class ForeignFilter:
    """A filter implementation the translator knows nothing about."""

    filter_types = frozenset({FilterType.NONE})

    def is_satisfied_by(self, candidate: Any) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"op": "custom"}


@pytest.fixture
def capabilities() -> FilterCapabilities:
    return build_filter_capabilities()


@pytest.fixture
def translator() -> MongoQueryTranslator:
    return MongoQueryTranslator(build_query_capabilities(), build_filter_capabilities())


@pytest.fixture
def schema() -> FeatureType:
    return FeatureType(
        name="parks",
        attributes=(
            AttributeDescriptor(name="name"),
            AttributeDescriptor(name="geom", binding=AttributeType.GEOMETRY),
        ),
        default_geometry="geom",
    )


class TestLeafLowering:
    def test_no_filter_matches_all(self, capabilities, layer) -> None:
        lowering = lower_filter(None, capabilities, layer)
        assert lowering.match == {}
        assert lowering.exact

    def test_bbox_lowers_to_geo_intersects(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("geom", "bbox", [0, 0, 10, 10], registry=registry)
        lowering = lower_filter(f, capabilities, layer)
        assert lowering.match == {"geom": {"$geoIntersects": {"$geometry": ENVELOPE_POLYGON}}}
        assert lowering.exact

    def test_within_lowers_to_geo_within(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("geom", "within", box(0, 0, 10, 10), registry=registry)
        match = lower_filter(f, capabilities, layer).match
        assert match["geom"]["$geoWithin"]["$geometry"]["type"] == "Polygon"

    def test_disjoint_requires_geometry(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("geom", "disjoint", [0, 0, 10, 10], registry=registry)
        assert lower_filter(f, capabilities, layer).match == {
            "$and": [
                {"geom": {"$exists": True, "$ne": None}},
                {"$nor": [{"geom": {"$geoIntersects": {"$geometry": ENVELOPE_POLYGON}}}]},
            ]
        }

    @pytest.mark.parametrize(
        ("op", "val", "expected"),
        [
            ("=", "park", {"kind": {"$eq": "park"}}),
            ("!=", "park", {"kind": {"$ne": "park"}}),
            (">", 3, {"kind": {"$gt": 3}}),
            ("<=", 3, {"kind": {"$lte": 3}}),
            ("between", [5, 20], {"kind": {"$gte": 5, "$lte": 20}}),
            ("like", "Park%", {"kind": {"$regex": "^Park.*$", "$options": "s"}}),
            ("ilike", "p_rk", {"kind": {"$regex": "^p.rk$", "$options": "is"}}),
            ("is_null", None, {"$or": [{"kind": {"$exists": False}}, {"kind": {"$eq": None}}]}),
            ("is_not_null", None, {"kind": {"$exists": True, "$ne": None}}),
        ],
    )
    def test_attribute_operators(self, registry, capabilities, layer, op, val, expected) -> None:
        f = AttributeFilter("kind", op, val, registry=registry)
        lowering = lower_filter(f, capabilities, layer)
        assert lowering.match == expected
        assert lowering.exact

    def test_nested_property_path_passes_through(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("address.city", "=", "Springfield", registry=registry)
        assert lower_filter(f, capabilities, layer).match == {
            "address.city": {"$eq": "Springfield"}
        }

    def test_feature_ids_strip_layer_prefix(self, capabilities, layer) -> None:
        oid = "65a000000000000000000001"
        f = FeatureIdFilter([f"parks.{oid}", "parks.7", "rivers.1"])
        assert lower_filter(f, capabilities, layer).match == {
            "_id": {"$in": [oid, ObjectId(oid), "7", 7]}
        }

    def test_feature_ids_of_other_layers_match_nothing(self, capabilities, layer) -> None:
        f = FeatureIdFilter(["rivers.1"])
        assert lower_filter(f, capabilities, layer).match == {"_id": {"$in": []}}

    def test_non_ascii_digits_stay_strings(self, capabilities, layer) -> None:
        f = FeatureIdFilter(["parks.\N{SUPERSCRIPT TWO}", "parks.\N{ARABIC-INDIC DIGIT THREE}"])
        assert lower_filter(f, capabilities, layer).match == {
            "_id": {"$in": ["\N{SUPERSCRIPT TWO}", "\N{ARABIC-INDIC DIGIT THREE}"]}
        }

    def test_id_property_comparison(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("@id", "=", "parks.abc", registry=registry)
        assert lower_filter(f, capabilities, layer).match == {"_id": {"$in": ["abc"]}}

    def test_arithmetic_comparison(self, registry, capabilities, layer) -> None:
        f = AttributeFilter(PropertyName("area") * 2, ">", 50, registry=registry)
        doubled = {"$multiply": ["$area", {"$literal": 2}]}
        assert lower_filter(f, capabilities, layer).match == {
            "$expr": {"$and": [{"$isNumber": doubled}, {"$gt": [doubled, {"$literal": 50}]}]}
        }

    def test_arithmetic_operands_are_literals(self, registry, capabilities, layer) -> None:
        f = AttributeFilter(PropertyName("area") + 1, "=", "$visitors", registry=registry)
        expr = lower_filter(f, capabilities, layer).match["$expr"]
        shifted = {"$add": ["$area", {"$literal": 1}]}
        # A "$"-prefixed operand is a string, never a field path
        assert expr["$and"][1] == {"$eq": [shifted, {"$literal": "$visitors"}]}

        between = AttributeFilter(PropertyName("area") - 1, "between", [0, 9], registry=registry)
        lowered = {"$subtract": ["$area", {"$literal": 1}]}
        assert lower_filter(between, capabilities, layer).match["$expr"]["$and"][1:] == [
            {"$gte": [lowered, {"$literal": 0}]},
            {"$lte": [lowered, {"$literal": 9}]},
        ]

    def test_arithmetic_division_guards_zero(self, registry, capabilities, layer) -> None:
        ratio_expr = PropertyName("area") / PropertyName("visitors")
        f = AttributeFilter(ratio_expr, "<", 1, registry=registry)
        expr = lower_filter(f, capabilities, layer).match["$expr"]
        ratio = expr["$and"][0]["$isNumber"]
        assert ratio == {
            "$cond": [{"$eq": ["$visitors", 0]}, None, {"$divide": ["$area", "$visitors"]}]
        }

    def test_noop_filters(self, capabilities, layer) -> None:
        assert lower_filter(INCLUDE, capabilities, layer).match == {}
        assert lower_filter(EXCLUDE, capabilities, layer).match == {"_id": {"$exists": False}}

    def test_undeclared_type_is_residual(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("name", "regex", "^R", registry=registry)
        lowering = lower_filter(f, capabilities, layer)
        assert lowering.match == {}
        assert lowering.residual is f

    def test_foreign_filter_is_residual(self, capabilities, layer) -> None:
        f = ForeignFilter()
        lowering = lower_filter(f, capabilities, layer)
        assert lowering.match == {}
        assert lowering.residual is f

    def test_reduced_capabilities_leave_residual(self, registry, layer) -> None:
        f = AttributeFilter("geom", "bbox", [0, 0, 10, 10], registry=registry)
        lowering = lower_filter(f, FilterCapabilities(), layer)
        assert lowering.residual is f


class TestApproximateOperators:
    def test_contains_sends_prefilter_and_keeps_refinement(
        self, registry, capabilities, layer
    ) -> None:
        f = AttributeFilter("geom", "contains_geom", box(2, 2, 3, 3), registry=registry)
        lowering = lower_filter(f, capabilities, layer)
        assert "$geoIntersects" in lowering.match["geom"]
        assert lowering.residual is None
        assert lowering.refinement is f

    def test_or_with_approximate_child_is_refined_as_a_whole(
        self, registry, capabilities, layer
    ) -> None:
        overlaps = AttributeFilter("geom", "overlaps", box(0, 0, 1, 1), registry=registry)
        name = AttributeFilter("name", "=", "Harbour", registry=registry)
        f = overlaps | name
        lowering = lower_filter(f, capabilities, layer)
        assert list(lowering.match) == ["$or"]
        assert lowering.residual is None
        assert lowering.refinement is f

    def test_not_of_approximate_child_is_refinement(self, registry, capabilities, layer) -> None:
        f = ~AttributeFilter("geom", "contains_geom", box(2, 2, 3, 3), registry=registry)
        lowering = lower_filter(f, capabilities, layer)
        assert lowering.match == {}
        assert lowering.residual is None
        assert lowering.refinement is f


class TestLogicalLowering:
    def test_and_of_pushed_children(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("kind", "=", "park", registry=registry) & AttributeFilter(
            "area", ">", 10, registry=registry
        )
        assert lower_filter(f, capabilities, layer).match == {
            "$and": [{"kind": {"$eq": "park"}}, {"area": {"$gt": 10}}]
        }

    def test_and_pushes_supported_siblings(self, registry, capabilities, layer) -> None:
        pushed = AttributeFilter("kind", "=", "park", registry=registry)
        regex = AttributeFilter("name", "regex", "^R", registry=registry)
        lowering = lower_filter(pushed & regex, capabilities, layer)
        assert lowering.match == {"kind": {"$eq": "park"}}
        assert lowering.residual is regex

    def test_and_collects_several_residuals(self, registry, capabilities, layer) -> None:
        a = AttributeFilter("name", "regex", "^R", registry=registry)
        b = AttributeFilter("geom", "touches", box(0, 0, 1, 1), registry=registry)
        lowering = lower_filter(a & b, capabilities, layer)
        assert lowering.match == {}
        assert lowering.residual == a & b

    def test_or_with_unpushable_child_is_residual(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("kind", "=", "park", registry=registry) | AttributeFilter(
            "name", "regex", "^R", registry=registry
        )
        lowering = lower_filter(f, capabilities, layer)
        assert lowering.match == {}
        assert lowering.residual is f

    def test_or_of_pushed_children(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("kind", "=", "park", registry=registry) | AttributeFilter(
            "kind", "=", "garden", registry=registry
        )
        assert lower_filter(f, capabilities, layer).match == {
            "$or": [{"kind": {"$eq": "park"}}, {"kind": {"$eq": "garden"}}]
        }

    def test_not_of_pushed_child(self, registry, capabilities, layer) -> None:
        f = ~AttributeFilter("kind", "=", "park", registry=registry)
        assert lower_filter(f, capabilities, layer).match == {"$nor": [{"kind": {"$eq": "park"}}]}

    def test_not_of_unpushable_child_is_residual(self, registry, capabilities, layer) -> None:
        f = ~AttributeFilter("name", "regex", "^R", registry=registry)
        lowering = lower_filter(f, capabilities, layer)
        assert lowering.match == {}
        assert lowering.residual is f

    def test_not_include_matches_nothing(self, capabilities, layer) -> None:
        assert lower_filter(~INCLUDE, capabilities, layer).match == {"_id": {"$exists": False}}

    def test_declared_only_filters_leave_no_residual(self, registry, capabilities, layer) -> None:
        f = (
            AttributeFilter("geom", "bbox", [0, 0, 10, 10], registry=registry)
            & (
                AttributeFilter("kind", "=", "park", registry=registry)
                | ~AttributeFilter("name", "like", "H%", registry=registry)
            )
            & FeatureIdFilter(["parks.1", "parks.2"])
            & AttributeFilter("closed", "is_null", registry=registry)
        )
        lowering = lower_filter(f, capabilities, layer)
        assert lowering.residual is None
        assert lowering.refinement is None


class TestMalformedOperands:
    def test_between_needs_two_values(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("area", "between", [1], registry=registry)
        with pytest.raises(FilterTranslationError, match="two values"):
            lower_filter(f, capabilities, layer)

    def test_like_needs_string(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("name", "like", 5, registry=registry)
        with pytest.raises(FilterTranslationError):
            lower_filter(f, capabilities, layer)

    def test_unreadable_geometry(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("geom", "within", "NOT A GEOMETRY", registry=registry)
        with pytest.raises(FilterTranslationError):
            lower_filter(f, capabilities, layer)

    def test_operator_field_path(self, registry, capabilities, layer) -> None:
        f = AttributeFilter("$where", "=", 1, registry=registry)
        with pytest.raises(FilterTranslationError, match="Invalid field path"):
            lower_filter(f, capabilities, layer)


class TestSort:
    def test_sort_keys(self, translator, layer) -> None:
        query = FeatureQuery("parks").with_sorting("name", "-area")
        assert translator.translate(query, layer).request.sort == (("name", 1), ("area", -1))

    def test_feature_id_sorts_on_document_id(self, translator, layer) -> None:
        query = FeatureQuery("parks").with_sorting("-@id")
        assert translator.translate(query, layer).request.sort == (("_id", -1),)

    def test_natural_order_adds_no_key(self, translator, layer) -> None:
        query = FeatureQuery("parks").with_sorting(SortBy.natural(), "name")
        assert translator.translate(query, layer).request.sort == (("name", 1),)

    def test_duplicate_keys_keep_first(self, translator, layer) -> None:
        query = FeatureQuery("parks").with_sorting("name", "-name")
        assert translator.translate(query, layer).request.sort == (("name", 1),)

    def test_reverse_natural_order_unsupported(self, translator, layer) -> None:
        query = FeatureQuery("parks").with_sorting(SortBy.reverse_natural())
        with pytest.raises(UnsupportedSortError) as exc_info:
            translator.translate(query, layer)
        assert exc_info.value.sort_key == "-<natural>"

    @pytest.mark.parametrize("key", ["$natural", "a..b", "", "geo\x00m", "name."])
    def test_invalid_paths_unsupported(self, translator, layer, key) -> None:
        query = FeatureQuery("parks", sort_by=(SortBy(key),))
        with pytest.raises(UnsupportedSortError):
            translator.translate(query, layer)

    def test_geometry_attribute_unsupported(self, translator, layer, schema) -> None:
        query = FeatureQuery("parks").with_sorting("geom")
        with pytest.raises(UnsupportedSortError, match="geometry"):
            translator.translate(query, layer, schema)
        # Without a schema the server decides
        assert translator.translate(query, layer).request.sort == (("geom", 1),)

    def test_attribute_sort_requires_capability(self, layer) -> None:
        translator = MongoQueryTranslator(QueryCapabilities(), build_filter_capabilities())
        with pytest.raises(UnsupportedSortError):
            translator.translate(FeatureQuery("parks").with_sorting("name"), layer)


class TestProjectionAndPaging:
    def test_all_properties_sends_no_projection(self, translator, layer) -> None:
        request = translator.translate(FeatureQuery("parks"), layer).request
        assert request.projection is None
        assert request.output_properties is None
        assert request.hidden == frozenset()

    def test_subset_is_projected(self, registry, translator, layer) -> None:
        query = FeatureQuery(
            "parks",
            filter=AttributeFilter("geom", "bbox", [0, 0, 10, 10], registry=registry),
            properties=("name", "@id"),
        )
        request = translator.translate(query, layer).request
        assert request.projection == ("name",)
        assert request.output_properties == ("name",)
        assert request.hidden == frozenset()

    def test_residual_properties_are_hidden(self, registry, translator, layer) -> None:
        query = FeatureQuery(
            "parks",
            filter=AttributeFilter("geom", "touches", box(0, 0, 1, 1), registry=registry),
            properties=("name",),
        )
        request = translator.translate(query, layer).request
        assert request.projection == ("name", "geom")
        assert request.hidden == frozenset({"geom"})

    def test_nested_paths_collapse_into_parent(self, registry, translator, layer) -> None:
        query = FeatureQuery(
            "parks",
            filter=AttributeFilter("address.city", "regex", "^S", registry=registry),
            properties=("address",),
        )
        assert translator.translate(query, layer).request.projection == ("address",)

    def test_unknown_residual_inputs_fetch_whole_documents(self, translator, layer) -> None:
        query = FeatureQuery("parks", filter=ForeignFilter(), properties=("name",))
        request = translator.translate(query, layer).request
        assert request.projection is None
        assert request.output_properties == ("name",)

    def test_pipeline_stages(self, registry, translator, layer) -> None:
        query = FeatureQuery(
            "parks",
            filter=AttributeFilter("kind", "=", "park", registry=registry),
            properties=("name",),
            sort_by=(SortBy.parse("-area"),),
            offset=10,
            limit=5,
        )
        request = translator.translate(query, layer).request
        assert request.collection == "parks"
        assert request.pipeline() == [
            {"$match": {"kind": {"$eq": "park"}}},
            {"$sort": {"area": -1}},
            {"$skip": 10},
            {"$limit": 5},
            {"$project": {"_id": 1, "name": 1}},
        ]
        assert request.count_pipeline() == [
            {"$match": {"kind": {"$eq": "park"}}},
            {"$skip": 10},
            {"$limit": 5},
            {"$count": "count"},
        ]

    def test_match_all_pipeline_is_empty(self, translator, layer) -> None:
        assert translator.translate(FeatureQuery("parks"), layer).request.pipeline() == []

    def test_translated_query_exposes_post_filters(self, registry, translator, layer) -> None:
        regex = AttributeFilter("name", "regex", "^R", registry=registry)
        contains = AttributeFilter("geom", "contains_geom", box(2, 2, 3, 3), registry=registry)
        translated = translator.translate(FeatureQuery("parks", filter=regex & contains), layer)
        assert translated.residual is regex
        assert translated.refinement is contains
        assert translated.request.post_filters == (regex, contains)
