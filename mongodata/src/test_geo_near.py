from typing import Optional

import pytest
from pydantic import BaseModel

from mongodata.core.aggregation import (
    DEFAULT_CONTEXT,
    GeoNearOperation,
    TypeBasedAggregationOperationContext,
    new_aggregation,
    match,
)
from mongodata.core.convert import MappingMongoConverter, QueryMapper
from mongodata.core.geo import Distance, GeoJsonPoint, Metrics, Point
from mongodata.core.mapping import MongoMappingContext, document, field
from mongodata.core.query import NearQuery


@document("venues")
class Venue(BaseModel):
    id: Optional[str] = None
    name: str
    category_name: Optional[str] = field("category")
    location: Optional[Point] = None


def _typed_context():
    converter = MappingMongoConverter(MongoMappingContext())
    return TypeBasedAggregationOperationContext(Venue, converter.mapping_context, QueryMapper(converter))


def test_renders_geo_near_stage_with_distance_field():
    operation = GeoNearOperation(NearQuery.near(-73.99, 40.73), "distance")

    assert operation.to_document(DEFAULT_CONTEXT) == {
        "$geoNear": {
            "near": [-73.99, 40.73],
            "spherical": False,
            "distanceField": "distance",
        }
    }


def test_use_index_adds_key():
    operation = GeoNearOperation(NearQuery.near(1, 2), "dis").use_index("geoLoc")

    command = operation.to_document(DEFAULT_CONTEXT)["$geoNear"]

    assert command["key"] == "geoLoc"
    assert command["distanceField"] == "dis"


def test_key_is_omitted_without_index():
    command = GeoNearOperation(NearQuery.near(1, 2), "dis").to_document(DEFAULT_CONTEXT)["$geoNear"]

    assert "key" not in command


def test_blank_index_key_is_omitted():
    command = GeoNearOperation(NearQuery.near(1, 2), "dis").use_index("  ").to_document(DEFAULT_CONTEXT)["$geoNear"]

    assert "key" not in command


def test_use_index_returns_new_operation():
    original = GeoNearOperation(NearQuery.near(1, 2), "dis")
    indexed = original.use_index("geoLoc")

    assert indexed is not original
    assert original.index_key is None
    assert indexed.index_key == "geoLoc"
    assert original != indexed


def test_requires_near_query():
    with pytest.raises(ValueError):
        GeoNearOperation(None, "dis")


@pytest.mark.parametrize("distance_field", [None, "", "   "])
def test_requires_distance_field(distance_field):
    with pytest.raises(ValueError):
        GeoNearOperation(NearQuery.near(1, 2), distance_field)


def test_renders_distances_and_multiplier_of_metric_query():
    near_query = NearQuery.near(-73.99, 40.73).max_distance(Distance(value=10, metric=Metrics.KILOMETERS))

    command = GeoNearOperation(near_query, "dis").to_document(DEFAULT_CONTEXT)["$geoNear"]

    assert command["maxDistance"] == pytest.approx(10 / 6378.137)
    assert command["distanceMultiplier"] == pytest.approx(6378.137)
    assert command["spherical"] is True


def test_geo_json_point_is_always_spherical_and_in_meters():
    near_query = NearQuery.near_point(GeoJsonPoint(x=-73.99, y=40.73)).max_distance(
        Distance(value=1, metric=Metrics.KILOMETERS)
    )

    command = GeoNearOperation(near_query, "dis").to_document(DEFAULT_CONTEXT)["$geoNear"]

    assert command["near"] == {"type": "Point", "coordinates": [-73.99, 40.73]}
    assert command["spherical"] is True
    assert command["maxDistance"] == pytest.approx(1000.0)


def test_query_is_mapped_against_the_input_type():
    near_query = NearQuery.near(1, 2).query({"category_name": "coffee", "id": "5f0c3b7a9d3e2a1b4c5d6e7f"})

    command = GeoNearOperation(near_query, "dis").to_document(_typed_context())["$geoNear"]

    assert command["query"]["category"] == "coffee"
    assert "_id" in command["query"]
    assert "category_name" not in command["query"]


def test_skip_and_limit_become_separate_stages():
    near_query = NearQuery.near(1, 2).skip(5).limit(10)

    pipeline = new_aggregation(GeoNearOperation(near_query, "dis"), match({"name": "x"})).to_pipeline()

    assert [next(iter(stage)) for stage in pipeline] == ["$geoNear", "$skip", "$limit", "$match"]
    assert pipeline[1] == {"$skip": 5}
    assert pipeline[2] == {"$limit": 10}


def test_equality():
    near_query = NearQuery.near(1, 2)

    assert GeoNearOperation(near_query, "dis") == GeoNearOperation(near_query, "dis")
    assert GeoNearOperation(near_query, "dis") != GeoNearOperation(near_query, "other")
