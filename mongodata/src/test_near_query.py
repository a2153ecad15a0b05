import pytest

from mongodata.core.geo import Distance, GeoJsonPoint, GeoResult, GeoResults, Metrics, Point
from mongodata.core.query import NearQuery


def test_neutral_query_has_no_multiplier():
    near_query = NearQuery.near(1, 2)

    assert near_query.distance_multiplier() is None
    assert "distanceMultiplier" not in near_query.to_document()


def test_in_kilometers_makes_query_spherical():
    near_query = NearQuery.near(1, 2).in_kilometers()

    assert near_query.is_spherical
    assert near_query.metric == Metrics.KILOMETERS
    assert near_query.to_document()["distanceMultiplier"] == pytest.approx(6378.137)


def test_geo_json_multiplier_is_relative_to_meters():
    near_query = NearQuery.near_point(GeoJsonPoint(x=1, y=2)).in_miles()

    assert near_query.distance_multiplier() == pytest.approx(3963.191 / 6378137.0)


def test_min_distance_adopts_metric():
    near_query = NearQuery.near(1, 2).min_distance(Distance(value=2, metric=Metrics.MILES))

    assert near_query.metric == Metrics.MILES
    assert near_query.to_document()["minDistance"] == pytest.approx(2 / 3963.191)


def test_modifiers_return_new_instances():
    near_query = NearQuery.near(1, 2)

    limited = near_query.limit(3)

    assert near_query.limit_count is None
    assert limited.limit_count == 3


def test_near_point_requires_point():
    with pytest.raises(ValueError):
        NearQuery.near_point(None)


def test_query_filter_is_rendered():
    document = NearQuery.near(1, 2).query({"name": "x"}).to_document()

    assert document["query"] == {"name": "x"}
    assert document["near"] == [1.0, 2.0]


def test_distance_conversion_and_ordering():
    ten_km = Distance(value=10, metric=Metrics.KILOMETERS)

    assert ten_km.in_metric(Metrics.MILES).value == pytest.approx(6.2137, rel=1e-3)
    assert Distance(value=1, metric=Metrics.MILES) < ten_km
    assert str(ten_km) == "10.0 km"
    assert (ten_km + Distance(value=5, metric=Metrics.KILOMETERS)).value == pytest.approx(15)


def test_geo_results_average_distance():
    results = GeoResults(
        [
            GeoResult("a", Distance(value=1, metric=Metrics.KILOMETERS)),
            GeoResult("b", Distance(value=3, metric=Metrics.KILOMETERS)),
        ],
        Metrics.KILOMETERS,
    )

    assert len(results) == 2
    assert results.content == ["a", "b"]
    assert results.average_distance.value == pytest.approx(2)


def test_point_documents():
    assert Point(x=1, y=2).to_document() == [1.0, 2.0]
    assert GeoJsonPoint(x=1, y=2).to_document() == {"type": "Point", "coordinates": [1.0, 2.0]}
