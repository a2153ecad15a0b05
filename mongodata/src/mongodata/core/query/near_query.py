from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict

from mongodata.core.geo import Distance, GeoJsonPoint, Metric, Metrics, Point


class NearQuery(BaseModel):
    """
    Geospatial proximity search: origin, distance bounds and result metric.

    Instances are immutable, every modifier returns a new query:

        NearQuery.near(-73.99, 40.73).max_distance(10).in_kilometers()
    """

    model_config = ConfigDict(frozen=True)

    point: Point
    metric: Metric = Metrics.NEUTRAL
    max: Optional[Distance] = None
    min: Optional[Distance] = None
    is_spherical: bool = False
    filter: Optional[Dict[str, Any]] = None
    skip_count: Optional[int] = None
    limit_count: Optional[int] = None

    @classmethod
    def near(cls, x: float, y: float, metric: Metric = Metrics.NEUTRAL) -> "NearQuery":
        return cls.near_point(Point(x=x, y=y), metric)

    @classmethod
    def near_point(cls, point: Point, metric: Metric = Metrics.NEUTRAL) -> "NearQuery":
        if point is None:
            raise ValueError("Point must not be None")
        return cls(point=point).in_metric(metric)

    def max_distance(self, distance: Distance | float) -> "NearQuery":
        distance = self._as_distance(distance)
        query = self.model_copy(update={"max": distance})
        return query._adopt_metric(distance.metric)

    def min_distance(self, distance: Distance | float) -> "NearQuery":
        distance = self._as_distance(distance)
        query = self.model_copy(update={"min": distance})
        return query._adopt_metric(distance.metric)

    def in_kilometers(self) -> "NearQuery":
        return self.in_metric(Metrics.KILOMETERS)

    def in_miles(self) -> "NearQuery":
        return self.in_metric(Metrics.MILES)

    def in_metric(self, metric: Metric) -> "NearQuery":
        update: Dict[str, Any] = {"metric": metric}
        if self.max is not None:
            update["max"] = self.max.in_metric(metric)
        if self.min is not None:
            update["min"] = self.min.in_metric(metric)
        if metric != Metrics.NEUTRAL:
            update["is_spherical"] = True
        return self.model_copy(update=update)

    def spherical(self, spherical: bool = True) -> "NearQuery":
        return self.model_copy(update={"is_spherical": spherical})

    def query(self, filter: Dict[str, Any]) -> "NearQuery":
        return self.model_copy(update={"filter": dict(filter)})

    def skip(self, skip: int) -> "NearQuery":
        return self.model_copy(update={"skip_count": skip})

    def limit(self, limit: int) -> "NearQuery":
        return self.model_copy(update={"limit_count": limit})

    @property
    def uses_geo_json(self) -> bool:
        return isinstance(self.point, GeoJsonPoint)

    def distance_multiplier(self) -> Optional[float]:
        if self.metric == Metrics.NEUTRAL:
            return None
        if self.uses_geo_json:
            return self.metric.multiplier / Metrics.EARTH_RADIUS_METERS
        return self.metric.multiplier

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {}

        if self.filter:
            document["query"] = dict(self.filter)
        if self.max is not None:
            document["maxDistance"] = self._distance_value(self.max)
        if self.min is not None:
            document["minDistance"] = self._distance_value(self.min)

        multiplier = self.distance_multiplier()
        if multiplier is not None:
            document["distanceMultiplier"] = multiplier

        document["near"] = self.point.to_document()
        document["spherical"] = True if self.uses_geo_json else self.is_spherical
        return document

    def _distance_value(self, distance: Distance) -> float:
        if self.uses_geo_json:
            if distance.metric == Metrics.NEUTRAL:
                return distance.value
            return distance.in_meters()
        if distance.metric == Metrics.NEUTRAL:
            return distance.value
        return distance.normalized_value

    def _as_distance(self, distance: Distance | float) -> Distance:
        if isinstance(distance, Distance):
            return distance
        return Distance(value=float(distance), metric=self.metric)

    def _adopt_metric(self, metric: Metric) -> "NearQuery":
        if metric != Metrics.NEUTRAL and self.metric == Metrics.NEUTRAL:
            return self.in_metric(metric)
        return self
