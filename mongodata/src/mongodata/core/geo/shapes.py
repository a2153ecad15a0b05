from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict

from .metrics import Metric, Metrics


class Point(BaseModel):
    """Legacy coordinate pair, stored as ``[x, y]``."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    def to_coordinates(self) -> List[float]:
        return [self.x, self.y]

    def to_document(self) -> Any:
        return self.to_coordinates()


class GeoJsonPoint(Point):
    """Point stored as a GeoJSON geometry (x is the longitude)."""

    def to_document(self) -> Dict[str, Any]:
        return {"type": "Point", "coordinates": self.to_coordinates()}


class Distance(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: float
    metric: Metric = Metrics.NEUTRAL

    @property
    def normalized_value(self) -> float:
        """Value in radians."""
        return self.value / self.metric.multiplier

    def in_metric(self, metric: Metric) -> "Distance":
        if metric == self.metric:
            return self
        return Distance(value=self.normalized_value * metric.multiplier, metric=metric)

    def in_meters(self) -> float:
        return self.normalized_value * Metrics.EARTH_RADIUS_METERS

    def __add__(self, other: "Distance") -> "Distance":
        other = other.in_metric(self.metric)
        return Distance(value=self.value + other.value, metric=self.metric)

    def __lt__(self, other: "Distance") -> bool:
        return self.normalized_value < other.normalized_value

    def __str__(self) -> str:
        suffix = f" {self.metric.abbreviation}" if self.metric.abbreviation else ""
        return f"{self.value}{suffix}"
