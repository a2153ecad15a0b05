from .metrics import Metric, Metrics
from .shapes import Point, GeoJsonPoint, Distance
from .results import GeoResult, GeoResults

__all__ = ["Metric", "Metrics", "Point", "GeoJsonPoint", "Distance", "GeoResult", "GeoResults"]
