from typing import Generic, Iterator, List, TypeVar

from .metrics import Metric, Metrics
from .shapes import Distance

T = TypeVar("T")


class GeoResult(Generic[T]):
    def __init__(self, content: T, distance: Distance):
        self.content = content
        self.distance = distance

    def __repr__(self) -> str:
        return f"GeoResult({self.content!r}, distance={self.distance})"


class GeoResults(Generic[T]):
    def __init__(self, results: List[GeoResult[T]], metric: Metric = Metrics.NEUTRAL):
        self.results = list(results)
        self.metric = metric

    @property
    def average_distance(self) -> Distance:
        if not self.results:
            return Distance(value=0.0, metric=self.metric)
        total = sum(r.distance.in_metric(self.metric).value for r in self.results)
        return Distance(value=total / len(self.results), metric=self.metric)

    @property
    def content(self) -> List[T]:
        return [r.content for r in self.results]

    def __iter__(self) -> Iterator[GeoResult[T]]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)
