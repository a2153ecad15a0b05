from typing import Any, Dict, List, Optional, Sequence

from .operation import AggregationOperation, AggregationOperationContext, DEFAULT_CONTEXT
from .geo_near import GeoNearOperation
from .stages import LimitOperation, MatchOperation, SkipOperation, SortOperation


class Aggregation:
    """Ordered sequence of aggregation operations."""

    def __init__(self, operations: Sequence[AggregationOperation]):
        if not operations:
            raise ValueError("Aggregation requires at least one operation")
        if any(op is None for op in operations):
            raise ValueError("Aggregation operations must not be None")
        self._operations = tuple(operations)

    @property
    def operations(self) -> tuple:
        return self._operations

    def to_pipeline(self, context: Optional[AggregationOperationContext] = None) -> List[Dict[str, Any]]:
        context = context or DEFAULT_CONTEXT
        pipeline: List[Dict[str, Any]] = []
        for operation in self._operations:
            pipeline.extend(operation.to_pipeline_stages(context))
        return pipeline

    def to_document(
        self, collection: str, context: Optional[AggregationOperationContext] = None
    ) -> Dict[str, Any]:
        return {"aggregate": collection, "pipeline": self.to_pipeline(context), "cursor": {}}


def new_aggregation(*operations: AggregationOperation) -> Aggregation:
    return Aggregation(operations)


def geo_near(near_query, distance_field: str) -> GeoNearOperation:
    return GeoNearOperation(near_query, distance_field)


def match(criteria: Dict[str, Any]) -> MatchOperation:
    return MatchOperation(criteria)


def skip(count: int) -> SkipOperation:
    return SkipOperation(count)


def limit(count: int) -> LimitOperation:
    return LimitOperation(count)


def sort(*orders) -> SortOperation:
    return SortOperation(*orders)
