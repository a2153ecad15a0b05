from .operation import (
    AggregationOperation,
    AggregationOperationContext,
    NoOpAggregationOperationContext,
    TypeBasedAggregationOperationContext,
    DEFAULT_CONTEXT,
)
from .stages import MatchOperation, SkipOperation, LimitOperation, SortOperation
from .geo_near import GeoNearOperation
from .aggregation import Aggregation, new_aggregation, geo_near, match, skip, limit, sort

__all__ = [
    "AggregationOperation",
    "AggregationOperationContext",
    "NoOpAggregationOperationContext",
    "TypeBasedAggregationOperationContext",
    "DEFAULT_CONTEXT",
    "MatchOperation",
    "SkipOperation",
    "LimitOperation",
    "SortOperation",
    "GeoNearOperation",
    "Aggregation",
    "new_aggregation",
    "geo_near",
    "match",
    "skip",
    "limit",
    "sort",
]
