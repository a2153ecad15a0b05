from typing import Any, Dict, List, Optional

from mongodata.core.query import NearQuery
from mongodata.util import has_text
from .operation import AggregationOperation, AggregationOperationContext
from .stages import LimitOperation, SkipOperation


class GeoNearOperation(AggregationOperation):
    """
    ``$geoNear`` stage built from a NearQuery.

    The distance field names the output field holding the calculated
    distance. Instances are immutable, ``use_index`` returns a copy.
    """

    __slots__ = ("_near_query", "_distance_field", "_index_key")

    def __init__(self, near_query: NearQuery, distance_field: str, index_key: Optional[str] = None):
        if near_query is None:
            raise ValueError("NearQuery must not be None")
        if not has_text(distance_field):
            raise ValueError("Distance field must not be None or empty")

        self._near_query = near_query
        self._distance_field = distance_field
        self._index_key = index_key

    @property
    def near_query(self) -> NearQuery:
        return self._near_query

    @property
    def distance_field(self) -> str:
        return self._distance_field

    @property
    def index_key(self) -> Optional[str]:
        return self._index_key

    @property
    def operator(self) -> str:
        return "$geoNear"

    def use_index(self, key: str) -> "GeoNearOperation":
        """Use the geospatial index on ``key`` to calculate the distance."""
        return GeoNearOperation(self._near_query, self._distance_field, key)

    def to_document(self, context: AggregationOperationContext) -> Dict[str, Any]:
        command = dict(context.get_mapped_object(self._near_query.to_document()))

        if isinstance(command.get("query"), dict):
            command["query"] = context.get_mapped_object(command["query"])

        command["distanceField"] = self._distance_field

        if has_text(self._index_key):
            command["key"] = self._index_key

        return {self.operator: command}

    def to_pipeline_stages(self, context: AggregationOperationContext) -> List[Dict[str, Any]]:
        stages = [self.to_document(context)]
        if self._near_query.skip_count:
            stages.append(SkipOperation(self._near_query.skip_count).to_document(context))
        if self._near_query.limit_count is not None:
            stages.append(LimitOperation(self._near_query.limit_count).to_document(context))
        return stages

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GeoNearOperation):
            return NotImplemented
        return (
            self._near_query == other._near_query
            and self._distance_field == other._distance_field
            and self._index_key == other._index_key
        )

    def __hash__(self) -> int:
        return hash((self._distance_field, self._index_key))

    def __repr__(self) -> str:
        return f"GeoNearOperation(distance_field={self._distance_field!r}, index_key={self._index_key!r})"
