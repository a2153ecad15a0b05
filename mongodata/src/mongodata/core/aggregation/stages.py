from typing import Any, Dict, Tuple

from .operation import AggregationOperation, AggregationOperationContext


class MatchOperation(AggregationOperation):
    def __init__(self, criteria: Dict[str, Any]):
        if criteria is None:
            raise ValueError("Criteria must not be None")
        self._criteria = dict(criteria)

    @property
    def operator(self) -> str:
        return "$match"

    def to_document(self, context: AggregationOperationContext) -> Dict[str, Any]:
        return {self.operator: context.get_mapped_object(self._criteria)}


class SkipOperation(AggregationOperation):
    def __init__(self, skip: int):
        if skip < 0:
            raise ValueError("Skip must not be negative")
        self._skip = skip

    @property
    def operator(self) -> str:
        return "$skip"

    def to_document(self, context):
        return {self.operator: self._skip}


class LimitOperation(AggregationOperation):
    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError("Limit must be greater than zero")
        self._limit = limit

    @property
    def operator(self) -> str:
        return "$limit"

    def to_document(self, context):
        return {self.operator: self._limit}


class SortOperation(AggregationOperation):
    def __init__(self, *orders: Tuple[str, int]):
        if not orders:
            raise ValueError("Sort requires at least one order")
        self._orders = orders

    @property
    def operator(self) -> str:
        return "$sort"

    def to_document(self, context):
        return {self.operator: context.get_mapped_object({field: direction for field, direction in self._orders})}
