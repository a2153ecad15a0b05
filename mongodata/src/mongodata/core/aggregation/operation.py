from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from mongodata.core.convert import QueryMapper
from mongodata.core.mapping import MongoMappingContext


class AggregationOperationContext(ABC):
    """Maps documents built by aggregation operations into the stored field names."""

    @abstractmethod
    def get_mapped_object(
        self, document: Dict[str, Any], entity_type: Optional[Type[Any]] = None
    ) -> Dict[str, Any]: ...


class NoOpAggregationOperationContext(AggregationOperationContext):
    def get_mapped_object(self, document, entity_type=None):
        return dict(document)


class TypeBasedAggregationOperationContext(AggregationOperationContext):
    """Translates property names of the aggregation input type into field names."""

    def __init__(
        self,
        entity_type: Type[Any],
        mapping_context: MongoMappingContext,
        query_mapper: QueryMapper,
    ):
        if entity_type is None:
            raise ValueError("Entity type must not be None")
        self.entity_type = entity_type
        self._mapping_context = mapping_context
        self._query_mapper = query_mapper

    def get_mapped_object(self, document, entity_type=None):
        entity = self._mapping_context.get_persistent_entity(entity_type or self.entity_type)
        return self._query_mapper.get_mapped_object(document, entity)


DEFAULT_CONTEXT = NoOpAggregationOperationContext()


class AggregationOperation(ABC):
    """A single stage of an aggregation pipeline."""

    @property
    @abstractmethod
    def operator(self) -> str: ...

    @abstractmethod
    def to_document(self, context: AggregationOperationContext) -> Dict[str, Any]: ...

    def to_pipeline_stages(self, context: AggregationOperationContext) -> List[Dict[str, Any]]:
        return [self.to_document(context)]
