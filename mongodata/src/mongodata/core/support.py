from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar, Union

from bson import ObjectId

from mongodata.core.aggregation import (
    Aggregation,
    AggregationOperationContext,
    GeoNearOperation,
    NoOpAggregationOperationContext,
    TypeBasedAggregationOperationContext,
)
from mongodata.core.convert import MappingMongoConverter, QueryMapper
from mongodata.core.geo import Distance, GeoResult, GeoResults
from mongodata.core.mapping import ID_FIELD, MongoMappingContext, MongoPersistentEntity
from mongodata.core.query import NearQuery, Query
from mongodata.core.tracing import MongoTracingMixin

T = TypeVar("T")

DEFAULT_DISTANCE_FIELD = "dis"


class MongoTemplateSupport(MongoTracingMixin):
    """Mapping logic shared by the synchronous and the reactive template."""

    def __init__(self, database: Any, converter: Optional[MappingMongoConverter] = None):
        if database is None:
            raise ValueError("Database must not be None")
        self._database = database
        self._converter = converter or MappingMongoConverter()
        self._query_mapper = QueryMapper(self._converter)
        self._database_name = getattr(database, "name", "")

    @property
    def database(self) -> Any:
        return self._database

    @property
    def converter(self) -> MappingMongoConverter:
        return self._converter

    @property
    def mapping_context(self) -> MongoMappingContext:
        return self._converter.mapping_context

    def persistent_entity(self, entity_type: Type[Any]) -> MongoPersistentEntity:
        return self.mapping_context.get_persistent_entity(entity_type)

    def collection_name(self, entity_type: Type[Any]) -> str:
        return self.persistent_entity(entity_type).collection

    def get_collection(self, name: str) -> Any:
        return self._database[name]

    def _map_query(self, query: Query, entity_type: Type[Any]) -> Tuple[Dict[str, Any], List[Tuple[str, int]]]:
        entity = self.persistent_entity(entity_type)
        criteria = self._query_mapper.get_mapped_object(query.criteria, entity)
        sort = [(self._query_mapper.map_path(field, entity)[0], direction) for field, direction in query.sort]
        return criteria, sort

    def _find_kwargs(self, query: Query, sort: List[Tuple[str, int]]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        if sort:
            kwargs["sort"] = sort
        if query.skip:
            kwargs["skip"] = query.skip
        if query.limit:
            kwargs["limit"] = query.limit
        return kwargs

    def _id_filter(self, id: Any) -> Dict[str, Any]:
        return {ID_FIELD: self._converter.convert_id(id)}

    def _aggregation_context(self, input_type: Optional[Type[Any]]) -> AggregationOperationContext:
        if input_type is None:
            return NoOpAggregationOperationContext()
        return TypeBasedAggregationOperationContext(input_type, self.mapping_context, self._query_mapper)

    def _aggregation_target(
        self, input: Union[Type[Any], str, None], collection: Optional[str]
    ) -> Tuple[Optional[Type[Any]], str]:
        if isinstance(input, str):
            return None, input
        if input is None and collection is None:
            raise ValueError("Either an input type or a collection name is required")
        return input, collection or self.collection_name(input)

    def _geo_near_pipeline(self, near_query: NearQuery, entity_type: Type[Any], distance_field: str):
        operation = GeoNearOperation(near_query, distance_field)
        return Aggregation([operation]).to_pipeline(self._aggregation_context(entity_type))

    def _geo_results(
        self, documents: List[Dict[str, Any]], near_query: NearQuery, entity_type: Type[T], distance_field: str
    ) -> GeoResults[T]:
        results = []
        for document in documents:
            document = dict(document)
            distance = float(document.pop(distance_field, 0.0))
            content = self._converter.read(entity_type, document)
            results.append(GeoResult(content, Distance(value=distance, metric=near_query.metric)))
        return GeoResults(results, near_query.metric)

    def _prepare_version(self, entity: Any, persistent: MongoPersistentEntity, is_new: bool) -> Tuple[Any, Optional[int]]:
        """Return the entity with its next version and the version expected in the store."""
        version = persistent.version_property
        if version is None:
            return entity, None
        current = getattr(entity, version.name)
        if is_new or current is None:
            return self._set_property(entity, version.name, 0), None
        return self._set_property(entity, version.name, current + 1), current

    def _populate_id(self, entity: Any, persistent: MongoPersistentEntity, id: Any) -> Any:
        prop = persistent.id_property
        if prop is None or id is None or getattr(entity, prop.name) is not None:
            return entity
        if isinstance(id, ObjectId) and prop.type is str:
            id = str(id)
        return self._set_property(entity, prop.name, id)

    @staticmethod
    def _set_property(entity: Any, name: str, value: Any) -> Any:
        if entity.model_config.get("frozen", False):
            return entity.model_copy(update={name: value})
        setattr(entity, name, value)
        return entity
