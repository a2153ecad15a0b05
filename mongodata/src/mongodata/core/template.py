from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from mongodata.core.aggregation import Aggregation
from mongodata.core.convert import MappingMongoConverter
from mongodata.core.geo import GeoResults
from mongodata.core.mapping.event import (
    AfterConvertCallback,
    AfterSaveCallback,
    BeforeConvertCallback,
    BeforeSaveCallback,
    EntityCallbacks,
)
from mongodata.core.query import NearQuery, Query
from mongodata.core.session import SessionScoped
from mongodata.core.support import DEFAULT_DISTANCE_FIELD, MongoTemplateSupport
from mongodata.exceptions import OptimisticLockingFailureException
from mongodata.telemetry import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class MongoTemplate(MongoTemplateSupport):
    """
    Synchronous entity operations over a pymongo ``Database``.

    Writes run the before-convert callbacks, convert the entity, run the
    before-save callbacks, write, then run the after-save callbacks.
    Reads run the after-convert callbacks on every mapped entity.
    """

    def __init__(
        self,
        database: Any,
        converter: Optional[MappingMongoConverter] = None,
        entity_callbacks: Optional[EntityCallbacks] = None,
    ):
        super().__init__(database, converter)
        self._entity_callbacks = entity_callbacks or EntityCallbacks()

    @property
    def entity_callbacks(self) -> EntityCallbacks:
        return self._entity_callbacks

    def with_session(self, session: Any) -> "MongoTemplate":
        """Return a template whose operations all run inside ``session``."""
        return MongoTemplate(SessionScoped(self._database, session), self._converter, self._entity_callbacks)

    # ---- writes ----

    def insert(self, entity: T, collection: Optional[str] = None) -> T:
        if entity is None:
            raise ValueError("Entity must not be None")
        persistent = self.persistent_entity(type(entity))
        collection = collection or persistent.collection

        entity = self._entity_callbacks.callback(BeforeConvertCallback, entity, collection)
        entity, _ = self._prepare_version(entity, persistent, is_new=True)
        document = self._converter.write(entity)
        entity = self._entity_callbacks.callback(BeforeSaveCallback, entity, document, collection)

        with self._traced("insert", collection, f"insert {collection}"):
            result = self.get_collection(collection).insert_one(document)

        logger.debug("Document inserted", collection=collection, id=str(result.inserted_id))
        entity = self._populate_id(entity, persistent, result.inserted_id)
        return self._entity_callbacks.callback(AfterSaveCallback, entity, document, collection)

    def insert_all(self, entities: List[T], collection: Optional[str] = None) -> List[T]:
        return [self.insert(entity, collection) for entity in entities]

    def save(self, entity: T, collection: Optional[str] = None) -> T:
        if entity is None:
            raise ValueError("Entity must not be None")
        persistent = self.persistent_entity(type(entity))
        if persistent.is_new(entity):
            return self.insert(entity, collection)

        collection = collection or persistent.collection
        entity = self._entity_callbacks.callback(BeforeConvertCallback, entity, collection)
        entity, expected_version = self._prepare_version(entity, persistent, is_new=False)
        document = self._converter.write(entity)
        entity = self._entity_callbacks.callback(BeforeSaveCallback, entity, document, collection)

        filter = self._id_filter(persistent.get_id(entity))
        version = persistent.version_property
        if expected_version is not None:
            filter[version.field_name] = expected_version

        with self._traced("replace", collection, f"replace {collection} {filter}"):
            result = self.get_collection(collection).replace_one(
                filter, document, upsert=expected_version is None
            )

        if expected_version is not None and result.matched_count == 0:
            raise OptimisticLockingFailureException(
                f"Cannot save entity {persistent.get_id(entity)} with version {expected_version} "
                f"to collection {collection}; has it been modified meanwhile?"
            )

        logger.debug("Document saved", collection=collection, id=str(persistent.get_id(entity)))
        entity = self._populate_id(entity, persistent, result.upserted_id)
        return self._entity_callbacks.callback(AfterSaveCallback, entity, document, collection)

    def remove(
        self,
        target: Union[Any, Query],
        entity_type: Optional[Type[Any]] = None,
        collection: Optional[str] = None,
    ) -> int:
        """Remove one entity, or every document matching a Query of ``entity_type``."""
        if target is None:
            raise ValueError("Entity or query must not be None")

        if isinstance(target, Query):
            if entity_type is None:
                raise ValueError("Removing by query requires the entity type")
            collection = collection or self.collection_name(entity_type)
            criteria, _ = self._map_query(target, entity_type)
            with self._traced("delete", collection, f"delete {collection} {criteria}"):
                return self.get_collection(collection).delete_many(criteria).deleted_count

        persistent = self.persistent_entity(type(target))
        collection = collection or persistent.collection
        filter = self._id_filter(persistent.get_id(target))
        with self._traced("delete", collection, f"delete {collection} {filter}"):
            return self.get_collection(collection).delete_one(filter).deleted_count

    # ---- reads ----

    def find_by_id(self, id: Any, entity_type: Type[T], collection: Optional[str] = None) -> Optional[T]:
        if id is None:
            raise ValueError("Id must not be None")
        collection = collection or self.collection_name(entity_type)
        filter = self._id_filter(id)
        with self._traced("find", collection, f"find {collection} {filter}"):
            document = self.get_collection(collection).find_one(filter)
        return self._read(entity_type, document, collection)

    def find_one(self, query: Query, entity_type: Type[T], collection: Optional[str] = None) -> Optional[T]:
        results = self.find(query.with_limit(1), entity_type, collection)
        return results[0] if results else None

    def find(self, query: Query, entity_type: Type[T], collection: Optional[str] = None) -> List[T]:
        collection = collection or self.collection_name(entity_type)
        criteria, sort = self._map_query(query, entity_type)
        with self._traced("find", collection, f"find {collection} {criteria}"):
            documents = list(self.get_collection(collection).find(criteria, **self._find_kwargs(query, sort)))
        return [self._read(entity_type, document, collection) for document in documents]

    def find_all(self, entity_type: Type[T], collection: Optional[str] = None) -> List[T]:
        return self.find(Query(), entity_type, collection)

    def count(self, query: Query, entity_type: Type[Any], collection: Optional[str] = None) -> int:
        collection = collection or self.collection_name(entity_type)
        criteria, _ = self._map_query(query, entity_type)
        with self._traced("count", collection, f"count {collection} {criteria}"):
            return self.get_collection(collection).count_documents(criteria)

    def exists(self, query: Query, entity_type: Type[Any], collection: Optional[str] = None) -> bool:
        collection = collection or self.collection_name(entity_type)
        criteria, _ = self._map_query(query, entity_type)
        with self._traced("count", collection, f"exists {collection} {criteria}"):
            return self.get_collection(collection).count_documents(criteria, limit=1) > 0

    def aggregate(
        self,
        aggregation: Aggregation,
        input: Union[Type[Any], str, None] = None,
        output_type: Type[T] = dict,
        collection: Optional[str] = None,
    ) -> List[T]:
        """
        Run ``aggregation`` against the collection of ``input`` (an entity type
        or a collection name). Property names are mapped when a type is given.
        """
        input_type, collection = self._aggregation_target(input, collection)
        pipeline = aggregation.to_pipeline(self._aggregation_context(input_type))
        with self._traced("aggregate", collection, f"aggregate {collection} {pipeline}"):
            documents = list(self.get_collection(collection).aggregate(pipeline))
        if output_type is dict:
            return documents
        return [self._converter.read(output_type, document) for document in documents]

    def geo_near(
        self,
        near_query: NearQuery,
        entity_type: Type[T],
        collection: Optional[str] = None,
        distance_field: str = DEFAULT_DISTANCE_FIELD,
    ) -> GeoResults[T]:
        collection = collection or self.collection_name(entity_type)
        pipeline = self._geo_near_pipeline(near_query, entity_type, distance_field)
        with self._traced("aggregate", collection, f"geoNear {collection} {pipeline[0]}"):
            documents = list(self.get_collection(collection).aggregate(pipeline))
        return self._geo_results(documents, near_query, entity_type, distance_field)

    def _read(self, entity_type: Type[T], document: Optional[Dict[str, Any]], collection: str) -> Optional[T]:
        if document is None:
            return None
        entity = self._converter.read(entity_type, document)
        return self._entity_callbacks.callback(AfterConvertCallback, entity, document, collection)
