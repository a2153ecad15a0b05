from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from mongodata.core.aggregation import Aggregation
from mongodata.core.convert import MappingMongoConverter
from mongodata.core.geo import GeoResults
from mongodata.core.mapping.event import (
    ReactiveAfterConvertCallback,
    ReactiveAfterSaveCallback,
    ReactiveBeforeConvertCallback,
    ReactiveBeforeSaveCallback,
    ReactiveEntityCallbacks,
)
from mongodata.core.query import NearQuery, Query
from mongodata.core.session import SessionScoped
from mongodata.core.support import DEFAULT_DISTANCE_FIELD, MongoTemplateSupport
from mongodata.exceptions import OptimisticLockingFailureException
from mongodata.telemetry import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ReactiveMongoTemplate(MongoTemplateSupport):
    """Asynchronous entity operations over a motor ``AsyncIOMotorDatabase``."""

    def __init__(
        self,
        database: Any,
        converter: Optional[MappingMongoConverter] = None,
        entity_callbacks: Optional[ReactiveEntityCallbacks] = None,
    ):
        super().__init__(database, converter)
        self._entity_callbacks = entity_callbacks or ReactiveEntityCallbacks()

    @property
    def entity_callbacks(self) -> ReactiveEntityCallbacks:
        return self._entity_callbacks

    def with_session(self, session: Any) -> "ReactiveMongoTemplate":
        """Return a template whose operations all run inside the motor ``session``."""
        from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

        database = SessionScoped(self._database, session, (AsyncIOMotorDatabase, AsyncIOMotorCollection))
        return ReactiveMongoTemplate(database, self._converter, self._entity_callbacks)

    async def insert(self, entity: T, collection: Optional[str] = None) -> T:
        if entity is None:
            raise ValueError("Entity must not be None")
        persistent = self.persistent_entity(type(entity))
        collection = collection or persistent.collection

        entity = await self._entity_callbacks.callback(ReactiveBeforeConvertCallback, entity, collection)
        entity, _ = self._prepare_version(entity, persistent, is_new=True)
        document = self._converter.write(entity)
        entity = await self._entity_callbacks.callback(ReactiveBeforeSaveCallback, entity, document, collection)

        with self._traced("insert", collection, f"insert {collection}"):
            result = await self.get_collection(collection).insert_one(document)

        logger.debug("Document inserted", collection=collection, id=str(result.inserted_id))
        entity = self._populate_id(entity, persistent, result.inserted_id)
        return await self._entity_callbacks.callback(ReactiveAfterSaveCallback, entity, document, collection)

    async def insert_all(self, entities: List[T], collection: Optional[str] = None) -> List[T]:
        return [await self.insert(entity, collection) for entity in entities]

    async def save(self, entity: T, collection: Optional[str] = None) -> T:
        if entity is None:
            raise ValueError("Entity must not be None")
        persistent = self.persistent_entity(type(entity))
        if persistent.is_new(entity):
            return await self.insert(entity, collection)

        collection = collection or persistent.collection
        entity = await self._entity_callbacks.callback(ReactiveBeforeConvertCallback, entity, collection)
        entity, expected_version = self._prepare_version(entity, persistent, is_new=False)
        document = self._converter.write(entity)
        entity = await self._entity_callbacks.callback(ReactiveBeforeSaveCallback, entity, document, collection)

        filter = self._id_filter(persistent.get_id(entity))
        if expected_version is not None:
            filter[persistent.version_property.field_name] = expected_version

        with self._traced("replace", collection, f"replace {collection} {filter}"):
            result = await self.get_collection(collection).replace_one(
                filter, document, upsert=expected_version is None
            )

        if expected_version is not None and result.matched_count == 0:
            raise OptimisticLockingFailureException(
                f"Cannot save entity {persistent.get_id(entity)} with version {expected_version} "
                f"to collection {collection}; has it been modified meanwhile?"
            )

        entity = self._populate_id(entity, persistent, result.upserted_id)
        return await self._entity_callbacks.callback(ReactiveAfterSaveCallback, entity, document, collection)

    async def remove(
        self,
        target: Union[Any, Query],
        entity_type: Optional[Type[Any]] = None,
        collection: Optional[str] = None,
    ) -> int:
        if target is None:
            raise ValueError("Entity or query must not be None")

        if isinstance(target, Query):
            if entity_type is None:
                raise ValueError("Removing by query requires the entity type")
            collection = collection or self.collection_name(entity_type)
            criteria, _ = self._map_query(target, entity_type)
            with self._traced("delete", collection, f"delete {collection} {criteria}"):
                result = await self.get_collection(collection).delete_many(criteria)
            return result.deleted_count

        persistent = self.persistent_entity(type(target))
        collection = collection or persistent.collection
        filter = self._id_filter(persistent.get_id(target))
        with self._traced("delete", collection, f"delete {collection} {filter}"):
            result = await self.get_collection(collection).delete_one(filter)
        return result.deleted_count

    async def find_by_id(self, id: Any, entity_type: Type[T], collection: Optional[str] = None) -> Optional[T]:
        if id is None:
            raise ValueError("Id must not be None")
        collection = collection or self.collection_name(entity_type)
        filter = self._id_filter(id)
        with self._traced("find", collection, f"find {collection} {filter}"):
            document = await self.get_collection(collection).find_one(filter)
        return await self._read(entity_type, document, collection)

    async def find_one(self, query: Query, entity_type: Type[T], collection: Optional[str] = None) -> Optional[T]:
        results = await self.find(query.with_limit(1), entity_type, collection)
        return results[0] if results else None

    async def find(self, query: Query, entity_type: Type[T], collection: Optional[str] = None) -> List[T]:
        collection = collection or self.collection_name(entity_type)
        criteria, sort = self._map_query(query, entity_type)
        with self._traced("find", collection, f"find {collection} {criteria}"):
            cursor = self.get_collection(collection).find(criteria, **self._find_kwargs(query, sort))
            documents = await cursor.to_list(length=None)
        return [await self._read(entity_type, document, collection) for document in documents]

    async def find_all(self, entity_type: Type[T], collection: Optional[str] = None) -> List[T]:
        return await self.find(Query(), entity_type, collection)

    async def count(self, query: Query, entity_type: Type[Any], collection: Optional[str] = None) -> int:
        collection = collection or self.collection_name(entity_type)
        criteria, _ = self._map_query(query, entity_type)
        with self._traced("count", collection, f"count {collection} {criteria}"):
            return await self.get_collection(collection).count_documents(criteria)

    async def exists(self, query: Query, entity_type: Type[Any], collection: Optional[str] = None) -> bool:
        collection = collection or self.collection_name(entity_type)
        criteria, _ = self._map_query(query, entity_type)
        with self._traced("count", collection, f"exists {collection} {criteria}"):
            return await self.get_collection(collection).count_documents(criteria, limit=1) > 0

    async def aggregate(
        self,
        aggregation: Aggregation,
        input: Union[Type[Any], str, None] = None,
        output_type: Type[T] = dict,
        collection: Optional[str] = None,
    ) -> List[T]:
        input_type, collection = self._aggregation_target(input, collection)
        pipeline = aggregation.to_pipeline(self._aggregation_context(input_type))
        with self._traced("aggregate", collection, f"aggregate {collection} {pipeline}"):
            documents = await self.get_collection(collection).aggregate(pipeline).to_list(length=None)
        if output_type is dict:
            return documents
        return [self._converter.read(output_type, document) for document in documents]

    async def geo_near(
        self,
        near_query: NearQuery,
        entity_type: Type[T],
        collection: Optional[str] = None,
        distance_field: str = DEFAULT_DISTANCE_FIELD,
    ) -> GeoResults[T]:
        collection = collection or self.collection_name(entity_type)
        pipeline = self._geo_near_pipeline(near_query, entity_type, distance_field)
        with self._traced("aggregate", collection, f"geoNear {collection} {pipeline[0]}"):
            documents = await self.get_collection(collection).aggregate(pipeline).to_list(length=None)
        return self._geo_results(documents, near_query, entity_type, distance_field)

    async def _read(self, entity_type: Type[T], document: Optional[Dict[str, Any]], collection: str) -> Optional[T]:
        if document is None:
            return None
        entity = self._converter.read(entity_type, document)
        return await self._entity_callbacks.callback(ReactiveAfterConvertCallback, entity, document, collection)
