from typing import Any, Generic, Iterable, List, Optional, Tuple, Type, TypeVar

from mongodata.core.query import Query
from mongodata.core.template import MongoTemplate
from mongodata.exceptions import DocumentNotFound, InvalidDataAccessApiUsageException
from mongodata.telemetry import traced_class

from .metadata import RepositoryMetadata

T = TypeVar("T")
ID = TypeVar("ID")


@traced_class()
class SimpleMongoRepository(Generic[T, ID]):
    """Base implementation behind every repository interface."""

    def __init__(self, metadata: RepositoryMetadata, operations: MongoTemplate):
        self._metadata = metadata
        self._operations = operations
        self._entity = operations.persistent_entity(metadata.domain_type)

    @property
    def domain_type(self) -> Type[T]:
        return self._metadata.domain_type

    def save(self, entity: T) -> T:
        if entity is None:
            raise ValueError("Entity must not be None")
        return self._operations.save(entity)

    def save_all(self, entities: Iterable[T]) -> List[T]:
        if entities is None:
            raise ValueError("The given iterable of entities must not be None")
        return [self.save(entity) for entity in entities]

    def insert(self, entity: T) -> T:
        if entity is None:
            raise ValueError("Entity must not be None")
        return self._operations.insert(entity)

    def find_by_id(self, id: ID) -> Optional[T]:
        if id is None:
            raise ValueError("The given id must not be None")
        return self._operations.find_by_id(id, self.domain_type)

    def get_by_id(self, id: ID) -> T:
        entity = self.find_by_id(id)
        if entity is None:
            raise DocumentNotFound(id, self._entity.collection)
        return entity

    def exists_by_id(self, id: ID) -> bool:
        if id is None:
            raise ValueError("The given id must not be None")
        return self._operations.exists(self._id_query(id), self.domain_type)

    def find_all(self) -> List[T]:
        return self._operations.find_all(self.domain_type)

    def find_all_sorted(self, *orders: Tuple[str, int]) -> List[T]:
        return self._operations.find(Query().with_sort(*orders), self.domain_type)

    def find_all_by_id(self, ids: Iterable[ID]) -> List[T]:
        if ids is None:
            raise ValueError("The given ids must not be None")
        ids = list(ids)
        if not ids:
            return []
        return self._operations.find(self._id_query({"$in": ids}), self.domain_type)

    def count(self) -> int:
        return self._operations.count(Query(), self.domain_type)

    def delete(self, entity: T) -> None:
        if entity is None:
            raise ValueError("The given entity must not be None")
        if self._entity.get_id(entity) is None:
            return
        self._operations.remove(entity)

    def delete_by_id(self, id: ID) -> None:
        if id is None:
            raise ValueError("The given id must not be None")
        self._operations.remove(self._id_query(id), self.domain_type)

    def delete_all(self, entities: Optional[Iterable[T]] = None) -> None:
        if entities is None:
            self._operations.remove(Query(), self.domain_type)
            return
        for entity in entities:
            self.delete(entity)

    def _id_query(self, condition: Any) -> Query:
        id_property = self._entity.id_property
        if id_property is None:
            raise InvalidDataAccessApiUsageException(f"{self.domain_type.__name__} has no id property")
        return Query(criteria={id_property.name: condition})
