from threading import RLock
from typing import Any, Dict, Type

from .entity import MongoPersistentEntity


class MongoMappingContext:
    """Builds and caches the persistent entity of every mapped type."""

    def __init__(self):
        self._entities: Dict[Type[Any], MongoPersistentEntity] = {}
        self._lock = RLock()

    def get_persistent_entity(self, entity_type: Type[Any]) -> MongoPersistentEntity:
        entity = self._entities.get(entity_type)
        if entity is not None:
            return entity
        with self._lock:
            entity = self._entities.get(entity_type)
            if entity is None:
                entity = MongoPersistentEntity(entity_type)
                self._entities[entity_type] = entity
            return entity

    def has_persistent_entity(self, entity_type: Type[Any]) -> bool:
        return entity_type in self._entities

    @property
    def managed_types(self) -> set:
        return set(self._entities)
