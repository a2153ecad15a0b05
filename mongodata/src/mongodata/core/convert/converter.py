from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar, Union, get_args, get_origin
import types

from bson import ObjectId
from pydantic import BaseModel

from mongodata.core.geo import GeoJsonPoint
from mongodata.core.mapping import MongoMappingContext, ID_FIELD
from mongodata.exceptions import MappingException
from .conversions import CustomConversions

T = TypeVar("T", bound=BaseModel)

_COLLECTION_ORIGINS = (list, set, frozenset, tuple)


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


class MappingMongoConverter:
    """Converts entities to documents and back using the mapping metadata."""

    def __init__(
        self,
        mapping_context: Optional[MongoMappingContext] = None,
        custom_conversions: Optional[CustomConversions] = None,
    ):
        self._mapping_context = mapping_context or MongoMappingContext()
        self._custom_conversions = custom_conversions or CustomConversions()

    @property
    def mapping_context(self) -> MongoMappingContext:
        return self._mapping_context

    @property
    def custom_conversions(self) -> CustomConversions:
        return self._custom_conversions

    def write(self, entity: BaseModel) -> Dict[str, Any]:
        if entity is None:
            raise ValueError("Entity must not be None")
        persistent = self._mapping_context.get_persistent_entity(type(entity))
        document: Dict[str, Any] = {}
        for prop in persistent.properties:
            value = getattr(entity, prop.name)
            if value is None:
                continue
            if prop.is_id_property:
                document[ID_FIELD] = self.convert_id(value)
            else:
                document[prop.field_name] = self.convert_to_mongo_type(value)
        return document

    def convert_id(self, value: Any) -> Any:
        if isinstance(value, str) and ObjectId.is_valid(value):
            return ObjectId(value)
        return self.convert_to_mongo_type(value)

    def convert_to_mongo_type(self, value: Any) -> Any:
        if value is None:
            return None
        if self._custom_conversions.has_custom_write_target(type(value)):
            return self._custom_conversions.convert_for_write(value)
        if isinstance(value, GeoJsonPoint):
            return value.to_document()
        if isinstance(value, BaseModel):
            return self.write(value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, dict):
            return {str(k): self.convert_to_mongo_type(v) for k, v in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.convert_to_mongo_type(v) for v in value]
        return value

    def read(self, entity_type: Type[T], document: Dict[str, Any]) -> T:
        if document is None:
            raise ValueError("Document must not be None")
        persistent = self._mapping_context.get_persistent_entity(entity_type)
        data: Dict[str, Any] = {}
        for field_name, value in document.items():
            prop = persistent.get_property_by_field(field_name)
            if prop is None:
                continue
            data[prop.name] = self._read_value(value, prop.type)
        try:
            return entity_type.model_validate(data)
        except ValueError as e:
            raise MappingException(
                f"Cannot read document into {entity_type.__name__}: {e}", cause=e
            ) from e

    def _read_value(self, value: Any, target: Any) -> Any:
        target = _unwrap_optional(target)
        if value is None:
            return None

        if isinstance(target, type) and self._custom_conversions.has_custom_read_target(type(value), target):
            return self._custom_conversions.convert_for_read(value, target)
        if isinstance(value, ObjectId) and target is str:
            return str(value)
        if isinstance(value, dict) and isinstance(target, type) and issubclass(target, GeoJsonPoint):
            x, y = value["coordinates"]
            return target(x=x, y=y)
        if isinstance(value, dict) and isinstance(target, type) and issubclass(target, BaseModel):
            return self.read(target, value)

        origin = get_origin(target)
        if isinstance(value, list) and origin in _COLLECTION_ORIGINS:
            args = [a for a in get_args(target) if a is not Ellipsis]
            element = args[0] if args else Any
            return [self._read_value(v, element) for v in value]
        if isinstance(value, dict) and origin is dict:
            args = get_args(target)
            element = args[1] if len(args) == 2 else Any
            return {k: self._read_value(v, element) for k, v in value.items()}
        return value
