from typing import Any, Dict, List, Optional, Type, Union, get_args, get_origin
import types

from pydantic import BaseModel

from mongodata.exceptions import MappingException
from mongodata.util import uncapitalize
from .document import get_field_metadata

ID_FIELD = "_id"


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


class MongoPersistentProperty:
    def __init__(self, name: str, annotation: Any, metadata: Dict[str, Any]):
        self.name = name
        self.annotation = annotation
        self.metadata = metadata
        self.type = _unwrap_optional(annotation)

    @property
    def is_id_property(self) -> bool:
        return self.metadata.get("id", False) or (self.name == "id" and not self.metadata.get("field_name"))

    @property
    def is_version_property(self) -> bool:
        return self.metadata.get("version", False)

    @property
    def field_name(self) -> str:
        if self.is_id_property:
            return ID_FIELD
        return self.metadata.get("field_name") or self.name

    def has_flag(self, flag: str) -> bool:
        return bool(self.metadata.get(flag, False))

    @property
    def actual_type(self) -> Any:
        """Element type for collections, the type itself otherwise."""
        origin = get_origin(self.type)
        if origin in (list, set, tuple, frozenset, List):
            args = [a for a in get_args(self.type) if a is not Ellipsis]
            if args:
                return _unwrap_optional(args[0])
        if origin is dict:
            args = get_args(self.type)
            if len(args) == 2:
                return _unwrap_optional(args[1])
        return self.type

    @property
    def is_entity(self) -> bool:
        actual = self.actual_type
        return isinstance(actual, type) and issubclass(actual, BaseModel)

    def __repr__(self) -> str:
        return f"MongoPersistentProperty({self.name!r} -> {self.field_name!r})"


class MongoPersistentEntity:
    """Mapping metadata of one entity type."""

    def __init__(self, entity_type: Type[BaseModel]):
        if not (isinstance(entity_type, type) and issubclass(entity_type, BaseModel)):
            raise MappingException(f"{entity_type!r} is not a pydantic model and cannot be mapped")
        self.type = entity_type
        self._properties: Dict[str, MongoPersistentProperty] = {}
        self._by_field: Dict[str, MongoPersistentProperty] = {}

        for name, field_info in entity_type.model_fields.items():
            prop = MongoPersistentProperty(name, field_info.annotation, get_field_metadata(field_info))
            if prop.field_name in self._by_field:
                raise MappingException(
                    f"Ambiguous field name {prop.field_name!r} in {entity_type.__name__}: "
                    f"{self._by_field[prop.field_name].name} and {name}"
                )
            self._properties[name] = prop
            self._by_field[prop.field_name] = prop

    @property
    def collection(self) -> str:
        collection = getattr(self.type, "__document_collection__", None)
        return collection or uncapitalize(self.type.__name__)

    @property
    def properties(self) -> List[MongoPersistentProperty]:
        return list(self._properties.values())

    @property
    def id_property(self) -> Optional[MongoPersistentProperty]:
        return self._by_field.get(ID_FIELD)

    @property
    def version_property(self) -> Optional[MongoPersistentProperty]:
        for prop in self._properties.values():
            if prop.is_version_property:
                return prop
        return None

    def get_property(self, name: str) -> Optional[MongoPersistentProperty]:
        return self._properties.get(name)

    def get_property_by_field(self, field_name: str) -> Optional[MongoPersistentProperty]:
        return self._by_field.get(field_name)

    def properties_with(self, flag: str) -> List[MongoPersistentProperty]:
        return [p for p in self._properties.values() if p.has_flag(flag)]

    def get_id(self, entity: Any) -> Any:
        prop = self.id_property
        return getattr(entity, prop.name) if prop is not None else None

    def is_new(self, entity: Any) -> bool:
        version = self.version_property
        if version is not None:
            return getattr(entity, version.name) is None
        return self.get_id(entity) is None

    def __repr__(self) -> str:
        return f"MongoPersistentEntity({self.type.__name__}, collection={self.collection!r})"
