from typing import Any, Dict, Optional

from mongodata.core.mapping import MongoPersistentEntity, ID_FIELD
from .converter import MappingMongoConverter

LOGICAL_OPERATORS = ("$and", "$or", "$nor")


class QueryMapper:
    """
    Translates a query document written against entity properties into one
    written against document fields:

        {"last_name": "Doe", "address.zip_code": {"$in": [...]}}
        -> {"lastName": "Doe", "address.zip": {"$in": [...]}}

    Keys that are not entity properties are kept as they are.
    """

    def __init__(self, converter: MappingMongoConverter):
        self._converter = converter
        self._mapping_context = converter.mapping_context

    def get_mapped_object(
        self, document: Dict[str, Any], entity: Optional[MongoPersistentEntity]
    ) -> Dict[str, Any]:
        if document is None:
            return {}
        if entity is None:
            return dict(document)

        mapped: Dict[str, Any] = {}
        for key, value in document.items():
            if key in LOGICAL_OPERATORS and isinstance(value, list):
                mapped[key] = [
                    self.get_mapped_object(v, entity) if isinstance(v, dict) else v for v in value
                ]
            elif key.startswith("$"):
                mapped[key] = self.get_mapped_object(value, entity) if isinstance(value, dict) else value
            else:
                field_name, is_id, known = self.map_path(key, entity)
                mapped[field_name] = self._map_value(value, is_id) if known else value
        return mapped

    def map_path(self, path: str, entity: MongoPersistentEntity):
        """Return ``(field path, is id, fully mapped)`` for a dotted property path."""
        parts = path.split(".")
        mapped_parts = []
        current: Optional[MongoPersistentEntity] = entity
        is_id = False
        known = True

        for part in parts:
            if current is None or part.isdigit() or part.startswith("$"):
                mapped_parts.append(part)
                known = known and (part.isdigit() or part.startswith("$"))
                continue

            prop = current.get_property(part) or current.get_property_by_field(part)
            if prop is None:
                mapped_parts.append(part)
                current = None
                known = False
                continue

            mapped_parts.append(prop.field_name)
            is_id = prop.field_name == ID_FIELD and len(mapped_parts) == 1
            current = (
                self._mapping_context.get_persistent_entity(prop.actual_type) if prop.is_entity else None
            )

        return ".".join(mapped_parts), is_id, known

    def _map_value(self, value: Any, is_id: bool) -> Any:
        convert = self._converter.convert_id if is_id else self._converter.convert_to_mongo_type
        if isinstance(value, dict) and value and all(k.startswith("$") for k in value):
            return {
                op: [convert(v) for v in operand] if isinstance(operand, list) else convert(operand)
                for op, operand in value.items()
            }
        return convert(value)
