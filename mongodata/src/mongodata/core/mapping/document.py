from typing import Any, Dict, Optional, Type, TypeVar
from pydantic import Field

T = TypeVar("T")

MONGO_METADATA_KEY = "mongo"


def _field(default: Any = None, **metadata: Any):
    return Field(default=default, json_schema_extra={MONGO_METADATA_KEY: metadata})


def field(name: str, default: Any = None):
    """Store the property under a different document field name."""
    return _field(default, field_name=name)


def id_field(default: Any = None):
    """Mark the identifier property (stored as ``_id``)."""
    return _field(default, id=True)


def created_date():
    return _field(None, created_date=True)


def last_modified_date():
    return _field(None, last_modified_date=True)


def created_by():
    return _field(None, created_by=True)


def last_modified_by():
    return _field(None, last_modified_by=True)


def version():
    return _field(None, version=True)


def document(collection: Optional[str] = None):
    """
    Mark a pydantic model as a mapped document.

        @document("people")
        class Person(BaseModel):
            id: Optional[str] = None
            last_name: str = field("lastName")
    """

    def decorator(cls: Type[T]) -> Type[T]:
        cls.__document_collection__ = collection
        return cls

    return decorator


def get_field_metadata(field_info) -> Dict[str, Any]:
    extra = getattr(field_info, "json_schema_extra", None)
    if isinstance(extra, dict):
        metadata = extra.get(MONGO_METADATA_KEY)
        if isinstance(metadata, dict):
            return metadata
    return {}
