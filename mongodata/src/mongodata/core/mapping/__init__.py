from .document import (
    document,
    field,
    id_field,
    created_date,
    created_by,
    last_modified_date,
    last_modified_by,
    version,
)
from .entity import MongoPersistentEntity, MongoPersistentProperty, ID_FIELD
from .context import MongoMappingContext
from .auditing import AuditingHandler, IsNewAwareAuditingHandler

__all__ = [
    "document",
    "field",
    "id_field",
    "created_date",
    "created_by",
    "last_modified_date",
    "last_modified_by",
    "version",
    "MongoPersistentEntity",
    "MongoPersistentProperty",
    "ID_FIELD",
    "MongoMappingContext",
    "AuditingHandler",
    "IsNewAwareAuditingHandler",
]
