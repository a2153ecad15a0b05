from .hints import (
    MemberCategory,
    TypeReference,
    ReflectionHints,
    ProxyHints,
    RuntimeHints,
    MongoRuntimeHints,
)
from .predicates import (
    is_module_present,
    is_sync_client_present,
    is_reactive_client_present,
    is_simple_type,
)

__all__ = [
    "MemberCategory",
    "TypeReference",
    "ReflectionHints",
    "ProxyHints",
    "RuntimeHints",
    "MongoRuntimeHints",
    "is_module_present",
    "is_sync_client_present",
    "is_reactive_client_present",
    "is_simple_type",
]
