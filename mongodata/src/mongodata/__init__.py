from .core.geo import Distance, GeoJsonPoint, GeoResult, GeoResults, Metrics, Point
from .core.query import NearQuery, Query
from .core.aggregation import Aggregation, GeoNearOperation, new_aggregation
from .core.convert import ConverterRegistration, CustomConversions, reading_converter, writing_converter
from .core.mapping import (
    created_by,
    created_date,
    document,
    field,
    id_field,
    last_modified_by,
    last_modified_date,
    version,
)
from .core.mapping.event import AuditingEntityCallback, ReactiveAuditingEntityCallback
from .core import MongoTemplate, ReactiveMongoTemplate
from .repository import (
    Fragment,
    MongoRepository,
    MongoRepositoryFactory,
    fragment_implementation,
    invoke,
    query,
)
from .aot import MongoRuntimeHints, RuntimeHints
from .builder import DataAccessBuilder

__all__ = [
    "Distance",
    "GeoJsonPoint",
    "GeoResult",
    "GeoResults",
    "Metrics",
    "Point",
    "NearQuery",
    "Query",
    "Aggregation",
    "GeoNearOperation",
    "new_aggregation",
    "ConverterRegistration",
    "CustomConversions",
    "reading_converter",
    "writing_converter",
    "created_by",
    "created_date",
    "document",
    "field",
    "id_field",
    "last_modified_by",
    "last_modified_date",
    "version",
    "AuditingEntityCallback",
    "ReactiveAuditingEntityCallback",
    "MongoTemplate",
    "ReactiveMongoTemplate",
    "Fragment",
    "MongoRepository",
    "MongoRepositoryFactory",
    "fragment_implementation",
    "invoke",
    "query",
    "MongoRuntimeHints",
    "RuntimeHints",
    "DataAccessBuilder",
]
