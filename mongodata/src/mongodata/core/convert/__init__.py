from .simple_types import MongoSimpleTypes
from .registration import ConverterPolicy, ConverterRegistration, resolve_direction
from .conversions import CustomConversions, reading_converter, writing_converter
from .converter import MappingMongoConverter
from .query_mapper import QueryMapper

__all__ = [
    "MongoSimpleTypes",
    "ConverterPolicy",
    "ConverterRegistration",
    "resolve_direction",
    "CustomConversions",
    "reading_converter",
    "writing_converter",
    "MappingMongoConverter",
    "QueryMapper",
]
