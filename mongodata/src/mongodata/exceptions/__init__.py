from ._exception import (
    DataAccessException,
    MappingException,
    InvalidDataAccessApiUsageException,
    DocumentNotFound,
    DuplicateKeyException,
    OptimisticLockingFailureException,
    DataAccessResourceFailureException,
    UncategorizedMongoDbException,
    translate_exception,
)

__all__ = [
    "DataAccessException",
    "MappingException",
    "InvalidDataAccessApiUsageException",
    "DocumentNotFound",
    "DuplicateKeyException",
    "OptimisticLockingFailureException",
    "DataAccessResourceFailureException",
    "UncategorizedMongoDbException",
    "translate_exception",
]
