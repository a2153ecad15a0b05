from typing import Optional

from pymongo import errors as pymongo_errors


class DataAccessException(Exception):
    """
    Base exception of the data access layer.
    Keeps the original driver error as ``cause``.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.error = self.__class__.__name__


class MappingException(DataAccessException):
    """An entity type or property cannot be mapped to a document."""


class InvalidDataAccessApiUsageException(DataAccessException):
    """The data access API was called incorrectly."""


class DocumentNotFound(DataAccessException):
    def __init__(self, id: object, collection: str, message: Optional[str] = None):
        if message is None:
            message = f"The document {id} does not exist in collection {collection}"
        super().__init__(message)
        self.id = id
        self.collection = collection


class DuplicateKeyException(DataAccessException):
    pass


class OptimisticLockingFailureException(DataAccessException):
    """The stored version no longer matches the version of the saved entity."""


class DataAccessResourceFailureException(DataAccessException):
    pass


class UncategorizedMongoDbException(DataAccessException):
    pass


def translate_exception(error: Exception) -> DataAccessException:
    """Translate a pymongo error into the data access hierarchy."""
    if isinstance(error, DataAccessException):
        return error
    if isinstance(error, pymongo_errors.DuplicateKeyError):
        return DuplicateKeyException(str(error), cause=error)
    if isinstance(
        error,
        (
            pymongo_errors.ConnectionFailure,
            pymongo_errors.ServerSelectionTimeoutError,
            pymongo_errors.NetworkTimeout,
        ),
    ):
        return DataAccessResourceFailureException(str(error), cause=error)
    if isinstance(error, pymongo_errors.InvalidOperation):
        return InvalidDataAccessApiUsageException(str(error), cause=error)
    return UncategorizedMongoDbException(str(error), cause=error)
