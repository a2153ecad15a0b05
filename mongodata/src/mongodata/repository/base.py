from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Optional,
    TypeVar,
)

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

T = TypeVar("T")
ID = TypeVar("ID")

tracer = trace.get_tracer(__name__)


class Delegate:
    """Marker for a repository operation generated by RepoMeta."""

    def __init__(self, name: Optional[str] = None):
        self.name = name
        self.owner: Optional[type] = None


class StringQuery(Delegate):
    """Marker for a method running a declared filter document."""

    def __init__(
        self,
        filter: Dict[str, Any],
        sort: Optional[Dict[str, int]] = None,
        count: bool = False,
        exists: bool = False,
        delete: bool = False,
    ):
        super().__init__()
        if sum((count, exists, delete)) > 1:
            raise ValueError("A query can only be one of count, exists or delete")
        self.filter = filter
        self.sort = sort or {}
        self.count = count
        self.exists = exists
        self.delete = delete


def invoke(name: Optional[str] = None) -> Delegate:
    """Declare a repository operation; the name defaults to the attribute name."""
    return Delegate(name)


def query(
    filter: Dict[str, Any],
    *,
    sort: Optional[Dict[str, int]] = None,
    count: bool = False,
    exists: bool = False,
    delete: bool = False,
) -> StringQuery:
    """
    Declare a method running ``filter``; ``"?0"``, ``"?1"``... are replaced by
    the call arguments:

        find_adults = query({"age": {"$gte": "?0"}}, sort={"age": 1})
    """
    return StringQuery(filter, sort=sort, count=count, exists=exists, delete=delete)


class RepoMeta(type):
    """
    Metaclass turning Delegate markers into traced methods.

    Every generated method calls ``self._invoke(name, args, kwargs)``, which
    resolves the operation against the repository composition or the query
    methods. Markers are collected on ``__delegates__`` including the ones
    inherited from base classes.
    """

    def __new__(mcs, name, bases, dct):
        delegates = mcs._extract_delegate_attributes(dct)
        for attr_name, marker in delegates.items():
            dct[attr_name] = mcs._create_method(attr_name, marker.name or attr_name)

        cls = super().__new__(mcs, name, bases, dct)

        inherited: Dict[str, Delegate] = {}
        for base in reversed(cls.__mro__[1:]):
            inherited.update(getattr(base, "__own_delegates__", {}))
        for marker in delegates.values():
            marker.owner = cls
        cls.__own_delegates__ = delegates
        cls.__delegates__ = {**inherited, **delegates}
        return cls

    @staticmethod
    def _extract_delegate_attributes(dct) -> Dict[str, Delegate]:
        return {attr: value for attr, value in dct.items() if isinstance(value, Delegate)}

    @staticmethod
    def _create_method(attr_name: str, protected_name: str):
        def method(self, *args, **kwargs):
            with tracer.start_as_current_span(
                f"repository.{protected_name}", kind=trace.SpanKind.INTERNAL
            ) as span:
                span.set_attribute("repository.operation", protected_name)
                span.set_attribute("repository.class", self.__class__.__name__)
                try:
                    result = self._invoke(protected_name, args, kwargs)
                    span.set_status(Status(StatusCode.OK))
                    span.set_attribute("repository.operation.success", True)
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, f"Repository {protected_name} failed: {e}"))
                    span.set_attribute("repository.operation.success", False)
                    span.set_attribute("repository.operation.error_type", e.__class__.__name__)
                    raise

        method.__name__ = attr_name
        method.__qualname__ = attr_name
        return method


class Repository(Generic[T, ID], metaclass=RepoMeta):
    """Root of every repository interface."""

    def __init__(self, composition, query_executor):
        self._composition = composition
        self._query_executor = query_executor

    def _invoke(self, name: str, args, kwargs):
        target = self._composition.resolve(name)
        if target is not None:
            return target(*args, **kwargs)
        if self._query_executor.handles(name):
            return self._query_executor.execute(name, args, kwargs)
        raise AttributeError(f"{type(self).__name__} has no implementation for '{name}'")

    @property
    def composition(self):
        return self._composition


class CrudRepository(Repository[T, ID]):
    save: Callable[[T], T] = invoke()
    """save(entity: T) -> T"""

    save_all: Callable[[Iterable[T]], List[T]] = invoke()
    find_by_id: Callable[[ID], Optional[T]] = invoke()
    get_by_id: Callable[[ID], T] = invoke()
    exists_by_id: Callable[[ID], bool] = invoke()
    find_all: Callable[[], List[T]] = invoke()
    find_all_by_id: Callable[[Iterable[ID]], List[T]] = invoke()
    count: Callable[[], int] = invoke()
    delete: Callable[[T], None] = invoke()
    delete_by_id: Callable[[ID], None] = invoke()
    delete_all: Callable[..., None] = invoke()
    """delete_all(entities: Optional[Iterable[T]] = None) -> None"""


class MongoRepository(CrudRepository[T, ID]):
    insert: Callable[[T], T] = invoke()
    find_all_sorted: Callable[..., List[T]] = invoke()
    """find_all_sorted(*orders: tuple[str, int]) -> list[T]"""


class Fragment(metaclass=RepoMeta):
    """
    Base of custom fragment interfaces. Declare operations with invoke()
    and register the implementation with fragment_implementation:

        class PersonRepositoryCustom(Fragment):
            find_vips = invoke()

        @fragment_implementation(PersonRepositoryCustom)
        class PersonRepositoryCustomImpl:
            def __init__(self, operations: MongoTemplate): ...
    """


CRUD_OWNERS = (Repository, CrudRepository, MongoRepository)


def is_query_marker(marker: Delegate) -> bool:
    owner = marker.owner
    if owner is None or owner in CRUD_OWNERS:
        return False
    return issubclass(owner, Repository)
