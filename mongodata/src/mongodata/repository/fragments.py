import inspect
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Type

from mongodata.context import context
from mongodata.core.query import Query
from mongodata.exceptions import InvalidDataAccessApiUsageException
from mongodata.telemetry import get_logger

from .base import Fragment, Repository, invoke

logger = get_logger(__name__)


def fragment_implementation(interface: Type[Fragment]):
    """Register the decorated class as the implementation of a fragment interface."""

    def decorator(cls):
        if not (isinstance(interface, type) and issubclass(interface, Fragment)):
            raise ValueError(f"{interface!r} is not a fragment interface")
        if interface in context.fragments:
            raise ValueError(f"Fragment {interface.__name__} already has an implementation")
        context.fragments[interface] = cls
        return cls

    return decorator


class RepositoryFragment:
    """A fragment interface, optionally backed by an implementation instance."""

    def __init__(self, interface: Type[Any], implementation: Optional[Any] = None):
        self.interface = interface
        self.implementation = implementation

    @classmethod
    def structural(cls, interface: Type[Any]) -> "RepositoryFragment":
        return cls(interface)

    @classmethod
    def implemented(cls, interface: Type[Any], implementation: Any) -> "RepositoryFragment":
        if implementation is None:
            raise ValueError("Implementation must not be None")
        return cls(interface, implementation)

    @property
    def is_implemented(self) -> bool:
        return self.implementation is not None

    @property
    def operations(self) -> List[str]:
        delegates = getattr(self.interface, "__delegates__", {})
        return [marker.name or name for name, marker in delegates.items()]

    def has_method(self, name: str) -> bool:
        return name in self.operations

    def get_method(self, name: str) -> Optional[Callable]:
        if not self.is_implemented or not self.has_method(name):
            return None
        return getattr(self.implementation, name, None)

    def __repr__(self) -> str:
        state = type(self.implementation).__name__ if self.is_implemented else "structural"
        return f"RepositoryFragment({self.interface.__name__}, {state})"


class RepositoryFragments:
    """Ordered fragments of a repository; the first one declaring a method wins."""

    def __init__(self, fragments: Iterable[RepositoryFragment] = ()):
        self._fragments = list(fragments)

    @classmethod
    def empty(cls) -> "RepositoryFragments":
        return cls()

    def append(self, fragment: RepositoryFragment) -> "RepositoryFragments":
        return RepositoryFragments([*self._fragments, fragment])

    def find(self, name: str) -> Optional[RepositoryFragment]:
        for fragment in self._fragments:
            if fragment.has_method(name):
                return fragment
        return None

    def __iter__(self) -> Iterator[RepositoryFragment]:
        return iter(self._fragments)

    def __len__(self) -> int:
        return len(self._fragments)

    def __repr__(self) -> str:
        return f"RepositoryFragments({self._fragments})"


class RepositoryComposition:
    """Resolves repository operations against fragments first, then the base repository."""

    def __init__(self, base: Any, fragments: Optional[RepositoryFragments] = None):
        self.base = base
        self.fragments = fragments or RepositoryFragments.empty()

    def resolve(self, name: str) -> Optional[Callable]:
        fragment = self.fragments.find(name)
        if fragment is not None:
            method = fragment.get_method(name)
            if method is None:
                raise InvalidDataAccessApiUsageException(
                    f"Fragment {fragment.interface.__name__} has no implementation of '{name}'"
                )
            return method
        if self.base is not None and not name.startswith("_"):
            return getattr(self.base, name, None)
        return None


class FilterExecutor(Fragment):
    """Built-in fragment running raw filter documents against the domain collection."""

    find_all_by_filter: Callable[[Dict[str, Any]], List[Any]] = invoke()
    find_one_by_filter: Callable[[Dict[str, Any]], Optional[Any]] = invoke()
    count_by_filter: Callable[[Dict[str, Any]], int] = invoke()
    exists_by_filter: Callable[[Dict[str, Any]], bool] = invoke()


class MongoFilterExecutor:
    def __init__(self, operations, metadata):
        self._operations = operations
        self._domain_type = metadata.domain_type

    def find_all_by_filter(self, filter: Dict[str, Any]) -> List[Any]:
        return self._operations.find(Query(criteria=filter), self._domain_type)

    def find_one_by_filter(self, filter: Dict[str, Any]) -> Optional[Any]:
        return self._operations.find_one(Query(criteria=filter), self._domain_type)

    def count_by_filter(self, filter: Dict[str, Any]) -> int:
        return self._operations.count(Query(criteria=filter), self._domain_type)

    def exists_by_filter(self, filter: Dict[str, Any]) -> bool:
        return self._operations.exists(Query(criteria=filter), self._domain_type)


BUILT_IN_FRAGMENTS: Dict[Type[Any], Type[Any]] = {FilterExecutor: MongoFilterExecutor}


class MongoRepositoryFragmentsContributor:
    """
    Describes and creates the fragments of a repository interface.

    ``describe`` only looks at the interface and works without a database;
    ``contribute`` instantiates the implementation of every fragment.
    Implementations receive ``operations`` and/or ``metadata`` when their
    constructor declares them.
    """

    DEFAULT: "MongoRepositoryFragmentsContributor"

    def describe(self, metadata) -> RepositoryFragments:
        return RepositoryFragments(
            RepositoryFragment.structural(interface) for interface in self._fragment_interfaces(metadata)
        )

    def contribute(self, metadata, operations) -> RepositoryFragments:
        fragments = []
        for interface in self._fragment_interfaces(metadata):
            implementation_type = context.fragments.get(interface) or BUILT_IN_FRAGMENTS.get(interface)
            if implementation_type is None:
                raise InvalidDataAccessApiUsageException(
                    f"Fragment {interface.__name__} of {metadata.repository_interface.__name__} "
                    "has no registered implementation"
                )
            implementation = self._instantiate(implementation_type, operations, metadata)
            logger.debug(
                "Fragment contributed",
                repository=metadata.repository_interface.__name__,
                fragment=interface.__name__,
                implementation=implementation_type.__name__,
            )
            fragments.append(RepositoryFragment.implemented(interface, implementation))
        return RepositoryFragments(fragments)

    @staticmethod
    def _fragment_interfaces(metadata) -> List[Type[Any]]:
        return [
            klass
            for klass in metadata.repository_interface.__mro__
            if issubclass(klass, Fragment) and klass is not Fragment and not issubclass(klass, Repository)
        ]

    @staticmethod
    def _instantiate(implementation_type: Type[Any], operations, metadata) -> Any:
        available = {"operations": operations, "metadata": metadata}
        parameters = inspect.signature(implementation_type).parameters
        kwargs = {name: value for name, value in available.items() if name in parameters}
        return implementation_type(**kwargs)


MongoRepositoryFragmentsContributor.DEFAULT = MongoRepositoryFragmentsContributor()
