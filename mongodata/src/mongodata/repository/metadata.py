from typing import Any, Dict, List, Optional, Type, get_args, get_origin

from .base import Delegate, Repository, StringQuery, is_query_marker


class RepositoryMetadata:
    """Domain type, id type and declared query methods of a repository interface."""

    def __init__(self, repository_interface: Type[Any], domain_type: Type[Any], id_type: Type[Any]):
        self.repository_interface = repository_interface
        self.domain_type = domain_type
        self.id_type = id_type

    @classmethod
    def of(cls, repository_interface: Type[Any]) -> "RepositoryMetadata":
        if not (isinstance(repository_interface, type) and issubclass(repository_interface, Repository)):
            raise ValueError(f"{repository_interface!r} is not a repository interface")

        args = cls._resolve_type_arguments(repository_interface)
        if args is None:
            raise ValueError(
                f"Could not resolve domain and id types of {repository_interface.__name__}; "
                "declare it as e.g. MongoRepository[Person, str]"
            )
        return cls(repository_interface, *args)

    @staticmethod
    def _resolve_type_arguments(repository_interface: Type[Any]) -> Optional[tuple]:
        for klass in repository_interface.__mro__:
            for base in getattr(klass, "__orig_bases__", ()):
                origin = get_origin(base)
                if not (isinstance(origin, type) and issubclass(origin, Repository)):
                    continue
                args = get_args(base)
                if len(args) == 2 and all(isinstance(a, type) for a in args):
                    return args
        return None

    @property
    def delegates(self) -> Dict[str, Delegate]:
        return dict(self.repository_interface.__delegates__)

    @property
    def query_methods(self) -> Dict[str, Delegate]:
        """Methods answered by a derived or a declared query, keyed by operation name."""
        return {
            marker.name or name: marker
            for name, marker in self.repository_interface.__delegates__.items()
            if is_query_marker(marker)
        }

    @property
    def string_queries(self) -> Dict[str, StringQuery]:
        return {name: m for name, m in self.query_methods.items() if isinstance(m, StringQuery)}

    @property
    def derived_queries(self) -> List[str]:
        return [name for name, m in self.query_methods.items() if not isinstance(m, StringQuery)]

    def __repr__(self) -> str:
        return (
            f"RepositoryMetadata({self.repository_interface.__name__}, "
            f"domain={self.domain_type.__name__}, id={self.id_type.__name__})"
        )
