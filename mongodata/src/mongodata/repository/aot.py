from typing import Any, Dict, List, Optional, Set, Type

from mongodata.aot.hints import MemberCategory, RuntimeHints
from mongodata.aot.predicates import is_simple_type
from mongodata.config import MongoConfig
from mongodata.core.mapping import MongoMappingContext, document
from mongodata.telemetry import get_logger

from .fragments import MongoRepositoryFragmentsContributor, RepositoryFragment, RepositoryFragments
from .metadata import RepositoryMetadata
from .derived import PartTree
from .simple import SimpleMongoRepository

logger = get_logger(__name__)


class RepositoryInformation:
    def __init__(self, metadata: RepositoryMetadata, repository_base_class: Type[Any], fragments: List[RepositoryFragment]):
        self.metadata = metadata
        self.repository_base_class = repository_base_class
        self.fragments = list(fragments)

    @property
    def repository_interface(self) -> Type[Any]:
        return self.metadata.repository_interface

    @property
    def domain_type(self) -> Type[Any]:
        return self.metadata.domain_type

    @property
    def query_methods(self) -> List[str]:
        return list(self.metadata.query_methods)


class AotRepositoryContext:
    """What is known about one repository interface before it is instantiated."""

    module_name = "MongoDB"

    def __init__(
        self,
        repository_interface: Type[Any],
        config: Optional[MongoConfig] = None,
        fragments: Optional[RepositoryFragments] = None,
        mapping_context: Optional[MongoMappingContext] = None,
    ):
        self.repository_interface = repository_interface
        self.config = config or MongoConfig()
        self.mapping_context = mapping_context or MongoMappingContext()

        metadata = RepositoryMetadata.of(repository_interface)
        if fragments is None:
            fragments = MongoRepositoryFragmentsContributor.DEFAULT.describe(metadata)
        self.repository_information = RepositoryInformation(metadata, SimpleMongoRepository, list(fragments))

    @property
    def base_packages(self) -> Set[str]:
        return {self.repository_interface.__module__}

    @property
    def identifying_annotations(self) -> Set[Any]:
        return {document}

    @property
    def resolved_types(self) -> Set[Type[Any]]:
        """The domain type and every type reachable through its properties."""
        resolved: Set[Type[Any]] = set()
        pending = [self.repository_information.domain_type]
        while pending:
            current = pending.pop()
            if current in resolved:
                continue
            resolved.add(current)
            entity = self.mapping_context.get_persistent_entity(current)
            for prop in entity.properties:
                actual = prop.actual_type
                if prop.is_entity:
                    pending.append(actual)
                elif isinstance(actual, type):
                    resolved.add(actual)
        return resolved

    def is_generated_repositories_enabled(self, module_name: str) -> bool:
        if module_name.lower() != self.module_name.lower():
            return False
        return self.config.repositories.generated


class GeneratedRepository:
    """Query methods of a repository parsed ahead of the first call."""

    def __init__(self, repository_interface: Type[Any], part_trees: Dict[str, PartTree]):
        self.repository_interface = repository_interface
        self.part_trees = part_trees

    def __repr__(self) -> str:
        return f"GeneratedRepository({self.repository_interface.__name__}, {sorted(self.part_trees)})"


class MongoRepositoryContributor:
    def __init__(self, repository_context: AotRepositoryContext):
        self.repository_context = repository_context

    def contribute(self) -> GeneratedRepository:
        """Parse every derived query method; invalid names raise here."""
        information = self.repository_context.repository_information
        part_trees = {
            name: PartTree(name, information.domain_type, self.repository_context.mapping_context)
            for name in information.metadata.derived_queries
        }
        logger.debug(
            "Repository queries contributed",
            repository=information.repository_interface.__name__,
            queries=sorted(part_trees),
        )
        return GeneratedRepository(information.repository_interface, part_trees)


class AotMongoRepositoryPostProcessor:
    MODULE_NAME = "mongodb"

    def configure_type_contributions(self, repository_context: AotRepositoryContext, generation_context: RuntimeHints) -> None:
        information = repository_context.repository_information
        generation_context.reflection.register_type(
            information.repository_interface,
            MemberCategory.INVOKE_PUBLIC_METHODS,
        )
        for fragment in information.fragments:
            generation_context.reflection.register_type(fragment.interface, MemberCategory.INVOKE_PUBLIC_METHODS)

        for resolved in repository_context.resolved_types:
            if is_simple_type(resolved):
                continue
            generation_context.reflection.register_type(
                resolved,
                MemberCategory.INVOKE_DECLARED_CONSTRUCTORS,
                MemberCategory.INVOKE_PUBLIC_METHODS,
                MemberCategory.ACCESS_PUBLIC_FIELDS,
            )

    def contribute_aot_repository(self, repository_context: AotRepositoryContext) -> Optional[MongoRepositoryContributor]:
        if not repository_context.is_generated_repositories_enabled(self.MODULE_NAME):
            return None
        return MongoRepositoryContributor(repository_context)

    def process(self, repository_context: AotRepositoryContext, generation_context: RuntimeHints) -> Optional[GeneratedRepository]:
        self.configure_type_contributions(repository_context, generation_context)
        contributor = self.contribute_aot_repository(repository_context)
        if contributor is None:
            logger.debug(
                "Generated repositories disabled",
                repository=repository_context.repository_interface.__name__,
            )
            return None
        return contributor.contribute()
