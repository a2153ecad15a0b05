from typing import Any, Optional, Type

from mongodata.aot.hints import RuntimeHints
from mongodata.config import MongoConfig
from mongodata.core.template import MongoTemplate
from mongodata.telemetry import get_logger

from .aot import AotMongoRepositoryPostProcessor, AotRepositoryContext
from .fragments import MongoRepositoryFragmentsContributor, RepositoryComposition
from .metadata import RepositoryMetadata
from .derived import MongoQueryExecutor
from .simple import SimpleMongoRepository

logger = get_logger(__name__)


class MongoRepositoryFactory:
    """
    Creates repository instances:

        factory = MongoRepositoryFactory(template)
        people = factory.get_repository(PersonRepository)
        people.find_by_last_name("Doe")

    With the post-processor enabled, query methods are parsed when the
    repository is created instead of on first use.
    """

    def __init__(
        self,
        operations: MongoTemplate,
        post_processor: Optional[AotMongoRepositoryPostProcessor] = None,
        config: Optional[MongoConfig] = None,
        hints: Optional[RuntimeHints] = None,
    ):
        if operations is None:
            raise ValueError("MongoOperations must not be None")
        self._operations = operations
        self._post_processor = post_processor or AotMongoRepositoryPostProcessor()
        self._config = config
        self.hints = hints or RuntimeHints()
        self._fragments_contributor = MongoRepositoryFragmentsContributor.DEFAULT

    def get_repository(self, repository_interface: Type[Any]) -> Any:
        metadata = RepositoryMetadata.of(repository_interface)
        repository_context = AotRepositoryContext(
            repository_interface, config=self._config, mapping_context=self._operations.mapping_context
        )
        generated = self._post_processor.process(repository_context, self.hints)

        fragments = self._fragments_contributor.contribute(metadata, self._operations)
        composition = RepositoryComposition(SimpleMongoRepository(metadata, self._operations), fragments)
        executor = MongoQueryExecutor(
            metadata, self._operations, generated.part_trees if generated is not None else None
        )
        logger.info(
            "Repository created",
            repository=repository_interface.__name__,
            domain_type=metadata.domain_type.__name__,
            fragments=len(fragments),
            query_methods=len(metadata.query_methods),
        )
        return repository_interface(composition, executor)
