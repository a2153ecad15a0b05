from .base import (
    CrudRepository,
    Fragment,
    MongoRepository,
    Repository,
    RepoMeta,
    invoke,
    query,
)
from .metadata import RepositoryMetadata
from .fragments import (
    FilterExecutor,
    MongoRepositoryFragmentsContributor,
    RepositoryComposition,
    RepositoryFragment,
    RepositoryFragments,
    fragment_implementation,
)
from .derived import MongoQueryExecutor, PartTree, PartType, bind_parameters
from .simple import SimpleMongoRepository
from .aot import (
    AotMongoRepositoryPostProcessor,
    AotRepositoryContext,
    GeneratedRepository,
    MongoRepositoryContributor,
    RepositoryInformation,
)
from .support import MongoRepositoryFactory

__all__ = [
    "CrudRepository",
    "Fragment",
    "MongoRepository",
    "Repository",
    "RepoMeta",
    "invoke",
    "query",
    "RepositoryMetadata",
    "FilterExecutor",
    "MongoRepositoryFragmentsContributor",
    "RepositoryComposition",
    "RepositoryFragment",
    "RepositoryFragments",
    "fragment_implementation",
    "MongoQueryExecutor",
    "PartTree",
    "PartType",
    "bind_parameters",
    "SimpleMongoRepository",
    "AotMongoRepositoryPostProcessor",
    "AotRepositoryContext",
    "GeneratedRepository",
    "MongoRepositoryContributor",
    "RepositoryInformation",
    "MongoRepositoryFactory",
]
