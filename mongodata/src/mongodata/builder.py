from typing import Any, Optional, Type, TypeVar

from mongodata.aot import MongoRuntimeHints, RuntimeHints
from mongodata.aot.predicates import ModulePresent
from mongodata.config import Config
from mongodata.config import producers  # noqa: F401  registers the data access components
from mongodata.context import Context, context
from mongodata.ioc import AppContainer, container
from mongodata.repository import MongoRepositoryFactory
from mongodata.telemetry import configure_structlog, get_logger, setup_telemetry

logger = get_logger(__name__)

R = TypeVar("R")


class DataAccessBuilder:
    """
    Assembles the data access layer with a fluent builder:

        builder = DataAccessBuilder().build()
        people = builder.repository(PersonRepository)

    ``build`` configures logging (and tracing when enabled), records the
    runtime hints and checks the hinted types resolve. A ``config`` given to
    the builder replaces the loaded one in the container before every module
    that uses ``@inject`` is wired.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        context: Context = context,
        container: AppContainer = container,
        module_present: Optional[ModulePresent] = None,
    ):
        self._config = config
        self._overrides_config = config is not None
        self._context = context
        self._container = container
        self._module_present = module_present
        self._hints: Optional[RuntimeHints] = None

    @property
    def config(self) -> Config:
        if self._config is None:
            self._config = self._container.get(Config)
        return self._config

    @property
    def hints(self) -> RuntimeHints:
        if self._hints is None:
            self.build()
        return self._hints

    def build(self) -> "DataAccessBuilder":
        config = self.config
        configure_structlog(config.name, config.version, config.env.log_level)
        if config.env.telemetry:
            setup_telemetry(config.name, config.version, config.env.log_level)

        hints = MongoRuntimeHints().register_hints(RuntimeHints(), self._module_present)
        unresolved = [reference.name for reference in hints.reflection.types() if reference.resolve() is None]
        if unresolved:
            logger.warning("Hinted types could not be resolved", types=unresolved)
        self._hints = hints

        if self._overrides_config:
            self._container.override_component(Config, config)

        modules = sorted(self._context.modules)
        self._container.wire(modules)

        logger.info(
            "Data access layer built",
            components=len(self._context.component_registry),
            wired_modules=len(modules),
            hinted_types=len(hints.reflection.types()),
        )
        return self

    def get(self, cls: Type[R]) -> R:
        if self._hints is None:
            self.build()
        return self._container.get(cls)

    def repository(self, repository_interface: Type[Any]) -> Any:
        factory = self.get(MongoRepositoryFactory)
        factory.hints = self.hints
        return factory.get_repository(repository_interface)

    def shutdown(self) -> None:
        self._container.unwire()
        if self._overrides_config:
            self._container.reset_component_override(Config)
