import importlib
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict

from mongodata.core.mapping.event import REACTIVE_CALLBACK_TYPES, SYNC_CALLBACK_TYPES
from mongodata.telemetry import get_logger
from .predicates import ModulePresent, is_reactive_client_present, is_sync_client_present

logger = get_logger(__name__)


class MemberCategory(Enum):
    INVOKE_DECLARED_CONSTRUCTORS = "invoke_declared_constructors"
    INVOKE_PUBLIC_METHODS = "invoke_public_methods"
    ACCESS_PUBLIC_FIELDS = "access_public_fields"


class TypeReference(BaseModel):
    """A type identified by its qualified name, whether importable now or not."""

    model_config = ConfigDict(frozen=True)

    name: str

    @classmethod
    def of(cls, target: Any) -> "TypeReference":
        if isinstance(target, TypeReference):
            return target
        if isinstance(target, str):
            return cls(name=target)
        return cls(name=f"{target.__module__}.{target.__qualname__}")

    @property
    def module(self) -> str:
        return self.name.rsplit(".", 1)[0]

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    def resolve(self) -> Optional[type]:
        module_name, attribute = self.name, []
        while "." in module_name:
            module_name, tail = module_name.rsplit(".", 1)
            attribute.insert(0, tail)
            try:
                target: Any = importlib.import_module(module_name)
            except ImportError:
                continue
            for part in attribute:
                target = getattr(target, part, None)
                if target is None:
                    return None
            return target
        return None


class ReflectionHints:
    def __init__(self):
        self._types: Dict[TypeReference, Set[MemberCategory]] = {}

    def register_type(self, target: Any, *categories: MemberCategory) -> "ReflectionHints":
        reference = TypeReference.of(target)
        self._types.setdefault(reference, set()).update(categories)
        return self

    def register_types(self, targets: Iterable[Any], *categories: MemberCategory) -> "ReflectionHints":
        for target in targets:
            self.register_type(target, *categories)
        return self

    def get_type_hint(self, target: Any) -> Optional[Set[MemberCategory]]:
        return self._types.get(TypeReference.of(target))

    def types(self) -> List[TypeReference]:
        return list(self._types)


class ProxyHints:
    def __init__(self):
        self._proxies: List[Tuple[TypeReference, ...]] = []

    def register_proxy(self, *interfaces: Any) -> "ProxyHints":
        if not interfaces:
            raise ValueError("A proxy requires at least one interface")
        proxy = tuple(TypeReference.of(i) for i in interfaces)
        if proxy not in self._proxies:
            self._proxies.append(proxy)
        return self

    def proxies(self) -> List[Tuple[TypeReference, ...]]:
        return list(self._proxies)


class RuntimeHints:
    """
    Declarative manifest of the types and proxies that must stay resolvable
    when the container is assembled ahead of time.
    """

    def __init__(self):
        self.reflection = ReflectionHints()
        self.proxies = ProxyHints()

    def modules(self) -> List[str]:
        modules = {reference.module for reference in self.reflection.types()}
        for proxy in self.proxies.proxies():
            modules.update(reference.module for reference in proxy)
        return sorted(modules)


CALLBACK_MEMBERS = (
    MemberCategory.INVOKE_DECLARED_CONSTRUCTORS,
    MemberCategory.INVOKE_PUBLIC_METHODS,
)

SESSION_PROXY = "mongodata.core.session.SessionScoped"

# client and settings types the producers configure, registered with or without the driver
DRIVER_SETTINGS_TYPES = (
    "pymongo.mongo_client.MongoClient",
    "pymongo.client_options.ClientOptions",
    "pymongo.write_concern.WriteConcern",
    "pymongo.read_concern.ReadConcern",
    "pymongo.read_preferences.ReadPreference",
)


class MongoRuntimeHints:
    """Registers the callback, driver and session proxy types mongodata relies on."""

    def register_hints(self, hints: RuntimeHints, module_present: Optional[ModulePresent] = None) -> RuntimeHints:
        hints.reflection.register_types(SYNC_CALLBACK_TYPES, *CALLBACK_MEMBERS)

        self._register_session_proxy_hints(hints, module_present)
        self._register_driver_hints(hints, module_present)

        if is_reactive_client_present(module_present):
            hints.reflection.register_types(REACTIVE_CALLBACK_TYPES, *CALLBACK_MEMBERS)
        else:
            logger.debug("Reactive driver not present, skipping reactive callback hints")

        return hints

    @staticmethod
    def _register_session_proxy_hints(hints: RuntimeHints, module_present: Optional[ModulePresent]) -> None:
        if not is_sync_client_present(module_present):
            return
        hints.proxies.register_proxy("pymongo.database.Database", SESSION_PROXY)
        hints.proxies.register_proxy("pymongo.collection.Collection", SESSION_PROXY)

    @staticmethod
    def _register_driver_hints(hints: RuntimeHints, module_present: Optional[ModulePresent]) -> None:
        reflection = hints.reflection
        reflection.register_types(DRIVER_SETTINGS_TYPES, MemberCategory.INVOKE_PUBLIC_METHODS)
        if is_sync_client_present(module_present):
            reflection.register_type("pymongo.database.Database", MemberCategory.INVOKE_PUBLIC_METHODS)
            reflection.register_type("pymongo.collection.Collection", MemberCategory.INVOKE_PUBLIC_METHODS)
            reflection.register_type("pymongo.operations.IndexModel", MemberCategory.INVOKE_PUBLIC_METHODS)

        if is_reactive_client_present(module_present):
            reflection.register_type("motor.motor_asyncio.AsyncIOMotorClient", MemberCategory.INVOKE_PUBLIC_METHODS)
            reflection.register_type("motor.motor_asyncio.AsyncIOMotorDatabase", MemberCategory.INVOKE_PUBLIC_METHODS)
            reflection.register_type("motor.motor_asyncio.AsyncIOMotorCollection", MemberCategory.INVOKE_PUBLIC_METHODS)
