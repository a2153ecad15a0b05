import sys
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Generic, Iterable, List, Optional, Type, TypeVar, get_args

from mongodata.telemetry import get_logger

logger = get_logger(__name__)

E = TypeVar("E")

HIGHEST_PRECEDENCE = -sys.maxsize - 1
LOWEST_PRECEDENCE = sys.maxsize


class Ordered:
    order: int = LOWEST_PRECEDENCE


def ordered(order: int):
    def decorator(cls):
        cls.order = order
        return cls

    return decorator


class EntityCallback(Ordered, Generic[E]):
    """
    Hook invoked by the templates around entity conversion and persistence.
    Subclasses narrow the entity type through the generic parameter:

        class PersonCallback(BeforeConvertCallback[Person]): ...
    """

    callback_method: ClassVar[str] = ""

    @classmethod
    def entity_type(cls) -> type:
        for klass in cls.__mro__:
            for base in getattr(klass, "__orig_bases__", ()):
                for arg in get_args(base):
                    if isinstance(arg, type):
                        return arg
        return object

    def supports(self, entity: Any) -> bool:
        return isinstance(entity, self.entity_type())


class BeforeConvertCallback(EntityCallback[E], ABC):
    callback_method = "on_before_convert"

    @abstractmethod
    def on_before_convert(self, entity: E, collection: str) -> E: ...


class BeforeSaveCallback(EntityCallback[E], ABC):
    callback_method = "on_before_save"

    @abstractmethod
    def on_before_save(self, entity: E, document: Dict[str, Any], collection: str) -> E: ...


class AfterSaveCallback(EntityCallback[E], ABC):
    callback_method = "on_after_save"

    @abstractmethod
    def on_after_save(self, entity: E, document: Dict[str, Any], collection: str) -> E: ...


class AfterConvertCallback(EntityCallback[E], ABC):
    callback_method = "on_after_convert"

    @abstractmethod
    def on_after_convert(self, entity: E, document: Dict[str, Any], collection: str) -> E: ...


class ReactiveBeforeConvertCallback(EntityCallback[E], ABC):
    callback_method = "on_before_convert"

    @abstractmethod
    async def on_before_convert(self, entity: E, collection: str) -> E: ...


class ReactiveBeforeSaveCallback(EntityCallback[E], ABC):
    callback_method = "on_before_save"

    @abstractmethod
    async def on_before_save(self, entity: E, document: Dict[str, Any], collection: str) -> E: ...


class ReactiveAfterSaveCallback(EntityCallback[E], ABC):
    callback_method = "on_after_save"

    @abstractmethod
    async def on_after_save(self, entity: E, document: Dict[str, Any], collection: str) -> E: ...


class ReactiveAfterConvertCallback(EntityCallback[E], ABC):
    callback_method = "on_after_convert"

    @abstractmethod
    async def on_after_convert(self, entity: E, document: Dict[str, Any], collection: str) -> E: ...


SYNC_CALLBACK_TYPES = (
    BeforeConvertCallback,
    BeforeSaveCallback,
    AfterConvertCallback,
    AfterSaveCallback,
)

REACTIVE_CALLBACK_TYPES = (
    ReactiveBeforeConvertCallback,
    ReactiveBeforeSaveCallback,
    ReactiveAfterConvertCallback,
    ReactiveAfterSaveCallback,
)


class _CallbackRegistry:
    def __init__(self, callbacks: Optional[Iterable[EntityCallback]] = None):
        self._callbacks: List[EntityCallback] = list(callbacks or [])

    def add_callback(self, callback: EntityCallback) -> None:
        if callback is None:
            raise ValueError("Callback must not be None")
        self._callbacks.append(callback)

    @property
    def callbacks(self) -> List[EntityCallback]:
        return list(self._callbacks)

    def _matching(self, callback_type: Type[EntityCallback], entity: Any) -> List[EntityCallback]:
        matching = [
            cb for cb in self._callbacks if isinstance(cb, callback_type) and cb.supports(entity)
        ]
        return sorted(matching, key=lambda cb: cb.order)

    @staticmethod
    def _check_result(callback: EntityCallback, entity: Any, result: Any) -> Any:
        if result is None:
            raise ValueError(
                f"Callback invocation on {type(callback).__name__} returned None for {entity!r}"
            )
        return result


class EntityCallbacks(_CallbackRegistry):
    """Runs the callbacks of a given type in order, chaining their results."""

    def callback(self, callback_type: Type[EntityCallback], entity: Any, *args: Any) -> Any:
        if entity is None:
            raise ValueError("Entity must not be None")
        for callback in self._matching(callback_type, entity):
            logger.debug(
                "Invoking entity callback",
                callback=type(callback).__name__,
                phase=callback_type.callback_method,
                order=callback.order,
            )
            result = getattr(callback, callback_type.callback_method)(entity, *args)
            entity = self._check_result(callback, entity, result)
        return entity


class ReactiveEntityCallbacks(_CallbackRegistry):
    """Asynchronous counterpart of EntityCallbacks."""

    async def callback(self, callback_type: Type[EntityCallback], entity: Any, *args: Any) -> Any:
        if entity is None:
            raise ValueError("Entity must not be None")
        for callback in self._matching(callback_type, entity):
            logger.debug(
                "Invoking reactive entity callback",
                callback=type(callback).__name__,
                phase=callback_type.callback_method,
                order=callback.order,
            )
            result = await getattr(callback, callback_type.callback_method)(entity, *args)
            entity = self._check_result(callback, entity, result)
        return entity
