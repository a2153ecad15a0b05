from typing import Type, Callable, Optional, get_origin, get_args, TypeVar, Union, overload
from enum import Enum
from mongodata.context import context

T = TypeVar("T")


class ProviderType(Enum):
    SINGLETON = "singleton"
    FACTORY = "factory"
    RESOURCE = "resource"
    OBJECT = "object"
    LIST = "list"


def get_component_key(cls: Type) -> str:
    """
    Build the registry key of a component type.

    ``List[Base]`` keys collect every registered subclass of ``Base``
    (used for the entity callback lists).

    Raises:
        ValueError: if a List type has no type argument
    """
    if hasattr(cls, "__origin__") and get_origin(cls) is list:
        args = get_args(cls)
        if args:
            base_type = args[0]
            return f"List_{base_type.__module__}_{base_type.__name__}".replace(".", "_")
        raise ValueError(f"List type must have arguments: {cls}")

    return f"{cls.__module__}.{cls.__name__}".replace(".", "_")


@overload
def component(
    _cls: Type[T],
) -> Type[T]: ...


@overload
def component(
    _cls: None = None,
    *,
    provider_type: ProviderType = ProviderType.SINGLETON,
    factory: Optional[Callable] = None,
    value: Optional[object] = None,
) -> Callable[[Type[T]], Type[T]]: ...


@overload
def component(
    _cls: Type[T],
    *,
    provider_type: ProviderType = ProviderType.SINGLETON,
    factory: Optional[Callable] = None,
    value: Optional[object] = None,
) -> Type[T]: ...


def component(
    _cls: Optional[Type[T]] = None,
    *,
    provider_type: ProviderType = ProviderType.SINGLETON,
    factory: Optional[Callable] = None,
    value: Optional[object] = None,
) -> Union[Type[T], Callable[[Type[T]], Type[T]]]:
    """
    Register a component in the container, as a decorator or as a call.

        @component
        class AuditorProvider: ...

        component(MongoTemplate, factory=create_mongo_template)
        component(List[BeforeConvertCallback], provider_type=ProviderType.LIST)
        component(IsNewAwareAuditingHandler, provider_type=ProviderType.OBJECT, value=handler)

    Raises:
        ValueError: on duplicated keys or inconsistent arguments
    """
    component_registry = context.component_registry

    def register_component(target_cls: Type[T]) -> Type[T]:
        key = get_component_key(target_cls)

        if key in component_registry:
            raise ValueError(f"Duplicated component: {key}")

        if (
            provider_type in (ProviderType.SINGLETON, ProviderType.FACTORY)
            and value is not None
        ):
            raise ValueError(
                f"'value' is not valid for provider_type={provider_type.value} in {key}"
            )

        if provider_type == ProviderType.LIST and (factory is not None or value is not None):
            raise ValueError(f"'factory' and 'value' are not valid for LIST in {key}")

        if provider_type == ProviderType.OBJECT and value is None:
            raise ValueError(f"OBJECT component {key} requires a 'value'")

        component_registry[key] = {
            "cls": factory if factory is not None else target_cls,
            "provider_type": provider_type,
            "provider": None,
            "value": value if provider_type == ProviderType.OBJECT else target_cls,
        }
        return target_cls

    if _cls is not None:
        return register_component(_cls)

    def decorator(target_cls: Type[T]) -> Type[T]:
        return register_component(target_cls)

    return decorator
