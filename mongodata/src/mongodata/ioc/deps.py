from dependency_injector.wiring import Provide
from typing import Type, TypeVar, TYPE_CHECKING
from mongodata.ioc.component import get_component_key

T = TypeVar("T")

if TYPE_CHECKING:

    def deps(cls: Type[T]) -> T: ...

else:

    def deps(cls: Type[T]) -> T:
        return Provide[get_component_key(cls)]
