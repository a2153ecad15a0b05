from typing import List

import pytest

from mongodata.context import context
from mongodata.ioc import AppContainer, ProviderType, component, deps, get_component_key, inject


class Greeter:
    def greet(self) -> str:
        return "hello"


@inject
def greet(greeter: Greeter = deps(Greeter)) -> str:
    return greeter.greet()


class Clock:
    pass


class Service:
    def __init__(self, clock: Clock):
        self.clock = clock


class Handler:
    pass


class FirstHandler(Handler):
    pass


class SecondHandler(Handler):
    pass


@pytest.fixture(autouse=True)
def registry(monkeypatch):
    monkeypatch.setattr(context, "component_registry", {})
    return context.component_registry


def test_singleton_dependencies_are_injected():
    component(Clock)
    component(Service)
    container = AppContainer()

    service = container.get(Service)

    assert service is container.get(Service)
    assert service.clock is container.get(Clock)
    assert container.built


def test_factory_creates_new_instances():
    component(Clock, provider_type=ProviderType.FACTORY)
    container = AppContainer()

    assert container.get(Clock) is not container.get(Clock)


def test_object_component_returns_value():
    clock = Clock()
    component(Clock, provider_type=ProviderType.OBJECT, value=clock)

    assert AppContainer().get(Clock) is clock


def test_factory_function_component():
    def create_service(clock: Clock) -> Service:
        return Service(clock)

    component(Clock)
    component(Service, factory=create_service)

    assert isinstance(AppContainer().get(Service).clock, Clock)


def test_list_component_collects_subclasses():
    component(FirstHandler)
    component(SecondHandler)
    component(List[Handler], provider_type=ProviderType.LIST)

    handlers = AppContainer().get(List[Handler])

    assert sorted(type(h).__name__ for h in handlers) == ["FirstHandler", "SecondHandler"]


def test_empty_list_component():
    component(List[Handler], provider_type=ProviderType.LIST)

    assert list(AppContainer().get(List[Handler])) == []


def test_missing_dependency_is_reported():
    component(Service)

    with pytest.raises(ValueError, match="Missing dependency"):
        AppContainer().get(Service)


def test_optional_dependency_with_default_is_skipped():
    class Reporter:
        def __init__(self, clock: Clock = None):
            self.clock = clock

    component(Reporter)

    assert AppContainer().get(Reporter).clock is None


def test_registration_errors():
    component(Clock)

    with pytest.raises(ValueError, match="Duplicated"):
        component(Clock)
    with pytest.raises(ValueError):
        component(Service, provider_type=ProviderType.SINGLETON, value=object())
    with pytest.raises(ValueError):
        component(Greeter, provider_type=ProviderType.OBJECT)
    with pytest.raises(ValueError):
        AppContainer().get(Handler)


def test_list_keys_use_element_type():
    assert get_component_key(List[Handler]) == f"List_{__name__}_Handler"
    assert get_component_key(Clock) == f"{__name__}_Clock"
    with pytest.raises(ValueError):
        get_component_key(List)


def test_injects_into_wired_functions():
    component(Greeter)
    container = AppContainer()

    container.wire([__name__])
    try:
        assert greet() == "hello"
    finally:
        container.unwire()

    assert __name__ in context.modules
