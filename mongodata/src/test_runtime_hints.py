from mongodata.aot import MemberCategory, MongoRuntimeHints, RuntimeHints, TypeReference
from mongodata.aot.hints import DRIVER_SETTINGS_TYPES
from mongodata.core.mapping.event import (
    REACTIVE_CALLBACK_TYPES,
    SYNC_CALLBACK_TYPES,
    AfterConvertCallback,
    AfterSaveCallback,
    BeforeConvertCallback,
    BeforeSaveCallback,
    ReactiveAfterConvertCallback,
    ReactiveAfterSaveCallback,
    ReactiveBeforeConvertCallback,
    ReactiveBeforeSaveCallback,
)


def _register(*present):
    return MongoRuntimeHints().register_hints(RuntimeHints(), lambda name: name in present)


def _callback_types(hints):
    references = {TypeReference.of(t) for t in SYNC_CALLBACK_TYPES + REACTIVE_CALLBACK_TYPES}
    return {reference for reference in hints.reflection.types() if reference in references}


def test_registers_sync_callbacks_without_any_driver():
    hints = _register()

    assert _callback_types(hints) == {TypeReference.of(t) for t in SYNC_CALLBACK_TYPES}


def test_skips_reactive_callbacks_when_reactive_driver_is_absent():
    hints = _register("pymongo")

    for callback_type in REACTIVE_CALLBACK_TYPES:
        assert hints.reflection.get_type_hint(callback_type) is None


def test_registers_exactly_the_reactive_callbacks_when_driver_is_present():
    without = _callback_types(_register("pymongo"))
    with_reactive = _callback_types(_register("pymongo", "motor"))

    added = with_reactive - without

    assert added == {
        TypeReference.of(ReactiveBeforeConvertCallback),
        TypeReference.of(ReactiveBeforeSaveCallback),
        TypeReference.of(ReactiveAfterConvertCallback),
        TypeReference.of(ReactiveAfterSaveCallback),
    }
    assert without <= with_reactive
    assert len(with_reactive) == 8


def test_callbacks_are_registered_for_construction_and_invocation():
    hints = _register("pymongo", "motor")

    for callback_type in (BeforeConvertCallback, BeforeSaveCallback, AfterConvertCallback, AfterSaveCallback):
        assert hints.reflection.get_type_hint(callback_type) == {
            MemberCategory.INVOKE_DECLARED_CONSTRUCTORS,
            MemberCategory.INVOKE_PUBLIC_METHODS,
        }


def test_session_proxies_require_sync_driver():
    assert _register().proxies.proxies() == []

    proxies = _register("pymongo").proxies.proxies()

    assert (
        TypeReference.of("pymongo.database.Database"),
        TypeReference.of("mongodata.core.session.SessionScoped"),
    ) in proxies
    assert len(proxies) == 2


def test_driver_settings_types_are_always_registered():
    for hints in (_register(), _register("pymongo")):
        names = {reference.name for reference in hints.reflection.types()}

        assert set(DRIVER_SETTINGS_TYPES) <= names

    assert "pymongo.database.Database" not in {reference.name for reference in _register().reflection.types()}


def test_driver_types_follow_module_presence():
    names = {reference.name for reference in _register("pymongo").reflection.types()}

    assert "pymongo.collection.Collection" in names
    assert not any(name.startswith("motor.") for name in names)


def test_registration_is_idempotent():
    hints = RuntimeHints()
    registrar = MongoRuntimeHints()

    registrar.register_hints(hints, lambda name: True)
    count = len(hints.reflection.types())
    registrar.register_hints(hints, lambda name: True)

    assert len(hints.reflection.types()) == count
    assert len(hints.proxies.proxies()) == 2


def test_type_references_resolve():
    reference = TypeReference.of(BeforeSaveCallback)

    assert reference.resolve() is BeforeSaveCallback
    assert reference.simple_name == "BeforeSaveCallback"
    assert TypeReference.of("mongodata.missing.Nothing").resolve() is None


def test_modules_lists_hinted_modules():
    modules = _register("pymongo").modules()

    assert "mongodata.core.mapping.event.callbacks" in modules
    assert "pymongo.database" in modules
