import inspect
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, get_type_hints

from mongodata.exceptions import MappingException
from mongodata.telemetry import get_logger
from .registration import ConverterRegistration

logger = get_logger(__name__)

READING_FLAG = "__reading_converter__"
WRITING_FLAG = "__writing_converter__"


def reading_converter(converter):
    """Force a converter to be used when reading documents only."""
    setattr(converter, READING_FLAG, True)
    return converter


def writing_converter(converter):
    """Force a converter to be used when writing documents only."""
    setattr(converter, WRITING_FLAG, True)
    return converter


def _convert_function(converter: Any) -> Callable[[Any], Any]:
    if inspect.isclass(converter):
        converter = converter()
    if inspect.isfunction(converter) or inspect.ismethod(converter):
        return converter
    convert = getattr(converter, "convert", None)
    if callable(convert):
        return convert
    raise MappingException(f"{converter!r} is neither a function nor exposes convert()")


def _types_of(function: Callable[[Any], Any]) -> Tuple[type, type]:
    hints = get_type_hints(function)
    params = [
        name
        for name, p in inspect.signature(function).parameters.items()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    if len(params) != 1 or params[0] not in hints or "return" not in hints:
        raise MappingException(
            f"Converter {getattr(function, '__qualname__', function)!r} must take one annotated "
            f"argument and annotate its return type"
        )
    return hints[params[0]], hints["return"]


def _flag(converter: Any, function: Callable[[Any], Any], name: str) -> bool:
    owner = getattr(function, "__self__", None)
    return any(
        getattr(candidate, name, False)
        for candidate in (converter, function, owner, type(owner) if owner is not None else None)
        if candidate is not None
    )


class CustomConversions:
    """
    Registry of user supplied converters.

    Each converter is a one argument function (or a class exposing
    ``convert``) whose type hints give the source and target types. Its
    direction follows ConverterRegistration.
    """

    def __init__(self, converters: Iterable[Any] = ()):
        self._registrations: List[Tuple[ConverterRegistration, Callable[[Any], Any]]] = []
        self._write_targets: Dict[type, Tuple[type, Callable[[Any], Any]]] = {}
        self._read_converters: Dict[Tuple[type, type], Callable[[Any], Any]] = {}
        for converter in converters:
            self.register(converter)

    def register(self, converter: Any) -> ConverterRegistration:
        function = _convert_function(converter)
        source_type, target_type = _types_of(function)
        registration = ConverterRegistration(
            source_type,
            target_type,
            reading=_flag(converter, function, READING_FLAG),
            writing=_flag(converter, function, WRITING_FLAG),
        )

        if registration.is_writing():
            self._write_targets[source_type] = (target_type, function)
        if registration.is_reading():
            self._read_converters[(source_type, target_type)] = function
        if not registration.is_reading() and not registration.is_writing():
            logger.warning(
                "Converter registered for neither reading nor writing",
                source=source_type.__name__,
                target=target_type.__name__,
            )

        self._registrations.append((registration, function))
        return registration

    @property
    def registrations(self) -> List[ConverterRegistration]:
        return [registration for registration, _ in self._registrations]

    def get_custom_write_target(self, source_type: type) -> Optional[type]:
        entry = self._find_write(source_type)
        return entry[0] if entry else None

    def has_custom_write_target(self, source_type: type) -> bool:
        return self._find_write(source_type) is not None

    def has_custom_read_target(self, source_type: type, target_type: type) -> bool:
        return self._find_read(source_type, target_type) is not None

    def convert_for_write(self, value: Any) -> Any:
        entry = self._find_write(type(value))
        if entry is None:
            return value
        return entry[1](value)

    def convert_for_read(self, value: Any, target_type: type) -> Any:
        function = self._find_read(type(value), target_type)
        if function is None:
            return value
        return function(value)

    def _find_write(self, source_type: type) -> Optional[Tuple[type, Callable[[Any], Any]]]:
        for klass in getattr(source_type, "__mro__", (source_type,)):
            if klass in self._write_targets:
                return self._write_targets[klass]
        return None

    def _find_read(self, source_type: type, target_type: type) -> Optional[Callable[[Any], Any]]:
        for klass in getattr(source_type, "__mro__", (source_type,)):
            function = self._read_converters.get((klass, target_type))
            if function is not None:
                return function
        return None
