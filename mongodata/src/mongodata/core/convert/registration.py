from enum import Enum
from typing import Callable, Tuple

from .simple_types import MongoSimpleTypes


class ConverterPolicy(Enum):
    """Explicit read/write intent of a converter, INFERRED when none was declared."""

    INFERRED = "inferred"
    READING = "reading"
    WRITING = "writing"
    READING_AND_WRITING = "reading_and_writing"

    @classmethod
    def of(cls, reading: bool = False, writing: bool = False) -> "ConverterPolicy":
        if reading and writing:
            return cls.READING_AND_WRITING
        if reading:
            return cls.READING
        if writing:
            return cls.WRITING
        return cls.INFERRED

    @property
    def reading(self) -> bool:
        return self in (ConverterPolicy.READING, ConverterPolicy.READING_AND_WRITING)

    @property
    def writing(self) -> bool:
        return self in (ConverterPolicy.WRITING, ConverterPolicy.READING_AND_WRITING)


def resolve_direction(
    policy: ConverterPolicy, source_simple: bool, target_simple: bool
) -> Tuple[bool, bool]:
    """
    Return ``(is_reading, is_writing)``.

    Explicit flags win. Without them a converter reads when its source is a
    store type and writes when its target is one, so a converter between two
    simple types does both.
    """
    is_reading = policy.reading or (not policy.writing and source_simple)
    is_writing = policy.writing or (not policy.reading and target_simple)
    return is_reading, is_writing


class ConverterRegistration:
    def __init__(
        self,
        source_type: type,
        target_type: type,
        reading: bool = False,
        writing: bool = False,
        is_simple_type: Callable[[type], bool] = MongoSimpleTypes.is_simple_type,
    ):
        if source_type is None or target_type is None:
            raise ValueError("Source and target type must not be None")
        self.source_type = source_type
        self.target_type = target_type
        self.policy = ConverterPolicy.of(reading, writing)
        self._is_simple_type = is_simple_type

    def is_simple_source_type(self) -> bool:
        return self._is_simple_type(self.source_type)

    def is_simple_target_type(self) -> bool:
        return self._is_simple_type(self.target_type)

    def _direction(self) -> Tuple[bool, bool]:
        return resolve_direction(self.policy, self.is_simple_source_type(), self.is_simple_target_type())

    def is_reading(self) -> bool:
        return self._direction()[0]

    def is_writing(self) -> bool:
        return self._direction()[1]

    def __repr__(self) -> str:
        return (
            f"ConverterRegistration({self.source_type.__name__} -> {self.target_type.__name__}, "
            f"policy={self.policy.value})"
        )
