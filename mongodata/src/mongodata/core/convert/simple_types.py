import re
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, FrozenSet
from uuid import UUID

from bson import Binary, Code, Decimal128, Int64, ObjectId, Regex, Timestamp


class MongoSimpleTypes:
    """Types written to a document as they are, without mapping."""

    SIMPLE_TYPES: FrozenSet[type] = frozenset(
        {
            str,
            int,
            float,
            bool,
            bytes,
            Decimal,
            datetime,
            date,
            UUID,
            type,
            re.Pattern,
            ObjectId,
            Decimal128,
            Binary,
            Regex,
            Code,
            Timestamp,
            Int64,
        }
    )

    @classmethod
    def is_simple_type(cls, candidate: Any) -> bool:
        if not isinstance(candidate, type):
            return False
        if candidate in cls.SIMPLE_TYPES or issubclass(candidate, Enum):
            return True
        return any(issubclass(candidate, simple) for simple in cls.SIMPLE_TYPES if simple is not type)
