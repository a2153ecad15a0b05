from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

ASCENDING = 1
DESCENDING = -1


class Query(BaseModel):
    """Filter, sort and paging of a find operation. Property names are mapped on use."""

    model_config = ConfigDict(frozen=True)

    criteria: Dict[str, Any] = Field(default_factory=dict)
    sort: Tuple[Tuple[str, int], ...] = ()
    skip: Optional[int] = None
    limit: Optional[int] = None

    @classmethod
    def of(cls, criteria: Optional[Dict[str, Any]] = None, **equalities: Any) -> "Query":
        merged = dict(criteria or {})
        merged.update(equalities)
        return cls(criteria=merged)

    @classmethod
    def by_id(cls, id: Any) -> "Query":
        return cls(criteria={"id": id})

    def with_sort(self, *orders: Tuple[str, int]) -> "Query":
        return self.model_copy(update={"sort": self.sort + tuple(orders)})

    def with_skip(self, skip: int) -> "Query":
        return self.model_copy(update={"skip": skip})

    def with_limit(self, limit: int) -> "Query":
        return self.model_copy(update={"limit": limit})

    def sort_document(self) -> Dict[str, int]:
        return {field: direction for field, direction in self.sort}

    def sort_list(self) -> List[Tuple[str, int]]:
        return list(self.sort)
