from .query import Query, ASCENDING, DESCENDING
from .near_query import NearQuery

__all__ = ["Query", "NearQuery", "ASCENDING", "DESCENDING"]
