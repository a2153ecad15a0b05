import re
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type, get_origin

from mongodata.core.geo import GeoJsonPoint, Point
from mongodata.core.mapping import MongoMappingContext, MongoPersistentEntity
from mongodata.core.query import ASCENDING, DESCENDING, Query
from mongodata.exceptions import InvalidDataAccessApiUsageException, MappingException
from mongodata.telemetry import get_logger

from .base import StringQuery

logger = get_logger(__name__)

_SUBJECT = re.compile(
    r"^(?P<verb>find|read|get|query|search|stream|count|exists|delete|remove)"
    r"(?:_(?P<limiting>first|top)(?P<size>\d*))?"
    r"(?:_all)?"
    r"_by_(?P<predicate>.+)$"
)
_PLACEHOLDER = re.compile(r"^\?(\d+)$")

_MODES = {
    "find": "find",
    "read": "find",
    "get": "find",
    "query": "find",
    "search": "find",
    "stream": "find",
    "count": "count",
    "exists": "exists",
    "delete": "delete",
    "remove": "delete",
}


def _regex(pattern: str, ignore_case: bool) -> Dict[str, Any]:
    condition: Dict[str, Any] = {"$regex": pattern}
    if ignore_case:
        condition["$options"] = "i"
    return condition


def _like(value: str) -> str:
    if "*" not in value:
        return re.escape(value)
    return "^" + ".*".join(re.escape(p) for p in value.split("*")) + "$"


def _near(value: Any) -> Dict[str, Any]:
    if isinstance(value, GeoJsonPoint):
        return {"$near": {"$geometry": value.to_document()}}
    if isinstance(value, Point):
        return {"$near": value.to_document()}
    return {"$near": value}


class PartType(Enum):
    """Keywords of a derived query part: suffixes, argument count and condition builder."""

    BETWEEN = (("_between", "_is_between"), 2, lambda a, ic, coll: {"$gt": a[0], "$lt": a[1]})
    IS_NOT_NULL = (("_is_not_null", "_not_null"), 0, lambda a, ic, coll: {"$ne": None})
    IS_NULL = (("_is_null", "_null"), 0, lambda a, ic, coll: None)
    LESS_THAN_EQUAL = (("_less_than_equal", "_is_less_than_equal"), 1, lambda a, ic, coll: {"$lte": a[0]})
    LESS_THAN = (("_less_than", "_is_less_than", "_before", "_is_before"), 1, lambda a, ic, coll: {"$lt": a[0]})
    GREATER_THAN_EQUAL = (
        ("_greater_than_equal", "_is_greater_than_equal"),
        1,
        lambda a, ic, coll: {"$gte": a[0]},
    )
    GREATER_THAN = (
        ("_greater_than", "_is_greater_than", "_after", "_is_after"),
        1,
        lambda a, ic, coll: {"$gt": a[0]},
    )
    NOT_IN = (("_not_in", "_is_not_in"), 1, lambda a, ic, coll: {"$nin": list(a[0])})
    IN = (("_in", "_is_in"), 1, lambda a, ic, coll: {"$in": list(a[0])})
    STARTING_WITH = (
        ("_starting_with", "_starts_with", "_is_starting_with"),
        1,
        lambda a, ic, coll: _regex("^" + re.escape(a[0]), ic),
    )
    ENDING_WITH = (
        ("_ending_with", "_ends_with", "_is_ending_with"),
        1,
        lambda a, ic, coll: _regex(re.escape(a[0]) + "$", ic),
    )
    NOT_CONTAINING = (
        ("_not_containing", "_not_contains", "_is_not_containing"),
        1,
        lambda a, ic, coll: {"$ne": a[0]} if coll else {"$not": _regex(re.escape(a[0]), ic)},
    )
    CONTAINING = (
        ("_containing", "_contains", "_is_containing"),
        1,
        lambda a, ic, coll: a[0] if coll else _regex(re.escape(a[0]), ic),
    )
    NOT_LIKE = (("_not_like", "_is_not_like"), 1, lambda a, ic, coll: {"$not": _regex(_like(a[0]), ic)})
    LIKE = (("_like", "_is_like"), 1, lambda a, ic, coll: _regex(_like(a[0]), ic))
    REGEX = (("_matches", "_regex", "_matches_regex"), 1, lambda a, ic, coll: _regex(a[0], ic))
    EXISTS = (("_exists",), 1, lambda a, ic, coll: {"$exists": bool(a[0])})
    TRUE = (("_is_true", "_true"), 0, lambda a, ic, coll: True)
    FALSE = (("_is_false", "_false"), 0, lambda a, ic, coll: False)
    NEAR = (("_near", "_is_near"), 1, lambda a, ic, coll: _near(a[0]))
    NEGATING_SIMPLE_PROPERTY = (("_is_not", "_not"), 1, lambda a, ic, coll: {"$ne": a[0]})
    SIMPLE_PROPERTY = (
        ("_is", "_equals", "_is_equal", ""),
        1,
        lambda a, ic, coll: _regex("^" + re.escape(a[0]) + "$", True) if ic else a[0],
    )

    def __init__(self, keywords: Tuple[str, ...], argument_count: int, build: Callable):
        self.keywords = keywords
        self.argument_count = argument_count
        self.build = build


# longest keyword first so "_not_in" wins over "_in"
_KEYWORDS: List[Tuple[str, PartType]] = sorted(
    ((keyword, part_type) for part_type in PartType for keyword in part_type.keywords),
    key=lambda item: len(item[0]),
    reverse=True,
)


class Part:
    """One ``property + keyword`` condition of a derived query."""

    def __init__(self, source: str, entity: MongoPersistentEntity, mapping_context: MongoMappingContext):
        self.source = source
        name = source
        self.ignore_case = False
        if name.endswith("_ignore_case"):
            name = name[: -len("_ignore_case")]
            self.ignore_case = True

        self.type, self.property_path, self.is_collection = self._resolve(name, entity, mapping_context)

    @property
    def argument_count(self) -> int:
        return self.type.argument_count

    def create_condition(self, arguments: Sequence[Any]) -> Tuple[str, Any]:
        return self.property_path, self.type.build(list(arguments), self.ignore_case, self.is_collection)

    @staticmethod
    def _resolve(name: str, entity: MongoPersistentEntity, mapping_context: MongoMappingContext):
        unresolved = name
        for keyword, part_type in _KEYWORDS:
            if keyword and not name.endswith(keyword):
                continue
            candidate = name[: -len(keyword)] if keyword else name
            if not candidate:
                continue
            resolved = _resolve_property_path(candidate, entity, mapping_context)
            if resolved is not None:
                path, is_collection = resolved
                return part_type, path, is_collection
            if keyword and len(candidate) < len(unresolved):
                unresolved = candidate

        raise MappingException(f"No property '{unresolved}' found for type {entity.type.__name__}")

    def __repr__(self) -> str:
        return f"Part({self.property_path!r}, {self.type.name})"


def _resolve_property_path(
    candidate: str, entity: MongoPersistentEntity, mapping_context: MongoMappingContext
) -> Optional[Tuple[str, bool]]:
    """Resolve ``address__city`` style paths to ``address.city``."""
    current: Optional[MongoPersistentEntity] = entity
    names = []
    prop = None
    for segment in candidate.split("__"):
        if current is None:
            return None
        prop = current.get_property(segment)
        if prop is None:
            return None
        names.append(prop.name)
        current = mapping_context.get_persistent_entity(prop.actual_type) if prop.is_entity else None
    is_collection = get_origin(prop.type) in (list, set, tuple, frozenset)
    return ".".join(names), is_collection


class PartTree:
    """
    Parsed form of a derived query method name:

        find_by_last_name_and_age_greater_than_order_by_age_desc
        count_by_active_is_true
        find_top3_by_city_or_country_order_by_name_asc

    ``_or_`` separates alternatives, ``_and_`` conditions of one alternative,
    ``__`` traverses into nested documents.
    """

    def __init__(
        self,
        method_name: str,
        domain_type: Type[Any],
        mapping_context: Optional[MongoMappingContext] = None,
    ):
        match = _SUBJECT.match(method_name)
        if match is None:
            raise InvalidDataAccessApiUsageException(
                f"'{method_name}' is not a derived query method; "
                "expected e.g. find_by_<property>, count_by_<property>"
            )
        self.method_name = method_name
        self.domain_type = domain_type
        self._mapping_context = mapping_context or MongoMappingContext()
        entity = self._mapping_context.get_persistent_entity(domain_type)

        self.mode = _MODES[match.group("verb")]
        limiting, size = match.group("limiting"), match.group("size")
        self.max_results: Optional[int] = int(size) if size else (1 if limiting else None)
        self.is_single = limiting is not None and not size
        if self.max_results is not None and self.max_results < 1:
            raise InvalidDataAccessApiUsageException(f"Invalid result limit in '{method_name}'")
        if self.max_results is not None and self.mode != "find":
            raise InvalidDataAccessApiUsageException(f"'{method_name}': first/top only apply to find queries")

        predicate, _, order_by = match.group("predicate").partition("_order_by_")
        self.alternatives: List[List[Part]] = [
            [Part(source, entity, self._mapping_context) for source in alternative.split("_and_")]
            for alternative in predicate.split("_or_")
        ]
        self.sort: List[Tuple[str, int]] = self._parse_sort(order_by, entity) if order_by else []

    def _parse_sort(self, order_by: str, entity: MongoPersistentEntity) -> List[Tuple[str, int]]:
        orders = []
        for source in order_by.split("_and_"):
            direction = ASCENDING
            if source.endswith("_desc"):
                source, direction = source[: -len("_desc")], DESCENDING
            elif source.endswith("_asc"):
                source = source[: -len("_asc")]
            resolved = _resolve_property_path(source, entity, self._mapping_context)
            if resolved is None:
                raise MappingException(f"No property '{source}' found for type {entity.type.__name__}")
            orders.append((resolved[0], direction))
        return orders

    @property
    def parts(self) -> List[Part]:
        return [part for alternative in self.alternatives for part in alternative]

    @property
    def argument_count(self) -> int:
        return sum(part.argument_count for part in self.parts)

    def create_query(self, arguments: Sequence[Any]) -> Query:
        if len(arguments) != self.argument_count:
            raise InvalidDataAccessApiUsageException(
                f"{self.method_name} expects {self.argument_count} argument(s), got {len(arguments)}"
            )

        position = 0
        criteria_per_alternative = []
        for alternative in self.alternatives:
            conditions = []
            for part in alternative:
                conditions.append(part.create_condition(arguments[position : position + part.argument_count]))
                position += part.argument_count
            criteria_per_alternative.append(self._and(conditions))

        if len(criteria_per_alternative) == 1:
            criteria = criteria_per_alternative[0]
        else:
            criteria = {"$or": criteria_per_alternative}

        query = Query(criteria=criteria, sort=tuple(self.sort))
        if self.max_results is not None:
            query = query.with_limit(self.max_results)
        return query

    @staticmethod
    def _and(conditions: List[Tuple[str, Any]]) -> Dict[str, Any]:
        keys = [path for path, _ in conditions]
        if len(set(keys)) == len(keys):
            return dict(conditions)
        return {"$and": [{path: condition} for path, condition in conditions]}

    def __repr__(self) -> str:
        return f"PartTree({self.method_name!r}, mode={self.mode}, parts={self.parts})"


def bind_parameters(value: Any, arguments: Sequence[Any]) -> Any:
    """Replace every ``"?N"`` string inside ``value`` with ``arguments[N]``."""
    if isinstance(value, str):
        match = _PLACEHOLDER.match(value)
        if match is None:
            return value
        index = int(match.group(1))
        if index >= len(arguments):
            raise InvalidDataAccessApiUsageException(
                f"Placeholder ?{index} has no argument; {len(arguments)} given"
            )
        return arguments[index]
    if isinstance(value, dict):
        return {k: bind_parameters(v, arguments) for k, v in value.items()}
    if isinstance(value, list):
        return [bind_parameters(v, arguments) for v in value]
    return value


class MongoQueryExecutor:
    """Runs the derived and declared query methods of one repository."""

    def __init__(self, metadata, operations, part_trees: Optional[Dict[str, PartTree]] = None):
        self._metadata = metadata
        self._operations = operations
        self._query_methods = metadata.query_methods
        self._part_trees: Dict[str, PartTree] = dict(part_trees or {})

    def handles(self, name: str) -> bool:
        return name in self._query_methods

    def part_tree(self, name: str) -> PartTree:
        tree = self._part_trees.get(name)
        if tree is None:
            tree = PartTree(name, self._metadata.domain_type, self._operations.mapping_context)
            self._part_trees[name] = tree
        return tree

    def execute(self, name: str, args: Sequence[Any], kwargs: Dict[str, Any]) -> Any:
        if kwargs:
            raise InvalidDataAccessApiUsageException(f"{name} only accepts positional arguments")

        marker = self._query_methods[name]
        domain_type = self._metadata.domain_type
        if isinstance(marker, StringQuery):
            mode = "count" if marker.count else "exists" if marker.exists else "delete" if marker.delete else "find"
            query = Query(
                criteria=bind_parameters(marker.filter, args),
                sort=tuple(marker.sort.items()),
            )
            single = False
        else:
            tree = self.part_tree(name)
            mode, query, single = tree.mode, tree.create_query(args), tree.is_single

        logger.debug("Executing query method", method=name, mode=mode, criteria=str(query.criteria))

        if mode == "count":
            return self._operations.count(query, domain_type)
        if mode == "exists":
            return self._operations.exists(query, domain_type)
        if mode == "delete":
            return self._operations.remove(query, domain_type)
        if single:
            return self._operations.find_one(query, domain_type)
        return self._operations.find(query, domain_type)
