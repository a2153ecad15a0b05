from typing import List, Optional
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pydantic import BaseModel

import mongodata
from mongodata.config import MongoConfig, RepositoriesConfig
from mongodata.context import context
from mongodata.core import MongoTemplate
from mongodata.core.mapping import document, field
from mongodata.exceptions import DocumentNotFound, InvalidDataAccessApiUsageException, MappingException
from mongodata.repository import (
    FilterExecutor,
    Fragment,
    MongoRepository,
    MongoRepositoryFactory,
    PartTree,
    RepositoryMetadata,
    bind_parameters,
    fragment_implementation,
    invoke,
    query,
)

OBJECT_ID = ObjectId("5f0c3b7a9d3e2a1b4c5d6e7f")


class Address(BaseModel):
    city: str = ""


@document("people")
class Person(BaseModel):
    id: Optional[str] = None
    first_name: str = ""
    last_name: str = field("lastName", "")
    age: int = 0
    active: bool = True
    address: Optional[Address] = None
    tags: List[str] = []


class PersonRepository(MongoRepository[Person, str]):
    find_by_last_name = invoke()
    find_first_by_age_greater_than = invoke()
    count_by_active_is_true = invoke()
    exists_by_last_name = invoke()
    delete_by_age_less_than = invoke()
    find_adults = query({"age": {"$gte": "?0"}}, sort={"age": 1})
    count_minors = query({"age": {"$lt": 18}}, count=True)


@pytest.fixture
def collection():
    return MagicMock()


@pytest.fixture
def template(collection):
    database = MagicMock()
    database.name = "test"
    database.__getitem__.return_value = collection
    return MongoTemplate(database)


@pytest.fixture
def people(template):
    return MongoRepositoryFactory(template).get_repository(PersonRepository)


@pytest.fixture
def fragments(monkeypatch):
    monkeypatch.setattr(context, "fragments", {})
    return context.fragments


def _criteria(method_name, *arguments):
    return PartTree(method_name, Person).create_query(arguments).criteria


# ---- derived query parsing ----


def test_parses_subject_modes():
    assert PartTree("find_by_last_name", Person).mode == "find"
    assert PartTree("read_all_by_last_name", Person).mode == "find"
    assert PartTree("count_by_age", Person).mode == "count"
    assert PartTree("exists_by_age", Person).mode == "exists"
    assert PartTree("remove_by_age", Person).mode == "delete"


def test_and_or_conditions():
    assert _criteria("find_by_last_name_and_age_greater_than", "Doe", 18) == {
        "last_name": "Doe",
        "age": {"$gt": 18},
    }
    assert _criteria("find_by_last_name_or_first_name", "Doe", "John") == {
        "$or": [{"last_name": "Doe"}, {"first_name": "John"}]
    }


def test_repeated_property_uses_and_operator():
    assert _criteria("find_by_age_greater_than_and_age_less_than", 1, 9) == {
        "$and": [{"age": {"$gt": 1}}, {"age": {"$lt": 9}}]
    }


@pytest.mark.parametrize(
    "method_name, arguments, expected",
    [
        ("find_by_age_between", (1, 9), {"age": {"$gt": 1, "$lt": 9}}),
        ("find_by_age_less_than_equal", (3,), {"age": {"$lte": 3}}),
        ("find_by_age_in", ([1, 2],), {"age": {"$in": [1, 2]}}),
        ("find_by_age_not_in", ((1, 2),), {"age": {"$nin": [1, 2]}}),
        ("find_by_last_name_not", ("Doe",), {"last_name": {"$ne": "Doe"}}),
        ("find_by_last_name_is_null", (), {"last_name": None}),
        ("find_by_last_name_is_not_null", (), {"last_name": {"$ne": None}}),
        ("find_by_last_name_starting_with", ("D",), {"last_name": {"$regex": "^D"}}),
        ("find_by_last_name_ending_with", ("e",), {"last_name": {"$regex": "e$"}}),
        ("find_by_last_name_like", ("D*e",), {"last_name": {"$regex": "^D.*e$"}}),
        ("find_by_last_name_containing", ("o",), {"last_name": {"$regex": "o"}}),
        ("find_by_tags_containing", ("vip",), {"tags": "vip"}),
        ("find_by_active_is_true", (), {"active": True}),
        ("find_by_active_false", (), {"active": False}),
        ("find_by_last_name_exists", (True,), {"last_name": {"$exists": True}}),
        ("find_by_address__city", ("Berlin",), {"address.city": "Berlin"}),
        ("find_by_last_name_ignore_case", ("Doe",), {"last_name": {"$regex": "^Doe$", "$options": "i"}}),
    ],
)
def test_keywords(method_name, arguments, expected):
    assert _criteria(method_name, *arguments) == expected


def test_limiting_and_sorting():
    tree = PartTree("find_top3_by_active_is_true_order_by_age_desc_and_last_name", Person)
    single = PartTree("find_first_by_last_name", Person)

    query = tree.create_query([])

    assert tree.max_results == 3 and not tree.is_single
    assert query.limit == 3
    assert query.sort == (("age", -1), ("last_name", 1))
    assert single.is_single and single.max_results == 1


def test_unknown_property_is_reported():
    with pytest.raises(MappingException, match="nickname"):
        PartTree("find_by_nickname", Person)


def test_rejects_names_that_are_not_derived_queries():
    with pytest.raises(InvalidDataAccessApiUsageException):
        PartTree("find_adults", Person)
    with pytest.raises(InvalidDataAccessApiUsageException):
        PartTree("count_top3_by_age", Person)


def test_checks_argument_count():
    with pytest.raises(InvalidDataAccessApiUsageException):
        PartTree("find_by_last_name", Person).create_query([])


def test_binds_placeholders():
    bound = bind_parameters({"age": {"$gte": "?0"}, "tags": ["?1", "x"], "name": "?"}, [18, "vip"])

    assert bound == {"age": {"$gte": 18}, "tags": ["vip", "x"], "name": "?"}
    with pytest.raises(InvalidDataAccessApiUsageException):
        bind_parameters("?2", [1])


def test_string_query_is_single_purpose():
    with pytest.raises(ValueError):
        query({}, count=True, exists=True)


# ---- metadata ----


def test_metadata_resolves_types_and_query_methods():
    metadata = RepositoryMetadata.of(PersonRepository)

    assert metadata.domain_type is Person
    assert metadata.id_type is str
    assert set(metadata.string_queries) == {"find_adults", "count_minors"}
    assert "save" not in metadata.query_methods
    assert "find_by_last_name" in metadata.derived_queries


def test_metadata_requires_typed_repository():
    class Untyped(MongoRepository):
        pass

    with pytest.raises(ValueError):
        RepositoryMetadata.of(Untyped)
    with pytest.raises(ValueError):
        RepositoryMetadata.of(Person)


# ---- repository instances ----


def test_factory_requires_operations():
    with pytest.raises(ValueError):
        MongoRepositoryFactory(None)


def test_crud_operations_delegate_to_template(people, collection):
    collection.insert_one.return_value = MagicMock(inserted_id=OBJECT_ID)
    collection.count_documents.return_value = 4
    collection.find.return_value = []

    saved = people.save(Person(last_name="Doe"))
    assert saved.id == str(OBJECT_ID)

    assert people.count() == 4
    people.find_all_by_id(["a", "b"])
    assert collection.find.call_args.args[0] == {"_id": {"$in": ["a", "b"]}}
    assert people.find_all_by_id([]) == []

    people.delete_by_id("a")
    collection.delete_many.assert_called_with({"_id": "a"})

    people.delete(Person(last_name="never stored"))
    collection.delete_one.assert_not_called()

    people.find_all_sorted(("last_name", 1))
    assert collection.find.call_args.kwargs == {"sort": [("lastName", 1)]}

    with pytest.raises(ValueError):
        people.find_by_id(None)


def test_derived_queries_run_against_template(people, collection):
    collection.find.return_value = [{"_id": OBJECT_ID, "lastName": "Doe", "age": 42}]
    collection.count_documents.return_value = 2
    collection.delete_many.return_value = MagicMock(deleted_count=5)

    assert people.find_by_last_name("Doe") == [Person(id=str(OBJECT_ID), last_name="Doe", age=42)]
    assert collection.find.call_args.args[0] == {"lastName": "Doe"}

    assert people.find_first_by_age_greater_than(40).age == 42
    assert collection.find.call_args.kwargs == {"limit": 1}

    assert people.count_by_active_is_true() == 2
    assert collection.count_documents.call_args.args[0] == {"active": True}

    assert people.exists_by_last_name("Doe")
    assert people.delete_by_age_less_than(18) == 5


def test_string_queries_bind_arguments(people, collection):
    collection.find.return_value = []
    collection.count_documents.return_value = 1

    people.find_adults(18)
    assert collection.find.call_args.args[0] == {"age": {"$gte": 18}}
    assert collection.find.call_args.kwargs == {"sort": [("age", 1)]}

    assert people.count_minors() == 1
    assert collection.count_documents.call_args.args[0] == {"age": {"$lt": 18}}


def test_query_methods_only_accept_positional_arguments(people):
    with pytest.raises(InvalidDataAccessApiUsageException):
        people.find_by_last_name(last_name="Doe")


def test_invalid_query_method_fails_on_creation(template):
    class BrokenRepository(MongoRepository[Person, str]):
        find_by_nickname = invoke()

    with pytest.raises(MappingException):
        MongoRepositoryFactory(template).get_repository(BrokenRepository)

    lazy = MongoConfig(repositories=RepositoriesConfig(generated=False))
    repository = MongoRepositoryFactory(template, config=lazy).get_repository(BrokenRepository)
    with pytest.raises(MappingException):
        repository.find_by_nickname("x")


def test_custom_fragment_takes_precedence(template, fragments):
    class PersonRepositoryCustom(Fragment):
        find_vips = invoke()
        count = invoke()

    @fragment_implementation(PersonRepositoryCustom)
    class PersonRepositoryCustomImpl:
        def __init__(self, operations):
            self.operations = operations

        def find_vips(self):
            return ["vip"]

        def count(self):
            return 42

    class CustomPersonRepository(MongoRepository[Person, str], PersonRepositoryCustom):
        find_by_last_name = invoke()

    repository = MongoRepositoryFactory(template).get_repository(CustomPersonRepository)

    assert repository.find_vips() == ["vip"]
    assert repository.count() == 42
    assert fragments[PersonRepositoryCustom] is PersonRepositoryCustomImpl
    assert RepositoryMetadata.of(CustomPersonRepository).derived_queries == ["find_by_last_name"]


def test_fragment_implementation_is_registered_once(fragments):
    class Custom(Fragment):
        run = invoke()

    fragment_implementation(Custom)(object)

    with pytest.raises(ValueError):
        fragment_implementation(Custom)(object)
    with pytest.raises(ValueError):
        fragment_implementation(Person)(object)


def test_fragment_without_implementation_is_rejected(template, fragments):
    class Unimplemented(Fragment):
        run = invoke()

    class UnimplementedRepository(MongoRepository[Person, str], Unimplemented):
        pass

    with pytest.raises(InvalidDataAccessApiUsageException):
        MongoRepositoryFactory(template).get_repository(UnimplementedRepository)


def test_filter_executor_fragment(template, collection, fragments):
    class FilteringRepository(MongoRepository[Person, str], FilterExecutor):
        pass

    collection.count_documents.return_value = 3
    collection.find.return_value = [{"_id": "p1", "lastName": "Doe"}]

    repository = MongoRepositoryFactory(template).get_repository(FilteringRepository)

    assert repository.count_by_filter({"age": {"$gt": 3}}) == 3
    assert repository.find_one_by_filter({"last_name": "Doe"}).id == "p1"
    assert collection.find.call_args.args[0] == {"lastName": "Doe"}


def test_get_by_id_requires_a_stored_document(people, collection):
    collection.find_one.return_value = None

    with pytest.raises(DocumentNotFound) as error:
        people.get_by_id("missing")

    assert error.value.id == "missing"
    assert error.value.collection == "people"

    collection.find_one.return_value = {"_id": OBJECT_ID, "lastName": "Doe"}

    assert people.get_by_id(str(OBJECT_ID)).last_name == "Doe"


def test_query_is_exported_as_the_declaration_function():
    assert callable(mongodata.query)
    assert mongodata.repository.query is query
    assert mongodata.query is query
