from datetime import datetime
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pydantic import BaseModel

from mongodata.core import ReactiveMongoTemplate
from mongodata.core.mapping import IsNewAwareAuditingHandler, MongoMappingContext, created_date, document, version
from mongodata.core.mapping.event import (
    BeforeConvertCallback,
    ReactiveAfterSaveCallback,
    ReactiveAuditingEntityCallback,
    ReactiveEntityCallbacks,
)
from mongodata.core.convert import MappingMongoConverter
from mongodata.core.query import NearQuery, Query
from mongodata.core.session import SessionScoped
from mongodata.exceptions import OptimisticLockingFailureException

OBJECT_ID = ObjectId("5f0c3b7a9d3e2a1b4c5d6e7f")


@document("events")
class Event(BaseModel):
    id: Optional[str] = None
    title: str
    created: Optional[datetime] = created_date()
    version: Optional[int] = version()


def _database(documents=None):
    database = MagicMock()
    database.name = "test"
    collection = MagicMock()
    database.__getitem__.return_value = collection

    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=documents or [])
    collection.find.return_value = cursor
    collection.aggregate.return_value = cursor
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=OBJECT_ID))
    collection.replace_one = AsyncMock(return_value=MagicMock(matched_count=1, upserted_id=None))
    collection.count_documents = AsyncMock(return_value=7)
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=2))
    collection.find_one = AsyncMock(return_value=None)
    return database, collection


async def test_insert_runs_reactive_callbacks():
    database, collection = _database()
    mapping_context = MongoMappingContext()
    handler = IsNewAwareAuditingHandler(mapping_context)
    saved = []

    class Recorder(ReactiveAfterSaveCallback[Event]):
        async def on_after_save(self, entity, document, collection):
            saved.append((entity.title, collection))
            return entity

    callbacks = ReactiveEntityCallbacks([ReactiveAuditingEntityCallback(lambda: handler), Recorder()])
    template = ReactiveMongoTemplate(database, MappingMongoConverter(mapping_context), callbacks)

    event = await template.insert(Event(title="launch"))

    assert event.id == str(OBJECT_ID)
    assert event.created is not None
    assert event.version == 0
    assert saved == [("launch", "events")]


async def test_sync_callbacks_are_ignored_by_reactive_template():
    database, collection = _database()

    class SyncOnly(BeforeConvertCallback[Event]):
        def on_before_convert(self, entity, collection):
            raise AssertionError("must not run")

    template = ReactiveMongoTemplate(database, entity_callbacks=ReactiveEntityCallbacks([SyncOnly()]))

    await template.insert(Event(title="launch"))

    collection.insert_one.assert_awaited_once()


async def test_find_reads_cursor():
    database, collection = _database([{"_id": OBJECT_ID, "title": "launch", "version": 1}])
    template = ReactiveMongoTemplate(database)

    events = await template.find(Query.of(title="launch"), Event)

    assert collection.find.call_args.args[0] == {"title": "launch"}
    assert events == [Event(id=str(OBJECT_ID), title="launch", version=1)]


async def test_save_fails_on_version_mismatch():
    database, collection = _database()
    collection.replace_one.return_value = MagicMock(matched_count=0, upserted_id=None)
    template = ReactiveMongoTemplate(database)

    with pytest.raises(OptimisticLockingFailureException):
        await template.save(Event(id="e1", title="launch", version=2))


async def test_count_remove_and_find_by_id():
    database, collection = _database()
    template = ReactiveMongoTemplate(database)

    assert await template.count(Query(), Event) == 7
    assert await template.remove(Query.of(title="x"), Event) == 2
    assert await template.find_by_id("e1", Event) is None
    collection.find_one.assert_awaited_once_with({"_id": "e1"})


async def test_geo_near():
    database, collection = _database([{"_id": OBJECT_ID, "title": "launch", "dis": 3.0}])
    template = ReactiveMongoTemplate(database)

    results = await template.geo_near(NearQuery.near(1, 2), Event, distance_field="dis")

    assert results.content[0].title == "launch"
    assert results.average_distance.value == 3.0
    assert "$geoNear" in collection.aggregate.call_args.args[0][0]


async def test_find_one_exists_and_insert_all():
    database, collection = _database([{"_id": OBJECT_ID, "title": "launch", "version": 1}])
    template = ReactiveMongoTemplate(database)

    event = await template.find_one(Query.of(title="launch"), Event)
    assert event == Event(id=str(OBJECT_ID), title="launch", version=1)
    assert collection.find.call_args.kwargs == {"limit": 1}

    assert await template.exists(Query.of(title="launch"), Event)
    collection.count_documents.assert_awaited_with({"title": "launch"}, limit=1)

    inserted = await template.insert_all([Event(title="a"), Event(title="b")])
    assert [e.title for e in inserted] == ["a", "b"]
    assert collection.insert_one.await_count == 2


async def test_find_one_without_match():
    database, _ = _database()

    assert await ReactiveMongoTemplate(database).find_one(Query(), Event) is None


async def test_session_is_passed_to_collection_calls():
    database, collection = _database()
    session = MagicMock()
    template = ReactiveMongoTemplate(SessionScoped(database, session, (MagicMock,)))

    assert await template.exists(Query(), Event)

    collection.count_documents.assert_awaited_once_with({}, limit=1, session=session)


async def test_with_session_scopes_motor_handles():
    client = AsyncIOMotorClient("mongodb://localhost:27017")
    session = MagicMock()
    try:
        template = ReactiveMongoTemplate(client["test"]).with_session(session)
        collection = template.get_collection("events")

        assert isinstance(template, ReactiveMongoTemplate)
        assert isinstance(template.database, SessionScoped)
        assert isinstance(collection, SessionScoped)
        assert isinstance(collection.target, AsyncIOMotorCollection)
        assert collection.session is session
    finally:
        client.close()
