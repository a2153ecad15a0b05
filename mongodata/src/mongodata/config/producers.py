"""
Container components that assemble the data access layer from ``Config``:

    MongoClient -> MongoTemplate -> MongoRepositoryFactory

User defined entity callbacks registered with ``@component`` are collected
through the ``List[EntityCallback]`` component. The reactive template is only
registered when the motor driver is installed and can only be created when
``mongodb.reactive`` is enabled.
"""

import functools
from typing import List

from pymongo import MongoClient

from mongodata.aot.predicates import is_reactive_client_present
from mongodata.core.convert import MappingMongoConverter
from mongodata.core.mapping import IsNewAwareAuditingHandler, MongoMappingContext
from mongodata.core.mapping.event import (
    AuditingEntityCallback,
    EntityCallback,
    EntityCallbacks,
    ReactiveAuditingEntityCallback,
    ReactiveEntityCallbacks,
)
from mongodata.core.reactive import ReactiveMongoTemplate
from mongodata.core.template import MongoTemplate
from mongodata.exceptions import InvalidDataAccessApiUsageException
from mongodata.ioc import ProviderType, component
from mongodata.repository import MongoRepositoryFactory
from mongodata.telemetry import CommandLoggingListener, get_logger

from .config import Config

logger = get_logger(__name__)


def create_mongo_client(config: Config) -> MongoClient:
    logger.info("Creating MongoClient", database=config.mongodb.database)
    listeners = [CommandLoggingListener()] if config.env.telemetry else []
    return MongoClient(config.mongodb.uri, connect=False, event_listeners=listeners)


def create_converter(mapping_context: MongoMappingContext) -> MappingMongoConverter:
    return MappingMongoConverter(mapping_context)


def _auditing_handler_factory(mapping_context: MongoMappingContext):
    return functools.lru_cache(maxsize=None)(lambda: IsNewAwareAuditingHandler(mapping_context))


def create_entity_callbacks(
    config: Config,
    mapping_context: MongoMappingContext,
    callbacks: List[EntityCallback],
) -> EntityCallbacks:
    entity_callbacks = EntityCallbacks(callbacks)
    if config.mongodb.auditing:
        entity_callbacks.add_callback(AuditingEntityCallback(_auditing_handler_factory(mapping_context)))
    return entity_callbacks


def create_mongo_template(
    client: MongoClient,
    config: Config,
    converter: MappingMongoConverter,
    entity_callbacks: EntityCallbacks,
) -> MongoTemplate:
    return MongoTemplate(client[config.mongodb.database], converter, entity_callbacks)


def create_repository_factory(operations: MongoTemplate, config: Config) -> MongoRepositoryFactory:
    return MongoRepositoryFactory(operations, config=config.mongodb)


def create_reactive_mongo_template(
    config: Config,
    converter: MappingMongoConverter,
    mapping_context: MongoMappingContext,
    callbacks: List[EntityCallback],
) -> ReactiveMongoTemplate:
    if not config.mongodb.reactive:
        raise InvalidDataAccessApiUsageException("Reactive support is disabled, set mongodb.reactive to enable it")

    from motor.motor_asyncio import AsyncIOMotorClient

    entity_callbacks = ReactiveEntityCallbacks(callbacks)
    if config.mongodb.auditing:
        entity_callbacks.add_callback(ReactiveAuditingEntityCallback(_auditing_handler_factory(mapping_context)))
    client = AsyncIOMotorClient(config.mongodb.uri)
    return ReactiveMongoTemplate(client[config.mongodb.database], converter, entity_callbacks)


component(MongoMappingContext)
component(List[EntityCallback], provider_type=ProviderType.LIST)
component(MongoClient, factory=create_mongo_client)
component(MappingMongoConverter, factory=create_converter)
component(EntityCallbacks, factory=create_entity_callbacks)
component(MongoTemplate, factory=create_mongo_template)
component(MongoRepositoryFactory, factory=create_repository_factory)

if is_reactive_client_present():
    component(ReactiveMongoTemplate, factory=create_reactive_mongo_template)
