from datetime import datetime, timezone
from typing import Optional
from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel, ConfigDict

from mongodata.core.mapping import (
    IsNewAwareAuditingHandler,
    MongoMappingContext,
    created_by,
    created_date,
    last_modified_date,
    version,
)
from mongodata.core.mapping.event import (
    DEFAULT_AUDITING_ORDER,
    AuditingEntityCallback,
    BeforeConvertCallback,
    ReactiveAuditingEntityCallback,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class Sample(BaseModel):
    id: Optional[str] = None
    name: str = ""
    created: Optional[datetime] = created_date()
    creator: Optional[str] = created_by()
    modified: Optional[datetime] = last_modified_date()


class FrozenSample(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    created: Optional[datetime] = created_date()


class Versioned(BaseModel):
    id: Optional[str] = None
    version: Optional[int] = version()
    created: Optional[datetime] = created_date()


def _handler(**kwargs):
    return IsNewAwareAuditingHandler(MongoMappingContext(), date_time_provider=lambda: NOW, **kwargs)


def test_rejects_missing_handler_factory():
    with pytest.raises(ValueError):
        AuditingEntityCallback(None)


def test_is_a_before_convert_callback():
    assert isinstance(AuditingEntityCallback(_handler), BeforeConvertCallback)


def test_delegates_to_handler_and_returns_its_result():
    handler = MagicMock()
    replacement = Sample(name="replaced")
    handler.mark_audited.return_value = replacement
    callback = AuditingEntityCallback(lambda: handler)
    sample = Sample(name="original")

    result = callback.on_before_convert(sample, "collection-1")

    handler.mark_audited.assert_called_once_with(sample)
    assert result is replacement


def test_returns_same_instance_when_handler_does():
    handler = MagicMock()
    handler.mark_audited.side_effect = lambda entity: entity
    sample = Sample()

    assert AuditingEntityCallback(lambda: handler).on_before_convert(sample, "collection-1") is sample


def test_propagates_handler_failures():
    handler = MagicMock()
    handler.mark_audited.side_effect = RuntimeError("boom")

    with pytest.raises(RuntimeError):
        AuditingEntityCallback(lambda: handler).on_before_convert(Sample(), "collection-1")


def test_resolves_handler_lazily():
    factory = MagicMock(return_value=_handler())
    callback = AuditingEntityCallback(factory)

    factory.assert_not_called()
    callback.on_before_convert(Sample(), "collection-1")
    factory.assert_called_once()


def test_has_default_order_and_accepts_override():
    callback = AuditingEntityCallback(_handler)

    assert callback.order == DEFAULT_AUDITING_ORDER == 100

    callback.order = 5
    assert callback.order == 5


def test_marks_new_entity_as_created():
    handler = IsNewAwareAuditingHandler(
        MongoMappingContext(), auditor_provider=lambda: "jdoe", date_time_provider=lambda: NOW
    )

    sample = AuditingEntityCallback(lambda: handler).on_before_convert(Sample(), "collection-1")

    assert sample.created == NOW
    assert sample.creator == "jdoe"
    assert sample.modified == NOW


def test_marks_existing_entity_as_modified_only():
    sample = Sample(id="1")

    audited = AuditingEntityCallback(_handler).on_before_convert(sample, "collection-1")

    assert audited.created is None
    assert audited.modified == NOW


def test_modify_on_creation_can_be_disabled():
    sample = _handler(modify_on_creation=False).mark_audited(Sample())

    assert sample.created == NOW
    assert sample.modified is None


def test_frozen_entity_is_replaced():
    sample = FrozenSample()

    audited = AuditingEntityCallback(_handler).on_before_convert(sample, "collection-1")

    assert audited is not sample
    assert sample.created is None
    assert audited.created == NOW


def test_version_decides_whether_entity_is_new():
    handler = _handler()

    assert handler.mark_audited(Versioned(id="1")).created == NOW
    assert handler.mark_audited(Versioned(id="1", version=0)).created is None


async def test_reactive_callback_delegates_to_handler():
    handler = MagicMock()
    handler.mark_audited.side_effect = lambda entity: entity
    callback = ReactiveAuditingEntityCallback(lambda: handler)
    sample = Sample()

    result = await callback.on_before_convert(sample, "collection-1")

    assert result is sample
    assert callback.order == 100
    handler.mark_audited.assert_called_once_with(sample)
