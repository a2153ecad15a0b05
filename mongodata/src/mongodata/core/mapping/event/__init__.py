from .callbacks import (
    HIGHEST_PRECEDENCE,
    LOWEST_PRECEDENCE,
    Ordered,
    ordered,
    EntityCallback,
    BeforeConvertCallback,
    BeforeSaveCallback,
    AfterConvertCallback,
    AfterSaveCallback,
    ReactiveBeforeConvertCallback,
    ReactiveBeforeSaveCallback,
    ReactiveAfterConvertCallback,
    ReactiveAfterSaveCallback,
    SYNC_CALLBACK_TYPES,
    REACTIVE_CALLBACK_TYPES,
    EntityCallbacks,
    ReactiveEntityCallbacks,
)
from .auditing import AuditingEntityCallback, ReactiveAuditingEntityCallback, DEFAULT_AUDITING_ORDER

__all__ = [
    "HIGHEST_PRECEDENCE",
    "LOWEST_PRECEDENCE",
    "Ordered",
    "ordered",
    "EntityCallback",
    "BeforeConvertCallback",
    "BeforeSaveCallback",
    "AfterConvertCallback",
    "AfterSaveCallback",
    "ReactiveBeforeConvertCallback",
    "ReactiveBeforeSaveCallback",
    "ReactiveAfterConvertCallback",
    "ReactiveAfterSaveCallback",
    "SYNC_CALLBACK_TYPES",
    "REACTIVE_CALLBACK_TYPES",
    "EntityCallbacks",
    "ReactiveEntityCallbacks",
    "AuditingEntityCallback",
    "ReactiveAuditingEntityCallback",
    "DEFAULT_AUDITING_ORDER",
]
