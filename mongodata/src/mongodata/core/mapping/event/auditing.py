from typing import Any, Callable

from mongodata.core.mapping.auditing import IsNewAwareAuditingHandler
from .callbacks import BeforeConvertCallback, ReactiveBeforeConvertCallback

AuditingHandlerFactory = Callable[[], IsNewAwareAuditingHandler]

DEFAULT_AUDITING_ORDER = 100


class _AuditingCallbackSupport:
    def __init__(self, auditing_handler_factory: AuditingHandlerFactory):
        if auditing_handler_factory is None:
            raise ValueError("IsNewAwareAuditingHandler factory must not be None")
        self._auditing_handler_factory = auditing_handler_factory
        self._order = DEFAULT_AUDITING_ORDER

    @property
    def order(self) -> int:
        return self._order

    @order.setter
    def order(self, order: int) -> None:
        self._order = order


class AuditingEntityCallback(_AuditingCallbackSupport, BeforeConvertCallback[object]):
    """
    Marks the entity as audited before it is converted to a document.

    The handler is resolved through the factory on every call so it can be
    created lazily by the container.
    """

    def on_before_convert(self, entity: Any, collection: str) -> Any:
        return self._auditing_handler_factory().mark_audited(entity)


class ReactiveAuditingEntityCallback(_AuditingCallbackSupport, ReactiveBeforeConvertCallback[object]):
    async def on_before_convert(self, entity: Any, collection: str) -> Any:
        return self._auditing_handler_factory().mark_audited(entity)
