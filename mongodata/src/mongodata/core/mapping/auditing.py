from datetime import datetime
from typing import Any, Callable, Dict, Optional

from mongodata.telemetry import get_logger
from mongodata.util import get_now
from .context import MongoMappingContext

logger = get_logger(__name__)

AuditorProvider = Callable[[], Optional[Any]]
DateTimeProvider = Callable[[], datetime]


class AuditingHandler:
    """
    Stamps the audit properties of an entity:

    - ``created_date()`` / ``created_by()`` on creation
    - ``last_modified_date()`` / ``last_modified_by()`` on every write,
      including creation unless ``modify_on_creation`` is off

    Frozen models are replaced by an updated copy, other models are
    updated in place. The returned entity is the one to persist.
    """

    def __init__(
        self,
        mapping_context: Optional[MongoMappingContext] = None,
        auditor_provider: Optional[AuditorProvider] = None,
        date_time_provider: DateTimeProvider = get_now,
        modify_on_creation: bool = True,
    ):
        self._mapping_context = mapping_context or MongoMappingContext()
        self._auditor_provider = auditor_provider
        self._date_time_provider = date_time_provider
        self.modify_on_creation = modify_on_creation

    def mark_created(self, entity: Any) -> Any:
        return self._touch(entity, is_new=True)

    def mark_modified(self, entity: Any) -> Any:
        return self._touch(entity, is_new=False)

    def is_auditable(self, entity: Any) -> bool:
        persistent = self._mapping_context.get_persistent_entity(type(entity))
        return any(
            persistent.properties_with(flag)
            for flag in ("created_date", "created_by", "last_modified_date", "last_modified_by")
        )

    def _touch(self, entity: Any, is_new: bool) -> Any:
        if entity is None:
            raise ValueError("Entity must not be None")
        if not self.is_auditable(entity):
            return entity

        persistent = self._mapping_context.get_persistent_entity(type(entity))
        now = self._date_time_provider()
        auditor = self._auditor_provider() if self._auditor_provider else None

        updates: Dict[str, Any] = {}
        if is_new:
            for prop in persistent.properties_with("created_date"):
                updates[prop.name] = now
            if auditor is not None:
                for prop in persistent.properties_with("created_by"):
                    updates[prop.name] = auditor

        if not is_new or self.modify_on_creation:
            for prop in persistent.properties_with("last_modified_date"):
                updates[prop.name] = now
            if auditor is not None:
                for prop in persistent.properties_with("last_modified_by"):
                    updates[prop.name] = auditor

        logger.debug(
            "Audit properties set",
            entity=type(entity).__name__,
            created=is_new,
            properties=sorted(updates),
        )
        return self._apply(entity, updates)

    @staticmethod
    def _apply(entity: Any, updates: Dict[str, Any]) -> Any:
        if not updates:
            return entity
        if entity.model_config.get("frozen", False):
            return entity.model_copy(update=updates)
        for name, value in updates.items():
            setattr(entity, name, value)
        return entity


class IsNewAwareAuditingHandler(AuditingHandler):
    """Picks creation or modification auditing from the entity state."""

    def mark_audited(self, entity: Any) -> Any:
        if entity is None:
            raise ValueError("Entity must not be None")
        persistent = self._mapping_context.get_persistent_entity(type(entity))
        if persistent.is_new(entity):
            return self.mark_created(entity)
        return self.mark_modified(entity)
