"""
Building blocks shared by the per-entity event handlers.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Type, TypeVar
from uuid import UUID

from shared.utils.errors import ConfigurationError, DuplicateEntityError, EventFormatError, MissingEntityError

from ..events import AddressEvent, EventEnvelope


TIMESTAMP_COMMIT = "commit"
TIMESTAMP_EXTERNAL = "external"

Handler = Callable[[EventEnvelope], None]
F = TypeVar("F", bound=Callable[..., Any])


def handles(event_class: Type[AddressEvent]) -> Callable[[F], F]:
    """Mark a handler method as the handler of ``event_class``."""
    def decorator(func: F) -> F:
        func.handled_event = event_class
        return func
    return decorator


class TimestampPolicy:
    """
    Decides the effective timestamp of an event.

    Exactly one source is used per deployment: the commit time of the
    envelope, or the external date carried in the event payload. With the
    external source an event lacking the attribute is rejected.
    """

    def __init__(self, source: str = TIMESTAMP_COMMIT, delete_bumps_updated_at: bool = True):
        if source not in (TIMESTAMP_COMMIT, TIMESTAMP_EXTERNAL):
            raise ConfigurationError(
                f"Unknown timestamp source: {source}",
                config_key="timestamp_source",
                config_value=source,
            )
        self.source = source
        self.delete_bumps_updated_at = delete_bumps_updated_at

    def effective(self, envelope: EventEnvelope) -> datetime:
        if self.source == TIMESTAMP_COMMIT:
            return envelope.timestamp

        value = envelope.event.external_date()
        if value is None:
            field_name = envelope.event.external_date_field
            raise EventFormatError(
                f"{envelope.kind} at position {envelope.position} has no {field_name}",
                event_kind=envelope.kind,
                field=field_name,
                details={"position": envelope.position, "entity_id": str(envelope.event.id)},
            )
        return value

    @staticmethod
    def advance(previous: Optional[datetime], current: datetime) -> datetime:
        """updated_at never moves backwards."""
        if previous is None or current > previous:
            return current
        return previous


class EntityHandlers:
    """
    Handlers for the events of one entity type.

    Subclasses mark methods with ``@handles(EventClass)``; the projection
    collects them into its dispatch table.
    """

    entity_type: str = ""

    def __init__(self, entities: Dict[UUID, Any], timestamps: TimestampPolicy):
        self.entities = entities
        self.timestamps = timestamps

    def handlers(self) -> Dict[Type[AddressEvent], Handler]:
        table: Dict[Type[AddressEvent], Handler] = {}
        for name, member in vars(type(self)).items():
            event_class = getattr(member, "handled_event", None)
            if event_class is not None:
                table[event_class] = getattr(self, name)
        return table

    def insert(self, envelope: EventEnvelope, record: Any) -> None:
        if record.id in self.entities:
            raise DuplicateEntityError(self.entity_type, record.id, event_kind=envelope.kind)
        self.entities[record.id] = record

    def current(self, envelope: EventEnvelope) -> Any:
        entity_id = envelope.event.id
        record = self.entities.get(entity_id)
        if record is None:
            raise MissingEntityError(self.entity_type, entity_id, event_kind=envelope.kind)
        return record

    def change(self, envelope: EventEnvelope, **changes: Any) -> None:
        record = self.current(envelope)
        updated_at = self.timestamps.advance(record.updated_at, self.timestamps.effective(envelope))
        self.entities[record.id] = replace(record, updated_at=updated_at, **changes)

    def delete(self, envelope: EventEnvelope) -> None:
        record = self.current(envelope)
        if self.timestamps.delete_bumps_updated_at:
            updated_at = self.timestamps.advance(record.updated_at, self.timestamps.effective(envelope))
            self.entities[record.id] = replace(record, deleted=True, updated_at=updated_at)
        else:
            self.entities[record.id] = replace(record, deleted=True)
