"""Road event handlers."""

from __future__ import annotations

from ..events import EventEnvelope, RoadCreated, RoadDeleted, RoadExternalIdChanged, RoadNameChanged, RoadUpdated
from ..models import ENTITY_ROAD, Road
from .base import EntityHandlers, handles


class RoadHandlers(EntityHandlers):
    entity_type = ENTITY_ROAD

    @handles(RoadCreated)
    def created(self, envelope: EventEnvelope) -> None:
        event = envelope.event
        self.insert(
            envelope,
            Road(
                id=event.id,
                external_id=event.external_id,
                name=event.name,
                created_at=self.timestamps.effective(envelope),
            ),
        )

    @handles(RoadUpdated)
    def updated(self, envelope: EventEnvelope) -> None:
        event = envelope.event
        self.change(envelope, external_id=event.external_id, name=event.name)

    @handles(RoadNameChanged)
    def name_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, name=envelope.event.name)

    @handles(RoadExternalIdChanged)
    def external_id_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, external_id=envelope.event.external_id)

    @handles(RoadDeleted)
    def deleted(self, envelope: EventEnvelope) -> None:
        self.delete(envelope)
