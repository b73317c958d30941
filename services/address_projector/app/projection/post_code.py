"""Post code event handlers."""

from __future__ import annotations

from ..events import EventEnvelope, PostCodeCreated, PostCodeDeleted, PostCodeNameChanged, PostCodeUpdated
from ..models import ENTITY_POST_CODE, PostCode
from .base import EntityHandlers, handles


class PostCodeHandlers(EntityHandlers):
    entity_type = ENTITY_POST_CODE

    @handles(PostCodeCreated)
    def created(self, envelope: EventEnvelope) -> None:
        event = envelope.event
        self.insert(
            envelope,
            PostCode(
                id=event.id,
                code=event.code,
                name=event.name,
                created_at=self.timestamps.effective(envelope),
            ),
        )

    @handles(PostCodeUpdated)
    def updated(self, envelope: EventEnvelope) -> None:
        event = envelope.event
        self.change(envelope, code=event.code, name=event.name)

    @handles(PostCodeNameChanged)
    def name_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, name=envelope.event.name)

    @handles(PostCodeDeleted)
    def deleted(self, envelope: EventEnvelope) -> None:
        self.delete(envelope)
