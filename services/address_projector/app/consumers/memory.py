"""
In-memory event source.

Holds an ordered list of envelopes; used for local runs and tests.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional

import structlog

from ..events import AddressEvent, EventEnvelope
from ..projection import AddressProjection


logger = structlog.get_logger(__name__)


class InMemoryEventSource:
    """Event source backed by a Python list."""

    def __init__(self, projection: AddressProjection, envelopes: Iterable[EventEnvelope] = ()):
        self.projection = projection
        self.envelopes: List[EventEnvelope] = list(envelopes)
        self.position = 0

    def append(self, event: AddressEvent, timestamp: Optional[datetime] = None) -> EventEnvelope:
        """Append an event to the log; it is applied on the next catch-up."""
        envelope = EventEnvelope(
            event=event,
            timestamp=timestamp or datetime.now(timezone.utc),
            position=len(self.envelopes) + 1,
        )
        self.envelopes.append(envelope)
        return envelope

    async def replay_all(self) -> int:
        self.position = 0
        applied = await self.catch_up()
        logger.info("Replayed in-memory log", events_applied=applied)
        return applied

    async def catch_up(self) -> int:
        pending = self.envelopes[self.position:]
        for envelope in pending:
            self.projection.apply(envelope)
            self.position += 1
        return len(pending)
