"""
Event-fold engine holding the address projection.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Type
from uuid import UUID

import structlog

from shared.utils.errors import DataProcessingError, UnknownEventError
from shared.utils.logging import bind_event_context

from ..events import AddressEvent, EventEnvelope
from ..models import AccessAddress, PostCode, Road, UnitAddress
from .access_address import AccessAddressHandlers
from .base import TIMESTAMP_COMMIT, Handler, TimestampPolicy
from .post_code import PostCodeHandlers
from .road import RoadHandlers
from .unit_address import UnitAddressHandlers


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProjectionSnapshot:
    """Read-only view of the projection at one point in the event history."""

    post_codes: Mapping[UUID, PostCode]
    roads: Mapping[UUID, Road]
    access_addresses: Mapping[UUID, AccessAddress]
    unit_addresses: Mapping[UUID, UnitAddress]
    applied_count: int


class AddressProjection:
    """
    In-memory materialized state of the address registry.

    The projection is a pure function of the ordered event history: the
    same events applied to an empty projection always produce the same
    four maps. It is owned by a single writer; readers work on
    ``snapshot()`` copies.
    """

    def __init__(self, timestamp_source: str = TIMESTAMP_COMMIT, delete_bumps_updated_at: bool = True):
        self.timestamps = TimestampPolicy(timestamp_source, delete_bumps_updated_at)

        self.post_codes: Dict[UUID, PostCode] = {}
        self.roads: Dict[UUID, Road] = {}
        self.access_addresses: Dict[UUID, AccessAddress] = {}
        self.unit_addresses: Dict[UUID, UnitAddress] = {}

        self.applied_count = 0

        self._dispatch: Dict[Type[AddressEvent], Handler] = {}
        for handlers in (
            PostCodeHandlers(self.post_codes, self.timestamps),
            RoadHandlers(self.roads, self.timestamps),
            AccessAddressHandlers(self.access_addresses, self.timestamps),
            UnitAddressHandlers(self.unit_addresses, self.timestamps),
        ):
            self._dispatch.update(handlers.handlers())

    @property
    def handled_events(self):
        return frozenset(self._dispatch)

    def apply(self, envelope: EventEnvelope) -> None:
        """Apply one event; raises on any integrity violation."""
        handler = self._dispatch.get(type(envelope.event))
        if handler is None:
            raise UnknownEventError(envelope.kind, position=envelope.position)

        try:
            handler(envelope)
        except DataProcessingError as e:
            bind_event_context(logger, envelope.kind, envelope.event.id).error(
                "Event rejected",
                error_code=e.error_code,
                error=e.message,
                position=envelope.position,
            )
            raise

        self.applied_count += 1

    def snapshot(self) -> ProjectionSnapshot:
        """Copy the four maps into an immutable snapshot."""
        return ProjectionSnapshot(
            post_codes=MappingProxyType(dict(self.post_codes)),
            roads=MappingProxyType(dict(self.roads)),
            access_addresses=MappingProxyType(dict(self.access_addresses)),
            unit_addresses=MappingProxyType(dict(self.unit_addresses)),
            applied_count=self.applied_count,
        )
