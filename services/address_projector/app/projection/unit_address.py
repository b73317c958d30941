"""Unit address event handlers."""

from __future__ import annotations

from ..events import (
    EventEnvelope,
    UnitAddressAccessAddressIdChanged,
    UnitAddressCreated,
    UnitAddressDeleted,
    UnitAddressExternalIdChanged,
    UnitAddressFloorNameChanged,
    UnitAddressStatusChanged,
    UnitAddressSuiteNameChanged,
    UnitAddressUpdated,
)
from ..models import ENTITY_UNIT_ADDRESS, UnitAddress
from .base import EntityHandlers, handles


class UnitAddressHandlers(EntityHandlers):
    entity_type = ENTITY_UNIT_ADDRESS

    @handles(UnitAddressCreated)
    def created(self, envelope: EventEnvelope) -> None:
        event = envelope.event
        self.insert(
            envelope,
            UnitAddress(
                id=event.id,
                access_address_id=event.access_address_id,
                status=event.status,
                floor_name=event.floor_name,
                suite_name=event.suite_name,
                external_id=event.external_id,
                created_at=self.timestamps.effective(envelope),
            ),
        )

    @handles(UnitAddressUpdated)
    def updated(self, envelope: EventEnvelope) -> None:
        event = envelope.event
        self.change(
            envelope,
            access_address_id=event.access_address_id,
            status=event.status,
            floor_name=event.floor_name,
            suite_name=event.suite_name,
            external_id=event.external_id,
        )

    @handles(UnitAddressAccessAddressIdChanged)
    def access_address_id_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, access_address_id=envelope.event.access_address_id)

    @handles(UnitAddressStatusChanged)
    def status_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, status=envelope.event.status)

    @handles(UnitAddressFloorNameChanged)
    def floor_name_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, floor_name=envelope.event.floor_name)

    @handles(UnitAddressSuiteNameChanged)
    def suite_name_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, suite_name=envelope.event.suite_name)

    @handles(UnitAddressExternalIdChanged)
    def external_id_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, external_id=envelope.event.external_id)

    @handles(UnitAddressDeleted)
    def deleted(self, envelope: EventEnvelope) -> None:
        self.delete(envelope)
