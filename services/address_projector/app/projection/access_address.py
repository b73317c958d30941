"""Access address event handlers."""

from __future__ import annotations

from ..events import (
    AccessAddressCoordinateChanged,
    AccessAddressCreated,
    AccessAddressDeleted,
    AccessAddressExternalIdChanged,
    AccessAddressHouseNumberChanged,
    AccessAddressMunicipalCodeChanged,
    AccessAddressPlotIdChanged,
    AccessAddressPostCodeIdChanged,
    AccessAddressRoadCodeChanged,
    AccessAddressRoadIdChanged,
    AccessAddressStatusChanged,
    AccessAddressSupplementaryTownNameChanged,
    AccessAddressUpdated,
    EventEnvelope,
)
from ..models import ENTITY_ACCESS_ADDRESS, AccessAddress
from .base import EntityHandlers, handles


class AccessAddressHandlers(EntityHandlers):
    """
    Access addresses reference a road and a post code. The references are
    only checked when the projection is exported, so events may arrive in
    any order relative to the referenced entities.
    """

    entity_type = ENTITY_ACCESS_ADDRESS

    @handles(AccessAddressCreated)
    def created(self, envelope: EventEnvelope) -> None:
        event = envelope.event
        self.insert(
            envelope,
            AccessAddress(
                id=event.id,
                external_id=event.external_id,
                municipal_code=event.municipal_code,
                status=event.status,
                road_code=event.road_code,
                house_number=event.house_number,
                east_coordinate=event.east_coordinate,
                north_coordinate=event.north_coordinate,
                town_name=event.town_name,
                plot_id=event.plot_id,
                road_id=event.road_id,
                post_code_id=event.post_code_id,
                created_at=self.timestamps.effective(envelope),
            ),
        )

    @handles(AccessAddressUpdated)
    def updated(self, envelope: EventEnvelope) -> None:
        event = envelope.event
        self.change(
            envelope,
            external_id=event.external_id,
            municipal_code=event.municipal_code,
            status=event.status,
            road_code=event.road_code,
            house_number=event.house_number,
            east_coordinate=event.east_coordinate,
            north_coordinate=event.north_coordinate,
            town_name=event.town_name,
            plot_id=event.plot_id,
            road_id=event.road_id,
            post_code_id=event.post_code_id,
        )

    @handles(AccessAddressExternalIdChanged)
    def external_id_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, external_id=envelope.event.external_id)

    @handles(AccessAddressMunicipalCodeChanged)
    def municipal_code_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, municipal_code=envelope.event.municipal_code)

    @handles(AccessAddressStatusChanged)
    def status_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, status=envelope.event.status)

    @handles(AccessAddressRoadCodeChanged)
    def road_code_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, road_code=envelope.event.road_code)

    @handles(AccessAddressHouseNumberChanged)
    def house_number_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, house_number=envelope.event.house_number)

    @handles(AccessAddressSupplementaryTownNameChanged)
    def town_name_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, town_name=envelope.event.town_name)

    @handles(AccessAddressPlotIdChanged)
    def plot_id_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, plot_id=envelope.event.plot_id)

    @handles(AccessAddressRoadIdChanged)
    def road_id_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, road_id=envelope.event.road_id)

    @handles(AccessAddressPostCodeIdChanged)
    def post_code_id_changed(self, envelope: EventEnvelope) -> None:
        self.change(envelope, post_code_id=envelope.event.post_code_id)

    @handles(AccessAddressCoordinateChanged)
    def coordinate_changed(self, envelope: EventEnvelope) -> None:
        event = envelope.event
        self.change(
            envelope,
            east_coordinate=event.east_coordinate,
            north_coordinate=event.north_coordinate,
        )

    @handles(AccessAddressDeleted)
    def deleted(self, envelope: EventEnvelope) -> None:
        self.delete(envelope)
