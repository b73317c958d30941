"""
Address registry event catalog.

Every event the projection understands is a frozen pydantic model.
Payloads coming from the event store are matched to fields
case-insensitively (``EastCoordinate``, ``east_coordinate`` and
``eastcoordinate`` are the same key), and the legacy field names of
older log generations are accepted.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Iterable, Optional, Type, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from shared.utils.errors import EventFormatError, UnknownEventError


# Integer values of the registry's status enum, in declaration order.
STATUS_NAMES: Dict[int, str] = {
    0: "Active",
    1: "Canceled",
    2: "Pending",
    3: "Discontinued",
}

# Normalized legacy payload key -> field name.
LEGACY_FIELD_NAMES: Dict[str, str] = {
    "officialid": "external_id",
    "suitname": "suite_name",
    "number": "code",
    "supplementarytownname": "town_name",
}


def _normalize_key(key: str) -> str:
    return key.replace("_", "").lower()


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AddressEvent(BaseModel):
    """Base class of all address registry events."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Which external timestamp attribute the event carries, if any
    external_date_field: ClassVar[str] = "external_updated_date"

    id: UUID

    @classmethod
    def kind(cls) -> str:
        """Event type name as written to the event store."""
        return _snake_case(cls.__name__)

    @model_validator(mode="before")
    @classmethod
    def _match_payload_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        lookup = {_normalize_key(name): name for name in cls.model_fields}
        matched: Dict[str, Any] = {}
        legacy: Dict[str, Any] = {}
        for key, value in data.items():
            normalized = _normalize_key(str(key))
            if normalized in lookup:
                matched.setdefault(lookup[normalized], value)
            elif LEGACY_FIELD_NAMES.get(normalized) in cls.model_fields:
                legacy.setdefault(LEGACY_FIELD_NAMES[normalized], value)
        # Current field names win over legacy ones
        for name, value in legacy.items():
            matched.setdefault(name, value)
        return matched

    @field_validator("status", mode="before", check_fields=False)
    @classmethod
    def _status_name(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            if value not in STATUS_NAMES:
                raise ValueError(f"unknown status value {value}")
            return STATUS_NAMES[value]
        return value

    @field_validator("external_created_date", "external_updated_date", check_fields=False)
    @classmethod
    def _external_date_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _ensure_utc(value) if value is not None else None

    def external_date(self) -> Optional[datetime]:
        return getattr(self, self.external_date_field, None)


class CreatedEvent(AddressEvent):
    external_date_field: ClassVar[str] = "external_created_date"

    external_created_date: Optional[datetime] = None


class ChangeEvent(AddressEvent):
    external_updated_date: Optional[datetime] = None


# Post codes

class PostCodeCreated(CreatedEvent):
    code: str
    name: str


class PostCodeUpdated(ChangeEvent):
    code: str
    name: str


class PostCodeNameChanged(ChangeEvent):
    name: str


class PostCodeDeleted(ChangeEvent):
    pass


# Roads

class RoadCreated(CreatedEvent):
    external_id: str
    name: str


class RoadUpdated(ChangeEvent):
    external_id: str
    name: str


class RoadNameChanged(ChangeEvent):
    name: str


class RoadExternalIdChanged(ChangeEvent):
    external_id: str


class RoadDeleted(ChangeEvent):
    pass


# Access addresses

class AccessAddressCreated(CreatedEvent):
    external_id: Optional[str] = None
    municipal_code: str
    status: str
    road_code: str
    house_number: str
    east_coordinate: float
    north_coordinate: float
    town_name: Optional[str] = None
    plot_id: Optional[str] = None
    road_id: UUID
    post_code_id: UUID


class AccessAddressUpdated(ChangeEvent):
    external_id: Optional[str] = None
    municipal_code: str
    status: str
    road_code: str
    house_number: str
    east_coordinate: float
    north_coordinate: float
    town_name: Optional[str] = None
    plot_id: Optional[str] = None
    road_id: UUID
    post_code_id: UUID


class AccessAddressExternalIdChanged(ChangeEvent):
    external_id: Optional[str] = None


class AccessAddressMunicipalCodeChanged(ChangeEvent):
    municipal_code: str


class AccessAddressStatusChanged(ChangeEvent):
    status: str


class AccessAddressRoadCodeChanged(ChangeEvent):
    road_code: str


class AccessAddressHouseNumberChanged(ChangeEvent):
    house_number: str


class AccessAddressSupplementaryTownNameChanged(ChangeEvent):
    town_name: Optional[str] = None


class AccessAddressPlotIdChanged(ChangeEvent):
    plot_id: Optional[str] = None


class AccessAddressRoadIdChanged(ChangeEvent):
    road_id: UUID


class AccessAddressPostCodeIdChanged(ChangeEvent):
    post_code_id: UUID


class AccessAddressCoordinateChanged(ChangeEvent):
    east_coordinate: float
    north_coordinate: float


class AccessAddressDeleted(ChangeEvent):
    pass


# Unit addresses

class UnitAddressCreated(CreatedEvent):
    access_address_id: UUID
    status: str
    floor_name: Optional[str] = None
    suite_name: Optional[str] = None
    external_id: Optional[str] = None


class UnitAddressUpdated(ChangeEvent):
    access_address_id: UUID
    status: str
    floor_name: Optional[str] = None
    suite_name: Optional[str] = None
    external_id: Optional[str] = None


class UnitAddressAccessAddressIdChanged(ChangeEvent):
    access_address_id: UUID


class UnitAddressStatusChanged(ChangeEvent):
    status: str


class UnitAddressFloorNameChanged(ChangeEvent):
    floor_name: Optional[str] = None


class UnitAddressSuiteNameChanged(ChangeEvent):
    suite_name: Optional[str] = None


class UnitAddressExternalIdChanged(ChangeEvent):
    external_id: Optional[str] = None


class UnitAddressDeleted(ChangeEvent):
    pass


EVENT_CLASSES = (
    PostCodeCreated,
    PostCodeUpdated,
    PostCodeNameChanged,
    PostCodeDeleted,
    RoadCreated,
    RoadUpdated,
    RoadNameChanged,
    RoadExternalIdChanged,
    RoadDeleted,
    AccessAddressCreated,
    AccessAddressUpdated,
    AccessAddressExternalIdChanged,
    AccessAddressMunicipalCodeChanged,
    AccessAddressStatusChanged,
    AccessAddressRoadCodeChanged,
    AccessAddressHouseNumberChanged,
    AccessAddressSupplementaryTownNameChanged,
    AccessAddressPlotIdChanged,
    AccessAddressRoadIdChanged,
    AccessAddressPostCodeIdChanged,
    AccessAddressCoordinateChanged,
    AccessAddressDeleted,
    UnitAddressCreated,
    UnitAddressUpdated,
    UnitAddressAccessAddressIdChanged,
    UnitAddressStatusChanged,
    UnitAddressFloorNameChanged,
    UnitAddressSuiteNameChanged,
    UnitAddressExternalIdChanged,
    UnitAddressDeleted,
)

EVENT_TYPES: Dict[str, Type[AddressEvent]] = {cls.kind(): cls for cls in EVENT_CLASSES}

# Lookup tolerant of CamelCase class names as type names
_EVENT_TYPES_NORMALIZED: Dict[str, Type[AddressEvent]] = {
    _normalize_key(kind): cls for kind, cls in EVENT_TYPES.items()
}


def event_type_names() -> Iterable[str]:
    """All event type names the projection consumes."""
    return tuple(EVENT_TYPES)


@dataclass(frozen=True)
class EventEnvelope:
    """An event together with its log metadata."""

    event: AddressEvent
    timestamp: datetime
    position: int = 0
    kind: str = field(default="")

    def __post_init__(self):
        if not self.kind:
            object.__setattr__(self, "kind", self.event.kind())


def event_class_for(type_name: str, position: Optional[int] = None) -> Type[AddressEvent]:
    """Resolve an event store type name to its event class."""
    cls = _EVENT_TYPES_NORMALIZED.get(_normalize_key(type_name))
    if cls is None:
        raise UnknownEventError(type_name, position=position)
    return cls


def decode_event(
    type_name: str,
    data: Union[str, bytes, Dict[str, Any]],
    timestamp: datetime,
    position: int = 0,
) -> EventEnvelope:
    """Decode one event store row into an envelope."""
    cls = event_class_for(type_name, position)

    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError as exc:
            raise EventFormatError(
                f"Event payload at position {position} is not valid JSON",
                event_kind=type_name,
                details={"position": position},
            ) from exc

    try:
        event = cls.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise EventFormatError(
            f"Invalid {type_name} payload at position {position}: {first.get('msg')}",
            event_kind=type_name,
            field=location or None,
            details={"position": position, "error_count": exc.error_count()},
        ) from exc

    return EventEnvelope(
        event=event,
        timestamp=_ensure_utc(timestamp),
        position=position,
        kind=cls.kind(),
    )
