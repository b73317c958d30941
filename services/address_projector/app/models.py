"""
Entity records held by the address projection.

Records are immutable; every change produces a new record through
``dataclasses.replace`` so that a snapshot taken before the change is
never affected by it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class PostCode:
    id: UUID
    code: str
    name: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted: bool = False


@dataclass(frozen=True)
class Road:
    id: UUID
    external_id: str
    name: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted: bool = False


@dataclass(frozen=True)
class AccessAddress:
    id: UUID
    external_id: Optional[str]
    municipal_code: str
    status: str
    road_code: str
    house_number: str
    east_coordinate: float
    north_coordinate: float
    town_name: Optional[str]
    plot_id: Optional[str]
    road_id: UUID
    post_code_id: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted: bool = False


@dataclass(frozen=True)
class UnitAddress:
    id: UUID
    access_address_id: UUID
    status: str
    floor_name: Optional[str]
    suite_name: Optional[str]
    external_id: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted: bool = False


ENTITY_POST_CODE = "PostCode"
ENTITY_ROAD = "Road"
ENTITY_ACCESS_ADDRESS = "AccessAddress"
ENTITY_UNIT_ADDRESS = "UnitAddress"
