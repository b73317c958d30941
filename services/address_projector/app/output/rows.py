"""
COPY row builders for the two exported address families.

Rows are plain tuples in the column order of the staging tables.
Every entity is exported, tombstones included.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from shared.utils.errors import DanglingReferenceError

from ..models import (
    ENTITY_ACCESS_ADDRESS,
    ENTITY_POST_CODE,
    ENTITY_ROAD,
    ENTITY_UNIT_ADDRESS,
    AccessAddress,
)
from ..projection import ProjectionSnapshot
from .geometry import encode_point


ACCESS_ADDRESS_COLUMNS = (
    "id",
    "coord",
    "status",
    "house_number",
    "road_code",
    "road_name",
    "town_name",
    "post_district_code",
    "post_district_name",
    "municipal_code",
    "access_address_external_id",
    "road_external_id",
    "plot_external_id",
    "created",
    "updated",
    "deleted",
)

UNIT_ADDRESS_COLUMNS = (
    "id",
    "access_address_id",
    "status",
    "floor_name",
    "suite_name",
    "unit_address_external_id",
    "access_address_external_id",
    "created",
    "updated",
    "deleted",
)

Row = Tuple[Any, ...]


def optional_text(value: Optional[str]) -> Optional[str]:
    """Missing text is NULL, never an empty string."""
    if value is None or value == "":
        return None
    return value


def build_access_address_rows(snapshot: ProjectionSnapshot, srid: int) -> List[Row]:
    """Denormalize access addresses with their road and post code."""
    rows: List[Row] = []
    for address in snapshot.access_addresses.values():
        road = snapshot.roads.get(address.road_id)
        if road is None:
            raise DanglingReferenceError(ENTITY_ACCESS_ADDRESS, address.id, ENTITY_ROAD, address.road_id)
        post_code = snapshot.post_codes.get(address.post_code_id)
        if post_code is None:
            raise DanglingReferenceError(
                ENTITY_ACCESS_ADDRESS, address.id, ENTITY_POST_CODE, address.post_code_id
            )

        rows.append((
            address.id,
            encode_point(address.east_coordinate, address.north_coordinate, srid),
            address.status,
            address.house_number,
            address.road_code,
            road.name,
            optional_text(address.town_name),
            post_code.code,
            post_code.name,
            address.municipal_code,
            optional_text(address.external_id),
            optional_text(road.external_id),
            optional_text(address.plot_id),
            address.created_at,
            address.updated_at,
            address.deleted,
        ))
    return rows


def build_unit_address_rows(snapshot: ProjectionSnapshot) -> List[Row]:
    """Unit address rows carry their parent's external id."""
    rows: List[Row] = []
    for unit in snapshot.unit_addresses.values():
        parent: Optional[AccessAddress] = snapshot.access_addresses.get(unit.access_address_id)
        if parent is None:
            raise DanglingReferenceError(
                ENTITY_UNIT_ADDRESS, unit.id, ENTITY_ACCESS_ADDRESS, unit.access_address_id
            )

        rows.append((
            unit.id,
            unit.access_address_id,
            unit.status,
            optional_text(unit.floor_name),
            optional_text(unit.suite_name),
            optional_text(unit.external_id),
            optional_text(parent.external_id),
            unit.created_at,
            unit.updated_at,
            unit.deleted,
        ))
    return rows
