"""
Point geometry encoding for PostGIS.

Points are written as little-endian EWKB carrying the SRID, which is
what the PostGIS ``geometry`` binary input accepts.
"""

from __future__ import annotations

import math
from typing import Tuple

import asyncpg
import shapely.wkb
from shapely.geometry import Point

from shared.utils.errors import EventFormatError


def encode_point(east: float, north: float, srid: int) -> bytes:
    """Encode an (east, north) coordinate as EWKB tagged with ``srid``."""
    if not (math.isfinite(east) and math.isfinite(north)):
        raise EventFormatError(f"Invalid coordinate ({east}, {north})", field="coordinate")
    return shapely.wkb.dumps(Point(east, north), hex=False, srid=srid, byte_order=1)


def decode_point(data: bytes) -> Tuple[float, float, int]:
    """Decode EWKB into ``(east, north, srid)``."""
    point = shapely.wkb.loads(bytes(data))
    return point.x, point.y, shapely.get_srid(point)


def _encode_geometry(value: bytes) -> bytes:
    return bytes(value)


async def register_geometry_codec(conn: asyncpg.Connection) -> None:
    """Teach ``conn`` to move PostGIS geometries as EWKB bytes."""
    await conn.set_type_codec(
        "geometry",
        schema="public",
        encoder=_encode_geometry,
        decoder=shapely.wkb.loads,
        format="binary",
    )
