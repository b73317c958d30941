"""Export of projection snapshots into PostGIS."""

from .bulk_import import BulkAddressImporter, FamilyResult, SyncResult
from .geometry import decode_point, encode_point, register_geometry_codec
from .rows import (
    ACCESS_ADDRESS_COLUMNS,
    UNIT_ADDRESS_COLUMNS,
    build_access_address_rows,
    build_unit_address_rows,
)

__all__ = [
    "BulkAddressImporter",
    "FamilyResult",
    "SyncResult",
    "encode_point",
    "decode_point",
    "register_geometry_codec",
    "ACCESS_ADDRESS_COLUMNS",
    "UNIT_ADDRESS_COLUMNS",
    "build_access_address_rows",
    "build_unit_address_rows",
]
