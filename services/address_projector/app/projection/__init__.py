"""Event-fold projection of the address registry."""

from .base import TIMESTAMP_COMMIT, TIMESTAMP_EXTERNAL, TimestampPolicy
from .engine import AddressProjection, ProjectionSnapshot

__all__ = [
    "AddressProjection",
    "ProjectionSnapshot",
    "TimestampPolicy",
    "TIMESTAMP_COMMIT",
    "TIMESTAMP_EXTERNAL",
]
