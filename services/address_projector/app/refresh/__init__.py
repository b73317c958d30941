"""Catch-up lifecycle of the projector."""

from .catchup import CatchUpDriver, DriverState

__all__ = ["CatchUpDriver", "DriverState"]
