"""Event source contract used by the catch-up driver."""

from __future__ import annotations

from typing import Protocol


class EventSource(Protocol):
    """
    Delivers events in commit order and applies each one to the projection.

    The source owns the position of the last applied event.
    """

    async def replay_all(self) -> int:
        """Apply the entire history from the beginning; returns events applied."""
        ...

    async def catch_up(self) -> int:
        """Apply events appended since the last call; returns events applied."""
        ...
