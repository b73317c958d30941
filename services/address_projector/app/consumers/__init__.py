"""Event sources feeding the address projection."""

from .base import EventSource
from .event_store import PostgresEventSource
from .memory import InMemoryEventSource

__all__ = [
    "EventSource",
    "PostgresEventSource",
    "InMemoryEventSource",
]
