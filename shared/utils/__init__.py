"""
Utility modules for the address projector.

Provides common utilities for:
- Structured logging
- OpenTelemetry tracing
- Error handling
"""

from .logging import setup_logging
from .tracing import setup_tracing
from .errors import (
    DataProcessingError,
    IntegrityError,
    DuplicateEntityError,
    MissingEntityError,
    DanglingReferenceError,
    UnknownEventError,
    EventFormatError,
    SyncError,
    ConfigurationError,
)

__all__ = [
    "setup_logging",
    "setup_tracing",
    "DataProcessingError",
    "IntegrityError",
    "DuplicateEntityError",
    "MissingEntityError",
    "DanglingReferenceError",
    "UnknownEventError",
    "EventFormatError",
    "SyncError",
    "ConfigurationError",
]
