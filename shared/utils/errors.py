"""
Custom error classes for the address projector.

Provides structured error handling with error codes,
context information, and proper exception chaining.
"""

from typing import Optional, Dict, Any, List
from dataclasses import dataclass


@dataclass
class ErrorContext:
    """Error context information."""
    service: str
    operation: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    event_kind: Optional[str] = None
    metadata: Dict[str, Any] = None

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}


class DataProcessingError(Exception):
    """Base exception for address projector errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        context: Optional[ErrorContext] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        result = {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }

        if self.context:
            result["context"] = {
                "service": self.context.service,
                "operation": self.context.operation,
                "entity_type": self.context.entity_type,
                "entity_id": self.context.entity_id,
                "event_kind": self.context.event_kind,
                "metadata": self.context.metadata,
            }

        return result


class IntegrityError(DataProcessingError):
    """Error raised when the event log or projection violates referential integrity.

    Integrity errors are never recoverable in-process: the projection can no
    longer be trusted, so callers let them propagate and the process exits.
    """

    def __init__(
        self,
        message: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[Any] = None,
        event_kind: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "INTEGRITY_ERROR",
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            context=context,
            details=details or {}
        )
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.event_kind = event_kind

        if entity_type:
            self.details["entity_type"] = entity_type
        if entity_id is not None:
            self.details["entity_id"] = str(entity_id)
        if event_kind:
            self.details["event_kind"] = event_kind


class DuplicateEntityError(IntegrityError):
    """A create event targeted an id that already exists."""

    def __init__(self, entity_type: str, entity_id: Any, event_kind: Optional[str] = None):
        super().__init__(
            message=f"{entity_type} '{entity_id}' already exists",
            entity_type=entity_type,
            entity_id=entity_id,
            event_kind=event_kind,
            error_code="DUPLICATE_ENTITY",
        )


class MissingEntityError(IntegrityError):
    """A change or delete event targeted an id that does not exist."""

    def __init__(self, entity_type: str, entity_id: Any, event_kind: Optional[str] = None):
        super().__init__(
            message=f"{entity_type} '{entity_id}' does not exist",
            entity_type=entity_type,
            entity_id=entity_id,
            event_kind=event_kind,
            error_code="MISSING_ENTITY",
        )


class DanglingReferenceError(IntegrityError):
    """An exported entity references an id missing from the projection."""

    def __init__(
        self,
        entity_type: str,
        entity_id: Any,
        reference_type: str,
        reference_id: Any,
    ):
        super().__init__(
            message=(
                f"{entity_type} '{entity_id}' references missing "
                f"{reference_type} '{reference_id}'"
            ),
            entity_type=entity_type,
            entity_id=entity_id,
            details={
                "reference_type": reference_type,
                "reference_id": str(reference_id),
            },
            error_code="DANGLING_REFERENCE",
        )
        self.reference_type = reference_type
        self.reference_id = reference_id


class UnknownEventError(DataProcessingError):
    """Error raised for event kinds the projection does not understand."""

    def __init__(
        self,
        event_kind: str,
        position: Optional[int] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=f"Could not handle event of kind '{event_kind}'",
            error_code="UNKNOWN_EVENT",
            context=context,
        )
        self.event_kind = event_kind
        self.position = position

        self.details["event_kind"] = event_kind
        if position is not None:
            self.details["position"] = position


class EventFormatError(DataProcessingError):
    """Error raised when an event payload cannot be decoded."""

    def __init__(
        self,
        message: str,
        event_kind: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code="EVENT_FORMAT_ERROR",
            context=context,
            details=details or {}
        )
        self.event_kind = event_kind
        self.field = field

        if event_kind:
            self.details["event_kind"] = event_kind
        if field:
            self.details["field"] = field


class SyncError(DataProcessingError):
    """Error raised when one or more entity families failed to synchronize."""

    def __init__(
        self,
        message: str,
        failed_families: Optional[List[str]] = None,
        context: Optional[ErrorContext] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code="SYNC_ERROR",
            context=context,
            details=details or {}
        )
        self.failed_families = failed_families or []
        self.details["failed_families"] = list(self.failed_families)


class ConfigurationError(DataProcessingError):
    """Error raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[ErrorContext] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            context=context,
            details=details or {}
        )
        self.config_key = config_key
        self.config_value = config_value

        if config_key:
            self.details["config_key"] = config_key
        if config_value is not None:
            self.details["config_value"] = str(config_value)

