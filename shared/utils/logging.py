"""
Structured logging setup for the address projector.

Routes structlog through the standard library so that asyncpg, aiohttp
and our own modules end up in one JSON stream on stdout.
"""

import logging
import sys
from typing import Any
import structlog
from structlog.stdlib import LoggerFactory


_NOISY_LOGGERS = ("asyncio", "aiohttp.access")


def setup_logging(
    service_name: str,
    log_level: str = "info",
    format_type: str = "json"
) -> None:
    """
    Setup structured logging for the service.

    Args:
        service_name: Name of the service, bound on every log line
        log_level: Logging level (debug, info, warning, error)
        format_type: Output format (json, console)
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name)


def bind_event_context(
    logger: structlog.BoundLogger,
    event_kind: str,
    entity_id: Any,
) -> structlog.BoundLogger:
    """Add the event kind and target entity id to logger context."""
    return logger.bind(event_kind=event_kind, entity_id=str(entity_id))
