"""
Core framework components for projector services.

Provides base classes and abstractions for building observable
async services with health checks and Prometheus metrics.
"""

from .service import AsyncService
from .config import ServiceConfig, DatabaseConfig, ObservabilityConfig
from .health import HealthChecker, HealthCheck
from .metrics import MetricsCollector

__all__ = [
    "AsyncService",
    "ServiceConfig",
    "DatabaseConfig",
    "ObservabilityConfig",
    "HealthChecker",
    "HealthCheck",
    "MetricsCollector",
]
