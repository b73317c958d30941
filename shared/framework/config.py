"""
Configuration management for projector services.

Provides typed configuration classes with environment variable
injection and validation.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Any

from shared.utils.errors import ConfigurationError


VALID_ENVIRONMENTS = ("local", "dev", "staging", "prod")


@dataclass
class DatabaseConfig:
    """Database configuration."""
    postgres_dsn: str = field(default_factory=lambda: os.getenv("PROJECTOR_POSTGRES_DSN", "postgresql://localhost:5432/postgis"))
    pool_min_size: int = field(default_factory=lambda: int(os.getenv("PROJECTOR_POSTGRES_POOL_MIN", "1")))
    pool_max_size: int = field(default_factory=lambda: int(os.getenv("PROJECTOR_POSTGRES_POOL_MAX", "4")))
    command_timeout: int = field(default_factory=lambda: int(os.getenv("PROJECTOR_POSTGRES_COMMAND_TIMEOUT", "60")))


@dataclass
class ObservabilityConfig:
    """Observability configuration."""
    log_level: str = field(default_factory=lambda: os.getenv("PROJECTOR_LOG_LEVEL", "info"))
    log_format: str = field(default_factory=lambda: os.getenv("PROJECTOR_LOG_FORMAT", "json"))
    trace_enabled: bool = field(default_factory=lambda: os.getenv("PROJECTOR_TRACE_ENABLED", "false").lower() == "true")
    health_port: int = field(default_factory=lambda: int(os.getenv("PROJECTOR_HEALTH_PORT", "8080")))


@dataclass
class ServiceConfig:
    """Base service configuration."""
    service_name: str
    environment: str = field(default_factory=lambda: os.getenv("PROJECTOR_ENV", "local"))
    version: str = field(default_factory=lambda: os.getenv("PROJECTOR_VERSION", "1.0.0"))

    # Sub-configurations
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.service_name:
            raise ConfigurationError("service_name is required", config_key="service_name")

        if self.environment not in VALID_ENVIRONMENTS:
            raise ConfigurationError(
                f"Invalid environment: {self.environment}",
                config_key="environment",
                config_value=self.environment,
            )

        if self.database.pool_min_size > self.database.pool_max_size:
            raise ConfigurationError(
                "Postgres pool min size exceeds max size",
                config_key="pool_min_size",
                config_value=self.database.pool_min_size,
            )

    @classmethod
    def from_env(cls, service_name: str) -> "ServiceConfig":
        """Create configuration from environment variables."""
        return cls(service_name=service_name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "service_name": self.service_name,
            "environment": self.environment,
            "version": self.version,
            "database": {
                "pool_min_size": self.database.pool_min_size,
                "pool_max_size": self.database.pool_max_size,
                "command_timeout": self.database.command_timeout,
            },
            "observability": {
                "log_level": self.observability.log_level,
                "log_format": self.observability.log_format,
                "trace_enabled": self.observability.trace_enabled,
                "health_port": self.observability.health_port,
            },
        }
