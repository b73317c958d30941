"""
Configuration for the address projector service.
"""

from __future__ import annotations

import os
import re
from typing import Any, Dict

from shared.framework.config import ServiceConfig
from shared.utils.errors import ConfigurationError


ENV_PREFIX = "ADDRESS_PROJECTOR_"

TIMESTAMP_SOURCES = ("commit", "external")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def _env(name: str, default: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _int_env(name: str, default: int) -> int:
    raw = _env(name, str(default))
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be an integer",
            config_key=name.lower(),
            config_value=raw,
        ) from exc


def _float_env(name: str, default: float) -> float:
    raw = _env(name, str(default))
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be a number",
            config_key=name.lower(),
            config_value=raw,
        ) from exc


def _bool_env(name: str, default: bool) -> bool:
    raw = _env(name, "true" if default else "false").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"{ENV_PREFIX}{name} must be a boolean",
        config_key=name.lower(),
        config_value=raw,
    )


class AddressProjectorConfig(ServiceConfig):
    """Service configuration loaded from environment variables."""

    def __init__(self) -> None:
        super().__init__(service_name="address_projector")

        # Human-readable slug used for logging/tracing
        self.service_slug = "address-projector"

        # Event store (source)
        self.event_store_dsn = _env(
            "EVENT_STORE_DSN", "postgresql://localhost:5432/events"
        )
        self.event_store_schema = _env("EVENT_STORE_SCHEMA", "events")
        self.event_batch_size = _int_env("EVENT_BATCH_SIZE", 10000)
        self.use_high_water_mark = _bool_env("USE_HIGH_WATER_MARK", True)

        # PostGIS (destination)
        self.postgis_dsn = _env("POSTGIS_DSN", self.database.postgres_dsn)
        self.location_schema = _env("LOCATION_SCHEMA", "location")
        self.access_address_table = _env("ACCESS_ADDRESS_TABLE", "official_access_address")
        self.access_address_view = _env("ACCESS_ADDRESS_VIEW", "view_official_access_address")
        self.unit_address_table = _env("UNIT_ADDRESS_TABLE", "official_unit_address")
        self.unit_address_view = _env("UNIT_ADDRESS_VIEW", "view_official_unit_address")
        self.refresh_concurrently = _bool_env("REFRESH_CONCURRENTLY", True)
        self.srid = _int_env("SRID", 25832)
        self.export_timeout_seconds = _float_env("EXPORT_TIMEOUT_SECONDS", 3600.0)

        # Catch-up loop
        self.poll_interval_seconds = _float_env("POLL_INTERVAL_SECONDS", 300.0)

        # Projection semantics
        self.timestamp_source = _env("TIMESTAMP_SOURCE", "commit").strip().lower()
        self.delete_bumps_updated_at = _bool_env("DELETE_BUMPS_UPDATED_AT", True)

        # Tracing endpoint override
        self.otel_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")

        self._validate_projector()

    def _validate_projector(self) -> None:
        if not self.event_store_dsn:
            raise ConfigurationError("Event store DSN is required", config_key="event_store_dsn")
        if not self.postgis_dsn:
            raise ConfigurationError("PostGIS DSN is required", config_key="postgis_dsn")

        if self.timestamp_source not in TIMESTAMP_SOURCES:
            raise ConfigurationError(
                f"timestamp_source must be one of {', '.join(TIMESTAMP_SOURCES)}",
                config_key="timestamp_source",
                config_value=self.timestamp_source,
            )

        for key in ("event_batch_size", "srid"):
            if getattr(self, key) <= 0:
                raise ConfigurationError(
                    f"{key} must be positive", config_key=key, config_value=getattr(self, key)
                )
        for key in ("poll_interval_seconds", "export_timeout_seconds"):
            if getattr(self, key) <= 0:
                raise ConfigurationError(
                    f"{key} must be positive", config_key=key, config_value=getattr(self, key)
                )

        # Identifiers end up in SQL text
        for key in (
            "event_store_schema",
            "location_schema",
            "access_address_table",
            "access_address_view",
            "unit_address_table",
            "unit_address_view",
        ):
            value = getattr(self, key)
            if not _IDENTIFIER.match(value):
                raise ConfigurationError(
                    f"{key} is not a valid SQL identifier", config_key=key, config_value=value
                )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary, without credentials."""
        result = super().to_dict()
        result["projector"] = {
            "event_store_schema": self.event_store_schema,
            "event_batch_size": self.event_batch_size,
            "use_high_water_mark": self.use_high_water_mark,
            "location_schema": self.location_schema,
            "access_address_table": self.access_address_table,
            "access_address_view": self.access_address_view,
            "unit_address_table": self.unit_address_table,
            "unit_address_view": self.unit_address_view,
            "refresh_concurrently": self.refresh_concurrently,
            "srid": self.srid,
            "export_timeout_seconds": self.export_timeout_seconds,
            "poll_interval_seconds": self.poll_interval_seconds,
            "timestamp_source": self.timestamp_source,
            "delete_bumps_updated_at": self.delete_bumps_updated_at,
        }
        return result
