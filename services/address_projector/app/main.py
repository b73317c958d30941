"""
Entry point for the address projector service.
"""

from __future__ import annotations

import asyncio
import sys

import structlog

from shared.framework.health import HealthCheck
from shared.framework.service import AsyncService
from shared.storage.postgres import PostgresClient, PostgresConfig
from shared.utils.errors import DataProcessingError
from shared.utils.logging import setup_logging
from shared.utils.tracing import setup_tracing

from .config import AddressProjectorConfig
from .consumers.event_store import PostgresEventSource
from .metrics import ProjectorMetrics
from .output.bulk_import import BulkAddressImporter
from .output.geometry import register_geometry_codec
from .projection import AddressProjection
from .refresh.catchup import CatchUpDriver, DriverState

logger = structlog.get_logger(__name__)


class AddressProjectorService(AsyncService):
    """Keeps the PostGIS address views in step with the event store."""

    def __init__(self, config: AddressProjectorConfig):
        super().__init__(config)
        self.config: AddressProjectorConfig = config
        self.projector_metrics = ProjectorMetrics(self.metrics)

        self.projection = AddressProjection(
            timestamp_source=config.timestamp_source,
            delete_bumps_updated_at=config.delete_bumps_updated_at,
        )

        self.event_store = PostgresClient(
            PostgresConfig(
                dsn=config.event_store_dsn,
                min_size=1,
                max_size=1,
                timeout=config.database.command_timeout,
            ),
            name="event-store",
        )
        # Each exported family holds its own connection for the whole sync
        self.postgis = PostgresClient(
            PostgresConfig(
                dsn=config.postgis_dsn,
                min_size=config.database.pool_min_size,
                max_size=config.database.pool_max_size,
                timeout=config.database.command_timeout,
            ),
            init=register_geometry_codec,
            name="postgis",
        )

        self.event_source = PostgresEventSource(
            self.event_store,
            self.projection,
            schema=config.event_store_schema,
            batch_size=config.event_batch_size,
            use_high_water_mark=config.use_high_water_mark,
        )
        self.importer = BulkAddressImporter.from_config(self.postgis, config, self.projector_metrics)
        self.driver = CatchUpDriver(
            self.event_source,
            self.projection,
            self.importer,
            self.projector_metrics,
            poll_interval_seconds=config.poll_interval_seconds,
        )

        self.health_checker.add_check(
            HealthCheck(
                name="catch_up_driver",
                check_func=self._check_driver,
                description="Catch-up driver has not failed",
            )
        )
        self.health_checker.add_check(
            HealthCheck(
                name="postgis",
                check_func=self._check_postgis,
                critical=False,
                description="PostGIS connectivity",
            )
        )

    def _check_driver(self) -> bool:
        return self.driver.state is not DriverState.FAILED

    async def _check_postgis(self) -> bool:
        return await self.postgis.health_check()

    async def _startup_hook(self) -> None:
        self.logger.info("Projector configuration", **self.config.to_dict())
        await self.event_store.connect()
        await self.postgis.connect()
        self.add_worker(self.driver.run(), name="catch-up-driver")

    def _stop_workers(self) -> None:
        self.driver.request_stop()

    async def _shutdown_hook(self) -> None:
        await self.event_store.disconnect()
        await self.postgis.disconnect()


def main() -> None:
    """Service entrypoint; exits 1 on any fatal error."""
    try:
        config = AddressProjectorConfig()
    except DataProcessingError as e:
        setup_logging("address-projector")
        logger.critical("Invalid configuration", **e.to_dict())
        sys.exit(1)

    setup_logging(
        config.service_slug,
        log_level=config.observability.log_level,
        format_type=config.observability.log_format,
    )
    setup_tracing(
        config.service_slug,
        endpoint=config.otel_endpoint,
        enabled=config.observability.trace_enabled,
    )

    service = AddressProjectorService(config=config)
    try:
        asyncio.run(service.run())
    except Exception as e:
        logger.critical(
            "Address projector terminated",
            error=str(e),
            error_type=type(e).__name__,
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
