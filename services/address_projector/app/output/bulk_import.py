"""
Bulk synchronization of a projection snapshot into PostGIS.

Each exported family (access addresses, unit addresses) is loaded on
its own pooled connection: in one transaction the staging table is
truncated and refilled with binary COPY, and after the commit the
family's materialized view is refreshed. The two families run
concurrently and fail independently; a failed family leaves its view
serving the previous snapshot.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from shared.storage.postgres import PostgresClient
from shared.utils.errors import IntegrityError, SyncError

from ..metrics import ProjectorMetrics
from ..projection import ProjectionSnapshot
from .rows import (
    ACCESS_ADDRESS_COLUMNS,
    UNIT_ADDRESS_COLUMNS,
    Row,
    build_access_address_rows,
    build_unit_address_rows,
)


logger = structlog.get_logger(__name__)

FAMILY_ACCESS_ADDRESS = "access_address"
FAMILY_UNIT_ADDRESS = "unit_address"


@dataclass(frozen=True)
class FamilyTarget:
    """Staging table and view of one exported family."""
    family: str
    table: str
    view: str
    columns: Sequence[str]


@dataclass
class FamilyResult:
    """Outcome of exporting one family."""
    family: str
    rows: int = 0
    copied: int = 0
    refreshed: bool = False
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class SyncResult:
    """Outcome of one bulk synchronization."""
    families: Dict[str, FamilyResult] = field(default_factory=dict)
    applied_count: int = 0
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return all(result.succeeded for result in self.families.values())

    @property
    def failed_families(self) -> List[str]:
        return [name for name, result in self.families.items() if not result.succeeded]

    @property
    def rows_exported(self) -> int:
        return sum(result.rows for result in self.families.values() if result.succeeded)


class BulkAddressImporter:
    """Exports projection snapshots into the PostGIS staging tables."""

    def __init__(
        self,
        client: PostgresClient,
        metrics: ProjectorMetrics,
        schema: str = "location",
        access_address_table: str = "official_access_address",
        access_address_view: str = "view_official_access_address",
        unit_address_table: str = "official_unit_address",
        unit_address_view: str = "view_official_unit_address",
        srid: int = 25832,
        refresh_concurrently: bool = True,
        export_timeout_seconds: float = 3600.0,
    ):
        self.client = client
        self.metrics = metrics
        self.schema = schema
        self.srid = srid
        self.refresh_concurrently = refresh_concurrently
        self.export_timeout_seconds = export_timeout_seconds

        self.access_address_target = FamilyTarget(
            FAMILY_ACCESS_ADDRESS, access_address_table, access_address_view, ACCESS_ADDRESS_COLUMNS
        )
        self.unit_address_target = FamilyTarget(
            FAMILY_UNIT_ADDRESS, unit_address_table, unit_address_view, UNIT_ADDRESS_COLUMNS
        )

    @classmethod
    def from_config(cls, client: PostgresClient, config, metrics: ProjectorMetrics) -> "BulkAddressImporter":
        return cls(
            client,
            metrics,
            schema=config.location_schema,
            access_address_table=config.access_address_table,
            access_address_view=config.access_address_view,
            unit_address_table=config.unit_address_table,
            unit_address_view=config.unit_address_view,
            srid=config.srid,
            refresh_concurrently=config.refresh_concurrently,
            export_timeout_seconds=config.export_timeout_seconds,
        )

    async def import_snapshot(self, snapshot: ProjectionSnapshot) -> SyncResult:
        """
        Make the views match ``snapshot``.

        Rows for both families are built before any database work, so a
        dangling reference aborts the sync without touching the store.
        Raises the ``IntegrityError`` of a failed family as is; any other
        family failure is raised as ``SyncError`` once both families have
        finished.
        """
        started = time.monotonic()

        # Snapshots are immutable, so rows can be encoded off the event loop
        access_rows, unit_rows = await asyncio.to_thread(self._build_rows, snapshot)
        batches = [
            (self.access_address_target, access_rows),
            (self.unit_address_target, unit_rows),
        ]

        outcomes = await asyncio.gather(
            *(self._export_family(target, rows) for target, rows in batches)
        )

        result = SyncResult(
            families={outcome.family: outcome for outcome in outcomes},
            applied_count=snapshot.applied_count,
            duration_seconds=time.monotonic() - started,
        )

        if not result.succeeded:
            errors = [outcome.error for outcome in outcomes if outcome.error is not None]
            for error in errors:
                if isinstance(error, IntegrityError):
                    raise error
            raise SyncError(
                f"Synchronization failed for {', '.join(result.failed_families)}",
                failed_families=result.failed_families,
                details={
                    "errors": {o.family: str(o.error) for o in outcomes if o.error is not None},
                    "refreshed": [o.family for o in outcomes if o.refreshed],
                },
            ) from errors[0]

        logger.info(
            "Snapshot synchronized",
            rows_exported=result.rows_exported,
            applied_count=result.applied_count,
            duration_seconds=round(result.duration_seconds, 3),
        )
        return result

    def _build_rows(self, snapshot: ProjectionSnapshot) -> Tuple[List[Row], List[Row]]:
        return build_access_address_rows(snapshot, self.srid), build_unit_address_rows(snapshot)

    async def _export_family(self, target: FamilyTarget, rows: List[Row]) -> FamilyResult:
        result = FamilyResult(target.family, rows=len(rows))
        log = logger.bind(family=target.family, table=target.table, view=target.view)
        timeout = self.export_timeout_seconds

        try:
            async with self.client.acquire() as conn:
                async with conn.transaction():
                    await self.client.truncate(conn, target.table, schema=self.schema, timeout=timeout)
                    result.copied = await self.client.copy_records(
                        conn,
                        target.table,
                        rows,
                        target.columns,
                        schema=self.schema,
                        timeout=timeout,
                    )
                log.info("Staging table loaded", rows=len(rows), copied=result.copied)

                # Concurrent refresh cannot run inside a transaction block
                await self.client.refresh_materialized_view(
                    target.view,
                    schema=self.schema,
                    concurrently=self.refresh_concurrently,
                    timeout=timeout,
                    conn=conn,
                )
                result.refreshed = True
        except Exception as e:
            log.error(
                "Family export failed",
                error=str(e),
                error_type=type(e).__name__,
                refreshed=result.refreshed,
            )
            self.metrics.family_failures.labels(family=target.family).inc()
            result.error = e
            return result

        self.metrics.rows_exported.labels(family=target.family).inc(len(rows))
        return result
