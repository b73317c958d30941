"""
Catch-up driver.

Owns the replay and polling lifecycle of the projector:

    REHYDRATING -> IDLE -> SYNCING -> IDLE ... -> SHUTTING_DOWN -> STOPPED

with FAILED entered on any fatal error. The driver is the single writer
of the projection; events are only applied between syncs, so a sync
always exports a snapshot that is causally closed.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Optional

import structlog

from shared.utils.errors import EventFormatError, IntegrityError, UnknownEventError
from shared.utils.tracing import set_span_attribute, trace_async_function

from ..consumers.base import EventSource
from ..metrics import ProjectorMetrics
from ..output.bulk_import import BulkAddressImporter, SyncResult
from ..projection import AddressProjection


logger = structlog.get_logger(__name__)

# Errors that mean the event log or projection cannot be trusted
FATAL_ERRORS = (IntegrityError, UnknownEventError, EventFormatError)


class DriverState(Enum):
    REHYDRATING = "rehydrating"
    IDLE = "idle"
    SYNCING = "syncing"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"
    FAILED = "failed"


class CatchUpDriver:
    """
    Replays the log, syncs, then polls for new events until stopped.

    ``request_stop()`` only interrupts the idle wait: a rehydration or
    sync that has started always runs to completion, and no new cycle
    starts afterwards. A transient error raised while a stop is already
    requested is logged and absorbed; any other error moves the driver to
    FAILED and propagates.
    """

    def __init__(
        self,
        event_source: EventSource,
        projection: AddressProjection,
        importer: BulkAddressImporter,
        metrics: ProjectorMetrics,
        poll_interval_seconds: float = 300.0,
    ):
        self.event_source = event_source
        self.projection = projection
        self.importer = importer
        self.metrics = metrics
        self.poll_interval_seconds = poll_interval_seconds

        self.state = DriverState.REHYDRATING
        self.sync_count = 0
        self.last_sync: Optional[SyncResult] = None
        self._stop_event = asyncio.Event()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def request_stop(self) -> None:
        """Interrupt the idle wait and stop after the current cycle."""
        if not self._stop_event.is_set():
            logger.info("Driver stop requested", state=self.state.value)
        self._stop_event.set()

    async def run(self) -> None:
        """Run until stopped; raises on fatal errors."""
        try:
            await self._rehydrate()
            while not self.stop_requested:
                self._set_state(DriverState.IDLE)
                if await self._wait_for_tick():
                    break
                applied = await self.event_source.catch_up()
                self.metrics.events_applied.inc(applied)
                if self.stop_requested:
                    # Applied events are exported by the next process start
                    break
                if applied == 0:
                    logger.debug("No new events")
                    continue
                self._set_state(DriverState.SYNCING)
                await self._sync()
        except FATAL_ERRORS as e:
            self._fail(e)
            raise
        except Exception as e:
            if not self.stop_requested:
                self._fail(e)
                raise
            logger.warning(
                "Error during shutdown absorbed",
                error=str(e),
                error_type=type(e).__name__,
                state=self.state.value,
            )

        self._set_state(DriverState.SHUTTING_DOWN)
        self._set_state(DriverState.STOPPED)
        logger.info("Driver stopped", syncs=self.sync_count, applied_count=self.projection.applied_count)

    async def _rehydrate(self) -> None:
        self._set_state(DriverState.REHYDRATING)
        started = time.monotonic()
        async with trace_async_function("projector.rehydrate"):
            applied = await self.event_source.replay_all()
            set_span_attribute("events_applied", applied)
        self.metrics.events_applied.inc(applied)
        logger.info(
            "Projection rehydrated",
            events_applied=applied,
            post_codes=len(self.projection.post_codes),
            roads=len(self.projection.roads),
            access_addresses=len(self.projection.access_addresses),
            unit_addresses=len(self.projection.unit_addresses),
            duration_seconds=round(time.monotonic() - started, 3),
        )
        # The store must start out consistent with the history, new events or not
        await self._sync()

    async def _wait_for_tick(self) -> bool:
        """Sleep one poll interval; True when woken by a stop request."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval_seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def _sync(self) -> SyncResult:
        snapshot = self.projection.snapshot()
        started = time.monotonic()
        try:
            async with trace_async_function(
                "projector.sync", {"applied_count": snapshot.applied_count}
            ):
                result = await self.importer.import_snapshot(snapshot)
        except Exception:
            self.metrics.syncs.labels(status="failed").inc()
            raise
        finally:
            self.metrics.sync_duration.observe(time.monotonic() - started)

        self.sync_count += 1
        self.last_sync = result
        self.metrics.syncs.labels(status="succeeded").inc()
        return result

    def _set_state(self, state: DriverState) -> None:
        if state is not self.state:
            logger.debug("Driver state change", previous=self.state.value, state=state.value)
        self.state = state
        self.metrics.set_driver_state(state.value, (s.value for s in DriverState))

    def _fail(self, error: Exception) -> None:
        self._set_state(DriverState.FAILED)
        details = error.to_dict() if hasattr(error, "to_dict") else {}
        logger.error(
            "Driver failed",
            error=str(error),
            error_type=type(error).__name__,
            **details,
        )
