"""Prometheus metrics of the address projector."""

from __future__ import annotations

from typing import Iterable

from shared.framework.metrics import MetricsCollector


class ProjectorMetrics:
    """Projector-specific metrics registered on the service collector."""

    def __init__(self, collector: MetricsCollector):
        self.collector = collector
        self.events_applied = collector.create_counter(
            "events_applied_total", "Events applied to the projection"
        )
        self.syncs = collector.create_counter(
            "syncs_total", "Bulk synchronizations by outcome", ["status"]
        )
        self.sync_duration = collector.create_histogram(
            "sync_duration_seconds", "Duration of a full bulk synchronization"
        )
        self.rows_exported = collector.create_counter(
            "rows_exported_total", "Rows copied into staging tables", ["family"]
        )
        self.family_failures = collector.create_counter(
            "family_export_failures_total", "Failed staging imports or view refreshes", ["family"]
        )
        self.driver_state = collector.create_gauge(
            "driver_state", "Current catch-up driver state (1 = active)", ["state"]
        )

    def set_driver_state(self, current: str, states: Iterable[str]) -> None:
        for state in states:
            self.driver_state.labels(state=state).set(1 if state == current else 0)
