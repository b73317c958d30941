"""Pytest configuration and fixtures."""

import pytest
from prometheus_client import CollectorRegistry

from shared.framework.metrics import MetricsCollector
from services.address_projector.app.metrics import ProjectorMetrics
from services.address_projector.app.output.bulk_import import BulkAddressImporter
from services.address_projector.app.projection import AddressProjection
from tests.fixtures.mock_services import MockPostgresClient


PROJECTOR_ENV_VARS = (
    "ADDRESS_PROJECTOR_EVENT_STORE_DSN",
    "ADDRESS_PROJECTOR_POSTGIS_DSN",
    "ADDRESS_PROJECTOR_EVENT_STORE_SCHEMA",
    "ADDRESS_PROJECTOR_EVENT_BATCH_SIZE",
    "ADDRESS_PROJECTOR_USE_HIGH_WATER_MARK",
    "ADDRESS_PROJECTOR_POLL_INTERVAL_SECONDS",
    "ADDRESS_PROJECTOR_TIMESTAMP_SOURCE",
    "ADDRESS_PROJECTOR_DELETE_BUMPS_UPDATED_AT",
    "ADDRESS_PROJECTOR_SRID",
    "ADDRESS_PROJECTOR_EXPORT_TIMEOUT_SECONDS",
    "ADDRESS_PROJECTOR_LOCATION_SCHEMA",
    "ADDRESS_PROJECTOR_ACCESS_ADDRESS_TABLE",
    "ADDRESS_PROJECTOR_ACCESS_ADDRESS_VIEW",
    "ADDRESS_PROJECTOR_UNIT_ADDRESS_TABLE",
    "ADDRESS_PROJECTOR_UNIT_ADDRESS_VIEW",
    "ADDRESS_PROJECTOR_REFRESH_CONCURRENTLY",
    "PROJECTOR_ENV",
    "PROJECTOR_POSTGRES_DSN",
    "PROJECTOR_POSTGRES_POOL_MIN",
    "PROJECTOR_POSTGRES_POOL_MAX",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove projector settings inherited from the environment."""
    for name in PROJECTOR_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def metrics_collector():
    """Collector on a private registry so tests never share series."""
    return MetricsCollector("address_projector_test", registry=CollectorRegistry())


@pytest.fixture
def projector_metrics(metrics_collector):
    return ProjectorMetrics(metrics_collector)


@pytest.fixture
def projection():
    """Empty projection with commit-time timestamps."""
    return AddressProjection()


@pytest.fixture
def mock_postgres_client():
    """Mock PostgreSQL client fixture."""
    return MockPostgresClient()


@pytest.fixture
def importer(mock_postgres_client, projector_metrics):
    """Bulk importer writing into the mock client."""
    return BulkAddressImporter(mock_postgres_client, projector_metrics)
