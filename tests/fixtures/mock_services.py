"""Mock services for testing."""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, List, Optional, Sequence


class MockConnection:
    """Connection double with commit/rollback semantics for staging writes."""

    def __init__(self, client: "MockPostgresClient"):
        self.client = client
        self.pending: Optional[Dict[str, List[tuple]]] = None

    @asynccontextmanager
    async def transaction(self):
        self.pending = {}
        try:
            yield self
        except BaseException:
            self.pending = None
            self.client.rollbacks += 1
            raise
        self.client.tables.update(self.pending)
        self.pending = None
        self.client.commits += 1


class MockPostgresClient:
    """
    Mock PostgreSQL client.

    Keeps staging tables and materialized views in memory. Views map to
    the staging table they are refreshed from. ``fail_copy_tables`` and
    ``fail_refresh_views`` make the matching operations raise after the
    partial work a real server would have done.
    """

    def __init__(
        self,
        views: Optional[Dict[str, str]] = None,
        event_rows: Iterable[Dict[str, Any]] = (),
    ):
        self.views_to_tables = views or {
            "view_official_access_address": "official_access_address",
            "view_official_unit_address": "official_unit_address",
        }
        self.tables: Dict[str, List[tuple]] = {}
        self.views: Dict[str, List[tuple]] = {}
        self.event_rows: List[Dict[str, Any]] = list(event_rows)
        self.high_water_mark: Optional[int] = None

        self.fail_copy_tables: set = set()
        self.fail_refresh_views: set = set()

        self.calls: List[tuple] = []
        self.commits = 0
        self.rollbacks = 0
        self.open_connections = 0
        self.max_open_connections = 0
        self.is_connected = False

    async def connect(self):
        self.is_connected = True

    async def disconnect(self):
        self.is_connected = False

    async def close(self):
        await self.disconnect()

    @asynccontextmanager
    async def acquire(self):
        conn = MockConnection(self)
        self.open_connections += 1
        self.max_open_connections = max(self.max_open_connections, self.open_connections)
        try:
            yield conn
        finally:
            self.open_connections -= 1

    async def truncate(self, conn, table: str, schema: Optional[str] = None, timeout=None):
        self.calls.append(("truncate", schema, table))
        conn.pending[table] = []

    async def copy_records(
        self,
        conn,
        table: str,
        records: Iterable[Sequence[Any]],
        columns: Sequence[str],
        schema: Optional[str] = None,
        timeout=None,
    ) -> int:
        self.calls.append(("copy", schema, table, tuple(columns)))
        rows = list(records)
        # Yield so concurrent family exports interleave
        await asyncio.sleep(0)
        if table in self.fail_copy_tables:
            conn.pending[table] = rows[: len(rows) // 2]
            raise ConnectionError(f"connection lost while copying {table}")
        conn.pending[table] = rows
        return len(rows)

    async def refresh_materialized_view(
        self,
        view: str,
        schema: Optional[str] = None,
        concurrently: bool = True,
        timeout=None,
        conn=None,
    ):
        self.calls.append(("refresh", schema, view, concurrently))
        if view in self.fail_refresh_views:
            raise ConnectionError(f"connection lost while refreshing {view}")
        self.views[view] = list(self.tables.get(self.views_to_tables[view], []))

    async def execute(self, query: str, *args: Any) -> List[Dict[str, Any]]:
        """Serve ``mt_events`` batches: (after seq_id, upper seq_id, type names, limit)."""
        self.calls.append(("execute", query, args))
        after, upper, types, limit = args
        rows = [
            row for row in self.event_rows
            if after < row["seq_id"] <= upper and row["type"] in types
        ]
        rows.sort(key=lambda row: row["seq_id"])
        return rows[:limit]

    async def execute_scalar(self, query: str, *args: Any) -> Any:
        """Serve the event store high water mark."""
        self.calls.append(("execute_scalar", query, args))
        return self.high_water_mark

    async def health_check(self) -> bool:
        return self.is_connected

    def called(self, operation: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == operation]


class MockEventSource:
    """Event source returning scripted applied counts."""

    def __init__(self, replay_count: int = 0, catch_up_counts: Iterable[int] = ()):
        self.replay_count = replay_count
        self.catch_up_counts = list(catch_up_counts)
        self.replay_calls = 0
        self.catch_up_calls = 0
        self.catch_up_error: Optional[BaseException] = None
        self.on_catch_up = None

    async def replay_all(self) -> int:
        self.replay_calls += 1
        return self.replay_count

    async def catch_up(self) -> int:
        self.catch_up_calls += 1
        if self.on_catch_up is not None:
            self.on_catch_up(self.catch_up_calls)
        if self.catch_up_error is not None:
            raise self.catch_up_error
        if self.catch_up_counts:
            return self.catch_up_counts.pop(0)
        return 0


class MockImporter:
    """Bulk importer double recording the snapshots it receives."""

    def __init__(self, error: Optional[BaseException] = None, delay: float = 0.0):
        self.snapshots: List[Any] = []
        self.error = error
        self.delay = delay
        self.started = asyncio.Event()
        self.completed = 0

    async def import_snapshot(self, snapshot):
        self.snapshots.append(snapshot)
        self.started.set()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.completed += 1
        return snapshot
