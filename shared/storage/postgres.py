"""
PostgreSQL async client wrapper for projection storage.

Provides a pooled asyncpg interface with the bulk operations a
projector needs: binary COPY into staging tables, truncation and
materialized view refresh.
"""

from __future__ import annotations

import inspect
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Union
from dataclasses import dataclass
import structlog

import asyncpg


logger = structlog.get_logger()

ConnectionInit = Callable[[asyncpg.Connection], Awaitable[None]]


def quote_ident(name: str) -> str:
    """Quote an SQL identifier."""
    return '"' + name.replace('"', '""') + '"'


def qualified_name(schema: Optional[str], name: str) -> str:
    """Build a quoted ``schema.name`` reference."""
    if schema:
        return f"{quote_ident(schema)}.{quote_ident(name)}"
    return quote_ident(name)


@dataclass
class PostgresConfig:
    """PostgreSQL configuration."""
    dsn: str
    min_size: int = 1
    max_size: int = 4
    timeout: int = 60


class PostgresClient:
    """
    Async PostgreSQL client with connection pooling.

    ``init`` runs on every new pooled connection, which is where
    custom type codecs get registered.
    """

    def __init__(
        self,
        config: Union[PostgresConfig, str],
        init: Optional[ConnectionInit] = None,
        name: str = "postgres-client",
    ):
        if isinstance(config, PostgresConfig):
            self.config = config
        else:
            self.config = PostgresConfig(dsn=config)

        self.init = init
        self.logger = structlog.get_logger(name)
        self._pool: Optional[asyncpg.Pool] = None
        self.is_connected: bool = False

    @property
    def pool(self) -> Optional[asyncpg.Pool]:
        return self._pool

    async def connect(self) -> None:
        """Connect to PostgreSQL."""
        if self._pool:
            self.is_connected = True
            return

        self._pool = await asyncpg.create_pool(
            self.config.dsn,
            min_size=self.config.min_size,
            max_size=self.config.max_size,
            command_timeout=self.config.timeout,
            init=self.init,
        )

        self.is_connected = True
        self.logger.info("Connected to PostgreSQL", pool_max_size=self.config.max_size)

    async def disconnect(self) -> None:
        """Disconnect from PostgreSQL."""
        if self._pool:
            result = self._pool.close()
            if inspect.isawaitable(result):
                await result
            self._pool = None

        self.is_connected = False
        self.logger.info("Disconnected from PostgreSQL")

    async def close(self) -> None:
        """Alias for disconnect to mirror other storage clients."""
        await self.disconnect()

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow one pooled connection for the duration of the block."""
        if not self._pool:
            await self.connect()

        conn = await self._pool.acquire()
        try:
            yield conn
        finally:
            await self._pool.release(conn)

    async def execute(self, query: str, *args: Any) -> List[Dict[str, Any]]:
        """Execute a SELECT query and return list of rows."""
        async with self.acquire() as conn:
            try:
                rows = await conn.fetch(query, *args)
                return [dict(row) for row in rows]
            except Exception as e:
                self.logger.error("PostgreSQL query error", error=str(e), query=query)
                raise

    async def execute_scalar(self, query: str, *args: Any) -> Any:
        """Execute a SELECT query returning a scalar value."""
        async with self.acquire() as conn:
            try:
                return await conn.fetchval(query, *args)
            except Exception as e:
                self.logger.error("PostgreSQL query error", error=str(e), query=query)
                raise

    async def truncate(
        self,
        conn: asyncpg.Connection,
        table: str,
        schema: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Truncate ``table`` on an already acquired connection."""
        target = qualified_name(schema, table)
        try:
            await conn.execute(f"TRUNCATE TABLE {target}", timeout=timeout)
        except Exception as e:
            self.logger.error("PostgreSQL truncate error", error=str(e), table=target)
            raise
        self.logger.debug("Table truncated", table=target)

    async def copy_records(
        self,
        conn: asyncpg.Connection,
        table: str,
        records: Iterable[Sequence[Any]],
        columns: Sequence[str],
        schema: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> int:
        """Stream ``records`` into ``table`` with binary COPY.

        Returns the number of rows copied as reported by the server.
        """
        try:
            status = await conn.copy_records_to_table(
                table,
                records=records,
                columns=list(columns),
                schema_name=schema,
                timeout=timeout,
            )
        except Exception as e:
            self.logger.error("PostgreSQL copy error", error=str(e), table=table, schema=schema)
            raise

        copied = _copied_count(status)
        self.logger.debug("Records copied", table=table, schema=schema, count=copied)
        return copied

    async def refresh_materialized_view(
        self,
        view: str,
        schema: Optional[str] = None,
        concurrently: bool = True,
        timeout: Optional[float] = None,
        conn: Optional[asyncpg.Connection] = None,
    ) -> None:
        """Refresh a materialized view, optionally without blocking readers."""
        target = qualified_name(schema, view)
        keyword = " CONCURRENTLY" if concurrently else ""
        statement = f"REFRESH MATERIALIZED VIEW{keyword} {target}"

        if conn is None:
            async with self.acquire() as acquired:
                await self._refresh(acquired, statement, target, timeout)
        else:
            await self._refresh(conn, statement, target, timeout)

    async def _refresh(self, conn: asyncpg.Connection, statement: str, target: str,
                       timeout: Optional[float]) -> None:
        try:
            await conn.execute(statement, timeout=timeout)
        except Exception as e:
            self.logger.error("PostgreSQL refresh error", error=str(e), view=target)
            raise
        self.logger.info("Materialized view refreshed", view=target)

    async def health_check(self) -> bool:
        """Check PostgreSQL health."""
        try:
            result = await self.execute_scalar("SELECT 1")
            return result == 1
        except Exception as e:
            self.logger.error("PostgreSQL health check failed", error=str(e))
            return False

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.disconnect()


def _copied_count(status: Optional[str]) -> int:
    # asyncpg returns the command tag, e.g. "COPY 42"
    if not status:
        return 0
    try:
        return int(str(status).rsplit(" ", 1)[-1])
    except ValueError:
        return 0
