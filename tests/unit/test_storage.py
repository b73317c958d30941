"""Unit tests for storage components."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from shared.storage.postgres import PostgresClient, PostgresConfig, qualified_name, quote_ident


def make_client(mock_conn=None):
    """Client wired to a mocked pool handing out ``mock_conn``."""
    client = PostgresClient(PostgresConfig(dsn="postgresql://localhost:5432/test_db"))
    mock_conn = mock_conn or MagicMock()
    client._pool = MagicMock()
    client._pool.acquire = AsyncMock(return_value=mock_conn)
    client._pool.release = AsyncMock()
    client._pool.close = AsyncMock()
    client.is_connected = True
    return client, mock_conn


class TestIdentifiers:
    """Identifier quoting."""

    def test_quote_ident(self):
        assert quote_ident("official_access_address") == '"official_access_address"'
        assert quote_ident('odd"name') == '"odd""name"'

    def test_qualified_name(self):
        assert qualified_name("location", "t") == '"location"."t"'
        assert qualified_name(None, "t") == '"t"'


class TestPostgresClient:
    """Test PostgresClient class."""

    @pytest.mark.asyncio
    async def test_client_lifecycle(self):
        """Test client lifecycle."""
        init = AsyncMock()
        client = PostgresClient("postgresql://localhost:5432/test_db", init=init)
        pool = MagicMock()
        pool.close = AsyncMock()

        with patch("shared.storage.postgres.asyncpg.create_pool", AsyncMock(return_value=pool)) as create_pool:
            await client.connect()
            assert client.is_connected
            assert create_pool.await_args.kwargs["init"] is init
            assert create_pool.await_args.kwargs["max_size"] == 4

            await client.close()
            pool.close.assert_awaited_once()
            assert not client.is_connected
            assert client.pool is None

    @pytest.mark.asyncio
    async def test_acquire_releases_connection(self):
        client, mock_conn = make_client()

        with pytest.raises(RuntimeError):
            async with client.acquire() as conn:
                assert conn is mock_conn
                raise RuntimeError("boom")

        client._pool.release.assert_awaited_once_with(mock_conn)

    @pytest.mark.asyncio
    async def test_query_execution(self):
        """Test query execution."""
        mock_conn = MagicMock()
        mock_conn.fetch = AsyncMock(return_value=[{"seq_id": 1, "type": "road_created"}])
        client, _ = make_client(mock_conn)

        result = await client.execute("SELECT * FROM events.mt_events WHERE seq_id > $1", 0)

        assert result == [{"seq_id": 1, "type": "road_created"}]
        mock_conn.fetch.assert_awaited_once_with("SELECT * FROM events.mt_events WHERE seq_id > $1", 0)

    @pytest.mark.asyncio
    async def test_truncate(self):
        client, mock_conn = make_client()
        mock_conn.execute = AsyncMock()

        await client.truncate(mock_conn, "official_access_address", schema="location", timeout=5)

        mock_conn.execute.assert_awaited_once_with(
            'TRUNCATE TABLE "location"."official_access_address"', timeout=5
        )

    @pytest.mark.asyncio
    async def test_copy_records_returns_count(self):
        client, mock_conn = make_client()
        mock_conn.copy_records_to_table = AsyncMock(return_value="COPY 2")
        records = [(1, "a"), (2, "b")]

        copied = await client.copy_records(
            mock_conn, "official_unit_address", records, ("id", "floor_name"), schema="location"
        )

        assert copied == 2
        mock_conn.copy_records_to_table.assert_awaited_once_with(
            "official_unit_address",
            records=records,
            columns=["id", "floor_name"],
            schema_name="location",
            timeout=None,
        )

    @pytest.mark.asyncio
    async def test_copy_errors_propagate(self):
        client, mock_conn = make_client()
        mock_conn.copy_records_to_table = AsyncMock(side_effect=ConnectionError("lost"))

        with pytest.raises(ConnectionError):
            await client.copy_records(mock_conn, "t", [], ("id",))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrently, statement", [
        (True, 'REFRESH MATERIALIZED VIEW CONCURRENTLY "location"."view_official_access_address"'),
        (False, 'REFRESH MATERIALIZED VIEW "location"."view_official_access_address"'),
    ])
    async def test_refresh_materialized_view(self, concurrently, statement):
        mock_conn = MagicMock()
        mock_conn.execute = AsyncMock()
        client, _ = make_client(mock_conn)

        await client.refresh_materialized_view(
            "view_official_access_address", schema="location", concurrently=concurrently
        )

        mock_conn.execute.assert_awaited_once_with(statement, timeout=None)
        client._pool.release.assert_awaited_once_with(mock_conn)

    @pytest.mark.asyncio
    async def test_health_check(self):
        mock_conn = MagicMock()
        mock_conn.fetchval = AsyncMock(return_value=1)
        client, _ = make_client(mock_conn)

        assert await client.health_check() is True

        mock_conn.fetchval = AsyncMock(side_effect=OSError("refused"))
        assert await client.health_check() is False
