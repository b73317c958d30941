"""Unit tests for the event sources."""

import pytest

from services.address_projector.app.consumers import InMemoryEventSource, PostgresEventSource
from services.address_projector.app.events import AccessAddressDeleted, event_type_names
from shared.utils.errors import EventFormatError
from tests.fixtures.mock_services import MockPostgresClient
from tests.fixtures.sample_events import (
    ACCESS_ADDRESS_ID,
    SampleEventGenerator,
    event_store_row,
    wrap,
)


class TestInMemoryEventSource:
    """In-memory event source."""

    @pytest.mark.asyncio
    async def test_replay_then_catch_up(self, projection):
        source = InMemoryEventSource(projection, wrap(SampleEventGenerator.minimal_history()))

        assert await source.replay_all() == 4
        assert await source.catch_up() == 0

        source.append(AccessAddressDeleted(id=ACCESS_ADDRESS_ID))
        assert await source.catch_up() == 1
        assert projection.access_addresses[ACCESS_ADDRESS_ID].deleted is True
        assert projection.applied_count == 5

    @pytest.mark.asyncio
    async def test_appended_positions_follow_log(self, projection):
        source = InMemoryEventSource(projection)

        first = source.append(SampleEventGenerator.minimal_history()[0])
        second = source.append(SampleEventGenerator.minimal_history()[1])

        assert (first.position, second.position) == (1, 2)


class TestPostgresEventSource:
    """Event store reader."""

    def rows(self, count=8):
        return [event_store_row(envelope) for envelope in wrap(SampleEventGenerator.generate_history(count))]

    @pytest.mark.asyncio
    async def test_replay_reads_all_batches_in_order(self, projection):
        rows = self.rows()
        client = MockPostgresClient(event_rows=reversed(rows))
        source = PostgresEventSource(client, projection, batch_size=5)

        applied = await source.replay_all()

        assert applied == len(rows)
        assert source.position == rows[-1]["seq_id"]
        assert projection.applied_count == len(rows)
        # full batches plus the final short one
        assert len(client.called("execute")) == len(rows) // 5 + 1

    @pytest.mark.asyncio
    async def test_catch_up_reads_only_new_rows(self, projection):
        rows = self.rows()
        client = MockPostgresClient(event_rows=rows[:-3])
        source = PostgresEventSource(client, projection, batch_size=100)
        await source.replay_all()

        client.event_rows.extend(rows[-3:])

        assert await source.catch_up() == 3
        assert await source.catch_up() == 0
        last_query_args = client.called("execute")[-1][2]
        assert last_query_args[0] == rows[-1]["seq_id"]

    @pytest.mark.asyncio
    async def test_query_filters_handled_types(self, projection):
        rows = self.rows(2)
        foreign = {"seq_id": 1000, "type": "route_network_edited", "data": "{}", "timestamp": rows[0]["timestamp"]}
        client = MockPostgresClient(event_rows=rows + [foreign])
        source = PostgresEventSource(client, projection, schema="events")

        applied = await source.replay_all()

        assert applied == len(rows)
        query, args = client.called("execute")[0][1:]
        assert '"events"."mt_events"' in query
        assert "ORDER BY seq_id" in query
        assert set(args[2]) == set(event_type_names())
        assert args[3] == 10000

    @pytest.mark.asyncio
    async def test_reads_stop_at_high_water_mark(self, projection):
        rows = self.rows()
        client = MockPostgresClient(event_rows=rows)
        # A gap below seq 6: later rows are not yet known to be complete
        client.high_water_mark = 5
        source = PostgresEventSource(client, projection, batch_size=100)

        assert await source.replay_all() == 5
        assert source.position == 5
        query, args = client.called("execute_scalar")[0][1:]
        assert '"events"."mt_event_progression"' in query
        assert args == ("HighWaterMark",)

        client.high_water_mark = rows[-1]["seq_id"]
        assert await source.catch_up() == len(rows) - 5
        assert source.position == rows[-1]["seq_id"]

    @pytest.mark.asyncio
    async def test_high_water_mark_can_be_disabled(self, projection):
        rows = self.rows(2)
        client = MockPostgresClient(event_rows=rows)
        client.high_water_mark = 1
        source = PostgresEventSource(client, projection, use_high_water_mark=False)

        assert await source.replay_all() == len(rows)
        assert client.called("execute_scalar") == []

    @pytest.mark.asyncio
    async def test_malformed_row_is_fatal(self, projection):
        rows = self.rows(1)
        rows[0]["data"] = '{"Id": "not-a-uuid"}'
        source = PostgresEventSource(MockPostgresClient(event_rows=rows), projection)

        with pytest.raises(EventFormatError):
            await source.replay_all()

        assert source.position == 0
