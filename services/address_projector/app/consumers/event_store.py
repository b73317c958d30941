"""
PostgreSQL event store reader.

Reads the ``mt_events`` table of a Marten-style event store in
``seq_id`` order. Only the event types the projection handles are
fetched; the position of the last applied event is kept in memory, so
a restart replays from the beginning.

Sequence numbers are handed out before commit, so a lower ``seq_id`` can
become visible after a higher one has been read. Each read is therefore
bounded by the store's high water mark (``mt_event_progression``), below
which the sequence has no gaps. Without a high water mark row the read
is unbounded and relies on seq_ids committing in order.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog

from shared.storage.postgres import PostgresClient, qualified_name

from ..events import decode_event
from ..projection import AddressProjection


logger = structlog.get_logger(__name__)

HIGH_WATER_MARK = "HighWaterMark"
# Largest bigint, used as the upper bound of an unbounded read
MAX_SEQ_ID = 2 ** 63 - 1


class PostgresEventSource:
    """Event source reading batches from the event store."""

    def __init__(
        self,
        client: PostgresClient,
        projection: AddressProjection,
        schema: str = "events",
        batch_size: int = 10000,
        use_high_water_mark: bool = True,
    ):
        self.client = client
        self.projection = projection
        self.schema = schema
        self.batch_size = batch_size
        self.use_high_water_mark = use_high_water_mark
        self.position = 0
        self.event_types: List[str] = sorted(cls.kind() for cls in projection.handled_events)

        table = qualified_name(schema, "mt_events")
        self._query = (
            f"SELECT seq_id, type, data, timestamp FROM {table} "
            "WHERE seq_id > $1 AND seq_id <= $2 AND type = ANY($3::text[]) "
            "ORDER BY seq_id LIMIT $4"
        )
        progression = qualified_name(schema, "mt_event_progression")
        self._high_water_query = f"SELECT last_seq_id FROM {progression} WHERE name = $1"

    async def replay_all(self) -> int:
        self.position = 0
        applied = await self._drain()
        logger.info("Replayed event store", events_applied=applied, position=self.position)
        return applied

    async def catch_up(self) -> int:
        applied = await self._drain()
        if applied:
            logger.info("Caught up with event store", events_applied=applied, position=self.position)
        return applied

    async def _drain(self) -> int:
        upper = await self._upper_bound()
        applied = 0
        while True:
            rows = await self._fetch_batch(self.position, upper)
            for row in rows:
                self._apply_row(row)
                applied += 1
            if len(rows) < self.batch_size:
                return applied

    async def _upper_bound(self) -> int:
        if not self.use_high_water_mark:
            return MAX_SEQ_ID
        mark: Optional[int] = await self.client.execute_scalar(self._high_water_query, HIGH_WATER_MARK)
        if mark is None:
            logger.debug("No high water mark, reading unbounded")
            return MAX_SEQ_ID
        return mark

    async def _fetch_batch(self, after: int, upper: int) -> List[Dict[str, Any]]:
        return await self.client.execute(self._query, after, upper, self.event_types, self.batch_size)

    def _apply_row(self, row: Dict[str, Any]) -> None:
        position: int = row["seq_id"]
        envelope = decode_event(row["type"], row["data"], row["timestamp"], position=position)
        self.projection.apply(envelope)
        self.position = position
