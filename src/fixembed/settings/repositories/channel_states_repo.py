"""Repository for the channel_states table (one row per explicitly toggled channel)."""

from __future__ import annotations

from typing import Dict, Iterable

import aiosqlite

from fixembed.datatypes.discord_datatypes import ChannelID


class ChannelStatesRepository:
    """CRUD for the channel_states table."""

    async def get_all(self, conn: aiosqlite.Connection) -> Dict[int, bool]:
        """Every stored channel state keyed by channel_id int. NULL states read as active."""
        async with conn.execute("SELECT channel_id, state FROM channel_states") as cursor:
            rows = await cursor.fetchall()
        return {row[0]: True if row[1] is None else bool(row[1]) for row in rows}

    async def upsert(self, conn: aiosqlite.Connection, channel_id: ChannelID, active: bool) -> None:
        await conn.execute(
            "INSERT OR REPLACE INTO channel_states (channel_id, state) VALUES (?, ?)",
            (channel_id.to_int(), 1 if active else 0),
        )

    async def upsert_many(
        self, conn: aiosqlite.Connection, channel_ids: Iterable[ChannelID], active: bool
    ) -> None:
        state = 1 if active else 0
        await conn.executemany(
            "INSERT OR REPLACE INTO channel_states (channel_id, state) VALUES (?, ?)",
            [(channel_id.to_int(), state) for channel_id in channel_ids],
        )
