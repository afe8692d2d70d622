"""
Repository for the guild_settings table.

Handles only the guild_settings table. Booleans are stored as 0/1; NULL in
either flag column means "never set" and reads back as the default (True).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import aiosqlite

from fixembed.datatypes.discord_datatypes import GuildID
from fixembed.datatypes.guild_settings import GuildSettings
from fixembed.settings.service_list_codec import decode_services, encode_services


@dataclass
class GuildSettingsRow:
    """Raw DB row for a guild's settings."""
    guild_id: int
    enabled_services: str | None
    mention_users: int | None
    delete_original: int | None

    def to_settings(self) -> GuildSettings:
        return GuildSettings(
            enabled_services=decode_services(self.enabled_services),
            mention_users=True if self.mention_users is None else bool(self.mention_users),
            delete_original=True if self.delete_original is None else bool(self.delete_original),
        )

    @classmethod
    def from_settings(cls, guild_id: GuildID, settings: GuildSettings) -> "GuildSettingsRow":
        return cls(
            guild_id=guild_id.to_int(),
            enabled_services=encode_services(settings.enabled_services),
            mention_users=1 if settings.mention_users else 0,
            delete_original=1 if settings.delete_original else 0,
        )


class GuildSettingsRepository:
    """CRUD for the guild_settings table only."""

    async def get(
        self, conn: aiosqlite.Connection, guild_id: GuildID
    ) -> GuildSettingsRow | None:
        """Fetch a single guild's row, or None when the guild has never been stored."""
        async with conn.execute(
            """
            SELECT guild_id, enabled_services, mention_users, delete_original
            FROM guild_settings
            WHERE guild_id = ?
            """,
            (guild_id.to_int(),),
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None
        return GuildSettingsRow(guild_id=row[0], enabled_services=row[1], mention_users=row[2], delete_original=row[3])

    async def get_all(
        self, conn: aiosqlite.Connection
    ) -> Dict[int, GuildSettingsRow]:
        """Fetch every guild row keyed by guild_id int."""
        async with conn.execute(
            "SELECT guild_id, enabled_services, mention_users, delete_original FROM guild_settings"
        ) as cursor:
            rows = await cursor.fetchall()

        return {
            row[0]: GuildSettingsRow(guild_id=row[0], enabled_services=row[1], mention_users=row[2], delete_original=row[3])
            for row in rows
        }

    async def upsert(
        self, conn: aiosqlite.Connection, row: GuildSettingsRow
    ) -> None:
        """Insert or update a guild's row."""
        await conn.execute(
            """
            INSERT INTO guild_settings (guild_id, enabled_services, mention_users, delete_original)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(guild_id) DO UPDATE SET
                enabled_services = excluded.enabled_services,
                mention_users    = excluded.mention_users,
                delete_original  = excluded.delete_original
            """,
            (row.guild_id, row.enabled_services, row.mention_users, row.delete_original),
        )

    async def insert_if_missing(
        self, conn: aiosqlite.Connection, row: GuildSettingsRow
    ) -> None:
        """Insert a row unless the guild already has one."""
        await conn.execute(
            """
            INSERT OR IGNORE INTO guild_settings (guild_id, enabled_services, mention_users, delete_original)
            VALUES (?, ?, ?, ?)
            """,
            (row.guild_id, row.enabled_services, row.mention_users, row.delete_original),
        )
