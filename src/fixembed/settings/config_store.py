"""
In-memory channel activation and guild settings, replicated to SQLite.

Provides:
- is_channel_active / set_channel_active / set_channels_active / toggle_channels_active
- get_guild_settings / set_guild_settings / update_guild_settings / toggle_guild_flag
- ensure_guild_defaults
- load: bulk startup load from the database

Both caches are the source of truth for serving messages; the database is a
best-effort copy used to rebuild them after a restart (see
:mod:`fixembed.database.durable_writer` for the consistency windows).

Locking
-------
Each cache has its own writer lock. Reads are plain dictionary lookups of
immutable values and never await, so any number of readers run without
blocking and none of them can see a half-updated record. Channel writes update
the cache under the lock and write to the database after releasing it.
Settings writes hold the lock across the database write so that read-modify-write
updates from concurrent interactions never lose each other's changes.
"""

from __future__ import annotations

import asyncio
import sqlite3
from typing import Callable, Dict, Iterable, Optional

from fixembed.database.db_connection import ConnectionManager
from fixembed.database.durable_writer import DurableWriter
from fixembed.datatypes.discord_datatypes import ChannelID, GuildID
from fixembed.datatypes.guild_settings import GuildSettings
from fixembed.settings.repositories import ChannelStatesRepository, GuildSettingsRepository, GuildSettingsRow
from fixembed.util.logger import get_logger

logger = get_logger("config_store")

TOGGLEABLE_FLAGS = ("mention_users", "delete_original")


class ConfigStore:
    """
    Owner of the channel activation and guild settings caches.

    Parameters
    ----------
    connection_manager:
        Shared connection used for reads.
    writer:
        Applies the retry-on-busy policy to every write.
    """

    def __init__(self, connection_manager: ConnectionManager, writer: DurableWriter) -> None:
        self._connection_manager = connection_manager
        self._writer = writer
        self._channel_repo = ChannelStatesRepository()
        self._settings_repo = GuildSettingsRepository()

        self._channel_states: Dict[ChannelID, bool] = {}
        self._guild_settings: Dict[GuildID, GuildSettings] = {}
        self._channel_lock = asyncio.Lock()
        self._settings_lock = asyncio.Lock()

    # ========== Startup ==========

    async def load(self, known_channel_ids: Iterable[ChannelID] = ()) -> bool:
        """
        Populate both caches from the database.

        Channels in ``known_channel_ids`` without a stored state are cached as
        active. Those defaults are not written back; a row appears the first
        time the channel is explicitly toggled.

        Returns:
            False if the database could not be read (caches then hold only the defaults).
        """
        channel_rows: Dict[int, bool] = {}
        settings_rows: Dict[int, GuildSettingsRow] = {}
        loaded = True
        try:
            async with self._connection_manager.read() as conn:
                channel_rows = await self._channel_repo.get_all(conn)
                settings_rows = await self._settings_repo.get_all(conn)
        except sqlite3.Error:
            logger.exception("[CONFIG STORE] Failed to load persisted state, continuing with defaults")
            loaded = False

        async with self._channel_lock:
            for channel_id, active in channel_rows.items():
                self._channel_states[ChannelID(channel_id)] = active
            seeded = 0
            for channel_id in known_channel_ids:
                if channel_id not in self._channel_states:
                    self._channel_states[channel_id] = True
                    seeded += 1

        async with self._settings_lock:
            for guild_id, row in settings_rows.items():
                self._guild_settings[GuildID(guild_id)] = row.to_settings()

        logger.info(
            "[CONFIG STORE] Loaded %d channel states (%d seeded as active) and %d guild settings",
            len(channel_rows), seeded, len(settings_rows),
        )
        return loaded

    # ========== Channel activation ==========

    def is_channel_active(self, channel_id: ChannelID) -> bool:
        """Channels are active unless explicitly deactivated."""
        return self._channel_states.get(channel_id, True)

    def is_guild_fully_active(self, channel_ids: Iterable[ChannelID]) -> bool:
        """True when every given channel of a guild is active (vacuously true for none)."""
        return all(self.is_channel_active(channel_id) for channel_id in channel_ids)

    async def set_channel_active(self, channel_id: ChannelID, active: bool) -> bool:
        """
        Update the cache, then replicate to the database.

        The cache change is visible immediately and kept even if the write fails.

        Returns:
            Whether the database write succeeded.
        """
        async with self._channel_lock:
            self._channel_states[channel_id] = active
        logger.debug("[CONFIG STORE] Channel %s %s", channel_id, "activated" if active else "deactivated")

        async def _write(conn) -> None:
            await self._channel_repo.upsert(conn, channel_id, active)

        return await self._writer.write(f"channel state for {channel_id}", _write)

    async def set_channels_active(self, channel_ids: Iterable[ChannelID], active: bool) -> bool:
        """Bulk form of :meth:`set_channel_active`, persisted in one transaction."""
        channel_ids = list(channel_ids)
        if not channel_ids:
            return True

        async with self._channel_lock:
            for channel_id in channel_ids:
                self._channel_states[channel_id] = active

        async def _write(conn) -> None:
            await self._channel_repo.upsert_many(conn, channel_ids, active)

        return await self._writer.write(f"channel states for {len(channel_ids)} channels", _write)

    async def toggle_channels_active(self, channel_ids: Iterable[ChannelID]) -> bool:
        """
        Flip a group of channels as one unit and return the new state.

        If every channel is active all of them are deactivated, otherwise all of
        them are activated. The decision and the cache update happen under the
        channel lock; the database write follows after it is released.
        """
        channel_ids = list(channel_ids)
        async with self._channel_lock:
            new_state = not self.is_guild_fully_active(channel_ids)
            for channel_id in channel_ids:
                self._channel_states[channel_id] = new_state

        if channel_ids:
            async def _write(conn) -> None:
                await self._channel_repo.upsert_many(conn, channel_ids, new_state)

            await self._writer.write(f"channel states for {len(channel_ids)} channels", _write)
        return new_state

    # ========== Guild settings ==========

    def cached_guild_settings(self, guild_id: GuildID) -> Optional[GuildSettings]:
        """Cache-only lookup; None when the guild has no cached record."""
        return self._guild_settings.get(guild_id)

    async def _read_settings(self, guild_id: GuildID) -> Optional[GuildSettings]:
        try:
            async with self._connection_manager.read() as conn:
                row = await self._settings_repo.get(conn, guild_id)
        except sqlite3.Error:
            logger.exception("[CONFIG STORE] Failed to read settings for guild %s", guild_id)
            return None
        return row.to_settings() if row is not None else None

    async def get_guild_settings(self, guild_id: GuildID) -> GuildSettings:
        """
        Cache first, then the database, then defaults.

        A database hit is cached. A total miss returns defaults without creating a row.
        """
        cached = self._guild_settings.get(guild_id)
        if cached is not None:
            return cached

        stored = await self._read_settings(guild_id)
        if stored is None:
            return GuildSettings.defaults()
        # A writer may have filled the cache while we were reading; its value wins
        return self._guild_settings.setdefault(guild_id, stored)

    async def _write_settings_locked(self, guild_id: GuildID, settings: GuildSettings) -> bool:
        row = GuildSettingsRow.from_settings(guild_id, settings)

        async def _write(conn) -> None:
            await self._settings_repo.upsert(conn, row)

        ok = await self._writer.write(f"settings for guild {guild_id}", _write)
        self._guild_settings[guild_id] = settings
        return ok

    async def set_guild_settings(self, guild_id: GuildID, settings: GuildSettings) -> bool:
        """
        Write the settings through to the database, then to the cache.

        Returns:
            Whether the database write succeeded. The cache is updated either way.
        """
        async with self._settings_lock:
            return await self._write_settings_locked(guild_id, settings)

    async def _modify_guild_settings(
        self, guild_id: GuildID, change: Callable[[GuildSettings], GuildSettings]
    ) -> GuildSettings:
        # The current record is read under the lock so that ``change`` always sees
        # the result of the previous writer.
        async with self._settings_lock:
            current = self._guild_settings.get(guild_id)
            if current is None:
                current = await self._read_settings(guild_id) or GuildSettings.defaults()
            updated = change(current)
            await self._write_settings_locked(guild_id, updated)
        return updated

    async def update_guild_settings(self, guild_id: GuildID, **changes) -> GuildSettings:
        """Atomically replace some fields of a guild's settings and return the new record."""
        updated = await self._modify_guild_settings(guild_id, lambda current: current.with_changes(**changes))
        logger.debug("[CONFIG STORE] Updated guild %s settings: %s", guild_id, changes)
        return updated

    async def toggle_guild_flag(self, guild_id: GuildID, flag: str) -> GuildSettings:
        """
        Invert ``mention_users`` or ``delete_original`` and return the new record.

        The inversion is computed under the settings lock, so two overlapping
        toggles cancel out instead of both writing the same value.
        """
        if flag not in TOGGLEABLE_FLAGS:
            raise ValueError(f"{flag!r} is not a toggleable guild setting")

        updated = await self._modify_guild_settings(
            guild_id, lambda current: current.with_changes(**{flag: not getattr(current, flag)})
        )
        logger.debug("[CONFIG STORE] Toggled %s for guild %s to %s", flag, guild_id, getattr(updated, flag))
        return updated

    async def ensure_guild_defaults(self, guild_id: GuildID) -> GuildSettings:
        """
        Make sure the guild has a settings record, creating a default one if needed.

        Idempotent: an existing cached or stored record is returned untouched.
        """
        async with self._settings_lock:
            cached = self._guild_settings.get(guild_id)
            if cached is not None:
                return cached

            stored = await self._read_settings(guild_id)
            if stored is not None:
                self._guild_settings[guild_id] = stored
                return stored

            defaults = GuildSettings.defaults()
            row = GuildSettingsRow.from_settings(guild_id, defaults)

            async def _write(conn) -> None:
                await self._settings_repo.insert_if_missing(conn, row)

            persisted = await self._writer.write(f"default settings for guild {guild_id}", _write)
            self._guild_settings[guild_id] = defaults
            if persisted:
                logger.info("[CONFIG STORE] Created default settings for guild %s", guild_id)
            else:
                logger.warning(
                    "[CONFIG STORE] Default settings for guild %s are cached but were not saved", guild_id
                )
            return defaults

    # ========== Introspection ==========

    def stats(self) -> Dict[str, int]:
        """Cache sizes for the debug panel."""
        return {
            "channels": len(self._channel_states),
            "inactive_channels": sum(1 for active in self._channel_states.values() if not active),
            "guilds": len(self._guild_settings),
        }
