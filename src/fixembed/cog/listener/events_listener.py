"""Event listener Cog for FixEmbed.

This cog has exactly ONE responsibility: handle bot lifecycle events
(on_ready, on_guild_join).

On ready the channel activation and guild settings caches are loaded, with
every text channel the bot can currently see seeded as active. Joining a new
guild creates its default settings record.
"""

from typing import List

import discord
from discord.ext import commands

from fixembed.datatypes.discord_datatypes import ChannelID, GuildID
from fixembed.settings.config_store import ConfigStore
from fixembed.util.logger import get_logger

logger = get_logger("events_listener")


def known_text_channel_ids(bot: discord.Bot) -> List[ChannelID]:
    """IDs of every text channel in every guild the session knows about."""
    return [ChannelID(channel.id) for guild in bot.guilds for channel in guild.text_channels]


class EventsListenerCog(commands.Cog):
    """Handles Discord bot lifecycle events."""

    def __init__(self, bot: discord.Bot, config_store: ConfigStore) -> None:
        self.bot = bot
        self._config_store = config_store
        self._caches_loaded = False
        logger.info("[EVENTS LISTENER] Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self) -> None:
        """Populate the caches once per process; reconnects fire on_ready again."""
        if not self.bot.user:
            logger.warning("[EVENTS LISTENER] Bot partially connected, user info not yet available.")
            return

        logger.info(
            "[EVENTS LISTENER] Bot connected as %s (ID: %s) in %d guilds",
            self.bot.user, self.bot.user.id, len(self.bot.guilds),
        )
        if self._caches_loaded:
            return

        await self._config_store.load(known_text_channel_ids(self.bot))
        self._caches_loaded = True

    @commands.Cog.listener(name="on_guild_join")
    async def on_guild_join(self, guild: discord.Guild) -> None:
        """Create default settings for a newly joined guild."""
        logger.debug("[EVENTS LISTENER] Bot joined guild: %s (ID: %s)", guild.name, guild.id)
        settings = await self._config_store.ensure_guild_defaults(GuildID(guild.id))
        logger.info(
            "[EVENTS LISTENER] Initialized settings for guild '%s' with services %s",
            guild.name, ", ".join(settings.enabled_services),
        )


def setup(bot: discord.Bot, config_store: ConfigStore) -> None:
    """Register the EventsListenerCog with the bot."""
    bot.add_cog(EventsListenerCog(bot, config_store))
