"""Presence rotation cog for FixEmbed.

Cycles the bot's "Watching ..." activity through the configured statuses.
The first status is set as soon as the bot is ready, then the next one every
``presence.interval_seconds``.
"""

from __future__ import annotations

from typing import Sequence

import discord
from discord.ext import commands, tasks

from fixembed.util.logger import get_logger

logger = get_logger("presence_cog")


class PresenceRotationCog(commands.Cog):
    """Rotates the bot presence on a ``tasks.loop``."""

    def __init__(self, bot: discord.Bot, statuses: Sequence[str], interval: float) -> None:
        self.bot = bot
        self.statuses = list(statuses)
        self.interval = interval
        self._index = 0

    def next_status(self) -> str:
        status = self.statuses[self._index % len(self.statuses)]
        self._index = (self._index + 1) % len(self.statuses)
        return status

    @tasks.loop(seconds=60)  # real interval set in on_ready
    async def _rotate_task(self) -> None:
        status = self.next_status()
        try:
            await self.bot.change_presence(
                activity=discord.Activity(type=discord.ActivityType.watching, name=status),
            )
        except discord.HTTPException as exc:
            logger.warning("[PRESENCE] Failed to update presence: %s", exc)

    @_rotate_task.before_loop
    async def _before_rotate(self) -> None:
        await self.bot.wait_until_ready()

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        if not self.statuses:
            return
        self._rotate_task.change_interval(seconds=self.interval)
        if not self._rotate_task.is_running():
            self._rotate_task.start()
            logger.info("[PRESENCE] Started (interval=%.1fs, %d statuses)", self.interval, len(self.statuses))

    def cog_unload(self) -> None:
        self._rotate_task.cancel()
        logger.info("[PRESENCE] Stopped")


def setup(bot: discord.Bot, statuses: Sequence[str], interval: float) -> None:
    """Register the PresenceRotationCog with the bot."""
    bot.add_cog(PresenceRotationCog(bot, statuses, interval))
