"""
Informational commands: /about for everyone and /owner for the bot owner.
"""

from typing import Optional

import discord
from discord.ext import commands

from fixembed.datatypes.discord_datatypes import UserID
from fixembed.ui.embeds import build_about_embed
from fixembed.util.logger import get_logger

logger = get_logger("info_commands")

NOT_AUTHORIZED = "You are not authorized to use this command."
NO_GUILDS = "Bot is not in any guilds."


def format_guild_list(guilds) -> str:
    """One ``Name (ID: id)`` line per guild."""
    lines = [f"{guild.name} (ID: {guild.id})" for guild in guilds]
    return "\n".join(lines) if lines else NO_GUILDS


class InfoCog(commands.Cog):
    """About and owner-only commands."""

    def __init__(self, bot: discord.Bot, owner_id: Optional[UserID] = None) -> None:
        self.bot = bot
        self.owner_id = owner_id
        if owner_id is None:
            logger.warning("[INFO CMDS] OWNER_ID is not set; /owner is disabled")

    def is_owner(self, user: discord.abc.User) -> bool:
        return self.owner_id is not None and not self.owner_id.is_zero() and self.owner_id == user.id

    @commands.slash_command(name="about", description="Show information about the bot")
    async def about(self, ctx: discord.ApplicationContext) -> None:
        await ctx.respond(embed=build_about_embed(self.bot.user))

    @commands.slash_command(name="owner", description="Owner-only command: lists guilds the bot is in")
    async def owner(self, ctx: discord.ApplicationContext) -> None:
        if not self.is_owner(ctx.user):
            logger.info("[INFO CMDS] Rejected /owner from %s", ctx.user.id)
            await ctx.respond(NOT_AUTHORIZED, ephemeral=True)
            return

        content = format_guild_list(self.bot.guilds)
        # Discord rejects messages over 2000 characters
        if len(content) > 2000:
            content = content[:1997] + "..."
        await ctx.respond(content, ephemeral=True)


def setup(bot: discord.Bot, owner_id: Optional[UserID] = None) -> None:
    bot.add_cog(InfoCog(bot, owner_id))
