"""
Channel activation cog: /activate and /deactivate.

Both commands take an optional text channel and default to the channel the
command was used in. Changing a channel requires the Manage Channels permission.
The confirmation is public so the rest of the channel sees the change.
"""

import discord
from discord import Option
from discord.ext import commands

from fixembed.datatypes.discord_datatypes import ChannelID
from fixembed.settings.config_store import ConfigStore
from fixembed.ui.embeds import build_activation_embed
from fixembed.util.logger import get_logger

logger = get_logger("channel_commands")


class ChannelActivationCog(commands.Cog):
    """Per-channel on/off switch for link rewriting."""

    def __init__(self, bot: discord.Bot, config_store: ConfigStore) -> None:
        self.bot = bot
        self._config_store = config_store
        logger.info("[CHANNEL CMDS] Channel activation cog loaded")

    async def _check_permissions(self, ctx: discord.ApplicationContext) -> bool:
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return False
        permissions = getattr(ctx.user, "guild_permissions", None)
        if not getattr(permissions, "manage_channels", False):
            await ctx.respond("You need Manage Channels permission.", ephemeral=True)
            return False
        return True

    async def _set_active(
        self, ctx: discord.ApplicationContext, channel: discord.TextChannel | None, active: bool
    ) -> None:
        if not await self._check_permissions(ctx):
            return

        channel_id = ChannelID(channel.id if channel is not None else ctx.channel_id)
        persisted = await self._config_store.set_channel_active(channel_id, active)
        if not persisted:
            logger.warning(
                "[CHANNEL CMDS] Channel %s is %s in memory but the change was not saved",
                channel_id, "active" if active else "inactive",
            )

        await ctx.respond(embed=build_activation_embed(channel_id, active, self.bot.user))

    @commands.slash_command(
        name="activate",
        description="Activate link processing in this channel or another channel",
    )
    async def activate(
        self,
        ctx: discord.ApplicationContext,
        channel: Option(
            discord.TextChannel,
            "The channel to activate link processing in (leave blank for current channel)",
            required=False,
            default=None,
        ),
    ) -> None:
        await self._set_active(ctx, channel, True)

    @commands.slash_command(
        name="deactivate",
        description="Deactivate link processing in this channel or another channel",
    )
    async def deactivate(
        self,
        ctx: discord.ApplicationContext,
        channel: Option(
            discord.TextChannel,
            "The channel to deactivate link processing in (leave blank for current channel)",
            required=False,
            default=None,
        ),
    ) -> None:
        await self._set_active(ctx, channel, False)


def setup(bot: discord.Bot, config_store: ConfigStore) -> None:
    bot.add_cog(ChannelActivationCog(bot, config_store))
