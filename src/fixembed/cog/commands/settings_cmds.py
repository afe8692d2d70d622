"""
Settings cog: the /settings panel.

Opens an ephemeral panel summarising the guild's settings with a menu to
toggle FixEmbed across all channels, user mentions, the delivery method and
the enabled services. Changing settings requires the Manage Server permission;
the checks are applied by the panel's components.
"""

import discord
from discord.ext import commands

from fixembed.datatypes.discord_datatypes import GuildID
from fixembed.settings.config_store import ConfigStore
from fixembed.ui.embeds import build_settings_embed
from fixembed.ui.settings_ui import SettingsPanelView
from fixembed.util.logger import get_logger

logger = get_logger("settings_commands")


class GuildSettingsCog(commands.Cog):
    """Guild-level settings panel."""

    def __init__(self, bot: discord.Bot, config_store: ConfigStore) -> None:
        self.bot = bot
        self._config_store = config_store
        logger.info("[GUILD SETTINGS CMDS] Settings cog loaded")

    @commands.slash_command(name="settings", description="Configure FixEmbed's settings")
    async def settings_panel(self, ctx: discord.ApplicationContext) -> None:
        """Send the settings embed with the interactive menu."""
        if ctx.guild is None:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return

        settings = await self._config_store.get_guild_settings(GuildID(ctx.guild.id))
        view = SettingsPanelView(
            self._config_store,
            ctx.guild,
            self.bot.user,
            channel_id=ctx.channel_id,
            latency=lambda: self.bot.latency,
        )
        embed = build_settings_embed(settings, self.bot.user)
        interaction = await ctx.respond(embed=embed, view=view, ephemeral=True)
        if isinstance(interaction, discord.Interaction):
            view.message = await interaction.original_response()


def setup(bot: discord.Bot, config_store: ConfigStore) -> None:
    bot.add_cog(GuildSettingsCog(bot, config_store))
