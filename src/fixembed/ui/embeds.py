"""Embed builders shared by the command cogs and the settings panel."""

from __future__ import annotations

from typing import Dict, Optional

import discord

from fixembed import __version__
from fixembed.datatypes.discord_datatypes import ChannelID
from fixembed.datatypes.guild_settings import DEFAULT_SERVICES, GuildSettings

ACTIVATED_COLOR = discord.Color(0x78B159)
DEACTIVATED_COLOR = discord.Color(0xFF0000)
INFO_COLOR = discord.Color(0x7289DA)
SETTINGS_COLOR = discord.Color(0x5865F2)
TOGGLE_COLOR = discord.Color(0x00FF00)

INVITE_URL = "https://discord.com/oauth2/authorize?client_id=1360722454678605914"
SOURCE_URL = "https://github.com/ld3z/fixembed-go"

CREDITS = (
    ("FxTwitter", "https://github.com/FixTweet/FxTwitter", "FixTweet"),
    ("InstaFix", "https://github.com/Wikidepia/InstaFix", "Wikidepia"),
    ("vxReddit", "https://github.com/dylanpdx/vxReddit", "dylanpdx"),
    ("fixthreads", "https://github.com/milanmdev/fixthreads", "milanmdev"),
    ("phixiv", "https://github.com/thelaao/phixiv", "thelaao"),
    ("VixBluesky", "https://github.com/Rapougnac/VixBluesky", "Rapougnac"),
)


def apply_footer(embed: discord.Embed, bot_user: Optional[discord.abc.User]) -> discord.Embed:
    """Brand the embed with ``<bot name> | v<version>`` and the bot avatar."""
    if bot_user is not None:
        avatar = getattr(bot_user, "display_avatar", None)
        embed.set_footer(
            text=f"{bot_user.name} | v{__version__}",
            icon_url=avatar.url if avatar is not None else None,
        )
    return embed


def _bot_name(bot_user: Optional[discord.abc.User]) -> str:
    return bot_user.name if bot_user is not None else "FixEmbed"


def build_activation_embed(
    channel_id: ChannelID, active: bool, bot_user: Optional[discord.abc.User]
) -> discord.Embed:
    """Confirmation shown after /activate or /deactivate."""
    if active:
        description = f"✅ Activated for <#{channel_id}>!"
        color = ACTIVATED_COLOR
    else:
        description = f"❌ Deactivated for <#{channel_id}>!"
        color = DEACTIVATED_COLOR
    embed = discord.Embed(title=_bot_name(bot_user), description=description, color=color)
    return apply_footer(embed, bot_user)


def build_about_embed(bot_user: Optional[discord.abc.User]) -> discord.Embed:
    embed = discord.Embed(
        title="About",
        description="This bot fixes the lack of embed support in Discord.",
        color=INFO_COLOR,
    )
    embed.add_field(
        name="🎉 Quick Links",
        value=f"- [Invite FixEmbed]({INVITE_URL})\n- [Star our Source Code on GitHub]({SOURCE_URL})",
        inline=False,
    )
    embed.add_field(
        name="📜 Credits",
        value="\n".join(f"- [{name}]({url}), created by {author}" for name, url, author in CREDITS),
        inline=False,
    )
    return apply_footer(embed, bot_user)


def service_status_lines(settings: GuildSettings) -> str:
    """One ``🟢``/``🔴`` line per supported service, in canonical order."""
    return "\n".join(
        f"{'🟢' if settings.is_service_enabled(name) else '🔴'} {name}" for name in DEFAULT_SERVICES
    )


def build_settings_embed(settings: GuildSettings, bot_user: Optional[discord.abc.User]) -> discord.Embed:
    """Summary shown when the /settings panel opens."""
    embed = discord.Embed(title="Settings", description="Configure FixEmbed's settings", color=SETTINGS_COLOR)
    embed.add_field(name="Service Settings", value=service_status_lines(settings), inline=False)
    embed.add_field(name="Mention Users", value=str(settings.mention_users).lower(), inline=False)
    embed.add_field(name="Delete Original", value=str(settings.delete_original).lower(), inline=False)
    return apply_footer(embed, bot_user)


def build_section_embed(title: str, description: str, *, color: discord.Color = TOGGLE_COLOR) -> discord.Embed:
    return discord.Embed(title=title, description=description, color=color)


def build_debug_embed(
    settings: GuildSettings,
    stats: Dict[str, int],
    *,
    guild_id: int,
    channel_id: Optional[int],
    channel_active: bool,
    latency_ms: float,
) -> discord.Embed:
    """Diagnostic snapshot for the Debug entry of the settings panel."""
    embed = discord.Embed(title="Debug Info", description="Current state of FixEmbed in this server.", color=INFO_COLOR)
    embed.add_field(name="Guild ID", value=str(guild_id), inline=True)
    embed.add_field(name="Channel ID", value=str(channel_id) if channel_id else "n/a", inline=True)
    embed.add_field(name="Channel Active", value=str(channel_active).lower(), inline=True)
    embed.add_field(name="Enabled Services", value=", ".join(settings.enabled_services), inline=False)
    embed.add_field(name="Mention Users", value=str(settings.mention_users).lower(), inline=True)
    embed.add_field(name="Delete Original", value=str(settings.delete_original).lower(), inline=True)
    embed.add_field(
        name="Cache",
        value=(
            f"{stats.get('channels', 0)} channels ({stats.get('inactive_channels', 0)} inactive), "
            f"{stats.get('guilds', 0)} guilds"
        ),
        inline=False,
    )
    embed.add_field(name="Latency", value=f"{latency_ms:.0f} ms", inline=True)
    embed.add_field(name="Version", value=f"v{__version__}", inline=True)
    return embed
