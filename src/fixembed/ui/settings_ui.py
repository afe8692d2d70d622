"""
Interactive /settings panel.

The panel opens on a summary embed with a single-choice select. Picking an
entry swaps the view's components for that section:

- FixEmbed: one button toggling every text channel of the guild at once
- Mention Users: toggle between ``<@id>`` and display-name attribution
- Delivery Method: toggle deleting the original vs. suppressing its embeds
- Service Settings: multi-select of enabled services
- Debug: ephemeral diagnostic embed

The state changes themselves are plain coroutines (``toggle_*`` /
``save_services``) so they can be exercised without a Discord connection.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

import discord

from fixembed.datatypes.discord_datatypes import ChannelID, GuildID
from fixembed.datatypes.guild_settings import DEFAULT_SERVICES, GuildSettings
from fixembed.settings.config_store import ConfigStore
from fixembed.ui.embeds import (
    SETTINGS_COLOR,
    build_debug_embed,
    build_section_embed,
    build_settings_embed,
)
from fixembed.util.logger import get_logger

logger = get_logger("settings_ui")

SECTION_FIXEMBED = "FixEmbed"
SECTION_MENTION = "Mention Users"
SECTION_DELIVERY = "Delivery Method"
SECTION_SERVICES = "Service Settings"
SECTION_DEBUG = "Debug"


# ---------------------------------------------------------------------------
# State changes
# ---------------------------------------------------------------------------

def guild_text_channel_ids(guild: discord.Guild) -> List[ChannelID]:
    return [ChannelID(channel.id) for channel in guild.text_channels]


async def toggle_fixembed(store: ConfigStore, guild: discord.Guild) -> bool:
    """
    Flip FixEmbed for the whole guild and return the new state.

    If every text channel is active, all of them are deactivated; otherwise
    all of them are activated.
    """
    channel_ids = guild_text_channel_ids(guild)
    new_state = await store.toggle_channels_active(channel_ids)
    logger.info(
        "[SETTINGS UI] FixEmbed %s for %d channels in guild %s",
        "activated" if new_state else "deactivated", len(channel_ids), guild.id,
    )
    return new_state


async def toggle_mention_users(store: ConfigStore, guild_id: GuildID) -> GuildSettings:
    return await store.toggle_guild_flag(guild_id, "mention_users")


async def toggle_delete_original(store: ConfigStore, guild_id: GuildID) -> GuildSettings:
    return await store.toggle_guild_flag(guild_id, "delete_original")


async def save_services(store: ConfigStore, guild_id: GuildID, services: Sequence[str]) -> GuildSettings:
    """Store the selected services (an empty selection falls back to all of them)."""
    return await store.update_guild_settings(guild_id, enabled_services=tuple(services))


# ---------------------------------------------------------------------------
# View
# ---------------------------------------------------------------------------

class SettingsPanelView(discord.ui.View):
    """Settings panel for one guild, bound to the member who opened it."""

    def __init__(
        self,
        store: ConfigStore,
        guild: discord.Guild,
        bot_user: Optional[discord.abc.User],
        *,
        channel_id: Optional[int] = None,
        latency: Callable[[], float] = lambda: 0.0,
        timeout_seconds: int = 300,
    ):
        super().__init__(timeout=timeout_seconds)
        self.store = store
        self.guild = guild
        self.guild_id = GuildID(guild.id)
        self.bot_user = bot_user
        self.channel_id = channel_id
        self._latency = latency
        self._message: Optional[discord.Message] = None
        self.show_menu()

    @property
    def message(self) -> Optional[discord.Message]:
        return self._message

    @message.setter
    def message(self, value: Optional[discord.Message]) -> None:
        self._message = value

    def current_settings(self) -> GuildSettings:
        return self.store.cached_guild_settings(self.guild_id) or GuildSettings.defaults()

    def fixembed_active(self) -> bool:
        return self.store.is_guild_fully_active(guild_text_channel_ids(self.guild))

    def can_manage(self, member: Optional[discord.abc.Snowflake]) -> bool:
        """Check whether the interacting user can manage guild settings."""
        if member is None:
            return False
        permissions = getattr(member, "guild_permissions", None)
        return bool(getattr(permissions, "manage_guild", False))

    # ---- component sets ---------------------------------------------------

    def show_menu(self) -> None:
        self.clear_items()
        self.add_item(SettingsSelect(self.current_settings(), self.fixembed_active()))

    def show_toggle(self, section: str, active: bool) -> None:
        self.clear_items()
        self.add_item(ToggleButton(section, active))
        self.add_item(BackButton())

    def show_services(self, settings: GuildSettings) -> None:
        self.clear_items()
        self.add_item(ServiceSelect(settings))
        self.add_item(BackButton())

    def menu_embed(self) -> discord.Embed:
        return build_settings_embed(self.current_settings(), self.bot_user)

    def debug_embed(self) -> discord.Embed:
        channel_active = True
        if self.channel_id:
            channel_active = self.store.is_channel_active(ChannelID(self.channel_id))
        return build_debug_embed(
            self.current_settings(),
            self.store.stats(),
            guild_id=self.guild_id.to_int(),
            channel_id=self.channel_id,
            channel_active=channel_active,
            latency_ms=self._latency() * 1000,
        )

    async def refresh_message(self, interaction: discord.Interaction, embed: discord.Embed) -> None:
        """Replace the panel's embed and components in place."""
        try:
            await interaction.response.edit_message(embed=embed, view=self)
        except discord.InteractionResponded:
            try:
                await interaction.edit_original_response(embed=embed, view=self)
            except discord.HTTPException as exc:
                logger.warning("[SETTINGS UI] Failed to update settings panel: %s", exc)
        except discord.HTTPException as exc:
            logger.warning("[SETTINGS UI] Failed to update settings panel: %s", exc)

    async def reject_unauthorized(self, interaction: discord.Interaction) -> bool:
        if self.can_manage(interaction.user):
            return False
        await interaction.response.send_message(
            "You need the Manage Server permission to change settings.",
            ephemeral=True,
        )
        return True

    async def on_timeout(self) -> None:  # pragma: no cover - relies on Discord timers
        self.disable_all_items()
        if self._message is not None:
            try:
                await self._message.edit(view=self)
            except discord.HTTPException:
                logger.debug("[SETTINGS UI] Could not disable expired settings panel")


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

_SECTION_EMBEDS = {
    SECTION_FIXEMBED: ("FixEmbed Settings", "Activate/Deactivate FixEmbed across channels."),
    SECTION_MENTION: ("Mention Users Settings", "Toggle mentioning users in messages."),
    SECTION_DELIVERY: ("Delivery Method Settings", "Toggle original message deletion."),
}

_TOGGLED_DESCRIPTIONS = {
    SECTION_FIXEMBED: "Toggled FixEmbed for guild channels.",
    SECTION_MENTION: "Toggled mention users.",
    SECTION_DELIVERY: "Toggled original message deletion.",
}


class SettingsSelect(discord.ui.Select):
    """Main menu of the settings panel."""

    def __init__(self, settings: GuildSettings, fixembed_active: bool):
        options = [
            discord.SelectOption(
                label=SECTION_FIXEMBED,
                value=SECTION_FIXEMBED,
                description="Activate or deactivate the bot in all channels",
                emoji="🟢" if fixembed_active else "🔴",
            ),
            discord.SelectOption(
                label=SECTION_MENTION,
                value=SECTION_MENTION,
                description="Toggle mentioning users in messages",
                emoji="🔔" if settings.mention_users else "🔕",
            ),
            discord.SelectOption(
                label=SECTION_DELIVERY,
                value=SECTION_DELIVERY,
                description="Toggle original message deletion",
                emoji="📬" if settings.delete_original else "📪",
            ),
            discord.SelectOption(
                label=SECTION_SERVICES,
                value=SECTION_SERVICES,
                description="Configure which services are activated",
                emoji="⚙️",
            ),
            discord.SelectOption(
                label=SECTION_DEBUG,
                value=SECTION_DEBUG,
                description="Show current debug information",
                emoji="🐞",
            ),
        ]
        super().__init__(placeholder="Choose an option...", min_values=1, max_values=1, options=options)

    async def callback(self, interaction: discord.Interaction) -> None:  # pragma: no cover - requires Discord runtime
        view: SettingsPanelView = self.view  # type: ignore[assignment]
        section = self.values[0]

        if section == SECTION_DEBUG:
            await interaction.response.send_message(embed=view.debug_embed(), ephemeral=True)
            return

        if await view.reject_unauthorized(interaction):
            return

        settings = await view.store.get_guild_settings(view.guild_id)
        if section == SECTION_SERVICES:
            view.show_services(settings)
            embed = build_section_embed(
                "Service Settings", "Configure which services are activated.", color=SETTINGS_COLOR
            )
            await view.refresh_message(interaction, embed)
            return

        if section == SECTION_FIXEMBED:
            active = view.fixembed_active()
        elif section == SECTION_MENTION:
            active = settings.mention_users
        else:
            active = settings.delete_original
        view.show_toggle(section, active)
        title, description = _SECTION_EMBEDS[section]
        await view.refresh_message(interaction, build_section_embed(title, description))


class ToggleButton(discord.ui.Button):
    """Activated/Deactivated button for one boolean section."""

    def __init__(self, section: str, active: bool):
        self.section = section
        super().__init__(
            label="Activated" if active else "Deactivated",
            style=discord.ButtonStyle.success if active else discord.ButtonStyle.danger,
            row=0,
        )

    async def callback(self, interaction: discord.Interaction) -> None:  # pragma: no cover - requires Discord runtime
        view: SettingsPanelView = self.view  # type: ignore[assignment]
        if await view.reject_unauthorized(interaction):
            return

        if self.section == SECTION_FIXEMBED:
            active = await toggle_fixembed(view.store, view.guild)
        elif self.section == SECTION_MENTION:
            active = (await toggle_mention_users(view.store, view.guild_id)).mention_users
        else:
            active = (await toggle_delete_original(view.store, view.guild_id)).delete_original

        view.show_toggle(self.section, active)
        title, _ = _SECTION_EMBEDS[self.section]
        await view.refresh_message(interaction, build_section_embed(title, _TOGGLED_DESCRIPTIONS[self.section]))


class ServiceSelect(discord.ui.Select):
    """Multi-select of the services FixEmbed rewrites in this guild."""

    def __init__(self, settings: GuildSettings):
        options = [
            discord.SelectOption(label=name, value=name, default=settings.is_service_enabled(name))
            for name in DEFAULT_SERVICES
        ]
        super().__init__(
            placeholder="Select services to activate...",
            min_values=1,
            max_values=len(options),
            options=options,
            row=0,
        )

    async def callback(self, interaction: discord.Interaction) -> None:  # pragma: no cover - requires Discord runtime
        view: SettingsPanelView = self.view  # type: ignore[assignment]
        if await view.reject_unauthorized(interaction):
            return

        settings = await save_services(view.store, view.guild_id, self.values)
        view.show_services(settings)
        embed = build_section_embed("Service Settings", "Saved service settings.", color=SETTINGS_COLOR)
        await view.refresh_message(interaction, embed)


class BackButton(discord.ui.Button):
    """Return to the main settings menu."""

    def __init__(self):
        super().__init__(label="Back", style=discord.ButtonStyle.secondary, row=1, emoji="↩️")

    async def callback(self, interaction: discord.Interaction) -> None:  # pragma: no cover - requires Discord runtime
        view: SettingsPanelView = self.view  # type: ignore[assignment]
        view.show_menu()
        await view.refresh_message(interaction, view.menu_embed())
