"""Repository layer for channel state and guild settings database access."""
from fixembed.settings.repositories.channel_states_repo import ChannelStatesRepository
from fixembed.settings.repositories.guild_settings_repo import GuildSettingsRepository, GuildSettingsRow

__all__ = [
    "ChannelStatesRepository",
    "GuildSettingsRepository",
    "GuildSettingsRow",
]
