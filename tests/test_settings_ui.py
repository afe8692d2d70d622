import asyncio
from types import SimpleNamespace

import discord
import pytest
import pytest_asyncio

from fixembed.database.database import Database
from fixembed.database.durable_writer import DurableWriter
from fixembed.datatypes.discord_datatypes import ChannelID, GuildID
from fixembed.datatypes.guild_settings import DEFAULT_SERVICES
from fixembed.settings.config_store import ConfigStore
from fixembed.ui import settings_ui

GUILD = SimpleNamespace(id=1, text_channels=[SimpleNamespace(id=10), SimpleNamespace(id=11)])


@pytest_asyncio.fixture
async def store(tmp_path):
    database = Database(tmp_path / "ui.db")
    await database.initialize()
    yield ConfigStore(database.connection_manager, DurableWriter(database.connection_manager))
    await database.shutdown()


@pytest.mark.asyncio
async def test_toggle_fixembed_flips_every_channel(store):
    assert await settings_ui.toggle_fixembed(store, GUILD) is False
    assert not store.is_channel_active(ChannelID(10))
    assert not store.is_channel_active(ChannelID(11))

    assert await settings_ui.toggle_fixembed(store, GUILD) is True
    assert store.is_guild_fully_active([ChannelID(10), ChannelID(11)])


@pytest.mark.asyncio
async def test_toggle_fixembed_activates_partially_active_guild(store):
    await store.set_channel_active(ChannelID(11), False)

    assert await settings_ui.toggle_fixembed(store, GUILD) is True
    assert store.is_channel_active(ChannelID(11))


@pytest.mark.asyncio
async def test_toggle_mention_and_delivery(store):
    guild_id = GuildID(1)

    assert (await settings_ui.toggle_mention_users(store, guild_id)).mention_users is False
    assert (await settings_ui.toggle_delete_original(store, guild_id)).delete_original is False
    assert (await settings_ui.toggle_mention_users(store, guild_id)).mention_users is True

    settings = await store.get_guild_settings(guild_id)
    assert settings.mention_users is True
    assert settings.delete_original is False


@pytest.mark.asyncio
async def test_overlapping_flag_toggles_cancel_out(store):
    guild_id = GuildID(1)

    await asyncio.gather(
        settings_ui.toggle_mention_users(store, guild_id),
        settings_ui.toggle_mention_users(store, guild_id),
        settings_ui.toggle_delete_original(store, guild_id),
    )

    settings = await store.get_guild_settings(guild_id)
    assert settings.mention_users is True
    assert settings.delete_original is False


@pytest.mark.asyncio
async def test_overlapping_fixembed_toggles_cancel_out(store):
    states = await asyncio.gather(
        settings_ui.toggle_fixembed(store, GUILD),
        settings_ui.toggle_fixembed(store, GUILD),
    )

    assert sorted(states) == [False, True]
    assert store.is_guild_fully_active([ChannelID(10), ChannelID(11)])


@pytest.mark.asyncio
async def test_save_services(store):
    guild_id = GuildID(1)

    assert (await settings_ui.save_services(store, guild_id, ["Reddit", "Pixiv"])).enabled_services == ("Reddit", "Pixiv")
    assert (await settings_ui.save_services(store, guild_id, [])).enabled_services == DEFAULT_SERVICES


@pytest.mark.asyncio
async def test_panel_menu_reflects_state(store):
    await store.update_guild_settings(GuildID(1), mention_users=False)
    await store.set_channel_active(ChannelID(10), False)

    view = settings_ui.SettingsPanelView(store, GUILD, None)

    (select,) = view.children
    assert isinstance(select, settings_ui.SettingsSelect)
    emojis = {option.value: str(option.emoji) for option in select.options}
    assert emojis[settings_ui.SECTION_FIXEMBED] == "🔴"
    assert emojis[settings_ui.SECTION_MENTION] == "🔕"
    assert emojis[settings_ui.SECTION_DELIVERY] == "📬"


@pytest.mark.asyncio
async def test_panel_sections_swap_components(store):
    view = settings_ui.SettingsPanelView(store, GUILD, None)

    view.show_toggle(settings_ui.SECTION_MENTION, False)
    toggle, back = view.children
    assert isinstance(toggle, settings_ui.ToggleButton)
    assert toggle.label == "Deactivated"
    assert toggle.style == discord.ButtonStyle.danger
    assert isinstance(back, settings_ui.BackButton)

    view.show_services((await store.get_guild_settings(GuildID(1))).with_changes(enabled_services=("Twitter",)))
    services = view.children[0]
    assert isinstance(services, settings_ui.ServiceSelect)
    assert [option.value for option in services.options if option.default] == ["Twitter"]

    view.show_menu()
    assert isinstance(view.children[0], settings_ui.SettingsSelect)


@pytest.mark.asyncio
async def test_panel_permission_check(store):
    view = settings_ui.SettingsPanelView(store, GUILD, None)

    assert view.can_manage(SimpleNamespace(guild_permissions=SimpleNamespace(manage_guild=True)))
    assert not view.can_manage(SimpleNamespace(guild_permissions=SimpleNamespace(manage_guild=False)))
    assert not view.can_manage(None)


@pytest.mark.asyncio
async def test_debug_embed_reports_channel_state(store):
    await store.set_channel_active(ChannelID(10), False)
    view = settings_ui.SettingsPanelView(store, GUILD, None, channel_id=10, latency=lambda: 0.1)

    fields = {field.name: field.value for field in view.debug_embed().fields}

    assert fields["Channel Active"] == "false"
    assert fields["Latency"] == "100 ms"
