from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from fixembed.cog.commands import channel_cmds, info_cmds, settings_cmds
from fixembed.datatypes.discord_datatypes import ChannelID, GuildID, UserID
from fixembed.datatypes.guild_settings import GuildSettings
from fixembed.ui.settings_ui import SettingsPanelView

BOT = SimpleNamespace(
    user=SimpleNamespace(id=999, name="FixEmbed", display_avatar=None),
    guilds=[SimpleNamespace(id=1, name="Alpha"), SimpleNamespace(id=2, name="Beta")],
    latency=0.05,
)


def make_ctx(*, guild_id=1, channel_id=10, user_id=7, manage_channels=True):
    return SimpleNamespace(
        guild_id=guild_id,
        channel_id=channel_id,
        user=SimpleNamespace(id=user_id, guild_permissions=SimpleNamespace(manage_channels=manage_channels)),
        respond=AsyncMock(),
    )


@pytest.fixture
def store():
    store = MagicMock()
    store.set_channel_active = AsyncMock(return_value=True)
    return store


# ---------------------------------------------------------------------------
# /activate and /deactivate
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_activate_defaults_to_current_channel(store):
    cog = channel_cmds.ChannelActivationCog(BOT, store)
    ctx = make_ctx()

    await channel_cmds.ChannelActivationCog.activate.callback(cog, ctx, None)

    store.set_channel_active.assert_awaited_once_with(ChannelID(10), True)
    embed = ctx.respond.await_args.kwargs["embed"]
    assert embed.description == "✅ Activated for <#10>!"


@pytest.mark.asyncio
async def test_deactivate_explicit_channel(store):
    cog = channel_cmds.ChannelActivationCog(BOT, store)
    ctx = make_ctx()

    await channel_cmds.ChannelActivationCog.deactivate.callback(cog, ctx, SimpleNamespace(id=20))

    store.set_channel_active.assert_awaited_once_with(ChannelID(20), False)
    embed = ctx.respond.await_args.kwargs["embed"]
    assert embed.description == "❌ Deactivated for <#20>!"


@pytest.mark.asyncio
async def test_confirmation_sent_even_if_not_persisted(store):
    store.set_channel_active = AsyncMock(return_value=False)
    cog = channel_cmds.ChannelActivationCog(BOT, store)
    ctx = make_ctx()

    await channel_cmds.ChannelActivationCog.deactivate.callback(cog, ctx, None)

    assert "embed" in ctx.respond.await_args.kwargs


@pytest.mark.asyncio
async def test_activation_requires_manage_channels(store):
    cog = channel_cmds.ChannelActivationCog(BOT, store)
    ctx = make_ctx(manage_channels=False)

    await channel_cmds.ChannelActivationCog.activate.callback(cog, ctx, None)

    store.set_channel_active.assert_not_awaited()
    assert ctx.respond.await_args.kwargs["ephemeral"] is True


@pytest.mark.asyncio
async def test_activation_requires_guild(store):
    cog = channel_cmds.ChannelActivationCog(BOT, store)
    ctx = make_ctx(guild_id=None)

    await channel_cmds.ChannelActivationCog.activate.callback(cog, ctx, None)

    store.set_channel_active.assert_not_awaited()


# ---------------------------------------------------------------------------
# /about and /owner
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_about_responds_with_embed():
    cog = info_cmds.InfoCog(BOT)
    ctx = make_ctx()

    await info_cmds.InfoCog.about.callback(cog, ctx)

    assert ctx.respond.await_args.kwargs["embed"].title == "About"


@pytest.mark.asyncio
async def test_owner_lists_guilds():
    cog = info_cmds.InfoCog(BOT, UserID(7))
    ctx = make_ctx(user_id=7)

    await info_cmds.InfoCog.owner.callback(cog, ctx)

    ctx.respond.assert_awaited_once_with("Alpha (ID: 1)\nBeta (ID: 2)", ephemeral=True)


@pytest.mark.asyncio
@pytest.mark.parametrize("owner_id", [None, UserID(8), UserID(0)])
async def test_owner_rejects_everyone_else(owner_id):
    cog = info_cmds.InfoCog(BOT, owner_id)
    ctx = make_ctx(user_id=7)

    await info_cmds.InfoCog.owner.callback(cog, ctx)

    ctx.respond.assert_awaited_once_with(info_cmds.NOT_AUTHORIZED, ephemeral=True)


def test_format_guild_list_empty():
    assert info_cmds.format_guild_list([]) == info_cmds.NO_GUILDS


# ---------------------------------------------------------------------------
# /settings
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_settings_panel_responds_with_view():
    settings = GuildSettings(mention_users=False)
    store = MagicMock()
    store.get_guild_settings = AsyncMock(return_value=settings)
    store.cached_guild_settings = MagicMock(return_value=settings)
    store.is_guild_fully_active = MagicMock(return_value=True)
    cog = settings_cmds.GuildSettingsCog(BOT, store)
    ctx = make_ctx()
    ctx.guild = SimpleNamespace(id=1, text_channels=[SimpleNamespace(id=10)])

    await settings_cmds.GuildSettingsCog.settings_panel.callback(cog, ctx)

    store.get_guild_settings.assert_awaited_once_with(GuildID(1))
    kwargs = ctx.respond.await_args.kwargs
    assert kwargs["ephemeral"] is True
    assert kwargs["embed"].title == "Settings"
    assert isinstance(kwargs["view"], SettingsPanelView)


@pytest.mark.asyncio
async def test_settings_panel_requires_guild():
    store = MagicMock()
    store.get_guild_settings = AsyncMock()
    cog = settings_cmds.GuildSettingsCog(BOT, store)
    ctx = make_ctx()
    ctx.guild = None

    await settings_cmds.GuildSettingsCog.settings_panel.callback(cog, ctx)

    store.get_guild_settings.assert_not_awaited()
    assert ctx.respond.await_args.kwargs["ephemeral"] is True


def test_command_setup_functions_register_cogs():
    bot = SimpleNamespace(add_cog=MagicMock())

    channel_cmds.setup(bot, MagicMock())
    info_cmds.setup(bot, None)
    settings_cmds.setup(bot, MagicMock())

    registered = [type(call.args[0]) for call in bot.add_cog.call_args_list]
    assert registered == [
        channel_cmds.ChannelActivationCog,
        info_cmds.InfoCog,
        settings_cmds.GuildSettingsCog,
    ]
