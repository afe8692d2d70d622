from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from fixembed import main
from fixembed.datatypes.discord_datatypes import UserID


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    monkeypatch.setattr(main, "load_dotenv", lambda **kwargs: False)


def test_load_environment_requires_token(monkeypatch):
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)

    with pytest.raises(SystemExit) as excinfo:
        main.load_environment()

    assert excinfo.value.code == 1


def test_load_environment_reads_token_and_owner(monkeypatch):
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "token-value")
    monkeypatch.setenv("OWNER_ID", " 123456789 ")

    token, owner_id = main.load_environment()

    assert token == "token-value"
    assert owner_id == UserID(123456789)


@pytest.mark.parametrize("raw_owner", [None, "", "not-a-number"])
def test_load_environment_without_valid_owner(monkeypatch, raw_owner):
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "token-value")
    if raw_owner is None:
        monkeypatch.delenv("OWNER_ID", raising=False)
    else:
        monkeypatch.setenv("OWNER_ID", raw_owner)

    _, owner_id = main.load_environment()

    assert owner_id is None


def test_resolve_base_dir_honours_env(monkeypatch, tmp_path):
    monkeypatch.setenv("FIXEMBED_HOME", str(tmp_path))
    assert main.resolve_base_dir() == tmp_path.resolve()


def test_resolve_base_dir_defaults_to_repository_root(monkeypatch):
    monkeypatch.delenv("FIXEMBED_HOME", raising=False)
    assert (main.resolve_base_dir() / "setup.py").exists()


def test_build_intents_enable_message_content():
    intents = main.build_intents()
    assert intents.message_content
    assert intents.guilds
    assert intents.messages


def test_load_cogs_registers_every_cog():
    bot = SimpleNamespace(add_cog=MagicMock())

    main.load_cogs(bot, MagicMock(), MagicMock(), None)

    names = [type(call.args[0]).__name__ for call in bot.add_cog.call_args_list]
    assert names == [
        "EventsListenerCog",
        "MessageListenerCog",
        "PresenceRotationCog",
        "ChannelActivationCog",
        "GuildSettingsCog",
        "InfoCog",
    ]


@pytest.mark.asyncio
async def test_async_main_fails_when_database_cannot_open(monkeypatch):
    monkeypatch.setattr(main, "load_environment", lambda: ("token", None))
    failing = MagicMock()
    failing.initialize = AsyncMock(side_effect=OSError("read-only filesystem"))
    failing.db_path = "/nowhere/fixembed.db"
    monkeypatch.setattr(main, "Database", lambda path: failing)

    assert await main.async_main() == 1


@pytest.mark.asyncio
async def test_shutdown_runtime_closes_bot_and_database():
    bot = MagicMock()
    bot.is_closed = MagicMock(return_value=False)
    bot.close = AsyncMock()
    database = MagicMock()
    database.shutdown = AsyncMock()

    await main.shutdown_runtime(bot, database)

    bot.close.assert_awaited_once()
    database.shutdown.assert_awaited_once()
