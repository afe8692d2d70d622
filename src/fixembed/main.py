"""
FixEmbed
========

A Discord bot that replaces links to Twitter/X, Instagram, Reddit, Threads,
Pixiv and Bluesky with embed-friendly mirrors, configurable per guild and per
channel.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. FIXEMBED_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("FIXEMBED_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
from typing import Optional, Tuple

import discord
from dotenv import load_dotenv

from fixembed import __version__
from fixembed.configuration.app_configuration import app_config
from fixembed.database.database import Database
from fixembed.database.durable_writer import DurableWriter
from fixembed.datatypes.discord_datatypes import UserID
from fixembed.delivery.rate_limiter import SlidingWindowRateLimiter
from fixembed.links.pattern_engine import PatternEngine
from fixembed.services.message_processing_service import MessageProcessingService
from fixembed.settings.config_store import ConfigStore
from fixembed.util.logger import get_logger, handle_exception

logger = get_logger("main")


def load_environment() -> Tuple[str, Optional[UserID]]:
    """Load environment variables and return the bot token and owner ID.

    Returns
    -------
    tuple[str, UserID | None]
        Discord bot token, and the owner's user ID when ``OWNER_ID`` is set.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)

    owner_id = None
    raw_owner = os.getenv("OWNER_ID")
    if raw_owner:
        owner_id = UserID.parse(raw_owner.strip())
        if owner_id.is_zero():
            owner_id = None
    if owner_id is None:
        logger.warning("OWNER_ID is not set; owner-only command will be disabled")
    return token, owner_id


def build_intents() -> discord.Intents:
    """Construct the Discord intents FixEmbed needs: guilds, guild messages and message content."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    return intents


def load_cogs(
    bot: discord.Bot,
    config_store: ConfigStore,
    processing_service: MessageProcessingService,
    owner_id: Optional[UserID],
) -> None:
    """Register all cogs with the bot, injecting the shared runtime objects."""
    from fixembed.cog.commands import channel_cmds, info_cmds, settings_cmds
    from fixembed.cog.listener import events_listener, message_listener, presence_cog

    events_listener.setup(bot, config_store)
    message_listener.setup(bot, processing_service)
    presence_cog.setup(bot, app_config.presence_statuses, app_config.presence_interval)
    channel_cmds.setup(bot, config_store)
    settings_cmds.setup(bot, config_store)
    info_cmds.setup(bot, owner_id)

    logger.info("All cogs loaded successfully.")


def create_bot(config_store: ConfigStore, owner_id: Optional[UserID] = None) -> discord.Bot:
    """Instantiate the Discord bot, its message pipeline and all cogs."""
    bot = discord.Bot(intents=build_intents())
    rate_limiter = SlidingWindowRateLimiter(app_config.rate_limit_capacity, app_config.rate_limit_window)
    processing_service = MessageProcessingService(
        bot,
        config_store,
        PatternEngine(),
        rate_limiter,
        send_timeout=app_config.send_timeout,
    )
    load_cogs(bot, config_store, processing_service, owner_id)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None, database: Database) -> None:
    """Gracefully close the Discord connection and the database."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord client: %s", exc)

    try:
        await database.shutdown()
    except Exception as exc:
        logger.exception("Error during database shutdown: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap the database and the bot, returning an exit code."""
    token, owner_id = load_environment()

    database = Database(app_config.database_path)
    try:
        logger.info("Initializing database at %s...", database.db_path)
        await database.initialize()
    except Exception as exc:
        logger.critical("Failed to initialize database: %s", exc)
        return 1

    writer = DurableWriter(
        database.connection_manager,
        app_config.write_retry_attempts,
        app_config.write_retry_delay,
    )
    config_store = ConfigStore(database.connection_manager, writer)

    bot = None
    exit_code = 0
    try:
        bot = create_bot(config_store, owner_id)
        await start_bot(bot, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        exit_code = 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, database)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    logger.info("Starting FixEmbed v%s…", __version__)
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
