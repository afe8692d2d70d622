"""
Message Processing Service.

Owns the pipeline between a raw Discord message and the rewritten links posted
back to its channel:

  1. Ignore the bot's own messages and messages without a guild (DMs)
  2. Resolve the guild's settings and the channel's activation state
  3. Stop if the message angle-bracket suppresses any supported link
  4. Match supported links and drop those whose service is disabled
  5. Post each rewritten link through the rate limiter
  6. Delete the original message, or suppress its embeds, once

Nothing in this service knows about Cogs; it only talks to ConfigStore,
PatternEngine, the rate limiter and the message/channel objects py-cord hands it.
Platform failures are logged and reflected in the returned outcome, never raised.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import discord

from fixembed.datatypes.discord_datatypes import ChannelID, GuildID, UserID
from fixembed.datatypes.guild_settings import GuildSettings
from fixembed.datatypes.link_datatypes import LinkMatch
from fixembed.delivery.rate_limiter import RateLimitTimeout, SlidingWindowRateLimiter
from fixembed.links.pattern_engine import PatternEngine
from fixembed.settings.config_store import ConfigStore
from fixembed.util.logger import get_logger

logger = get_logger("message_processing_service")


class ProcessingOutcome(Enum):
    """Terminal state reached for one inbound message."""

    IGNORED_SELF = "ignored_self"
    IGNORED_NO_GUILD = "ignored_no_guild"
    CHANNEL_INACTIVE = "channel_inactive"
    SUPPRESSED = "suppressed"
    NO_MATCHES = "no_matches"
    SERVICES_DISABLED = "services_disabled"
    DELIVERED = "delivered"
    DELIVERY_FAILED = "delivery_failed"


def format_outbound(match: LinkMatch, attribution: str) -> str:
    """``[<label>](https://<rewritten>) | Sent by <attribution>``"""
    return f"{match.markdown_link} | Sent by {attribution}"


def attribution_for(author, mention_users: bool) -> str:
    """At-mention of the author, or their display name when mentions are off."""
    if mention_users:
        return UserID.parse(author.id).mention
    return getattr(author, "display_name", None) or author.name


class MessageProcessingService:
    """
    Rewrites supported social-media links found in guild messages.

    Parameters
    ----------
    bot:
        The Discord bot; only ``bot.user`` is read, to skip the bot's own messages.
    config_store:
        Source of channel activation and guild settings snapshots.
    pattern_engine:
        Link detection and rewriting.
    rate_limiter:
        Process-wide limiter every outbound send goes through.
    send_timeout:
        Maximum seconds a send may wait for the limiter; ``None`` waits indefinitely.
    """

    def __init__(
        self,
        bot: discord.Bot,
        config_store: ConfigStore,
        pattern_engine: PatternEngine,
        rate_limiter: SlidingWindowRateLimiter,
        send_timeout: Optional[float] = None,
    ) -> None:
        self._bot = bot
        self._config_store = config_store
        self._pattern_engine = pattern_engine
        self._rate_limiter = rate_limiter
        self._send_timeout = send_timeout

    # ------------------------------------------------------------------
    # Public API (called by MessageListenerCog)
    # ------------------------------------------------------------------

    async def process(self, message: discord.Message) -> ProcessingOutcome:
        """Run one message through the pipeline and report where it stopped."""
        bot_user = self._bot.user
        if bot_user is not None and message.author.id == bot_user.id:
            return ProcessingOutcome.IGNORED_SELF

        if message.guild is None:
            return ProcessingOutcome.IGNORED_NO_GUILD
        guild_id = GuildID.parse(message.guild.id)
        if guild_id.is_zero():
            return ProcessingOutcome.IGNORED_NO_GUILD

        settings = await self._config_store.get_guild_settings(guild_id)

        channel_id = ChannelID.parse(message.channel.id)
        if not self._config_store.is_channel_active(channel_id):
            logger.debug("[MESSAGE PROCESSING] Channel %s is deactivated, skipping message %s", channel_id, message.id)
            return ProcessingOutcome.CHANNEL_INACTIVE

        content = message.content or ""
        if self._pattern_engine.is_suppressed(content):
            logger.debug("[MESSAGE PROCESSING] Message %s has an angle-bracket suppressed link, skipping", message.id)
            return ProcessingOutcome.SUPPRESSED

        matches = list(self._pattern_engine.match(content))
        if not matches:
            return ProcessingOutcome.NO_MATCHES

        enabled = []
        for match in matches:
            if settings.is_service_enabled(match.service):
                enabled.append(match)
            else:
                logger.debug(
                    "[MESSAGE PROCESSING] %s is disabled for guild %s, skipping %s",
                    match.service, guild_id, match.original_url,
                )
        if not enabled:
            return ProcessingOutcome.SERVICES_DISABLED

        return await self._deliver(message, enabled, settings)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def _deliver(
        self, message: discord.Message, matches: list[LinkMatch], settings: GuildSettings
    ) -> ProcessingOutcome:
        attribution = attribution_for(message.author, settings.mention_users)
        original_handled = False
        delivered = 0

        for match in matches:
            content = format_outbound(match, attribution)
            logger.debug("[MESSAGE PROCESSING] Rewrote %s -> %s", match.original_url, match.rewritten_url)

            if settings.delete_original:
                if not await self._send(message, content):
                    continue
                delivered += 1
                if not original_handled:
                    original_handled = True
                    await self._delete_original(message)
            else:
                if not original_handled:
                    original_handled = True
                    await self._suppress_original(message)
                if await self._send(message, content):
                    delivered += 1

        if delivered == 0:
            return ProcessingOutcome.DELIVERY_FAILED
        logger.info(
            "[MESSAGE PROCESSING] Posted %d rewritten link(s) for message %s in channel %s",
            delivered, message.id, message.channel.id,
        )
        return ProcessingOutcome.DELIVERED

    async def _send(self, message: discord.Message, content: str) -> bool:
        try:
            await self._rate_limiter.send(message.channel.send, content, timeout=self._send_timeout)
        except RateLimitTimeout as exc:
            logger.warning("[MESSAGE PROCESSING] Dropped rewrite for message %s: %s", message.id, exc)
            return False
        except discord.HTTPException as exc:
            logger.error("[MESSAGE PROCESSING] Failed to send rewrite in channel %s: %s", message.channel.id, exc)
            return False
        return True

    async def _delete_original(self, message: discord.Message) -> None:
        try:
            await message.delete()
        except discord.HTTPException as exc:
            logger.error("[MESSAGE PROCESSING] Failed to delete original message %s: %s", message.id, exc)

    async def _suppress_original(self, message: discord.Message) -> None:
        try:
            await message.edit(suppress=True)
        except discord.HTTPException as exc:
            logger.error("[MESSAGE PROCESSING] Failed to suppress embeds on message %s: %s", message.id, exc)
