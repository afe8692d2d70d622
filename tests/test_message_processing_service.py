"""Scenario tests for the message processing pipeline."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from fixembed.datatypes.discord_datatypes import ChannelID, GuildID
from fixembed.datatypes.guild_settings import GuildSettings
from fixembed.delivery.rate_limiter import RateLimitTimeout, SlidingWindowRateLimiter
from fixembed.links.pattern_engine import PatternEngine
from fixembed.services.message_processing_service import (
    MessageProcessingService,
    ProcessingOutcome,
    attribution_for,
    format_outbound,
)

BOT_ID = 999
AUTHOR_ID = 4242
GUILD_ID = 1
CHANNEL_ID = 10


class FakeConfigStore:
    def __init__(self, settings=None, inactive=()):
        self.settings = settings or GuildSettings.defaults()
        self.inactive = {ChannelID(channel) for channel in inactive}
        self.requested = []

    async def get_guild_settings(self, guild_id):
        self.requested.append(guild_id)
        return self.settings

    def is_channel_active(self, channel_id):
        return channel_id not in self.inactive


def make_message(content, *, author_id=AUTHOR_ID, guild=True, display_name="Alice"):
    calls = []

    async def send(text):
        calls.append(("send", text))

    async def delete():
        calls.append(("delete",))

    async def edit(**kwargs):
        calls.append(("edit", kwargs))

    message = SimpleNamespace(
        id=777,
        content=content,
        author=SimpleNamespace(id=author_id, name="alice", display_name=display_name),
        guild=SimpleNamespace(id=GUILD_ID) if guild else None,
        channel=SimpleNamespace(id=CHANNEL_ID, send=AsyncMock(side_effect=send)),
        delete=AsyncMock(side_effect=delete),
        edit=AsyncMock(side_effect=edit),
    )
    message.calls = calls
    return message


def make_service(store=None, limiter=None):
    bot = SimpleNamespace(user=SimpleNamespace(id=BOT_ID))
    return MessageProcessingService(
        bot,
        store or FakeConfigStore(),
        PatternEngine(),
        limiter or SlidingWindowRateLimiter(5, 1.0),
    )


def http_error(status=403, text="Missing Permissions"):
    response = MagicMock()
    response.status = status
    response.reason = text
    return discord.Forbidden(response, text)


@pytest.mark.asyncio
async def test_twitter_link_is_reposted_and_original_deleted():
    message = make_message("check this out https://twitter.com/alice/status/123")

    outcome = await make_service().process(message)

    assert outcome is ProcessingOutcome.DELIVERED
    assert message.calls == [
        ("send", f"[Twitter • alice](https://fxtwitter.com/alice/status/123) | Sent by <@{AUTHOR_ID}>"),
        ("delete",),
    ]


@pytest.mark.asyncio
async def test_reddit_with_embed_suppression_and_display_name():
    store = FakeConfigStore(GuildSettings(mention_users=False, delete_original=False))
    message = make_message("https://www.reddit.com/r/python/comments/abc/title", display_name="Bobby")

    outcome = await make_service(store).process(message)

    assert outcome is ProcessingOutcome.DELIVERED
    assert message.calls == [
        ("edit", {"suppress": True}),
        ("send", "[Reddit • python](https://vxreddit.ldez.workers.dev/r/python/comments/abc/title) | Sent by Bobby"),
    ]
    message.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_bot_messages_are_ignored():
    message = make_message("https://twitter.com/alice/status/1", author_id=BOT_ID)

    assert await make_service().process(message) is ProcessingOutcome.IGNORED_SELF
    assert message.calls == []


@pytest.mark.asyncio
async def test_direct_messages_are_ignored():
    store = FakeConfigStore()
    message = make_message("https://twitter.com/alice/status/1", guild=False)

    assert await make_service(store).process(message) is ProcessingOutcome.IGNORED_NO_GUILD
    assert store.requested == []
    assert message.calls == []


@pytest.mark.asyncio
async def test_malformed_guild_id_is_treated_as_no_guild():
    message = make_message("https://twitter.com/alice/status/1")
    message.guild = SimpleNamespace(id="not-a-snowflake")

    assert await make_service().process(message) is ProcessingOutcome.IGNORED_NO_GUILD


@pytest.mark.asyncio
async def test_deactivated_channel_is_skipped():
    store = FakeConfigStore(inactive=[CHANNEL_ID])
    message = make_message("https://twitter.com/alice/status/1")

    assert await make_service(store).process(message) is ProcessingOutcome.CHANNEL_INACTIVE
    assert message.calls == []


@pytest.mark.asyncio
async def test_suppressed_link_cancels_whole_message():
    message = make_message("<https://twitter.com/alice/status/1> and https://x.com/bob/status/2")

    assert await make_service().process(message) is ProcessingOutcome.SUPPRESSED
    assert message.calls == []


@pytest.mark.asyncio
async def test_plain_text_has_no_matches():
    message = make_message("hello world")
    assert await make_service().process(message) is ProcessingOutcome.NO_MATCHES


@pytest.mark.asyncio
async def test_disabled_service_is_skipped_silently():
    store = FakeConfigStore(GuildSettings(enabled_services=("Reddit",)))
    message = make_message("https://twitter.com/alice/status/1")

    assert await make_service(store).process(message) is ProcessingOutcome.SERVICES_DISABLED
    assert message.calls == []


@pytest.mark.asyncio
async def test_only_enabled_matches_are_posted():
    store = FakeConfigStore(GuildSettings(enabled_services=("Pixiv",)))
    message = make_message("https://twitter.com/a/status/1 https://pixiv.net/artworks/55")

    assert await make_service(store).process(message) is ProcessingOutcome.DELIVERED
    assert message.calls == [
        ("send", f"[Pixiv • 55](https://phixiv.net/artworks/55) | Sent by <@{AUTHOR_ID}>"),
        ("delete",),
    ]


@pytest.mark.asyncio
async def test_multiple_links_delete_original_once():
    message = make_message("https://twitter.com/a/status/1 https://bsky.app/profile/b.c/post/x")

    await make_service().process(message)

    assert [call[0] for call in message.calls] == ["send", "delete", "send"]
    message.delete.assert_awaited_once()


@pytest.mark.asyncio
async def test_multiple_links_suppress_embeds_once():
    store = FakeConfigStore(GuildSettings(delete_original=False))
    message = make_message("https://twitter.com/a/status/1 https://bsky.app/profile/b.c/post/x")

    await make_service(store).process(message)

    assert [call[0] for call in message.calls] == ["edit", "send", "send"]


@pytest.mark.asyncio
async def test_failed_send_keeps_original_message():
    message = make_message("https://twitter.com/alice/status/1")
    message.channel.send = AsyncMock(side_effect=http_error())

    assert await make_service().process(message) is ProcessingOutcome.DELIVERY_FAILED
    message.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_failure_is_logged_not_raised():
    message = make_message("https://twitter.com/alice/status/1")
    message.delete = AsyncMock(side_effect=http_error(404, "Unknown Message"))

    assert await make_service().process(message) is ProcessingOutcome.DELIVERED
    message.channel.send.assert_awaited_once()


@pytest.mark.asyncio
async def test_edit_failure_still_sends():
    store = FakeConfigStore(GuildSettings(delete_original=False))
    message = make_message("https://twitter.com/alice/status/1")
    message.edit = AsyncMock(side_effect=http_error())

    assert await make_service(store).process(message) is ProcessingOutcome.DELIVERED
    message.channel.send.assert_awaited_once()


@pytest.mark.asyncio
async def test_rate_limit_timeout_drops_the_rewrite():
    limiter = MagicMock()
    limiter.send = AsyncMock(side_effect=RateLimitTimeout("not admitted within 30s"))
    message = make_message("https://twitter.com/alice/status/1")

    assert await make_service(limiter=limiter).process(message) is ProcessingOutcome.DELIVERY_FAILED
    message.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_sends_go_through_the_rate_limiter():
    limiter = SlidingWindowRateLimiter(5, 1.0)
    service = make_service(limiter=limiter)
    messages = [make_message(f"https://twitter.com/u/status/{i}") for i in range(3)]

    outcomes = await asyncio.gather(*(service.process(message) for message in messages))

    assert outcomes == [ProcessingOutcome.DELIVERED] * 3
    assert limiter.in_window() == 3


@pytest.mark.asyncio
async def test_settings_are_resolved_for_the_message_guild():
    store = FakeConfigStore()
    await make_service(store).process(make_message("https://twitter.com/a/status/1"))
    assert store.requested == [GuildID(GUILD_ID)]


def test_format_outbound_and_attribution():
    author = SimpleNamespace(id=5, name="user5", display_name="Five")
    match = next(PatternEngine().match("https://x.com/five/status/9"))

    assert attribution_for(author, True) == "<@5>"
    assert attribution_for(author, False) == "Five"
    assert format_outbound(match, "Five") == "[Twitter • five](https://fixupx.com/five/status/9) | Sent by Five"
