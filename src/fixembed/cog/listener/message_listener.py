"""Message listener Cog for FixEmbed.

This cog has exactly ONE responsibility: listen to Discord message events and
hand each one to the MessageProcessingService.

All matching, settings lookups, rate limiting and delivery live in the service
layer, NOT here.
"""

import discord
from discord.ext import commands

from fixembed.services.message_processing_service import MessageProcessingService
from fixembed.util.logger import get_logger

logger = get_logger("message_listener_cog")


class MessageListenerCog(commands.Cog):
    """
    Thin event listener that forwards messages to the processing service.

    Parameters
    ----------
    bot:
        Discord bot instance.
    processing_service:
        Rewrites links found in the message.
    """

    def __init__(self, bot: discord.Bot, processing_service: MessageProcessingService) -> None:
        self.bot = bot
        self._processing_service = processing_service
        logger.info("[MESSAGE LISTENER] Message listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message) -> None:
        outcome = await self._processing_service.process(message)
        logger.debug("[MESSAGE LISTENER] Message %s -> %s", message.id, outcome.value)


def setup(bot: discord.Bot, processing_service: MessageProcessingService) -> None:
    """Register the MessageListenerCog with the bot."""
    bot.add_cog(MessageListenerCog(bot, processing_service))
