"""Message listener Cog for rulecord.

This cog has exactly ONE responsibility: listen to Discord message events and
forward qualifying guild messages to the ModerationEngine.

Rule evaluation, actions, flags and logging all live in the moderation
package, NOT here.
"""

import discord
from discord.ext import commands

from rulecord.moderation.moderation_engine import ModerationEngine
from rulecord.util.logger import get_logger

logger = get_logger("message_listener_cog")


def should_process_message(message: discord.Message) -> bool:
    """Only guild messages from human authors are moderated."""
    if message.guild is None:
        return False
    if message.author.bot:
        return False
    return True


class MessageListenerCog(commands.Cog):
    """
    Thin event listener that forwards messages to the moderation engine.

    Parameters
    ----------
    bot:
        Discord bot instance.
    engine:
        Evaluates each message and performs the matched rule's action.
    """

    def __init__(self, bot: discord.Bot, engine: ModerationEngine) -> None:
        self.bot = bot
        self._engine = engine
        logger.info("[MESSAGE LISTENER] Message listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message) -> None:
        """Filter, then hand the message to the engine."""
        if not should_process_message(message):
            return

        logger.debug(
            "Received message from %s: %s",
            message.author,
            (message.content or "[no text]")[:80],
        )

        await self._engine.on_message(
            message.guild.id,
            message.channel.id,
            message.author.id,
            message.id,
            message.content or "",
            str(message.author),
        )


def setup(bot: discord.Bot, engine: ModerationEngine) -> None:
    """Register the MessageListenerCog with the bot."""
    bot.add_cog(MessageListenerCog(bot, engine))
