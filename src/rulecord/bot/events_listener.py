"""Event listener Cog for rulecord.

This cog has exactly ONE responsibility: handle bot lifecycle events
(on_ready, on_guild_join, on_guild_remove). Guild registration and cleanup
go through the AdminService.
"""

import discord
from discord.ext import commands

from rulecord.datatypes.discord_datatypes import GuildID
from rulecord.services.admin_service import AdminService
from rulecord.util.logger import get_logger

logger = get_logger("events_listener")


class EventsListenerCog(commands.Cog):
    """Handles Discord bot lifecycle events."""

    def __init__(self, bot: discord.Bot, admin: AdminService) -> None:
        self.bot = bot
        self._admin = admin
        logger.info("[EVENTS LISTENER] Events listener cog loaded")

    # ------------------------------------------------------------------
    # Lifecycle events
    # ------------------------------------------------------------------

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self) -> None:
        """Register every guild the bot is already in and set presence."""
        if not self.bot.user:
            logger.warning("[EVENTS LISTENER] Bot partially connected, user info not yet available.")
            return

        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(type=discord.ActivityType.watching, name="for rule violations"),
        )
        logger.info("Bot connected as %s (ID: %s)", self.bot.user, self.bot.user.id)

        for guild in self.bot.guilds:
            try:
                await self._admin.ensure_guild(GuildID(guild.id), guild.name)
            except Exception:
                logger.exception("[EVENTS LISTENER] Failed to register guild %s", guild.id)

    @commands.Cog.listener(name="on_guild_join")
    async def on_guild_join(self, guild: discord.Guild) -> None:
        """Register a newly joined guild with default settings."""
        logger.debug("[EVENTS LISTENER] Bot joined guild: %s (ID: %s)", guild.name, guild.id)

        config = await self._admin.ensure_guild(GuildID(guild.id), guild.name)
        logger.info(
            "[EVENTS LISTENER] Initialized settings for guild '%s' (threshold=%d)",
            guild.name,
            config.flag_threshold,
        )

    @commands.Cog.listener(name="on_guild_remove")
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        """Delete all guild data when the bot leaves a server."""
        logger.debug("[EVENTS LISTENER] Bot removed from guild: %s (ID: %s)", guild.name, guild.id)

        if await self._admin.remove_guild(GuildID(guild.id)):
            logger.info("[EVENTS LISTENER] Cleaned up data for guild '%s' (ID: %s)", guild.name, guild.id)
        else:
            logger.warning("[EVENTS LISTENER] No stored data for guild '%s' (ID: %s)", guild.name, guild.id)


def setup(bot: discord.Bot, admin: AdminService) -> None:
    """Register the EventsListenerCog with the bot."""
    bot.add_cog(EventsListenerCog(bot, admin))
