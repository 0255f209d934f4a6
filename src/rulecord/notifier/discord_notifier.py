"""
py-cord implementation of the ``Notifier`` protocol.

Each call is bounded by ``asyncio.wait_for`` and every failure (missing
channel, missing permissions, closed DMs, HTTP errors, timeouts) becomes a
failed ``DeliveryResult``.
"""

from __future__ import annotations

import asyncio

import discord

from rulecord.configuration.app_configuration import app_config
from rulecord.datatypes.discord_datatypes import ChannelID, MessageID, UserID
from rulecord.notifier.base import DeliveryResult, NotificationPayload
from rulecord.util.logger import get_logger

logger = get_logger("discord_notifier")


def payload_to_embed(payload: NotificationPayload) -> discord.Embed:
    """Render a transport-neutral payload as a Discord embed."""
    embed = discord.Embed(
        title=payload.title,
        description=payload.description,
        color=discord.Color(payload.color),
        timestamp=payload.timestamp,
    )
    for payload_field in payload.fields:
        embed.add_field(name=payload_field.name, value=payload_field.value, inline=payload_field.inline)
    if payload.footer:
        embed.set_footer(text=payload.footer)
    return embed


class DiscordNotifier:
    """Delivers deletions, DMs and moderator notices through a py-cord bot."""

    def __init__(self, bot: discord.Bot, timeout_seconds: float | None = None) -> None:
        self._bot = bot
        self._timeout = timeout_seconds if timeout_seconds is not None else app_config.notifier_timeout_seconds

    async def _resolve_channel(self, channel_id: ChannelID):
        channel = self._bot.get_channel(channel_id.to_int())
        if channel is None:
            channel = await self._bot.fetch_channel(channel_id.to_int())
        return channel

    async def _resolve_user(self, user_id: UserID):
        user = self._bot.get_user(user_id.to_int())
        if user is None:
            user = await self._bot.fetch_user(user_id.to_int())
        return user

    async def _bounded(self, operation: str, coro) -> DeliveryResult:
        try:
            await asyncio.wait_for(coro, timeout=self._timeout)
            return DeliveryResult.success()
        except asyncio.TimeoutError:
            logger.warning("[DISCORD NOTIFIER] %s timed out after %.1fs", operation, self._timeout)
            return DeliveryResult.failure(f"{operation} timed out")
        except discord.Forbidden as exc:
            logger.debug("[DISCORD NOTIFIER] %s forbidden: %s", operation, exc)
            return DeliveryResult.failure(exc)
        except discord.NotFound as exc:
            return DeliveryResult.failure(exc)
        except discord.HTTPException as exc:
            logger.error("[DISCORD NOTIFIER] %s failed: %s", operation, exc)
            return DeliveryResult.failure(exc)
        except Exception as exc:
            logger.exception("[DISCORD NOTIFIER] Unexpected error during %s", operation)
            return DeliveryResult.failure(exc)

    async def delete_message(self, channel_id: ChannelID, message_id: MessageID) -> DeliveryResult:
        async def _delete() -> None:
            channel = await self._resolve_channel(channel_id)
            await channel.get_partial_message(message_id.to_int()).delete()

        return await self._bounded(f"delete message {message_id}", _delete())

    async def send_direct_message(self, user_id: UserID, text: str) -> DeliveryResult:
        async def _send() -> None:
            user = await self._resolve_user(user_id)
            await user.send(text)

        return await self._bounded(f"DM to user {user_id}", _send())

    async def send_to_channel(self, channel_id: ChannelID, payload: NotificationPayload) -> DeliveryResult:
        async def _send() -> None:
            channel = await self._resolve_channel(channel_id)
            await channel.send(embed=payload_to_embed(payload))

        return await self._bounded(f"notice to channel {channel_id}", _send())
