import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from rulecord.datatypes.discord_datatypes import ChannelID, MessageID, UserID
from rulecord.notifier.base import DeliveryResult, NotificationPayload, Notifier
from rulecord.notifier.discord_notifier import DiscordNotifier, payload_to_embed


def make_channel():
    partial = SimpleNamespace(delete=AsyncMock())
    return SimpleNamespace(
        send=AsyncMock(),
        get_partial_message=MagicMock(return_value=partial),
        partial=partial,
    )


def make_bot(channel=None, user=None):
    return SimpleNamespace(
        get_channel=MagicMock(return_value=channel),
        fetch_channel=AsyncMock(return_value=channel),
        get_user=MagicMock(return_value=user),
        fetch_user=AsyncMock(return_value=user),
    )


def test_discord_notifier_satisfies_protocol():
    assert isinstance(DiscordNotifier(make_bot(), timeout_seconds=1), Notifier)


def test_payload_to_embed():
    stamp = datetime(2024, 5, 1, tzinfo=timezone.utc)
    payload = NotificationPayload(title="Title", color=0xFF0000, description="desc", footer="foot", timestamp=stamp)
    payload.add_field("User", "<@1>", inline=True).add_field("Content", "hello")

    embed = payload_to_embed(payload)

    assert embed.title == "Title"
    assert embed.description == "desc"
    assert embed.color.value == 0xFF0000
    assert [(f.name, f.value, f.inline) for f in embed.fields] == [("User", "<@1>", True), ("Content", "hello", False)]
    assert embed.footer.text == "foot"
    assert embed.timestamp == stamp


@pytest.mark.asyncio
async def test_delete_message_uses_cached_channel():
    channel = make_channel()
    bot = make_bot(channel=channel)
    notifier = DiscordNotifier(bot, timeout_seconds=1)

    result = await notifier.delete_message(ChannelID(10), MessageID(20))

    assert result == DeliveryResult.success()
    channel.get_partial_message.assert_called_once_with(20)
    channel.partial.delete.assert_awaited_once()
    bot.fetch_channel.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_to_channel_fetches_uncached_channel():
    channel = make_channel()
    bot = make_bot(channel=None)
    bot.fetch_channel = AsyncMock(return_value=channel)
    notifier = DiscordNotifier(bot, timeout_seconds=1)

    result = await notifier.send_to_channel(ChannelID(10), NotificationPayload(title="t", color=0))

    assert result.ok
    bot.fetch_channel.assert_awaited_once_with(10)
    embed = channel.send.await_args.kwargs["embed"]
    assert isinstance(embed, discord.Embed)


@pytest.mark.asyncio
async def test_send_direct_message():
    user = SimpleNamespace(send=AsyncMock())
    notifier = DiscordNotifier(make_bot(user=user), timeout_seconds=1)

    result = await notifier.send_direct_message(UserID(5), "please stop")

    assert result.ok
    user.send.assert_awaited_once_with("please stop")


@pytest.mark.asyncio
async def test_forbidden_becomes_failure():
    user = SimpleNamespace(
        send=AsyncMock(side_effect=discord.Forbidden(SimpleNamespace(status=403, reason="Forbidden"), "Cannot send messages to this user"))
    )
    notifier = DiscordNotifier(make_bot(user=user), timeout_seconds=1)

    result = await notifier.send_direct_message(UserID(5), "hi")

    assert not result.ok
    assert "Forbidden" in result.error


@pytest.mark.asyncio
async def test_unexpected_error_becomes_failure():
    bot = make_bot(channel=None)
    bot.fetch_channel = AsyncMock(side_effect=RuntimeError("boom"))
    notifier = DiscordNotifier(bot, timeout_seconds=1)

    result = await notifier.delete_message(ChannelID(1), MessageID(2))

    assert not result.ok
    assert "boom" in result.error


@pytest.mark.asyncio
async def test_slow_call_times_out():
    async def slow_send(*args, **kwargs):
        await asyncio.sleep(1)

    channel = make_channel()
    channel.send = slow_send
    notifier = DiscordNotifier(make_bot(channel=channel), timeout_seconds=0.01)

    result = await notifier.send_to_channel(ChannelID(1), NotificationPayload(title="t", color=0))

    assert not result.ok
    assert "timed out" in result.error
