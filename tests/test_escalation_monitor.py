from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from rulecord.datatypes.moderation_datatypes import FlagRecord, GuildConfig, MessageContext
from rulecord.moderation.escalation_monitor import EscalationMonitor
from rulecord.notifier.base import DeliveryResult

from conftest import CHANNEL, GUILD, MOD_CHANNEL, USER


def make_record(count):
    return FlagRecord(
        guild_id=GUILD,
        user_id=USER,
        flag_count=count,
        last_flagged_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


CONTEXT = MessageContext(
    guild_id=GUILD,
    channel_id=CHANNEL,
    user_id=USER,
    message_id=None,
    content="hello",
    author_name="someone",
)


@pytest.mark.parametrize("count,expected", [(1, False), (2, False), (3, True), (4, True)])
def test_check_escalation_at_or_above_threshold(count, expected):
    config = GuildConfig(guild_id=GUILD, flag_threshold=3)
    assert EscalationMonitor.check_escalation(config, make_record(count)) is expected


@pytest.mark.asyncio
async def test_escalate_sends_notice_to_moderator_channel(notifier):
    monitor = EscalationMonitor(notifier)
    config = GuildConfig(guild_id=GUILD, flag_threshold=3, moderator_channel_id=MOD_CHANNEL)

    fired = await monitor.escalate(CONTEXT, config, make_record(3))

    assert fired is True
    notifier.send_to_channel.assert_awaited_once()
    channel_id, payload = notifier.send_to_channel.await_args.args
    assert channel_id == MOD_CHANNEL
    assert payload.field_value("Flags") == "3"
    assert payload.field_value("Threshold") == "3"
    assert payload.footer == "Consider taking manual action"


@pytest.mark.asyncio
async def test_escalate_below_threshold_does_nothing(notifier):
    monitor = EscalationMonitor(notifier)
    config = GuildConfig(guild_id=GUILD, flag_threshold=3, moderator_channel_id=MOD_CHANNEL)

    assert await monitor.escalate(CONTEXT, config, make_record(2)) is False
    notifier.send_to_channel.assert_not_awaited()


@pytest.mark.asyncio
async def test_escalate_without_moderator_channel_still_fires(notifier):
    monitor = EscalationMonitor(notifier)
    config = GuildConfig(guild_id=GUILD, flag_threshold=1)

    assert await monitor.escalate(CONTEXT, config, make_record(1)) is True
    notifier.send_to_channel.assert_not_awaited()


@pytest.mark.asyncio
async def test_escalate_delivery_failure_is_not_raised():
    notifier = SimpleNamespace(send_to_channel=AsyncMock(side_effect=RuntimeError("gateway down")))
    monitor = EscalationMonitor(notifier)
    config = GuildConfig(guild_id=GUILD, flag_threshold=1, moderator_channel_id=MOD_CHANNEL)

    assert await monitor.escalate(CONTEXT, config, make_record(1)) is True


@pytest.mark.asyncio
async def test_escalate_failed_result_is_logged_not_raised():
    notifier = SimpleNamespace(send_to_channel=AsyncMock(return_value=DeliveryResult.failure("Forbidden")))
    monitor = EscalationMonitor(notifier)
    config = GuildConfig(guild_id=GUILD, flag_threshold=1, moderator_channel_id=MOD_CHANNEL)

    assert await monitor.escalate(CONTEXT, config, make_record(5)) is True
