"""
Payload builders for moderator-channel notices.
"""

import datetime

from rulecord.configuration.app_configuration import app_config
from rulecord.datatypes.moderation_datatypes import FlagRecord, GuildConfig, MessageContext
from rulecord.datatypes.rule_datatypes import Rule
from rulecord.notifier.base import NotificationPayload

ACTION_NOTICE_COLOR = 0xFF9900
ESCALATION_NOTICE_COLOR = 0xFF0000

EMPTY_CONTENT = "*[No content]*"


def excerpt(content: str | None, limit: int | None = None) -> str:
    """First ``limit`` characters of ``content`` (1024 by default).

    Discord rejects embed field values longer than 1024 characters, so every
    free-text field goes through here.
    """
    limit = limit or app_config.excerpt_limit
    return (content or "")[:limit] or EMPTY_CONTENT


def build_action_notice(context: MessageContext, rule: Rule) -> NotificationPayload:
    """Summary of an automatic action for the moderator channel."""
    payload = NotificationPayload(
        title="🛡️ Automatic Moderation Action",
        color=ACTION_NOTICE_COLOR,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    payload.add_field("User", excerpt(context.author_display), inline=True)
    payload.add_field("Channel", f"<#{context.channel_id}>", inline=True)
    payload.add_field("Action", rule.action.value, inline=True)
    payload.add_field("Rule Type", rule.kind.value, inline=True)
    payload.add_field("Pattern", excerpt(rule.pattern or rule.kind.value), inline=True)
    payload.add_field("Message Content", excerpt(context.content))
    return payload


def build_escalation_notice(context: MessageContext, config: GuildConfig, record: FlagRecord) -> NotificationPayload:
    """Alert sent when a user's flag count reaches the guild threshold."""
    last_flagged = int(record.last_flagged_at.timestamp())
    payload = NotificationPayload(
        title="⚠️ User Flag Threshold Exceeded",
        color=ESCALATION_NOTICE_COLOR,
        description=(
            f"<@{record.user_id}> has been flagged {record.flag_count} times "
            f"(threshold: {config.flag_threshold})"
        ),
        footer="Consider taking manual action",
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    payload.add_field("User", excerpt(context.author_display), inline=True)
    payload.add_field("Flags", str(record.flag_count), inline=True)
    payload.add_field("Threshold", str(config.flag_threshold), inline=True)
    payload.add_field("Last Flagged", f"<t:{last_flagged}:R>", inline=True)
    return payload
