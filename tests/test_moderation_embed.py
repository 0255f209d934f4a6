from datetime import datetime, timezone

from rulecord.datatypes.moderation_datatypes import FlagRecord, GuildConfig, MessageContext
from rulecord.datatypes.rule_datatypes import Rule, RuleAction, RuleKind
from rulecord.moderation.moderation_embed import (
    EMPTY_CONTENT,
    build_action_notice,
    build_escalation_notice,
    excerpt,
)

from conftest import CHANNEL, GUILD, USER


def make_context(content="hello world"):
    return MessageContext(
        guild_id=GUILD, channel_id=CHANNEL, user_id=USER, message_id=None, content=content, author_name="someone"
    )


def test_excerpt_truncates_and_handles_empty():
    assert excerpt("x" * 2000) == "x" * 1024
    assert excerpt("short", limit=3) == "sho"
    assert excerpt("") == EMPTY_CONTENT
    assert excerpt(None) == EMPTY_CONTENT


def test_action_notice_fields():
    rule = Rule(id=1, guild_id=GUILD, kind=RuleKind.SPAM, pattern="spam", action=RuleAction.SUPPRESS_AND_FLAG)

    payload = build_action_notice(make_context("y" * 1500), rule)

    assert payload.field_value("User") == f"<@{USER}> (someone)"
    assert payload.field_value("Channel") == f"<#{CHANNEL}>"
    assert payload.field_value("Action") == "suppress_and_flag"
    assert payload.field_value("Rule Type") == "spam"
    assert len(payload.field_value("Message Content")) == 1024


def test_escalation_notice_fields():
    record = FlagRecord(
        guild_id=GUILD,
        user_id=USER,
        flag_count=4,
        last_flagged_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    config = GuildConfig(guild_id=GUILD, flag_threshold=3)

    payload = build_escalation_notice(make_context(), config, record)

    assert payload.field_value("Flags") == "4"
    assert payload.field_value("Threshold") == "3"
    assert payload.field_value("Last Flagged") == f"<t:{int(record.last_flagged_at.timestamp())}:R>"
    assert "flagged 4 times" in payload.description


def test_notice_fields_fit_discord_field_limit():
    context = MessageContext(
        guild_id=GUILD, channel_id=CHANNEL, user_id=USER, message_id=None, content="z" * 3000, author_name="n" * 2000
    )
    rule = Rule(id=2, guild_id=GUILD, kind=RuleKind.REGEX, pattern="a" * 1500, action=RuleAction.FLAG)
    record = FlagRecord(
        guild_id=GUILD,
        user_id=USER,
        flag_count=3,
        last_flagged_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )

    action = build_action_notice(context, rule)
    escalation = build_escalation_notice(context, GuildConfig(guild_id=GUILD, flag_threshold=3), record)

    assert len(action.field_value("Pattern")) == 1024
    for payload in (action, escalation):
        assert payload.fields
        assert all(len(f.value) <= 1024 for f in payload.fields)
