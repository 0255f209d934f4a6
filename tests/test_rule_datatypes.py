import pytest

from rulecord.datatypes.discord_datatypes import GuildID
from rulecord.datatypes.rule_datatypes import Rule, RuleAction, RuleKind


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("keyword", RuleKind.KEYWORD),
        (" REGEX ", RuleKind.REGEX),
        ("spam", RuleKind.SPAM),
        ("caps", RuleKind.CAPS),
        ("profanity", RuleKind.UNRECOGNIZED),
        (None, RuleKind.UNRECOGNIZED),
    ],
)
def test_rule_kind_parse(raw, expected):
    assert RuleKind.parse(raw) is expected


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("suppress", RuleAction.SUPPRESS),
        ("flag", RuleAction.FLAG),
        ("suppress_and_flag", RuleAction.SUPPRESS_AND_FLAG),
        ("warn", RuleAction.WARN),
        ("delete", RuleAction.SUPPRESS),
        ("delete_and_flag", RuleAction.SUPPRESS_AND_FLAG),
        ("ban", RuleAction.UNRECOGNIZED),
        ("", RuleAction.UNRECOGNIZED),
    ],
)
def test_rule_action_parse_accepts_legacy_names(raw, expected):
    assert RuleAction.parse(raw) is expected


def test_rule_kind_requires_pattern():
    assert RuleKind.KEYWORD.requires_pattern
    assert RuleKind.REGEX.requires_pattern
    assert not RuleKind.SPAM.requires_pattern
    assert not RuleKind.CAPS.requires_pattern


def test_rule_action_properties():
    assert RuleAction.SUPPRESS_AND_FLAG.suppresses and RuleAction.SUPPRESS_AND_FLAG.flags
    assert RuleAction.SUPPRESS.suppresses and not RuleAction.SUPPRESS.flags
    assert not RuleAction.WARN.suppresses and not RuleAction.WARN.flags


def test_rule_describe():
    rule = Rule(id=1, guild_id=GuildID(1), kind=RuleKind.KEYWORD, pattern="spamword", action=RuleAction.FLAG)
    assert rule.describe() == "keyword - spamword"
    assert str(rule.action) == "flag"
