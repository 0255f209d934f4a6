import pytest

from rulecord.datatypes.discord_datatypes import GuildID
from rulecord.datatypes.rule_datatypes import Rule, RuleAction, RuleKind
from rulecord.moderation.rule_evaluator import RuleEvaluator, first_matching_rule, rule_matches

from conftest import GUILD


def make_rule(rule_id, kind, pattern, action=RuleAction.FLAG, enabled=True):
    return Rule(id=rule_id, guild_id=GUILD, kind=kind, pattern=pattern, action=action, enabled=enabled)


def test_rule_matches_dispatches_on_kind():
    assert rule_matches(make_rule(1, RuleKind.KEYWORD, "spam"), "SPAM here")
    assert rule_matches(make_rule(2, RuleKind.REGEX, r"^hello\b"), "Hello world")
    assert rule_matches(make_rule(3, RuleKind.SPAM, "spam"), "aaaaaaaaa")
    assert rule_matches(make_rule(4, RuleKind.CAPS, "caps"), "STOP SHOUTING NOW")


def test_rule_matches_unrecognized_kind_never_matches():
    assert not rule_matches(make_rule(1, RuleKind.UNRECOGNIZED, "anything"), "anything")


def test_first_matching_rule_prefers_lowest_id():
    rules = [
        make_rule(5, RuleKind.KEYWORD, "bad", RuleAction.WARN),
        make_rule(2, RuleKind.REGEX, r"b.d", RuleAction.SUPPRESS),
    ]
    matched = first_matching_rule(rules, "a bad message")
    assert matched is not None
    assert matched.id == 2


def test_first_matching_rule_skips_disabled_and_broken_rules():
    rules = [
        make_rule(1, RuleKind.KEYWORD, "bad", enabled=False),
        make_rule(2, RuleKind.REGEX, "[unclosed"),
        make_rule(3, RuleKind.KEYWORD, "bad"),
    ]
    matched = first_matching_rule(rules, "bad [unclosed")
    assert matched is not None
    assert matched.id == 3


def test_first_matching_rule_no_rules():
    assert first_matching_rule([], "anything at all") is None


@pytest.mark.asyncio
async def test_evaluate_without_rules_returns_none(db, guild):
    evaluator = RuleEvaluator(db)
    assert await evaluator.evaluate(guild, "any text") is None


@pytest.mark.asyncio
async def test_evaluate_returns_first_enabled_rule_in_creation_order(db, admin, guild):
    first = await admin.add_rule(guild, "keyword", "bad", "warn")
    second = await admin.add_rule(guild, "keyword", "bad", "suppress")
    evaluator = RuleEvaluator(db)

    matched = await evaluator.evaluate(guild, "so bad")
    assert matched.id == first.id

    await admin.toggle_rule(guild, first.id, False)
    matched = await evaluator.evaluate(guild, "so bad")
    assert matched.id == second.id


@pytest.mark.asyncio
async def test_evaluate_is_scoped_to_guild(db, admin, guild):
    await admin.add_rule(guild, "keyword", "bad", "flag")
    other = GuildID(4242)
    await admin.ensure_guild(other, "Other")

    evaluator = RuleEvaluator(db)
    assert await evaluator.evaluate(other, "so bad") is None


@pytest.mark.asyncio
async def test_evaluate_skips_unrecognized_rows(db, guild):
    async with db.transaction() as conn:
        await conn.execute(
            "INSERT INTO moderation_rules (guild_id, rule_type, pattern, action, enabled, created_at) "
            "VALUES (?, 'profanity', 'bad', 'flag', 1, 0)",
            (int(guild),),
        )
        await conn.execute(
            "INSERT INTO moderation_rules (guild_id, rule_type, pattern, action, enabled, created_at) "
            "VALUES (?, 'keyword', 'bad', 'delete', 1, 0)",
            (int(guild),),
        )

    matched = await RuleEvaluator(db).evaluate(guild, "bad")
    assert matched is not None
    assert matched.kind is RuleKind.KEYWORD
    assert matched.action is RuleAction.SUPPRESS
