"""
Rule evaluation: first enabled rule (by id) whose matcher fires.

Rules are re-read from the database on every call, so administrative
changes apply to the next message without any cache invalidation.
"""

from __future__ import annotations

from typing import Iterable

from rulecord.database.db_connection import ConnectionManager
from rulecord.datatypes.discord_datatypes import GuildID
from rulecord.datatypes.rule_datatypes import Rule, RuleKind
from rulecord.moderation import matchers
from rulecord.repositories.rule_repo import RuleRepository
from rulecord.util.logger import get_logger

logger = get_logger("rule_evaluator")


def rule_matches(rule: Rule, text: str) -> bool:
    """Apply the matcher for ``rule.kind`` to ``text``."""
    match rule.kind:
        case RuleKind.KEYWORD:
            return matchers.matches_keyword(text, rule.pattern)
        case RuleKind.REGEX:
            return matchers.matches_regex(text, rule.pattern, rule_id=rule.id)
        case RuleKind.SPAM:
            return matchers.is_spam(text)
        case RuleKind.CAPS:
            return matchers.is_caps_spam(text)
        case RuleKind.UNRECOGNIZED:
            logger.warning("[RULE EVALUATOR] Skipping rule #%s with unrecognized kind", rule.id)
            return False


def first_matching_rule(rules: Iterable[Rule], text: str) -> Rule | None:
    """Return the lowest-id enabled rule that matches, or None."""
    for rule in sorted(rules, key=lambda r: r.id):
        if rule.enabled and rule_matches(rule, text):
            return rule
    return None


class RuleEvaluator:
    """Classifies message text against a guild's rule set."""

    def __init__(self, db: ConnectionManager, rules: RuleRepository | None = None) -> None:
        self._db = db
        self._rules = rules or RuleRepository()

    async def evaluate(self, guild_id: GuildID, text: str) -> Rule | None:
        """
        Return the first violated rule for this guild, or None.

        Read-only: neither rules nor guild state are touched.
        """
        async with self._db.read() as conn:
            rules = await self._rules.enabled_rules_for_guild(conn, guild_id)

        if not rules:
            return None

        matched = first_matching_rule(rules, text or "")
        if matched is not None:
            logger.debug(
                "[RULE EVALUATOR] Guild %s: message matched rule #%d (%s)",
                guild_id,
                matched.id,
                matched.describe(),
            )
        return matched
