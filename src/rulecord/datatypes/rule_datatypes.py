"""
Rule kinds, rule actions and the Rule record.

Rules are stored with their kind and action as plain strings. Parsing goes
through ``RuleKind.parse`` / ``RuleAction.parse`` so rows written by older
versions (or edited by hand) never crash the pipeline: anything unknown
becomes ``UNRECOGNIZED`` and is skipped with a warning.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from rulecord.datatypes.discord_datatypes import GuildID


class RuleKind(Enum):
    """How a rule's pattern is matched against message text."""

    KEYWORD = "keyword"
    REGEX = "regex"
    SPAM = "spam"
    CAPS = "caps"
    UNRECOGNIZED = "unrecognized"

    def __str__(self) -> str:
        return self.value

    @property
    def requires_pattern(self) -> bool:
        return self in (RuleKind.KEYWORD, RuleKind.REGEX)

    @classmethod
    def parse(cls, raw: str | None) -> "RuleKind":
        try:
            kind = cls(str(raw or "").strip().lower())
        except ValueError:
            return cls.UNRECOGNIZED
        return kind


class RuleAction(Enum):
    """What happens to a message (and its author) when a rule matches."""

    SUPPRESS = "suppress"
    FLAG = "flag"
    SUPPRESS_AND_FLAG = "suppress_and_flag"
    WARN = "warn"
    UNRECOGNIZED = "unrecognized"

    def __str__(self) -> str:
        return self.value

    @property
    def suppresses(self) -> bool:
        return self in (RuleAction.SUPPRESS, RuleAction.SUPPRESS_AND_FLAG)

    @property
    def flags(self) -> bool:
        return self in (RuleAction.FLAG, RuleAction.SUPPRESS_AND_FLAG)

    @classmethod
    def parse(cls, raw: str | None) -> "RuleAction":
        value = str(raw or "").strip().lower()
        value = LEGACY_ACTION_NAMES.get(value, value)
        try:
            return cls(value)
        except ValueError:
            return cls.UNRECOGNIZED


# Action names used by the first release of the bot
LEGACY_ACTION_NAMES = {
    "delete": RuleAction.SUPPRESS.value,
    "delete_and_flag": RuleAction.SUPPRESS_AND_FLAG.value,
}


@dataclass(slots=True, frozen=True)
class Rule:
    """A guild-configured (pattern, action) pair.

    Attributes:
        id: Creation sequence number; rules are evaluated in ascending id order
        guild_id: Guild the rule belongs to
        kind: Matcher used for ``pattern``
        pattern: Keyword or regular expression (kind name for spam/caps rules)
        action: Action performed on a match
        enabled: Disabled rules are never evaluated
        created_at: When the rule was created, if known
    """
    id: int
    guild_id: GuildID
    kind: RuleKind
    pattern: str
    action: RuleAction
    enabled: bool = True
    created_at: datetime | None = None

    def describe(self) -> str:
        """Short human description used in audit reasons and notes."""
        return f"{self.kind.value} - {self.pattern}"
