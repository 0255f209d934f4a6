"""
Data structures shared by the moderation pipeline.

- ``GuildConfig``: per-guild settings read on every evaluated message
- ``MessageContext``: the inbound message being moderated
- ``FlagRecord``: one row of the flag ledger
- ``AuditAction`` / ``AuditEntry``: the append-only moderation log
- ``DispatchOutcome``: what a single dispatch actually managed to do
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from rulecord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID


def utc_from_timestamp(value: int | float | None) -> datetime | None:
    """Convert stored unix seconds into an aware UTC datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


@dataclass(slots=True)
class GuildConfig:
    """Per-guild moderation settings.

    Attributes:
        guild_id: Guild the settings belong to
        name: Guild name at registration time
        auto_moderation_enabled: When False no message is evaluated
        flag_threshold: Flag count at which moderators are alerted (>= 1)
        moderator_channel_id: Channel receiving moderator notices, if any
    """
    guild_id: GuildID
    name: str = ""
    auto_moderation_enabled: bool = True
    flag_threshold: int = 3
    moderator_channel_id: ChannelID | None = None


@dataclass(slots=True, frozen=True)
class MessageContext:
    """The message a rule matched, as seen by the dispatcher."""
    guild_id: GuildID
    channel_id: ChannelID
    user_id: UserID
    message_id: MessageID | None
    content: str
    author_name: str | None = None

    @property
    def author_display(self) -> str:
        mention = f"<@{self.user_id}>"
        return f"{mention} ({self.author_name})" if self.author_name else mention


@dataclass(slots=True, frozen=True)
class FlagRecord:
    """Accumulated violations of one user in one guild."""
    guild_id: GuildID
    user_id: UserID
    flag_count: int
    last_flagged_at: datetime
    notes: str | None = None


class AuditAction(Enum):
    """Decisions recorded in the moderation log."""

    DELETE = "delete"
    FLAG = "flag"
    WARN = "warn"
    MANUAL_FLAG = "manual_flag"
    UNFLAG = "unflag"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class AuditEntry:
    """One immutable moderation log entry.

    ``id`` and ``created_at`` are assigned by the store; entries built for
    ``AuditLog.record`` leave them unset.
    """
    guild_id: GuildID
    channel_id: ChannelID
    user_id: UserID
    action: AuditAction | str
    reason: str | None = None
    moderator_id: UserID | None = None
    message_snapshot: str | None = None
    message_ref: str | None = None
    id: int | None = None
    created_at: datetime | None = None

    @property
    def action_name(self) -> str:
        return self.action.value if isinstance(self.action, AuditAction) else str(self.action)

    @property
    def is_automatic(self) -> bool:
        return self.moderator_id is None


@dataclass(slots=True)
class DispatchOutcome:
    """Per-step result of one dispatch. Failed steps are already logged."""
    deleted: bool = False
    flagged: bool = False
    warned: bool = False
    moderators_notified: bool = False
    escalated: bool = False
    flag_record: FlagRecord | None = None
    audit_ids: list[int] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures
