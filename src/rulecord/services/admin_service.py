"""
Administrative entry points for a command layer.

These are plain async functions over the same ledger, audit log and
repositories the moderation engine uses. They validate input and raise
``RuleValidationError`` / ``ConfigValidationError`` for bad values; they do
no permission checks, reply formatting or limit clamping.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from typing import Callable, List

from rulecord.configuration.app_configuration import app_config
from rulecord.database.db_connection import ConnectionManager
from rulecord.datatypes.discord_datatypes import ChannelID, GuildID, UserID
from rulecord.datatypes.moderation_datatypes import AuditAction, AuditEntry, FlagRecord, GuildConfig
from rulecord.datatypes.rule_datatypes import Rule, RuleAction, RuleKind
from rulecord.errors import ConfigValidationError, RuleValidationError
from rulecord.moderation.audit_log import AuditLog
from rulecord.moderation.flag_ledger import FlagLedger
from rulecord.moderation.matchers import compile_rule_pattern
from rulecord.repositories.guild_config_repo import GuildConfigRepository
from rulecord.repositories.rule_repo import RuleRepository
from rulecord.util.logger import get_logger

logger = get_logger("admin_service")

DEFAULT_MANUAL_FLAG_REASON = "Manually flagged by moderator"
UNFLAG_REASON = "Flags removed by moderator"
RECENT_ACTIVITY_LIMIT = 10


@dataclass(slots=True)
class UserFlagSummary:
    """A user's flag record plus their most recent audit entries."""
    user_id: UserID
    record: FlagRecord | None
    recent_entries: List[AuditEntry] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return self.record is None


def validate_rule(kind: RuleKind | str, pattern: str | None, action: RuleAction | str) -> tuple[RuleKind, str, RuleAction]:
    """
    Normalise and validate a rule before it is stored.

    Returns ``(kind, pattern, action)``. The pattern is stored as typed,
    surrounding whitespace included. Spam and caps rules with a blank
    pattern default it to the kind name.

    Raises:
        RuleValidationError: unknown kind/action, missing pattern for
            keyword/regex, or a regex that does not compile.
    """
    parsed_kind = kind if isinstance(kind, RuleKind) else RuleKind.parse(kind)
    parsed_action = action if isinstance(action, RuleAction) else RuleAction.parse(action)
    pattern = pattern or ""

    if parsed_kind is RuleKind.UNRECOGNIZED:
        raise RuleValidationError(f"Unknown rule type: {kind!r}", kind=str(kind), pattern=pattern)
    if parsed_action is RuleAction.UNRECOGNIZED:
        raise RuleValidationError(f"Unknown rule action: {action!r}", kind=parsed_kind.value, pattern=pattern)

    if parsed_kind.requires_pattern and not pattern.strip():
        raise RuleValidationError(
            f"You must provide a pattern for {parsed_kind.value} rules.",
            kind=parsed_kind.value,
        )

    if parsed_kind is RuleKind.REGEX:
        try:
            compile_rule_pattern(pattern)
        except re.error as exc:
            raise RuleValidationError(
                f"The pattern is not a valid regular expression: {exc}",
                kind=parsed_kind.value,
                pattern=pattern,
            ) from exc

    return parsed_kind, pattern if pattern.strip() else parsed_kind.value, parsed_action


class AdminService:
    """Guild, rule, flag and log administration."""

    def __init__(
        self,
        db: ConnectionManager,
        ledger: FlagLedger,
        audit_log: AuditLog,
        *,
        rules: RuleRepository | None = None,
        guild_configs: GuildConfigRepository | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db = db
        self._ledger = ledger
        self._audit_log = audit_log
        self._rules = rules or RuleRepository()
        self._guild_configs = guild_configs or GuildConfigRepository()
        self._clock = clock

    # ------------------------------------------------------------------
    # Guild configuration
    # ------------------------------------------------------------------

    async def ensure_guild(self, guild_id: GuildID, name: str = "") -> GuildConfig:
        """Register the guild with default settings if it is new; return its config."""
        async with self._db.transaction() as conn:
            created = await self._guild_configs.ensure(
                conn, guild_id, name, flag_threshold=app_config.default_flag_threshold
            )
            config = await self._guild_configs.get(conn, guild_id)
        if created:
            logger.info("[ADMIN] Registered guild %s (%s)", guild_id, name or "unnamed")
        return config

    async def remove_guild(self, guild_id: GuildID) -> bool:
        """Delete the guild and, by cascade, all of its rules, flags and logs."""
        async with self._db.transaction() as conn:
            removed = await self._guild_configs.delete(conn, guild_id)
        if removed:
            logger.info("[ADMIN] Removed guild %s and all its moderation data", guild_id)
        return removed

    async def get_config(self, guild_id: GuildID) -> GuildConfig | None:
        async with self._db.read() as conn:
            return await self._guild_configs.get(conn, guild_id)

    async def set_moderator_channel(self, guild_id: GuildID, channel_id: ChannelID | None) -> GuildConfig:
        return await self._update(guild_id, moderator_channel_id=channel_id)

    async def set_auto_moderation(self, guild_id: GuildID, enabled: bool) -> GuildConfig:
        return await self._update(guild_id, auto_moderation_enabled=bool(enabled))

    async def set_flag_threshold(self, guild_id: GuildID, threshold: int) -> GuildConfig:
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 1:
            raise ConfigValidationError(f"Flag threshold must be an integer >= 1, got {threshold!r}")
        return await self._update(guild_id, flag_threshold=threshold)

    async def _update(self, guild_id: GuildID, **fields) -> GuildConfig:
        async with self._db.transaction() as conn:
            await self._guild_configs.ensure(conn, guild_id, flag_threshold=app_config.default_flag_threshold)
            await self._guild_configs.update(conn, guild_id, **fields)
            config = await self._guild_configs.get(conn, guild_id)
        logger.info("[ADMIN] Updated guild %s config: %s", guild_id, ", ".join(sorted(fields)))
        return config

    # ------------------------------------------------------------------
    # Monitored channels
    # ------------------------------------------------------------------

    async def add_monitored_channel(self, guild_id: GuildID, channel_id: ChannelID) -> bool:
        async with self._db.transaction() as conn:
            await self._guild_configs.ensure(conn, guild_id, flag_threshold=app_config.default_flag_threshold)
            return await self._guild_configs.add_monitored_channel(conn, guild_id, channel_id)

    async def remove_monitored_channel(self, guild_id: GuildID, channel_id: ChannelID) -> bool:
        async with self._db.transaction() as conn:
            return await self._guild_configs.remove_monitored_channel(conn, guild_id, channel_id)

    async def list_monitored_channels(self, guild_id: GuildID) -> List[ChannelID]:
        async with self._db.read() as conn:
            return await self._guild_configs.monitored_channels(conn, guild_id)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    async def add_rule(
        self,
        guild_id: GuildID,
        kind: RuleKind | str,
        pattern: str | None,
        action: RuleAction | str,
    ) -> Rule:
        """Validate and store a new rule; it is evaluated after all existing ones."""
        parsed_kind, parsed_pattern, parsed_action = validate_rule(kind, pattern, action)

        async with self._db.transaction() as conn:
            await self._guild_configs.ensure(conn, guild_id, flag_threshold=app_config.default_flag_threshold)
            rule_id = await self._rules.insert(
                conn, guild_id, parsed_kind, parsed_pattern, parsed_action, int(self._clock())
            )
            rule = await self._rules.get(conn, guild_id, rule_id)

        logger.info("[ADMIN] Added rule #%d to guild %s: %s -> %s", rule_id, guild_id, rule.describe(), rule.action.value)
        return rule

    async def remove_rule(self, guild_id: GuildID, rule_id: int) -> bool:
        async with self._db.transaction() as conn:
            removed = await self._rules.delete(conn, guild_id, rule_id)
        if removed:
            logger.info("[ADMIN] Removed rule #%d from guild %s", rule_id, guild_id)
        return removed

    async def toggle_rule(self, guild_id: GuildID, rule_id: int, enabled: bool) -> bool:
        async with self._db.transaction() as conn:
            changed = await self._rules.set_enabled(conn, guild_id, rule_id, enabled)
        if changed:
            logger.info("[ADMIN] Rule #%d in guild %s %s", rule_id, guild_id, "enabled" if enabled else "disabled")
        return changed

    async def list_rules(self, guild_id: GuildID) -> List[Rule]:
        async with self._db.read() as conn:
            return await self._rules.all_rules_for_guild(conn, guild_id)

    # ------------------------------------------------------------------
    # Flags
    # ------------------------------------------------------------------

    async def flag_user(
        self,
        guild_id: GuildID,
        user_id: UserID,
        moderator_id: UserID,
        channel_id: ChannelID,
        reason: str | None = None,
    ) -> FlagRecord:
        """Manually flag a user and record a ``manual_flag`` entry."""
        reason = reason or DEFAULT_MANUAL_FLAG_REASON

        async with self._db.transaction() as conn:
            await self._guild_configs.ensure(conn, guild_id, flag_threshold=app_config.default_flag_threshold)

        async with self._ledger.lock(guild_id, user_id):
            record = await self._ledger.increment(guild_id, user_id, reason)
            await self._audit_log.record(AuditEntry(
                guild_id=guild_id,
                channel_id=channel_id,
                user_id=user_id,
                moderator_id=moderator_id,
                action=AuditAction.MANUAL_FLAG,
                reason=reason,
            ))
        return record

    async def unflag_user(
        self,
        guild_id: GuildID,
        user_id: UserID,
        moderator_id: UserID,
        channel_id: ChannelID,
    ) -> bool:
        """Clear all of a user's flags and record an ``unflag`` entry."""
        async with self._ledger.lock(guild_id, user_id):
            removed = await self._ledger.clear(guild_id, user_id)
            if await self.get_config(guild_id) is not None:
                await self._audit_log.record(AuditEntry(
                    guild_id=guild_id,
                    channel_id=channel_id,
                    user_id=user_id,
                    moderator_id=moderator_id,
                    action=AuditAction.UNFLAG,
                    reason=UNFLAG_REASON,
                ))
        return removed

    async def view_flags(self, guild_id: GuildID, user_id: UserID) -> UserFlagSummary:
        record = await self._ledger.read(guild_id, user_id)
        entries = await self._audit_log.query_by_user(guild_id, user_id, RECENT_ACTIVITY_LIMIT)
        return UserFlagSummary(user_id=user_id, record=record, recent_entries=entries)

    async def list_flagged(self, guild_id: GuildID) -> List[FlagRecord]:
        return await self._ledger.list(guild_id)

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    async def guild_logs(self, guild_id: GuildID, limit: int | None = None) -> List[AuditEntry]:
        return await self._audit_log.query_by_guild(guild_id, limit or app_config.default_log_limit)

    async def user_logs(self, guild_id: GuildID, user_id: UserID, limit: int | None = None) -> List[AuditEntry]:
        return await self._audit_log.query_by_user(guild_id, user_id, limit or app_config.default_log_limit)
