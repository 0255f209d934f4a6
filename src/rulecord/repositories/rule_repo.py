"""
Repository for the moderation_rules table.

Evaluation order is the rule id (its creation sequence number), so every
read that feeds the evaluator sorts by ``id ASC`` explicitly.
"""

from __future__ import annotations

from typing import List

import aiosqlite

from rulecord.datatypes.discord_datatypes import GuildID
from rulecord.datatypes.moderation_datatypes import utc_from_timestamp
from rulecord.datatypes.rule_datatypes import Rule, RuleAction, RuleKind
from rulecord.util.logger import get_logger

logger = get_logger("rule_repo")

_COLUMNS = "id, guild_id, rule_type, pattern, action, enabled, created_at"


def _row_to_rule(row: aiosqlite.Row) -> Rule:
    kind = RuleKind.parse(row["rule_type"])
    action = RuleAction.parse(row["action"])
    if kind is RuleKind.UNRECOGNIZED or action is RuleAction.UNRECOGNIZED:
        logger.warning(
            "[RULE REPO] Rule #%s has unrecognized kind/action (%r, %r)",
            row["id"],
            row["rule_type"],
            row["action"],
        )
    return Rule(
        id=row["id"],
        guild_id=GuildID(row["guild_id"]),
        kind=kind,
        pattern=row["pattern"] or "",
        action=action,
        enabled=bool(row["enabled"]),
        created_at=utc_from_timestamp(row["created_at"]),
    )


class RuleRepository:
    """CRUD for the moderation_rules table."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def enabled_rules_for_guild(self, conn: aiosqlite.Connection, guild_id: GuildID) -> List[Rule]:
        """Return the guild's enabled rules in evaluation order."""
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM moderation_rules "
            "WHERE guild_id = ? AND enabled = 1 ORDER BY id ASC",
            (int(guild_id),),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_rule(row) for row in rows]

    async def all_rules_for_guild(self, conn: aiosqlite.Connection, guild_id: GuildID) -> List[Rule]:
        """Return every rule of the guild, enabled or not, by id."""
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM moderation_rules WHERE guild_id = ? ORDER BY id ASC",
            (int(guild_id),),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_rule(row) for row in rows]

    async def get(self, conn: aiosqlite.Connection, guild_id: GuildID, rule_id: int) -> Rule | None:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM moderation_rules WHERE guild_id = ? AND id = ?",
            (int(guild_id), rule_id),
        ) as cursor:
            row = await cursor.fetchone()
        return _row_to_rule(row) if row else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(
        self,
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        kind: RuleKind,
        pattern: str,
        action: RuleAction,
        created_at: int,
    ) -> int:
        """Insert an already validated rule and return its id."""
        cursor = await conn.execute(
            """
            INSERT INTO moderation_rules (guild_id, rule_type, pattern, action, enabled, created_at)
            VALUES (?, ?, ?, ?, 1, ?)
            """,
            (int(guild_id), kind.value, pattern, action.value, created_at),
        )
        return int(cursor.lastrowid)

    async def delete(self, conn: aiosqlite.Connection, guild_id: GuildID, rule_id: int) -> bool:
        """Delete a rule. Scoped by guild so one guild cannot remove another's rules."""
        cursor = await conn.execute(
            "DELETE FROM moderation_rules WHERE guild_id = ? AND id = ?",
            (int(guild_id), rule_id),
        )
        return cursor.rowcount > 0

    async def set_enabled(self, conn: aiosqlite.Connection, guild_id: GuildID, rule_id: int, enabled: bool) -> bool:
        cursor = await conn.execute(
            "UPDATE moderation_rules SET enabled = ? WHERE guild_id = ? AND id = ?",
            (1 if enabled else 0, int(guild_id), rule_id),
        )
        return cursor.rowcount > 0
