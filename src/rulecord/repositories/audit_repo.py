"""
Repository for the moderation_logs table (append-only).

There is no update or delete here: entries disappear only when
their guild is deleted and the foreign key cascades.
"""

from __future__ import annotations

from typing import List

import aiosqlite

from rulecord.datatypes.discord_datatypes import ChannelID, GuildID, UserID
from rulecord.datatypes.moderation_datatypes import AuditAction, AuditEntry, utc_from_timestamp

_COLUMNS = (
    "id, guild_id, channel_id, user_id, moderator_id, action, reason, "
    "message_content, message_id, created_at"
)

# Newest first; id breaks ties between entries written in the same second
_NEWEST_FIRST = "ORDER BY created_at DESC, id DESC"


def _parse_action(raw: str) -> AuditAction | str:
    try:
        return AuditAction(raw)
    except ValueError:
        return raw


def _row_to_entry(row: aiosqlite.Row) -> AuditEntry:
    moderator_id = row["moderator_id"]
    return AuditEntry(
        id=row["id"],
        guild_id=GuildID(row["guild_id"]),
        channel_id=ChannelID(row["channel_id"]),
        user_id=UserID(row["user_id"]),
        moderator_id=UserID(moderator_id) if moderator_id is not None else None,
        action=_parse_action(row["action"]),
        reason=row["reason"],
        message_snapshot=row["message_content"],
        message_ref=row["message_id"],
        created_at=utc_from_timestamp(row["created_at"]),
    )


class AuditLogRepository:
    """Insert and query moderation log entries."""

    async def insert(self, conn: aiosqlite.Connection, entry: AuditEntry, created_at: int) -> int:
        cursor = await conn.execute(
            """
            INSERT INTO moderation_logs
                (guild_id, channel_id, user_id, moderator_id, action, reason,
                 message_content, message_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                int(entry.guild_id),
                int(entry.channel_id),
                int(entry.user_id),
                int(entry.moderator_id) if entry.moderator_id is not None else None,
                entry.action_name,
                entry.reason,
                entry.message_snapshot,
                entry.message_ref,
                created_at,
            ),
        )
        return int(cursor.lastrowid)

    async def for_guild(self, conn: aiosqlite.Connection, guild_id: GuildID, limit: int) -> List[AuditEntry]:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM moderation_logs WHERE guild_id = ? {_NEWEST_FIRST} LIMIT ?",
            (int(guild_id), limit),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_entry(row) for row in rows]

    async def for_user(
        self,
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        user_id: UserID,
        limit: int,
    ) -> List[AuditEntry]:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM moderation_logs WHERE guild_id = ? AND user_id = ? {_NEWEST_FIRST} LIMIT ?",
            (int(guild_id), int(user_id), limit),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_entry(row) for row in rows]
