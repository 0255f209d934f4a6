"""
Repository for the user_flags table.

``increment`` is a single upsert followed by a read of the same row; callers
run both inside one ``ConnectionManager.transaction()`` so the returned
count is exactly the one this increment produced.
"""

from __future__ import annotations

from typing import List

import aiosqlite

from rulecord.datatypes.discord_datatypes import GuildID, UserID
from rulecord.datatypes.moderation_datatypes import FlagRecord, utc_from_timestamp

_COLUMNS = "guild_id, user_id, flag_count, last_flagged_at, notes"


def _row_to_record(row: aiosqlite.Row) -> FlagRecord:
    return FlagRecord(
        guild_id=GuildID(row["guild_id"]),
        user_id=UserID(row["user_id"]),
        flag_count=int(row["flag_count"]),
        last_flagged_at=utc_from_timestamp(row["last_flagged_at"]),
        notes=row["notes"],
    )


class FlagRepository:
    """Low-level CRUD for the ``user_flags`` table."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def increment(
        self,
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        user_id: UserID,
        note: str | None,
        flagged_at: int,
    ) -> FlagRecord:
        """Create the row with count 1 or add one to it; return the new row.

        An empty ``note`` keeps the stored notes.
        """
        note = note or None
        await conn.execute(
            """
            INSERT INTO user_flags (guild_id, user_id, flag_count, last_flagged_at, notes)
            VALUES (?, ?, 1, ?, ?)
            ON CONFLICT(guild_id, user_id) DO UPDATE SET
                flag_count      = user_flags.flag_count + 1,
                last_flagged_at = MAX(user_flags.last_flagged_at, excluded.last_flagged_at),
                notes           = COALESCE(excluded.notes, user_flags.notes)
            """,
            (int(guild_id), int(user_id), flagged_at, note),
        )
        record = await self.get(conn, guild_id, user_id)
        if record is None:
            raise RuntimeError(f"flag row for guild {guild_id} user {user_id} vanished after upsert")
        return record

    async def delete(self, conn: aiosqlite.Connection, guild_id: GuildID, user_id: UserID) -> bool:
        """Remove the row. Returns False when there was nothing to remove."""
        cursor = await conn.execute(
            "DELETE FROM user_flags WHERE guild_id = ? AND user_id = ?",
            (int(guild_id), int(user_id)),
        )
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, conn: aiosqlite.Connection, guild_id: GuildID, user_id: UserID) -> FlagRecord | None:
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM user_flags WHERE guild_id = ? AND user_id = ?",
            (int(guild_id), int(user_id)),
        ) as cursor:
            row = await cursor.fetchone()
        return _row_to_record(row) if row else None

    async def list_for_guild(self, conn: aiosqlite.Connection, guild_id: GuildID) -> List[FlagRecord]:
        """All flagged users of a guild, most flags first, then most recent."""
        async with conn.execute(
            f"SELECT {_COLUMNS} FROM user_flags WHERE guild_id = ? "
            "ORDER BY flag_count DESC, last_flagged_at DESC",
            (int(guild_id),),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_record(row) for row in rows]
