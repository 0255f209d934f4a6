"""
Repository for the guilds and monitored_channels tables.
"""

from __future__ import annotations

from typing import List

import aiosqlite

from rulecord.datatypes.discord_datatypes import ChannelID, GuildID, Snowflake
from rulecord.datatypes.moderation_datatypes import GuildConfig
from rulecord.util.logger import get_logger

logger = get_logger("guild_config_repo")

# Columns an administrator may change through update()
_UPDATABLE_COLUMNS = frozenset({
    "name",
    "moderator_channel_id",
    "auto_moderation_enabled",
    "flag_threshold",
})


class GuildConfigRepository:
    """CRUD for per-guild configuration."""

    # ------------------------------------------------------------------
    # guilds
    # ------------------------------------------------------------------

    async def get(self, conn: aiosqlite.Connection, guild_id: GuildID) -> GuildConfig | None:
        """Return the guild's configuration, or None if the guild is unknown."""
        async with conn.execute(
            "SELECT guild_id, name, moderator_channel_id, auto_moderation_enabled, flag_threshold "
            "FROM guilds WHERE guild_id = ?",
            (int(guild_id),),
        ) as cursor:
            row = await cursor.fetchone()

        if row is None:
            return None

        moderator_channel = row["moderator_channel_id"]
        return GuildConfig(
            guild_id=GuildID(row["guild_id"]),
            name=row["name"] or "",
            auto_moderation_enabled=bool(row["auto_moderation_enabled"]),
            flag_threshold=int(row["flag_threshold"]),
            moderator_channel_id=ChannelID(moderator_channel) if moderator_channel is not None else None,
        )

    async def ensure(
        self,
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        name: str = "",
        flag_threshold: int = 3,
    ) -> bool:
        """Insert the guild with defaults if missing. Returns True if a row was created."""
        cursor = await conn.execute(
            "INSERT OR IGNORE INTO guilds (guild_id, name, flag_threshold) VALUES (?, ?, ?)",
            (int(guild_id), name, flag_threshold),
        )
        return cursor.rowcount > 0

    async def update(self, conn: aiosqlite.Connection, guild_id: GuildID, **fields) -> bool:
        """Update whitelisted columns and bump ``updated_at``."""
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unknown guild config fields: {sorted(unknown)}")
        if not fields:
            return False

        assignments = ", ".join(f"{column} = ?" for column in fields)
        values = [_to_db_value(value) for value in fields.values()]
        cursor = await conn.execute(
            f"UPDATE guilds SET {assignments}, updated_at = strftime('%s', 'now') WHERE guild_id = ?",
            (*values, int(guild_id)),
        )
        return cursor.rowcount > 0

    async def delete(self, conn: aiosqlite.Connection, guild_id: GuildID) -> bool:
        """Delete the guild; rules, flags, logs and channels cascade."""
        cursor = await conn.execute("DELETE FROM guilds WHERE guild_id = ?", (int(guild_id),))
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # monitored_channels
    # ------------------------------------------------------------------

    async def is_channel_monitored(self, conn: aiosqlite.Connection, guild_id: GuildID, channel_id: ChannelID) -> bool:
        async with conn.execute(
            "SELECT 1 FROM monitored_channels WHERE guild_id = ? AND channel_id = ? LIMIT 1",
            (int(guild_id), int(channel_id)),
        ) as cursor:
            return await cursor.fetchone() is not None

    async def monitored_channels(self, conn: aiosqlite.Connection, guild_id: GuildID) -> List[ChannelID]:
        async with conn.execute(
            "SELECT channel_id FROM monitored_channels WHERE guild_id = ? ORDER BY created_at, channel_id",
            (int(guild_id),),
        ) as cursor:
            rows = await cursor.fetchall()
        return [ChannelID(row["channel_id"]) for row in rows]

    async def add_monitored_channel(self, conn: aiosqlite.Connection, guild_id: GuildID, channel_id: ChannelID) -> bool:
        cursor = await conn.execute(
            "INSERT OR IGNORE INTO monitored_channels (guild_id, channel_id) VALUES (?, ?)",
            (int(guild_id), int(channel_id)),
        )
        return cursor.rowcount > 0

    async def remove_monitored_channel(self, conn: aiosqlite.Connection, guild_id: GuildID, channel_id: ChannelID) -> bool:
        cursor = await conn.execute(
            "DELETE FROM monitored_channels WHERE guild_id = ? AND channel_id = ?",
            (int(guild_id), int(channel_id)),
        )
        return cursor.rowcount > 0


def _to_db_value(value):
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, Snowflake):
        return int(value)
    return value
