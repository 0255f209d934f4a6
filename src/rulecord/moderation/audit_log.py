"""Append-only moderation audit log."""

from __future__ import annotations

import time
from typing import Callable, List

from rulecord.database.db_connection import ConnectionManager
from rulecord.datatypes.discord_datatypes import GuildID, UserID
from rulecord.datatypes.moderation_datatypes import AuditEntry
from rulecord.repositories.audit_repo import AuditLogRepository
from rulecord.util.logger import get_logger

logger = get_logger("audit_log")


class AuditLog:
    """Records every automatic and manual moderation decision.

    Queries return newest entries first and honour the caller's ``limit``
    as given; bounding user-supplied limits is the command layer's job.
    """

    def __init__(
        self,
        db: ConnectionManager,
        repo: AuditLogRepository | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db = db
        self._repo = repo or AuditLogRepository()
        self._clock = clock

    async def record(self, entry: AuditEntry) -> int:
        """Append ``entry`` and return its id."""
        async with self._db.transaction() as conn:
            entry_id = await self._repo.insert(conn, entry, int(self._clock()))

        logger.debug(
            "[AUDIT LOG] #%d %s on user %s in guild %s channel %s",
            entry_id,
            entry.action_name,
            entry.user_id,
            entry.guild_id,
            entry.channel_id,
        )
        return entry_id

    async def query_by_guild(self, guild_id: GuildID, limit: int) -> List[AuditEntry]:
        async with self._db.read() as conn:
            return await self._repo.for_guild(conn, guild_id, limit)

    async def query_by_user(self, guild_id: GuildID, user_id: UserID, limit: int) -> List[AuditEntry]:
        async with self._db.read() as conn:
            return await self._repo.for_user(conn, guild_id, user_id, limit)
