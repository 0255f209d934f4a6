"""
Flag ledger: per (guild, user) violation counter.

The count only grows, one per flag event, until a moderator clears the
record entirely. Each increment is a single upsert inside a write
transaction, so concurrent increments never lose updates.

``lock(guild_id, user_id)`` hands out the per-user critical section. The
moderation engine holds it for a whole message dispatch so that messages
from one user are applied in arrival order and so that the escalation
check sees exactly the count its own increment produced.
"""

from __future__ import annotations

import asyncio
import time
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, List, Tuple

from rulecord.database.db_connection import ConnectionManager
from rulecord.datatypes.discord_datatypes import GuildID, UserID
from rulecord.datatypes.moderation_datatypes import FlagRecord
from rulecord.repositories.flag_repo import FlagRepository
from rulecord.util.logger import get_logger

logger = get_logger("flag_ledger")


class FlagLedger:
    """Increment, clear and read per-user flag records."""

    def __init__(
        self,
        db: ConnectionManager,
        repo: FlagRepository | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db = db
        self._repo = repo or FlagRepository()
        self._clock = clock
        # Entries vanish once no task holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[Tuple[int, int], asyncio.Lock]" = weakref.WeakValueDictionary()

    @asynccontextmanager
    async def lock(self, guild_id: GuildID, user_id: UserID) -> AsyncIterator[None]:
        """Single-writer section for one (guild, user). Waiters are served FIFO."""
        key = (int(guild_id), int(user_id))
        user_lock = self._locks.get(key)
        if user_lock is None:
            user_lock = asyncio.Lock()
            self._locks[key] = user_lock
        async with user_lock:
            yield

    async def increment(self, guild_id: GuildID, user_id: UserID, note: str | None = None) -> FlagRecord:
        """
        Add one flag and return the updated record.

        The first flag creates the record with count 1. ``note`` replaces the
        stored notes only when it is non-empty.
        """
        async with self._db.transaction() as conn:
            record = await self._repo.increment(conn, guild_id, user_id, note, int(self._clock()))

        logger.info(
            "[FLAG LEDGER] Guild %s user %s now has %d flag(s)",
            guild_id,
            user_id,
            record.flag_count,
        )
        return record

    async def clear(self, guild_id: GuildID, user_id: UserID) -> bool:
        """Delete the record. Idempotent; returns whether anything was removed."""
        async with self._db.transaction() as conn:
            removed = await self._repo.delete(conn, guild_id, user_id)

        if removed:
            logger.info("[FLAG LEDGER] Cleared flags for user %s in guild %s", user_id, guild_id)
        return removed

    async def read(self, guild_id: GuildID, user_id: UserID) -> FlagRecord | None:
        async with self._db.read() as conn:
            return await self._repo.get(conn, guild_id, user_id)

    async def list(self, guild_id: GuildID) -> List[FlagRecord]:
        """Flagged users of a guild, highest count first, then most recently flagged."""
        async with self._db.read() as conn:
            return await self._repo.list_for_guild(conn, guild_id)
