"""
Database schema initialization.

Timestamps are INTEGER unix seconds (UTC) so ordering and comparisons need
no string parsing. Everything a guild owns cascades from ``guilds``.
"""

import aiosqlite
from rulecord.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates tables, indexes and schema version tracking."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all tables and indexes if they do not exist yet.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized (version %d)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        """Create all required database tables."""
        await db.execute("""
            CREATE TABLE IF NOT EXISTS guilds (
                guild_id INTEGER PRIMARY KEY,
                name TEXT NOT NULL DEFAULT '',
                moderator_channel_id INTEGER,
                auto_moderation_enabled INTEGER NOT NULL DEFAULT 1,
                flag_threshold INTEGER NOT NULL DEFAULT 3 CHECK (flag_threshold >= 1),
                created_at INTEGER NOT NULL DEFAULT (strftime('%s', 'now')),
                updated_at INTEGER NOT NULL DEFAULT (strftime('%s', 'now'))
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS monitored_channels (
                guild_id INTEGER NOT NULL,
                channel_id INTEGER NOT NULL,
                created_at INTEGER NOT NULL DEFAULT (strftime('%s', 'now')),
                PRIMARY KEY (guild_id, channel_id),
                FOREIGN KEY (guild_id) REFERENCES guilds(guild_id) ON DELETE CASCADE
            )
        """)

        # id doubles as the evaluation order
        await db.execute("""
            CREATE TABLE IF NOT EXISTS moderation_rules (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL,
                rule_type TEXT NOT NULL,
                pattern TEXT NOT NULL,
                action TEXT NOT NULL,
                enabled INTEGER NOT NULL DEFAULT 1,
                created_at INTEGER NOT NULL DEFAULT (strftime('%s', 'now')),
                FOREIGN KEY (guild_id) REFERENCES guilds(guild_id) ON DELETE CASCADE
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS user_flags (
                guild_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                flag_count INTEGER NOT NULL DEFAULT 1 CHECK (flag_count >= 0),
                last_flagged_at INTEGER NOT NULL,
                notes TEXT,
                PRIMARY KEY (guild_id, user_id),
                FOREIGN KEY (guild_id) REFERENCES guilds(guild_id) ON DELETE CASCADE
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS moderation_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL,
                channel_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                moderator_id INTEGER,
                action TEXT NOT NULL,
                reason TEXT,
                message_content TEXT,
                message_id TEXT,
                created_at INTEGER NOT NULL,
                FOREIGN KEY (guild_id) REFERENCES guilds(guild_id) ON DELETE CASCADE
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at INTEGER NOT NULL DEFAULT (strftime('%s', 'now'))
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        """Create indexes for the hot query paths."""
        await db.execute("CREATE INDEX IF NOT EXISTS idx_rules_guild_enabled ON moderation_rules(guild_id, enabled, id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_flags_guild_rank ON user_flags(guild_id, flag_count DESC, last_flagged_at DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_logs_guild_time ON moderation_logs(guild_id, created_at DESC, id DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_logs_guild_user_time ON moderation_logs(guild_id, user_id, created_at DESC, id DESC)")

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
