"""
Pytest configuration and fixtures for rulecord tests.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from rulecord.database.db_connection import ConnectionManager  # noqa: E402
from rulecord.datatypes.discord_datatypes import ChannelID, GuildID, UserID  # noqa: E402
from rulecord.moderation.moderation_engine import ModerationEngine  # noqa: E402
from rulecord.notifier.base import DeliveryResult  # noqa: E402
from rulecord.services.admin_service import AdminService  # noqa: E402

GUILD = GuildID(1001)
CHANNEL = ChannelID(2001)
MOD_CHANNEL = ChannelID(2999)
USER = UserID(3001)
MODERATOR = UserID(3999)


@pytest_asyncio.fixture
async def db(tmp_path):
    """A fresh database with the full schema, closed after the test."""
    manager = ConnectionManager()
    await manager.open(tmp_path / "rulecord_test.db")
    yield manager
    await manager.close()


@pytest.fixture
def notifier():
    """Notifier whose every call succeeds; inspect the AsyncMocks for calls."""
    return SimpleNamespace(
        delete_message=AsyncMock(return_value=DeliveryResult.success()),
        send_direct_message=AsyncMock(return_value=DeliveryResult.success()),
        send_to_channel=AsyncMock(return_value=DeliveryResult.success()),
    )


@pytest.fixture
def engine(db, notifier):
    return ModerationEngine(db, notifier)


@pytest.fixture
def admin(db, engine):
    return AdminService(db, engine.ledger, engine.audit_log)


@pytest_asyncio.fixture
async def guild(admin):
    """GUILD registered with threshold 3, CHANNEL monitored and MOD_CHANNEL as moderator channel."""
    await admin.ensure_guild(GUILD, "Test Guild")
    await admin.set_flag_threshold(GUILD, 3)
    await admin.add_monitored_channel(GUILD, CHANNEL)
    await admin.set_moderator_channel(GUILD, MOD_CHANNEL)
    return GUILD
