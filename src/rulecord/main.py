"""
Rulecord
========

A Discord bot that moderates guild messages against per-guild rules
(keywords, regular expressions, spam and caps heuristics), flags repeat
offenders and alerts moderators when a user reaches the flag threshold.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. RULECORD_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("RULECORD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()

import asyncio
import discord
from dotenv import load_dotenv

from rulecord.configuration.app_configuration import app_config
from rulecord.database.db_connection import ConnectionManager, db_connection
from rulecord.moderation.moderation_engine import ModerationEngine
from rulecord.notifier.discord_notifier import DiscordNotifier
from rulecord.services.admin_service import AdminService
from rulecord.util.logger import configure_level, get_logger, handle_exception

logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents needed to read guild messages and track guild membership."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    return intents


def load_cogs(bot: discord.Bot, engine: ModerationEngine, admin: AdminService) -> None:
    """Register the listener cogs with the bot."""
    from rulecord.bot import events_listener, message_listener

    events_listener.setup(bot, admin)
    message_listener.setup(bot, engine)

    logger.info("All cogs loaded successfully.")


def create_bot(db: ConnectionManager) -> discord.Bot:
    """Instantiate the bot and wire the moderation engine and admin service into it."""
    bot = discord.Bot(intents=build_intents())
    notifier = DiscordNotifier(bot, app_config.notifier_timeout_seconds)
    engine = ModerationEngine(db, notifier)
    admin = AdminService(db, engine.ledger, engine.audit_log)
    load_cogs(bot, engine, admin)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and log around the connection lifecycle."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None, db: ConnectionManager) -> None:
    """Close the Discord connection and the database."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord bot: %s", exc)

    try:
        await db.close()
    except Exception as exc:
        logger.exception("Error during database shutdown: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap the database and bot, returning an exit code."""
    token = load_environment()
    configure_level(app_config.log_level)

    try:
        logger.info("Opening database at %s", app_config.database_path)
        await db_connection.open(app_config.database_path)
    except Exception as exc:
        logger.critical("Failed to initialize database: %s", exc)
        return 1

    try:
        bot = create_bot(db_connection)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await shutdown_runtime(None, db_connection)
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, db_connection)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    sys.excepthook = handle_exception
    os.chdir(BASE_DIR)
    logger.info("Starting rulecord…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
