"""
Moderation engine: the single entry point for inbound messages.

``on_message`` ties the pipeline together:

1. load the guild configuration (unknown guild or auto moderation off: stop)
2. skip channels the guild does not monitor
3. evaluate the message against the guild's rules
4. on a match, dispatch the rule's action

All four steps run inside ``FlagLedger.lock(guild, user)``: messages
from the same user are processed in arrival order, while different users
proceed concurrently.
"""

from __future__ import annotations

from rulecord.database.db_connection import ConnectionManager
from rulecord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from rulecord.datatypes.moderation_datatypes import DispatchOutcome, GuildConfig, MessageContext
from rulecord.moderation.action_dispatcher import ActionDispatcher
from rulecord.moderation.audit_log import AuditLog
from rulecord.moderation.escalation_monitor import EscalationMonitor
from rulecord.moderation.flag_ledger import FlagLedger
from rulecord.moderation.rule_evaluator import RuleEvaluator
from rulecord.notifier.base import Notifier
from rulecord.repositories.guild_config_repo import GuildConfigRepository
from rulecord.util.logger import get_logger

logger = get_logger("moderation_engine")


class ModerationEngine:
    """
    Wires evaluator, dispatcher, ledger and audit log around one database.

    Attributes:
        ledger: Flag ledger shared with the administrative service
        audit_log: Audit log shared with the administrative service
    """

    def __init__(
        self,
        db: ConnectionManager,
        notifier: Notifier,
        *,
        ledger: FlagLedger | None = None,
        audit_log: AuditLog | None = None,
        evaluator: RuleEvaluator | None = None,
        guild_configs: GuildConfigRepository | None = None,
    ) -> None:
        self._db = db
        self.ledger = ledger or FlagLedger(db)
        self.audit_log = audit_log or AuditLog(db)
        self.evaluator = evaluator or RuleEvaluator(db)
        self._guild_configs = guild_configs or GuildConfigRepository()
        self.dispatcher = ActionDispatcher(
            notifier,
            self.ledger,
            self.audit_log,
            EscalationMonitor(notifier),
        )

    async def on_message(
        self,
        guild_id: GuildID | int,
        channel_id: ChannelID | int,
        user_id: UserID | int,
        message_id: MessageID | int | None,
        text: str,
        author_name: str | None = None,
    ) -> DispatchOutcome | None:
        """
        Moderate one inbound message.

        Never raises. Returns the dispatch outcome when a rule matched, and
        None when the message was skipped or clean.
        """
        try:
            context = MessageContext(
                guild_id=GuildID(guild_id),
                channel_id=ChannelID(channel_id),
                user_id=UserID(user_id),
                message_id=MessageID(message_id) if message_id is not None else None,
                content=text or "",
                author_name=author_name,
            )
            # Held from first read to last write so one user's messages apply in arrival order
            async with self.ledger.lock(context.guild_id, context.user_id):
                return await self._moderate(context)
        except Exception:
            logger.exception(
                "[MODERATION ENGINE] Error processing message %s from user %s in guild %s",
                message_id,
                user_id,
                guild_id,
            )
            return None

    async def _moderate(self, context: MessageContext) -> DispatchOutcome | None:
        config = await self._load_config(context)
        if config is None:
            return None

        rule = await self.evaluator.evaluate(context.guild_id, context.content)
        if rule is None:
            return None

        logger.info(
            "[MODERATION ENGINE] Message %s by user %s in guild %s channel %s violated rule #%d (%s -> %s)",
            context.message_id,
            context.user_id,
            context.guild_id,
            context.channel_id,
            rule.id,
            rule.kind.value,
            rule.action.value,
        )

        return await self.dispatcher.dispatch(context, rule, config)

    async def _load_config(self, context: MessageContext) -> GuildConfig | None:
        """Return the guild config if this message should be evaluated at all."""
        async with self._db.read() as conn:
            config = await self._guild_configs.get(conn, context.guild_id)
            if config is None:
                logger.warning("[MODERATION ENGINE] Guild %s not registered; skipping message", context.guild_id)
                return None
            if not config.auto_moderation_enabled:
                return None
            if not await self._guild_configs.is_channel_monitored(conn, context.guild_id, context.channel_id):
                return None
        return config
