"""
Action dispatcher: carry out a matched rule's action.

Every step (delete, flag, warn, moderator notice, escalation) is guarded on
its own. A failing step is logged with guild/user/action context and the
remaining steps still run; nothing is rolled back and nothing is raised to
the caller.

The moderator notice goes out before any escalation alert. Callers must hold
``FlagLedger.lock(guild, user)`` while dispatching so the escalation check
runs in the same critical section as its increment.
"""

from __future__ import annotations

from rulecord.datatypes.moderation_datatypes import (
    AuditAction,
    AuditEntry,
    DispatchOutcome,
    GuildConfig,
    MessageContext,
)
from rulecord.datatypes.rule_datatypes import Rule, RuleAction
from rulecord.moderation.audit_log import AuditLog
from rulecord.moderation.escalation_monitor import EscalationMonitor
from rulecord.moderation.flag_ledger import FlagLedger
from rulecord.moderation.moderation_embed import build_action_notice
from rulecord.notifier.base import DeliveryResult, Notifier
from rulecord.util.logger import get_logger

logger = get_logger("action_dispatcher")

WARNING_TEMPLATE = (
    "⚠️ Your message in **{guild}** was flagged for violating server rules.\n"
    "Please review the server guidelines and adjust your behavior accordingly."
)


def rule_reason(rule: Rule) -> str:
    return f"Matched rule: {rule.describe()}"


def flag_note(rule: Rule) -> str:
    return f"Auto-flagged: {rule.describe()}"


class ActionDispatcher:
    """Performs rule actions against the notifier, ledger and audit log."""

    def __init__(
        self,
        notifier: Notifier,
        ledger: FlagLedger,
        audit_log: AuditLog,
        escalation: EscalationMonitor | None = None,
    ) -> None:
        self._notifier = notifier
        self._ledger = ledger
        self._audit_log = audit_log
        self._escalation = escalation or EscalationMonitor(notifier)

    async def dispatch(self, context: MessageContext, rule: Rule, config: GuildConfig) -> DispatchOutcome:
        """Run ``rule.action`` for ``context``. Never raises."""
        outcome = DispatchOutcome()

        match rule.action:
            case RuleAction.SUPPRESS:
                await self._suppress(context, rule, outcome)
            case RuleAction.FLAG:
                await self._flag(context, rule, outcome)
            case RuleAction.SUPPRESS_AND_FLAG:
                await self._suppress(context, rule, outcome)
                await self._flag(context, rule, outcome)
            case RuleAction.WARN:
                await self._warn(context, rule, config, outcome)
            case RuleAction.UNRECOGNIZED:
                logger.warning(
                    "[DISPATCHER] Rule #%s in guild %s has an unrecognized action; ignoring",
                    rule.id,
                    context.guild_id,
                )
                return outcome

        if config.moderator_channel_id is not None:
            await self._notify_moderators(context, rule, config, outcome)

        if outcome.flag_record is not None:
            await self._escalate(context, config, outcome)

        logger.info(
            "[DISPATCHER] Rule #%s (%s) applied to user %s in guild %s: %s",
            rule.id,
            rule.action.value,
            context.user_id,
            context.guild_id,
            "ok" if outcome.ok else f"partial ({', '.join(outcome.failures)})",
        )
        return outcome

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _suppress(self, context: MessageContext, rule: Rule, outcome: DispatchOutcome) -> None:
        reason = rule_reason(rule)

        if context.message_id is None:
            result = DeliveryResult.failure("no message reference")
        else:
            result = await self._call_notifier(
                "delete_message", context, self._notifier.delete_message, context.channel_id, context.message_id
            )

        if result.ok:
            outcome.deleted = True
        else:
            outcome.failures.append("delete")
            reason = f"{reason} (deletion failed)"

        await self._record(context, AuditAction.DELETE, reason, outcome)

    async def _flag(self, context: MessageContext, rule: Rule, outcome: DispatchOutcome) -> None:
        try:
            record = await self._ledger.increment(context.guild_id, context.user_id, flag_note(rule))
        except Exception:
            logger.exception(
                "[DISPATCHER] Flag increment failed for user %s in guild %s (rule #%s)",
                context.user_id,
                context.guild_id,
                rule.id,
            )
            outcome.failures.append("flag")
        else:
            outcome.flagged = True
            outcome.flag_record = record

        await self._record(context, AuditAction.FLAG, rule_reason(rule), outcome)

    async def _escalate(self, context: MessageContext, config: GuildConfig, outcome: DispatchOutcome) -> None:
        try:
            outcome.escalated = await self._escalation.escalate(context, config, outcome.flag_record)
        except Exception:
            logger.exception(
                "[DISPATCHER] Escalation check failed for user %s in guild %s",
                context.user_id,
                context.guild_id,
            )
            outcome.failures.append("escalation")

    async def _warn(self, context: MessageContext, rule: Rule, config: GuildConfig, outcome: DispatchOutcome) -> None:
        text = WARNING_TEMPLATE.format(guild=config.name or "this server")
        result = await self._call_notifier(
            "send_direct_message", context, self._notifier.send_direct_message, context.user_id, text
        )
        if result.ok:
            outcome.warned = True
        else:
            outcome.failures.append("warn")

        # Recorded whether or not the DM arrived
        await self._record(context, AuditAction.WARN, rule_reason(rule), outcome)

    async def _notify_moderators(
        self,
        context: MessageContext,
        rule: Rule,
        config: GuildConfig,
        outcome: DispatchOutcome,
    ) -> None:
        try:
            payload = build_action_notice(context, rule)
        except Exception:
            logger.exception("[DISPATCHER] Could not build moderator notice for guild %s", context.guild_id)
            outcome.failures.append("notify")
            return

        result = await self._call_notifier(
            "send_to_channel", context, self._notifier.send_to_channel, config.moderator_channel_id, payload
        )
        if result.ok:
            outcome.moderators_notified = True
        else:
            outcome.failures.append("notify")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _record(self, context: MessageContext, action: AuditAction, reason: str, outcome: DispatchOutcome) -> None:
        entry = AuditEntry(
            guild_id=context.guild_id,
            channel_id=context.channel_id,
            user_id=context.user_id,
            action=action,
            reason=reason,
            message_snapshot=context.content,
            message_ref=str(context.message_id) if context.message_id is not None else None,
        )
        try:
            outcome.audit_ids.append(await self._audit_log.record(entry))
        except Exception:
            logger.exception(
                "[DISPATCHER] Failed to record %s audit entry for user %s in guild %s",
                action.value,
                context.user_id,
                context.guild_id,
            )
            outcome.failures.append(f"audit:{action.value}")

    async def _call_notifier(self, operation: str, context: MessageContext, func, *args) -> DeliveryResult:
        """Invoke a notifier method, turning exceptions into failed results and logging failures."""
        try:
            result = await func(*args)
        except Exception as exc:
            result = DeliveryResult.failure(exc)

        if not isinstance(result, DeliveryResult):
            result = DeliveryResult.failure(f"unexpected notifier result {result!r}")

        if not result.ok:
            logger.warning(
                "[DISPATCHER] %s failed for user %s in guild %s channel %s: %s",
                operation,
                context.user_id,
                context.guild_id,
                context.channel_id,
                result.error,
            )
        return result
