"""
Escalation monitor: alert moderators when a user reaches the flag threshold.

The check is not an idempotent "is this user above threshold" query. It is
run only by the dispatcher, right after the increment it is judging and
inside the same per-user lock, so a user who stays above the threshold
without a new flag never triggers a second alert.
"""

from __future__ import annotations

from rulecord.datatypes.moderation_datatypes import FlagRecord, GuildConfig, MessageContext
from rulecord.moderation.moderation_embed import build_escalation_notice
from rulecord.notifier.base import DeliveryResult, Notifier
from rulecord.util.logger import get_logger

logger = get_logger("escalation_monitor")


class EscalationMonitor:
    """Compares fresh flag counts with the guild threshold."""

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier

    @staticmethod
    def check_escalation(config: GuildConfig, record: FlagRecord) -> bool:
        """True when the just-incremented count is at or above the threshold."""
        return record.flag_count >= config.flag_threshold

    async def escalate(self, context: MessageContext, config: GuildConfig, record: FlagRecord) -> bool:
        """
        Run the check for a fresh increment and notify moderators on fire.

        Returns whether escalation fired, independent of whether the notice
        could be delivered.
        """
        if not self.check_escalation(config, record):
            return False

        logger.warning(
            "[ESCALATION] User %s in guild %s reached %d flag(s) (threshold %d)",
            record.user_id,
            record.guild_id,
            record.flag_count,
            config.flag_threshold,
        )

        if config.moderator_channel_id is None:
            logger.info("[ESCALATION] Guild %s has no moderator channel; notice not sent", config.guild_id)
            return True

        try:
            result = await self._notifier.send_to_channel(
                config.moderator_channel_id,
                build_escalation_notice(context, config, record),
            )
        except Exception as exc:
            result = DeliveryResult.failure(exc)

        if not result.ok:
            logger.error(
                "[ESCALATION] Failed to send threshold notice for user %s in guild %s: %s",
                record.user_id,
                config.guild_id,
                result.error,
            )
        return True
