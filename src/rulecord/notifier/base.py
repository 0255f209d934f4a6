"""
Notifier protocol and the values that cross it.

Every outbound call is best-effort: implementations return a
``DeliveryResult`` instead of raising, and callers log failures and move
on. ``NotificationPayload`` is a transport-neutral description of an embed
so the moderation core never imports discord.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Protocol, runtime_checkable

from rulecord.datatypes.discord_datatypes import ChannelID, MessageID, UserID


@dataclass(slots=True, frozen=True)
class DeliveryResult:
    """Outcome of a single outbound call."""
    ok: bool
    error: str | None = None

    @classmethod
    def success(cls) -> "DeliveryResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str | BaseException) -> "DeliveryResult":
        if isinstance(error, BaseException):
            error = f"{type(error).__name__}: {error}" if str(error) else type(error).__name__
        return cls(ok=False, error=error)


@dataclass(slots=True, frozen=True)
class PayloadField:
    name: str
    value: str
    inline: bool = False


@dataclass(slots=True)
class NotificationPayload:
    """Structured message for a moderator channel (rendered as an embed)."""
    title: str
    color: int
    description: str | None = None
    fields: List[PayloadField] = field(default_factory=list)
    footer: str | None = None
    timestamp: datetime | None = None

    def add_field(self, name: str, value: str, inline: bool = False) -> "NotificationPayload":
        self.fields.append(PayloadField(name=name, value=value, inline=inline))
        return self

    def field_value(self, name: str) -> str | None:
        return next((f.value for f in self.fields if f.name == name), None)


@runtime_checkable
class Notifier(Protocol):
    """Capabilities the moderation core needs from the chat network."""

    async def delete_message(self, channel_id: ChannelID, message_id: MessageID) -> DeliveryResult: ...

    async def send_direct_message(self, user_id: UserID, text: str) -> DeliveryResult: ...

    async def send_to_channel(self, channel_id: ChannelID, payload: NotificationPayload) -> DeliveryResult: ...
