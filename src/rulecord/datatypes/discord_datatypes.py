"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are 64-bit integers. The wrappers keep guild, channel,
user and message IDs from being mixed up as they flow from the gateway
through the moderation engine into SQLite, while still comparing equal to
the plain int/str forms the database and py-cord hand back.
"""

from __future__ import annotations

from typing import Union


class Snowflake:
    """
    Base class for a Discord snowflake ID.

    The value is stored as an int. Strings are accepted as long as they
    hold a decimal integer, which covers IDs read back from TEXT columns.

    Example:
        >>> gid = GuildID("123456789012345678")
        >>> gid.to_int()
        123456789012345678
        >>> gid == 123456789012345678
        True
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        if isinstance(value, Snowflake):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool")
        elif isinstance(value, int):
            self._value = value
        elif isinstance(value, str):
            self._value = int(value.strip())
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

    @classmethod
    def from_int(cls, value: int):
        return cls(value)

    def to_int(self) -> int:
        """Return the ID as an int for Discord API and database calls."""
        return self._value

    def __int__(self) -> int:
        return self._value

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Snowflake):
            return type(self) is type(other) and self._value == other._value
        if isinstance(other, bool):
            return NotImplemented
        if isinstance(other, int):
            return self._value == other
        if isinstance(other, str):
            return str(self._value) == other.strip()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


class GuildID(Snowflake):
    """ID of a guild (the tenant every rule, flag and log belongs to)."""

    __slots__ = ()

    @classmethod
    def from_guild(cls, guild) -> "GuildID":
        return cls(guild.id)


class ChannelID(Snowflake):
    """ID of a text channel."""

    __slots__ = ()

    @classmethod
    def from_channel(cls, channel) -> "ChannelID":
        return cls(channel.id)


class UserID(Snowflake):
    """ID of a user or member."""

    __slots__ = ()

    @classmethod
    def from_user(cls, member) -> "UserID":
        return cls(member.id)


class MessageID(Snowflake):
    """ID of a message."""

    __slots__ = ()

    @classmethod
    def from_message(cls, message) -> "MessageID":
        return cls(message.id)
