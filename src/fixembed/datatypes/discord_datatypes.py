"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are 64-bit integers that arrive either as ints (py-cord
models) or as strings (interaction payloads, select values, environment
variables). These wrappers give guild, channel and user IDs one consistent
shape throughout the bot and keep them from being mixed up with each other.
"""

from __future__ import annotations

from typing import Any, Union

from fixembed.util.logger import get_logger

logger = get_logger("discord_datatypes")


class Snowflake:
    """
    Base wrapper for a Discord snowflake ID.

    Subclasses only differ in type, so a :class:`GuildID` never compares equal
    to a :class:`ChannelID` holding the same number.

    Example:
        >>> gid = GuildID("123456789012345678")
        >>> gid.to_int()
        123456789012345678
        >>> GuildID.parse("not-a-snowflake").to_int()
        0
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Initialize from a string, int, or another snowflake of the same kind.

        Raises:
            ValueError: If the value cannot be converted to a valid snowflake.
        """
        if isinstance(value, Snowflake):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool: {value}")
        elif isinstance(value, int):
            self._value = value
        elif isinstance(value, str):
            self._value = int(value.strip())
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

        if not 0 <= self._value < 2**64:
            raise ValueError(f"{type(self).__name__} out of range: {self._value}")

    @classmethod
    def from_int(cls, value: int):
        return cls(value)

    @classmethod
    def from_model(cls, model: Any):
        """Create an ID from any py-cord model exposing an ``id`` attribute."""
        return cls(model.id)

    @classmethod
    def parse(cls, value: Any):
        """
        Leniently parse a raw identifier.

        Malformed input yields the zero identifier instead of raising, matching
        how events with garbled IDs are handled: they carry on as a no-op
        sentinel rather than being rejected. A warning is logged each time.
        """
        try:
            return cls(value)
        except (ValueError, TypeError):
            logger.warning("[DATATYPES] Malformed %s %r, using zero identifier", cls.__name__, value)
            return cls(0)

    def to_int(self) -> int:
        return self._value

    def is_zero(self) -> bool:
        return self._value == 0

    def __int__(self) -> int:
        return self._value

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Snowflake):
            return type(self) is type(other) and self._value == other._value
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == other
        if isinstance(other, str):
            return str(self._value) == other.strip()
        return NotImplemented

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._value))


class GuildID(Snowflake):
    """Snowflake ID of a guild (Discord server)."""

    __slots__ = ()


class ChannelID(Snowflake):
    """Snowflake ID of a guild text channel."""

    __slots__ = ()


class UserID(Snowflake):
    """Snowflake ID of a user or member."""

    __slots__ = ()

    @property
    def mention(self) -> str:
        return f"<@{self._value}>"
