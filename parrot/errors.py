"""Errors raised by the bot's commands, each carrying the text shown to users."""

from __future__ import annotations

from typing import Any, TypeVar

from parrot.messages import (
    FAIL_ANOTHER_CHANNEL,
    FAIL_AUTHOR_DISCONNECTED,
    FAIL_AUTHOR_NOT_FOUND,
    FAIL_NO_VOICE_CONNECTION,
    FAIL_WRONG_CHANNEL,
    NOTHING_IS_PLAYING,
    QUEUE_IS_EMPTY,
    TRACK_INAPPROPRIATE,
    TRACK_NOT_FOUND,
)

T = TypeVar("T")

_AGE_GATE_MARKER = "Sign in to confirm your age"


class ParrotError(Exception):
    """Base of all bot errors; ``str()`` gives the reply text.

    Errors of the same class compare equal when their distinguishing
    values are equal.
    """

    def _key(self) -> tuple[Any, ...]:
        return ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParrotError):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self), self._key()))


class OtherError(ParrotError):
    """An error with a free-form message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def _key(self) -> tuple[Any, ...]:
        return (self.message,)


class QueueEmptyError(ParrotError):
    def __init__(self) -> None:
        super().__init__(QUEUE_IS_EMPTY)


class NotInRangeError(ParrotError):
    """A parameter was outside its allowed bounds."""

    def __init__(self, param: str, value: int, lower: int, upper: int) -> None:
        super().__init__(f"`{param}` should be between {lower} and {upper} but was {value}")
        self.param = param
        self.value = value
        self.lower = lower
        self.upper = upper

    def _key(self) -> tuple[Any, ...]:
        return (self.param, self.value, self.lower, self.upper)


class NotConnectedError(ParrotError):
    def __init__(self) -> None:
        super().__init__(FAIL_NO_VOICE_CONNECTION)


class AuthorDisconnectedError(ParrotError):
    """The command author is not in the bot's voice channel."""

    def __init__(self, mention: str) -> None:
        super().__init__(f"{FAIL_AUTHOR_DISCONNECTED} {mention}")
        self.mention = mention

    def _key(self) -> tuple[Any, ...]:
        return (self.mention,)


class WrongVoiceChannelError(ParrotError):
    def __init__(self) -> None:
        super().__init__(FAIL_WRONG_CHANNEL)


class AuthorNotFoundError(ParrotError):
    def __init__(self) -> None:
        super().__init__(FAIL_AUTHOR_NOT_FOUND)


class NothingPlayingError(ParrotError):
    def __init__(self) -> None:
        super().__init__(NOTHING_IS_PLAYING)


class TrackFailError(ParrotError):
    """A track could not be loaded.

    When the loader's metadata output failed to parse, ``parsed_text`` holds
    that output and decides the reply; otherwise the cause's text is shown.
    """

    def __init__(self, cause: BaseException | None = None, parsed_text: str | None = None) -> None:
        if parsed_text is not None:
            text = TRACK_INAPPROPRIATE if _AGE_GATE_MARKER in parsed_text else TRACK_NOT_FOUND
        elif cause is not None:
            text = str(cause)
        else:
            text = TRACK_NOT_FOUND
        super().__init__(text)
        self.cause = cause
        self.parsed_text = parsed_text


class AlreadyConnectedError(ParrotError):
    """The bot is already connected to another voice channel."""

    def __init__(self, mention: str) -> None:
        super().__init__(f"{FAIL_ANOTHER_CHANNEL} {mention}")
        self.mention = mention

    def _key(self) -> tuple[Any, ...]:
        return (self.mention,)


def verify(value: T, error: ParrotError) -> T:
    """Return ``value`` if it counts as a success, otherwise raise ``error``.

    ``False``, ``None`` and exception instances (a failed result) are failures.
    """
    if isinstance(value, BaseException):
        raise error from value
    if value is None or value is False:
        raise error
    return value