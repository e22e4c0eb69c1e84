"""What a play request asks for and how its tracks should be queued."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class Mode(Enum):
    """Where and in what order requested tracks enter the queue."""

    END = auto()
    NEXT = auto()
    ALL = auto()
    REVERSE = auto()
    SHUFFLE = auto()
    JUMP = auto()

    @classmethod
    def from_name(cls, name: str) -> Mode:
        """The mode a sub-command name selects; anything unknown means END."""
        return _MODE_NAMES.get(name, cls.END)


_MODE_NAMES = {
    "next": Mode.NEXT,
    "all": Mode.ALL,
    "reverse": Mode.REVERSE,
    "shuffle": Mode.SHUFFLE,
    "jump": Mode.JUMP,
}


class QueryKind(Enum):
    KEYWORDS = auto()
    KEYWORD_LIST = auto()
    VIDEO_LINK = auto()
    PLAYLIST_LINK = auto()


@dataclass(frozen=True)
class Query:
    """A parsed request.

    ``value`` is a tuple of search strings for KEYWORD_LIST and a single
    string for every other kind.
    """

    kind: QueryKind
    value: str | tuple[str, ...]

    def __post_init__(self) -> None:
        if self.kind is QueryKind.KEYWORD_LIST:
            if isinstance(self.value, str):
                raise TypeError("a keyword list needs a sequence of strings")
            items = tuple(self.value)
            if not all(isinstance(item, str) for item in items):
                raise TypeError("a keyword list holds strings only")
            object.__setattr__(self, "value", items)
        elif not isinstance(self.value, str):
            raise TypeError(f"{self.kind.name} needs a single string")