"""Reply embeds and human-readable durations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

from parrot.messages import MessageKind, ParrotMessage
from parrot.tracks import Track

_INFINITY = "∞"


@dataclass(frozen=True)
class EmbedField:
    """A titled block of text inside an embed."""

    name: str
    value: str
    inline: bool = False


@dataclass
class Embed:
    """A rich reply: an optional description, fields, a thumbnail and a footer."""

    description: str | None = None
    fields: list[EmbedField] = field(default_factory=list)
    thumbnail: str | None = None
    footer: str | None = None


def human_readable_timestamp(duration: timedelta | None) -> str:
    """Format a duration as ``MM:SS`` or ``H:MM:SS``; unknown or endless is ``∞``."""
    if duration is None or duration == timedelta.max:
        return _INFINITY
    total = duration // timedelta(seconds=1)
    seconds = total % 60
    minutes = (total // 60) % 60
    hours = total // 3600
    if hours < 1:
        return f"{minutes:02}:{seconds:02}"
    return f"{hours}:{minutes:02}:{seconds:02}"


def now_playing_embed(track: Track) -> Embed:
    """Build the embed describing the track being played and its progress."""
    metadata = track.metadata
    position = human_readable_timestamp(track.position)
    duration = human_readable_timestamp(metadata.duration)
    return Embed(
        fields=[
            EmbedField(
                str(ParrotMessage(MessageKind.NOW_PLAYING)),
                f"[**{metadata.title}**]({metadata.source_url})",
            )
        ],
        thumbnail=metadata.thumbnail,
        footer=f"{position} / {duration}",
    )