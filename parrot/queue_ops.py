"""Commands that rearrange the queue: clear, remove, shuffle and seek."""

from __future__ import annotations

import random
import re
from datetime import timedelta
from typing import Any, MutableSequence

from parrot.errors import (
    NothingPlayingError,
    NotInRangeError,
    OtherError,
    QueueEmptyError,
    verify,
)
from parrot.formatting import Embed, EmbedField
from parrot.messages import (
    FAIL_MINUTES_PARSING,
    FAIL_SECONDS_PARSING,
    REMOVED_QUEUE,
    MessageKind,
    ParrotMessage,
)
from parrot.tracks import Track, TrackQueue

_UNSIGNED = re.compile(r"\+?[0-9]+")


def clear(queue: TrackQueue) -> ParrotMessage:
    """Remove every track except the one being played."""
    verify(len(queue) > 1, QueueEmptyError())
    queue.drain(1, len(queue))
    return ParrotMessage(MessageKind.CLEAR)


def removed_embed(track: Track) -> Embed:
    """Describe a single track removed from the queue."""
    metadata = track.metadata
    return Embed(
        fields=[EmbedField(REMOVED_QUEUE, f"[**{metadata.title}**]({metadata.source_url})")],
        thumbnail=metadata.thumbnail,
    )


def remove(queue: TrackQueue, index: int, until: int | None = None) -> Embed | ParrotMessage:
    """Remove the track at ``index``, or the tracks from ``index`` to ``until`` inclusive."""
    if until is None:
        until = index
    queue_len = len(queue)
    until = min(until, max(queue_len - 1, 0))

    verify(queue_len > 1, QueueEmptyError())
    verify(index < queue_len, NotInRangeError("index", index, 1, queue_len))
    verify(until >= index, NotInRangeError("until", until, index, queue_len))

    removed = queue.drain(index, until + 1)
    if until == index:
        return removed_embed(removed[0])
    return ParrotMessage(MessageKind.REMOVE_MULTIPLE)


def fisher_yates(values: MutableSequence[Any], rng: random.Random) -> None:
    """Shuffle ``values`` in place using ``rng``."""
    for index in range(len(values) - 1, 0, -1):
        other = rng.randrange(index + 1)
        values[index], values[other] = values[other], values[index]


def shuffle(queue: TrackQueue, rng: random.Random | None = None) -> ParrotMessage:
    """Shuffle every track except the one being played."""
    upcoming = queue.drain(1, len(queue))
    fisher_yates(upcoming, rng if rng is not None else random.Random())
    for track in upcoming:
        queue.insert(len(queue), track)
    return ParrotMessage(MessageKind.SHUFFLE)


def parse_seek_timestamp(text: str) -> int:
    """Parse ``MM:SS`` into a number of seconds."""
    units = iter(text.split(":"))
    minutes = next(units, None)
    if minutes is None or not _UNSIGNED.fullmatch(minutes):
        raise OtherError(FAIL_MINUTES_PARSING)
    seconds = next(units, None)
    if seconds is None or not _UNSIGNED.fullmatch(seconds):
        raise OtherError(FAIL_SECONDS_PARSING)
    return int(minutes) * 60 + int(seconds)


def seek(queue: TrackQueue, timestamp: str) -> ParrotMessage:
    """Move the current track to the position given as ``MM:SS``."""
    seconds = parse_seek_timestamp(timestamp)
    track = queue.current()
    if track is None:
        raise NothingPlayingError()
    track.seek(timedelta(seconds=seconds))
    return ParrotMessage(MessageKind.SEEK, timestamp=timestamp)