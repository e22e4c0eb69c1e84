"""Tracks, the per-guild play queue, and the commands that drive playback."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum, auto

from parrot.errors import NothingPlayingError, OtherError, verify
from parrot.messages import FAIL_LOOP, MessageKind, ParrotMessage


@dataclass(frozen=True)
class TrackMetadata:
    """Descriptive data of a track; ``duration`` is None for livestreams."""

    title: str | None = None
    source_url: str | None = None
    thumbnail: str | None = None
    duration: timedelta | None = None


class PlayMode(Enum):
    PLAY = auto()
    PAUSE = auto()
    STOP = auto()


@dataclass
class Track:
    """A single playable track and its playback state.

    Once stopped, a track cannot be controlled any more and every
    operation on it raises RuntimeError.
    """

    metadata: TrackMetadata
    mode: PlayMode = PlayMode.PAUSE
    position: timedelta = field(default_factory=timedelta)
    looping: bool = False

    def _ensure_alive(self) -> None:
        if self.mode is PlayMode.STOP:
            raise RuntimeError("track has ended")

    def pause(self) -> None:
        self._ensure_alive()
        self.mode = PlayMode.PAUSE

    def play(self) -> None:
        self._ensure_alive()
        self.mode = PlayMode.PLAY

    def stop(self) -> None:
        self._ensure_alive()
        self.mode = PlayMode.STOP

    def seek(self, position: timedelta) -> None:
        self._ensure_alive()
        self.position = position

    def enable_loop(self) -> None:
        self._ensure_alive()
        self.looping = True

    def disable_loop(self) -> None:
        self._ensure_alive()
        self.looping = False


class TrackQueue:
    """An ordered queue whose first track is the one being played."""

    def __init__(self) -> None:
        self._tracks: list[Track] = []

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(list(self._tracks))

    def enqueue(self, track: Track) -> None:
        """Append a track; it starts playing if the queue was empty."""
        self._tracks.append(track)
        if len(self._tracks) == 1:
            track.play()

    def insert(self, index: int, track: Track) -> None:
        self._tracks.insert(index, track)

    def current(self) -> Track | None:
        return self._tracks[0] if self._tracks else None

    def current_queue(self) -> list[Track]:
        return list(self._tracks)

    def is_empty(self) -> bool:
        return not self._tracks

    def pause(self) -> None:
        """Pause the current track, if any."""
        track = self.current()
        if track is not None:
            track.pause()

    def resume(self) -> None:
        """Play the current track, if any."""
        track = self.current()
        if track is not None:
            track.play()

    def stop(self) -> None:
        """Stop every track and empty the queue."""
        for track in self._tracks:
            if track.mode is not PlayMode.STOP:
                track.stop()
        self._tracks.clear()

    def dequeue(self, index: int) -> Track | None:
        """Remove and return the track at ``index``, or None if there is none."""
        if 0 <= index < len(self._tracks):
            return self._tracks.pop(index)
        return None

    def drain(self, start: int, end: int) -> list[Track]:
        """Remove and return the tracks in ``[start, end)``."""
        removed = self._tracks[start:end]
        del self._tracks[start:end]
        return removed


def force_skip_top_track(queue: TrackQueue) -> list[Track]:
    """Stop and remove the playing track, start the next and return the queue."""
    top = queue.current()
    if top is None:
        raise NothingPlayingError()
    try:
        top.stop()
    except RuntimeError:
        pass
    queue.dequeue(0)
    try:
        queue.resume()
    except RuntimeError:
        pass
    return queue.current_queue()


def skip_response(queue: TrackQueue, tracks_to_skip: int) -> ParrotMessage:
    """Describe the queue's state after a skip."""
    track = queue.current()
    if track is not None:
        return ParrotMessage(
            MessageKind.SKIP_TO,
            title=track.metadata.title or "",
            url=track.metadata.source_url or "",
        )
    if tracks_to_skip > 1:
        return ParrotMessage(MessageKind.SKIP_ALL)
    return ParrotMessage(MessageKind.SKIP)


def skip(queue: TrackQueue, to_skip: int = 1) -> ParrotMessage:
    """Skip to the track at position ``to_skip`` (1 skips just the current one)."""
    verify(not queue.is_empty(), NothingPlayingError())
    tracks_to_skip = min(to_skip, len(queue))
    queue.drain(1, tracks_to_skip)
    force_skip_top_track(queue)
    return skip_response(queue, tracks_to_skip)


def pause(queue: TrackQueue) -> ParrotMessage:
    verify(not queue.is_empty(), NothingPlayingError())
    try:
        queue.pause()
    except RuntimeError as exc:
        raise OtherError("Failed to pause") from exc
    return ParrotMessage(MessageKind.PAUSE)


def resume(queue: TrackQueue) -> ParrotMessage:
    verify(not queue.is_empty(), NothingPlayingError())
    try:
        queue.resume()
    except RuntimeError as exc:
        raise OtherError("Failed resuming track") from exc
    return ParrotMessage(MessageKind.RESUME)


def stop(queue: TrackQueue) -> ParrotMessage:
    verify(not queue.is_empty(), NothingPlayingError())
    queue.stop()
    return ParrotMessage(MessageKind.STOP)


def repeat(queue: TrackQueue) -> ParrotMessage:
    """Toggle looping of the current track."""
    track = queue.current()
    if track is None:
        raise NothingPlayingError()
    was_looping = track.looping
    try:
        if was_looping:
            track.disable_loop()
        else:
            track.enable_loop()
    except RuntimeError as exc:
        raise OtherError(FAIL_LOOP) from exc
    return ParrotMessage(MessageKind.LOOP_DISABLE if was_looping else MessageKind.LOOP_ENABLE)