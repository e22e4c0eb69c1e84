"""The play command: resolving a request and placing its tracks in the queue."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import timedelta
from typing import Any

from parrot.errors import (
    NothingPlayingError,
    NotInRangeError,
    OtherError,
    ParrotError,
    TrackFailError,
    verify,
)
from parrot.formatting import Embed, EmbedField, human_readable_timestamp, now_playing_embed
from parrot.messages import (
    PLAY_QUEUE,
    PLAY_TOP,
    SPOTIFY_AUTH_FAILED,
    TRACK_DURATION,
    TRACK_TIME_TO_PLAY,
    MessageKind,
    ParrotMessage,
)
from parrot.sources import spotify as spotify_source
from parrot.sources import youtube as youtube_source
from parrot.sources.query import Mode, Query, QueryKind
from parrot.tracks import Track, TrackQueue, force_skip_top_track

TrackLoader = Callable[[Query], Track]
PlaylistLoader = Callable[[str, Mode], "list[str] | None"]

_SINGLE_KINDS = (QueryKind.KEYWORDS, QueryKind.VIDEO_LINK)
_BULK_MODES = (Mode.ALL, Mode.REVERSE, Mode.SHUFFLE)


def _youtube_loader(query: Query) -> Track:
    """Load a single video link or the first search result for keywords."""
    if query.kind is QueryKind.VIDEO_LINK:
        source = youtube_source.ytdl(query.value)
    else:
        source = youtube_source.ytdl_search(query.value)
    return Track(source.metadata())


def resolve_query(url: str, spotify: Any = None) -> Query:
    """Work out what a play request asks for.

    ``spotify`` is an authenticated catalogue client, or None when there is none.
    """
    if "spotify.com" in url:
        catalog = verify(spotify, OtherError(SPOTIFY_AUTH_FAILED))
        return spotify_source.extract(catalog, url)
    if "youtube.com" in url:
        return youtube_source.extract(url)
    return Query(QueryKind.KEYWORDS, url)


def calculate_time_until_play(tracks: Sequence[Track], mode: Mode) -> timedelta | None:
    """Estimate how long until a newly queued track starts.

    Returns ``timedelta.max`` when a livestream stands in the way and None
    for an empty queue.
    """
    if not tracks:
        return None

    top = tracks[0]
    top_duration = top.metadata.duration
    if top_duration is None:
        return timedelta.max
    remaining = top_duration - top.position

    if mode is Mode.NEXT:
        return remaining

    center = tracks[1:-1]
    durations = [track.metadata.duration for track in center]
    if any(duration is None for duration in durations):
        return timedelta.max
    return sum(durations, timedelta()) + remaining


def queued_embed(title: str, track: Track, estimated_time: timedelta) -> Embed:
    """Describe a track that was added to the queue and when it will play."""
    metadata = track.metadata
    footer = (
        f"{TRACK_DURATION}{human_readable_timestamp(metadata.duration)}\n"
        f"{TRACK_TIME_TO_PLAY}{human_readable_timestamp(estimated_time)}"
    )
    return Embed(
        fields=[EmbedField(title, f"[**{metadata.title}**]({metadata.source_url})")],
        thumbnail=metadata.thumbnail,
        footer=footer,
    )


def enqueue_track(
    queue: TrackQueue, query: Query, loader: TrackLoader | None = None
) -> list[Track]:
    """Load a single track and append it to the queue."""
    if query.kind not in _SINGLE_KINDS:
        raise ValueError(f"cannot load a single track from {query.kind.name}")
    load = loader if loader is not None else _youtube_loader
    try:
        track = load(query)
    except ParrotError:
        raise
    except Exception as exc:
        raise TrackFailError(exc) from exc
    queue.enqueue(track)
    return queue.current_queue()


def insert_track(
    queue: TrackQueue, query: Query, index: int, loader: TrackLoader | None = None
) -> list[Track]:
    """Load a single track and place it at ``index`` in the queue."""
    queue_size = len(queue)
    verify(
        index != 0 and index < queue_size,
        NotInRangeError("index", index, 1, queue_size),
    )
    enqueue_track(queue, query, loader)
    back = queue.dequeue(len(queue) - 1)
    queue.insert(index, back)
    return queue.current_queue()


def rotate_tracks(queue: TrackQueue, n: int) -> list[Track]:
    """Rotate the tracks after the playing one ``n`` places to the right."""
    verify(len(queue) > 2, OtherError("cannot rotate queues smaller than 3 tracks"))
    upcoming = queue.drain(1, len(queue))
    shift = n % len(upcoming)
    rotated = upcoming[len(upcoming) - shift :] + upcoming[: len(upcoming) - shift]
    for track in rotated:
        queue.insert(len(queue), track)
    return queue.current_queue()


def _playlist_urls(url: str, mode: Mode, playlist_loader: PlaylistLoader) -> list[str]:
    urls = playlist_loader(url, mode)
    if urls is None:
        raise OtherError("failed to fetch playlist")
    return list(urls)


def _expand(query: Query, mode: Mode, playlist_loader: PlaylistLoader) -> list[Query]:
    """The single-track queries a multi-track query stands for."""
    if query.kind is QueryKind.PLAYLIST_LINK:
        return [
            Query(QueryKind.VIDEO_LINK, url)
            for url in _playlist_urls(query.value, mode, playlist_loader)
        ]
    return [Query(QueryKind.KEYWORDS, keywords) for keywords in query.value]


def _play_jump(
    queue: TrackQueue,
    query: Query,
    queue_was_empty: bool,
    loader: TrackLoader | None,
    playlist_loader: PlaylistLoader,
) -> None:
    if query.kind in _SINGLE_KINDS:
        enqueue_track(queue, query, loader)
        if not queue_was_empty:
            try:
                rotate_tracks(queue, 1)
            except ParrotError:
                pass
            force_skip_top_track(queue)
        return

    insert_index = 1
    for position, single in enumerate(_expand(query, Mode.JUMP, playlist_loader)):
        insert_track(queue, single, insert_index, loader)
        if position == 0 and not queue_was_empty:
            force_skip_top_track(queue)
        else:
            insert_index += 1


def play(
    queue: TrackQueue,
    mode: Mode,
    query: Query,
    loader: TrackLoader | None = None,
    playlist_loader: PlaylistLoader | None = None,
) -> Embed | ParrotMessage | None:
    """Queue the tracks a request names, in the way ``mode`` asks.

    Returns the reply to show, or None when the searching notice should stay.
    """
    list_playlist = playlist_loader if playlist_loader is not None else youtube_source.ytdl_playlist
    queue_was_empty = queue.is_empty()

    if mode is Mode.END:
        singles = [query] if query.kind in _SINGLE_KINDS else _expand(query, mode, list_playlist)
        for single in singles:
            enqueue_track(queue, single, loader)
    elif mode is Mode.NEXT:
        singles = [query] if query.kind in _SINGLE_KINDS else _expand(query, mode, list_playlist)
        for offset, single in enumerate(singles, start=1):
            insert_track(queue, single, offset, loader)
    elif mode is Mode.JUMP:
        _play_jump(queue, query, queue_was_empty, loader, list_playlist)
    else:
        if query.kind is QueryKind.KEYWORDS:
            return ParrotMessage(MessageKind.PLAY_ALL_FAILED)
        if query.kind is QueryKind.KEYWORD_LIST:
            singles = _expand(query, mode, list_playlist)
        else:
            singles = [
                Query(QueryKind.VIDEO_LINK, url)
                for url in _playlist_urls(query.value, mode, list_playlist)
            ]
        for single in singles:
            enqueue_track(queue, single, loader)

    tracks = queue.current_queue()
    if len(tracks) > 1:
        estimated = calculate_time_until_play(tracks, mode)
        if query.kind in _SINGLE_KINDS and mode is Mode.NEXT:
            return queued_embed(PLAY_TOP, tracks[1], estimated)
        if query.kind in _SINGLE_KINDS and mode is Mode.END:
            return queued_embed(PLAY_QUEUE, tracks[-1], estimated)
        if query.kind in (QueryKind.PLAYLIST_LINK, QueryKind.KEYWORD_LIST):
            return ParrotMessage(MessageKind.PLAYLIST_QUEUED)
        return None
    if len(tracks) == 1:
        return now_playing_embed(tracks[0])
    raise NothingPlayingError()