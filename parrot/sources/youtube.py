"""Loading tracks with yt-dlp and decoding them to PCM with ffmpeg."""

from __future__ import annotations

import json
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import IO, Any

from parrot.errors import TrackFailError
from parrot.sources.query import Mode, Query, QueryKind
from parrot.tracks import TrackMetadata

_YTDL = "yt-dlp"
_FFMPEG = "ffmpeg"
_SEARCH_PREFIX = "ytsearch:"


def extract(query: str) -> Query:
    """Classify a video-site link as a playlist or a single video."""
    if "playlist?list=" in query:
        return Query(QueryKind.PLAYLIST_LINK, query)
    return Query(QueryKind.VIDEO_LINK, query)


def playlist_command(uri: str, mode: Mode) -> list[str]:
    """The command listing a playlist's entries, one JSON object per line."""
    args = [_YTDL, uri, "--flat-playlist", "-j"]
    if mode is Mode.REVERSE:
        args.append("--playlist-reverse")
    elif mode is Mode.SHUFFLE:
        args.append("--playlist-random")
    return args


def ytdl_playlist(uri: str, mode: Mode) -> list[str] | None:
    """The page URLs of a playlist's entries, or None if they cannot be listed."""
    try:
        completed = subprocess.run(
            playlist_command(uri, mode), stdout=subprocess.PIPE, check=False
        )
    except OSError:
        return None
    urls = []
    try:
        for line in completed.stdout.splitlines():
            if not line.strip():
                continue
            urls.append(str(json.loads(line)["webpage_url"]))
    except (ValueError, KeyError, TypeError):
        return None
    return urls


def stream_command(uri: str) -> list[str]:
    """The command streaming a track's best audio to stdout, metadata to stderr."""
    return [
        _YTDL,
        "-j",
        "-q",
        "--no-simulate",
        "-f",
        "webm[abr>0]/bestaudio/best",
        "-R",
        "infinite",
        "--no-playlist",
        "--ignore-config",
        uri,
        "-o",
        "-",
    ]


def metadata_command(uri: str) -> list[str]:
    """The command printing a track's metadata as JSON."""
    return [
        _YTDL,
        "-j",
        "-R",
        "infinite",
        "--no-playlist",
        "--ignore-config",
        uri,
        "-o",
        "-",
    ]


def ffmpeg_command(pre_args: Sequence[str]) -> list[str]:
    """The command decoding stdin to two-channel 48 kHz float PCM on stdout."""
    return [
        _FFMPEG,
        *pre_args,
        "-i",
        "-",
        "-f",
        "s16le",
        "-ac",
        "2",
        "-ar",
        "48000",
        "-acodec",
        "pcm_f32le",
        "-",
    ]


def parse_metadata_output(output: bytes) -> Any:
    """Parse the JSON on the first line of the loader's output.

    Raises TrackFailError carrying the whole output when it is not JSON.
    """
    end = output.find(b"\n")
    first_line = output if end < 0 else output[:end]
    try:
        return json.loads(first_line)
    except ValueError as exc:
        try:
            text = output.decode("utf-8")
        except UnicodeDecodeError:
            text = ""
        raise TrackFailError(exc, parsed_text=text) from exc


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def metadata_from_info(info: Any) -> TrackMetadata:
    """Build track metadata from the loader's JSON description."""
    if not isinstance(info, dict):
        return TrackMetadata()
    raw_duration = info.get("duration")
    duration = None
    if isinstance(raw_duration, (int, float)) and not isinstance(raw_duration, bool):
        duration = timedelta(seconds=raw_duration)
    return TrackMetadata(
        title=_optional_str(info.get("title")),
        source_url=_optional_str(info.get("webpage_url")),
        thumbnail=_optional_str(info.get("thumbnail")),
        duration=duration,
    )


def fetch_metadata(uri: str) -> TrackMetadata:
    """Ask the loader for a track's metadata without downloading it."""
    try:
        completed = subprocess.run(
            metadata_command(uri),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        raise TrackFailError(exc) from exc
    return metadata_from_info(parse_metadata_output(completed.stderr))


def _terminate(process: subprocess.Popen) -> None:
    if process.poll() is None:
        process.kill()
    process.wait()


@dataclass
class _Pipeline:
    """A running loader and decoder; ``stdout`` yields PCM audio."""

    metadata: TrackMetadata
    stdout: IO[bytes]
    processes: tuple[subprocess.Popen, ...]

    def close(self) -> None:
        self.stdout.close()
        for process in self.processes:
            _terminate(process)

    def __enter__(self) -> _Pipeline:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class TrackSource:
    """A track that can be (re)opened as a PCM stream from any position."""

    def __init__(self, uri: str, metadata: TrackMetadata | None = None) -> None:
        self.uri = uri
        self._metadata = metadata

    def metadata(self) -> TrackMetadata:
        """The track's metadata, fetched on first use."""
        if self._metadata is None:
            self._metadata = fetch_metadata(self.uri)
        return self._metadata

    def open(self, start: timedelta | None = None) -> _Pipeline:
        """Start streaming the track, optionally from ``start``."""
        try:
            loader = subprocess.Popen(
                stream_command(self.uri),
                stdin=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                stdout=subprocess.PIPE,
            )
        except OSError as exc:
            raise TrackFailError(exc) from exc

        try:
            metadata = metadata_from_info(parse_metadata_output(loader.stderr.readline()))
            pre_args = [] if start is None else ["-ss", f"{start.total_seconds():.3f}"]
            decoder = subprocess.Popen(
                ffmpeg_command(pre_args),
                stdin=loader.stdout,
                stderr=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
            )
        except OSError as exc:
            _terminate(loader)
            raise TrackFailError(exc) from exc
        except TrackFailError:
            _terminate(loader)
            raise

        loader.stdout.close()
        if self._metadata is None:
            self._metadata = metadata
        return _Pipeline(metadata, decoder.stdout, (loader, decoder))


def ytdl(uri: str) -> TrackSource:
    """A source for a video link; its metadata is fetched up front."""
    source = TrackSource(uri)
    source.metadata()
    return source


def ytdl_search(query: str) -> TrackSource:
    """A source for the first search result for ``query``."""
    return ytdl(f"{_SEARCH_PREFIX}{query}")