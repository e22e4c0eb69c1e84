"""Turning Spotify links into search queries."""

from __future__ import annotations

import base64
import json
import os
import re
import urllib.parse
import urllib.request
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, Protocol

from parrot.errors import OtherError
from parrot.messages import SPOTIFY_INVALID_QUERY, SPOTIFY_PLAYLIST_FAILED
from parrot.sources.query import Query, QueryKind

API_BASE = "https://api.spotify.com/v1"
TOKEN_URL = "https://accounts.spotify.com/api/token"

_QUERY_REGEX = re.compile(r"spotify.com/(?P<media_type>.+)/(?P<media_id>.*?)(?:\?|\Z)")
_ID_REGEX = re.compile(r"[A-Za-z0-9]*")
_FETCH_ERRORS = (OSError, ValueError, KeyError, TypeError)


class MediaType(Enum):
    TRACK = "track"
    ALBUM = "album"
    PLAYLIST = "playlist"

    @classmethod
    def from_str(cls, value: str) -> MediaType:
        """Parse a link's media type; raises ValueError for other kinds."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"unknown media type: {value!r}") from None


class _Catalog(Protocol):
    def track(self, track_id: str) -> Mapping[str, Any]: ...

    def album(self, album_id: str) -> Mapping[str, Any]: ...

    def playlist(self, playlist_id: str) -> Mapping[str, Any]: ...


def credentials_from_env(environ: Mapping[str, str] | None = None) -> tuple[str, str]:
    """Read the client ID and client secret from the environment."""
    env = os.environ if environ is None else environ
    client_id = env.get("SPOTIFY_CLIENT_ID")
    if client_id is None:
        raise OtherError("missing spotify client ID")
    client_secret = env.get("SPOTIFY_CLIENT_SECRET")
    if client_secret is None:
        raise OtherError("missing spotify client secret")
    return client_id, client_secret


class SpotifyCatalog:
    """A client-credentials client for the catalogue lookups the bot needs."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        api_base: str = API_BASE,
        token_url: str = TOKEN_URL,
        timeout: float = 10.0,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.api_base = api_base.rstrip("/")
        self.token_url = token_url
        self.timeout = timeout
        self.access_token: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SpotifyCatalog:
        """Authenticate with credentials from the environment."""
        client_id, client_secret = credentials_from_env(environ)
        catalog = cls(client_id, client_secret)
        try:
            catalog.request_token()
        except _FETCH_ERRORS as exc:
            raise OtherError(str(exc)) from exc
        return catalog

    def request_token(self) -> None:
        """Obtain an access token for the client credentials."""
        pair = f"{self.client_id}:{self.client_secret}".encode()
        request = urllib.request.Request(
            self.token_url,
            data=urllib.parse.urlencode({"grant_type": "client_credentials"}).encode(),
            headers={
                "Authorization": "Basic " + base64.b64encode(pair).decode("ascii"),
                "Content-Type": "application/x-www-form-urlencoded",
            },
            method="POST",
        )
        with urllib.request.urlopen(request, timeout=self.timeout) as response:
            self.access_token = str(json.load(response)["access_token"])

    def _get(self, path: str) -> Mapping[str, Any]:
        if self.access_token is None:
            self.request_token()
        request = urllib.request.Request(
            f"{self.api_base}/{path}",
            headers={"Authorization": f"Bearer {self.access_token}"},
        )
        with urllib.request.urlopen(request, timeout=self.timeout) as response:
            return json.load(response)

    def track(self, track_id: str) -> Mapping[str, Any]:
        return self._get(f"tracks/{urllib.parse.quote(track_id)}")

    def album(self, album_id: str) -> Mapping[str, Any]:
        return self._get(f"albums/{urllib.parse.quote(album_id)}")

    def playlist(self, playlist_id: str) -> Mapping[str, Any]:
        return self._get(f"playlists/{urllib.parse.quote(playlist_id)}")


def parse_spotify_url(query: str) -> tuple[MediaType, str]:
    """Split a Spotify link into its media type and ID."""
    match = _QUERY_REGEX.search(query)
    if match is None:
        raise OtherError(SPOTIFY_INVALID_QUERY)
    try:
        media_type = MediaType.from_str(match["media_type"])
    except ValueError as exc:
        raise OtherError(SPOTIFY_INVALID_QUERY) from exc
    return media_type, match["media_id"]


def build_query(artists: str, track_name: str) -> str:
    return f"{artists} - {track_name}"


def join_artist_names(artists: Iterable[Mapping[str, Any]]) -> str:
    return " ".join(artist["name"] for artist in artists)


def _check_id(media_id: str, what: str) -> None:
    if not _ID_REGEX.fullmatch(media_id):
        raise OtherError(f"{what} ID contains invalid characters")


def _track_query(catalog: _Catalog, media_id: str) -> Query:
    _check_id(media_id, "track")
    try:
        track = catalog.track(media_id)
        query = build_query(join_artist_names(track["artists"]), track["name"])
    except _FETCH_ERRORS as exc:
        raise OtherError("failed to fetch track") from exc
    return Query(QueryKind.KEYWORDS, query)


def _album_query(catalog: _Catalog, media_id: str) -> Query:
    _check_id(media_id, "album")
    try:
        album = catalog.album(media_id)
        artist_names = join_artist_names(album["artists"])
        queries = [build_query(artist_names, item["name"]) for item in album["tracks"]["items"]]
    except _FETCH_ERRORS as exc:
        raise OtherError("failed to fetch album") from exc
    return Query(QueryKind.KEYWORD_LIST, queries)


def _playlist_query(catalog: _Catalog, media_id: str) -> Query:
    _check_id(media_id, "playlist")
    try:
        playlist = catalog.playlist(media_id)
        queries = []
        for item in playlist["tracks"]["items"]:
            track = item.get("track")
            if track is None:
                raise ValueError("playlist entry without a track")
            if track.get("type") == "episode":
                continue
            artist_names = join_artist_names(track["album"]["artists"])
            queries.append(build_query(artist_names, track["name"]))
    except _FETCH_ERRORS as exc:
        raise OtherError(SPOTIFY_PLAYLIST_FAILED) from exc
    return Query(QueryKind.KEYWORD_LIST, queries)


_HANDLERS = {
    MediaType.TRACK: _track_query,
    MediaType.ALBUM: _album_query,
    MediaType.PLAYLIST: _playlist_query,
}


def extract(catalog: _Catalog, query: str) -> Query:
    """Resolve a Spotify link into the searches that find its tracks."""
    media_type, media_id = parse_spotify_url(query)
    return _HANDLERS[media_type](catalog, media_id)