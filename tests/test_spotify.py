import io
import json
from unittest import mock

import pytest

from parrot.errors import OtherError
from parrot.messages import SPOTIFY_INVALID_QUERY, SPOTIFY_PLAYLIST_FAILED
from parrot.sources.query import Query, QueryKind
from parrot.sources.spotify import (
    MediaType,
    SpotifyCatalog,
    build_query,
    credentials_from_env,
    extract,
    join_artist_names,
    parse_spotify_url,
)

ARTISTS = [{"name": "First"}, {"name": "Second"}]


class FakeCatalog:
    def __init__(self, track=None, album=None, playlist=None, fail=False):
        self._track = track
        self._album = album
        self._playlist = playlist
        self._fail = fail

    def _answer(self, value):
        if self._fail:
            raise OSError("unreachable")
        return value

    def track(self, track_id):
        return self._answer(self._track)

    def album(self, album_id):
        return self._answer(self._album)

    def playlist(self, playlist_id):
        return self._answer(self._playlist)


@pytest.mark.parametrize(
    ("text", "media_type"),
    [("track", MediaType.TRACK), ("album", MediaType.ALBUM), ("playlist", MediaType.PLAYLIST)],
)
def test_media_type_from_str(text, media_type):
    assert MediaType.from_str(text) is media_type


def test_media_type_unknown():
    with pytest.raises(ValueError):
        MediaType.from_str("artist")


def test_credentials_from_env():
    env = {"SPOTIFY_CLIENT_ID": "client-id", "SPOTIFY_CLIENT_SECRET": "secret"}
    assert credentials_from_env(env) == ("client-id", "secret")


def test_credentials_missing_id():
    with pytest.raises(OtherError) as info:
        credentials_from_env({"SPOTIFY_CLIENT_SECRET": "secret"})
    assert info.value == OtherError("missing spotify client ID")


def test_credentials_missing_secret():
    with pytest.raises(OtherError) as info:
        credentials_from_env({"SPOTIFY_CLIENT_ID": "client-id"})
    assert info.value == OtherError("missing spotify client secret")


def test_parse_url_with_query_string():
    assert parse_spotify_url("https://open.spotify.com/track/abc123?si=xyz") == (
        MediaType.TRACK,
        "abc123",
    )


def test_parse_url_without_query_string():
    assert parse_spotify_url("https://open.spotify.com/playlist/P1") == (MediaType.PLAYLIST, "P1")


@pytest.mark.parametrize(
    "url", ["https://example.com/track/abc", "https://open.spotify.com/artist/abc"]
)
def test_parse_url_invalid(url):
    with pytest.raises(OtherError) as info:
        parse_spotify_url(url)
    assert str(info.value) == SPOTIFY_INVALID_QUERY


def test_build_query():
    assert build_query("Band", "Song") == "Band - Song"


def test_join_artist_names():
    assert join_artist_names(ARTISTS) == "First Second"
    assert join_artist_names([]) == ""


def test_extract_track():
    catalog = FakeCatalog(track={"name": "Song", "artists": ARTISTS})
    query = extract(catalog, "https://open.spotify.com/track/abc")
    assert query == Query(QueryKind.KEYWORDS, build_query(join_artist_names(ARTISTS), "Song"))


def test_extract_album_lists_every_track():
    album = {"artists": ARTISTS, "tracks": {"items": [{"name": "One"}, {"name": "Two"}]}}
    query = extract(FakeCatalog(album=album), "https://open.spotify.com/album/abc")
    names = join_artist_names(ARTISTS)
    assert query.kind is QueryKind.KEYWORD_LIST
    assert query.value == (build_query(names, "One"), build_query(names, "Two"))


def test_extract_playlist_skips_episodes():
    playlist = {
        "tracks": {
            "items": [
                {"track": {"type": "track", "name": "Song", "album": {"artists": ARTISTS}}},
                {"track": {"type": "episode", "name": "Talk"}},
            ]
        }
    }
    query = extract(FakeCatalog(playlist=playlist), "https://open.spotify.com/playlist/abc")
    assert query.value == (build_query(join_artist_names(ARTISTS), "Song"),)


def test_extract_invalid_id_characters():
    with pytest.raises(OtherError) as info:
        extract(FakeCatalog(), "https://open.spotify.com/track/ab-c")
    assert info.value == OtherError("track ID contains invalid characters")


def test_extract_fetch_failures():
    with pytest.raises(OtherError) as track_info:
        extract(FakeCatalog(fail=True), "https://open.spotify.com/track/abc")
    assert track_info.value == OtherError("failed to fetch track")
    with pytest.raises(OtherError) as album_info:
        extract(FakeCatalog(fail=True), "https://open.spotify.com/album/abc")
    assert album_info.value == OtherError("failed to fetch album")
    with pytest.raises(OtherError) as playlist_info:
        extract(FakeCatalog(fail=True), "https://open.spotify.com/playlist/abc")
    assert str(playlist_info.value) == SPOTIFY_PLAYLIST_FAILED


def test_catalog_requests_token_then_uses_it():
    responses = [
        io.BytesIO(json.dumps({"access_token": "token"}).encode()),
        io.BytesIO(json.dumps({"name": "Song", "artists": ARTISTS}).encode()),
    ]
    with mock.patch("urllib.request.urlopen", side_effect=responses) as urlopen:
        catalog = SpotifyCatalog("client-id", "secret", api_base="https://api.example.com")
        track = catalog.track("abc")
    assert track["name"] == "Song"
    assert catalog.access_token == "token"
    request = urlopen.call_args_list[1].args[0]
    assert request.full_url == "https://api.example.com/tracks/abc"
    assert request.get_header("Authorization") == "Bearer token"


def test_from_env_wraps_auth_failure():
    env = {"SPOTIFY_CLIENT_ID": "client-id", "SPOTIFY_CLIENT_SECRET": "secret"}
    with mock.patch("urllib.request.urlopen", side_effect=OSError("down")):
        with pytest.raises(OtherError) as info:
            SpotifyCatalog.from_env(env)
    assert info.value == OtherError("down")