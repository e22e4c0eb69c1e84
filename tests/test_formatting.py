from datetime import timedelta

from parrot.formatting import Embed, EmbedField, human_readable_timestamp, now_playing_embed
from parrot.messages import QUEUE_NOW_PLAYING
from parrot.tracks import Track, TrackMetadata


def test_get_human_readable_timestamp():
    assert human_readable_timestamp(timedelta(seconds=53)) == "00:53"
    assert human_readable_timestamp(timedelta(seconds=3599)) == "59:59"
    assert human_readable_timestamp(timedelta(seconds=96548)) == "26:49:08"
    assert human_readable_timestamp(timedelta.max) == "∞"
    assert human_readable_timestamp(None) == "∞"


def test_fractional_seconds_are_truncated():
    assert human_readable_timestamp(timedelta(seconds=53, milliseconds=999)) == "00:53"


def _track(duration):
    return Track(
        TrackMetadata(
            title="Song",
            source_url="https://example.com/watch",
            thumbnail="https://example.com/thumb.png",
            duration=duration,
        ),
        position=timedelta(seconds=53),
    )


def test_now_playing_embed_contents():
    embed = now_playing_embed(_track(timedelta(seconds=3599)))
    assert embed.fields == [
        EmbedField(QUEUE_NOW_PLAYING, "[**Song**](https://example.com/watch)", False)
    ]
    assert embed.thumbnail == "https://example.com/thumb.png"
    assert embed.footer == "00:53 / 59:59"


def test_now_playing_embed_livestream():
    embed = now_playing_embed(_track(None))
    assert embed.footer == "00:53 / ∞"
    assert embed.description is None


def test_embed_defaults_are_independent():
    first = Embed()
    second = Embed()
    first.fields.append(EmbedField("a", "b"))
    assert second.fields == []