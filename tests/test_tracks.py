from datetime import timedelta

import pytest

from parrot.errors import NothingPlayingError, OtherError
from parrot.messages import FAIL_LOOP, MessageKind
from parrot.tracks import (
    PlayMode,
    Track,
    TrackMetadata,
    TrackQueue,
    force_skip_top_track,
    pause,
    repeat,
    resume,
    skip,
    skip_response,
    stop,
)


def make_track(name):
    return Track(
        TrackMetadata(
            title=name,
            source_url=f"https://example.com/{name}",
            duration=timedelta(seconds=60),
        )
    )


def make_queue(*names):
    queue = TrackQueue()
    for name in names:
        queue.enqueue(make_track(name))
    return queue


def titles(queue):
    return [t.metadata.title for t in queue]


def test_enqueue_plays_first_only():
    queue = make_queue("a", "b")
    tracks = queue.current_queue()
    assert tracks[0].mode is PlayMode.PLAY
    assert tracks[1].mode is PlayMode.PAUSE
    assert len(queue) == 2


def test_empty_queue():
    queue = TrackQueue()
    assert queue.is_empty()
    assert queue.current() is None
    assert queue.current_queue() == []


def test_insert_and_iter():
    queue = make_queue("a", "c")
    queue.insert(1, make_track("b"))
    assert titles(queue) == ["a", "b", "c"]


def test_current_queue_is_a_copy():
    queue = make_queue("a")
    snapshot = queue.current_queue()
    snapshot.clear()
    assert len(queue) == 1


def test_dequeue():
    queue = make_queue("a", "b")
    removed = queue.dequeue(1)
    assert removed.metadata.title == "b"
    assert queue.dequeue(5) is None
    assert titles(queue) == ["a"]


def test_drain():
    queue = make_queue("a", "b", "c", "d")
    removed = queue.drain(1, 3)
    assert [t.metadata.title for t in removed] == ["b", "c"]
    assert titles(queue) == ["a", "d"]


def test_queue_pause_resume():
    queue = make_queue("a")
    queue.pause()
    assert queue.current().mode is PlayMode.PAUSE
    queue.resume()
    assert queue.current().mode is PlayMode.PLAY


def test_queue_stop_clears():
    queue = make_queue("a", "b")
    tracks = queue.current_queue()
    queue.stop()
    assert queue.is_empty()
    assert all(t.mode is PlayMode.STOP for t in tracks)


def test_stopped_track_rejects_operations():
    track = make_track("a")
    track.stop()
    for op in (track.play, track.pause, track.stop, track.enable_loop, track.disable_loop):
        with pytest.raises(RuntimeError):
            op()
    with pytest.raises(RuntimeError):
        track.seek(timedelta(seconds=5))


def test_seek_sets_position():
    track = make_track("a")
    track.seek(timedelta(seconds=90))
    assert track.position == timedelta(seconds=90)


def test_force_skip_top_track():
    queue = make_queue("a", "b", "c")
    old_top = queue.current()
    remaining = force_skip_top_track(queue)
    assert [t.metadata.title for t in remaining] == ["b", "c"]
    assert old_top.mode is PlayMode.STOP
    assert queue.current().mode is PlayMode.PLAY


def test_force_skip_empty():
    with pytest.raises(NothingPlayingError):
        force_skip_top_track(TrackQueue())


def test_skip_empty():
    with pytest.raises(NothingPlayingError):
        skip(TrackQueue(), 1)


def test_skip_one_goes_to_next():
    queue = make_queue("a", "b")
    message = skip(queue, 1)
    assert message.kind is MessageKind.SKIP_TO
    assert message.title == "b"
    assert message.url == "https://example.com/b"


def test_skip_to_index():
    queue = make_queue("a", "b", "c")
    message = skip(queue, 2)
    assert message.kind is MessageKind.SKIP_TO
    assert message.title == "c"
    assert titles(queue) == ["c"]


def test_skip_past_end_skips_all():
    queue = make_queue("a", "b", "c")
    message = skip(queue, 3)
    assert message.kind is MessageKind.SKIP_ALL
    assert queue.is_empty()


def test_skip_last_track():
    queue = make_queue("a")
    assert skip(queue).kind is MessageKind.SKIP
    assert queue.is_empty()


def test_skip_response_with_empty_queue():
    assert skip_response(TrackQueue(), 1).kind is MessageKind.SKIP
    assert skip_response(TrackQueue(), 2).kind is MessageKind.SKIP_ALL


def test_pause_command():
    queue = make_queue("a")
    assert pause(queue).kind is MessageKind.PAUSE
    assert queue.current().mode is PlayMode.PAUSE
    with pytest.raises(NothingPlayingError):
        pause(TrackQueue())


def test_pause_command_failure():
    queue = make_queue("a")
    queue.current().stop()
    with pytest.raises(OtherError) as info:
        pause(queue)
    assert info.value == OtherError("Failed to pause")


def test_resume_command():
    queue = make_queue("a")
    queue.pause()
    assert resume(queue).kind is MessageKind.RESUME
    assert queue.current().mode is PlayMode.PLAY
    with pytest.raises(NothingPlayingError):
        resume(TrackQueue())


def test_resume_command_failure():
    queue = make_queue("a")
    queue.current().stop()
    with pytest.raises(OtherError) as info:
        resume(queue)
    assert info.value == OtherError("Failed resuming track")


def test_stop_command():
    queue = make_queue("a", "b")
    assert stop(queue).kind is MessageKind.STOP
    assert queue.is_empty()
    with pytest.raises(NothingPlayingError):
        stop(queue)


def test_repeat_toggles():
    queue = make_queue("a")
    assert repeat(queue).kind is MessageKind.LOOP_ENABLE
    assert queue.current().looping is True
    assert repeat(queue).kind is MessageKind.LOOP_DISABLE
    assert queue.current().looping is False


def test_repeat_failure():
    queue = make_queue("a")
    queue.current().stop()
    with pytest.raises(OtherError) as info:
        repeat(queue)
    assert info.value == OtherError(FAIL_LOOP)


def test_repeat_empty():
    with pytest.raises(NothingPlayingError):
        repeat(TrackQueue())