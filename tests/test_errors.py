import pytest

from parrot.errors import (
    AlreadyConnectedError,
    AuthorDisconnectedError,
    AuthorNotFoundError,
    NotConnectedError,
    NothingPlayingError,
    NotInRangeError,
    OtherError,
    QueueEmptyError,
    TrackFailError,
    WrongVoiceChannelError,
    verify,
)
from parrot.messages import (
    FAIL_ANOTHER_CHANNEL,
    FAIL_AUTHOR_DISCONNECTED,
    FAIL_AUTHOR_NOT_FOUND,
    FAIL_NO_VOICE_CONNECTION,
    FAIL_WRONG_CHANNEL,
    NOTHING_IS_PLAYING,
    QUEUE_IS_EMPTY,
    TRACK_INAPPROPRIATE,
    TRACK_NOT_FOUND,
)


def test_verify_bools():
    assert verify(True, OtherError("not true")) is True

    with pytest.raises(OtherError) as info:
        verify(False, OtherError("not true"))
    assert info.value == OtherError("not true")


def test_verify_options():
    assert verify("🦜", OtherError("not something")) == "🦜"

    with pytest.raises(OtherError) as info:
        verify(None, OtherError("not something"))
    assert info.value == OtherError("not something")


def test_verify_results():
    assert verify("🦜", OtherError("not ok")) == "🦜"

    with pytest.raises(OtherError) as info:
        verify(ValueError("fatality"), OtherError("not ok"))
    assert info.value == OtherError("not ok")
    assert str(info.value.__cause__) == "fatality"


def test_verify_keeps_falsy_non_failures():
    assert verify(0, OtherError("x")) == 0
    assert verify("", OtherError("x")) == ""


def test_other_equality_depends_on_message():
    assert OtherError("a") == OtherError("a")
    assert OtherError("a") != OtherError("b")
    assert str(OtherError("hello")) == "hello"


def test_not_in_range_text():
    err = NotInRangeError("index", 7, 1, 5)
    assert str(err) == "`index` should be between 1 and 5 but was 7"
    assert err == NotInRangeError("index", 7, 1, 5)
    assert err != NotInRangeError("index", 6, 1, 5)


@pytest.mark.parametrize(
    "error, text",
    [
        (QueueEmptyError(), QUEUE_IS_EMPTY),
        (NotConnectedError(), FAIL_NO_VOICE_CONNECTION),
        (WrongVoiceChannelError(), FAIL_WRONG_CHANNEL),
        (AuthorNotFoundError(), FAIL_AUTHOR_NOT_FOUND),
        (NothingPlayingError(), NOTHING_IS_PLAYING),
    ],
)
def test_fixed_error_texts(error, text):
    assert str(error) == text


def test_mention_errors():
    assert str(AuthorDisconnectedError("<#5>")) == f"{FAIL_AUTHOR_DISCONNECTED} <#5>"
    assert str(AlreadyConnectedError("<#5>")) == f"{FAIL_ANOTHER_CHANNEL} <#5>"
    assert AlreadyConnectedError("<#5>") == AlreadyConnectedError("<#5>")
    assert AlreadyConnectedError("<#5>") != AlreadyConnectedError("<#6>")
    assert AlreadyConnectedError("<#5>") != AuthorDisconnectedError("<#5>")


def test_unit_errors_compare_by_kind():
    assert QueueEmptyError() == QueueEmptyError()
    assert QueueEmptyError() != NothingPlayingError()
    assert TrackFailError(parsed_text="a") == TrackFailError(RuntimeError("b"))


def test_track_fail_age_gate():
    err = TrackFailError(parsed_text="ERROR: Sign in to confirm your age")
    assert str(err) == TRACK_INAPPROPRIATE


def test_track_fail_parse_error_is_not_found():
    assert str(TrackFailError(parsed_text="garbage")) == TRACK_NOT_FOUND


def test_track_fail_other_cause():
    assert str(TrackFailError(RuntimeError("boom"))) == "boom"


def test_errors_are_hashable_consistently():
    assert len({OtherError("a"), OtherError("a"), QueueEmptyError()}) == 2