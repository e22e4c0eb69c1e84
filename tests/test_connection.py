from parrot.connection import (
    Connection,
    ConnectionKind,
    check_voice_connections,
    get_voice_channel_for_user,
)

USER = 1
BOT = 2


def test_get_voice_channel_for_user():
    states = {USER: 10, 3: None}
    assert get_voice_channel_for_user(states, USER) == 10
    assert get_voice_channel_for_user(states, 3) is None
    assert get_voice_channel_for_user(states, 99) is None


def test_mutual():
    result = check_voice_connections({USER: 10, BOT: 10}, USER, BOT)
    assert result == Connection(ConnectionKind.MUTUAL, 10, 10)


def test_separate():
    result = check_voice_connections({USER: 10, BOT: 20}, USER, BOT)
    assert result.kind is ConnectionKind.SEPARATE
    assert result.bot_channel == 20
    assert result.user_channel == 10


def test_bot_only():
    result = check_voice_connections({BOT: 20}, USER, BOT)
    assert result == Connection(ConnectionKind.BOT, bot_channel=20)


def test_user_only():
    result = check_voice_connections({USER: 10, BOT: None}, USER, BOT)
    assert result == Connection(ConnectionKind.USER, user_channel=10)


def test_neither():
    result = check_voice_connections({}, USER, BOT)
    assert result.kind is ConnectionKind.NEITHER
    assert result.bot_channel is None and result.user_channel is None