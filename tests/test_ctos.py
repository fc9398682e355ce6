import struct

import pytest

from multirole.common import SERVER_VERSION, HostInfo
from multirole.ctos import (
    HEADER_LENGTH,
    MSG_MAX_LENGTH,
    BodyOverrun,
    CreateGame,
    CTOSMsg,
    CTOSMsgType,
    JoinGame,
    PlayerInfo,
    Rematch,
    RPSChoice,
    TryKick,
    TurnChoice,
)


def _raw(msg_type, body=b""):
    return struct.pack("<hB", len(body) + 1, msg_type) + body


def _utf16(text, units=20):
    return text.encode("utf-16-le").ljust(units * 2, b"\0")


def test_empty_message_length_wraps_below_zero():
    msg = CTOSMsg()
    assert msg.length == -1
    assert msg.body == b""


def test_length_and_type_from_header():
    msg = CTOSMsg(_raw(CTOSMsgType.CHAT, b"abc"))
    assert msg.length == 3
    assert msg.msg_type == CTOSMsgType.CHAT
    assert msg.body == b"abc"


@pytest.mark.parametrize("msg_type", list(CTOSMsgType))
def test_known_types_are_valid(msg_type):
    assert CTOSMsg(_raw(msg_type)).is_header_valid() is True


def test_unknown_type_is_invalid():
    assert CTOSMsg(_raw(0x05)).is_header_valid() is False


def test_length_limit():
    at_limit = CTOSMsg(struct.pack("<hB", MSG_MAX_LENGTH + 1, CTOSMsgType.RESPONSE))
    over = CTOSMsg(struct.pack("<hB", MSG_MAX_LENGTH + 2, CTOSMsgType.RESPONSE))
    assert at_limit.is_header_valid() is True
    assert over.is_header_valid() is False


def test_too_long_buffer_rejected():
    with pytest.raises(ValueError):
        CTOSMsg(bytes(HEADER_LENGTH + MSG_MAX_LENGTH + 1))


@pytest.mark.parametrize(
    "msg_type, getter, expected",
    [
        (CTOSMsgType.RPS_CHOICE, "get_rps_choice", RPSChoice(2)),
        (CTOSMsgType.TURN_CHOICE, "get_turn_choice", TurnChoice(2)),
        (CTOSMsgType.TRY_KICK, "get_try_kick", TryKick(2)),
        (CTOSMsgType.REMATCH, "get_rematch", Rematch(2)),
    ],
)
def test_single_byte_messages(msg_type, getter, expected):
    msg = CTOSMsg(_raw(msg_type, b"\x02"))
    assert getattr(msg, getter)() == expected


def test_wrong_length_gives_none():
    msg = CTOSMsg(_raw(CTOSMsgType.RPS_CHOICE, b"\x02\x03"))
    assert msg.get_rps_choice() is None


def test_player_info_name():
    msg = CTOSMsg(_raw(CTOSMsgType.PLAYER_INFO, _utf16("Duelist")))
    assert msg.get_player_info() == PlayerInfo("Duelist")


def test_join_game():
    body = struct.pack(
        "<H2xI40s4s", 0x1234, 77, _utf16("password"), SERVER_VERSION.to_bytes()
    )
    msg = CTOSMsg(_raw(CTOSMsgType.JOIN_GAME, body))
    assert msg.get_join_game() == JoinGame(0x1234, 77, "password", SERVER_VERSION)


def test_create_game():
    host = HostInfo(banlist_hash=123, starting_lp=8000, version=SERVER_VERSION, best_of=3)
    notes = b"friendly match".ljust(200, b"\0")
    body = host.to_bytes() + _utf16("Room") + _utf16("password") + notes
    msg = CTOSMsg(_raw(CTOSMsgType.CREATE_GAME, body))
    game = msg.get_create_game()
    assert game == CreateGame(host, "Room", "password", "friendly match")


def test_reader_reads_in_order_and_stops_at_length():
    msg = CTOSMsg(_raw(CTOSMsgType.RESPONSE, struct.pack("<IB", 1, 5)))
    reader = msg.reader()
    assert reader.read("I") == 1
    assert reader.read("B") == 5
    with pytest.raises(BodyOverrun) as info:
        reader.read("B")
    assert info.value.excess == 1


def test_reader_multiple_values():
    msg = CTOSMsg(_raw(CTOSMsgType.RESPONSE, struct.pack("<HH", 7, 9)))
    assert msg.reader().read("HH") == (7, 9)