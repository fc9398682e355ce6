import struct

import pytest

from multirole.common import SERVER_VERSION, HostInfo
from multirole.stoc import (
    MAX_PAYLOAD_SIZE,
    CatchUp,
    Chat2,
    CreateGameReply,
    DeckErrorMsg,
    ErrorMsg,
    JoinGameReply,
    PlayerChange,
    PlayerEnter,
    RPSResult,
    STOCMsg,
    STOCMsgType,
    TimeLimit,
    TypeChange,
    VerErrorMsg,
    WatchChange,
)

ALL_PAYLOADS = [
    ErrorMsg(1, 7),
    DeckErrorMsg(2, 3, 30, 40, 60, 1234),
    VerErrorMsg(5, SERVER_VERSION),
    RPSResult(1, 2),
    CreateGameReply(99),
    TypeChange(0x10),
    JoinGameReply(HostInfo(starting_lp=8000)),
    TimeLimit(1, 180),
    PlayerEnter("Duelist", 1),
    PlayerChange(0x19),
    WatchChange(4),
    CatchUp(1),
    Chat2(Chat2.PlayerType.SYSTEM, 0, "Server", "hello"),
]


def test_type_only_message_bytes():
    msg = STOCMsg(STOCMsgType.DUEL_START)
    assert msg.data == b"\x01\x00\x15"
    assert msg.length == 3
    assert msg.msg_type is STOCMsgType.DUEL_START


def test_raw_payload_is_appended():
    msg = STOCMsg(STOCMsgType.GAME_MSG, b"\x05\x06")
    assert msg.data[3:] == b"\x05\x06"
    assert struct.unpack_from("<H", msg.data)[0] == 3


@pytest.mark.parametrize("payload", ALL_PAYLOADS, ids=lambda p: type(p).__name__)
def test_header_matches_payload(payload):
    msg = STOCMsg.from_payload(payload)
    length, msg_type = struct.unpack_from("<HB", msg.data)
    assert length == msg.length - 2
    assert msg_type == payload.MSG_TYPE


def test_error_msg_layout():
    data = STOCMsg.from_payload(ErrorMsg(1, 7)).data
    assert struct.unpack("<B3xI", data[3:]) == (1, 7)


def test_version_error_places_version_after_padding():
    data = STOCMsg.from_payload(VerErrorMsg(5, SERVER_VERSION)).data
    assert data[3] == 5
    assert data[7:] == SERVER_VERSION.to_bytes()


def test_join_game_reply_carries_host_info():
    host = HostInfo(banlist_hash=42, starting_lp=8000, version=SERVER_VERSION)
    data = STOCMsg.from_payload(JoinGameReply(host)).data
    assert HostInfo.from_bytes(data[3:]) == host


def test_player_enter_name_and_position():
    data = STOCMsg.from_payload(PlayerEnter("Duelist", 3)).data
    payload = data[3:]
    assert payload[:40].decode("utf-16-le").split("\0")[0] == "Duelist"
    assert payload[40] == 3


def test_chat_message_text():
    data = STOCMsg.from_payload(Chat2(Chat2.PlayerType.OBS, 1, "Server", "hello")).data
    payload = data[3:]
    assert payload[0] == Chat2.PlayerType.OBS
    assert payload[1] == 1
    assert payload[42:].decode("utf-16-le").split("\0")[0] == "hello"


def test_equal_messages():
    assert STOCMsg.from_payload(CatchUp(1)) == STOCMsg(STOCMsgType.CATCHUP, b"\x01")


def test_payload_size_limit():
    assert STOCMsg(STOCMsgType.GAME_MSG, bytes(MAX_PAYLOAD_SIZE)).length == 0xFFFF
    with pytest.raises(ValueError):
        STOCMsg(STOCMsgType.GAME_MSG, bytes(MAX_PAYLOAD_SIZE + 1))


def test_unknown_type_rejected():
    with pytest.raises(ValueError):
        STOCMsg(0x09)