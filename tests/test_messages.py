import struct

import pytest

from multirole.constants import (
    LOCATION_DECK,
    LOCATION_EXTRA,
    LOCATION_GRAVE,
    LOCATION_HAND,
    LOCATION_MZONE,
    LOCATION_OVERLAY,
    LOCATION_SZONE,
    MSG_CONFIRM_CARDS,
    MSG_DRAW,
    MSG_FLIPSUMMONING,
    MSG_HINT,
    MSG_MOVE,
    MSG_POS_CHANGE,
    MSG_RELOAD_FIELD,
    MSG_SELECT_CARD,
    MSG_SELECT_IDLECMD,
    MSG_SELECT_TRIBUTE,
    MSG_SELECT_YESNO,
    MSG_SET,
    MSG_SHUFFLE_HAND,
    MSG_START,
    MSG_UPDATE_CARD,
    MSG_UPDATE_DATA,
    MSG_WIN,
    POS_FACEDOWN_ATTACK,
    POS_FACEDOWN_DEFENSE,
    POS_FACEUP_ATTACK,
)
from multirole.messages import (
    MsgDistType,
    MsgStartCreateInfo,
    QueryLocationRequest,
    QuerySingleRequest,
    does_message_require_answer,
    get_message_distribution_type,
    get_message_receiving_team,
    get_message_type,
    get_post_dist_query_requests,
    get_pre_dist_query_requests,
    make_start_msg,
    make_update_card_msg,
    make_update_data_msg,
    split_to_msgs,
    strip_message_for_team,
)
from multirole.query import LocInfo

CODE = 89631139
CODE2 = 46986414


def u32(value):
    return struct.pack("<I", value)


def move_msg(prev, cur):
    return bytes([MSG_MOVE]) + u32(CODE) + prev.to_bytes() + cur.to_bytes() + u32(0)


def test_split_to_msgs_round_trip():
    first = bytes([MSG_WIN, 0, 1])
    second = bytes([MSG_SELECT_YESNO])
    buffer = u32(len(first)) + first + u32(len(second)) + second
    assert split_to_msgs(buffer) == [first, second]


def test_split_empty_buffer():
    assert split_to_msgs(b"") == []


def test_split_truncated_buffer_raises():
    with pytest.raises(ValueError):
        split_to_msgs(u32(10) + b"\x01\x02")


def test_message_type_is_first_byte():
    assert get_message_type(bytes([MSG_DRAW, 1])) == MSG_DRAW
    with pytest.raises(ValueError):
        get_message_type(b"")


def test_answer_requirement():
    assert does_message_require_answer(MSG_SELECT_CARD)
    assert does_message_require_answer(MSG_SELECT_IDLECMD)
    assert not does_message_require_answer(MSG_DRAW)


@pytest.mark.parametrize(
    "msg, expected",
    [
        (bytes([MSG_SELECT_CARD, 0]), MsgDistType.SPECIFIC_TEAM_DUELIST_STRIPPED),
        (bytes([MSG_SELECT_YESNO, 0]), MsgDistType.SPECIFIC_TEAM_DUELIST),
        (bytes([MSG_HINT, 1, 0]), MsgDistType.SPECIFIC_TEAM_DUELIST),
        (bytes([MSG_HINT, 200, 0]), MsgDistType.SPECIFIC_TEAM),
        (bytes([MSG_HINT, 4, 0]), MsgDistType.EVERYONE_EXCEPT_TEAM_DUELIST),
        (bytes([MSG_HINT, 10, 0]), MsgDistType.EVERYONE),
        (bytes([MSG_MOVE]), MsgDistType.EVERYONE_STRIPPED),
        (bytes([MSG_WIN, 0, 0]), MsgDistType.EVERYONE),
    ],
)
def test_distribution_type(msg, expected):
    assert get_message_distribution_type(msg) is expected


def test_confirm_cards_from_deck_goes_to_duelist():
    def confirm(loc):
        return bytes([MSG_CONFIRM_CARDS, 0]) + u32(1) + u32(CODE) + bytes([0, loc]) + u32(0)

    deck = confirm(LOCATION_DECK)
    hand = confirm(LOCATION_HAND)
    assert get_message_distribution_type(deck) is MsgDistType.SPECIFIC_TEAM_DUELIST
    assert get_message_distribution_type(hand) is MsgDistType.EVERYONE


def test_receiving_team():
    assert get_message_receiving_team(bytes([MSG_HINT, 1, 1])) == 1
    assert get_message_receiving_team(bytes([MSG_SELECT_YESNO, 1])) == 1
    assert get_message_receiving_team(bytes([MSG_SELECT_YESNO, 0])) == 0


def test_strip_set_hides_code():
    msg = bytes([MSG_SET]) + u32(CODE) + LocInfo(0, LOCATION_SZONE, 1, 0).to_bytes()
    stripped = strip_message_for_team(1, msg)
    assert stripped[1:5] == bytes(4)
    assert stripped[5:] == msg[5:]


def test_strip_move_to_hidden_location():
    msg = move_msg(
        LocInfo(1, LOCATION_DECK, 0, POS_FACEDOWN_DEFENSE),
        LocInfo(1, LOCATION_HAND, 0, POS_FACEDOWN_DEFENSE),
    )
    assert strip_message_for_team(0, msg)[1:5] == bytes(4)
    assert strip_message_for_team(1, msg) == msg


def test_strip_move_to_grave_is_public():
    msg = move_msg(
        LocInfo(1, LOCATION_HAND, 0, POS_FACEDOWN_DEFENSE),
        LocInfo(1, LOCATION_GRAVE, 0, POS_FACEDOWN_DEFENSE),
    )
    assert strip_message_for_team(0, msg) == msg


def test_strip_draw_keeps_face_up_cards():
    msg = (
        bytes([MSG_DRAW, 1])
        + u32(2)
        + u32(CODE)
        + u32(POS_FACEUP_ATTACK)
        + u32(CODE2)
        + u32(POS_FACEDOWN_ATTACK)
    )
    stripped = strip_message_for_team(0, msg)
    assert stripped[6:10] == u32(CODE)
    assert stripped[14:18] == bytes(4)
    assert strip_message_for_team(1, msg) == msg


def test_strip_shuffle_hand():
    msg = bytes([MSG_SHUFFLE_HAND, 0]) + u32(2) + u32(CODE) + u32(CODE2)
    assert strip_message_for_team(1, msg)[6:] == bytes(8)
    assert strip_message_for_team(0, msg) == msg


def test_strip_select_card_hides_other_team():
    header = bytes([MSG_SELECT_CARD, 0, 0]) + u32(1) + u32(1) + u32(2)
    own = u32(CODE) + LocInfo(0, LOCATION_HAND, 0, 0).to_bytes()
    other = u32(CODE2) + LocInfo(1, LOCATION_MZONE, 0, 0).to_bytes()
    msg = header + own + other
    stripped = strip_message_for_team(0, msg)
    assert stripped[15:19] == u32(CODE)
    assert stripped[29:33] == bytes(4)
    assert len(stripped) == len(msg)


def test_strip_select_tribute():
    header = bytes([MSG_SELECT_TRIBUTE, 0, 0]) + u32(1) + u32(1) + u32(2)
    own = u32(CODE) + bytes([0, LOCATION_MZONE]) + u32(0) + bytes([1])
    other = u32(CODE2) + bytes([1, LOCATION_MZONE]) + u32(0) + bytes([1])
    stripped = strip_message_for_team(0, header + own + other)
    assert stripped[15:19] == u32(CODE)
    assert stripped[26:30] == bytes(4)


def test_strip_truncated_raises():
    with pytest.raises(ValueError):
        strip_message_for_team(0, bytes([MSG_DRAW, 1]) + u32(3))


def test_make_start_msg_layout():
    info = MsgStartCreateInfo(8000, 40, 15, 41, 14)
    msg = make_start_msg(info)
    assert len(msg) == 18
    assert msg[:2] == bytes([MSG_START, 0])
    assert msg[2:10] == u32(8000) + u32(8000)
    assert struct.unpack("<4H", msg[10:]) == (40, 15, 41, 14)


def test_pre_dist_idle_command_refreshes_field():
    reqs = get_pre_dist_query_requests(bytes([MSG_SELECT_IDLECMD, 0]))
    assert [(r.con, r.loc) for r in reqs] == [
        (0, LOCATION_HAND),
        (1, LOCATION_HAND),
        (0, LOCATION_MZONE),
        (1, LOCATION_MZONE),
        (0, LOCATION_SZONE),
        (1, LOCATION_SZONE),
    ]


def test_pre_dist_flip_summoning():
    msg = bytes([MSG_FLIPSUMMONING]) + u32(CODE) + LocInfo(1, LOCATION_MZONE, 3, 0).to_bytes()
    assert get_pre_dist_query_requests(msg) == [
        QuerySingleRequest(1, LOCATION_MZONE, 3, 0x3F81FFF)
    ]


def test_pre_dist_other_message_has_none():
    assert get_pre_dist_query_requests(bytes([MSG_DRAW, 0])) == []


def test_post_dist_draw_refreshes_hand():
    msg = bytes([MSG_DRAW, 1]) + u32(0)
    assert get_post_dist_query_requests(msg) == [
        QueryLocationRequest(1, LOCATION_HAND, 0x3781FFF)
    ]


def test_post_dist_move_between_locations():
    msg = move_msg(
        LocInfo(0, LOCATION_DECK, 0, 0), LocInfo(0, LOCATION_HAND, 2, 0)
    )
    assert get_post_dist_query_requests(msg) == [
        QuerySingleRequest(0, LOCATION_HAND, 2, 0x3F81FFF)
    ]


def test_post_dist_move_to_overlay_has_none():
    msg = move_msg(
        LocInfo(0, LOCATION_MZONE, 0, 0),
        LocInfo(0, LOCATION_MZONE | LOCATION_OVERLAY, 1, 0),
    )
    assert get_post_dist_query_requests(msg) == []


def test_post_dist_pos_change_flip_up():
    msg = bytes([MSG_POS_CHANGE]) + u32(CODE) + bytes(
        [1, LOCATION_MZONE, 2, POS_FACEDOWN_DEFENSE, POS_FACEUP_ATTACK]
    )
    assert get_post_dist_query_requests(msg) == [
        QuerySingleRequest(1, LOCATION_MZONE, 2, 0x3F81FFF)
    ]
    stays_down = bytes([MSG_POS_CHANGE]) + u32(CODE) + bytes(
        [1, LOCATION_MZONE, 2, POS_FACEUP_ATTACK, POS_FACEDOWN_DEFENSE]
    )
    assert get_post_dist_query_requests(stays_down) == []


def test_post_dist_reload_field():
    assert get_post_dist_query_requests(bytes([MSG_RELOAD_FIELD])) == [
        QueryLocationRequest(0, LOCATION_EXTRA, 0x381FFF),
        QueryLocationRequest(1, LOCATION_EXTRA, 0x381FFF),
    ]


def test_make_update_messages():
    payload = b"\x01\x02\x03"
    card = make_update_card_msg(1, LOCATION_MZONE, 2, payload)
    assert card == bytes([MSG_UPDATE_CARD, 1, LOCATION_MZONE, 2]) + payload
    data = make_update_data_msg(0, LOCATION_GRAVE, payload)
    assert data == bytes([MSG_UPDATE_DATA, 0, LOCATION_GRAVE]) + payload