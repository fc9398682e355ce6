"""Inspection, routing and rewriting of messages produced by the duel core."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum, auto
from typing import Union

from .constants import (
    LOCATION_DECK,
    LOCATION_EXTRA,
    LOCATION_GRAVE,
    LOCATION_HAND,
    LOCATION_MZONE,
    LOCATION_OVERLAY,
    LOCATION_SZONE,
    MSG_ANNOUNCE_ATTRIB,
    MSG_ANNOUNCE_CARD,
    MSG_ANNOUNCE_CARD_FILTER,
    MSG_ANNOUNCE_NUMBER,
    MSG_ANNOUNCE_RACE,
    MSG_CHAIN_END,
    MSG_CHAINED,
    MSG_CONFIRM_CARDS,
    MSG_DAMAGE_STEP_END,
    MSG_DAMAGE_STEP_START,
    MSG_DRAW,
    MSG_FLIPSUMMONED,
    MSG_FLIPSUMMONING,
    MSG_HINT,
    MSG_MISSED_EFFECT,
    MSG_MOVE,
    MSG_NEW_PHASE,
    MSG_NEW_TURN,
    MSG_POS_CHANGE,
    MSG_RELOAD_FIELD,
    MSG_REVERSE_DECK,
    MSG_ROCK_PAPER_SCISSORS,
    MSG_SELECT_BATTLECMD,
    MSG_SELECT_CARD,
    MSG_SELECT_CHAIN,
    MSG_SELECT_COUNTER,
    MSG_SELECT_DISFIELD,
    MSG_SELECT_EFFECTYN,
    MSG_SELECT_IDLECMD,
    MSG_SELECT_OPTION,
    MSG_SELECT_PLACE,
    MSG_SELECT_POSITION,
    MSG_SELECT_SUM,
    MSG_SELECT_TRIBUTE,
    MSG_SELECT_UNSELECT_CARD,
    MSG_SELECT_YESNO,
    MSG_SET,
    MSG_SHUFFLE_EXTRA,
    MSG_SHUFFLE_HAND,
    MSG_SHUFFLE_SET_CARD,
    MSG_SORT_CARD,
    MSG_SORT_CHAIN,
    MSG_SPSUMMONED,
    MSG_START,
    MSG_SUMMONED,
    MSG_SWAP,
    MSG_SWAP_GRAVE_DECK,
    MSG_TAG_SWAP,
    MSG_UPDATE_CARD,
    MSG_UPDATE_DATA,
    POS_FACEDOWN,
    POS_FACEUP,
)
from .query import LocInfo

_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_START = struct.Struct("<BBIIHHHH")

_SINGLE_CARD_FLAGS = 0x3F81FFF


class MsgDistType(Enum):
    """How a message is handed out to the clients of a duel."""

    SPECIFIC_TEAM_DUELIST_STRIPPED = auto()
    SPECIFIC_TEAM_DUELIST = auto()
    SPECIFIC_TEAM = auto()
    EVERYONE_EXCEPT_TEAM_DUELIST = auto()
    EVERYONE_STRIPPED = auto()
    EVERYONE = auto()


@dataclass(frozen=True)
class MsgStartCreateInfo:
    lp: int
    t0_deck_size: int
    t0_extra_size: int
    t1_deck_size: int
    t1_extra_size: int


@dataclass(frozen=True)
class QuerySingleRequest:
    con: int
    loc: int
    seq: int
    flags: int


@dataclass(frozen=True)
class QueryLocationRequest:
    con: int
    loc: int
    flags: int


QueryRequest = Union[QuerySingleRequest, QueryLocationRequest]

_ANSWER_REQUIRED = frozenset(
    {
        MSG_SELECT_CARD,
        MSG_SELECT_TRIBUTE,
        MSG_SELECT_UNSELECT_CARD,
        MSG_SELECT_BATTLECMD,
        MSG_SELECT_IDLECMD,
        MSG_SELECT_EFFECTYN,
        MSG_SELECT_YESNO,
        MSG_SELECT_OPTION,
        MSG_SELECT_CHAIN,
        MSG_SELECT_PLACE,
        MSG_SELECT_DISFIELD,
        MSG_SELECT_POSITION,
        MSG_SORT_CARD,
        MSG_SORT_CHAIN,
        MSG_SELECT_COUNTER,
        MSG_SELECT_SUM,
        MSG_ROCK_PAPER_SCISSORS,
        MSG_ANNOUNCE_RACE,
        MSG_ANNOUNCE_ATTRIB,
        MSG_ANNOUNCE_CARD,
        MSG_ANNOUNCE_NUMBER,
        MSG_ANNOUNCE_CARD_FILTER,
    }
)

_STRIPPED_FOR_DUELIST = frozenset(
    {MSG_SELECT_CARD, MSG_SELECT_TRIBUTE, MSG_SELECT_UNSELECT_CARD}
)

_FOR_DUELIST = (_ANSWER_REQUIRED - _STRIPPED_FOR_DUELIST) | {MSG_MISSED_EFFECT}

_STRIPPED_FOR_EVERYONE = frozenset(
    {MSG_SHUFFLE_HAND, MSG_SHUFFLE_EXTRA, MSG_SET, MSG_MOVE, MSG_DRAW, MSG_TAG_SWAP}
)


def _read(st: struct.Struct, data: bytes, offset: int) -> int:
    if offset < 0 or len(data) - offset < st.size:
        raise ValueError("message is truncated")
    return st.unpack_from(data, offset)[0]


def _u8(data: bytes, offset: int) -> int:
    return _read(_U8, data, offset)


def _u32(data: bytes, offset: int) -> int:
    return _read(_U32, data, offset)


def _zero_code(buf: bytearray, offset: int) -> None:
    if offset < 0 or len(buf) - offset < _U32.size:
        raise ValueError("message is truncated")
    _U32.pack_into(buf, offset, 0)


def split_to_msgs(buffer: bytes) -> list[bytes]:
    """Split a core output buffer into messages, dropping the length prefixes."""
    data = bytes(buffer)
    msgs: list[bytes] = []
    pos = 0
    while pos != len(data):
        length = _u32(data, pos)
        pos += _U32.size
        if len(data) - pos < length:
            raise ValueError("message is truncated")
        msgs.append(data[pos : pos + length])
        pos += length
    return msgs


def get_message_type(msg: bytes) -> int:
    """Type of a core message: its first byte."""
    if not msg:
        raise ValueError("empty message")
    return msg[0]


def does_message_require_answer(msg_type: int) -> bool:
    """Whether a duelist must answer this message before the duel goes on."""
    return msg_type in _ANSWER_REQUIRED


def get_message_distribution_type(msg: bytes) -> MsgDistType:
    """Decide who gets the message and whether knowledge is stripped first."""
    msg_type = get_message_type(msg)
    if msg_type in _STRIPPED_FOR_DUELIST:
        return MsgDistType.SPECIFIC_TEAM_DUELIST_STRIPPED
    if msg_type in _FOR_DUELIST:
        return MsgDistType.SPECIFIC_TEAM_DUELIST
    if msg_type == MSG_HINT:
        hint = _u8(msg, 1)
        if hint in (1, 2, 3, 5):
            return MsgDistType.SPECIFIC_TEAM_DUELIST
        if hint == 200:
            return MsgDistType.SPECIFIC_TEAM
        if hint in (4, 6, 7, 8, 9, 11):
            return MsgDistType.EVERYONE_EXCEPT_TEAM_DUELIST
        return MsgDistType.EVERYONE
    if msg_type == MSG_CONFIRM_CARDS:
        # Cards confirmed from the deck are only shown to their duelist.
        if _u32(msg, 2) != 0 and _u8(msg, 11) == LOCATION_DECK:
            return MsgDistType.SPECIFIC_TEAM_DUELIST
        return MsgDistType.EVERYONE
    if msg_type in _STRIPPED_FOR_EVERYONE:
        return MsgDistType.EVERYONE_STRIPPED
    return MsgDistType.EVERYONE


def get_message_receiving_team(msg: bytes) -> int:
    """Team a team-specific message is meant for."""
    if get_message_type(msg) == MSG_HINT:
        return _u8(msg, 2)
    return _u8(msg, 1)


def _is_loc_info_public(info: LocInfo) -> bool:
    if info.loc & (LOCATION_GRAVE | LOCATION_OVERLAY) and not info.loc & (
        LOCATION_DECK | LOCATION_HAND
    ):
        return True
    return not info.pos & POS_FACEDOWN


def _clear_position_array(buf: bytearray, count: int, offset: int) -> int:
    for _ in range(count):
        if not _u32(buf, offset + 4) & POS_FACEUP:
            _zero_code(buf, offset)
        offset += 8
    return offset


def _clear_loc_info_array(buf: bytearray, count: int, team: int, offset: int) -> int:
    for _ in range(count):
        info = LocInfo.from_bytes(buf, offset + 4)
        if info.con != team:
            _zero_code(buf, offset)
        offset += 4 + LocInfo.SIZE
    return offset


def strip_message_for_team(team: int, msg: bytes) -> bytes:
    """Copy of the message with card codes ``team`` must not know zeroed."""
    buf = bytearray(msg)
    msg_type = get_message_type(buf)
    if msg_type == MSG_SET:
        _zero_code(buf, 1)
    elif msg_type in (MSG_SHUFFLE_HAND, MSG_SHUFFLE_EXTRA):
        if _u8(buf, 1) != team:
            for i in range(_u32(buf, 2)):
                _zero_code(buf, 6 + 4 * i)
    elif msg_type == MSG_MOVE:
        current = LocInfo.from_bytes(buf, 1 + 4 + LocInfo.SIZE)
        if current.con != team and not _is_loc_info_public(current):
            _zero_code(buf, 1)
    elif msg_type == MSG_DRAW:
        if _u8(buf, 1) != team:
            _clear_position_array(buf, _u32(buf, 2), 6)
    elif msg_type == MSG_TAG_SWAP:
        if _u8(buf, 1) != team:
            extra_count = _u32(buf, 6)
            hand_count = _u32(buf, 14)
            _clear_position_array(buf, extra_count + hand_count, 22)
    elif msg_type == MSG_SELECT_CARD:
        _clear_loc_info_array(buf, _u32(buf, 11), team, 15)
    elif msg_type == MSG_SELECT_TRIBUTE:
        offset = 15
        for _ in range(_u32(buf, 11)):
            if _u8(buf, offset + 4) != team:
                _zero_code(buf, offset)
            offset += 4 + 1 + 1 + 4 + 1
    elif msg_type == MSG_SELECT_UNSELECT_CARD:
        offset = _clear_loc_info_array(buf, _u32(buf, 12), team, 16)
        _clear_loc_info_array(buf, _u32(buf, offset), team, offset + 4)
    return bytes(buf)


def make_start_msg(info: MsgStartCreateInfo) -> bytes:
    """Build MSG_START, which sets up the piles and life points."""
    return _START.pack(
        MSG_START,
        0,
        info.lp & 0xFFFFFFFF,
        info.lp & 0xFFFFFFFF,
        info.t0_deck_size & 0xFFFF,
        info.t0_extra_size & 0xFFFF,
        info.t1_deck_size & 0xFFFF,
        info.t1_extra_size & 0xFFFF,
    )


def _both_teams(loc: int, flags: int) -> list[QueryRequest]:
    return [QueryLocationRequest(0, loc, flags), QueryLocationRequest(1, loc, flags)]


def _all_decks() -> list[QueryRequest]:
    return _both_teams(LOCATION_DECK, 0x1181FFF)


def _all_hands() -> list[QueryRequest]:
    return _both_teams(LOCATION_HAND, 0x3781FFF)


def _all_mzones() -> list[QueryRequest]:
    return _both_teams(LOCATION_MZONE, 0x3881FFF)


def _all_szones() -> list[QueryRequest]:
    return _both_teams(LOCATION_SZONE, 0x3E81FFF)


def get_pre_dist_query_requests(msg: bytes) -> list[QueryRequest]:
    """Queries to run before the message is handed out."""
    msg_type = get_message_type(msg)
    if msg_type in (MSG_SELECT_BATTLECMD, MSG_SELECT_IDLECMD):
        return _all_hands() + _all_mzones() + _all_szones()
    if msg_type in (MSG_SELECT_CHAIN, MSG_NEW_TURN):
        return _all_mzones() + _all_szones()
    if msg_type == MSG_FLIPSUMMONING:
        info = LocInfo.from_bytes(msg, 1 + 4)
        return [QuerySingleRequest(info.con, info.loc, info.seq, _SINGLE_CARD_FLAGS)]
    return []


def get_post_dist_query_requests(msg: bytes) -> list[QueryRequest]:
    """Queries to run after the message is handed out."""
    msg_type = get_message_type(msg)
    if msg_type in (MSG_SHUFFLE_HAND, MSG_DRAW):
        return [QueryLocationRequest(_u8(msg, 1), LOCATION_HAND, 0x3781FFF)]
    if msg_type == MSG_SHUFFLE_EXTRA:
        return [QueryLocationRequest(_u8(msg, 1), LOCATION_EXTRA, 0x381FFF)]
    if msg_type == MSG_SWAP_GRAVE_DECK:
        return [QueryLocationRequest(_u8(msg, 1), LOCATION_GRAVE, 0x381FFF)]
    if msg_type == MSG_REVERSE_DECK:
        return _all_decks()
    if msg_type == MSG_SHUFFLE_SET_CARD:
        return _both_teams(_u8(msg, 1), 0x3181FFF)
    if msg_type in (MSG_DAMAGE_STEP_START, MSG_DAMAGE_STEP_END):
        return _all_mzones()
    if msg_type in (MSG_SUMMONED, MSG_SPSUMMONED, MSG_FLIPSUMMONED):
        return _all_mzones() + _all_szones()
    if msg_type in (MSG_NEW_PHASE, MSG_CHAINED):
        return _all_mzones() + _all_szones() + _all_hands()
    if msg_type == MSG_CHAIN_END:
        return _all_decks() + _all_mzones() + _all_szones() + _all_hands()
    if msg_type == MSG_MOVE:
        previous = LocInfo.from_bytes(msg, 1 + 4)
        current = LocInfo.from_bytes(msg, 1 + 4 + LocInfo.SIZE)
        moved = previous.con != current.con or previous.loc != current.loc
        if moved and current.loc != 0 and not current.loc & LOCATION_OVERLAY:
            return [
                QuerySingleRequest(
                    current.con, current.loc, current.seq, _SINGLE_CARD_FLAGS
                )
            ]
        return []
    if msg_type == MSG_POS_CHANGE:
        con, loc, seq, prev_pos, cur_pos = (_u8(msg, 5 + i) for i in range(5))
        if prev_pos & POS_FACEDOWN and cur_pos & POS_FACEUP:
            return [QuerySingleRequest(con, loc, seq, _SINGLE_CARD_FLAGS)]
        return []
    if msg_type == MSG_SWAP:
        first = LocInfo.from_bytes(msg, 1 + 4)
        second = LocInfo.from_bytes(msg, 1 + 4 + LocInfo.SIZE + 4)
        return [
            QuerySingleRequest(first.con, first.loc, first.seq, _SINGLE_CARD_FLAGS),
            QuerySingleRequest(second.con, second.loc, second.seq, _SINGLE_CARD_FLAGS),
        ]
    if msg_type == MSG_TAG_SWAP:
        player = _u8(msg, 1)
        return (
            [
                QueryLocationRequest(player, LOCATION_DECK, 0x1181FFF),
                QueryLocationRequest(player, LOCATION_EXTRA, 0x381FFF),
            ]
            + _all_hands()
            + _both_teams(LOCATION_MZONE, 0x3081FFF)
            + _both_teams(LOCATION_SZONE, 0x30681FFF)
        )
    if msg_type == MSG_RELOAD_FIELD:
        return _both_teams(LOCATION_EXTRA, 0x381FFF)
    return []


def make_update_card_msg(con: int, loc: int, seq: int, query_buffer: bytes) -> bytes:
    """Wrap a single card query into MSG_UPDATE_CARD."""
    header = bytes([MSG_UPDATE_CARD, con & 0xFF, loc & 0xFF, seq & 0xFF])
    return header + bytes(query_buffer)


def make_update_data_msg(con: int, loc: int, query_buffer: bytes) -> bytes:
    """Wrap a location query into MSG_UPDATE_DATA."""
    return bytes([MSG_UPDATE_DATA, con & 0xFF, loc & 0xFF]) + bytes(query_buffer)