"""Messages sent from the server to clients."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, Union

from .common import ClientVersion, HostInfo

_HEADER = struct.Struct("<HB")
MAX_PAYLOAD_SIZE = 0xFFFF - _HEADER.size

_ERROR = struct.Struct("<B3xI")
_DECK_ERROR = struct.Struct("<B3xIIIII")
_VER_ERROR = struct.Struct(f"<B3x{ClientVersion.SIZE}s")
_RPS_RESULT = struct.Struct("<BB")
_CREATE_GAME = struct.Struct("<I")
_BYTE = struct.Struct("<B")
_TIME_LIMIT = struct.Struct("<BxH")
_PLAYER_ENTER = struct.Struct("<40sBx")
_WATCH_CHANGE = struct.Struct("<H")
_CHAT2 = struct.Struct("<BB40s512s")


class STOCMsgType(IntEnum):
    GAME_MSG = 0x1
    ERROR_MSG = 0x2
    CHOOSE_RPS = 0x3
    CHOOSE_ORDER = 0x4
    RPS_RESULT = 0x5
    ORDER_RESULT = 0x6
    CHANGE_SIDE = 0x7
    WAITING_SIDE = 0x8
    CREATE_GAME = 0x11
    JOIN_GAME = 0x12
    TYPE_CHANGE = 0x13
    LEAVE_GAME = 0x14
    DUEL_START = 0x15
    DUEL_END = 0x16
    REPLAY = 0x17
    TIME_LIMIT = 0x18
    PLAYER_ENTER = 0x20
    PLAYER_CHANGE = 0x21
    WATCH_CHANGE = 0x22
    NEW_REPLAY = 0x30
    CATCHUP = 0xF0
    REMATCH = 0xF1
    REMATCH_WAIT = 0xF2
    CHAT_2 = 0xF3


def _utf16(text: str, units: int) -> bytes:
    raw = text.encode("utf-16-le")[: (units - 1) * 2]
    return raw.ljust(units * 2, b"\0")


def _u8(value: int) -> int:
    return value & 0xFF


def _u16(value: int) -> int:
    return value & 0xFFFF


def _u32(value: int) -> int:
    return value & 0xFFFFFFFF


@dataclass(frozen=True)
class ErrorMsg:
    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.ERROR_MSG
    msg: int = 0
    code: int = 0

    def _pack(self) -> bytes:
        return _ERROR.pack(_u8(self.msg), _u32(self.code))


@dataclass(frozen=True)
class DeckErrorMsg:
    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.ERROR_MSG
    msg: int = 0
    type: int = 0
    got: int = 0
    min: int = 0
    max: int = 0
    code: int = 0

    def _pack(self) -> bytes:
        return _DECK_ERROR.pack(
            _u8(self.msg),
            _u32(self.type),
            _u32(self.got),
            _u32(self.min),
            _u32(self.max),
            _u32(self.code),
        )


@dataclass(frozen=True)
class VerErrorMsg:
    """Version mismatch; the version sits where other errors keep their code."""

    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.ERROR_MSG
    msg: int = 0
    version: ClientVersion = field(default_factory=ClientVersion)

    def _pack(self) -> bytes:
        return _VER_ERROR.pack(_u8(self.msg), self.version.to_bytes())


@dataclass(frozen=True)
class RPSResult:
    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.RPS_RESULT
    res0: int = 0
    res1: int = 0

    def _pack(self) -> bytes:
        return _RPS_RESULT.pack(_u8(self.res0), _u8(self.res1))


@dataclass(frozen=True)
class CreateGameReply:
    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.CREATE_GAME
    id: int = 0

    def _pack(self) -> bytes:
        return _CREATE_GAME.pack(_u32(self.id))


@dataclass(frozen=True)
class TypeChange:
    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.TYPE_CHANGE
    type: int = 0

    def _pack(self) -> bytes:
        return _BYTE.pack(_u8(self.type))


@dataclass
class JoinGameReply:
    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.JOIN_GAME
    info: HostInfo = field(default_factory=HostInfo)

    def _pack(self) -> bytes:
        return self.info.to_bytes()


@dataclass(frozen=True)
class TimeLimit:
    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.TIME_LIMIT
    team: int = 0
    time_left: int = 0

    def _pack(self) -> bytes:
        return _TIME_LIMIT.pack(_u8(self.team), _u16(self.time_left))


@dataclass(frozen=True)
class PlayerEnter:
    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.PLAYER_ENTER
    name: str = ""
    pos: int = 0

    def _pack(self) -> bytes:
        return _PLAYER_ENTER.pack(_utf16(self.name, 20), _u8(self.pos))


@dataclass(frozen=True)
class PlayerChange:
    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.PLAYER_CHANGE
    status: int = 0

    def _pack(self) -> bytes:
        return _BYTE.pack(_u8(self.status))


@dataclass(frozen=True)
class WatchChange:
    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.WATCH_CHANGE
    count: int = 0

    def _pack(self) -> bytes:
        return _WATCH_CHANGE.pack(_u16(self.count))


@dataclass(frozen=True)
class CatchUp:
    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.CATCHUP
    catching_up: int = 0

    def _pack(self) -> bytes:
        return _BYTE.pack(_u8(self.catching_up))


@dataclass(frozen=True)
class Chat2:
    MSG_TYPE: ClassVar[STOCMsgType] = STOCMsgType.CHAT_2

    class PlayerType(IntEnum):
        DUELIST = 0
        OBS = 1
        SYSTEM = 2
        SYSTEM_ERROR = 3
        SYSTEM_SHOUT = 4

    type: int = 0
    is_team: int = 0
    client_name: str = ""
    message: str = ""

    def _pack(self) -> bytes:
        return _CHAT2.pack(
            _u8(self.type),
            _u8(self.is_team),
            _utf16(self.client_name, 20),
            _utf16(self.message, 256),
        )


StructMessage = Union[
    ErrorMsg,
    DeckErrorMsg,
    VerErrorMsg,
    RPSResult,
    CreateGameReply,
    TypeChange,
    JoinGameReply,
    TimeLimit,
    PlayerEnter,
    PlayerChange,
    WatchChange,
    CatchUp,
    Chat2,
]


class STOCMsg:
    """A complete server message: 16-bit length, type byte and payload."""

    def __init__(self, msg_type: int, payload: bytes = b"") -> None:
        kind = STOCMsgType(msg_type)
        body = bytes(payload)
        if len(body) > MAX_PAYLOAD_SIZE:
            raise ValueError(
                f"payload of {len(body)} bytes exceeds the maximum of {MAX_PAYLOAD_SIZE}"
            )
        self._data = _HEADER.pack(1 + len(body), kind) + body

    @classmethod
    def from_payload(cls, payload: StructMessage) -> STOCMsg:
        """Build a message from one of the fixed-layout message records."""
        return cls(payload.MSG_TYPE, payload._pack())

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def length(self) -> int:
        return len(self._data)

    @property
    def msg_type(self) -> STOCMsgType:
        return STOCMsgType(self._data[2])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, STOCMsg):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"STOCMsg({self.msg_type.name}, {self.length} bytes)"