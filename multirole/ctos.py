"""Messages sent from clients to the server."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, TypeVar, Union

from .common import ClientVersion, HostInfo

HEADER_LENGTH = 3
MSG_MAX_LENGTH = 1021

_LENGTH = struct.Struct("<h")
_BYTE = struct.Struct("<B")
_PLAYER_INFO = struct.Struct("<40s")
_CREATE_GAME = struct.Struct(f"<{HostInfo.SIZE}s40s40s200s")
_JOIN_GAME = struct.Struct(f"<H2xI40s{ClientVersion.SIZE}s")


class CTOSMsgType(IntEnum):
    RESPONSE = 0x01
    UPDATE_DECK = 0x02
    RPS_CHOICE = 0x03
    TURN_CHOICE = 0x04
    PLAYER_INFO = 0x10
    CREATE_GAME = 0x11
    JOIN_GAME = 0x12
    LEAVE_GAME = 0x13
    SURRENDER = 0x14
    TIME_CONFIRM = 0x15
    CHAT = 0x16
    TO_DUELIST = 0x20
    TO_OBSERVER = 0x21
    READY = 0x22
    NOT_READY = 0x23
    TRY_KICK = 0x24
    TRY_START = 0x25
    REMATCH = 0xF0


_VALID_TYPES = frozenset(int(t) for t in CTOSMsgType)


def _to_int16(value: int) -> int:
    return ((value + 0x8000) & 0xFFFF) - 0x8000


def _decode_utf16(raw: bytes) -> str:
    return raw.decode("utf-16-le", errors="replace").split("\x00", 1)[0]


def _decode_c_string(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


class BodyOverrun(Exception):
    """A read went past the end of the message body."""

    def __init__(self, excess: int) -> None:
        super().__init__(f"read past the end of the message body by {excess} bytes")
        self.excess = excess


class BodyReader:
    """Sequential little-endian reader bounded by the message length."""

    def __init__(self, buffer: bytes, start: int, end: int) -> None:
        self._buffer = bytes(buffer)
        self.offset = start
        self._end = min(end, len(self._buffer))

    def read(self, fmt: str) -> Union[int, tuple]:
        """Read values laid out as ``fmt``; a lone value is returned unwrapped."""
        if not fmt or fmt[0] not in "<>!=@":
            fmt = "<" + fmt
        st = struct.Struct(fmt)
        stop = self.offset + st.size
        if stop > self._end:
            raise BodyOverrun(stop - self._end)
        values = st.unpack_from(self._buffer, self.offset)
        self.offset = stop
        return values[0] if len(values) == 1 else values


@dataclass(frozen=True)
class RPSChoice:
    value: int = 0

    SIZE = _BYTE.size

    @classmethod
    def _from_body(cls, body: bytes) -> RPSChoice:
        return cls(*_BYTE.unpack(body))


@dataclass(frozen=True)
class TurnChoice:
    value: int = 0

    SIZE = _BYTE.size

    @classmethod
    def _from_body(cls, body: bytes) -> TurnChoice:
        return cls(*_BYTE.unpack(body))


@dataclass(frozen=True)
class PlayerInfo:
    name: str = ""

    SIZE = _PLAYER_INFO.size

    @classmethod
    def _from_body(cls, body: bytes) -> PlayerInfo:
        (name,) = _PLAYER_INFO.unpack(body)
        return cls(_decode_utf16(name))


@dataclass
class CreateGame:
    host_info: HostInfo = field(default_factory=HostInfo)
    name: str = ""
    password: str = ""
    notes: str = ""

    SIZE = _CREATE_GAME.size

    @classmethod
    def _from_body(cls, body: bytes) -> CreateGame:
        host, name, pass_raw, notes = _CREATE_GAME.unpack(body)
        return cls(
            HostInfo.from_bytes(host),
            _decode_utf16(name),
            _decode_utf16(pass_raw),
            _decode_c_string(notes),
        )


@dataclass(frozen=True)
class JoinGame:
    version2: int = 0
    id: int = 0
    password: str = ""
    version: ClientVersion = field(default_factory=ClientVersion)

    SIZE = _JOIN_GAME.size

    @classmethod
    def _from_body(cls, body: bytes) -> JoinGame:
        version2, game_id, pass_raw, version = _JOIN_GAME.unpack(body)
        return cls(
            version2, game_id, _decode_utf16(pass_raw), ClientVersion.from_bytes(version)
        )


@dataclass(frozen=True)
class TryKick:
    pos: int = 0

    SIZE = _BYTE.size

    @classmethod
    def _from_body(cls, body: bytes) -> TryKick:
        return cls(*_BYTE.unpack(body))


@dataclass(frozen=True)
class Rematch:
    answer: int = 0

    SIZE = _BYTE.size

    @classmethod
    def _from_body(cls, body: bytes) -> Rematch:
        return cls(*_BYTE.unpack(body))


_T = TypeVar("_T")


class CTOSMsg:
    """A client message: a 16-bit length, a type byte and a body."""

    def __init__(self, data: bytes = b"") -> None:
        if len(data) > HEADER_LENGTH + MSG_MAX_LENGTH:
            raise ValueError("client message is longer than the maximum allowed")
        self._bytes = bytearray(HEADER_LENGTH + MSG_MAX_LENGTH)
        self._bytes[: len(data)] = data

    @property
    def data(self) -> bytearray:
        """The whole message buffer, header included; writable."""
        return self._bytes

    @property
    def length(self) -> int:
        """Length of the body as announced by the header."""
        (raw,) = _LENGTH.unpack_from(self._bytes, 0)
        return _to_int16(raw - 1)

    @property
    def msg_type(self) -> int:
        return self._bytes[2]

    @property
    def body(self) -> bytes:
        return bytes(self._bytes[HEADER_LENGTH : HEADER_LENGTH + max(0, self.length)])

    def is_header_valid(self) -> bool:
        """Whether the length fits and the type is one the server knows."""
        return self.length <= MSG_MAX_LENGTH and self.msg_type in _VALID_TYPES

    def reader(self) -> BodyReader:
        """A reader over the body that refuses to go past the announced length."""
        return BodyReader(self._bytes, HEADER_LENGTH, HEADER_LENGTH + self.length)

    def _get(self, kind: type[_T]) -> Optional[_T]:
        if self.length != kind.SIZE:  # type: ignore[attr-defined]
            return None
        return kind._from_body(self.body)  # type: ignore[attr-defined]

    def get_rps_choice(self) -> Optional[RPSChoice]:
        return self._get(RPSChoice)

    def get_turn_choice(self) -> Optional[TurnChoice]:
        return self._get(TurnChoice)

    def get_player_info(self) -> Optional[PlayerInfo]:
        return self._get(PlayerInfo)

    def get_create_game(self) -> Optional[CreateGame]:
        return self._get(CreateGame)

    def get_join_game(self) -> Optional[JoinGame]:
        return self._get(JoinGame)

    def get_try_kick(self) -> Optional[TryKick]:
        return self._get(TryKick)

    def get_rematch(self) -> Optional[Rematch]:
        return self._get(Rematch)