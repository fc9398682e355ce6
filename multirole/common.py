"""Shared protocol structures: host settings, client versions and core API types."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag

OCG_VERSION_MAJOR = 9
OCG_VERSION_MINOR = 0

# Size of the byte area exchanged with an out-of-process core.
SHARED_SEGMENT_SIZE = 0xFFFF * 2


class AllowedCards(IntEnum):
    OCG_ONLY = 0
    TCG_ONLY = 1
    OCG_TCG = 2
    WITH_PRERELEASE = 3
    ANY = 4


class ExtraRule(IntFlag):
    SEALED_DUEL = 0x1
    BOOSTER_DUEL = 0x2
    DESTINY_DRAW = 0x4
    CONCENTRATION_DUEL = 0x8
    BOSS_DUEL = 0x10
    BATTLE_CITY = 0x20
    DUELIST_KINGDOM = 0x40
    DIMENSION_DUEL = 0x80
    TURBO_DUEL = 0x100
    DOUBLE_DECK = 0x200
    COMMAND_DUEL = 0x400
    DECK_MASTER = 0x800
    ACTION_DUEL = 0x1000
    DECK_LIMIT_20 = 0x2000


class LogType(IntEnum):
    ERROR = 0
    FROM_SCRIPT = 1
    FOR_DEBUG = 2
    UNDEFINED = 3


class DuelCreationStatus(IntEnum):
    SUCCESS = 0
    NO_OUTPUT = 1
    NOT_CREATED = 2
    NULL_DATA_READER = 3
    NULL_SCRIPT_READER = 4


class DuelStatus(IntEnum):
    END = 0
    AWAITING = 1
    CONTINUE = 2


class Action(IntEnum):
    """Work requested from an out-of-process core, or a callback it raises."""

    NO_WORK = 0
    HEARTBEAT = 1
    EXIT = 2
    OCG_GET_VERSION = 3
    OCG_CREATE_DUEL = 4
    OCG_DESTROY_DUEL = 5
    OCG_DUEL_NEW_CARD = 6
    OCG_START_DUEL = 7
    OCG_DUEL_PROCESS = 8
    OCG_DUEL_GET_MESSAGE = 9
    OCG_DUEL_SET_RESPONSE = 10
    OCG_LOAD_SCRIPT = 11
    OCG_DUEL_QUERY_COUNT = 12
    OCG_DUEL_QUERY = 13
    OCG_DUEL_QUERY_LOCATION = 14
    OCG_DUEL_QUERY_FIELD = 15
    CB_DATA_READER = 16
    CB_SCRIPT_READER = 17
    CB_LOG_HANDLER = 18
    CB_DATA_READER_DONE = 19
    CB_DONE = 20


def or_duel_flags(high: int, low: int) -> int:
    """Combine the high and low 32-bit halves of the duel flags."""
    return (low & 0xFFFFFFFF) | ((high & 0xFFFFFFFF) << 32)


_CLIENT_VERSION = struct.Struct("<4B")


@dataclass(frozen=True)
class ClientVersion:
    client_major: int = 0
    client_minor: int = 0
    core_major: int = 0
    core_minor: int = 0

    SIZE = _CLIENT_VERSION.size

    def to_bytes(self) -> bytes:
        return _CLIENT_VERSION.pack(
            self.client_major, self.client_minor, self.core_major, self.core_minor
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> ClientVersion:
        if len(data) < cls.SIZE:
            raise ValueError(f"client version needs {cls.SIZE} bytes, got {len(data)}")
        return cls(*_CLIENT_VERSION.unpack_from(data))


# Laid out with the natural alignment of the wire structure.
_HOST_INFO = struct.Struct("<I5B3xI2BH2I4s3iIiH2x")


@dataclass
class HostInfo:
    banlist_hash: int = 0
    allowed: int = 0
    mode: int = 0
    duel_rule: int = 0
    dont_check_deck: int = 0
    dont_shuffle_deck: int = 0
    starting_lp: int = 0
    starting_draw_count: int = 0
    draw_count_per_turn: int = 0
    time_limit_in_seconds: int = 0
    duel_flags_high: int = 0
    handshake: int = 0
    version: ClientVersion = field(default_factory=ClientVersion)
    t0_count: int = 0
    t1_count: int = 0
    best_of: int = 0
    duel_flags_low: int = 0
    forb: int = 0
    extra_rules: int = 0

    SIZE = _HOST_INFO.size

    def to_bytes(self) -> bytes:
        return _HOST_INFO.pack(
            self.banlist_hash,
            self.allowed,
            self.mode,
            self.duel_rule,
            self.dont_check_deck,
            self.dont_shuffle_deck,
            self.starting_lp,
            self.starting_draw_count,
            self.draw_count_per_turn,
            self.time_limit_in_seconds,
            self.duel_flags_high,
            self.handshake,
            self.version.to_bytes(),
            self.t0_count,
            self.t1_count,
            self.best_of,
            self.duel_flags_low,
            self.forb,
            self.extra_rules,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> HostInfo:
        if len(data) < cls.SIZE:
            raise ValueError(f"host info needs {cls.SIZE} bytes, got {len(data)}")
        values = list(_HOST_INFO.unpack_from(data))
        values[12] = ClientVersion.from_bytes(values[12])
        return cls(*values)

    def duel_flags(self) -> int:
        return or_duel_flags(self.duel_flags_high, self.duel_flags_low)


SERVER_VERSION = ClientVersion(client_major=39, client_minor=0, core_major=9, core_minor=0)
SERVER_HANDSHAKE = 4043399681


@dataclass
class CardData:
    code: int = 0
    alias: int = 0
    setcodes: list[int] = field(default_factory=list)
    type: int = 0
    level: int = 0
    attribute: int = 0
    race: int = 0
    attack: int = 0
    defense: int = 0
    lscale: int = 0
    rscale: int = 0
    link_marker: int = 0


@dataclass(frozen=True)
class Player:
    starting_lp: int = 0
    starting_draw_count: int = 0
    draw_count_per_turn: int = 0


@dataclass(frozen=True)
class NewCardInfo:
    team: int = 0
    duelist: int = 0
    code: int = 0
    con: int = 0
    loc: int = 0
    seq: int = 0
    pos: int = 0


@dataclass(frozen=True)
class QueryInfo:
    flags: int = 0
    con: int = 0
    loc: int = 0
    seq: int = 0
    overlay_seq: int = 0