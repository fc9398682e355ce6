"""Card query records and their wire encoding as produced by the duel core."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from .constants import (
    POS_FACEUP,
    QUERY_ALIAS,
    QUERY_ATTACK,
    QUERY_ATTRIBUTE,
    QUERY_BASE_ATTACK,
    QUERY_BASE_DEFENSE,
    QUERY_CODE,
    QUERY_COUNTERS,
    QUERY_COVER,
    QUERY_DEFENSE,
    QUERY_END,
    QUERY_EQUIP_CARD,
    QUERY_IS_HIDDEN,
    QUERY_IS_PUBLIC,
    QUERY_LEVEL,
    QUERY_LINK,
    QUERY_LSCALE,
    QUERY_OVERLAY_CARD,
    QUERY_OWNER,
    QUERY_POSITION,
    QUERY_RACE,
    QUERY_RANK,
    QUERY_REASON,
    QUERY_REASON_CARD,
    QUERY_RSCALE,
    QUERY_STATUS,
    QUERY_TARGET_CARD,
    QUERY_TYPE,
)

_LOC_INFO = struct.Struct("<BBII")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_HEADER = struct.Struct("<HI")


def _fit(fmt: str, value: int) -> int:
    """Wrap an integer into the range of a single struct format code."""
    if fmt == "B":
        return value & 0xFF
    if fmt == "H":
        return value & 0xFFFF
    if fmt == "I":
        return value & 0xFFFFFFFF
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _pack(fmt: str, value: int) -> bytes:
    return struct.pack("<" + fmt, _fit(fmt, value))


@dataclass(frozen=True)
class LocInfo:
    """Where a card is: controller, location, sequence and position."""

    con: int = 0
    loc: int = 0
    seq: int = 0
    pos: int = 0

    SIZE = _LOC_INFO.size

    def to_bytes(self) -> bytes:
        return _LOC_INFO.pack(
            self.con & 0xFF,
            self.loc & 0xFF,
            self.seq & 0xFFFFFFFF,
            self.pos & 0xFFFFFFFF,
        )

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> LocInfo:
        if offset < 0 or len(data) - offset < cls.SIZE:
            raise ValueError("not enough bytes for a card location")
        return cls(*_LOC_INFO.unpack_from(data, offset))


@dataclass
class Query:
    """Information about a single card; ``flags`` tells which fields are set."""

    flags: int = 0
    code: int = 0
    pos: int = 0
    alias: int = 0
    type: int = 0
    level: int = 0
    rank: int = 0
    link: int = 0
    attribute: int = 0
    race: int = 0
    attack: int = 0
    defense: int = 0
    base_attack: int = 0
    base_defense: int = 0
    reason: int = 0
    owner: int = 0
    status: int = 0
    is_public: int = 0
    lscale: int = 0
    rscale: int = 0
    link_marker: int = 0
    reason_card: LocInfo = field(default_factory=LocInfo)
    equip_card: LocInfo = field(default_factory=LocInfo)
    is_hidden: int = 0
    cover: int = 0
    targets: list[LocInfo] = field(default_factory=list)
    overlays: list[int] = field(default_factory=list)
    counters: list[int] = field(default_factory=list)


# Fields holding a single integer: flag -> (attribute, struct format code).
_SCALAR_FIELDS: dict[int, tuple[str, str]] = {
    QUERY_CODE: ("code", "I"),
    QUERY_POSITION: ("pos", "I"),
    QUERY_ALIAS: ("alias", "I"),
    QUERY_TYPE: ("type", "I"),
    QUERY_LEVEL: ("level", "I"),
    QUERY_RANK: ("rank", "I"),
    QUERY_ATTRIBUTE: ("attribute", "I"),
    QUERY_RACE: ("race", "I"),
    QUERY_ATTACK: ("attack", "i"),
    QUERY_DEFENSE: ("defense", "i"),
    QUERY_BASE_ATTACK: ("base_attack", "i"),
    QUERY_BASE_DEFENSE: ("base_defense", "i"),
    QUERY_REASON: ("reason", "I"),
    QUERY_OWNER: ("owner", "B"),
    QUERY_STATUS: ("status", "I"),
    QUERY_IS_PUBLIC: ("is_public", "B"),
    QUERY_LSCALE: ("lscale", "I"),
    QUERY_RSCALE: ("rscale", "I"),
    QUERY_IS_HIDDEN: ("is_hidden", "B"),
    QUERY_COVER: ("cover", "I"),
}

_LOC_FIELDS: dict[int, str] = {
    QUERY_REASON_CARD: "reason_card",
    QUERY_EQUIP_CARD: "equip_card",
}

_CODE_LIST_FIELDS: dict[int, str] = {
    QUERY_OVERLAY_CARD: "overlays",
    QUERY_COUNTERS: "counters",
}

# Fields that reveal what a card is, hidden unless the card is public.
_PRIVATE_FLAGS = frozenset(
    {
        QUERY_CODE,
        QUERY_ALIAS,
        QUERY_TYPE,
        QUERY_LEVEL,
        QUERY_RANK,
        QUERY_ATTRIBUTE,
        QUERY_RACE,
        QUERY_ATTACK,
        QUERY_DEFENSE,
        QUERY_BASE_ATTACK,
        QUERY_BASE_DEFENSE,
        QUERY_STATUS,
        QUERY_LSCALE,
        QUERY_RSCALE,
        QUERY_LINK,
    }
)


class _Cursor:
    """Sequential little-endian reader over a byte buffer."""

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = bytes(data)
        self.offset = offset

    def unpack(self, fmt: str) -> int:
        st = struct.Struct("<" + fmt)
        if len(self.data) - self.offset < st.size:
            raise ValueError("query buffer is truncated")
        (value,) = st.unpack_from(self.data, self.offset)
        self.offset += st.size
        return value

    def loc_info(self) -> LocInfo:
        info = LocInfo.from_bytes(self.data, self.offset)
        self.offset += LocInfo.SIZE
        return info

    def skip(self, count: int) -> None:
        self.offset += count


def _read_one(cur: _Cursor) -> Optional[Query]:
    if cur.unpack("H") == 0:
        return None
    cur.skip(-_U16.size)
    query = Query()
    while True:
        size = cur.unpack("H")
        flag = cur.unpack("I")
        query.flags |= flag
        if flag in _SCALAR_FIELDS:
            name, fmt = _SCALAR_FIELDS[flag]
            setattr(query, name, cur.unpack(fmt))
        elif flag in _LOC_FIELDS:
            setattr(query, _LOC_FIELDS[flag], cur.loc_info())
        elif flag == QUERY_TARGET_CARD:
            count = cur.unpack("I")
            query.targets.extend(cur.loc_info() for _ in range(count))
        elif flag in _CODE_LIST_FIELDS:
            count = cur.unpack("I")
            getattr(query, _CODE_LIST_FIELDS[flag]).extend(
                cur.unpack("I") for _ in range(count)
            )
        elif flag == QUERY_LINK:
            query.link = cur.unpack("I")
            query.link_marker = cur.unpack("I")
        elif flag == QUERY_END:
            return query
        else:
            cur.skip(size - _U32.size)


def _flag_is_public(query: Query, flag: int) -> bool:
    if query.flags & QUERY_IS_PUBLIC and query.is_public:
        return True
    if query.flags & QUERY_POSITION and query.pos & POS_FACEUP:
        return True
    return flag not in _PRIVATE_FLAGS


def _all_flags() -> Iterator[int]:
    flag = 1
    while flag <= QUERY_END:
        yield flag
        flag <<= 1


def _encode_payload(query: Query, flag: int) -> bytes:
    if flag in _SCALAR_FIELDS:
        name, fmt = _SCALAR_FIELDS[flag]
        return _pack(fmt, getattr(query, name))
    if flag in _LOC_FIELDS:
        return getattr(query, _LOC_FIELDS[flag]).to_bytes()
    if flag == QUERY_TARGET_CARD:
        return _pack("I", len(query.targets)) + b"".join(
            t.to_bytes() for t in query.targets
        )
    if flag in _CODE_LIST_FIELDS:
        values = getattr(query, _CODE_LIST_FIELDS[flag])
        return _pack("I", len(values)) + b"".join(_pack("I", v) for v in values)
    if flag == QUERY_LINK:
        return _pack("I", query.link) + _pack("I", query.link_marker)
    return b""


def serialize_single_query(query: Optional[Query], is_public: bool) -> bytes:
    """Encode one query, leaving out what should not be seen.

    Fields that reveal the card are dropped when the query is hidden, or when
    ``is_public`` is set, unless the card itself is public or face-up.
    """
    if query is None:
        return _U16.pack(0)
    hidden = bool(query.flags & QUERY_IS_HIDDEN and query.is_hidden)
    parts: list[bytes] = []
    for flag in _all_flags():
        if query.flags & flag != flag:
            continue
        if flag == QUERY_REASON_CARD and query.reason_card.loc == 0:
            continue
        if flag == QUERY_EQUIP_CARD and query.equip_card.loc == 0:
            continue
        public = _flag_is_public(query, flag)
        if (hidden or is_public) and not public:
            continue
        payload = _encode_payload(query, flag)
        parts.append(_HEADER.pack((len(payload) + _U32.size) & 0xFFFF, flag))
        parts.append(payload)
    return b"".join(parts)


def serialize_location_query(
    queries: Iterable[Optional[Query]], is_public: bool
) -> bytes:
    """Encode several queries behind a 32-bit total length."""
    body = b"".join(serialize_single_query(q, is_public) for q in queries)
    return _U32.pack(len(body) & 0xFFFFFFFF) + body


def deserialize_single_query(data: bytes) -> Optional[Query]:
    """Decode one query; ``None`` when the buffer marks an empty slot."""
    return _read_one(_Cursor(data))


def deserialize_location_query(data: bytes) -> list[Optional[Query]]:
    """Decode every query of a location buffer."""
    cur = _Cursor(data)
    end = cur.unpack("I") + cur.offset
    queries: list[Optional[Query]] = []
    while cur.offset < end:
        queries.append(_read_one(cur))
    return queries