"""Banlists and the parser for banlist configuration files."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

BANLIST_HASH_MAGIC = 0x7DFCEE6A

_U32 = 0xFFFFFFFF
_U64_MAX = 0xFFFFFFFFFFFFFFFF
_CODE_RE = re.compile(r"\d+")
_COUNT_RE = re.compile(r"\s*([+-]?\d+)")
_COUNT_CHARS = frozenset("-0123456789")


@dataclass(frozen=True)
class Banlist:
    whitelist: bool = False
    entries: dict[int, int] = field(default_factory=dict)


class BanlistParseError(ValueError):
    """A banlist line could not be parsed."""

    def __init__(self, line_number: int, reason: str) -> None:
        super().__init__(f"{line_number}:{reason}")
        self.line_number = line_number
        self.reason = reason


def salt(hash_value: int, code: int, count: int) -> int:
    """Mix one card entry into a 32-bit banlist hash."""
    code &= _U32
    first = ((code << 18) | (code >> 14)) & _U32
    second = ((code << ((27 + count) & 31)) | (code >> ((5 - count) & 31))) & _U32
    return (hash_value ^ first ^ second) & _U32


def _to_int32(value: int) -> int:
    value &= _U32
    return value - (1 << 32) if value & 0x80000000 else value


def _parse_entry(line: str, line_number: int) -> tuple[int, int]:
    sep = line.find(" ")
    if sep == -1:
        raise BanlistParseError(line_number, "Card code separator not found")
    end = sep + 1
    while end < len(line) and line[end] in _COUNT_CHARS:
        end += 1
    code_text = _CODE_RE.match(line).group()
    if int(code_text) > _U64_MAX:
        raise BanlistParseError(line_number, "Card code out of range")
    code = int(code_text) & _U32
    if code == 0:
        raise BanlistParseError(line_number, "Card code cannot be 0")
    match = _COUNT_RE.match(line[sep:end])
    if match is None:
        raise BanlistParseError(line_number, "Card count is not a number")
    count = int(match.group(1))
    if not -(1 << 63) <= count < (1 << 63):
        raise BanlistParseError(line_number, "Card count out of range")
    return code, _to_int32(count)


def parse_banlists(
    lines: Iterable[str], banlists: dict[int, Banlist] | None = None
) -> dict[int, Banlist]:
    """Parse banlist lines into a map keyed by banlist hash.

    Banlists whose hash is already present are left as they were.
    """
    if banlists is None:
        banlists = {}
    hash_value = BANLIST_HASH_MAGIC
    whitelist = False
    entries: dict[int, int] = {}

    def add_current() -> None:
        if hash_value != BANLIST_HASH_MAGIC:
            banlists.setdefault(hash_value, Banlist(whitelist, dict(entries)))

    for line_number, raw in enumerate(lines, start=1):
        line = raw[:-1] if raw.endswith("\n") else raw
        if "$whitelist" in line:
            whitelist = True
            continue
        if not line:
            continue
        first = line[0]
        if first == "!":
            add_current()
            hash_value = BANLIST_HASH_MAGIC
            whitelist = False
            entries.clear()
        elif first.isascii() and first.isdigit():
            code, count = _parse_entry(line, line_number)
            hash_value = salt(hash_value, code, count)
            entries[code] = count
    add_current()
    return banlists