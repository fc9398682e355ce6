"""Card data looked up from one or more merged card databases."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from typing import Optional

from .common import CardData
from .constants import TYPE_LINK

_SCHEMAS = """
CREATE TABLE "datas" (
    "id"        INTEGER,
    "ot"        INTEGER,
    "alias"     INTEGER,
    "setcode"   INTEGER,
    "type"      INTEGER,
    "atk"       INTEGER,
    "def"       INTEGER,
    "level"     INTEGER,
    "race"      INTEGER,
    "attribute" INTEGER,
    "category"  INTEGER,
    PRIMARY KEY("id")
);
CREATE TABLE "texts" (
    "id"    INTEGER,
    "name"  TEXT,
    "desc"  TEXT,
    "str1"  TEXT,
    "str2"  TEXT,
    "str3"  TEXT,
    "str4"  TEXT,
    "str5"  TEXT,
    "str6"  TEXT,
    "str7"  TEXT,
    "str8"  TEXT,
    "str9"  TEXT,
    "str10" TEXT,
    "str11" TEXT,
    "str12" TEXT,
    "str13" TEXT,
    "str14" TEXT,
    "str15" TEXT,
    "str16" TEXT,
    PRIMARY KEY("id")
);
"""

_MERGE_STATEMENTS = (
    "INSERT OR REPLACE INTO datas SELECT * FROM toMerge.datas",
    "INSERT OR REPLACE INTO texts SELECT * FROM toMerge.texts",
    "DETACH toMerge",
)

_SEARCH = (
    "SELECT id,alias,setcode,type,atk,def,level,race,attribute "
    "FROM datas WHERE datas.id = ?"
)
_SEARCH_EXTRA = "SELECT ot,category FROM datas WHERE datas.id = ?"

_SETCODES = 4


def _u32(value: Optional[int]) -> int:
    return (value or 0) & 0xFFFFFFFF


def _i32(value: Optional[int]) -> int:
    value = _u32(value)
    return value - (1 << 32) if value & 0x80000000 else value


@dataclass(frozen=True)
class CardExtraData:
    scope: int = 0
    category: int = 0


class CardDatabase:
    """An amalgamation of card databases with cached lookups."""

    def __init__(self, path: str = ":memory:") -> None:
        try:
            self._conn = sqlite3.connect(
                path, isolation_level=None, check_same_thread=False
            )
        except sqlite3.Error as exc:
            raise RuntimeError(str(exc)) from exc
        try:
            self._conn.executescript(_SCHEMAS)
        except sqlite3.OperationalError:
            # The tables already exist in an opened disk database.
            pass
        self._lock = threading.Lock()
        self._data_cache: dict[int, CardData] = {}
        self._extra_cache: dict[int, CardExtraData] = {}

    def __enter__(self) -> CardDatabase:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying database."""
        self._conn.close()

    def merge(self, path: str) -> bool:
        """Add every card of the database at ``path``; False if it cannot be attached."""
        with self._lock:
            try:
                self._conn.execute("ATTACH ? AS toMerge", (str(path),))
            except sqlite3.Error:
                return False
            for statement in _MERGE_STATEMENTS:
                try:
                    self._conn.execute(statement)
                except sqlite3.Error:
                    pass
            return True

    def data_from_code(self, code: int) -> CardData:
        """Card data for ``code``; an empty record when the card is unknown."""
        with self._lock:
            cached = self._data_cache.get(code)
            if cached is not None:
                return cached
            data = CardData()
            self._data_cache[code] = data
            row = self._conn.execute(_SEARCH, (_i32(code),)).fetchone()
            if row is None:
                return data
            (card_id, alias, setcode, card_type, atk, dfn, level, race, attribute) = row
            data.code = _u32(card_id)
            data.alias = _u32(alias)
            packed = (setcode or 0) & 0xFFFFFFFFFFFFFFFF
            data.setcodes = [(packed >> (i * 16)) & 0xFFFF for i in range(_SETCODES)]
            data.type = _u32(card_type)
            data.attack = _i32(atk)
            defense = _i32(dfn)
            if data.type & TYPE_LINK:
                data.link_marker = _u32(defense)
                data.defense = 0
            else:
                data.link_marker = 0
                data.defense = defense
            db_level = _u32(level)
            data.level = db_level & 0x800000FF
            data.lscale = (db_level >> 24) & 0xFF
            data.rscale = (db_level >> 16) & 0xFF
            data.race = _u32(race)
            data.attribute = _u32(attribute)
            return data

    def data_usage_done(self, data: CardData) -> None:
        """Signal that the core is done with ``data``.

        Records stay in the cache so later lookups remain cheap.
        """
        return None

    def extra_from_code(self, code: int) -> CardExtraData:
        """Scope and category of ``code``; zeros when the card is unknown."""
        with self._lock:
            cached = self._extra_cache.get(code)
            if cached is not None:
                return cached
            row = self._conn.execute(_SEARCH_EXTRA, (_i32(code),)).fetchone()
            extra = CardExtraData() if row is None else CardExtraData(_u32(row[0]), _u32(row[1]))
            self._extra_cache[code] = extra
            return extra