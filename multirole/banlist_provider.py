"""Service that keeps the banlists found in a watched repository."""

from __future__ import annotations

import logging
import os
import re
import threading
from typing import Iterable, Optional, Union

from .banlist import Banlist, parse_banlists
from .observer import GitDiff, GitRepoObserver

_log = logging.getLogger(__name__)


class BanlistProvider(GitRepoObserver):
    """Loads banlist files whose names match a pattern and serves them by hash."""

    def __init__(self, filename_pattern: str) -> None:
        self._pattern = re.compile(filename_pattern)
        self._banlists: dict[int, Banlist] = {}
        self._lock = threading.Lock()

    def get_banlist_by_hash(self, hash_value: int) -> Optional[Banlist]:
        """The banlist with ``hash_value``, or None when none is known."""
        with self._lock:
            return self._banlists.get(hash_value)

    def on_add(self, path: Union[str, os.PathLike], file_list: Iterable[str]) -> None:
        self._load_banlists(os.fspath(path), file_list)

    def on_diff(self, path: Union[str, os.PathLike], diff: GitDiff) -> None:
        self._load_banlists(os.fspath(path), diff.added)

    def _load_banlists(self, path: str, file_list: Iterable[str]) -> None:
        loaded: dict[int, Banlist] = {}
        for name in file_list:
            if not self._pattern.fullmatch(name):
                continue
            full_path = path + name
            _log.info("Loading banlist file %s", full_path)
            try:
                with open(full_path, encoding="utf-8", errors="replace") as f:
                    parse_banlists(f, loaded)
            except (OSError, ValueError) as exc:
                _log.error("Could not load banlist file: %s", exc)
        with self._lock:
            # Banlists with a hash already known are replaced by the new ones.
            self._banlists.update(loaded)