"""Service that keeps a card database merged from a watched repository."""

from __future__ import annotations

import logging
import os
import re
import threading
from typing import Iterable, Optional, Union

from .card_database import CardDatabase
from .observer import GitDiff, GitRepoObserver

_log = logging.getLogger(__name__)


class DataProvider(GitRepoObserver):
    """Merges every card database whose name matches a pattern into one."""

    def __init__(self, filename_pattern: str) -> None:
        self._pattern = re.compile(filename_pattern)
        self._paths: set[str] = set()
        self._db: Optional[CardDatabase] = None
        self._lock = threading.Lock()

    def get_database(self) -> Optional[CardDatabase]:
        """The current merged database; None before anything was loaded."""
        with self._lock:
            return self._db

    def _matching(self, path: str, names: Iterable[str]) -> Iterable[str]:
        return (path + name for name in names if self._pattern.fullmatch(name))

    def on_add(self, path: Union[str, os.PathLike], file_list: Iterable[str]) -> None:
        self._paths.update(self._matching(os.fspath(path), file_list))
        self._reload_databases()

    def on_diff(self, path: Union[str, os.PathLike], diff: GitDiff) -> None:
        root = os.fspath(path)
        self._paths.difference_update(self._matching(root, diff.removed))
        self._paths.update(self._matching(root, diff.added))
        self._reload_databases()

    def _reload_databases(self) -> None:
        new_db = CardDatabase()
        for path in sorted(self._paths):
            _log.info("Loading card database %s", path)
            if not new_db.merge(path):
                _log.error("Could not merge card database %s", path)
        with self._lock:
            self._db = new_db