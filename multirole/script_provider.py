"""Service that keeps the card scripts found in a watched repository."""

from __future__ import annotations

import logging
import os
import re
import threading
from typing import Iterable, Union

from .observer import GitDiff, GitRepoObserver

_log = logging.getLogger(__name__)


def _file_name(path: str) -> str:
    """Strip every directory from ``path``, using '/' or else '\\'."""
    pos = path.rfind("/")
    if pos == -1:
        pos = path.rfind("\\")
    return path[pos + 1 :] if pos != -1 else path


class ScriptProvider(GitRepoObserver):
    """Keeps the contents of script files keyed by their bare file name."""

    def __init__(self, filename_pattern: str) -> None:
        self._pattern = re.compile(filename_pattern)
        self._scripts: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def on_add(self, path: Union[str, os.PathLike], file_list: Iterable[str]) -> None:
        self._load_scripts(os.fspath(path), list(file_list))

    def on_diff(self, path: Union[str, os.PathLike], diff: GitDiff) -> None:
        self._load_scripts(os.fspath(path), list(diff.added))

    def script_from_file_path(self, file_path: str) -> bytes:
        """Contents of the script named ``file_path``; empty when unknown."""
        with self._lock:
            return self._scripts.get(file_path, b"")

    def _load_scripts(self, path: str, file_list: list[str]) -> None:
        total = 0
        _log.info("Loading up to %d script files", len(file_list))
        with self._lock:
            for name in file_list:
                if not self._pattern.fullmatch(name):
                    continue
                full_path = path + name
                try:
                    with open(full_path, "rb") as f:
                        contents = f.read()
                except OSError:
                    _log.error("Could not open script file %s", full_path)
                    continue
                self._scripts[_file_name(name)] = contents
                total += 1
        _log.info("Loaded %d script files", total)