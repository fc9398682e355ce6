"""Service that numbers replays and writes them to disk."""

from __future__ import annotations

import contextlib
import logging
import os
import struct
import threading
from pathlib import Path
from typing import Iterator, Union

try:
    import fcntl
except ImportError:  # pragma: no cover - Windows
    fcntl = None  # type: ignore[assignment]
    import msvcrt

_log = logging.getLogger(__name__)

_ID = struct.Struct("<Q")
_ID_MASK = (1 << 64) - 1
# Region locked on platforms without whole-file advisory locks.
_LOCK_OFFSET = 1 << 20


@contextlib.contextmanager
def _file_lock(path: Path) -> Iterator[None]:
    """Hold an exclusive lock on ``path`` shared between processes."""
    with open(path, "rb") as handle:
        if fcntl is not None:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        else:  # pragma: no cover - Windows
            handle.seek(_LOCK_OFFSET)
            msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, 1)
            try:
                yield
            finally:
                handle.seek(_LOCK_OFFSET)
                msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)


class ReplayManager:
    """Hands out replay ids persisted in a file and saves replays by id."""

    def __init__(self, save: bool, directory: Union[str, os.PathLike]) -> None:
        self._save = save
        self._dir = Path(directory)
        self._last_id = self._dir / "lastId"
        self._lock = threading.Lock()
        if not save:
            _log.info("Replays will not be saved")
            return
        if not self._dir.exists():
            try:
                self._dir.mkdir()
            except OSError as exc:
                raise RuntimeError("Could not create replay directory") from exc
        if not self._dir.is_dir():
            raise RuntimeError("Replay path is a file, not a directory")
        if not self._last_id.exists():
            try:
                self._last_id.write_bytes(_ID.pack(1))
            except OSError as exc:
                raise RuntimeError("Could not write initial replay id") from exc
        with _file_lock(self._last_id):
            data = self._last_id.read_bytes()
        if len(data) == _ID.size:
            _log.info("Current replay id: %d", _ID.unpack(data)[0])
        else:
            _log.warning(
                "Replay id file is %d bytes long instead of %d", len(data), _ID.size
            )

    def save(self, replay_id: int, replay_bytes: bytes) -> None:
        """Write the replay as ``<id>.yrpX``; does nothing when not saving."""
        if not self._save:
            return
        target = self._dir / f"{replay_id}.yrpX"
        try:
            target.write_bytes(bytes(replay_bytes))
        except OSError:
            _log.error("Unable to save replay %s", target)

    def new_id(self) -> int:
        """Return the next replay id and advance the stored one; 0 on failure."""
        if not self._save:
            return 0
        with self._lock:
            try:
                lock = _file_lock(self._last_id)
                lock.__enter__()
            except OSError:
                _log.error("Cannot open replay id file")
                return 0
            try:
                return self._advance_id()
            finally:
                lock.__exit__(None, None, None)

    def _advance_id(self) -> int:
        try:
            data = self._last_id.read_bytes()
        except OSError:
            _log.error("Cannot open replay id file")
            return 0
        if len(data) != _ID.size:
            _log.error(
                "Replay id file is %d bytes long instead of %d", len(data), _ID.size
            )
            return 0
        (current,) = _ID.unpack(data)
        try:
            self._last_id.write_bytes(_ID.pack((current + 1) & _ID_MASK))
        except OSError:
            _log.error("Cannot write new replay id")
            return 0
        return current