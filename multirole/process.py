"""Starting, watching and stopping child processes."""

from __future__ import annotations

import os
import subprocess
import sys
from typing import Any, Optional


class ChildProcess:
    """A program started by :func:`launch`."""

    def __init__(self, popen: subprocess.Popen) -> None:
        self._popen = popen

    @property
    def pid(self) -> int:
        return self._popen.pid

    def is_running(self) -> bool:
        """Whether the process has not exited yet."""
        return self._popen.poll() is None

    def wait(self) -> int:
        """Wait for the process to exit and return its exit status."""
        return self._popen.wait()

    def kill(self) -> None:
        """Forcefully stop the process."""
        self._popen.kill()

    def __enter__(self) -> ChildProcess:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self.is_running():
            self.kill()
        self.wait()


def launch(program: str, *args: Any) -> ChildProcess:
    """Start ``program`` with ``args``, searching PATH; raises OSError on failure."""
    options: dict[str, Any] = {}
    if sys.platform == "win32":
        startup = subprocess.STARTUPINFO()
        startup.dwFlags |= subprocess.STARTF_USESHOWWINDOW
        startup.wShowWindow = subprocess.SW_HIDE
        options["startupinfo"] = startup
    popen = subprocess.Popen([program, *(str(a) for a in args)], **options)
    return ChildProcess(popen)


def set_close_on_exec(fd: int) -> Optional[None]:
    """Keep ``fd`` from being inherited by programs started later."""
    os.set_inheritable(fd, False)