"""Interface for services notified of files in a watched repository."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class GitDiff:
    """Files changed by an update; modified files appear in both lists."""

    removed: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)


class GitRepoObserver(ABC):
    """Receives the file lists of a repository when it is loaded or updated."""

    @abstractmethod
    def on_add(self, path: str, file_list: list[str]) -> None:
        """Called with every file of the repository rooted at ``path``."""

    @abstractmethod
    def on_diff(self, path: str, diff: GitDiff) -> None:
        """Called with the files changed by an update of the repository."""