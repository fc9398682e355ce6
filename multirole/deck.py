"""Decks and their size limits."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class Boundary:
    min: int
    max: int


@dataclass(frozen=True)
class DeckLimits:
    main: Boundary = field(default_factory=lambda: Boundary(40, 60))
    extra: Boundary = field(default_factory=lambda: Boundary(0, 15))
    side: Boundary = field(default_factory=lambda: Boundary(0, 15))


@dataclass(frozen=True)
class Deck:
    main: tuple[int, ...] = ()
    extra: tuple[int, ...] = ()
    side: tuple[int, ...] = ()
    error: int = 0

    def __post_init__(self) -> None:
        for name in ("main", "extra", "side"):
            codes: Iterable[int] = getattr(self, name)
            object.__setattr__(self, name, tuple(codes))

    def code_map(self) -> dict[int, int]:
        """Count of every card code across main, extra and side, ordered by code."""
        counts = Counter(self.main)
        counts.update(self.extra)
        counts.update(self.side)
        return dict(sorted(counts.items()))