"""Bounded rolling log of recently visited cycles."""

from __future__ import annotations

import collections
from dataclasses import dataclass, replace
from typing import Any, Deque, Iterator, Optional

DEFAULT_CAPACITY = 10


@dataclass(frozen=True)
class HistoryEntry:
    """One navigated cycle with its decoded instruction summary."""

    cycle: Any
    instruction: str
    is_current: bool = True

    def to_dict(self) -> dict:
        return {
            "cycle": self.cycle,
            "instruction": self.instruction,
            "is_current": self.is_current,
        }


class HistoryLog:
    """Append-only ring of the last ``capacity`` navigations."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self._entries: Deque[HistoryEntry] = collections.deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def record(self, cycle: Any, instruction: str) -> HistoryEntry:
        if self._entries:
            self._entries[-1] = replace(self._entries[-1], is_current=False)
        entry = HistoryEntry(cycle=cycle, instruction=instruction, is_current=True)
        # deque(maxlen=...) drops the oldest entry on overflow.
        self._entries.append(entry)
        return entry

    def entries(self) -> Iterator[HistoryEntry]:
        """Yield entries most recent first."""
        for entry in reversed(tuple(self._entries)):
            yield entry

    def current(self) -> Optional[HistoryEntry]:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["DEFAULT_CAPACITY", "HistoryEntry", "HistoryLog"]
