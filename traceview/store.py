"""Holder for the currently loaded cycle trace."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Tuple


class TraceStore:
    """Immutable-once-loaded sequence of cycle snapshots.

    A load replaces the held tuple wholesale; position and history live in
    the playback controller, never here.
    """

    def __init__(self, snapshots: Iterable[Any] = ()) -> None:
        self._snapshots: Tuple[Any, ...] = tuple(snapshots)

    def load(self, snapshots: Iterable[Any]) -> None:
        self._snapshots = tuple(snapshots)

    def get(self, index: Any) -> Optional[Any]:
        """Return the snapshot at ``index`` or ``None`` when out of range."""

        if isinstance(index, bool) or not isinstance(index, int):
            return None
        if not 0 <= index < len(self._snapshots):
            return None
        return self._snapshots[index]

    def length(self) -> int:
        return len(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    def is_empty(self) -> bool:
        return not self._snapshots

    @property
    def snapshots(self) -> Tuple[Any, ...]:
        return self._snapshots


__all__ = ["TraceStore"]
