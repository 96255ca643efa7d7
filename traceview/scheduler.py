"""Cancellable scheduled callbacks used to drive auto-play."""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Protocol

logger = logging.getLogger(__name__)

Callback = Callable[[], None]

# Roughly one display refresh at 60 Hz.
DEFAULT_FRAME_INTERVAL_MS = 16


class ScheduledHandle(Protocol):
    """Handle to a pending callback."""

    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Source of delayed and frame-aligned callbacks."""

    def call_later(self, delay_ms: int, callback: Callback) -> ScheduledHandle: ...

    def call_on_frame(self, callback: Callback) -> ScheduledHandle: ...


class _TimerHandle:
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        self._timer.cancel()


class ThreadScheduler:
    """Real-time scheduler backed by daemon ``threading.Timer`` objects."""

    def __init__(self, frame_interval_ms: int = DEFAULT_FRAME_INTERVAL_MS) -> None:
        self.frame_interval_ms = max(1, int(frame_interval_ms))

    def call_later(self, delay_ms: int, callback: Callback) -> ScheduledHandle:
        timer = threading.Timer(max(0, delay_ms) / 1000.0, callback)
        timer.daemon = True
        timer.name = "TracePlayback"
        timer.start()
        return _TimerHandle(timer)

    def call_on_frame(self, callback: Callback) -> ScheduledHandle:
        return self.call_later(self.frame_interval_ms, callback)


@dataclass(order=True)
class _ManualEntry:
    due: int
    seq: int
    callback: Callback = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by explicit ``advance``/``tick`` calls.

    Timers run against a virtual millisecond clock; frame callbacks run one
    batch per :meth:`tick`. Callbacks scheduled while a batch runs wait for
    the next tick.
    """

    def __init__(self) -> None:
        self.now = 0
        self._timers: List[_ManualEntry] = []
        self._frames: List[_ManualEntry] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: int, callback: Callback) -> ScheduledHandle:
        entry = _ManualEntry(self.now + max(0, int(delay_ms)), next(self._seq), callback)
        heapq.heappush(self._timers, entry)
        return entry

    def call_on_frame(self, callback: Callback) -> ScheduledHandle:
        entry = _ManualEntry(self.now, next(self._seq), callback)
        self._frames.append(entry)
        return entry

    def pending(self) -> int:
        """Number of live (uncancelled) callbacks."""
        return sum(
            1 for entry in itertools.chain(self._timers, self._frames) if not entry.cancelled
        )

    def tick(self) -> int:
        """Run one display frame; returns the number of callbacks invoked."""

        batch, self._frames = self._frames, []
        ran = 0
        for entry in batch:
            if entry.cancelled:
                continue
            entry.cancelled = True
            entry.callback()
            ran += 1
        return ran

    def advance(self, ms: int) -> int:
        """Move the virtual clock forward ``ms`` and fire every due timer."""

        deadline = self.now + max(0, int(ms))
        ran = 0
        while self._timers and self._timers[0].due <= deadline:
            entry = heapq.heappop(self._timers)
            if entry.cancelled:
                continue
            self.now = entry.due
            entry.cancelled = True
            entry.callback()
            ran += 1
        self.now = deadline
        return ran

    def run_until_idle(self, *, limit: int = 100_000) -> int:
        """Drain frames and timers until nothing is pending or ``limit`` hits."""

        ran = 0
        while ran < limit:
            if any(not entry.cancelled for entry in self._frames):
                ran += self.tick()
                continue
            live = [entry for entry in self._timers if not entry.cancelled]
            if not live:
                break
            ran += self.advance(min(entry.due for entry in live) - self.now)
        else:
            logger.warning("ManualScheduler stopped after %d callbacks", limit)
        return ran


__all__ = [
    "DEFAULT_FRAME_INTERVAL_MS",
    "ManualScheduler",
    "ScheduledHandle",
    "Scheduler",
    "ThreadScheduler",
]
