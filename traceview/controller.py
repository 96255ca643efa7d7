"""Playback controller: position, play state, and timed advancement.

The controller is the single owner of the current index into the loaded
trace. Every position change reads the snapshot from the store, appends a
history entry, and notifies subscribers with ``(index, snapshot)``.

Auto-play is driven by a :class:`~traceview.scheduler.Scheduler`. At most
one scheduled step is outstanding at a time; each step carries the
generation it was scheduled under, and any cancel bumps the generation so a
step that fires after ``pause``/``set_speed``/``load`` is dropped.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Iterator, List, Mapping, Optional

from .decoder import instruction_summary, parse_int
from .history import DEFAULT_CAPACITY, HistoryEntry, HistoryLog
from .loader import DEFAULT_TIMEOUT_SECS, Source, coerce_trace, load_trace
from .scheduler import ScheduledHandle, Scheduler, ThreadScheduler
from .store import TraceStore

logger = logging.getLogger(__name__)

# Speed sentinel: advance once per display frame instead of on a fixed timer.
FASTEST = 0
DEFAULT_SPEED_MS = 1000

PositionObserver = Callable[[int, Optional[Any]], None]


class PlayState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class PlaybackController:
    """Drive navigation and auto-play over a :class:`TraceStore`."""

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        *,
        speed: int = DEFAULT_SPEED_MS,
        history_capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        self._lock = threading.RLock()
        self._scheduler: Scheduler = scheduler or ThreadScheduler()
        self._store = TraceStore()
        self._history = HistoryLog(history_capacity)
        self._observers: List[PositionObserver] = []
        self._position = 0
        self._state = PlayState.STOPPED
        self._speed = self._validate_speed(speed)
        self._handle: Optional[ScheduledHandle] = None
        self._generation = 0

    # ------------------------------------------------------------------ #
    # Read-only state
    # ------------------------------------------------------------------ #

    @property
    def position(self) -> int:
        return self._position

    @property
    def state(self) -> PlayState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is PlayState.RUNNING

    @property
    def speed(self) -> int:
        return self._speed

    @property
    def length(self) -> int:
        return self._store.length()

    @property
    def store(self) -> TraceStore:
        return self._store

    @property
    def history(self) -> HistoryLog:
        return self._history

    def current(self) -> Optional[Any]:
        return self._store.get(self._position)

    def entries(self) -> Iterator[HistoryEntry]:
        return self._history.entries()

    def progress(self) -> float:
        """Percentage of the way through the trace."""

        length = self._store.length()
        if length == 0:
            return 0.0
        if length == 1:
            return 100.0
        return self._position / (length - 1) * 100.0

    # ------------------------------------------------------------------ #
    # Observers
    # ------------------------------------------------------------------ #

    def subscribe(self, callback: PositionObserver) -> Callable[[], None]:
        """Register ``callback``; returns a function that unregisters it."""

        with self._lock:
            self._observers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def _notify(self, index: int, snapshot: Optional[Any]) -> None:
        for observer in tuple(self._observers):
            try:
                observer(index, snapshot)
            except Exception:
                logger.exception("Position observer %r failed", observer)

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #

    def load(self, trace: Any) -> None:
        """Replace the trace and reset playback.

        Raises :class:`~traceview.errors.TraceLoadError` if ``trace`` is not
        an array, in which case nothing changes.
        """

        snapshots = coerce_trace(trace)
        with self._lock:
            self._cancel_pending()
            self._store.load(snapshots)
            logger.debug("Trace replaced (%d cycles)", len(snapshots))
            self.reset()

    def load_source(self, source: Source, *, timeout: float = DEFAULT_TIMEOUT_SECS) -> None:
        """Load a trace from a path or URL, keeping the current one on failure."""
        self.load(load_trace(source, timeout=timeout))

    def reset(self) -> None:
        """Stop, clear history, and return to index 0 with one notification."""

        with self._lock:
            self._cancel_pending()
            self._state = PlayState.STOPPED
            self._history.clear()
            self._position = 0
            self._notify(0, self._store.get(0))

    # ------------------------------------------------------------------ #
    # Navigation
    # ------------------------------------------------------------------ #

    def _set_position(self, index: int) -> None:
        self._position = index
        snapshot = self._store.get(index)
        cycle = snapshot.get("cycle") if isinstance(snapshot, Mapping) else None
        self._history.record(cycle, instruction_summary(snapshot))
        logger.debug("Position -> %d", index)
        self._notify(index, snapshot)

    def goto(self, index: Any) -> None:
        """Jump to ``index`` (clamped); always notifies, even when unchanged."""

        target = parse_int(index)
        if target is None:
            logger.warning("Ignoring goto with non-integer index %r", index)
            return
        with self._lock:
            length = self._store.length()
            if length == 0:
                self._notify(0, None)
                return
            self._set_position(min(max(target, 0), length - 1))

    def first(self) -> None:
        self.goto(0)

    def last(self) -> None:
        with self._lock:
            self.goto(max(self._store.length() - 1, 0))

    def _step(self, delta: int) -> bool:
        target = self._position + delta
        if not 0 <= target < self._store.length():
            return False
        self._set_position(target)
        return True

    def next(self) -> None:
        with self._lock:
            self._step(1)

    def previous(self) -> None:
        with self._lock:
            self._step(-1)

    # ------------------------------------------------------------------ #
    # Auto-play
    # ------------------------------------------------------------------ #

    def play(self) -> None:
        with self._lock:
            if self._state is PlayState.RUNNING:
                return
            if self._position >= self._store.length() - 1:
                logger.debug("Play requested at end of trace; staying stopped")
                return
            self._state = PlayState.RUNNING
            self._schedule()

    def pause(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._state = PlayState.STOPPED

    def toggle(self) -> None:
        with self._lock:
            if self._state is PlayState.RUNNING:
                self.pause()
            else:
                self.play()

    def set_speed(self, speed: Any) -> None:
        """Change the step interval; a running timer restarts at the new rate."""

        with self._lock:
            self._speed = self._validate_speed(speed)
            if self._state is PlayState.RUNNING:
                self._schedule()

    @staticmethod
    def _validate_speed(speed: Any) -> int:
        value = parse_int(speed)
        if value is None or value < 0:
            raise ValueError(f"Speed must be a non-negative number of ms, got {speed!r}")
        return value

    def _cancel_pending(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        self._cancel_pending()
        generation = self._generation

        def step() -> None:
            self._on_tick(generation)

        if self._speed == FASTEST:
            self._handle = self._scheduler.call_on_frame(step)
        else:
            self._handle = self._scheduler.call_later(self._speed, step)

    def _on_tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._state is not PlayState.RUNNING:
                return
            self._handle = None
            advanced = self._step(1)
            # An observer may have paused or rescheduled during the step.
            if generation != self._generation or self._state is not PlayState.RUNNING:
                return
            if not advanced or self._position >= self._store.length() - 1:
                self._state = PlayState.STOPPED
                logger.debug("Reached end of trace at %d", self._position)
                return
            self._schedule()


__all__ = [
    "DEFAULT_SPEED_MS",
    "FASTEST",
    "PlayState",
    "PlaybackController",
    "PositionObserver",
]
