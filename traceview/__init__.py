"""Playback and inspection engine for recorded CPU cycle traces."""

from .controller import DEFAULT_SPEED_MS, FASTEST, PlaybackController, PlayState
from .decoder import (
    decode_flags,
    decode_mode,
    decode_opcode,
    format_value,
    instruction_summary,
)
from .errors import TraceLoadError, TraceViewError
from .history import HistoryEntry, HistoryLog
from .scheduler import ManualScheduler, ThreadScheduler
from .store import TraceStore
from .view import CycleView, build_cycle_view

__all__ = [
    "CycleView",
    "DEFAULT_SPEED_MS",
    "FASTEST",
    "HistoryEntry",
    "HistoryLog",
    "ManualScheduler",
    "PlayState",
    "PlaybackController",
    "ThreadScheduler",
    "TraceLoadError",
    "TraceStore",
    "TraceViewError",
    "build_cycle_view",
    "decode_flags",
    "decode_mode",
    "decode_opcode",
    "format_value",
    "instruction_summary",
]
