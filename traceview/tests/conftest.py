"""Shared pytest fixtures for trace playback tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from traceview.controller import PlaybackController
from traceview.scheduler import ManualScheduler


def make_snapshot(cycle: int, opcode: Any = 2, **extra: Any) -> Dict[str, Any]:
    snapshot: Dict[str, Any] = {
        "cycle": cycle,
        "pc": f"0x{0x8000 + 2 * cycle:04x}",
        "registers": {"r0": "0x0000", "r1": cycle, "r2": "0x00ff", "r3": 0},
        "flags": "0x0a",
        "sp": "0xfffe",
        "ir": "0x1000",
        "mar": "0x8000",
        "mdr": "0x0000",
        "instr": {"opcode": opcode, "mode": 1, "rd": 0, "rs": 1, "extra": 5},
    }
    snapshot.update(extra)
    return snapshot


@pytest.fixture
def sample_trace() -> List[Dict[str, Any]]:
    return [make_snapshot(cycle) for cycle in (10, 11, 12)]


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def controller(scheduler: ManualScheduler) -> PlaybackController:
    return PlaybackController(scheduler, speed=200)


@pytest.fixture
def trace_file(tmp_path: Path, sample_trace: List[Dict[str, Any]]) -> Path:
    path = tmp_path / "factorial_20240131_235959.json"
    path.write_text(json.dumps(sample_trace), encoding="utf-8")
    return path
