"""Tests for playback navigation, auto-play, and load/reset semantics."""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

import pytest

from traceview.controller import FASTEST, PlaybackController, PlayState
from traceview.errors import TraceLoadError
from traceview.scheduler import ManualScheduler

from .conftest import make_snapshot


def _record(controller: PlaybackController) -> List[Tuple[int, Optional[Any]]]:
    seen: List[Tuple[int, Optional[Any]]] = []
    controller.subscribe(lambda index, snapshot: seen.append((index, snapshot)))
    return seen


def test_initial_state_is_stopped_and_inert(controller: PlaybackController) -> None:
    assert controller.state is PlayState.STOPPED
    assert controller.position == 0
    assert controller.length == 0
    assert controller.current() is None
    assert controller.progress() == 0.0


def test_goto_reads_back_and_notifies_snapshot(controller, sample_trace) -> None:
    controller.load(sample_trace)
    seen = _record(controller)
    for index in range(len(sample_trace)):
        controller.goto(index)
        assert controller.position == index
        assert seen[-1] == (index, controller.store.get(index))


def test_goto_same_index_still_notifies(controller, sample_trace) -> None:
    controller.load(sample_trace)
    seen = _record(controller)
    controller.goto(1)
    controller.goto(1)
    assert len(seen) == 2
    assert [entry.cycle for entry in controller.entries()] == [11, 11]


def test_goto_clamps(controller, sample_trace) -> None:
    controller.load(sample_trace)
    controller.goto(99)
    assert controller.position == 2
    controller.goto(-5)
    assert controller.position == 0
    controller.goto("1")
    assert controller.position == 1


def test_goto_non_integer_is_ignored(controller, sample_trace) -> None:
    controller.load(sample_trace)
    seen = _record(controller)
    controller.goto("later")
    assert seen == []
    assert controller.position == 0


def test_next_and_previous_saturate_without_notifying(controller, sample_trace) -> None:
    controller.load(sample_trace)
    controller.last()
    seen = _record(controller)
    controller.next()
    assert controller.position == 2
    assert seen == []

    controller.first()
    seen.clear()
    controller.previous()
    assert controller.position == 0
    assert seen == []


def test_next_previous_step(controller, sample_trace) -> None:
    controller.load(sample_trace)
    controller.next()
    controller.next()
    controller.previous()
    assert controller.position == 1
    assert controller.progress() == 50.0


def test_first_last_on_empty_trace_notify(controller) -> None:
    controller.load([])
    seen = _record(controller)
    controller.first()
    controller.last()
    assert seen == [(0, None), (0, None)]
    assert list(controller.entries()) == []


def test_play_fixed_interval_runs_to_end(sample_trace) -> None:
    scheduler = ManualScheduler()
    controller = PlaybackController(scheduler, speed=200)
    controller.load(sample_trace)
    seen = _record(controller)

    controller.play()
    assert controller.is_running
    scheduler.advance(199)
    assert controller.position == 0
    scheduler.advance(1)
    assert controller.position == 1
    scheduler.advance(200)
    assert controller.position == 2
    assert controller.state is PlayState.STOPPED
    assert scheduler.pending() == 0

    scheduler.advance(1000)
    assert [index for index, _ in seen] == [1, 2]


def test_play_fastest_scenario(sample_trace) -> None:
    scheduler = ManualScheduler()
    controller = PlaybackController(scheduler, speed=FASTEST)
    controller.load(sample_trace)
    controller.goto(0)

    controller.play()
    scheduler.tick()
    assert controller.position == 1
    assert controller.is_running
    scheduler.tick()
    assert controller.position == 2
    assert controller.state is PlayState.STOPPED
    assert [entry.cycle for entry in controller.entries()] == [12, 11, 10]
    assert scheduler.tick() == 0


def test_pause_before_frame_fires_prevents_advance(sample_trace) -> None:
    scheduler = ManualScheduler()
    controller = PlaybackController(scheduler, speed=FASTEST)
    controller.load(sample_trace)
    controller.play()
    controller.pause()
    controller.pause()
    scheduler.tick()
    assert controller.position == 0
    assert controller.state is PlayState.STOPPED


def test_stale_callback_is_ignored_after_cancel(sample_trace) -> None:
    class LeakyScheduler(ManualScheduler):
        def call_later(self, delay_ms, callback):
            handle = super().call_later(delay_ms, callback)
            self.callbacks.append(callback)
            return handle

    scheduler = LeakyScheduler()
    scheduler.callbacks = []
    controller = PlaybackController(scheduler, speed=100)
    controller.load(sample_trace)
    controller.play()
    controller.pause()
    controller.play()

    # The first step fires late even though it was cancelled.
    scheduler.callbacks[0]()
    assert controller.position == 0
    scheduler.advance(100)
    assert controller.position == 1


def test_toggle(controller, sample_trace, scheduler) -> None:
    controller.load(sample_trace)
    controller.toggle()
    assert controller.is_running
    controller.toggle()
    assert not controller.is_running
    assert scheduler.pending() == 0


def test_play_at_end_or_empty_stays_stopped(controller, sample_trace, scheduler) -> None:
    controller.play()
    assert not controller.is_running
    controller.load(sample_trace)
    controller.last()
    controller.play()
    assert not controller.is_running
    assert scheduler.pending() == 0


def test_set_speed_restarts_single_timer(sample_trace) -> None:
    scheduler = ManualScheduler()
    controller = PlaybackController(scheduler, speed=1000)
    controller.load(sample_trace)
    controller.play()
    scheduler.advance(500)
    controller.set_speed(200)
    assert scheduler.pending() == 1
    assert controller.position == 0
    scheduler.advance(200)
    assert controller.position == 1
    scheduler.advance(600)
    assert controller.position == 2


def test_set_speed_while_stopped_does_not_schedule(controller, scheduler) -> None:
    controller.set_speed(FASTEST)
    assert controller.speed == FASTEST
    assert scheduler.pending() == 0
    with pytest.raises(ValueError):
        controller.set_speed(-5)


def test_load_while_running_resets_with_one_notification(sample_trace) -> None:
    scheduler = ManualScheduler()
    controller = PlaybackController(scheduler, speed=200)
    controller.load(sample_trace)
    controller.play()
    scheduler.advance(200)
    assert len(controller.history) == 1

    seen = _record(controller)
    replacement = [make_snapshot(cycle) for cycle in (40, 41)]
    controller.load(replacement)

    assert controller.state is PlayState.STOPPED
    assert controller.position == 0
    assert len(controller.history) == 0
    assert seen == [(0, replacement[0])]
    assert scheduler.pending() == 0
    scheduler.advance(1000)
    assert seen == [(0, replacement[0])]


def test_load_rejects_non_array_and_keeps_trace(controller, sample_trace) -> None:
    controller.load(sample_trace)
    controller.goto(2)
    with pytest.raises(TraceLoadError):
        controller.load({"cycle": 1})
    assert controller.length == 3
    assert controller.position == 2


def test_load_source_failure_preserves_state(controller, sample_trace, tmp_path) -> None:
    controller.load(sample_trace)
    controller.goto(1)
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(TraceLoadError):
        controller.load_source(bad)
    with pytest.raises(TraceLoadError):
        controller.load_source(tmp_path / "missing.json")
    assert controller.length == 3
    assert controller.position == 1


def test_load_source_from_file(controller, trace_file) -> None:
    controller.load_source(trace_file)
    assert controller.length == 3
    assert controller.current()["cycle"] == 10


def test_unsubscribe(controller, sample_trace) -> None:
    seen: List[int] = []
    unsubscribe = controller.subscribe(lambda index, snapshot: seen.append(index))
    controller.load(sample_trace)
    unsubscribe()
    unsubscribe()
    controller.next()
    assert seen == [0]


def test_failing_observer_does_not_break_playback(sample_trace) -> None:
    scheduler = ManualScheduler()
    controller = PlaybackController(scheduler, speed=FASTEST)
    seen: List[int] = []

    def broken(index: int, snapshot: Any) -> None:
        raise RuntimeError("render failed")

    controller.subscribe(broken)
    controller.subscribe(lambda index, snapshot: seen.append(index))
    controller.load(sample_trace)
    controller.play()
    scheduler.run_until_idle()
    assert seen == [0, 1, 2]
    assert controller.state is PlayState.STOPPED


def test_observer_may_navigate_reentrantly(sample_trace) -> None:
    scheduler = ManualScheduler()
    controller = PlaybackController(scheduler, speed=FASTEST)
    controller.load(sample_trace)

    def pause_at_one(index: int, snapshot: Any) -> None:
        if index == 1:
            controller.pause()
            controller.goto(0)

    controller.subscribe(pause_at_one)
    controller.play()
    scheduler.run_until_idle()
    assert controller.position == 0
    assert controller.state is PlayState.STOPPED
    assert scheduler.pending() == 0


def test_observer_set_speed_does_not_duplicate_timer(sample_trace) -> None:
    scheduler = ManualScheduler()
    controller = PlaybackController(scheduler, speed=100)
    controller.load([make_snapshot(cycle) for cycle in range(5)])

    def speed_up(index: int, snapshot: Any) -> None:
        if index == 1:
            controller.set_speed(10)

    controller.subscribe(speed_up)
    controller.play()
    scheduler.advance(100)
    assert controller.position == 1
    assert scheduler.pending() == 1
    scheduler.advance(10)
    assert controller.position == 2


def test_history_bounded_through_navigation(controller) -> None:
    controller.load([make_snapshot(cycle) for cycle in range(20)])
    for index in range(20):
        controller.goto(index)
    entries = list(controller.entries())
    assert len(entries) == 10
    assert entries[0].is_current and entries[0].cycle == 19
    assert entries[0].instruction == "MOV (PC: 0x8026)"


def test_history_records_missing_instruction(controller) -> None:
    controller.load([{"cycle": 3, "pc": 1}])
    controller.goto(0)
    assert controller.history.current().instruction == "N/A"


def test_single_snapshot_progress(controller) -> None:
    controller.load([make_snapshot(0)])
    assert controller.progress() == 100.0


def test_null_element_still_records_history(controller) -> None:
    controller.load([{"cycle": 0}, None, {"cycle": 2}])
    seen = _record(controller)
    controller.goto(1)
    assert seen == [(1, None)]
    entries = list(controller.entries())
    assert len(entries) == 1
    assert entries[0].cycle is None
    assert entries[0].instruction == "N/A"
    controller.next()
    assert [entry.cycle for entry in controller.entries()] == [2, None]
