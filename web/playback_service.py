"""Shared playback controller lifecycle for the web API."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from traceview.catalog import display_name, list_traces, resolve_trace_path
from traceview.config import ViewerConfig
from traceview.controller import PlaybackController
from traceview.scheduler import Scheduler, ThreadScheduler
from traceview.view import build_cycle_view

logger = logging.getLogger(__name__)

# Manual navigation stops auto-play first, matching the viewer buttons.
NAVIGATION_COMMANDS = ("first", "prev", "next", "last", "goto", "reset")
PLAYBACK_COMMANDS = ("play", "pause", "toggle")


class PlaybackService:
    """Own one long-lived playback controller shared by all requests."""

    def __init__(
        self,
        config: Optional[ViewerConfig] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._config = config or ViewerConfig.from_env()
        self._controller = self._create_controller(scheduler)
        self._trace_file: Optional[str] = None
        self._trace_name: Optional[str] = None
        self._loaded = False

    def _create_controller(self, scheduler: Optional[Scheduler]) -> PlaybackController:
        return PlaybackController(
            scheduler or ThreadScheduler(self._config.frame_interval_ms),
            speed=self._config.default_speed,
            history_capacity=self._config.history_capacity,
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> ViewerConfig:
        return self._config

    @property
    def controller(self) -> PlaybackController:
        return self._controller

    def configure(
        self, config: ViewerConfig, scheduler: Optional[Scheduler] = None
    ) -> None:
        """Replace configuration and start over with a fresh controller."""
        with self._lock:
            self._controller.pause()
            self._config = config
            self._controller = self._create_controller(scheduler)
            self._trace_file = None
            self._trace_name = None
            self._loaded = False

    def shutdown(self) -> None:
        """Cancel any pending auto-play step."""
        with self._lock:
            self._controller.pause()

    # ------------------------------------------------------------------ #
    # Trace selection
    # ------------------------------------------------------------------ #

    def list_traces(self) -> List[Dict[str, str]]:
        entries = list_traces(self._config.trace_dir, self._config.manifest_name)
        return [entry.to_dict() for entry in entries]

    def load_trace(self, filename: str) -> None:
        """Load ``filename`` from the trace directory; raises TraceLoadError."""
        path = resolve_trace_path(self._config.trace_dir, filename)
        with self._lock:
            self._controller.load_source(path, timeout=self._config.request_timeout)
            self._mark_loaded(filename)

    def load_url(self, url: str) -> None:
        with self._lock:
            self._controller.load_source(url, timeout=self._config.request_timeout)
            name = urlsplit(url).path.rsplit("/", 1)[-1]
            self._mark_loaded(name or url)

    def load_snapshots(self, snapshots: Any, name: str = "uploaded.json") -> None:
        with self._lock:
            self._controller.load(snapshots)
            self._mark_loaded(name)

    def _mark_loaded(self, filename: str) -> None:
        self._trace_file = filename
        self._trace_name = display_name(filename)
        self._loaded = True
        logger.info(
            "Serving trace %s (%d cycles)", filename, self._controller.length
        )

    # ------------------------------------------------------------------ #
    # Playback
    # ------------------------------------------------------------------ #

    def control(self, command: str, index: Any = None) -> str:
        """Apply a control command; returns the resulting status string."""
        if command not in NAVIGATION_COMMANDS + PLAYBACK_COMMANDS:
            raise ValueError(f"Unknown command: {command}")
        with self._lock:
            controller = self._controller
            if command in NAVIGATION_COMMANDS:
                controller.pause()
            if command == "first" or command == "reset":
                controller.first()
            elif command == "prev":
                controller.previous()
            elif command == "next":
                controller.next()
            elif command == "last":
                controller.last()
            elif command == "goto":
                if index is None:
                    raise ValueError("Missing index")
                controller.goto(index)
            elif command == "play":
                controller.play()
            elif command == "pause":
                controller.pause()
            elif command == "toggle":
                controller.toggle()
            return "running" if controller.is_running else "paused"

    def set_speed(self, value: Any) -> int:
        with self._lock:
            speed = self._config.resolve_speed(value)
            self._controller.set_speed(speed)
            return speed

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #

    def snapshot_state(self) -> Dict[str, object]:
        with self._lock:
            controller = self._controller
            total = controller.length
            snapshot = controller.current()
            cycle = (
                build_cycle_view(snapshot, controller.position, total).to_dict()
                if total
                else None
            )
            return {
                "loaded": self._loaded,
                "file": self._trace_file,
                "name": self._trace_name,
                "position": controller.position if total else None,
                "total": total,
                "progress": round(controller.progress(), 1),
                "is_running": controller.is_running,
                "speed": controller.speed,
                "speed_presets": dict(self._config.speed_presets),
                "cycle": cycle,
                "history": [entry.to_dict() for entry in controller.entries()],
            }


service = PlaybackService()


def init_app(app) -> None:
    """Apply app-level overrides to the shared playback service."""
    trace_dir = app.config.get("TRACE_DIR")
    if trace_dir:
        config = ViewerConfig.from_env()
        config.trace_dir = Path(trace_dir)
        service.configure(config)
