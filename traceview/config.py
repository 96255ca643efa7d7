"""Viewer configuration: trace directory, speed presets, history size."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from .controller import DEFAULT_SPEED_MS, FASTEST
from .decoder import parse_int
from .history import DEFAULT_CAPACITY
from .loader import DEFAULT_TIMEOUT_SECS
from .scheduler import DEFAULT_FRAME_INTERVAL_MS

DEFAULT_SPEED_PRESETS: Dict[str, int] = {
    "slow": 1000,
    "normal": 500,
    "fast": 200,
    "faster": 100,
    "fastest": FASTEST,
}


@dataclass
class ViewerConfig:
    """Runtime configuration for playback hosts.

    Values come from, in increasing priority: defaults, a JSON file passed
    to :meth:`load`, then ``TRACEVIEW_*`` environment variables applied by
    :meth:`from_env`.
    """

    ENV_TRACE_DIR = "TRACEVIEW_TRACE_DIR"
    ENV_SPEED = "TRACEVIEW_SPEED"
    ENV_HISTORY = "TRACEVIEW_HISTORY"
    ENV_FRAME_MS = "TRACEVIEW_FRAME_MS"

    trace_dir: Path = Path("build/traces")
    manifest_name: str = "traces.json"
    default_speed: int = DEFAULT_SPEED_MS
    speed_presets: Dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_SPEED_PRESETS)
    )
    history_capacity: int = DEFAULT_CAPACITY
    frame_interval_ms: int = DEFAULT_FRAME_INTERVAL_MS
    request_timeout: float = DEFAULT_TIMEOUT_SECS

    def __post_init__(self) -> None:
        self.trace_dir = Path(self.trace_dir)

    @property
    def manifest_path(self) -> Path:
        return self.trace_dir / self.manifest_name

    def resolve_speed(self, value: Union[str, int, None]) -> int:
        """Map a preset name or millisecond count to milliseconds."""

        if value is None:
            return self.default_speed
        if isinstance(value, str) and value.strip().lower() in self.speed_presets:
            return self.speed_presets[value.strip().lower()]
        speed = parse_int(value)
        if speed is None or speed < 0:
            presets = ", ".join(self.speed_presets)
            raise ValueError(f"Unknown speed {value!r}; use ms or one of: {presets}")
        return speed

    def to_dict(self) -> dict:
        return {
            "trace_dir": str(self.trace_dir),
            "manifest_name": self.manifest_name,
            "default_speed": self.default_speed,
            "speed_presets": dict(self.speed_presets),
            "history_capacity": self.history_capacity,
            "frame_interval_ms": self.frame_interval_ms,
            "request_timeout": self.request_timeout,
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "ViewerConfig":
        defaults = cls()
        return cls(
            trace_dir=Path(data.get("trace_dir", defaults.trace_dir)),
            manifest_name=data.get("manifest_name", defaults.manifest_name),
            default_speed=int(data.get("default_speed", defaults.default_speed)),
            speed_presets=dict(data.get("speed_presets", defaults.speed_presets)),
            history_capacity=int(data.get("history_capacity", defaults.history_capacity)),
            frame_interval_ms=int(data.get("frame_interval_ms", defaults.frame_interval_ms)),
            request_timeout=float(data.get("request_timeout", defaults.request_timeout)),
        )

    def save(self, path: Union[str, Path]) -> None:
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ViewerConfig":
        with open(path, "r") as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_env(
        cls,
        base: Optional["ViewerConfig"] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ViewerConfig":
        """Apply ``TRACEVIEW_*`` overrides on top of ``base`` (or defaults)."""

        env = os.environ if environ is None else environ
        config = base if base is not None else cls()
        trace_dir = env.get(cls.ENV_TRACE_DIR)
        if trace_dir:
            config.trace_dir = Path(trace_dir)
        speed = env.get(cls.ENV_SPEED)
        if speed:
            config.default_speed = config.resolve_speed(speed)
        history = parse_int(env.get(cls.ENV_HISTORY))
        if history is not None and history > 0:
            config.history_capacity = history
        frame_ms = parse_int(env.get(cls.ENV_FRAME_MS))
        if frame_ms is not None and frame_ms > 0:
            config.frame_interval_ms = frame_ms
        return config


__all__ = ["DEFAULT_SPEED_PRESETS", "ViewerConfig"]
