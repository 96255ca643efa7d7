"""Discovery of recorded traces in a trace directory."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from .errors import TraceLoadError

logger = logging.getLogger(__name__)

# Recorder output names look like ``factorial_20240131_235959.json``.
_TIMESTAMP_SUFFIX = re.compile(r"_\d{8}_\d{6}$")


@dataclass(frozen=True)
class TraceEntry:
    file: str
    base_name: str
    display_name: str

    def to_dict(self) -> dict:
        return {"file": self.file, "base": self.base_name, "name": self.display_name}


def base_name(filename: str) -> str:
    stem = filename[: -len(".json")] if filename.endswith(".json") else filename
    return _TIMESTAMP_SUFFIX.sub("", stem)


def display_name(filename: str) -> str:
    """``bubble_sort_20240101_120000.json`` -> ``Bubble Sort``."""

    words = base_name(filename).replace("_", " ").split(" ")
    return " ".join(word[:1].upper() + word[1:] for word in words)


def _read_manifest(manifest: Path) -> List[str]:
    try:
        files = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise TraceLoadError(f"Failed to read trace manifest: {exc}", str(manifest)) from exc
    if not isinstance(files, list):
        raise TraceLoadError("Trace manifest must be a JSON array", str(manifest))
    return [str(name) for name in files]


def list_traces(trace_dir: Union[str, Path], manifest_name: str = "traces.json") -> List[TraceEntry]:
    """List traces from the directory manifest, or by globbing when absent."""

    directory = Path(trace_dir)
    manifest = directory / manifest_name
    if manifest.exists():
        files = _read_manifest(manifest)
    elif directory.is_dir():
        logger.debug("No manifest in %s; scanning for *.json", directory)
        files = sorted(p.name for p in directory.glob("*.json") if p.name != manifest_name)
    else:
        raise TraceLoadError("Trace directory not found", str(directory))
    return [TraceEntry(name, base_name(name), display_name(name)) for name in files]


def resolve_trace_path(trace_dir: Union[str, Path], filename: str) -> Path:
    """Join ``filename`` onto ``trace_dir``, refusing paths that escape it."""

    directory = Path(trace_dir).resolve()
    candidate = (directory / filename).resolve()
    if directory not in candidate.parents:
        raise TraceLoadError("Trace path escapes the trace directory", filename)
    return candidate


__all__ = [
    "TraceEntry",
    "base_name",
    "display_name",
    "list_traces",
    "resolve_trace_path",
]
