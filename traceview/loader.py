"""Read trace documents from local files or HTTP(S) URLs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Union

import requests

from .errors import TraceLoadError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECS = 10.0

Source = Union[str, Path]


def is_url(source: Source) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


def coerce_trace(document: Any, source: str = "<memory>") -> List[Any]:
    """Check that a decoded document is a trace array."""

    if not isinstance(document, (list, tuple)):
        raise TraceLoadError(
            f"Trace document must be a JSON array, got {type(document).__name__}",
            source,
        )
    return list(document)


def parse_trace(text: Union[str, bytes], source: str = "<memory>") -> List[Any]:
    """Parse JSON text into a list of cycle snapshots."""

    try:
        document = json.loads(text)
    except ValueError as exc:
        raise TraceLoadError(f"Failed to parse trace JSON: {exc}", source) from exc
    return coerce_trace(document, source)


def read_trace_file(path: Source) -> List[Any]:
    text_path = str(path)
    if text_path.startswith("file://"):
        text_path = text_path[len("file://") :]
    try:
        data = Path(text_path).read_bytes()
    except OSError as exc:
        raise TraceLoadError(f"Failed to read trace file: {exc}", text_path) from exc
    return parse_trace(data, text_path)


def fetch_trace(url: str, *, timeout: float = DEFAULT_TIMEOUT_SECS) -> List[Any]:
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise TraceLoadError(f"Failed to load trace file: {exc}", url) from exc
    return parse_trace(response.content, url)


def load_trace(source: Source, *, timeout: float = DEFAULT_TIMEOUT_SECS) -> List[Any]:
    """Load a trace from ``source``; raises :class:`TraceLoadError` on failure."""

    if is_url(source):
        trace = fetch_trace(str(source), timeout=timeout)
    else:
        trace = read_trace_file(source)
    logger.info("Loaded %d cycles from %s", len(trace), source)
    return trace


__all__ = [
    "DEFAULT_TIMEOUT_SECS",
    "coerce_trace",
    "fetch_trace",
    "is_url",
    "load_trace",
    "parse_trace",
    "read_trace_file",
]
