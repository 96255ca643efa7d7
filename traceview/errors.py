"""Exception types raised at the engine's I/O boundary."""

from __future__ import annotations

from typing import Optional


class TraceViewError(Exception):
    pass


class TraceLoadError(TraceViewError):
    """A trace document could not be read, parsed, or shaped into a trace."""

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


__all__ = ["TraceViewError", "TraceLoadError"]
