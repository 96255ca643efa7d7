#!/usr/bin/env python3
"""Command-line trace viewer: inspect one cycle or auto-play a trace."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Any, List, Optional, TextIO

from .catalog import list_traces
from .config import ViewerConfig
from .controller import PlaybackController
from .errors import TraceLoadError
from .presenter import render_cycle, render_screen
from .scheduler import ThreadScheduler
from .view import build_cycle_view

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cycle trace viewer")
    parser.add_argument("trace", nargs="?", help="Trace JSON file path or http(s) URL")
    parser.add_argument(
        "--list",
        metavar="DIR",
        nargs="?",
        const="",
        help="List available traces (defaults to the configured trace directory)",
    )
    parser.add_argument("--goto", type=int, default=None, help="Cycle index to show")
    parser.add_argument(
        "--play", action="store_true", help="Auto-play from --goto (or 0) to the end"
    )
    parser.add_argument(
        "--speed",
        type=str,
        default=None,
        help="Playback speed: ms per cycle or a preset (slow, normal, fast, faster, fastest)",
    )
    parser.add_argument("--config", type=str, help="Viewer config JSON file")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def _load_config(path: Optional[str]) -> ViewerConfig:
    base = ViewerConfig.load(path) if path else None
    return ViewerConfig.from_env(base)


def _print_listing(config: ViewerConfig, directory: str, out: TextIO) -> int:
    trace_dir = directory or config.trace_dir
    try:
        entries = list_traces(trace_dir, config.manifest_name)
    except TraceLoadError as exc:
        print(f"Error: {exc} ({exc.source})", file=sys.stderr)
        return 1
    if not entries:
        print("No traces found.", file=out)
    for entry in entries:
        print(f"{entry.display_name:<32} {entry.file}", file=out)
    return 0


def _play(controller: PlaybackController, out: TextIO, poll_secs: float = 0.05) -> None:
    def on_position(index: int, snapshot: Any) -> None:
        view = build_cycle_view(snapshot, index, controller.length)
        print(render_cycle(view, controller.progress()), file=out)
        print("", file=out)

    unsubscribe = controller.subscribe(on_position)
    try:
        controller.play()
        while controller.is_running:
            time.sleep(poll_secs)
    except KeyboardInterrupt:
        controller.pause()
    finally:
        unsubscribe()


def main(argv: Optional[List[str]] = None, out: TextIO = sys.stdout) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        config = _load_config(args.config)
        speed = config.resolve_speed(args.speed)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if args.list is not None:
        return _print_listing(config, args.list, out)
    if not args.trace:
        parser.error("a trace path or URL is required unless --list is given")

    controller = PlaybackController(
        ThreadScheduler(config.frame_interval_ms),
        speed=speed,
        history_capacity=config.history_capacity,
    )
    logger.debug("Loading trace from %s", args.trace)
    try:
        controller.load_source(args.trace, timeout=config.request_timeout)
    except TraceLoadError as exc:
        print(f"Failed to load trace: {exc}", file=sys.stderr)
        return 1

    if controller.length == 0:
        print("Trace is empty.", file=out)
        return 0

    controller.goto(args.goto if args.goto is not None else 0)
    if args.play:
        _play(controller, out)

    view = build_cycle_view(controller.current(), controller.position, controller.length)
    print(render_screen(view, controller.progress(), controller.entries()), file=out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
