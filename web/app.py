"""Flask backend for the cycle trace viewer."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from flask import Flask, jsonify, request
from flask_cors import CORS

# Ensure imports work when running as a module or script
CURRENT_DIR = Path(__file__).parent
PARENT_DIR = CURRENT_DIR.parent
if str(CURRENT_DIR) not in sys.path:
    sys.path.insert(0, str(CURRENT_DIR))
if str(PARENT_DIR) not in sys.path:
    sys.path.insert(0, str(PARENT_DIR))

from traceview.errors import TraceLoadError  # noqa: E402

try:  # pragma: no cover - exercised under WSGI
    from .playback_service import init_app, service
except ImportError:  # pragma: no cover - direct script execution
    from playback_service import init_app, service  # type: ignore

app = Flask(__name__)
app.config["TRACE_DIR"] = os.environ.get("TRACEVIEW_TRACE_DIR")

# Restrict CORS by default; allow opt-in via config/env
allowed_origins = app.config.get("WEB_ALLOWED_ORIGINS") or os.environ.get(
    "TRACEVIEW_WEB_ALLOWED_ORIGINS"
)
if allowed_origins:
    if isinstance(allowed_origins, str):
        origins = [
            origin.strip() for origin in allowed_origins.split(",") if origin.strip()
        ]
    else:
        origins = allowed_origins
    if origins:
        CORS(app, resources={r"/api/*": {"origins": origins}})

init_app(app)


def _load_error(exc: TraceLoadError):
    return jsonify({"error": str(exc), "source": exc.source}), 422


@app.route("/")
def index():
    """Describe the available API endpoints."""
    return jsonify(
        {
            "service": "traceview",
            "endpoints": [
                "/api/v1/traces",
                "/api/v1/load",
                "/api/v1/state",
                "/api/v1/control",
                "/api/v1/speed",
            ],
        }
    )


@app.route("/api/v1/traces", methods=["GET"])
def get_traces():
    """List traces available in the configured trace directory."""
    try:
        traces = service.list_traces()
    except TraceLoadError as exc:
        return _load_error(exc)
    return jsonify({"traces": traces})


@app.route("/api/v1/load", methods=["POST"])
def load_trace():
    """Load a trace by file name, URL, or inline snapshot array."""
    data = request.get_json(silent=True) or {}
    try:
        if data.get("trace"):
            service.load_trace(str(data["trace"]))
        elif data.get("url"):
            service.load_url(str(data["url"]))
        elif "snapshots" in data:
            service.load_snapshots(data["snapshots"], data.get("name") or "uploaded.json")
        else:
            return jsonify({"error": "Missing trace, url, or snapshots"}), 400
    except TraceLoadError as exc:
        return _load_error(exc)
    return jsonify(service.snapshot_state())


@app.route("/api/v1/state", methods=["GET"])
def get_state():
    """Return the current playback state and decoded cycle."""
    return jsonify(service.snapshot_state())


@app.route("/api/v1/control", methods=["POST"])
def control_playback():
    """Navigate or control auto-play (first/prev/next/last/goto/play/pause/toggle/reset)."""
    data = request.get_json(silent=True) or {}
    command = data.get("command")
    if not command:
        return jsonify({"error": "Missing command"}), 400
    try:
        status = service.control(command, data.get("index"))
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"status": status, "state": service.snapshot_state()})


@app.route("/api/v1/speed", methods=["POST"])
def set_speed():
    """Set playback speed from a preset name or milliseconds per cycle."""
    data = request.get_json(silent=True) or {}
    if "speed" not in data:
        return jsonify({"error": "Missing speed"}), 400
    try:
        speed = service.set_speed(data["speed"])
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"speed": speed})


if __name__ == "__main__":
    print("Starting trace viewer at http://localhost:8080")
    app.run(debug=True, host="0.0.0.0", port=8080)
