# -*- coding: utf-8 -*-
from __future__ import annotations

########################
# web_server.py
########################
# Purpose:
# - Local Flask web server for the phone controller.
# - Serves the controller page and provides /api endpoints for status, taps and menu intents.
#
# Design notes:
# - The server thread never touches gameplay objects. It only:
#   - reads the latest published snapshot dict
#   - queues ControlIntent values
# - The Qt thread drains the queue (control_api.ControlApiBridge) and applies intents to the
#   SessionStateMachine, so all gameplay mutation stays on one thread.
# - ControlState is the only shared object; keep it thread-safe and explicit.
#
########################
# Interfaces:
# Public enums:
# - IntentKind: TAP, START, REPLAY, MENU, DIFFICULTY
#
# Public dataclasses:
# - WebServerConfig(host: str, port: int, web_root_dir: pathlib.Path, debug: bool)
# - ControlIntent(kind: IntentKind, lane: Optional[int], difficulty: Optional[str])
#
# Public classes:
# - class ControlState
#   - publish_snapshot(payload: dict[str, Any]) -> None
#   - snapshot() -> dict[str, Any]
#   - enqueue(intent: ControlIntent) -> None
#   - drain_intents() -> list[ControlIntent]
#
# Public functions:
# - create_flask_app(config: WebServerConfig, control_state: Optional[ControlState] = None) -> flask.Flask
# - apply_intent(session_machine, intent: ControlIntent) -> bool
# - main() -> int
#
# Inputs:
# - HTTP requests from remote clients:
#   - /api/status (GET)
#   - /api/tap (POST {"lane": 0..3})
#   - /api/start, /api/replay, /api/menu (POST)
#   - /api/difficulty (POST {"difficulty": "easy" | "medium" | "hard"})
#
# Outputs:
# - JSON responses and the static controller page.
#
########################
# Tests:
#   - python web_server.py --host 0.0.0.0 --port 5178
########################

import argparse
import enum
import threading
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional

from flask import Flask, Response, jsonify, redirect, request, send_from_directory
from werkzeug.exceptions import NotFound

import gameplay_models
import paths


_MAX_QUEUED_INTENTS = 256


@dataclass(frozen=True)
class WebServerConfig:
    host: str
    port: int
    web_root_dir: Path
    debug: bool = False


class IntentKind(str, enum.Enum):
    TAP = "tap"
    START = "start"
    REPLAY = "replay"
    MENU = "menu"
    DIFFICULTY = "difficulty"


@dataclass(frozen=True)
class ControlIntent:
    kind: IntentKind
    lane: Optional[int] = None
    difficulty: Optional[str] = None


class ControlState:
    """Server-side control state shared between the Flask thread and the Qt thread.

    Design intent:
    - The game publishes a snapshot dict after every frame it renders.
    - Web requests queue intents; the game drains and applies them on its own thread.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._snapshot: Dict[str, Any] = gameplay_models.GameSnapshot().to_dict()
        self._intents: Deque[ControlIntent] = deque(maxlen=_MAX_QUEUED_INTENTS)

    def publish_snapshot(self, payload: Dict[str, Any]) -> None:
        with self._lock:
            self._snapshot = dict(payload)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._snapshot)

    def enqueue(self, intent: ControlIntent) -> None:
        with self._lock:
            self._intents.append(intent)

    def drain_intents(self) -> List[ControlIntent]:
        with self._lock:
            drained = list(self._intents)
            self._intents.clear()
        return drained


def _parse_lane(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        lane = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        lane = int(value.strip())
    else:
        return None
    if not gameplay_models.is_valid_lane(lane):
        return None
    return lane


def apply_intent(session_machine: Any, intent: ControlIntent) -> bool:
    """Apply one queued intent to a SessionStateMachine. Call on the game thread only."""
    if intent.kind == IntentKind.TAP:
        return session_machine.tap(intent.lane) is not None
    if intent.kind == IntentKind.START:
        return bool(session_machine.start())
    if intent.kind == IntentKind.REPLAY:
        return bool(session_machine.replay())
    if intent.kind == IntentKind.MENU:
        return bool(session_machine.to_menu())
    if intent.kind == IntentKind.DIFFICULTY:
        return bool(session_machine.select_difficulty(intent.difficulty))
    return False


def create_flask_app(config: WebServerConfig, control_state: Optional[ControlState] = None) -> Flask:
    flask_app = Flask(__name__, static_folder=None)

    state = control_state if control_state is not None else ControlState()
    flask_app.extensions["tapdance_control_state"] = state

    @flask_app.after_request
    def add_no_cache_headers(response: Response) -> Response:
        response.headers["Cache-Control"] = "no-store"
        return response

    @flask_app.errorhandler(NotFound)
    def handle_not_found(_error: NotFound) -> Response:
        return jsonify({"ok": False, "error": "Not found"}), 404

    def bad_request_response(error_text: str) -> Response:
        return jsonify({"ok": False, "error": error_text}), 400

    def serve_file_from_web_root(requested_path: str) -> Response:
        # send_from_directory refuses paths that escape the web root.
        return send_from_directory(config.web_root_dir, requested_path)

    # Pages

    @flask_app.get("/")
    def route_root() -> Response:
        return redirect("/controller.html")

    @flask_app.get("/controller")
    def route_controller() -> Response:
        return serve_file_from_web_root("controller.html")

    @flask_app.get("/controller.html")
    def route_controller_html() -> Response:
        return serve_file_from_web_root("controller.html")

    # API

    @flask_app.get("/api/status")
    def api_status() -> Response:
        payload = state.snapshot()
        payload["ok"] = True
        return jsonify(payload)

    @flask_app.post("/api/tap")
    def api_tap() -> Response:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return bad_request_response("Expected a JSON object with a lane")
        lane = _parse_lane(payload.get("lane"))
        if lane is None:
            return bad_request_response("lane must be an integer from 0 to 3")
        state.enqueue(ControlIntent(kind=IntentKind.TAP, lane=lane))
        return jsonify({"ok": True})

    @flask_app.post("/api/start")
    def api_start() -> Response:
        state.enqueue(ControlIntent(kind=IntentKind.START))
        return jsonify({"ok": True})

    @flask_app.post("/api/replay")
    def api_replay() -> Response:
        state.enqueue(ControlIntent(kind=IntentKind.REPLAY))
        return jsonify({"ok": True})

    @flask_app.post("/api/menu")
    def api_menu() -> Response:
        state.enqueue(ControlIntent(kind=IntentKind.MENU))
        return jsonify({"ok": True})

    @flask_app.post("/api/difficulty")
    def api_difficulty() -> Response:
        payload = request.get_json(silent=True) or {}
        difficulty_value = str(payload.get("difficulty") or "").strip() if isinstance(payload, dict) else ""
        if not difficulty_value:
            return bad_request_response("difficulty is required")
        state.enqueue(ControlIntent(kind=IntentKind.DIFFICULTY, difficulty=difficulty_value))
        return jsonify({"ok": True})

    # Static files fallback

    @flask_app.get("/<path:requested_path>")
    def route_static_files(requested_path: str) -> Response:
        return serve_file_from_web_root(requested_path)

    return flask_app


def _parse_args() -> WebServerConfig:
    argument_parser = argparse.ArgumentParser(description="TapDance phone controller web server")
    argument_parser.add_argument("--host", default="0.0.0.0", help="Bind host, 0.0.0.0 for LAN access")
    argument_parser.add_argument("--port", type=int, default=5178, help="Bind port")
    argument_parser.add_argument(
        "--web-root",
        default=str(paths.assets_dir()),
        help="Directory containing controller.html",
    )
    argument_parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")
    parsed = argument_parser.parse_args()

    return WebServerConfig(
        host=str(parsed.host),
        port=int(parsed.port),
        web_root_dir=Path(parsed.web_root).resolve(),
        debug=bool(parsed.debug),
    )


def main() -> int:
    config = _parse_args()
    flask_app = create_flask_app(config)
    flask_app.run(host=config.host, port=config.port, debug=config.debug, use_reloader=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
