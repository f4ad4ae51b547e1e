"""
control_api.py

Qt-first phone controller integration for TapDance.

Purpose
- Own the embedded Flask web server (web_server.py) inside the Qt process.
- Move queued phone intents from the server thread onto the Qt thread.
- Publish the latest GameSnapshot so /api/status answers without touching gameplay objects.

How it works
- Starts the Flask development server in a daemon thread so phones or tablets can tap lanes.
- A QTimer drains web_server.ControlState on the Qt thread and emits intentReceived for each intent.
- GameController calls publish_snapshot() after every frame it renders.

Public API
- ControlApiBridge
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

import gameplay_models
import web_server


logger = logging.getLogger(__name__)


class ControlApiBridge(QObject):
    """Qt bridge that owns the web server and re-emits phone intents on the Qt thread.

    Signals are emitted on the Qt thread. The Flask server runs in a background thread.
    """

    intentReceived = pyqtSignal(object)

    def __init__(
        self,
        *,
        bind_host: str,
        bind_port: int,
        web_root_dir: Path,
        debug: bool = False,
        poll_interval_ms: int = 20,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)

        self._bind_host = str(bind_host)
        self._bind_port = int(bind_port)
        self._debug = bool(debug)

        self._control_state = web_server.ControlState()
        self._flask_application = web_server.create_flask_app(
            web_server.WebServerConfig(
                host=self._bind_host,
                port=self._bind_port,
                web_root_dir=Path(web_root_dir),
                debug=self._debug,
            ),
            self._control_state,
        )

        self._server_thread: Optional[threading.Thread] = None

        self._poll_timer = QTimer(self)
        self._poll_timer.setInterval(int(max(5, poll_interval_ms)))
        self._poll_timer.timeout.connect(self.drain_once)

    @property
    def flask_application(self):
        return self._flask_application

    @property
    def control_state(self) -> web_server.ControlState:
        return self._control_state

    def start(self) -> None:
        self.start_server()
        self.start_polling()

    def start_server(self) -> None:
        if self._server_thread is not None:
            return

        def run_server() -> None:
            try:
                self._flask_application.run(
                    host=self._bind_host,
                    port=self._bind_port,
                    debug=self._debug,
                    use_reloader=False,
                    threaded=True,
                )
            except OSError:
                logger.exception("Phone controller server failed on %s:%d", self._bind_host, self._bind_port)

        self._server_thread = threading.Thread(
            target=run_server,
            name="tapdance-web-server",
            daemon=True,
        )
        self._server_thread.start()
        logger.info("Phone controller listening on http://%s:%d/", self._bind_host, self._bind_port)

    def start_polling(self) -> None:
        if self._poll_timer.isActive():
            return
        self._poll_timer.start()

    def stop_polling(self) -> None:
        if self._poll_timer.isActive():
            self._poll_timer.stop()

    def publish_snapshot(self, snapshot: gameplay_models.GameSnapshot) -> None:
        self._control_state.publish_snapshot(snapshot.to_dict())

    def drain_once(self) -> int:
        intents = self._control_state.drain_intents()
        for intent in intents:
            self.intentReceived.emit(intent)
        return len(intents)
