# -*- coding: utf-8 -*-
########################
# game_controller.py
########################
# Purpose:
# - App-level orchestrator for the desktop process.
# - Owns the SessionStateMachine on a Qt timer backend and routes every intent source into it:
#   keyboard (InputRouter), phone controller (ControlApiBridge) and menu buttons (MainWindow).
# - Publishes a GameSnapshot to the playfield and the web control plane every render tick.
#
# Stable notes:
# - Gameplay objects are touched only on the Qt thread. Phone intents arrive through the
#   bridge's queue and are applied here.
# - The Scheduler ticker advances notes; the render tick only reads snapshots.
#
########################
# Interfaces:
# Public classes:
# - class GameController(PyQt6.QtCore.QObject)
#   - Signals:
#     - snapshotUpdated(object)  GameSnapshot
#     - stateChanged(str)        SessionState label
#   - session -> SessionStateMachine
#   - input_router -> InputRouter
#   - start() -> None
#   - shutdown() -> None
#   - tap_lane(lane: int) -> None
#   - confirm() -> None
#   - back_to_menu() -> None
#   - select_difficulty(value: str) -> None
#   - apply_intent(intent: web_server.ControlIntent) -> None
#   - eventFilter(watched, event) -> bool
#
# Inputs:
# - QKeyEvent stream via eventFilter (delegated to InputRouter)
# - ControlApiBridge.intentReceived
#
# Outputs:
# - snapshotUpdated for PlayfieldWidget, ControlApiBridge.publish_snapshot for /api/status
#
########################

from __future__ import annotations

import logging
import random
from typing import Optional

from PyQt6.QtCore import QEvent, QObject, QTimer, pyqtSignal

import control_api
import gameplay_models
import input_router
import score_store
import session
import task_scope
import web_server
from config import AppConfig


logger = logging.getLogger(__name__)


class GameController(QObject):
    snapshotUpdated = pyqtSignal(object)
    stateChanged = pyqtSignal(str)

    def __init__(
        self,
        *,
        app_config: AppConfig,
        control_bridge: Optional[control_api.ControlApiBridge] = None,
        seed: Optional[int] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._app_config = app_config
        self._control_bridge = control_bridge

        self._backend = task_scope.QtTimerBackend(self)
        self._session = session.SessionStateMachine(
            backend=self._backend,
            score_store_obj=score_store.from_app_config(app_config),
            gameplay_config=app_config.gameplay,
            difficulty_config=app_config.difficulty,
            random_generator=random.Random(seed),
        )
        self._session.add_listener(self._on_session_state)

        self._input_router = input_router.InputRouter(self)
        self._input_router.laneTapped.connect(self.tap_lane)
        self._input_router.confirmRequested.connect(self.confirm)
        self._input_router.menuRequested.connect(self.back_to_menu)
        self._input_router.difficultyRequested.connect(self.select_difficulty)

        if self._control_bridge is not None:
            self._control_bridge.intentReceived.connect(self.apply_intent)

        self._render_timer = QTimer(self)
        self._render_timer.setInterval(int(app_config.gameplay.frame_interval_ms))
        self._render_timer.timeout.connect(self._publish_snapshot)

    @property
    def session(self) -> session.SessionStateMachine:
        return self._session

    @property
    def input_router(self) -> input_router.InputRouter:
        return self._input_router

    def start(self) -> None:
        if self._control_bridge is not None:
            self._control_bridge.start()
        self._render_timer.start()
        self._publish_snapshot()

    def shutdown(self) -> None:
        self._render_timer.stop()
        if self._control_bridge is not None:
            self._control_bridge.stop_polling()
        self._session.shutdown()

    # -----------------
    # Intents
    # -----------------

    def tap_lane(self, lane: int) -> None:
        verdict = self._session.tap(lane)
        if verdict is not None:
            logger.debug("Tap lane %d -> %s", lane, verdict)

    def confirm(self) -> None:
        # Space starts from the menu and replays from the results card.
        if not self._session.start():
            self._session.replay()

    def back_to_menu(self) -> None:
        self._session.to_menu()

    def select_difficulty(self, value: str) -> None:
        if self._session.select_difficulty(value):
            self._publish_snapshot()

    def apply_intent(self, intent: web_server.ControlIntent) -> None:
        applied = web_server.apply_intent(self._session, intent)
        logger.debug("Phone intent %s applied=%s", intent, applied)

    # -----------------
    # Qt plumbing
    # -----------------

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # type: ignore[override]
        event_type = event.type()
        if event_type == QEvent.Type.KeyPress:
            return self._input_router.handle_key_press(event)  # type: ignore[arg-type]
        if event_type == QEvent.Type.KeyRelease:
            return self._input_router.handle_key_release(event)  # type: ignore[arg-type]
        if event_type in (QEvent.Type.WindowDeactivate, QEvent.Type.FocusOut):
            self._input_router.clear_pressed_keys()
        return super().eventFilter(watched, event)

    def _on_session_state(self, new_state: gameplay_models.SessionState) -> None:
        self.stateChanged.emit(new_state.label())
        self._publish_snapshot()

    def _publish_snapshot(self) -> None:
        snapshot = self._session.snapshot()
        if self._control_bridge is not None:
            self._control_bridge.publish_snapshot(snapshot)
        self.snapshotUpdated.emit(snapshot)
