# -*- coding: utf-8 -*-
########################
# main_window.py
########################
# Purpose:
# - Primary Qt window and UI host.
# - Hosts the playfield, the phone controller QR card and the onscreen menu controls.
#
# Design notes:
# - MainWindow never decides gameplay. Keys go through GameController's event filter and
#   buttons are re-emitted as intents for GameController.
# - The QR card is only visible while the session sits in IDLE or GAME_OVER.
#
########################
# Interfaces:
# Public classes:
# - class MainWindow(PyQt6.QtWidgets.QMainWindow)
#   - playfield -> PlayfieldWidget
#   - menu_controls -> MenuControlsWidget
#   - set_idle_qr(qimage: QImage, url_text: str) -> None
#   - set_idle_status_text(text: str) -> None
#   - apply_snapshot(snapshot: GameSnapshot) -> None
#   - on_action_fullscreen_toggle() -> None
#
# Inputs:
# - GameSnapshot from GameController.snapshotUpdated.
#
# Outputs:
# - Widgets; menu control signals wired by tapdance.py.
#
########################
# Unit Tests:
# - Keep as manual UI smoke:
#   - python tapdance.py
########################

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QImage, QKeySequence, QPixmap
from PyQt6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QVBoxLayout,
    QWidget,
)

import gameplay_models
import menu_controls
import overlay_renderer


IDLE_QR_BOX_SIZE_PX = 220

THEME_BACKGROUND = "#050313"
THEME_OFFWHITE = "#F3F0FC"
THEME_CYAN = "#ACE4FC"
THEME_PINK = "#F48CE4"


class MainWindow(QMainWindow):
    def __init__(
        self,
        *,
        playfield_config: Optional[overlay_renderer.PlayfieldConfig] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("TapDance")
        self.setStyleSheet(f"QMainWindow {{ background: {THEME_BACKGROUND}; }}")

        central_widget = QWidget(self)
        root_layout = QHBoxLayout(central_widget)
        root_layout.setContentsMargins(12, 12, 12, 12)
        root_layout.setSpacing(12)

        self._playfield = overlay_renderer.PlayfieldWidget(config=playfield_config, parent=central_widget)

        side_panel = QWidget(central_widget)
        side_layout = QVBoxLayout(side_panel)
        side_layout.setContentsMargins(0, 0, 0, 0)
        side_layout.setSpacing(12)

        self._idle_qr_card, self._idle_qr_label, self._idle_url_hint_label = self._build_idle_qr_card(side_panel)
        self._menu_controls = menu_controls.MenuControlsWidget(parent=side_panel)

        side_layout.addWidget(self._idle_qr_card)
        side_layout.addStretch(1)
        side_layout.addWidget(self._menu_controls)

        root_layout.addWidget(self._playfield, 1)
        root_layout.addWidget(side_panel, 0)
        self.setCentralWidget(central_widget)

        fullscreen_action = QAction("Full Screen", self)
        fullscreen_action.setShortcut(QKeySequence("F11"))
        fullscreen_action.triggered.connect(self.on_action_fullscreen_toggle)
        self.addAction(fullscreen_action)

        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

    @property
    def playfield(self) -> overlay_renderer.PlayfieldWidget:
        return self._playfield

    @property
    def menu_controls(self) -> menu_controls.MenuControlsWidget:
        return self._menu_controls

    def set_idle_qr(self, image: QImage, url_text: str) -> None:
        pixmap = QPixmap.fromImage(image).scaled(
            IDLE_QR_BOX_SIZE_PX - 12,
            IDLE_QR_BOX_SIZE_PX - 12,
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        )
        self._idle_qr_label.setPixmap(pixmap)
        self._idle_url_hint_label.setText(str(url_text or "").strip())

    def set_idle_status_text(self, text: str) -> None:
        self._idle_qr_label.setText(str(text or "").strip())

    def apply_snapshot(self, snapshot: gameplay_models.GameSnapshot) -> None:
        self._playfield.set_snapshot(snapshot)
        self._menu_controls.apply_snapshot(snapshot)
        phase = snapshot.session_state.phase
        self._idle_qr_card.setVisible(
            phase in (gameplay_models.SessionPhase.IDLE, gameplay_models.SessionPhase.GAME_OVER)
        )

    def on_action_fullscreen_toggle(self) -> None:
        if self.isFullScreen():
            self.showNormal()
        else:
            self.showFullScreen()

    def _build_idle_qr_card(self, parent: QWidget):
        qr_card = QFrame(parent)
        qr_card.setObjectName("idleQrCard")
        qr_card.setStyleSheet(
            "QFrame#idleQrCard {"
            "  background: qlineargradient(x1:0, y1:0, x2:1, y2:1,"
            "    stop:0 rgba(5, 3, 19, 235),"
            "    stop:1 rgba(95, 66, 171, 80)"
            "  );"
            "  border: 2px solid rgba(172, 228, 252, 150);"
            "  border-radius: 18px;"
            "}"
        )

        qr_card_layout = QVBoxLayout(qr_card)
        qr_card_layout.setContentsMargins(18, 18, 18, 16)
        qr_card_layout.setSpacing(10)

        title_label = QLabel("Scan to tap from your phone", qr_card)
        title_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title_label.setStyleSheet(f"color: {THEME_CYAN}; font-size: 16px; font-weight: 700;")

        qr_label = QLabel(qr_card)
        qr_label.setFixedSize(IDLE_QR_BOX_SIZE_PX, IDLE_QR_BOX_SIZE_PX)
        qr_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        qr_label.setWordWrap(True)
        qr_label.setStyleSheet(
            f"background: {THEME_OFFWHITE};"
            f"color: {THEME_BACKGROUND};"
            "border: 2px solid rgba(244, 140, 228, 160);"
            "border-radius: 12px;"
        )
        qr_label.setText("QR pending")

        url_hint_label = QLabel("", qr_card)
        url_hint_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        url_hint_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        url_hint_label.setStyleSheet(f"color: {THEME_OFFWHITE}; font-size: 12px;")

        footer_label = QLabel("Local network only", qr_card)
        footer_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        footer_label.setStyleSheet(f"color: {THEME_PINK}; font-size: 12px; font-weight: 600;")

        qr_card_layout.addWidget(title_label)
        qr_card_layout.addWidget(qr_label, 0, Qt.AlignmentFlag.AlignCenter)
        qr_card_layout.addWidget(url_hint_label)
        qr_card_layout.addWidget(footer_label)
        return qr_card, qr_label, url_hint_label
