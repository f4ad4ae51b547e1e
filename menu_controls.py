"""\
menu_controls.py

Onscreen session controls for the desktop window.

Mirrors the keyboard menu keys (Space, Escape, 1/2/3) as buttons for mouse users.
Buttons never take keyboard focus so Space and the arrow keys keep reaching the game.
"""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import (
    QComboBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

import difficulty
import gameplay_models


class MenuControlsWidget(QFrame):
    requestStart = pyqtSignal()
    requestReplay = pyqtSignal()
    requestMenu = pyqtSignal()
    requestDifficultyChanged = pyqtSignal(str)

    def __init__(self, *, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self.setObjectName("menuControls")
        self.setStyleSheet(
            "QFrame#menuControls {"
            "  background: rgba(5, 3, 19, 210);"
            "  border: 2px solid rgba(172, 228, 252, 120);"
            "  border-radius: 14px;"
            "}"
        )

        self._difficulty_combo = QComboBox(self)
        self._difficulty_combo.addItems([tier.value for tier in difficulty.DifficultyTier])
        self._difficulty_combo.setCurrentText(difficulty.DEFAULT_TIER.value)

        self._button_start = QPushButton("Start", self)
        self._button_replay = QPushButton("Replay", self)
        self._button_menu = QPushButton("Menu", self)

        for widget in (self._difficulty_combo, self._button_start, self._button_replay, self._button_menu):
            widget.setFocusPolicy(Qt.FocusPolicy.NoFocus)

        self._status_label = QLabel("", self)
        self._status_label.setWordWrap(True)
        self._status_label.setStyleSheet("color: rgba(243, 240, 252, 230);")

        root_layout = QVBoxLayout(self)
        root_layout.setContentsMargins(12, 10, 12, 10)
        root_layout.setSpacing(8)

        row = QHBoxLayout()
        row.setSpacing(8)
        row.addWidget(QLabel("Difficulty", self))
        row.addWidget(self._difficulty_combo)
        row.addStretch(1)
        row.addWidget(self._button_start)
        row.addWidget(self._button_replay)
        row.addWidget(self._button_menu)

        root_layout.addLayout(row)
        root_layout.addWidget(self._status_label)

        self._button_start.clicked.connect(self.requestStart.emit)
        self._button_replay.clicked.connect(self.requestReplay.emit)
        self._button_menu.clicked.connect(self.requestMenu.emit)
        self._difficulty_combo.currentTextChanged.connect(self.requestDifficultyChanged.emit)

        self.apply_snapshot(gameplay_models.GameSnapshot())

    def apply_snapshot(self, snapshot: gameplay_models.GameSnapshot) -> None:
        """Enable only the buttons the current phase accepts."""
        phase = snapshot.session_state.phase
        self._button_start.setEnabled(phase == gameplay_models.SessionPhase.IDLE)
        self._button_replay.setEnabled(phase == gameplay_models.SessionPhase.GAME_OVER)
        self._button_menu.setEnabled(phase == gameplay_models.SessionPhase.GAME_OVER)
        self._difficulty_combo.setEnabled(
            phase in (gameplay_models.SessionPhase.IDLE, gameplay_models.SessionPhase.GAME_OVER)
        )

        if self._difficulty_combo.currentText() != snapshot.difficulty:
            self._difficulty_combo.blockSignals(True)
            self._difficulty_combo.setCurrentText(snapshot.difficulty)
            self._difficulty_combo.blockSignals(False)

        self._status_label.setText(f"{snapshot.session_state.label()}  |  best {snapshot.high_score}")
