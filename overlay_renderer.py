# -*- coding: utf-8 -*-
########################
# overlay_renderer.py
########################
# Purpose:
# - Playfield Qt widget.
# - Paints one GameSnapshot: lanes, falling arrows, the judgement line, lane cues, HUD,
#   countdown text, score popups and the idle / game over cards.
#
########################
# Key Logic:
# - The widget never reads gameplay objects. It only holds the last GameSnapshot it was given.
# - Vertical placement is linear in fall_progress:
#   - progress 0 sits at the top of the playfield
#   - progress == line_distance sits on the judgement line
#   - notes past the line keep falling until they despawn
# - Lane cues tint the receptor under each lane (green on Hit, red on Miss).
# - The countdown draws Counting values and the "DANCE!" announcement from the display variant.
#
########################
# Interfaces:
# Public dataclasses:
# - PlayfieldConfig(line_distance: float, top_margin_pixels: float, line_offset_pixels: float, ...)
#
# Public classes:
# - class PlayfieldWidget(PyQt6.QtWidgets.QWidget)
#   - set_snapshot(snapshot: gameplay_models.GameSnapshot) -> None
#   - snapshot() -> gameplay_models.GameSnapshot
#   - note_y_for_progress(fall_progress: float) -> float
#
# Inputs:
# - GameSnapshot values pushed by GameController.snapshotUpdated.
#
# Outputs:
# - Painted playfield visuals on the widget surface.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QFont, QPainter, QPen
from PyQt6.QtWidgets import QWidget

import gameplay_models


@dataclass(frozen=True)
class PlayfieldConfig:
    line_distance: float = 500.0
    top_margin_pixels: float = 70.0
    line_offset_pixels: float = 110.0
    lane_width_pixels: float = 90.0
    note_font_pixels: int = 40
    receptor_size_pixels: float = 64.0


_LANE_COLORS = (
    QColor(235, 90, 160),
    QColor(80, 170, 250),
    QColor(90, 220, 120),
    QColor(250, 190, 60),
)

_CUE_COLORS = {
    gameplay_models.LaneCue.HIT: QColor(90, 235, 120),
    gameplay_models.LaneCue.MISS: QColor(240, 70, 70),
}


class PlayfieldWidget(QWidget):
    def __init__(self, *, config: Optional[PlayfieldConfig] = None, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._config = config or PlayfieldConfig()
        self._snapshot = gameplay_models.GameSnapshot()
        self.setMinimumSize(480, 640)
        self.setFocusPolicy(Qt.FocusPolicy.NoFocus)

    def set_snapshot(self, snapshot: gameplay_models.GameSnapshot) -> None:
        self._snapshot = snapshot
        self.update()

    def snapshot(self) -> gameplay_models.GameSnapshot:
        return self._snapshot

    # -----------------
    # Geometry
    # -----------------

    def _line_y(self) -> float:
        return float(self.height()) - float(self._config.line_offset_pixels)

    def note_y_for_progress(self, fall_progress: float) -> float:
        top = float(self._config.top_margin_pixels)
        span = self._line_y() - top
        line_distance = max(1.0, float(self._config.line_distance))
        return top + (float(fall_progress) / line_distance) * span

    def _lane_centers_x(self) -> List[float]:
        lane_width = float(self._config.lane_width_pixels)
        total_width = lane_width * gameplay_models.LANE_COUNT
        left = (float(self.width()) - total_width) / 2.0
        return [left + lane_width * (lane + 0.5) for lane in range(gameplay_models.LANE_COUNT)]

    # -----------------
    # Painting
    # -----------------

    def paintEvent(self, event) -> None:  # type: ignore[override]
        snapshot = self._snapshot
        lane_centers = self._lane_centers_x()

        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.fillRect(self.rect(), QBrush(QColor(12, 10, 20)))

        self._paint_lanes(painter, lane_centers, snapshot)
        self._paint_notes(painter, lane_centers, snapshot)
        self._paint_popups(painter, lane_centers, snapshot)
        self._paint_hud(painter, snapshot)
        self._paint_phase_card(painter, snapshot)

        painter.end()

    def _paint_lanes(self, painter: QPainter, lane_centers: List[float], snapshot: gameplay_models.GameSnapshot) -> None:
        config = self._config
        line_y = self._line_y()
        half_lane = float(config.lane_width_pixels) / 2.0

        painter.save()
        painter.setPen(QPen(QColor(40, 36, 60), 1.0))
        for center_x in lane_centers:
            painter.drawLine(QPointF(center_x - half_lane, 0.0), QPointF(center_x - half_lane, float(self.height())))
        painter.drawLine(
            QPointF(lane_centers[-1] + half_lane, 0.0),
            QPointF(lane_centers[-1] + half_lane, float(self.height())),
        )

        painter.setPen(QPen(QColor(230, 230, 240), 3.0))
        painter.drawLine(QPointF(lane_centers[0] - half_lane, line_y), QPointF(lane_centers[-1] + half_lane, line_y))
        painter.restore()

        receptor_radius = float(config.receptor_size_pixels) * 0.5
        for lane, center_x in enumerate(lane_centers):
            cue = snapshot.lane_feedback.get(lane, gameplay_models.LaneCue.NONE)
            painter.save()
            painter.setBrush(Qt.BrushStyle.NoBrush)
            if cue in _CUE_COLORS:
                painter.setBrush(QBrush(_CUE_COLORS[cue].darker(180)))
                painter.setPen(QPen(_CUE_COLORS[cue], 4.0))
            else:
                painter.setPen(QPen(QColor(120, 120, 140), 2.0))
            painter.drawEllipse(QPointF(center_x, line_y), receptor_radius, receptor_radius)

            painter.setPen(QPen(QColor(150, 150, 170)))
            painter.setFont(QFont("Arial", int(self._config.note_font_pixels * 0.6)))
            painter.drawText(
                QRectF(center_x - receptor_radius, line_y - receptor_radius, receptor_radius * 2, receptor_radius * 2),
                int(Qt.AlignmentFlag.AlignCenter),
                gameplay_models.symbol_for_lane(lane).value,
            )
            painter.restore()

    def _paint_notes(self, painter: QPainter, lane_centers: List[float], snapshot: gameplay_models.GameSnapshot) -> None:
        font_pixels = int(self._config.note_font_pixels)
        painter.save()
        painter.setFont(QFont("Arial", font_pixels, weight=QFont.Weight.Bold))
        for note in snapshot.notes:
            if not gameplay_models.is_valid_lane(note.lane):
                continue
            center_x = lane_centers[note.lane]
            center_y = self.note_y_for_progress(note.fall_progress)
            if center_y > float(self.height()) + font_pixels:
                continue
            painter.setPen(QPen(_LANE_COLORS[note.lane]))
            painter.drawText(
                QRectF(center_x - font_pixels, center_y - font_pixels, font_pixels * 2.0, font_pixels * 2.0),
                int(Qt.AlignmentFlag.AlignCenter),
                note.symbol.value,
            )
        painter.restore()

    def _paint_popups(self, painter: QPainter, lane_centers: List[float], snapshot: gameplay_models.GameSnapshot) -> None:
        if not snapshot.popups:
            return
        line_y = self._line_y()
        painter.save()
        painter.setPen(QPen(QColor(255, 230, 120)))
        painter.setFont(QFont("Arial", 16, weight=QFont.Weight.Bold))
        for popup in snapshot.popups:
            if not gameplay_models.is_valid_lane(popup.lane):
                continue
            center_x = lane_centers[popup.lane]
            painter.drawText(
                QRectF(center_x - 50.0, line_y - 90.0, 100.0, 24.0),
                int(Qt.AlignmentFlag.AlignHCenter),
                f"+{popup.points}",
            )
        painter.restore()

    def _paint_hud(self, painter: QPainter, snapshot: gameplay_models.GameSnapshot) -> None:
        width = float(self.width())
        seconds_left = int(snapshot.time_left_ms) // 1000

        painter.save()
        painter.setPen(QPen(QColor(240, 240, 240)))
        painter.setFont(QFont("Arial", 14, weight=QFont.Weight.Bold))
        painter.drawText(
            QRectF(12.0, 10.0, width - 24.0, 24.0),
            int(Qt.AlignmentFlag.AlignLeft),
            f"Score {snapshot.score}   Combo {snapshot.combo}   x{snapshot.multiplier}",
        )
        painter.drawText(
            QRectF(12.0, 10.0, width - 24.0, 24.0),
            int(Qt.AlignmentFlag.AlignRight),
            f"Time {seconds_left}s",
        )
        painter.setFont(QFont("Arial", 11))
        painter.setPen(QPen(QColor(170, 170, 190)))
        painter.drawText(
            QRectF(12.0, 36.0, width - 24.0, 20.0),
            int(Qt.AlignmentFlag.AlignLeft),
            f"Best {snapshot.high_score}   {snapshot.difficulty.upper()}   speed {snapshot.fall_speed:.2f}",
        )
        if snapshot.dancing:
            painter.setPen(QPen(QColor(255, 120, 220)))
            painter.drawText(QRectF(12.0, 36.0, width - 24.0, 20.0), int(Qt.AlignmentFlag.AlignRight), "♪ dancing ♪")
        painter.restore()

    def _paint_phase_card(self, painter: QPainter, snapshot: gameplay_models.GameSnapshot) -> None:
        phase = snapshot.session_state.phase
        lines: List[str] = []
        if phase == gameplay_models.SessionPhase.LOADING:
            lines = ["Loading..."]
        elif phase == gameplay_models.SessionPhase.IDLE:
            lines = ["TAP DANCE", "Press Space to start", "1 / 2 / 3 to pick difficulty"]
        elif phase == gameplay_models.SessionPhase.COUNTDOWN:
            lines = [snapshot.countdown_display.text]
        elif phase == gameplay_models.SessionPhase.GAME_OVER:
            lines = ["GAME OVER", f"Score {snapshot.score}"]
            if snapshot.high_score_improved:
                lines.append("New high score!")
            lines.append("Space to replay, Esc for menu")

        lines = [line for line in lines if line]
        if not lines:
            return

        painter.save()
        painter.fillRect(self.rect(), QBrush(QColor(0, 0, 0, 140)))
        painter.setPen(QPen(QColor(250, 250, 250)))
        top = float(self.height()) * 0.35
        for index, line in enumerate(lines):
            point_size = 40 if index == 0 else 16
            painter.setFont(QFont("Arial", point_size, weight=QFont.Weight.Bold if index == 0 else QFont.Weight.Normal))
            painter.drawText(
                QRectF(0.0, top, float(self.width()), point_size * 2.0),
                int(Qt.AlignmentFlag.AlignHCenter),
                line,
            )
            top += point_size * 2.0
        painter.restore()
