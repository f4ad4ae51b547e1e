# -*- coding: utf-8 -*-
########################
# combo_engine.py
########################
# Purpose:
# - Scoring engine: combo, multiplier, score, high score and fall speed.
# - Pure reducers (apply_hit, apply_miss) over an immutable ComboState.
# - ComboEngine routes verdicts into the reducers and keeps short-lived visual cues
#   (lane hit/miss flashes, dancing flag, +points popups).
#
# Design notes:
# - Multiplier and fall speed are step functions of the new combo only; nothing else writes them.
# - Fall speed is capped per step; the top cap is 2x base, so the ceiling holds for any input.
# - Cues carry no scoring authority. Their auto-clear timers live on the caller's TaskScope,
#   so leaving Playing cancels them with everything else.
#
########################
# Interfaces:
# Public dataclasses:
# - ComboState(combo: int, multiplier: int, score: int, high_score: int, fall_speed: float, base_fall_speed: float)
#
# Public functions:
# - initial_state(*, base_fall_speed: float, high_score: int = 0) -> ComboState
# - multiplier_for_combo(combo: int) -> int
# - apply_hit(state: ComboState) -> ComboState
# - apply_miss(state: ComboState) -> ComboState
# - reset_for_session(state: ComboState) -> ComboState
# - commit_high_score(state: ComboState) -> tuple[ComboState, bool]
#
# Public classes:
# - class ComboEngine
#   - state -> ComboState
#   - on_verdict(verdict: Verdict, scope: TaskScope) -> ComboState
#   - reset_for_session() -> None
#   - commit_high_score() -> bool
#   - lane_feedback() -> dict[int, LaneCue]
#   - dancing -> bool
#   - popups() -> tuple[ScorePopup, ...]
#   - clear_cues() -> None
#
########################

from __future__ import annotations

import dataclasses
import itertools
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import gameplay_models
import task_scope


logger = logging.getLogger(__name__)

POINTS_PER_HIT = 10

# (minimum combo, multiplier, fall speed factor, fall speed cap as a multiple of base)
# Checked high to low, first match wins.
_COMBO_STEPS: Tuple[Tuple[int, int, float, float], ...] = (
    (20, 4, 1.10, 2.0),
    (10, 3, 1.05, 1.5),
    (5, 2, 1.02, 1.2),
)


@dataclass(frozen=True)
class ComboState:
    combo: int = 0
    multiplier: int = 1
    score: int = 0
    high_score: int = 0
    fall_speed: float = 1.5
    base_fall_speed: float = 1.5

    @property
    def fall_speed_ceiling(self) -> float:
        return 2.0 * float(self.base_fall_speed)


def initial_state(*, base_fall_speed: float, high_score: int = 0) -> ComboState:
    base = float(base_fall_speed)
    if base <= 0.0:
        raise ValueError("base_fall_speed must be positive")
    return ComboState(
        combo=0,
        multiplier=1,
        score=0,
        high_score=max(0, int(high_score)),
        fall_speed=base,
        base_fall_speed=base,
    )


def multiplier_for_combo(combo: int) -> int:
    for minimum_combo, multiplier, _factor, _cap in _COMBO_STEPS:
        if int(combo) >= minimum_combo:
            return multiplier
    return 1


def apply_hit(state: ComboState) -> ComboState:
    combo = int(state.combo) + 1
    base = float(state.base_fall_speed)

    multiplier = 1
    fall_speed = float(state.fall_speed)
    for minimum_combo, step_multiplier, factor, cap in _COMBO_STEPS:
        if combo >= minimum_combo:
            multiplier = step_multiplier
            fall_speed = min(fall_speed * factor, cap * base)
            break

    return dataclasses.replace(
        state,
        combo=combo,
        multiplier=multiplier,
        score=int(state.score) + POINTS_PER_HIT * multiplier,
        fall_speed=fall_speed,
    )


def apply_miss(state: ComboState) -> ComboState:
    return dataclasses.replace(
        state,
        combo=0,
        multiplier=1,
        fall_speed=float(state.base_fall_speed),
    )


def reset_for_session(state: ComboState) -> ComboState:
    return dataclasses.replace(
        state,
        combo=0,
        multiplier=1,
        score=0,
        fall_speed=float(state.base_fall_speed),
    )


def commit_high_score(state: ComboState) -> Tuple[ComboState, bool]:
    if int(state.score) > int(state.high_score):
        return dataclasses.replace(state, high_score=int(state.score)), True
    return state, False


class ComboEngine:
    def __init__(
        self,
        *,
        base_fall_speed: float,
        high_score: int = 0,
        feedback_cue_ms: int = 300,
        dance_cue_ms: int = 3000,
        score_popup_ms: int = 1000,
    ) -> None:
        self._state = initial_state(base_fall_speed=base_fall_speed, high_score=high_score)
        self._feedback_cue_ms = int(feedback_cue_ms)
        self._dance_cue_ms = int(dance_cue_ms)
        self._score_popup_ms = int(score_popup_ms)

        self._lane_feedback: Dict[int, gameplay_models.LaneCue] = {
            lane: gameplay_models.LaneCue.NONE for lane in range(gameplay_models.LANE_COUNT)
        }
        self._lane_tokens: Dict[int, task_scope.CancellationToken] = {}
        self._dancing = False
        self._dance_token: Optional[task_scope.CancellationToken] = None
        self._popups: List[gameplay_models.ScorePopup] = []
        self._popup_ids = itertools.count(1)

    @property
    def state(self) -> ComboState:
        return self._state

    @property
    def dancing(self) -> bool:
        return self._dancing

    def lane_feedback(self) -> Dict[int, gameplay_models.LaneCue]:
        return dict(self._lane_feedback)

    def popups(self) -> Tuple[gameplay_models.ScorePopup, ...]:
        return tuple(self._popups)

    def reset_for_session(self) -> None:
        self._state = reset_for_session(self._state)
        self.clear_cues()

    def commit_high_score(self) -> bool:
        self._state, improved = commit_high_score(self._state)
        return improved

    def on_verdict(self, verdict: gameplay_models.Verdict, scope: task_scope.TaskScope) -> ComboState:
        lane = int(verdict.lane)
        if isinstance(verdict, gameplay_models.HitVerdict):
            previous_score = self._state.score
            self._state = apply_hit(self._state)
            self._set_lane_cue(lane, gameplay_models.LaneCue.HIT, scope)
            self._start_dancing(scope)
            self._add_popup(lane, self._state.score - previous_score, scope)
        else:
            self._state = apply_miss(self._state)
            self._set_lane_cue(lane, gameplay_models.LaneCue.MISS, scope)

        logger.debug(
            "Verdict %s -> combo=%d multiplier=%d score=%d fall_speed=%.3f",
            verdict,
            self._state.combo,
            self._state.multiplier,
            self._state.score,
            self._state.fall_speed,
        )
        return self._state

    def clear_cues(self) -> None:
        for token in self._lane_tokens.values():
            token.cancel()
        self._lane_tokens.clear()
        for lane in self._lane_feedback:
            self._lane_feedback[lane] = gameplay_models.LaneCue.NONE

        if self._dance_token is not None:
            self._dance_token.cancel()
            self._dance_token = None
        self._dancing = False
        self._popups.clear()

    # -----------------
    # Cue helpers
    # -----------------

    def _set_lane_cue(self, lane: int, cue: gameplay_models.LaneCue, scope: task_scope.TaskScope) -> None:
        previous_token = self._lane_tokens.pop(lane, None)
        if previous_token is not None:
            scope.cancel(previous_token)
        self._lane_feedback[lane] = cue

        def clear_cue() -> None:
            self._lane_feedback[lane] = gameplay_models.LaneCue.NONE
            self._lane_tokens.pop(lane, None)

        self._lane_tokens[lane] = scope.later(self._feedback_cue_ms, clear_cue, name=f"lane{lane}_cue")

    def _start_dancing(self, scope: task_scope.TaskScope) -> None:
        if self._dance_token is not None:
            scope.cancel(self._dance_token)
        self._dancing = True

        def stop_dancing() -> None:
            self._dancing = False
            self._dance_token = None

        self._dance_token = scope.later(self._dance_cue_ms, stop_dancing, name="dance")

    def _add_popup(self, lane: int, points: int, scope: task_scope.TaskScope) -> None:
        popup = gameplay_models.ScorePopup(popup_id=next(self._popup_ids), lane=lane, points=int(points))
        self._popups.append(popup)

        def expire_popup() -> None:
            self._popups = [item for item in self._popups if item.popup_id != popup.popup_id]

        scope.later(self._score_popup_ms, expire_popup, name=f"popup{popup.popup_id}")


def _run_unit_tests() -> None:
    state = initial_state(base_fall_speed=1.5)
    for _ in range(6):
        state = apply_hit(state)
    assert state.combo == 6
    assert state.multiplier == 2
    assert state.score == 80

    state = apply_miss(state)
    assert (state.combo, state.multiplier, state.fall_speed, state.score) == (0, 1, 1.5, 80)

    for _ in range(200):
        state = apply_hit(state)
    assert state.fall_speed <= state.fall_speed_ceiling

    committed, improved = commit_high_score(dataclasses.replace(state, score=340, high_score=300))
    assert improved and committed.high_score == 340


if __name__ == "__main__":
    _run_unit_tests()
    print("combo_engine.py: ok")
