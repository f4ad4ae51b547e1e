# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core gameplay data models for the tap engine.
# - Defines notes, taps, verdicts, lane cues, session state values and the render snapshot.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - No Qt usage. These are plain frozen dataclasses and enums.
# - Lane to symbol binding is fixed; every lane owns exactly one arrow glyph.
#
########################
# Interfaces:
# Public enums:
# - Symbol: LEFT, DOWN, UP, RIGHT
# - LaneCue: NONE, HIT, MISS
# - SessionPhase: LOADING, IDLE, COUNTDOWN, PLAYING, GAME_OVER
#
# Public dataclasses:
# - Note(note_id: int, lane: int, symbol: Symbol, fall_progress: float)
# - TapEvent(lane: int, symbol: Symbol)
# - HitVerdict(note_id: int, lane: int, distance: float)
# - MissVerdict(lane: int, reason: str)
# - SessionState(phase: SessionPhase, countdown: int, time_left_ms: int)
# - Counting(value: int), Announcing(), Done()  (CountdownDisplay variants)
# - ScorePopup(popup_id: int, lane: int, points: int)
# - GameSnapshot(...)
#
# Public functions:
# - symbol_for_lane(lane: int) -> Symbol
# - is_valid_lane(lane: object) -> bool
# - countdown_display_for(state: SessionState) -> CountdownDisplay
#
# Inputs/Outputs:
# - These types are exchanged between NoteField, Scheduler, HitJudge, ComboEngine,
#   SessionStateMachine, the overlay renderer and the web control plane.
#
########################

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple, Union


LANE_COUNT = 4


class Symbol(str, enum.Enum):
    LEFT = "←"
    DOWN = "↓"
    UP = "↑"
    RIGHT = "→"


_LANE_SYMBOLS: Tuple[Symbol, ...] = (Symbol.LEFT, Symbol.DOWN, Symbol.UP, Symbol.RIGHT)


def is_valid_lane(lane: object) -> bool:
    if isinstance(lane, bool) or not isinstance(lane, int):
        return False
    return 0 <= lane < LANE_COUNT


def symbol_for_lane(lane: int) -> Symbol:
    if not is_valid_lane(lane):
        raise ValueError(f"Lane out of range: {lane!r}")
    return _LANE_SYMBOLS[int(lane)]


class LaneCue(str, enum.Enum):
    NONE = "none"
    HIT = "hit"
    MISS = "miss"


class SessionPhase(str, enum.Enum):
    LOADING = "LOADING"
    IDLE = "IDLE"
    COUNTDOWN = "COUNTDOWN"
    PLAYING = "PLAYING"
    GAME_OVER = "GAME_OVER"


@dataclass(frozen=True)
class Note:
    note_id: int
    lane: int
    symbol: Symbol
    fall_progress: float = 0.0


@dataclass(frozen=True)
class TapEvent:
    lane: int
    symbol: Symbol


@dataclass(frozen=True)
class HitVerdict:
    note_id: int
    lane: int
    distance: float

    @property
    def is_hit(self) -> bool:
        return True


@dataclass(frozen=True)
class MissVerdict:
    lane: int
    reason: str = "no_match"

    @property
    def is_hit(self) -> bool:
        return False


Verdict = Union[HitVerdict, MissVerdict]


@dataclass(frozen=True)
class SessionState:
    phase: SessionPhase
    countdown: int = 0
    time_left_ms: int = 0

    @classmethod
    def loading(cls) -> "SessionState":
        return cls(phase=SessionPhase.LOADING)

    @classmethod
    def idle(cls) -> "SessionState":
        return cls(phase=SessionPhase.IDLE)

    @classmethod
    def counting_down(cls, value: int) -> "SessionState":
        return cls(phase=SessionPhase.COUNTDOWN, countdown=int(value))

    @classmethod
    def playing(cls, time_left_ms: int) -> "SessionState":
        return cls(phase=SessionPhase.PLAYING, time_left_ms=int(time_left_ms))

    @classmethod
    def game_over(cls) -> "SessionState":
        return cls(phase=SessionPhase.GAME_OVER)

    def label(self) -> str:
        if self.phase == SessionPhase.COUNTDOWN:
            return f"COUNTDOWN({self.countdown})"
        if self.phase == SessionPhase.PLAYING:
            return f"PLAYING({self.time_left_ms})"
        return self.phase.value


# CountdownDisplay variants. The renderer switches on the variant type instead of
# inspecting a mixed text-or-number field.


@dataclass(frozen=True)
class Counting:
    value: int

    @property
    def text(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Announcing:
    @property
    def text(self) -> str:
        return "DANCE!"


@dataclass(frozen=True)
class Done:
    @property
    def text(self) -> str:
        return ""


CountdownDisplay = Union[Counting, Announcing, Done]


def countdown_display_for(state: SessionState) -> CountdownDisplay:
    if state.phase != SessionPhase.COUNTDOWN:
        return Done()
    if state.countdown > 0:
        return Counting(value=int(state.countdown))
    return Announcing()


@dataclass(frozen=True)
class ScorePopup:
    popup_id: int
    lane: int
    points: int


def _empty_lane_feedback() -> Dict[int, LaneCue]:
    return {lane: LaneCue.NONE for lane in range(LANE_COUNT)}


@dataclass(frozen=True)
class GameSnapshot:
    score: int = 0
    combo: int = 0
    multiplier: int = 1
    time_left_ms: int = 0
    high_score: int = 0
    session_state: SessionState = field(default_factory=SessionState.loading)
    countdown_display: CountdownDisplay = field(default_factory=Done)
    difficulty: str = "medium"
    fall_speed: float = 0.0
    notes: Tuple[Note, ...] = ()
    lane_feedback: Dict[int, LaneCue] = field(default_factory=_empty_lane_feedback)
    dancing: bool = False
    popups: Tuple[ScorePopup, ...] = ()
    high_score_improved: bool = False

    def to_dict(self) -> Dict[str, Any]:
        display = self.countdown_display
        return {
            "score": int(self.score),
            "combo": int(self.combo),
            "multiplier": int(self.multiplier),
            "time_left_ms": int(self.time_left_ms),
            "high_score": int(self.high_score),
            "state": self.session_state.phase.value,
            "state_label": self.session_state.label(),
            "countdown": {"kind": type(display).__name__.lower(), "text": display.text},
            "difficulty": str(self.difficulty),
            "fall_speed": float(self.fall_speed),
            "notes": [
                {
                    "id": int(note.note_id),
                    "lane": int(note.lane),
                    "symbol": note.symbol.value,
                    "fall_progress": float(note.fall_progress),
                }
                for note in self.notes
            ],
            "lane_feedback": {str(lane): cue.value for lane, cue in sorted(self.lane_feedback.items())},
            "dancing": bool(self.dancing),
            "popups": [
                {"id": int(popup.popup_id), "lane": int(popup.lane), "points": int(popup.points)}
                for popup in self.popups
            ],
            "high_score_improved": bool(self.high_score_improved),
        }


def _run_unit_tests() -> None:
    assert symbol_for_lane(0) == Symbol.LEFT
    assert symbol_for_lane(3) == Symbol.RIGHT
    assert not is_valid_lane(4)
    assert not is_valid_lane(-1)
    assert not is_valid_lane(True)

    assert isinstance(countdown_display_for(SessionState.counting_down(2)), Counting)
    assert isinstance(countdown_display_for(SessionState.counting_down(0)), Announcing)
    assert isinstance(countdown_display_for(SessionState.playing(1000)), Done)

    payload = GameSnapshot().to_dict()
    assert payload["state"] == "LOADING"
    assert payload["lane_feedback"] == {"0": "none", "1": "none", "2": "none", "3": "none"}


if __name__ == "__main__":
    _run_unit_tests()
    print("gameplay_models.py: ok")
