# -*- coding: utf-8 -*-
########################
# session.py
########################
# Purpose:
# - Top-level session state machine: LOADING, IDLE, COUNTDOWN(n), PLAYING(time_left_ms), GAME_OVER.
# - Owns the gameplay pipeline (NoteField, Scheduler, HitJudge, ComboEngine) and the ScoreStore write.
# - Produces the read-only GameSnapshot consumed by renderers and the web control plane.
#
# Stable notes:
# - Exactly one phase is active. Every timer is armed on the TaskScope of the phase that
#   owns it, and a phase change cancels the outgoing scope before the incoming phase arms anything.
# - Taps and the Scheduler are live only in PLAYING.
# - The high score is written at most once per session, on PLAYING -> GAME_OVER, and only if improved.
#
########################
# Design notes:
# - Transitions:
#   - LOADING -> IDLE after loading_delay_ms, or earlier on assets_ready()
#   - IDLE -> COUNTDOWN(start) on start()
#   - COUNTDOWN(n) -> COUNTDOWN(n-1) every countdown_step_ms; COUNTDOWN(0) -> PLAYING(play_duration_ms)
#   - PLAYING(t) -> PLAYING(t-1000) every second; reaching 0 -> GAME_OVER
#   - GAME_OVER -> COUNTDOWN(start) on replay(), GAME_OVER -> IDLE on to_menu()
# - Countdown and play-time decrements stay inside their phase's scope; they replace the
#   SessionState value without re-arming anything.
# - Entering PLAYING resets combo, score, fall speed and clears the NoteField.
#
########################
# Interfaces:
# Public classes:
# - class SessionStateMachine
#   - __init__(*, backend: TimerBackend, score_store: ScoreStore, gameplay_config=None,
#              difficulty_config=None, tier=None, random_generator=None)
#   - state -> SessionState, tier -> DifficultyTier, combo_state -> ComboState
#   - note_field -> NoteField, scheduler -> Scheduler
#   - add_listener(callback: Callable[[SessionState], None]) -> None
#   - assets_ready() -> bool
#   - start() -> bool, replay() -> bool, to_menu() -> bool
#   - select_difficulty(value: object) -> bool
#   - tap(lane: object, symbol: Optional[Symbol] = None) -> Optional[Verdict]
#   - on_frame(delta_ms: float) -> None
#   - snapshot() -> GameSnapshot
#   - shutdown() -> None
#
# Inputs:
# - Timer callbacks from the backend, taps and menu intents from collaborators.
#
# Outputs:
# - GameSnapshot, SessionState listener notifications, ScoreStore.save on improvement.
#
########################

from __future__ import annotations

import logging
import random
from typing import Callable, List, Optional

import combo_engine
import difficulty
import gameplay_models
import judge
import note_field
import note_scheduler
import score_store
import task_scope
from config import DifficultyConfig, GameplayConfig


logger = logging.getLogger(__name__)

PLAY_TIMER_STEP_MS = 1000

StateListener = Callable[[gameplay_models.SessionState], None]


class SessionStateMachine:
    def __init__(
        self,
        *,
        backend: task_scope.TimerBackend,
        score_store_obj: score_store.ScoreStore,
        gameplay_config: Optional[GameplayConfig] = None,
        difficulty_config: Optional[DifficultyConfig] = None,
        tier: Optional[difficulty.DifficultyTier] = None,
        random_generator: Optional[random.Random] = None,
    ) -> None:
        self._backend = backend
        self._score_store = score_store_obj
        self._gameplay = gameplay_config if gameplay_config is not None else GameplayConfig()
        difficulty_settings = difficulty_config if difficulty_config is not None else DifficultyConfig()
        initial_tier = tier if tier is not None else difficulty.parse_tier(difficulty_settings.default_tier)

        self._note_field = note_field.NoteField(
            line_distance=self._gameplay.line_distance,
            overrun_margin=self._gameplay.overrun_margin,
        )
        self._combo = combo_engine.ComboEngine(
            base_fall_speed=self._gameplay.base_fall_speed,
            high_score=self._load_high_score(),
            feedback_cue_ms=self._gameplay.feedback_cue_ms,
            dance_cue_ms=self._gameplay.dance_cue_ms,
            score_popup_ms=self._gameplay.score_popup_ms,
        )
        self._judge = judge.HitJudge(hit_window=self._gameplay.hit_window)
        self._scheduler = note_scheduler.Scheduler(
            note_field_obj=self._note_field,
            fall_speed_provider=lambda: self._combo.state.fall_speed,
            base_fall_speed=self._gameplay.base_fall_speed,
            tier=initial_tier,
            difficulty_config=difficulty_settings,
            frame_interval_ms=self._gameplay.frame_interval_ms,
            random_generator=random_generator,
        )

        self._listeners: List[StateListener] = []
        self._high_score_improved = False
        self._sessions_completed = 0

        self._state = gameplay_models.SessionState.loading()
        self._scope = task_scope.TaskScope(self._backend, name="loading")
        self._scope.later(self._gameplay.loading_delay_ms, self.assets_ready, name="loading_delay")

    # -----------------
    # Read access
    # -----------------

    @property
    def state(self) -> gameplay_models.SessionState:
        return self._state

    @property
    def tier(self) -> difficulty.DifficultyTier:
        return self._scheduler.tier

    @property
    def combo_state(self) -> combo_engine.ComboState:
        return self._combo.state

    @property
    def note_field(self) -> note_field.NoteField:
        return self._note_field

    @property
    def scheduler(self) -> note_scheduler.Scheduler:
        return self._scheduler

    @property
    def sessions_completed(self) -> int:
        return self._sessions_completed

    def add_listener(self, callback: StateListener) -> None:
        self._listeners.append(callback)

    def snapshot(self) -> gameplay_models.GameSnapshot:
        combo_state = self._combo.state
        return gameplay_models.GameSnapshot(
            score=combo_state.score,
            combo=combo_state.combo,
            multiplier=combo_state.multiplier,
            time_left_ms=self._state.time_left_ms,
            high_score=combo_state.high_score,
            session_state=self._state,
            countdown_display=gameplay_models.countdown_display_for(self._state),
            difficulty=self.tier.value,
            fall_speed=combo_state.fall_speed,
            notes=self._note_field.notes(),
            lane_feedback=self._combo.lane_feedback(),
            dancing=self._combo.dancing,
            popups=self._combo.popups(),
            high_score_improved=self._high_score_improved,
        )

    # -----------------
    # Intents
    # -----------------

    def assets_ready(self) -> bool:
        if self._state.phase != gameplay_models.SessionPhase.LOADING:
            return False
        self._transition(gameplay_models.SessionState.idle())
        return True

    def start(self) -> bool:
        if self._state.phase != gameplay_models.SessionPhase.IDLE:
            logger.debug("Ignoring start in %s", self._state.label())
            return False
        self._transition(gameplay_models.SessionState.counting_down(self._gameplay.countdown_start))
        return True

    def replay(self) -> bool:
        if self._state.phase != gameplay_models.SessionPhase.GAME_OVER:
            logger.debug("Ignoring replay in %s", self._state.label())
            return False
        self._transition(gameplay_models.SessionState.counting_down(self._gameplay.countdown_start))
        return True

    def to_menu(self) -> bool:
        if self._state.phase != gameplay_models.SessionPhase.GAME_OVER:
            logger.debug("Ignoring menu request in %s", self._state.label())
            return False
        self._transition(gameplay_models.SessionState.idle())
        return True

    def select_difficulty(self, value: object) -> bool:
        if self._state.phase not in (gameplay_models.SessionPhase.IDLE, gameplay_models.SessionPhase.GAME_OVER):
            logger.info("Difficulty is locked in %s", self._state.label())
            return False
        self._scheduler.set_tier(difficulty.parse_tier(value))
        logger.info("Difficulty set to %s", self.tier.value)
        return True

    def tap(self, lane: object, symbol: Optional[gameplay_models.Symbol] = None) -> Optional[gameplay_models.Verdict]:
        if self._state.phase != gameplay_models.SessionPhase.PLAYING:
            return None
        if not gameplay_models.is_valid_lane(lane):
            logger.debug("Ignoring tap in out-of-range lane %r", lane)
            return None

        lane_index = int(lane)  # type: ignore[arg-type]
        if symbol is None:
            tap_symbol = gameplay_models.symbol_for_lane(lane_index)
        else:
            try:
                tap_symbol = gameplay_models.Symbol(symbol)
            except ValueError:
                logger.debug("Ignoring tap with unknown symbol %r", symbol)
                return None

        verdict = self._judge.judge(gameplay_models.TapEvent(lane=lane_index, symbol=tap_symbol), self._note_field)
        self._combo.on_verdict(verdict, self._scope)
        return verdict

    def on_frame(self, delta_ms: float) -> None:
        if self._state.phase != gameplay_models.SessionPhase.PLAYING:
            return
        self._scheduler.on_frame(delta_ms)

    def shutdown(self) -> None:
        self._scope.cancel_all()
        self._scheduler.disarm()
        self._combo.clear_cues()

    # -----------------
    # Transitions
    # -----------------

    def _transition(self, new_state: gameplay_models.SessionState) -> None:
        previous_state = self._state

        self._scope.cancel_all()
        if previous_state.phase == gameplay_models.SessionPhase.PLAYING:
            self._scheduler.disarm()
            self._combo.clear_cues()

        self._state = new_state
        self._scope = task_scope.TaskScope(self._backend, name=new_state.phase.value.lower())
        logger.info("Session %s -> %s", previous_state.label(), new_state.label())

        if new_state.phase == gameplay_models.SessionPhase.COUNTDOWN:
            self._enter_countdown()
        elif new_state.phase == gameplay_models.SessionPhase.PLAYING:
            self._enter_playing()
        elif new_state.phase == gameplay_models.SessionPhase.GAME_OVER:
            self._enter_game_over()

        self._notify(new_state)

    def _set_state_within_phase(self, new_state: gameplay_models.SessionState) -> None:
        self._state = new_state
        self._notify(new_state)

    def _enter_countdown(self) -> None:
        self._scope.every(self._gameplay.countdown_step_ms, self._on_countdown_step, name="countdown")

    def _on_countdown_step(self) -> None:
        remaining = int(self._state.countdown)
        if remaining > 0:
            self._set_state_within_phase(gameplay_models.SessionState.counting_down(remaining - 1))
            return
        self._transition(gameplay_models.SessionState.playing(self._gameplay.play_duration_ms))

    def _enter_playing(self) -> None:
        self._combo.reset_for_session()
        self._note_field.clear()
        self._high_score_improved = False
        self._scheduler.arm(self._scope)
        self._scope.every(PLAY_TIMER_STEP_MS, self._on_play_timer_step, name="play_timer")

    def _on_play_timer_step(self) -> None:
        time_left_ms = int(self._state.time_left_ms) - PLAY_TIMER_STEP_MS
        if time_left_ms > 0:
            self._set_state_within_phase(gameplay_models.SessionState.playing(time_left_ms))
            return
        self._transition(gameplay_models.SessionState.game_over())

    def _enter_game_over(self) -> None:
        self._sessions_completed += 1
        self._high_score_improved = self._combo.commit_high_score()
        final_score = self._combo.state.score
        logger.info(
            "Session over: score=%d high_score=%d silent_misses=%d",
            final_score,
            self._combo.state.high_score,
            self._scheduler.silent_misses,
        )
        if not self._high_score_improved:
            return
        try:
            self._score_store.save(final_score)
        except score_store.ScoreStoreError:
            logger.warning("High score %d could not be persisted", final_score, exc_info=True)

    # -----------------
    # Helpers
    # -----------------

    def _load_high_score(self) -> int:
        try:
            return int(self._score_store.load())
        except Exception:
            logger.exception("High score could not be loaded; starting from 0")
            return 0

    def _notify(self, new_state: gameplay_models.SessionState) -> None:
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("Session listener %r failed", listener)


def _run_unit_tests() -> None:
    import tempfile
    from pathlib import Path

    with tempfile.TemporaryDirectory() as temporary_directory:
        backend = task_scope.ManualTimerBackend()
        store = score_store.ScoreStore(Path(temporary_directory) / "high_score.json")
        session = SessionStateMachine(backend=backend, score_store_obj=store, random_generator=random.Random(1))

        backend.advance(1500)
        assert session.state.phase == gameplay_models.SessionPhase.IDLE
        assert session.start()
        backend.advance(4000)
        assert session.state == gameplay_models.SessionState.playing(60000)

        backend.advance(60000)
        assert session.state.phase == gameplay_models.SessionPhase.GAME_OVER
        assert session.tap(0) is None
        assert session.scheduler.armed is False


if __name__ == "__main__":
    _run_unit_tests()
    print("session.py: ok")
