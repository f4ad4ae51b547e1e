# -*- coding: utf-8 -*-
########################
# simulation.py
########################
# Purpose:
# - Headless TapDance session on the virtual clock, played by a simple autoplay bot.
# - Used by `tapdance.py --simulate` and by tests that need a full session end to end.
#
# Design notes:
# - No Qt usage. The SessionStateMachine runs on ManualTimerBackend and the loop advances
#   the clock one frame interval at a time.
# - The bot decides once per note whether it will hit it (probability = accuracy).
#   - Hits are tapped once the note is inside half the hit window.
#   - Decided misses are either tapped early (outside the window, a judged Miss) or
#     ignored so the note despawns silently.
# - The high score is kept in a throwaway directory unless a store is passed in.
#
########################
# Interfaces:
# Public dataclasses:
# - SimulationResult(...), to_dict() -> dict
#
# Public functions:
# - run_simulation(app_config: AppConfig, *, seconds: int, accuracy: float, seed: Optional[int],
#                  tier: Optional[str] = None, store: Optional[ScoreStore] = None) -> SimulationResult
#
########################

from __future__ import annotations

import logging
import random
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Set

import gameplay_models
import judge
import note_field
import score_store
import session
import task_scope
from config import AppConfig


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationResult:
    seed: Optional[int]
    difficulty: str
    accuracy: float
    play_seconds: int
    score: int
    high_score: int
    high_score_improved: bool
    notes_spawned: int
    hits: int
    judged_misses: int
    silent_misses: int
    final_state: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class _AutoplayBot:
    def __init__(self, *, accuracy: float, hit_window: float, random_generator: random.Random) -> None:
        self._accuracy = float(accuracy)
        self._hit_window = float(hit_window)
        self._judge = judge.HitJudge(hit_window=hit_window)
        self._random = random_generator
        self._planned_hits: Set[int] = set()
        self._planned_early_taps: Set[int] = set()
        self._decided: Set[int] = set()
        self.hits = 0
        self.judged_misses = 0

    def step(self, session_machine: session.SessionStateMachine) -> None:
        field = session_machine.note_field
        for note in field.notes():
            if note.note_id not in self._decided:
                self._decided.add(note.note_id)
                if self._random.random() < self._accuracy:
                    self._planned_hits.add(note.note_id)
                elif self._random.random() < 0.5:
                    self._planned_early_taps.add(note.note_id)

            # A tap only goes to the note the judge would pick in that lane.
            if not self._is_judged_note(field, note):
                continue

            below_line = note.fall_progress > field.line_distance
            distance = field.distance_to_line(note)
            if note.note_id in self._planned_hits and distance < self._hit_window / 2.0:
                self._planned_hits.discard(note.note_id)
                self._tap(session_machine, note.lane)
            elif (
                note.note_id in self._planned_early_taps
                and not below_line
                and self._hit_window < distance <= self._hit_window * 2.0
            ):
                self._planned_early_taps.discard(note.note_id)
                self._tap(session_machine, note.lane)

    def _is_judged_note(self, field: note_field.NoteField, note: gameplay_models.Note) -> bool:
        tap_event = gameplay_models.TapEvent(lane=note.lane, symbol=note.symbol)
        best_note = self._judge.find_best_candidate(tap_event, field)
        return best_note is not None and best_note.note_id == note.note_id

    def _tap(self, session_machine: session.SessionStateMachine, lane: int) -> None:
        verdict = session_machine.tap(lane)
        if verdict is None:
            return
        if verdict.is_hit:
            self.hits += 1
        else:
            self.judged_misses += 1


def run_simulation(
    app_config: AppConfig,
    *,
    seconds: int,
    accuracy: float,
    seed: Optional[int],
    tier: Optional[str] = None,
    store: Optional[score_store.ScoreStore] = None,
) -> SimulationResult:
    if int(seconds) < 1:
        raise ValueError("Simulation needs at least one second of play")
    if not 0.0 <= float(accuracy) <= 1.0:
        raise ValueError("accuracy must be between 0 and 1")

    gameplay_config = app_config.gameplay.model_copy(update={"play_duration_ms": int(seconds) * 1000})

    with tempfile.TemporaryDirectory(prefix="tapdance_sim_") as temporary_directory:
        active_store = store if store is not None else score_store.ScoreStore(Path(temporary_directory) / "high_score.json")
        backend = task_scope.ManualTimerBackend()
        session_machine = session.SessionStateMachine(
            backend=backend,
            score_store_obj=active_store,
            gameplay_config=gameplay_config,
            difficulty_config=app_config.difficulty,
            random_generator=random.Random(seed),
        )
        bot = _AutoplayBot(
            accuracy=float(accuracy),
            hit_window=gameplay_config.hit_window,
            random_generator=random.Random(None if seed is None else seed + 1),
        )

        session_machine.assets_ready()
        if tier is not None:
            session_machine.select_difficulty(tier)
        session_machine.start()

        frame_ms = int(gameplay_config.frame_interval_ms)
        while session_machine.state.phase != gameplay_models.SessionPhase.GAME_OVER:
            backend.advance(frame_ms)
            if session_machine.state.phase == gameplay_models.SessionPhase.PLAYING:
                bot.step(session_machine)

        snapshot = session_machine.snapshot()
        result = SimulationResult(
            seed=seed,
            difficulty=snapshot.difficulty,
            accuracy=float(accuracy),
            play_seconds=int(seconds),
            score=snapshot.score,
            high_score=snapshot.high_score,
            high_score_improved=snapshot.high_score_improved,
            notes_spawned=session_machine.scheduler.spawned_count,
            hits=bot.hits,
            judged_misses=bot.judged_misses,
            silent_misses=session_machine.scheduler.silent_misses,
            final_state=snapshot.session_state.label(),
        )
        session_machine.shutdown()

    logger.info("Simulation finished: score=%d hits=%d", result.score, result.hits)
    return result
