# -*- coding: utf-8 -*-
########################
# note_scheduler.py
########################
# Purpose:
# - Two periodic producers feeding the NoteField while a session is playing:
#   - spawner: creates one note in a random lane every spawn interval
#   - ticker: advances every live note once per frame and despawns overrun notes
#
# Design notes:
# - No Qt usage. Timers come from the TaskScope passed to arm(); cancelling that scope
#   stops both producers, so nothing can spawn or tick after the session leaves Playing.
# - The spawner re-arms itself after every spawn with the interval for the current fall speed,
#   so faster play shortens the cadence right away.
# - The random source is injected (random.Random), so spawn sequences are reproducible.
# - A note that overruns the line unjudged is a silent miss: counted and logged, never scored.
# - on_frame() and the ticker share one frame clock: time advanced through on_frame() is
#   skipped by the next tick, so an external render loop never moves notes twice.
#
########################
# Interfaces:
# Public constants:
# - REFERENCE_FRAME_MS: frame duration that one unit of fall speed refers to
#
# Public classes:
# - class Scheduler
#   - __init__(*, note_field_obj, fall_speed_provider, base_fall_speed, tier=MEDIUM,
#              difficulty_config=None, frame_interval_ms=16, random_generator=None)
#   - tier -> DifficultyTier, set_tier(tier) -> None
#   - armed -> bool, silent_misses -> int, spawned_count -> int
#   - current_interval_ms() -> float
#   - arm(scope: TaskScope) -> None
#   - disarm() -> None
#   - spawn_note() -> Note
#   - on_frame(delta_ms: float) -> list[Note]  (external frame hook)
#
# Inputs:
# - Fall speed from the ComboEngine (via fall_speed_provider).
# - Timer callbacks from the owning TaskScope.
#
# Outputs:
# - Mutations of the NoteField (spawn, advance, despawn).
#
########################

from __future__ import annotations

import logging
import random
from typing import Callable, List, Optional

import difficulty
import gameplay_models
import note_field
import task_scope
from config import DifficultyConfig


logger = logging.getLogger(__name__)

REFERENCE_FRAME_MS = 1000.0 / 60.0


class Scheduler:
    def __init__(
        self,
        *,
        note_field_obj: note_field.NoteField,
        fall_speed_provider: Callable[[], float],
        base_fall_speed: float,
        tier: difficulty.DifficultyTier = difficulty.DEFAULT_TIER,
        difficulty_config: Optional[DifficultyConfig] = None,
        frame_interval_ms: int = 16,
        random_generator: Optional[random.Random] = None,
    ) -> None:
        self._note_field = note_field_obj
        self._fall_speed_provider = fall_speed_provider
        self._base_fall_speed = float(base_fall_speed)
        self._difficulty_config = difficulty_config
        self._profile = difficulty.profile_for(tier, difficulty_config)
        self._frame_interval_ms = int(frame_interval_ms)
        self._random = random_generator if random_generator is not None else random.Random()

        self._scope: Optional[task_scope.TaskScope] = None
        self._last_frame_ms = 0.0
        self._silent_misses = 0
        self._spawned_count = 0

    @property
    def tier(self) -> difficulty.DifficultyTier:
        return self._profile.tier

    @property
    def armed(self) -> bool:
        return self._scope is not None and not self._scope.cancelled

    @property
    def silent_misses(self) -> int:
        return self._silent_misses

    @property
    def spawned_count(self) -> int:
        return self._spawned_count

    def set_tier(self, tier: difficulty.DifficultyTier) -> None:
        if self.armed:
            raise RuntimeError("Difficulty cannot change while notes are falling")
        self._profile = difficulty.profile_for(tier, self._difficulty_config)

    def current_interval_ms(self) -> float:
        return self._profile.interval_ms(float(self._fall_speed_provider()), self._base_fall_speed)

    def arm(self, scope: task_scope.TaskScope) -> None:
        if self.armed:
            raise RuntimeError("Scheduler is already armed")
        self._scope = scope
        self._silent_misses = 0
        self._spawned_count = 0
        self._last_frame_ms = float(scope.backend.now_ms())
        scope.every(self._frame_interval_ms, self._on_ticker, name="ticker")
        self._schedule_next_spawn()
        logger.debug("Scheduler armed (tier=%s, interval=%.1fms)", self.tier.value, self.current_interval_ms())

    def disarm(self) -> None:
        # Cancellation itself belongs to the scope owner; this only drops the reference.
        self._scope = None

    def spawn_note(self) -> gameplay_models.Note:
        lane = self._random.randrange(gameplay_models.LANE_COUNT)
        note = self._note_field.spawn(lane, gameplay_models.symbol_for_lane(lane))
        self._spawned_count += 1
        return note

    def on_frame(self, delta_ms: float) -> List[gameplay_models.Note]:
        """Advance notes by delta_ms. The ticker skips time already covered here."""
        delta = float(delta_ms)
        if delta <= 0.0:
            return []
        self._last_frame_ms += delta
        return self._advance_notes(delta)

    # -----------------
    # Timer callbacks
    # -----------------

    def _schedule_next_spawn(self) -> None:
        scope = self._scope
        if scope is None or scope.cancelled:
            return
        scope.later(self.current_interval_ms(), self._on_spawner, name="spawner")

    def _on_spawner(self) -> None:
        if not self.armed:
            return
        try:
            self.spawn_note()
        finally:
            self._schedule_next_spawn()

    def _on_ticker(self) -> None:
        scope = self._scope
        if scope is None or scope.cancelled:
            return
        now_ms = float(scope.backend.now_ms())
        if now_ms <= self._last_frame_ms:
            return
        delta_ms = now_ms - self._last_frame_ms
        self._last_frame_ms = now_ms
        self._advance_notes(delta_ms)

    def _advance_notes(self, delta_ms: float) -> List[gameplay_models.Note]:
        progress = float(self._fall_speed_provider()) * delta_ms / REFERENCE_FRAME_MS
        despawned = self._note_field.advance(progress)
        if despawned:
            self._silent_misses += len(despawned)
            logger.debug("Silent miss: %s", ", ".join(str(note.note_id) for note in despawned))
        return despawned


def _run_unit_tests() -> None:
    backend = task_scope.ManualTimerBackend()
    scope = task_scope.TaskScope(backend, name="playing")
    field = note_field.NoteField(line_distance=500.0, overrun_margin=100.0)
    scheduler = Scheduler(
        note_field_obj=field,
        fall_speed_provider=lambda: 1.5,
        base_fall_speed=1.5,
        tier=difficulty.DifficultyTier.HARD,
        random_generator=random.Random(7),
    )
    scheduler.arm(scope)
    backend.advance(1800)
    assert scheduler.spawned_count == 3
    assert all(note.fall_progress > 0.0 for note in field.notes()[:-1])

    scope.cancel_all()
    backend.advance(5000)
    assert scheduler.spawned_count == 3
    assert backend.pending_count() == 0


if __name__ == "__main__":
    _run_unit_tests()
    print("note_scheduler.py: ok")
