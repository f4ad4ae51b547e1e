import random

import pytest

import difficulty
import gameplay_models
import note_field
import note_scheduler
import task_scope


BASE = 1.5


def _make_scheduler(seed=None, tier=difficulty.DifficultyTier.MEDIUM, speed=BASE):
    field = note_field.NoteField(line_distance=500.0, overrun_margin=100.0)
    scheduler = note_scheduler.Scheduler(
        note_field_obj=field,
        fall_speed_provider=lambda: speed,
        base_fall_speed=BASE,
        tier=tier,
        random_generator=random.Random(seed),
    )
    return field, scheduler


def test_seeded_lane_sequence_is_reproducible():
    _field_a, first = _make_scheduler(seed=7)
    _field_b, second = _make_scheduler(seed=7)
    lanes_a = [first.spawn_note().lane for _ in range(50)]
    lanes_b = [second.spawn_note().lane for _ in range(50)]
    assert lanes_a == lanes_b
    assert set(lanes_a) <= {0, 1, 2, 3}


def test_spawner_cadence_follows_tier_interval():
    field, scheduler = _make_scheduler(seed=1, tier=difficulty.DifficultyTier.HARD)
    backend = task_scope.ManualTimerBackend()
    scope = task_scope.TaskScope(backend, name="playing")
    scheduler.arm(scope)

    backend.advance(599)
    assert scheduler.spawned_count == 0
    backend.advance(1)
    assert scheduler.spawned_count == 1
    backend.advance(1200)
    assert scheduler.spawned_count == 3


def test_ticker_moves_notes_by_fall_speed():
    field, scheduler = _make_scheduler(seed=1)
    field.spawn(0, gameplay_models.Symbol.LEFT)
    scheduler.on_frame(note_scheduler.REFERENCE_FRAME_MS * 10)
    assert field.notes()[0].fall_progress == pytest.approx(15.0)


def test_cancelled_scope_stops_spawning_and_ticking():
    field, scheduler = _make_scheduler(seed=3)
    backend = task_scope.ManualTimerBackend()
    scope = task_scope.TaskScope(backend, name="playing")
    scheduler.arm(scope)
    backend.advance(2000)

    scope.cancel_all()
    scheduler.disarm()
    spawned = scheduler.spawned_count
    positions = [note.fall_progress for note in field.notes()]

    backend.advance(10000)
    assert scheduler.spawned_count == spawned
    assert [note.fall_progress for note in field.notes()] == positions
    assert backend.pending_count() == 0


def test_unjudged_note_despawns_as_silent_miss():
    field, scheduler = _make_scheduler(seed=1)
    field.spawn(2, gameplay_models.Symbol.UP)
    despawned = scheduler.on_frame(note_scheduler.REFERENCE_FRAME_MS * 500)
    assert len(despawned) == 1
    assert scheduler.silent_misses == 1
    assert len(field) == 0


def test_tier_is_locked_while_armed():
    _field, scheduler = _make_scheduler(seed=1)
    scheduler.arm(task_scope.TaskScope(task_scope.ManualTimerBackend()))
    with pytest.raises(RuntimeError):
        scheduler.set_tier(difficulty.DifficultyTier.EASY)
    scheduler.disarm()
    scheduler.set_tier(difficulty.DifficultyTier.EASY)
    assert scheduler.tier == difficulty.DifficultyTier.EASY


def test_arming_twice_is_rejected():
    _field, scheduler = _make_scheduler(seed=1)
    scope = task_scope.TaskScope(task_scope.ManualTimerBackend())
    scheduler.arm(scope)
    with pytest.raises(RuntimeError):
        scheduler.arm(scope)


def test_external_frame_and_ticker_do_not_double_advance():
    field, scheduler = _make_scheduler(seed=1)
    backend = task_scope.ManualTimerBackend()
    scope = task_scope.TaskScope(backend, name="playing")
    scheduler.arm(scope)
    field.spawn(0, gameplay_models.Symbol.LEFT)

    scheduler.on_frame(16.0)
    backend.advance(16)
    assert field.notes()[0].fall_progress == pytest.approx(BASE * 16.0 / note_scheduler.REFERENCE_FRAME_MS)

    backend.advance(16)
    assert field.notes()[0].fall_progress == pytest.approx(BASE * 32.0 / note_scheduler.REFERENCE_FRAME_MS)
