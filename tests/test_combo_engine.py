import dataclasses

import pytest

import combo_engine
import gameplay_models
import task_scope


BASE = 1.5


def _hits(count, state=None):
    state = state if state is not None else combo_engine.initial_state(base_fall_speed=BASE)
    for _ in range(count):
        state = combo_engine.apply_hit(state)
    return state


@pytest.mark.parametrize(
    "combo, multiplier",
    [(0, 1), (4, 1), (5, 2), (9, 2), (10, 3), (19, 3), (20, 4), (150, 4)],
)
def test_multiplier_partition(combo, multiplier):
    assert combo_engine.multiplier_for_combo(combo) == multiplier


def test_six_hits_score_eighty():
    state = _hits(6)
    assert state.combo == 6
    assert state.multiplier == 2
    assert state.score == 80


def test_miss_resets_combo_but_keeps_score():
    state = _hits(15)
    assert state.combo == 15
    assert state.multiplier == 3
    missed = combo_engine.apply_miss(state)
    assert missed.combo == 0
    assert missed.multiplier == 1
    assert missed.fall_speed == BASE
    assert missed.score == state.score


def test_fall_speed_never_exceeds_ceiling():
    state = combo_engine.initial_state(base_fall_speed=BASE)
    for _ in range(300):
        state = combo_engine.apply_hit(state)
        assert BASE <= state.fall_speed <= state.fall_speed_ceiling
    assert state.fall_speed == pytest.approx(2.0 * BASE)


def test_fall_speed_unchanged_below_first_step():
    assert _hits(4).fall_speed == BASE


def test_reducers_do_not_mutate_input():
    state = _hits(3)
    combo_engine.apply_hit(state)
    combo_engine.apply_miss(state)
    assert state.combo == 3


def test_commit_high_score_only_when_improved():
    state = dataclasses.replace(_hits(1), score=340, high_score=300)
    committed, improved = combo_engine.commit_high_score(state)
    assert improved and committed.high_score == 340

    unchanged, improved = combo_engine.commit_high_score(dataclasses.replace(state, score=200))
    assert not improved and unchanged.high_score == 300


def test_reset_for_session_keeps_high_score():
    state = dataclasses.replace(_hits(12), high_score=500)
    reset = combo_engine.reset_for_session(state)
    assert (reset.combo, reset.multiplier, reset.score, reset.fall_speed) == (0, 1, 0, BASE)
    assert reset.high_score == 500


def test_initial_state_rejects_non_positive_speed():
    with pytest.raises(ValueError):
        combo_engine.initial_state(base_fall_speed=0.0)


@pytest.fixture
def engine_and_scope():
    backend = task_scope.ManualTimerBackend()
    scope = task_scope.TaskScope(backend, name="playing")
    engine = combo_engine.ComboEngine(
        base_fall_speed=BASE,
        feedback_cue_ms=300,
        dance_cue_ms=3000,
        score_popup_ms=1000,
    )
    return backend, scope, engine


def test_hit_sets_cue_dance_and_popup(engine_and_scope):
    backend, scope, engine = engine_and_scope
    engine.on_verdict(gameplay_models.HitVerdict(note_id=1, lane=2, distance=0.0), scope)

    assert engine.lane_feedback()[2] == gameplay_models.LaneCue.HIT
    assert engine.dancing
    assert [popup.points for popup in engine.popups()] == [10]

    backend.advance(300)
    assert engine.lane_feedback()[2] == gameplay_models.LaneCue.NONE
    backend.advance(700)
    assert engine.popups() == ()
    assert engine.dancing
    backend.advance(2000)
    assert not engine.dancing


def test_new_cue_replaces_pending_one(engine_and_scope):
    backend, scope, engine = engine_and_scope
    engine.on_verdict(gameplay_models.HitVerdict(note_id=1, lane=0, distance=0.0), scope)
    backend.advance(200)
    engine.on_verdict(gameplay_models.MissVerdict(lane=0), scope)

    backend.advance(100)
    assert engine.lane_feedback()[0] == gameplay_models.LaneCue.MISS
    backend.advance(200)
    assert engine.lane_feedback()[0] == gameplay_models.LaneCue.NONE


def test_clear_cues_cancels_timers(engine_and_scope):
    backend, scope, engine = engine_and_scope
    engine.on_verdict(gameplay_models.HitVerdict(note_id=1, lane=1, distance=0.0), scope)
    engine.clear_cues()
    assert engine.lane_feedback()[1] == gameplay_models.LaneCue.NONE
    assert not engine.dancing
    scope.cancel_all()
    assert backend.pending_count() == 0
