import pytest

import gameplay_models
import difficulty


Phase = gameplay_models.SessionPhase


def _to_playing(backend, session_machine):
    backend.advance(1500)
    assert session_machine.start()
    backend.advance(4000)
    assert session_machine.state.phase == Phase.PLAYING


def _hit(session_machine, lane=0):
    field = session_machine.note_field
    field.clear()
    field.spawn(lane, gameplay_models.symbol_for_lane(lane))
    field.advance(field.line_distance)
    verdict = session_machine.tap(lane)
    assert verdict is not None and verdict.is_hit


def _miss(session_machine, lane=0):
    session_machine.note_field.clear()
    verdict = session_machine.tap(lane)
    assert verdict is not None and not verdict.is_hit


def test_loading_then_idle(backend, make_session):
    session_machine = make_session()
    assert session_machine.state.phase == Phase.LOADING
    backend.advance(1499)
    assert session_machine.state.phase == Phase.LOADING
    backend.advance(1)
    assert session_machine.state.phase == Phase.IDLE


def test_assets_ready_skips_the_delay(backend, make_session):
    session_machine = make_session()
    assert session_machine.assets_ready()
    assert session_machine.state.phase == Phase.IDLE
    backend.advance(5000)
    assert session_machine.state.phase == Phase.IDLE


def test_countdown_timeline(backend, make_session):
    session_machine = make_session()
    backend.advance(1500)
    session_machine.start()

    labels = [session_machine.state.label()]
    displays = [session_machine.snapshot().to_dict()["countdown"]]
    for _ in range(4):
        backend.advance(1000)
        labels.append(session_machine.state.label())
        displays.append(session_machine.snapshot().to_dict()["countdown"])

    assert labels == ["COUNTDOWN(3)", "COUNTDOWN(2)", "COUNTDOWN(1)", "COUNTDOWN(0)", "PLAYING(60000)"]
    assert displays[0] == {"kind": "counting", "text": "3"}
    assert displays[3] == {"kind": "announcing", "text": "DANCE!"}
    assert displays[4] == {"kind": "done", "text": ""}


def test_play_timer_reaches_game_over(backend, make_session):
    session_machine = make_session()
    _to_playing(backend, session_machine)

    backend.advance(1000)
    assert session_machine.state == gameplay_models.SessionState.playing(59000)
    backend.advance(58000)
    assert session_machine.state == gameplay_models.SessionState.playing(1000)
    backend.advance(1000)
    assert session_machine.state.phase == Phase.GAME_OVER
    assert session_machine.sessions_completed == 1


def test_taps_are_ignored_outside_playing(backend, make_session):
    session_machine = make_session()
    assert session_machine.tap(0) is None
    backend.advance(1500)
    assert session_machine.tap(0) is None
    session_machine.start()
    assert session_machine.tap(0) is None
    assert session_machine.combo_state.score == 0


def test_out_of_range_lane_is_ignored(backend, make_session):
    session_machine = make_session()
    _to_playing(backend, session_machine)
    assert session_machine.tap(4) is None
    assert session_machine.tap(-1) is None
    assert session_machine.tap(True) is None
    assert session_machine.tap("1") is None


def test_hits_score_and_miss_resets_combo(backend, make_session):
    session_machine = make_session()
    _to_playing(backend, session_machine)

    for _ in range(6):
        _hit(session_machine)
    assert session_machine.combo_state.score == 80
    assert session_machine.combo_state.multiplier == 2

    _miss(session_machine, lane=1)
    assert session_machine.combo_state.combo == 0
    assert session_machine.combo_state.score == 80
    assert session_machine.snapshot().lane_feedback[1] == gameplay_models.LaneCue.MISS


def test_silent_miss_is_counted_but_not_scored(backend, make_session):
    session_machine = make_session()
    _to_playing(backend, session_machine)
    for _ in range(3):
        _hit(session_machine)
    combo_before = session_machine.combo_state.combo
    score_before = session_machine.combo_state.score

    session_machine.note_field.clear()
    session_machine.note_field.spawn(2, gameplay_models.Symbol.UP)
    backend.advance(7000)

    assert session_machine.scheduler.silent_misses >= 1
    assert session_machine.combo_state.combo == combo_before
    assert session_machine.combo_state.score == score_before


def test_no_spawns_or_timers_after_game_over(backend, make_session):
    session_machine = make_session()
    _to_playing(backend, session_machine)
    _hit(session_machine)
    backend.advance(60000)
    assert session_machine.state.phase == Phase.GAME_OVER

    spawned = session_machine.scheduler.spawned_count
    notes = session_machine.note_field.notes()
    backend.advance(10000)
    assert session_machine.scheduler.spawned_count == spawned
    assert session_machine.note_field.notes() == notes
    assert backend.pending_count() == 0
    assert not session_machine.scheduler.armed


def test_difficulty_locked_outside_menus(backend, make_session):
    session_machine = make_session()
    assert not session_machine.select_difficulty("hard")
    backend.advance(1500)
    assert session_machine.select_difficulty("hard")
    assert session_machine.tier == difficulty.DifficultyTier.HARD

    session_machine.start()
    assert not session_machine.select_difficulty("easy")
    backend.advance(4000)
    assert not session_machine.select_difficulty("easy")
    assert session_machine.tier == difficulty.DifficultyTier.HARD
    assert session_machine.scheduler.current_interval_ms() == 600.0


def test_high_score_saved_once_when_improved(backend, store, make_session):
    store.save(300)
    store.saved_scores.clear()
    session_machine = make_session()
    assert session_machine.combo_state.high_score == 300
    _to_playing(backend, session_machine)

    # Runs of 9, 9, 4 and 2 hits score 140 + 140 + 40 + 20.
    for run_length in (9, 9, 4, 2):
        for _ in range(run_length):
            _hit(session_machine)
        _miss(session_machine)
    assert session_machine.combo_state.score == 340

    backend.advance(60000)
    assert session_machine.state.phase == Phase.GAME_OVER
    assert store.saved_scores == [340]
    assert store.load() == 340
    snapshot = session_machine.snapshot()
    assert snapshot.high_score == 340
    assert snapshot.high_score_improved


def test_high_score_not_saved_without_improvement(backend, store, make_session):
    store.save(300)
    store.saved_scores.clear()
    session_machine = make_session()
    _to_playing(backend, session_machine)
    _hit(session_machine)
    backend.advance(60000)
    assert store.saved_scores == []
    assert session_machine.combo_state.high_score == 300
    assert not session_machine.snapshot().high_score_improved


def test_replay_and_menu(backend, make_session):
    session_machine = make_session()
    _to_playing(backend, session_machine)
    _hit(session_machine)
    backend.advance(60000)

    assert not session_machine.start()
    assert session_machine.replay()
    assert session_machine.state == gameplay_models.SessionState.counting_down(3)
    backend.advance(4000)
    assert session_machine.state.phase == Phase.PLAYING
    assert session_machine.combo_state.score == 0
    assert session_machine.note_field.notes() == ()

    backend.advance(60000)
    assert session_machine.to_menu()
    assert session_machine.state.phase == Phase.IDLE
    assert not session_machine.replay()


def test_listeners_see_every_transition(backend, make_session):
    session_machine = make_session()
    seen = []
    session_machine.add_listener(lambda state: seen.append(state.phase))
    backend.advance(1500)
    session_machine.start()
    backend.advance(4000)
    assert seen == [Phase.IDLE] + [Phase.COUNTDOWN] * 4 + [Phase.PLAYING]


def test_unreadable_store_starts_from_zero(backend, store, make_session):
    store.file_path.write_text("{broken", encoding="utf-8")
    session_machine = make_session()
    assert session_machine.combo_state.high_score == 0


def test_snapshot_dict_shape(backend, make_session):
    session_machine = make_session()
    _to_playing(backend, session_machine)
    payload = session_machine.snapshot().to_dict()
    assert payload["state"] == "PLAYING"
    assert payload["time_left_ms"] == 60000
    assert payload["difficulty"] == "medium"
    assert set(payload["lane_feedback"]) == {"0", "1", "2", "3"}


def test_double_tap_on_one_note_scores_once(backend, make_session):
    session_machine = make_session()
    _to_playing(backend, session_machine)
    field = session_machine.note_field
    field.clear()
    field.spawn(1, gameplay_models.Symbol.DOWN)
    field.advance(field.line_distance)
    score_before = session_machine.combo_state.score

    first = session_machine.tap(1)
    second = session_machine.tap(1)

    assert first is not None and first.is_hit
    assert second is not None and not second.is_hit
    assert session_machine.combo_state.score == score_before + 10
    assert session_machine.combo_state.combo == 0


def test_frame_hook_and_clock_advance_notes_once(backend, make_session):
    session_machine = make_session()
    _to_playing(backend, session_machine)
    field = session_machine.note_field
    field.clear()
    note = field.spawn(0, gameplay_models.Symbol.LEFT)

    session_machine.on_frame(16.0)
    backend.advance(16)

    moved = next(candidate for candidate in field.notes() if candidate.note_id == note.note_id)
    assert moved.fall_progress == pytest.approx(1.44)
