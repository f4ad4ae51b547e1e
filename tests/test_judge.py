import pytest

import gameplay_models
import judge
import note_field


@pytest.fixture
def field():
    return note_field.NoteField(line_distance=500.0, overrun_margin=100.0)


@pytest.fixture
def hit_judge():
    return judge.HitJudge(hit_window=60.0)


def _tap(lane):
    return gameplay_models.TapEvent(lane=lane, symbol=gameplay_models.symbol_for_lane(lane))


def test_hit_inside_window(field, hit_judge):
    note = field.spawn(1, gameplay_models.Symbol.DOWN)
    field.advance(470.0)
    verdict = hit_judge.judge(_tap(1), field)
    assert isinstance(verdict, gameplay_models.HitVerdict)
    assert verdict.note_id == note.note_id
    assert verdict.distance == 30.0
    assert len(field) == 0


def test_distance_equal_to_window_is_a_miss(field, hit_judge):
    field.spawn(1, gameplay_models.Symbol.DOWN)
    field.advance(440.0)
    verdict = hit_judge.judge(_tap(1), field)
    assert isinstance(verdict, gameplay_models.MissVerdict)
    assert verdict.reason == "outside_window"
    assert len(field) == 1


def test_empty_lane_is_a_miss(field, hit_judge):
    field.spawn(0, gameplay_models.Symbol.LEFT)
    field.advance(500.0)
    verdict = hit_judge.judge(_tap(2), field)
    assert not verdict.is_hit
    assert verdict.reason == "no_note"


def test_symbol_must_match(field, hit_judge):
    field.spawn(0, gameplay_models.Symbol.LEFT)
    field.advance(500.0)
    verdict = hit_judge.judge(gameplay_models.TapEvent(lane=0, symbol=gameplay_models.Symbol.UP), field)
    assert not verdict.is_hit


def test_closest_note_wins(field, hit_judge):
    far = field.spawn(2, gameplay_models.Symbol.UP)
    field.advance(100.0)
    near = field.spawn(2, gameplay_models.Symbol.UP)
    field.advance(395.0)
    verdict = hit_judge.judge(_tap(2), field)
    assert verdict.is_hit
    assert verdict.note_id == far.note_id
    assert [note.note_id for note in field.notes()] == [near.note_id]


def test_equidistant_notes_pick_the_older_one(field, hit_judge):
    older = field.spawn(0, gameplay_models.Symbol.LEFT)
    field.advance(40.0)
    field.spawn(0, gameplay_models.Symbol.LEFT)
    field.advance(480.0)
    verdict = hit_judge.judge(_tap(0), field)
    assert verdict.note_id == older.note_id


def test_double_tap_in_one_tick_hits_once(field, hit_judge):
    field.spawn(3, gameplay_models.Symbol.RIGHT)
    field.advance(500.0)
    verdicts = [hit_judge.judge(_tap(3), field), hit_judge.judge(_tap(3), field)]
    assert sum(1 for verdict in verdicts if verdict.is_hit) == 1


def test_window_must_be_positive():
    with pytest.raises(ValueError):
        judge.HitJudge(hit_window=0.0)
