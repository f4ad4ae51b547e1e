import pytest

import gameplay_models
import note_field


@pytest.fixture
def field():
    return note_field.NoteField(line_distance=500.0, overrun_margin=100.0)


def test_ids_are_unique_and_increasing(field):
    ids = [field.spawn(lane, gameplay_models.symbol_for_lane(lane)).note_id for lane in (0, 1, 2, 3, 0)]
    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)


def test_spawn_rejects_bad_lane(field):
    with pytest.raises(ValueError):
        field.spawn(4, gameplay_models.Symbol.LEFT)


def test_advance_rejects_negative_delta(field):
    with pytest.raises(ValueError):
        field.advance(-1.0)


def test_note_at_threshold_is_kept_and_past_it_despawns(field):
    note = field.spawn(0, gameplay_models.Symbol.LEFT)
    assert field.advance(600.0) == []
    assert len(field) == 1

    despawned = field.advance(0.5)
    assert [item.note_id for item in despawned] == [note.note_id]
    assert len(field) == 0


def test_snapshots_are_not_mutated_by_advance(field):
    field.spawn(1, gameplay_models.Symbol.DOWN)
    before = field.notes()
    field.advance(10.0)
    assert before[0].fall_progress == 0.0
    assert field.notes()[0].fall_progress == 10.0


def test_claim_removes_note_once(field):
    note = field.spawn(3, gameplay_models.Symbol.RIGHT)
    assert field.claim(note.note_id)
    assert not field.claim(note.note_id)
    assert field.notes() == ()


def test_distance_to_line_is_symmetric(field):
    early = field.spawn(0, gameplay_models.Symbol.LEFT)
    field.advance(40.0)
    late = field.spawn(0, gameplay_models.Symbol.LEFT)
    field.advance(480.0)
    early_now, late_now = field.notes()
    assert early_now.note_id == early.note_id and late_now.note_id == late.note_id
    assert field.distance_to_line(early_now) == field.distance_to_line(late_now) == 20.0
