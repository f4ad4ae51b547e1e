# -*- coding: utf-8 -*-
########################
# note_field.py
########################
# Purpose:
# - Owns the set of live notes and their fall progress.
# - Advances positions on each tick and despawns notes that overrun the judgement line.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Notes are immutable; advance() builds the next list and commits it in one assignment,
#   so a failed tick leaves the field exactly as it was.
# - Order is deterministic: notes are kept sorted by note_id (spawn order).
# - Unjudged despawns are returned to the caller but never scored here.
#
########################
# Interfaces:
# Public classes:
# - class NoteField
#   - __init__(*, line_distance: float, overrun_margin: float)
#   - line_distance -> float
#   - despawn_threshold -> float
#   - spawn(lane: int, symbol: Symbol) -> Note
#   - advance(delta_progress: float) -> list[Note]   (despawned notes)
#   - claim(note_id: int) -> bool
#   - candidates(lane: int, symbol: Symbol) -> list[Note]
#   - distance_to_line(note: Note) -> float
#   - notes() -> tuple[Note, ...]
#   - clear() -> None
#
# Inputs:
# - Spawn requests from the Scheduler spawner, frame deltas from the Scheduler ticker.
#
# Outputs:
# - Note views for rendering and candidate selection for HitJudge.
#
########################

from __future__ import annotations

import dataclasses
import itertools
from typing import List, Tuple

import gameplay_models


class NoteField:
    def __init__(self, *, line_distance: float, overrun_margin: float) -> None:
        if float(line_distance) <= 0.0:
            raise ValueError("line_distance must be positive")
        if float(overrun_margin) < 0.0:
            raise ValueError("overrun_margin must be non-negative")
        self._line_distance = float(line_distance)
        self._overrun_margin = float(overrun_margin)
        self._notes: Tuple[gameplay_models.Note, ...] = ()
        self._id_counter = itertools.count(1)

    def __len__(self) -> int:
        return len(self._notes)

    @property
    def line_distance(self) -> float:
        return self._line_distance

    @property
    def despawn_threshold(self) -> float:
        return self._line_distance + self._overrun_margin

    def notes(self) -> Tuple[gameplay_models.Note, ...]:
        return self._notes

    def clear(self) -> None:
        self._notes = ()

    def spawn(self, lane: int, symbol: gameplay_models.Symbol) -> gameplay_models.Note:
        if not gameplay_models.is_valid_lane(lane):
            raise ValueError(f"Cannot spawn a note in lane {lane!r}")
        note = gameplay_models.Note(
            note_id=next(self._id_counter),
            lane=int(lane),
            symbol=gameplay_models.Symbol(symbol),
            fall_progress=0.0,
        )
        self._notes = self._notes + (note,)
        return note

    def advance(self, delta_progress: float) -> List[gameplay_models.Note]:
        delta = float(delta_progress)
        if delta < 0.0:
            raise ValueError("Fall progress only moves forward")

        threshold = self.despawn_threshold
        kept: List[gameplay_models.Note] = []
        despawned: List[gameplay_models.Note] = []
        for note in self._notes:
            moved = dataclasses.replace(note, fall_progress=float(note.fall_progress) + delta)
            if moved.fall_progress > threshold:
                despawned.append(moved)
            else:
                kept.append(moved)

        self._notes = tuple(kept)
        return despawned

    def claim(self, note_id: int) -> bool:
        remaining = tuple(note for note in self._notes if note.note_id != int(note_id))
        if len(remaining) == len(self._notes):
            return False
        self._notes = remaining
        return True

    def candidates(self, lane: int, symbol: gameplay_models.Symbol) -> List[gameplay_models.Note]:
        return [note for note in self._notes if note.lane == int(lane) and note.symbol == symbol]

    def distance_to_line(self, note: gameplay_models.Note) -> float:
        return abs(self._line_distance - float(note.fall_progress))


def _run_unit_tests() -> None:
    field = NoteField(line_distance=500.0, overrun_margin=100.0)
    first = field.spawn(0, gameplay_models.Symbol.LEFT)
    second = field.spawn(2, gameplay_models.Symbol.UP)
    assert first.note_id != second.note_id
    assert [note.note_id for note in field.notes()] == [first.note_id, second.note_id]

    assert field.advance(550.0) == []
    despawned = field.advance(60.0)
    assert [note.note_id for note in despawned] == [first.note_id, second.note_id]
    assert len(field) == 0

    third = field.spawn(1, gameplay_models.Symbol.DOWN)
    assert field.claim(third.note_id)
    assert not field.claim(third.note_id)


if __name__ == "__main__":
    _run_unit_tests()
    print("note_field.py: ok")
