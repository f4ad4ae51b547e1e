# -*- coding: utf-8 -*-
########################
# judge.py
########################
# Purpose:
# - Hit judgement for lane taps.
# - Matches a TapEvent to the nearest live note of the same lane and symbol and decides Hit or Miss.
#
# Design notes:
# - No Qt usage. Pure gameplay logic.
# - Strict inputs: consume only the TapEvent and the NoteField as it stands right now.
# - NoteField owns the notes; HitJudge claims a note through NoteField.claim so a note
#   can be credited at most once, even for two taps inside the same tick.
# - A Miss never mutates the NoteField.
#
########################
# Interfaces:
# Public classes:
# - class HitJudge
#   - __init__(*, hit_window: float)
#   - hit_window -> float
#   - find_best_candidate(tap: TapEvent, note_field: NoteField) -> Optional[Note]
#   - judge(tap: TapEvent, note_field: NoteField) -> Verdict
#
# Inputs:
# - TapEvent(lane: int, symbol: Symbol)
# - NoteField snapshot at tap time
#
# Outputs:
# - HitVerdict(note_id, lane, distance) or MissVerdict(lane, reason)
#
########################

from __future__ import annotations

import logging
from typing import Optional

import gameplay_models
import note_field


logger = logging.getLogger(__name__)


class HitJudge:
    def __init__(self, *, hit_window: float) -> None:
        if float(hit_window) <= 0.0:
            raise ValueError("hit_window must be positive")
        self._hit_window = float(hit_window)

    @property
    def hit_window(self) -> float:
        return self._hit_window

    def find_best_candidate(
        self,
        tap: gameplay_models.TapEvent,
        field: note_field.NoteField,
    ) -> Optional[gameplay_models.Note]:
        best_note: Optional[gameplay_models.Note] = None
        best_distance = float("inf")

        for candidate in field.candidates(tap.lane, tap.symbol):
            distance = field.distance_to_line(candidate)
            if distance < best_distance:
                best_note = candidate
                best_distance = distance
            elif distance == best_distance and best_note is not None:
                # Tie break default:
                # - choose the older note (lower id) when equidistant.
                if candidate.note_id < best_note.note_id:
                    best_note = candidate

        return best_note

    def judge(self, tap: gameplay_models.TapEvent, field: note_field.NoteField) -> gameplay_models.Verdict:
        best_note = self.find_best_candidate(tap, field)
        if best_note is None:
            return gameplay_models.MissVerdict(lane=int(tap.lane), reason="no_note")

        distance = field.distance_to_line(best_note)
        if distance >= self._hit_window:
            return gameplay_models.MissVerdict(lane=int(tap.lane), reason="outside_window")

        if not field.claim(best_note.note_id):
            return gameplay_models.MissVerdict(lane=int(tap.lane), reason="already_claimed")

        logger.debug("Hit note %d in lane %d at distance %.2f", best_note.note_id, tap.lane, distance)
        return gameplay_models.HitVerdict(note_id=best_note.note_id, lane=int(tap.lane), distance=distance)


def _run_unit_tests() -> None:
    field = note_field.NoteField(line_distance=500.0, overrun_margin=100.0)
    note = field.spawn(1, gameplay_models.Symbol.DOWN)
    field.advance(480.0)
    judge = HitJudge(hit_window=60.0)
    tap = gameplay_models.TapEvent(lane=1, symbol=gameplay_models.Symbol.DOWN)

    first = judge.judge(tap, field)
    second = judge.judge(tap, field)
    assert isinstance(first, gameplay_models.HitVerdict) and first.note_id == note.note_id
    assert isinstance(second, gameplay_models.MissVerdict)

    far = field.spawn(1, gameplay_models.Symbol.DOWN)
    verdict = judge.judge(tap, field)
    assert isinstance(verdict, gameplay_models.MissVerdict)
    assert [item.note_id for item in field.notes()] == [far.note_id]


if __name__ == "__main__":
    _run_unit_tests()
    print("judge.py: ok")
