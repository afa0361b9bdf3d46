# -*- coding: utf-8 -*-
########################
# note_scheduler.py
########################
# Purpose:
# - Convert a Score into the absolute-time game timeline (list of GameNote).
# - Own the timeline during a session: judged state, the judgement cursor and display queries.
#
# Design notes:
# - Pure gameplay logic, no clock access.
# - Timeline order is deterministic: stable sort by time_ms (score order breaks ties).
# - The cursor only moves forward. Notes before it are resolved and never revisited.
# - Ties copy the pitch of the immediately preceding sounding note and show TIE_GLYPH.
#   A tie with nothing sounding before it becomes a rest.
# - A non-positive tempo yields an empty timeline (logged), which the engine finishes at once.
#
########################
# Interfaces:
# Public constants:
# - REST_GLYPH: str
# - TIE_GLYPH: str
#
# Public functions:
# - score_to_game_notes(score: Score) -> list[GameNote]
#
# Public classes:
# - class NoteScheduler
#   - __init__(notes: list[GameNote])
#   - from_score(score: Score) -> NoteScheduler (classmethod)
#   - notes() -> list[GameNote]
#   - cursor -> int
#   - reset() -> None
#   - mark_judged(game_note: GameNote, judgement: Optional[JudgementResult]) -> None
#   - advance_cursor(index: int) -> None
#   - unjudged_from_cursor() -> Iterator[tuple[int, GameNote]]
#   - visible_notes(*, time_ms: float, lookback_ms: float, lookahead_ms: float) -> list[GameNote]
#   - last_note_end_ms() -> Optional[float]
#
# Inputs:
# - Score (external editor / parser) and engine time in ms.
#
# Outputs:
# - GameNote views for the engine and for note highway rendering.
#
########################

from __future__ import annotations

import logging
import math
from typing import Iterator, List, Optional, Tuple

import fingering_chart
from gameplay_models import GameNote, JudgementResult
from score_models import (
    NOTE_TYPE_REST,
    NOTE_TYPE_TIE,
    NotePitch,
    Score,
    beats_per_measure,
    duration_to_beats,
)

REST_GLYPH = "▼"
TIE_GLYPH = "～"

logger = logging.getLogger(__name__)


def score_to_game_notes(score: Score) -> List[GameNote]:
    tempo = float(score.metadata.tempo)
    if not math.isfinite(tempo) or tempo <= 0.0:
        logger.warning("Score tempo must be positive, got %s; using an empty timeline", tempo)
        return []

    ms_per_beat = 60000.0 / tempo
    measure_beats = beats_per_measure(score.metadata.time_signature)
    notes: List[GameNote] = []

    last_pitch: Optional[NotePitch] = None

    for measure in score.measures:
        measure_offset_beats = (int(measure.number) - 1) * measure_beats

        for note_event in measure.notes:
            start_beat = measure_offset_beats + float(note_event.start_beat)
            time_ms = start_beat * ms_per_beat
            duration_ms = duration_to_beats(note_event.duration) * ms_per_beat

            if note_event.type == NOTE_TYPE_TIE and last_pitch is not None:
                notes.append(_sounding_note(note_event.id, time_ms, duration_ms, last_pitch, TIE_GLYPH))
                continue

            is_rest = note_event.type in (NOTE_TYPE_REST, NOTE_TYPE_TIE) or note_event.pitch is None
            if is_rest:
                last_pitch = None
                notes.append(
                    GameNote(
                        id=note_event.id,
                        time_ms=time_ms,
                        duration_ms=duration_ms,
                        shinobue_name=REST_GLYPH,
                    )
                )
                continue

            pitch = note_event.pitch
            last_pitch = pitch
            display_name = fingering_chart.shinobue_display_name(pitch.register, pitch.shinobue_number)
            notes.append(_sounding_note(note_event.id, time_ms, duration_ms, pitch, display_name))

    notes.sort(key=lambda item: float(item.time_ms))
    return notes


def _sounding_note(note_id: str, time_ms: float, duration_ms: float, pitch: NotePitch, display_name: str) -> GameNote:
    return GameNote(
        id=str(note_id),
        time_ms=float(time_ms),
        duration_ms=float(duration_ms),
        frequency=float(pitch.frequency),
        midi_note=int(pitch.midi_note),
        shinobue_number=int(pitch.shinobue_number),
        register=pitch.register,
        western=str(pitch.western),
        shinobue_name=display_name,
    )


class NoteScheduler:
    def __init__(self, notes: List[GameNote]) -> None:
        self._notes: List[GameNote] = sorted(notes, key=lambda item: float(item.time_ms))
        self._cursor = 0

    @classmethod
    def from_score(cls, score: Score) -> "NoteScheduler":
        return cls(score_to_game_notes(score))

    def notes(self) -> List[GameNote]:
        return self._notes

    @property
    def cursor(self) -> int:
        return self._cursor

    def reset(self) -> None:
        for game_note in self._notes:
            game_note.judged = False
            game_note.judgement = None
        self._cursor = 0

    def mark_judged(self, game_note: GameNote, judgement: Optional[JudgementResult] = None) -> None:
        game_note.judged = True
        game_note.judgement = judgement

    def advance_cursor(self, index: int) -> None:
        target = max(self._cursor, int(index))
        while target < len(self._notes) and self._notes[target].judged:
            target += 1
        self._cursor = min(target, len(self._notes))

    def unjudged_from_cursor(self) -> Iterator[Tuple[int, GameNote]]:
        for index in range(self._cursor, len(self._notes)):
            game_note = self._notes[index]
            if game_note.judged:
                continue
            yield index, game_note

    def visible_notes(self, *, time_ms: float, lookback_ms: float, lookahead_ms: float) -> List[GameNote]:
        start_time = float(time_ms) - float(lookback_ms)
        end_time = float(time_ms) + float(lookahead_ms)
        return [game_note for game_note in self._notes if start_time <= game_note.end_ms and game_note.time_ms <= end_time]

    def last_note_end_ms(self) -> Optional[float]:
        if not self._notes:
            return None
        return max(game_note.end_ms for game_note in self._notes)


def _run_unit_tests() -> None:
    from score_models import create_empty_score, create_note_event, update_measure
    from gameplay_models import Register

    pitch = NotePitch(shinobue_number=3, register=Register.RO, frequency=659.26, midi_note=76, western="E5")
    score = create_empty_score(tempo=120.0, measure_count=1)
    score = update_measure(
        score,
        1,
        [
            create_note_event(type="note", pitch=pitch, start_beat=0.0),
            create_note_event(type="tie", start_beat=1.0),
            create_note_event(type="rest", start_beat=2.0),
            create_note_event(type="note", pitch=pitch, start_beat=3.0),
        ],
    )
    scheduler = NoteScheduler.from_score(score)
    notes = scheduler.notes()
    assert [n.time_ms for n in notes] == [0.0, 500.0, 1000.0, 1500.0]
    assert notes[1].frequency == 659.26 and notes[1].shinobue_name == TIE_GLYPH
    assert notes[2].is_rest

    scheduler.mark_judged(notes[0])
    scheduler.mark_judged(notes[1])
    scheduler.advance_cursor(1)
    assert scheduler.cursor == 2
    assert [index for index, _ in scheduler.unjudged_from_cursor()] == [2, 3]
    assert scheduler.last_note_end_ms() == 2000.0


if __name__ == "__main__":
    _run_unit_tests()
    print("note_scheduler.py: ok")
