# -*- coding: utf-8 -*-
########################
# score_models.py
########################
# Purpose:
# - Lightweight data models for the musical score handed to the game engine.
# - Duration and meter helpers used when converting a score into absolute time.
#
# Design notes:
# - The score document is produced by the editor / parser side of the application.
#   Only the in-memory shape lives here. No file format I/O.
# - Beats are quarter-note beats (quarter = 1.0).
# - Note ids are generated from a process-wide counter; tests reset it for determinism.
#
########################
# Interfaces:
# Public dataclasses:
# - NotePitch(shinobue_number: int, register: Register, frequency: float, midi_note: int, western: str)
# - NoteDuration(type: str, dots: int = 0, tuplet: Optional[int] = None)
# - NoteEvent(id: str, type: str, duration: NoteDuration, start_beat: float, pitch: Optional[NotePitch])
# - Measure(number: int, notes: list[NoteEvent])
# - ScoreMetadata(title, composer, shinobue_key, tempo, time_signature)
# - Score(metadata: ScoreMetadata, measures: list[Measure])
#
# Public functions:
# - duration_to_beats(duration: NoteDuration) -> float
# - beats_per_measure(time_signature: tuple[int, int]) -> float
# - generate_note_id() -> str
# - reset_note_id_counter() -> None
# - create_note_event(*, type, duration_type, start_beat, pitch=None, dots=0, tuplet=None, note_id=None) -> NoteEvent
# - create_empty_score(*, title, composer, shinobue_key, tempo, time_signature, measure_count) -> Score
# - update_measure(score, measure_number, notes) -> Score
# - pitch_from_chart_note(note: ShinobueNote, tuning_a4: float = 440.0) -> NotePitch
#
########################

from __future__ import annotations

from dataclasses import dataclass, field, replace
import itertools
from typing import Dict, List, Optional, Sequence, Tuple

import frequency_math
from gameplay_models import Register, ShinobueNote

NOTE_TYPE_NOTE = "note"
NOTE_TYPE_REST = "rest"
NOTE_TYPE_TIE = "tie"

DURATION_BEATS: Dict[str, float] = {
    "whole": 4.0,
    "half": 2.0,
    "quarter": 1.0,
    "eighth": 0.5,
    "sixteenth": 0.25,
    "thirty-second": 0.125,
}


@dataclass(frozen=True)
class NotePitch:
    shinobue_number: int
    register: Register
    frequency: float
    midi_note: int
    western: str


@dataclass(frozen=True)
class NoteDuration:
    type: str = "quarter"
    dots: int = 0
    tuplet: Optional[int] = None


@dataclass(frozen=True)
class NoteEvent:
    id: str
    type: str
    duration: NoteDuration
    start_beat: float
    pitch: Optional[NotePitch] = None


@dataclass(frozen=True)
class Measure:
    number: int
    notes: List[NoteEvent] = field(default_factory=list)


@dataclass(frozen=True)
class ScoreMetadata:
    title: str = "無題"
    composer: str = ""
    shinobue_key: str = "nana"
    tempo: float = 80.0
    time_signature: Tuple[int, int] = (4, 4)


@dataclass(frozen=True)
class Score:
    metadata: ScoreMetadata
    measures: List[Measure] = field(default_factory=list)


def duration_to_beats(duration: NoteDuration) -> float:
    beats = DURATION_BEATS[str(duration.type)]

    dot_value = beats
    for _ in range(int(duration.dots)):
        dot_value /= 2.0
        beats += dot_value

    if duration.tuplet is not None and int(duration.tuplet) > 0:
        beats = (beats * 2.0) / int(duration.tuplet)

    return beats


def beats_per_measure(time_signature: Tuple[int, int]) -> float:
    numerator, denominator = time_signature
    return float(numerator) * (4.0 / float(denominator))


_note_id_counter = itertools.count(1)


def generate_note_id() -> str:
    return f"note-{next(_note_id_counter)}"


def reset_note_id_counter() -> None:
    global _note_id_counter
    _note_id_counter = itertools.count(1)


def create_note_event(
    *,
    type: str,
    duration_type: str = "quarter",
    start_beat: float = 0.0,
    pitch: Optional[NotePitch] = None,
    dots: int = 0,
    tuplet: Optional[int] = None,
    note_id: Optional[str] = None,
) -> NoteEvent:
    if type not in (NOTE_TYPE_NOTE, NOTE_TYPE_REST, NOTE_TYPE_TIE):
        raise ValueError(f"Unknown note event type: {type!r}")
    if duration_type not in DURATION_BEATS:
        raise ValueError(f"Unknown duration type: {duration_type!r}")
    return NoteEvent(
        id=note_id if note_id is not None else generate_note_id(),
        type=type,
        duration=NoteDuration(type=duration_type, dots=int(dots), tuplet=tuplet),
        start_beat=float(start_beat),
        pitch=pitch,
    )


def create_empty_score(
    *,
    title: str = "無題",
    composer: str = "",
    shinobue_key: str = "nana",
    tempo: float = 80.0,
    time_signature: Tuple[int, int] = (4, 4),
    measure_count: int = 4,
) -> Score:
    """Score with measure_count measures, each holding a single whole rest."""
    measures = [
        Measure(
            number=index + 1,
            notes=[create_note_event(type=NOTE_TYPE_REST, duration_type="whole", start_beat=0.0)],
        )
        for index in range(int(measure_count))
    ]
    metadata = ScoreMetadata(
        title=title,
        composer=composer,
        shinobue_key=shinobue_key,
        tempo=float(tempo),
        time_signature=(int(time_signature[0]), int(time_signature[1])),
    )
    return Score(metadata=metadata, measures=measures)


def update_measure(score: Score, measure_number: int, notes: Sequence[NoteEvent]) -> Score:
    ordered = sorted(notes, key=lambda item: float(item.start_beat))
    measures = [
        replace(measure, notes=list(ordered)) if measure.number == int(measure_number) else measure
        for measure in score.measures
    ]
    return replace(score, measures=measures)


def pitch_from_chart_note(note: ShinobueNote, tuning_a4: float = 440.0) -> NotePitch:
    midi_note = frequency_math.frequency_to_midi(note.frequency, tuning_a4)
    return NotePitch(
        shinobue_number=int(note.number),
        register=Register(note.register),
        frequency=float(note.frequency),
        midi_note=int(round(midi_note)),
        western=str(note.western),
    )
