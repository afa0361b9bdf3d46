# demo_score.py
from __future__ import annotations

from typing import List, Sequence, Tuple

import fingering_chart
from gameplay_models import Register
from score_models import (
    NOTE_TYPE_NOTE,
    NOTE_TYPE_REST,
    Measure,
    NoteEvent,
    Score,
    ScoreMetadata,
    create_note_event,
    pitch_from_chart_note,
)

DEMO_TITLE = "さくらさくら（デモ）"
DEMO_COMPOSER = "日本民謡"
DEMO_TEMPO = 80.0

# (number, register) per quarter beat, one row per measure.
_MELODY: Tuple[Tuple[Tuple[int, Register], ...], ...] = (
    ((6, Register.RO), (6, Register.RO), (7, Register.RO), (6, Register.RO)),
    ((6, Register.RO), (7, Register.RO), (6, Register.RO), (7, Register.RO)),
    ((1, Register.KAN), (7, Register.RO), (6, Register.RO), (5, Register.RO)),
    ((3, Register.RO), (5, Register.RO), (6, Register.RO), (5, Register.RO)),
)


def _measure_notes(chart: Sequence, row: Sequence[Tuple[int, Register]]) -> List[NoteEvent]:
    notes: List[NoteEvent] = []
    for beat_index, (number, register) in enumerate(row):
        chart_note = fingering_chart.find_chart_note(chart, number, register)
        if chart_note is None:
            notes.append(create_note_event(type=NOTE_TYPE_REST, start_beat=float(beat_index)))
            continue
        notes.append(
            create_note_event(
                type=NOTE_TYPE_NOTE,
                start_beat=float(beat_index),
                pitch=pitch_from_chart_note(chart_note),
            )
        )
    return notes


def create_demo_score(shinobue_key: str = fingering_chart.DEFAULT_SHINOBUE_KEY) -> Score:
    """Four measures of quarter notes in the style of Sakura Sakura, built from the key's chart."""
    chart = fingering_chart.get_fingering_chart(shinobue_key)

    measures = [
        Measure(number=measure_index + 1, notes=_measure_notes(chart, row))
        for measure_index, row in enumerate(_MELODY)
    ]

    metadata = ScoreMetadata(
        title=DEMO_TITLE,
        composer=DEMO_COMPOSER,
        shinobue_key=shinobue_key,
        tempo=DEMO_TEMPO,
        time_signature=(4, 4),
    )
    return Score(metadata=metadata, measures=measures)
