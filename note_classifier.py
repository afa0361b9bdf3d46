# -*- coding: utf-8 -*-
########################
# note_classifier.py
########################
# Purpose:
# - Map a detected frequency onto the nearest note of the selected shinobue key's fingering chart.
#
# Design notes:
# - Linear scan. Charts have at most 19 entries, so no index is kept.
# - Ties keep the first entry in chart order (ascending frequency).
# - classify() accepts a match only within ACCEPT_CENTS; find_nearest() has no gate (tuner display).
# - Not synchronized. Each consumer (tuner, game) owns its own instance.
#
########################
# Interfaces:
# Public constants:
# - ACCEPT_CENTS: float
#
# Public classes:
# - class NoteClassifier
#   - __init__(shinobue_key: str)
#   - key -> str
#   - set_key(shinobue_key: str) -> None
#   - chart() -> tuple[ShinobueNote, ...]
#   - classify(frequency: float, confidence: float) -> Optional[ClassifiedNote]
#   - find_nearest(frequency: float) -> Optional[NearestNote]
#
########################

from __future__ import annotations

import math
from typing import Optional, Tuple

import fingering_chart
from frequency_math import cents_between
from gameplay_models import ClassifiedNote, NearestNote, ShinobueNote

ACCEPT_CENTS = 50.0


class NoteClassifier:
    def __init__(self, shinobue_key: str) -> None:
        self._key = str(shinobue_key)
        self._chart = fingering_chart.get_fingering_chart(self._key)

    @property
    def key(self) -> str:
        return self._key

    def set_key(self, shinobue_key: str) -> None:
        self._key = str(shinobue_key)
        self._chart = fingering_chart.get_fingering_chart(self._key)

    def chart(self) -> Tuple[ShinobueNote, ...]:
        return self._chart

    def classify(self, frequency: float, confidence: float) -> Optional[ClassifiedNote]:
        nearest = self.find_nearest(frequency)
        if nearest is None:
            return None
        if abs(nearest.cent_offset) > ACCEPT_CENTS:
            return None
        return ClassifiedNote(
            shinobue_note=nearest.note,
            cent_offset=nearest.cent_offset,
            confidence=float(confidence),
        )

    def find_nearest(self, frequency: float) -> Optional[NearestNote]:
        value = float(frequency)
        if not math.isfinite(value) or value <= 0.0:
            return None

        best_note: Optional[ShinobueNote] = None
        best_cents = math.inf
        for note in self._chart:
            cents = cents_between(value, note.frequency)
            if abs(cents) < abs(best_cents):
                best_cents = cents
                best_note = note

        if best_note is None:
            return None
        return NearestNote(note=best_note, cent_offset=float(best_cents))


def _run_unit_tests() -> None:
    classifier = NoteClassifier("nana")
    for note in classifier.chart():
        matched = classifier.classify(note.frequency, 0.95)
        assert matched is not None
        assert matched.shinobue_note.name == note.name
        assert abs(matched.cent_offset) < 1.0

    assert classifier.classify(440.0, 0.95) is None
    assert classifier.find_nearest(440.0) is not None
    assert classifier.classify(float("nan"), 0.95) is None

    classifier.set_key("roku")
    assert classifier.classify(440.0, 0.95).shinobue_note.name == "筒音"


if __name__ == "__main__":
    _run_unit_tests()
    print("note_classifier.py: ok")
