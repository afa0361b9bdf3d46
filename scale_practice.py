# -*- coding: utf-8 -*-
########################
# scale_practice.py
########################
# Purpose:
# - Scale practice: play through a sequence of chart notes one at a time and record
#   which ones were in tune.
#
# Design notes:
# - Turn based, not timed: every process() call consumes the next expected note, so
#   the caller decides when a note was "played" (onset detector, metronome beat, key press).
# - A note is correct when the played chart note is within 50 cents of the expected one.
#   None (nothing detected) is always incorrect.
# - The sequence comes from the chart, optionally filtered to one register. A filter
#   that leaves nothing falls back to the whole chart.
# - The random pattern uses a numpy Generator so sessions can be seeded.
# - Cent offsets and accuracy are rounded half up to one decimal, response time to whole ms.
#
########################
# Interfaces:
# Public enums:
# - ScalePattern: ascending | descending | skip | random
# - ScalePracticeStatus: idle | active | finished
#
# Public dataclasses:
# - ScaleConfig(pattern, tempo, metronome_enabled, register_filter)
# - ScaleNoteResult(expected_note, actual_note, cent_offset, is_correct)
# - ScaleResult(accuracy, note_results, average_response_time_ms, timestamp)
# - ScalePracticeState(status, current_index, note_sequence, note_results, result)
#
# Public functions:
# - generate_scale_sequence(chart, config, rng=None) -> list[ShinobueNote]
#
# Public classes:
# - class ScalePracticeSession
#   - __init__(clock=None, rng=None)
#   - start(chart, config) -> ScalePracticeState
#   - process(classified_note: Optional[ClassifiedNote]) -> ScalePracticeState
#   - stop() -> ScalePracticeState
#   - reset() -> ScalePracticeState
#   - state() -> ScalePracticeState
#
########################

from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
import math
import time
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from frequency_math import cents_between
from gameplay_models import ClassifiedNote, Register, ShinobueNote
from timing_model import monotonic_ms

logger = logging.getLogger(__name__)

CORRECT_THRESHOLD_CENTS = 50.0


class ScalePattern(str, enum.Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"
    SKIP = "skip"
    RANDOM = "random"


class ScalePracticeStatus(str, enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class ScaleConfig:
    pattern: ScalePattern = ScalePattern.ASCENDING
    # Metronome settings are carried for the caller; the session itself is turn based.
    tempo: float = 120.0
    metronome_enabled: bool = False
    # None practises every register.
    register_filter: Optional[Register] = None


@dataclass(frozen=True)
class ScaleNoteResult:
    expected_note: str
    actual_note: Optional[str]
    cent_offset: float
    is_correct: bool


@dataclass(frozen=True)
class ScaleResult:
    accuracy: float
    note_results: Tuple[ScaleNoteResult, ...]
    average_response_time_ms: int
    # Unix epoch milliseconds.
    timestamp: float


@dataclass(frozen=True)
class ScalePracticeState:
    status: ScalePracticeStatus
    current_index: int
    note_sequence: Tuple[ShinobueNote, ...]
    note_results: Tuple[ScaleNoteResult, ...]
    result: Optional[ScaleResult]


def _round_one_decimal(value: float) -> float:
    return math.floor(float(value) * 10.0 + 0.5) / 10.0


def generate_scale_sequence(
    chart: Sequence[ShinobueNote],
    config: ScaleConfig,
    rng: Optional[np.random.Generator] = None,
) -> List[ShinobueNote]:
    notes = list(chart)
    if config.register_filter is not None:
        filtered = [note for note in notes if note.register == config.register_filter]
        if filtered:
            notes = filtered

    pattern = ScalePattern(config.pattern)
    if pattern is ScalePattern.DESCENDING:
        return notes[::-1]
    if pattern is ScalePattern.SKIP:
        return notes[::2]
    if pattern is ScalePattern.RANDOM:
        generator = rng if rng is not None else np.random.default_rng()
        return [notes[int(index)] for index in generator.permutation(len(notes))]
    return notes


class ScalePracticeSession:
    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self._clock: Callable[[], float] = clock if clock is not None else monotonic_ms
        self._rng = rng
        self._status = ScalePracticeStatus.IDLE
        self._sequence: List[ShinobueNote] = []
        self._note_results: List[ScaleNoteResult] = []
        self._response_times_ms: List[float] = []
        self._current_index = 0
        self._last_beat_ms = 0.0
        self._result: Optional[ScaleResult] = None

    @property
    def status(self) -> ScalePracticeStatus:
        return self._status

    @property
    def result(self) -> Optional[ScaleResult]:
        return self._result

    def start(self, chart: Sequence[ShinobueNote], config: ScaleConfig) -> ScalePracticeState:
        self._sequence = generate_scale_sequence(chart, config, self._rng)
        self._note_results = []
        self._response_times_ms = []
        self._current_index = 0
        self._last_beat_ms = float(self._clock())
        self._result = None
        self._status = ScalePracticeStatus.ACTIVE
        logger.debug("Scale practice started: %s, %d notes", ScalePattern(config.pattern).value, len(self._sequence))
        return self.state()

    def stop(self) -> ScalePracticeState:
        self._status = ScalePracticeStatus.IDLE
        return self.state()

    def reset(self) -> ScalePracticeState:
        self._status = ScalePracticeStatus.IDLE
        self._sequence = []
        self._note_results = []
        self._response_times_ms = []
        self._current_index = 0
        self._result = None
        return self.state()

    def process(self, classified_note: Optional[ClassifiedNote]) -> ScalePracticeState:
        if self._status is not ScalePracticeStatus.ACTIVE:
            return self.state()
        if self._current_index >= len(self._sequence):
            return self.state()

        expected = self._sequence[self._current_index]
        now_ms = float(self._clock())
        self._response_times_ms.append(now_ms - self._last_beat_ms)
        self._last_beat_ms = now_ms

        self._note_results.append(self._judge_note(expected, classified_note))
        self._current_index += 1

        if self._current_index >= len(self._sequence):
            self._finish()
        return self.state()

    @staticmethod
    def _judge_note(expected: ShinobueNote, classified_note: Optional[ClassifiedNote]) -> ScaleNoteResult:
        if classified_note is None:
            return ScaleNoteResult(expected_note=expected.name, actual_note=None, cent_offset=0.0, is_correct=False)

        cents = cents_between(float(classified_note.shinobue_note.frequency), float(expected.frequency))
        is_correct = math.isfinite(cents) and abs(cents) <= CORRECT_THRESHOLD_CENTS
        return ScaleNoteResult(
            expected_note=expected.name,
            actual_note=classified_note.shinobue_note.name,
            cent_offset=_round_one_decimal(cents) if math.isfinite(cents) else 0.0,
            is_correct=is_correct,
        )

    def _finish(self) -> None:
        correct_count = sum(1 for note_result in self._note_results if note_result.is_correct)
        accuracy = _round_one_decimal(correct_count / len(self._note_results) * 100.0)
        average_response = 0
        if self._response_times_ms:
            average_response = int(math.floor(sum(self._response_times_ms) / len(self._response_times_ms) + 0.5))

        self._result = ScaleResult(
            accuracy=accuracy,
            note_results=tuple(self._note_results),
            average_response_time_ms=average_response,
            timestamp=time.time() * 1000.0,
        )
        self._status = ScalePracticeStatus.FINISHED
        logger.info("Scale practice finished: %d/%d correct (%.1f%%)", correct_count, len(self._note_results), accuracy)

    def state(self) -> ScalePracticeState:
        return ScalePracticeState(
            status=self._status,
            current_index=self._current_index,
            note_sequence=tuple(self._sequence),
            note_results=tuple(self._note_results),
            result=self._result,
        )


def _run_unit_tests() -> None:
    from fingering_chart import get_fingering_chart
    from timing_model import ManualClock

    chart = [note for note in get_fingering_chart("nana") if note.register is Register.RO][1:4]
    assert [note.name for note in generate_scale_sequence(chart, ScaleConfig(pattern=ScalePattern.SKIP))] == [
        chart[0].name,
        chart[2].name,
    ]

    clock = ManualClock()
    session = ScalePracticeSession(clock=clock)
    session.start(chart, ScaleConfig())
    for note in chart:
        clock.advance(500.0)
        state = session.process(ClassifiedNote(shinobue_note=note, cent_offset=0.0, confidence=0.95))
    assert state.status is ScalePracticeStatus.FINISHED
    assert state.result is not None
    assert state.result.accuracy == 100.0
    assert state.result.average_response_time_ms == 500


if __name__ == "__main__":
    _run_unit_tests()
    print("scale_practice.py: ok")
