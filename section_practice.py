# -*- coding: utf-8 -*-
########################
# section_practice.py
########################
# Purpose:
# - Section (passage) practice: loop a measure range of a score, optionally slowed down,
#   and record which notes were missed or played out of tune.
#
# Design notes:
# - Frame driven like GameEngine: update() once per frame with the latest PitchResult or None.
# - The section is cut from the score by measure number, renumbered from 1 and timed at
#   tempo * tempo_scale. Rests are dropped from the timeline.
# - Judging is coarser than the rhythm game: a note accepts a reading from 200 ms early
#   to 500 ms late, and only pitch is graded (within 50 cents is correct).
# - Notes past the late edge are mistakes. Mistake positions are timeline indices and
#   accumulate across loops.
# - A loop ends 500 ms after the last note. With gradual_speed_up the next loop is rebuilt
#   0.1 faster, capped at the score tempo.
# - A section with no sounding notes finishes on the first frame.
#
########################
# Interfaces:
# Public enums:
# - SectionPracticeStatus: idle | active | finished
#
# Public dataclasses:
# - SectionConfig(start_measure, end_measure, tempo_scale, loop_count, gradual_speed_up, score_title)
# - SectionResult(accuracy, mistake_positions, timestamp)
# - SectionPracticeState(status, current_loop, total_loops, current_time_ms, current_note_index,
#                        total_notes, mistakes, accuracy, result)
#
# Public functions:
# - extract_section(score, config) -> Score
#
# Public classes:
# - class SectionPracticeSession
#   - __init__(clock=None, judge_confidence=0.85)
#   - start(score, config) -> SectionPracticeState
#   - update(pitch_result: Optional[PitchResult]) -> SectionPracticeState
#   - stop() -> SectionPracticeState
#   - reset() -> SectionPracticeState
#   - state() -> SectionPracticeState
#
########################

from __future__ import annotations

from dataclasses import dataclass, replace
import enum
import logging
import math
import time
from typing import Callable, List, Optional, Tuple

from frequency_math import cents_between
from gameplay_models import GameNote, PitchResult
from note_scheduler import score_to_game_notes
from score_models import Measure, Score
from timing_model import TimingModel

logger = logging.getLogger(__name__)

CORRECT_THRESHOLD_CENTS = 50.0
EARLY_WINDOW_MS = 200.0
LATE_WINDOW_MS = 500.0
LOOP_END_GRACE_MS = 500.0
SPEED_UP_STEP = 0.1
DEFAULT_JUDGE_CONFIDENCE = 0.85


class SectionPracticeStatus(str, enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class SectionConfig:
    start_measure: int
    end_measure: int
    tempo_scale: float = 1.0
    loop_count: int = 1
    gradual_speed_up: bool = False
    score_title: str = ""

    def __post_init__(self) -> None:
        if int(self.start_measure) < 1 or int(self.end_measure) < int(self.start_measure):
            raise ValueError(f"Invalid measure range {self.start_measure}..{self.end_measure}")
        if not float(self.tempo_scale) > 0.0:
            raise ValueError(f"tempo_scale must be positive, got {self.tempo_scale}")
        if int(self.loop_count) < 1:
            raise ValueError(f"loop_count must be at least 1, got {self.loop_count}")


@dataclass(frozen=True)
class SectionResult:
    accuracy: float
    mistake_positions: Tuple[int, ...]
    # Unix epoch milliseconds.
    timestamp: float


@dataclass(frozen=True)
class SectionPracticeState:
    status: SectionPracticeStatus
    current_loop: int
    total_loops: int
    current_time_ms: float
    current_note_index: int
    total_notes: int
    mistakes: Tuple[int, ...]
    accuracy: float
    result: Optional[SectionResult]


def _round_one_decimal(value: float) -> float:
    return math.floor(float(value) * 10.0 + 0.5) / 10.0


def extract_section(score: Score, config: SectionConfig, tempo_scale: Optional[float] = None) -> Score:
    """Cut measures start..end out of score, renumbered from 1, at the scaled tempo."""
    scale = float(config.tempo_scale if tempo_scale is None else tempo_scale)
    measures = [
        measure
        for measure in score.measures
        if int(config.start_measure) <= int(measure.number) <= int(config.end_measure)
    ]
    return Score(
        metadata=replace(score.metadata, tempo=float(score.metadata.tempo) * scale),
        measures=[Measure(number=index + 1, notes=list(measure.notes)) for index, measure in enumerate(measures)],
    )


class SectionPracticeSession:
    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        judge_confidence: float = DEFAULT_JUDGE_CONFIDENCE,
    ) -> None:
        self._timing = TimingModel(clock)
        self._judge_confidence = float(judge_confidence)
        self._status = SectionPracticeStatus.IDLE
        self._score: Optional[Score] = None
        self._config: Optional[SectionConfig] = None
        self._notes: List[GameNote] = []
        self._tempo_scale = 1.0
        self._current_loop = 1
        self._next_note_index = 0
        self._current_time_ms = 0.0
        self._mistakes: List[int] = []
        self._correct_count = 0
        self._judged_count = 0
        self._result: Optional[SectionResult] = None

    @property
    def status(self) -> SectionPracticeStatus:
        return self._status

    @property
    def result(self) -> Optional[SectionResult]:
        return self._result

    @property
    def notes(self) -> List[GameNote]:
        return list(self._notes)

    @property
    def tempo_scale(self) -> float:
        return self._tempo_scale

    def start(self, score: Score, config: SectionConfig) -> SectionPracticeState:
        self._score = score
        self._config = config
        self._tempo_scale = float(config.tempo_scale)
        self._notes = self._build_notes()
        self._current_loop = 1
        self._next_note_index = 0
        self._current_time_ms = 0.0
        self._mistakes = []
        self._correct_count = 0
        self._judged_count = 0
        self._result = None
        self._status = SectionPracticeStatus.ACTIVE
        self._timing.start()
        logger.debug(
            "Section practice started: measures %d-%d, %d notes, tempo x%.2f, %d loop(s)",
            config.start_measure,
            config.end_measure,
            len(self._notes),
            self._tempo_scale,
            config.loop_count,
        )
        return self.state()

    def stop(self) -> SectionPracticeState:
        self._status = SectionPracticeStatus.IDLE
        return self.state()

    def reset(self) -> SectionPracticeState:
        self._status = SectionPracticeStatus.IDLE
        self._score = None
        self._config = None
        self._notes = []
        self._current_loop = 1
        self._next_note_index = 0
        self._current_time_ms = 0.0
        self._mistakes = []
        self._correct_count = 0
        self._judged_count = 0
        self._result = None
        return self.state()

    def update(self, pitch_result: Optional[PitchResult]) -> SectionPracticeState:
        if self._status is not SectionPracticeStatus.ACTIVE or self._config is None:
            return self.state()

        self._current_time_ms = self._timing.elapsed_ms()
        if not self._notes:
            self._finish()
            return self.state()

        self._scan_notes(pitch_result)

        last_note = self._notes[-1]
        if self._current_time_ms > last_note.end_ms + LOOP_END_GRACE_MS:
            if self._current_loop < int(self._config.loop_count):
                self._next_loop()
            else:
                self._finish()

        return self.state()

    def _scan_notes(self, pitch_result: Optional[PitchResult]) -> None:
        now_ms = self._current_time_ms
        for index in range(self._next_note_index, len(self._notes)):
            game_note = self._notes[index]
            timing_delta = now_ms - float(game_note.time_ms)

            if timing_delta < -EARLY_WINDOW_MS:
                break

            if timing_delta > LATE_WINDOW_MS:
                self._mistakes.append(index)
                self._judged_count += 1
                self._next_note_index = index + 1
                continue

            if pitch_result is not None and float(pitch_result.confidence) >= self._judge_confidence:
                cents = cents_between(float(pitch_result.frequency), float(game_note.frequency))
                if not math.isfinite(cents):
                    break
                if abs(cents) <= CORRECT_THRESHOLD_CENTS:
                    self._correct_count += 1
                else:
                    self._mistakes.append(index)
                self._judged_count += 1
                self._next_note_index = index + 1
                break

    def _next_loop(self) -> None:
        self._current_loop += 1
        self._next_note_index = 0
        if self._config is not None and self._config.gradual_speed_up:
            self._tempo_scale = min(self._tempo_scale + SPEED_UP_STEP, 1.0)
            self._notes = self._build_notes()
        self._timing.start()
        self._current_time_ms = 0.0
        logger.debug("Section loop %d started at tempo x%.2f", self._current_loop, self._tempo_scale)

    def _build_notes(self) -> List[GameNote]:
        if self._score is None or self._config is None:
            return []
        section = extract_section(self._score, self._config, self._tempo_scale)
        return [game_note for game_note in score_to_game_notes(section) if not game_note.is_rest]

    def _accuracy(self) -> float:
        if self._judged_count <= 0:
            return 0.0
        return _round_one_decimal(self._correct_count / self._judged_count * 100.0)

    def _finish(self) -> None:
        self._result = SectionResult(
            accuracy=self._accuracy(),
            mistake_positions=tuple(self._mistakes),
            timestamp=time.time() * 1000.0,
        )
        self._status = SectionPracticeStatus.FINISHED
        logger.info(
            "Section practice finished: accuracy=%.1f%% mistakes=%d over %d loop(s)",
            self._result.accuracy,
            len(self._mistakes),
            self._current_loop,
        )

    def state(self) -> SectionPracticeState:
        return SectionPracticeState(
            status=self._status,
            current_loop=self._current_loop,
            total_loops=int(self._config.loop_count) if self._config is not None else 1,
            current_time_ms=self._current_time_ms,
            current_note_index=self._next_note_index,
            total_notes=len(self._notes),
            mistakes=tuple(self._mistakes),
            accuracy=self._accuracy(),
            result=self._result,
        )


def _run_unit_tests() -> None:
    from demo_score import create_demo_score
    from timing_model import ManualClock

    score = create_demo_score("nana")
    clock = ManualClock()
    session = SectionPracticeSession(clock=clock)
    state = session.start(score, SectionConfig(start_measure=1, end_measure=1))
    assert state.total_notes == 4
    clock.advance(10_000.0)
    state = session.update(None)
    assert state.status is SectionPracticeStatus.FINISHED
    assert state.mistakes == (0, 1, 2, 3)
    assert state.result is not None and state.result.accuracy == 0.0


if __name__ == "__main__":
    _run_unit_tests()
    print("section_practice.py: ok")
