# -*- coding: utf-8 -*-
########################
# long_tone.py
########################
# Purpose:
# - Long-tone (sustained note) practice: hold one target note for a fixed duration and
#   measure how steadily it stays in tune.
#
# Design notes:
# - Frame driven like GameEngine: process() is called once per frame with the latest
#   ClassifiedNote (or None when nothing was detected).
# - Time in tolerance accumulates per frame delta. Frames with no classified note never count.
# - Deviation is measured against the target frequency using the played pitch
#   (chart note frequency shifted by the classifier's cent offset).
# - Results are rounded to one decimal. success means stability >= 70 %.
#
########################
# Interfaces:
# Public enums:
# - LongToneStatus: idle | active | finished
#
# Public dataclasses:
# - LongToneResult(stability, average_deviation, max_deviation, success, timestamp)
# - LongToneState(status, elapsed_ms, in_tolerance_ms, current_deviation, deviation_history, result)
#
# Public classes:
# - class LongToneSession
#   - __init__(target: ShinobueNote, duration_ms: float, tolerance_cents: float, clock=None)
#   - start() -> LongToneState
#   - process(classified_note: Optional[ClassifiedNote]) -> LongToneState
#   - stop() -> LongToneState
#   - state() -> LongToneState
#
########################

from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
import math
import time
from typing import Callable, List, Optional, Tuple

from frequency_math import cents_between
from gameplay_models import ClassifiedNote, ShinobueNote
from timing_model import monotonic_ms

logger = logging.getLogger(__name__)

SUCCESS_STABILITY_PERCENT = 70.0
DEFAULT_TOLERANCE_CENTS = 20.0
PRACTICE_DURATIONS_SECONDS = (5, 10, 15, 30)


class LongToneStatus(str, enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class LongToneResult:
    stability: float
    average_deviation: float
    max_deviation: float
    success: bool
    # Unix epoch milliseconds.
    timestamp: float


@dataclass(frozen=True)
class LongToneState:
    status: LongToneStatus
    elapsed_ms: float
    in_tolerance_ms: float
    current_deviation: float
    deviation_history: Tuple[float, ...]
    result: Optional[LongToneResult]


def _round_one_decimal(value: float) -> float:
    return math.floor(float(value) * 10.0 + 0.5) / 10.0


class LongToneSession:
    def __init__(
        self,
        target: ShinobueNote,
        duration_ms: float,
        tolerance_cents: float = DEFAULT_TOLERANCE_CENTS,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if float(duration_ms) <= 0.0:
            raise ValueError(f"duration_ms must be positive, got {duration_ms}")
        self._target = target
        self._duration_ms = float(duration_ms)
        self._tolerance_cents = abs(float(tolerance_cents))
        self._clock: Callable[[], float] = clock if clock is not None else monotonic_ms

        self._status = LongToneStatus.IDLE
        self._start_ms = 0.0
        self._last_frame_ms = 0.0
        self._elapsed_ms = 0.0
        self._in_tolerance_ms = 0.0
        self._current_deviation = 0.0
        self._deviation_history: List[float] = []
        self._result: Optional[LongToneResult] = None

    @property
    def target(self) -> ShinobueNote:
        return self._target

    @property
    def status(self) -> LongToneStatus:
        return self._status

    @property
    def result(self) -> Optional[LongToneResult]:
        return self._result

    def start(self) -> LongToneState:
        now_ms = float(self._clock())
        self._start_ms = now_ms
        self._last_frame_ms = now_ms
        self._elapsed_ms = 0.0
        self._in_tolerance_ms = 0.0
        self._current_deviation = 0.0
        self._deviation_history = []
        self._result = None
        self._status = LongToneStatus.ACTIVE
        logger.debug("Long tone started: %s for %.0f ms", self._target.name, self._duration_ms)
        return self.state()

    def stop(self) -> LongToneState:
        self._status = LongToneStatus.IDLE
        return self.state()

    def process(self, classified_note: Optional[ClassifiedNote]) -> LongToneState:
        if self._status is not LongToneStatus.ACTIVE:
            return self.state()

        now_ms = float(self._clock())
        self._elapsed_ms = now_ms - self._start_ms
        frame_delta_ms = now_ms - self._last_frame_ms
        self._last_frame_ms = now_ms

        deviation = 0.0
        if classified_note is not None:
            deviation = self._deviation_cents(classified_note)
            if abs(deviation) <= self._tolerance_cents:
                self._in_tolerance_ms += frame_delta_ms

        self._current_deviation = deviation
        self._deviation_history.append(deviation)

        if self._elapsed_ms >= self._duration_ms:
            self._finish()

        return self.state()

    def _deviation_cents(self, classified_note: ClassifiedNote) -> float:
        played_frequency = float(classified_note.shinobue_note.frequency) * (2.0 ** (float(classified_note.cent_offset) / 1200.0))
        return cents_between(played_frequency, float(self._target.frequency))

    def _finish(self) -> None:
        absolute_deviations = [abs(value) for value in self._deviation_history]
        stability = (self._in_tolerance_ms / self._duration_ms) * 100.0
        average_deviation = sum(absolute_deviations) / len(absolute_deviations) if absolute_deviations else 0.0
        max_deviation = max(absolute_deviations) if absolute_deviations else 0.0

        self._result = LongToneResult(
            stability=_round_one_decimal(stability),
            average_deviation=_round_one_decimal(average_deviation),
            max_deviation=_round_one_decimal(max_deviation),
            success=stability >= SUCCESS_STABILITY_PERCENT,
            timestamp=time.time() * 1000.0,
        )
        self._elapsed_ms = self._duration_ms
        self._status = LongToneStatus.FINISHED
        logger.info(
            "Long tone finished: stability=%.1f%% average=%.1f max=%.1f cents",
            self._result.stability,
            self._result.average_deviation,
            self._result.max_deviation,
        )

    def state(self) -> LongToneState:
        return LongToneState(
            status=self._status,
            elapsed_ms=self._elapsed_ms,
            in_tolerance_ms=self._in_tolerance_ms,
            current_deviation=self._current_deviation,
            deviation_history=tuple(self._deviation_history),
            result=self._result,
        )


def _run_unit_tests() -> None:
    from fingering_chart import get_fingering_chart
    from timing_model import ManualClock

    target = get_fingering_chart("nana")[1]
    clock = ManualClock()
    session = LongToneSession(target, duration_ms=1000.0, tolerance_cents=20.0, clock=clock)
    session.start()
    for _ in range(10):
        clock.advance(100.0)
        state = session.process(ClassifiedNote(shinobue_note=target, cent_offset=5.0, confidence=0.9))
    assert state.status is LongToneStatus.FINISHED
    assert state.result is not None
    assert state.result.stability == 100.0
    assert state.result.average_deviation == 5.0
    assert state.result.success


if __name__ == "__main__":
    _run_unit_tests()
    print("long_tone.py: ok")
