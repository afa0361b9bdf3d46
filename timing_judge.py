# -*- coding: utf-8 -*-
########################
# timing_judge.py
########################
# Purpose:
# - Joint timing + pitch judgement for a performed note.
# - Classifies (timing delta, pitch delta) into perfect / great / good / miss.
#
# Design notes:
# - Pure gameplay logic, no clock access. The engine supplies signed deltas.
# - Tiers are checked strictest first. A tier matches only when BOTH axes are inside it (inclusive).
# - The difficulty judgement_scale multiplies every timing and pitch threshold uniformly.
# - The good tier's timing window is the judgement window for the engine's per-frame scan.
#
########################
# Interfaces:
# Public dataclasses:
# - JudgementThreshold(type: JudgementType, timing_ms: float, pitch_cents: float)
#
# Public constants:
# - BASE_THRESHOLDS: tuple[JudgementThreshold, ...]
#
# Public classes:
# - class TimingJudge
#   - __init__(difficulty_config: Optional[DifficultyConfig] = None)
#   - thresholds() -> tuple[JudgementThreshold, ...]
#   - judge(timing_delta_ms: float, pitch_delta_cents: float, note_id: str) -> JudgementResult
#   - judge_timing_only(timing_delta_ms: float, note_id: str) -> JudgementResult
#   - is_in_judgement_window(timing_delta_ms: float) -> bool
#   - is_past_judgement_window(timing_delta_ms: float) -> bool
#   - get_max_window() -> float
#
# Inputs:
# - timing_delta_ms: now - expected time. Positive = late (note is in the past).
# - pitch_delta_cents: performed pitch relative to the target, signed.
#
# Outputs:
# - gameplay_models.JudgementResult
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from gameplay_models import DifficultyConfig, JudgementResult, JudgementType


@dataclass(frozen=True)
class JudgementThreshold:
    type: JudgementType
    timing_ms: float
    pitch_cents: float

    def scaled(self, scale: float) -> "JudgementThreshold":
        return JudgementThreshold(
            type=self.type,
            timing_ms=float(self.timing_ms) * float(scale),
            pitch_cents=float(self.pitch_cents) * float(scale),
        )

    def accepts(self, abs_timing_ms: float, abs_pitch_cents: float) -> bool:
        return abs_timing_ms <= self.timing_ms and abs_pitch_cents <= self.pitch_cents


BASE_THRESHOLDS: Tuple[JudgementThreshold, ...] = (
    JudgementThreshold(type=JudgementType.PERFECT, timing_ms=30.0, pitch_cents=10.0),
    JudgementThreshold(type=JudgementType.GREAT, timing_ms=60.0, pitch_cents=25.0),
    JudgementThreshold(type=JudgementType.GOOD, timing_ms=100.0, pitch_cents=40.0),
)


class TimingJudge:
    def __init__(self, difficulty_config: Optional[DifficultyConfig] = None) -> None:
        scale = 1.0 if difficulty_config is None else float(difficulty_config.judgement_scale)
        self._scale = scale
        self._thresholds = tuple(threshold.scaled(scale) for threshold in BASE_THRESHOLDS)

    @property
    def scale(self) -> float:
        return self._scale

    def thresholds(self) -> Tuple[JudgementThreshold, ...]:
        return self._thresholds

    def judge(self, timing_delta_ms: float, pitch_delta_cents: float, note_id: str) -> JudgementResult:
        abs_timing = abs(float(timing_delta_ms))
        abs_pitch = abs(float(pitch_delta_cents))

        judgement_type = JudgementType.MISS
        for threshold in self._thresholds:
            if threshold.accepts(abs_timing, abs_pitch):
                judgement_type = threshold.type
                break

        return JudgementResult(
            type=judgement_type,
            timing_delta=float(timing_delta_ms),
            pitch_delta=float(pitch_delta_cents),
            note_id=str(note_id),
        )

    def judge_timing_only(self, timing_delta_ms: float, note_id: str) -> JudgementResult:
        """Judge when no pitch is available; the pitch axis counts as exact."""
        return self.judge(timing_delta_ms, 0.0, note_id)

    def get_max_window(self) -> float:
        return float(self._thresholds[-1].timing_ms)

    def is_in_judgement_window(self, timing_delta_ms: float) -> bool:
        return abs(float(timing_delta_ms)) <= self.get_max_window()

    def is_past_judgement_window(self, timing_delta_ms: float) -> bool:
        return float(timing_delta_ms) > self.get_max_window()


def _run_unit_tests() -> None:
    judge = TimingJudge()
    assert judge.judge(30.0, 10.0, "n").type is JudgementType.PERFECT
    assert judge.judge(-30.0, -10.0, "n").type is JudgementType.PERFECT
    assert judge.judge(31.0, 0.0, "n").type is JudgementType.GREAT
    assert judge.judge(0.0, 11.0, "n").type is JudgementType.GREAT
    assert judge.judge(101.0, 0.0, "n").type is JudgementType.MISS
    assert judge.is_in_judgement_window(-100.0)
    assert judge.is_past_judgement_window(100.5)
    assert not judge.is_past_judgement_window(-500.0)

    class _Scale:
        judgement_scale = 0.6

    strict = TimingJudge(_Scale())
    assert strict.judge(20.0, 5.0, "n").type is JudgementType.GREAT
    assert abs(strict.get_max_window() - 60.0) < 1e-9


if __name__ == "__main__":
    _run_unit_tests()
    print("timing_judge.py: ok")
