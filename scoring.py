# -*- coding: utf-8 -*-
########################
# scoring.py
########################
# Purpose:
# - Combo tracking and score accumulation for one game session.
# - Final result (accuracy and rank) generation.
#
# Design notes:
# - Pure gameplay logic. Single writer: the engine frame update.
# - Any non-miss judgement extends the combo; miss resets it. max_combo never decreases until reset().
# - Multiplier grows by 0.1 for every 10 consecutive hits, capped at 2.0.
# - Points are rounded half up so 1.5 -> 2, matching the score display.
#
########################
# Interfaces:
# Public constants:
# - BASE_SCORES: dict[JudgementType, int]
# - MAX_MULTIPLIER: float
#
# Public classes:
# - class ComboManager
#   - combo -> int
#   - max_combo -> int
#   - multiplier -> float
#   - register(judgement: JudgementType) -> None
#   - reset() -> None
#
# - class ScoreCalculator
#   - score -> int
#   - add(judgement: JudgementResult, combo_multiplier: float) -> int
#   - get_counts() -> dict[JudgementType, int]
#   - get_result(max_combo: int, total_notes: int) -> GameResult
#   - reset() -> None
#
# Public functions:
# - calculate_rank(accuracy: float) -> str
# - get_base_score(judgement: JudgementType) -> int
#
########################

from __future__ import annotations

import math
from typing import Dict, List

from gameplay_models import GameResult, JudgementResult, JudgementType

BASE_SCORES: Dict[JudgementType, int] = {
    JudgementType.PERFECT: 1000,
    JudgementType.GREAT: 800,
    JudgementType.GOOD: 500,
    JudgementType.MISS: 0,
}

MAX_MULTIPLIER = 2.0
COMBO_STEP = 10
MULTIPLIER_STEP = 0.1

# (minimum accuracy, rank), checked top down.
_RANK_THRESHOLDS = (
    (95.0, "S"),
    (85.0, "A"),
    (70.0, "B"),
    (50.0, "C"),
)


class ComboManager:
    def __init__(self) -> None:
        self._combo = 0
        self._max_combo = 0

    @property
    def combo(self) -> int:
        return self._combo

    @property
    def max_combo(self) -> int:
        return self._max_combo

    @property
    def multiplier(self) -> float:
        return min(MAX_MULTIPLIER, 1.0 + (self._combo // COMBO_STEP) * MULTIPLIER_STEP)

    def register(self, judgement: JudgementType) -> None:
        if JudgementType(judgement) is JudgementType.MISS:
            self._combo = 0
            return
        self._combo += 1
        if self._combo > self._max_combo:
            self._max_combo = self._combo

    def reset(self) -> None:
        self._combo = 0
        self._max_combo = 0


class ScoreCalculator:
    def __init__(self) -> None:
        self._score = 0
        self._judgements: List[JudgementResult] = []

    @property
    def score(self) -> int:
        return self._score

    def add(self, judgement: JudgementResult, combo_multiplier: float) -> int:
        """Record a judgement and return the points it earned."""
        self._judgements.append(judgement)
        base = BASE_SCORES[JudgementType(judgement.type)]
        gained = int(math.floor(base * float(combo_multiplier) + 0.5))
        self._score += gained
        return gained

    def get_counts(self) -> Dict[JudgementType, int]:
        counts = {judgement_type: 0 for judgement_type in JudgementType}
        for judgement in self._judgements:
            counts[JudgementType(judgement.type)] += 1
        return counts

    def get_result(self, max_combo: int, total_notes: int) -> GameResult:
        counts = self.get_counts()
        hit_count = counts[JudgementType.PERFECT] + counts[JudgementType.GREAT] + counts[JudgementType.GOOD]
        accuracy = (hit_count / total_notes) * 100.0 if total_notes > 0 else 0.0

        return GameResult(
            score=self._score,
            max_combo=int(max_combo),
            perfect_count=counts[JudgementType.PERFECT],
            great_count=counts[JudgementType.GREAT],
            good_count=counts[JudgementType.GOOD],
            miss_count=counts[JudgementType.MISS],
            total_notes=int(total_notes),
            accuracy=accuracy,
            rank=calculate_rank(accuracy),
        )

    def reset(self) -> None:
        self._score = 0
        self._judgements.clear()


def calculate_rank(accuracy: float) -> str:
    for minimum, rank in _RANK_THRESHOLDS:
        if float(accuracy) >= minimum:
            return rank
    return "D"


def get_base_score(judgement: JudgementType) -> int:
    return BASE_SCORES[JudgementType(judgement)]


def _run_unit_tests() -> None:
    combo = ComboManager()
    calculator = ScoreCalculator()
    for index in range(10):
        combo.register(JudgementType.PERFECT)
        calculator.add(JudgementResult(JudgementType.PERFECT, 0.0, 0.0, f"n{index}"), combo.multiplier)
    assert combo.combo == 10
    assert abs(combo.multiplier - 1.1) < 1e-9
    assert calculator.score == 9 * 1000 + 1100

    combo.register(JudgementType.MISS)
    assert combo.combo == 0 and combo.max_combo == 10

    for _ in range(500):
        combo.register(JudgementType.GOOD)
    assert combo.multiplier == MAX_MULTIPLIER

    assert calculate_rank(95.0) == "S"
    assert calculate_rank(85.0) == "A"
    assert calculate_rank(49.9) == "D"
    assert calculator.get_result(10, 0).accuracy == 0.0


if __name__ == "__main__":
    _run_unit_tests()
    print("scoring.py: ok")
