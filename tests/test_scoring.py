import pytest

from gameplay_models import JudgementResult, JudgementType
from scoring import (
    BASE_SCORES,
    MAX_MULTIPLIER,
    ComboManager,
    ScoreCalculator,
    calculate_rank,
    get_base_score,
)


def _judgement(judgement_type, note_id="n"):
    return JudgementResult(type=judgement_type, timing_delta=0.0, pitch_delta=0.0, note_id=note_id)


def _play(combo, calculator, judgement_type, note_id="n"):
    combo.register(judgement_type)
    return calculator.add(_judgement(judgement_type, note_id), combo.multiplier)


def test_ten_perfects():
    combo = ComboManager()
    calculator = ScoreCalculator()
    for index in range(10):
        _play(combo, calculator, JudgementType.PERFECT, f"n{index}")
    assert combo.combo == 10
    assert combo.multiplier == pytest.approx(1.1)
    assert calculator.score == 10100


def test_miss_resets_combo_but_keeps_max():
    combo = ComboManager()
    for _ in range(7):
        combo.register(JudgementType.GREAT)
    combo.register(JudgementType.MISS)
    assert combo.combo == 0
    assert combo.max_combo == 7
    assert combo.multiplier == 1.0


def test_multiplier_is_capped():
    combo = ComboManager()
    for _ in range(250):
        combo.register(JudgementType.GOOD)
    assert combo.multiplier == MAX_MULTIPLIER


def test_points_scale_with_multiplier():
    calculator = ScoreCalculator()
    assert calculator.add(_judgement(JudgementType.GREAT), 1.1) == 880
    assert calculator.add(_judgement(JudgementType.GOOD), 1.3) == 650
    assert calculator.add(_judgement(JudgementType.MISS), 2.0) == 0
    assert calculator.score == 1530


def test_result_counts_and_accuracy():
    combo = ComboManager()
    calculator = ScoreCalculator()
    for judgement_type in (JudgementType.PERFECT, JudgementType.GREAT, JudgementType.GOOD, JudgementType.MISS):
        _play(combo, calculator, judgement_type)
    result = calculator.get_result(combo.max_combo, total_notes=4)
    assert result.perfect_count == 1
    assert result.great_count == 1
    assert result.good_count == 1
    assert result.miss_count == 1
    assert result.accuracy == pytest.approx(75.0)
    assert result.rank == "B"
    assert result.max_combo == 3


def test_zero_notes_gives_zero_accuracy():
    result = ScoreCalculator().get_result(0, 0)
    assert result.accuracy == 0.0
    assert result.rank == "D"


def test_reset():
    calculator = ScoreCalculator()
    calculator.add(_judgement(JudgementType.PERFECT), 1.0)
    calculator.reset()
    assert calculator.score == 0
    assert calculator.get_counts()[JudgementType.PERFECT] == 0


@pytest.mark.parametrize(
    "accuracy, rank",
    [(100.0, "S"), (95.0, "S"), (94.9, "A"), (85.0, "A"), (70.0, "B"), (50.0, "C"), (49.9, "D"), (0.0, "D")],
)
def test_rank_boundaries(accuracy, rank):
    assert calculate_rank(accuracy) == rank


def test_base_scores():
    assert get_base_score(JudgementType.PERFECT) == 1000
    assert get_base_score(JudgementType.GREAT) == 800
    assert get_base_score(JudgementType.GOOD) == 500
    assert BASE_SCORES[JudgementType.MISS] == 0
