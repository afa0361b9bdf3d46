import pytest

from fingering_chart import (
    DEFAULT_SHINOBUE_KEY,
    FINGERING_CHART_HACHI,
    FINGERING_CHART_NANA,
    FINGERING_CHART_ROKU,
    FINGERING_CHARTS,
    SHINOBUE_KEYS,
    find_chart_note,
    get_fingering_chart,
    shinobue_display_name,
)
from frequency_math import cents_between
from gameplay_models import Register


@pytest.mark.parametrize("key", ["roku", "nana", "hachi"])
def test_chart_shape(key):
    chart = FINGERING_CHARTS[key]
    registers = [note.register for note in chart]
    assert len(chart) == 19
    assert registers.count(Register.RO) == 8
    assert registers.count(Register.KAN) == 7
    assert registers.count(Register.DAIKAN) == 4
    assert all(len(note.fingering) == 7 for note in chart)


@pytest.mark.parametrize("key", ["roku", "nana", "hachi"])
def test_chart_frequencies_strictly_ascending(key):
    chart = FINGERING_CHARTS[key]
    for previous, current in zip(chart, chart[1:]):
        assert current.frequency > previous.frequency


@pytest.mark.parametrize("key", ["roku", "nana", "hachi"])
def test_kan_is_an_octave_above_ro(key):
    chart = FINGERING_CHARTS[key]
    for number in range(1, 8):
        ro = find_chart_note(chart, number, Register.RO)
        kan = find_chart_note(chart, number, Register.KAN)
        assert cents_between(kan.frequency, ro.frequency) == pytest.approx(1200.0, abs=2.0)


def test_tsutsune_is_all_holes_closed():
    for chart in FINGERING_CHARTS.values():
        tsutsune = chart[0]
        assert tsutsune.number == 0
        assert tsutsune.register is Register.RO
        assert tsutsune.name == "筒音"
        assert all(tsutsune.fingering)


def test_base_notes_per_key():
    assert FINGERING_CHART_ROKU[0].western == "A4"
    assert FINGERING_CHART_ROKU[0].frequency == pytest.approx(440.0)
    assert FINGERING_CHART_NANA[0].western == "B4"
    assert FINGERING_CHART_HACHI[0].western == "C5"
    for key, info in SHINOBUE_KEYS.items():
        chart = FINGERING_CHARTS[key]
        assert info.lowest == pytest.approx(chart[0].frequency)
        assert info.highest == pytest.approx(chart[-1].frequency)


def test_unknown_key_falls_back_to_nana():
    assert get_fingering_chart("shaku") is FINGERING_CHART_NANA
    assert get_fingering_chart("") is FINGERING_CHART_NANA


def test_key_lookup_is_case_insensitive():
    assert get_fingering_chart(" ROKU ") is FINGERING_CHART_ROKU


def test_default_key_is_a_known_chart():
    assert DEFAULT_SHINOBUE_KEY in FINGERING_CHARTS


def test_display_names():
    assert shinobue_display_name(Register.RO, 0) == "筒音"
    assert shinobue_display_name(Register.RO, 6) == "六"
    assert shinobue_display_name(Register.KAN, 3) == "3"
    assert shinobue_display_name(Register.DAIKAN, 1) == "大1"


def test_find_chart_note_missing_returns_none():
    assert find_chart_note(FINGERING_CHART_NANA, 5, Register.DAIKAN) is None
