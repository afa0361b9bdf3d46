import pytest

from fingering_chart import FINGERING_CHARTS
from gameplay_models import Register
from note_classifier import ACCEPT_CENTS, NoteClassifier


@pytest.mark.parametrize("key", ["roku", "nana", "hachi"])
def test_every_chart_note_classifies_to_itself(key):
    classifier = NoteClassifier(key)
    for note in FINGERING_CHARTS[key]:
        classified = classifier.classify(note.frequency, 0.95)
        assert classified is not None
        assert classified.shinobue_note == note
        assert abs(classified.cent_offset) < 1.0
        assert classified.confidence == 0.95


def test_gate_rejects_far_frequency_but_nearest_still_reports():
    classifier = NoteClassifier("nana")
    assert classifier.classify(440.0, 0.95) is None

    nearest = classifier.find_nearest(440.0)
    assert nearest is not None
    assert nearest.note.western == "B4"
    assert nearest.cent_offset < -ACCEPT_CENTS


def test_signed_cent_offset():
    classifier = NoteClassifier("roku")
    sharp = classifier.classify(880.0 * 2.0 ** (30.0 / 1200.0), 0.9)
    assert sharp.shinobue_note.western == "A5"
    assert sharp.shinobue_note.register is Register.RO
    assert sharp.cent_offset == pytest.approx(30.0)

    flat = classifier.classify(880.0 * 2.0 ** (-30.0 / 1200.0), 0.9)
    assert flat.cent_offset == pytest.approx(-30.0)


@pytest.mark.parametrize("frequency", [0.0, -440.0, float("nan"), float("inf")])
def test_invalid_frequency_returns_none(frequency):
    classifier = NoteClassifier("nana")
    assert classifier.classify(frequency, 0.9) is None
    assert classifier.find_nearest(frequency) is None


def test_set_key_switches_chart():
    classifier = NoteClassifier("nana")
    assert classifier.classify(440.0, 0.9) is None
    classifier.set_key("roku")
    assert classifier.key == "roku"
    classified = classifier.classify(440.0, 0.9)
    assert classified.shinobue_note.name == "筒音"


def test_unknown_key_uses_fallback_chart():
    assert NoteClassifier("unknown").chart() == FINGERING_CHARTS["nana"]
