import numpy as np
import pytest

from fingering_chart import find_chart_note, get_fingering_chart
from gameplay_models import ClassifiedNote, Register
from scale_practice import (
    ScaleConfig,
    ScalePattern,
    ScalePracticeSession,
    ScalePracticeStatus,
    generate_scale_sequence,
)


@pytest.fixture
def chart():
    nana = get_fingering_chart("nana")
    return [find_chart_note(nana, number, Register.RO) for number in (1, 2, 3)]


def _classified(note, cent_offset=0.0):
    return ClassifiedNote(shinobue_note=note, cent_offset=cent_offset, confidence=0.95)


class TestSequence:
    def test_ascending_keeps_chart_order(self, chart):
        assert [note.name for note in generate_scale_sequence(chart, ScaleConfig())] == ["一", "二", "三"]

    def test_descending_reverses(self, chart):
        sequence = generate_scale_sequence(chart, ScaleConfig(pattern=ScalePattern.DESCENDING))
        assert sequence[0].name == "三"

    def test_skip_takes_every_other_note(self, chart):
        sequence = generate_scale_sequence(chart, ScaleConfig(pattern=ScalePattern.SKIP))
        assert [note.name for note in sequence] == ["一", "三"]

    def test_random_is_a_seeded_permutation(self, chart):
        config = ScaleConfig(pattern=ScalePattern.RANDOM)
        first = generate_scale_sequence(chart, config, np.random.default_rng(3))
        second = generate_scale_sequence(chart, config, np.random.default_rng(3))
        assert first == second
        assert sorted(note.frequency for note in first) == sorted(note.frequency for note in chart)

    def test_register_filter(self):
        nana = get_fingering_chart("nana")
        sequence = generate_scale_sequence(nana, ScaleConfig(register_filter=Register.KAN))
        assert len(sequence) == 7
        assert all(note.register is Register.KAN for note in sequence)

    def test_empty_filter_falls_back_to_whole_chart(self, chart):
        sequence = generate_scale_sequence(chart, ScaleConfig(register_filter=Register.DAIKAN))
        assert sequence == chart


class TestSession:
    def test_initial_state_is_idle(self):
        state = ScalePracticeSession().state()
        assert state.status is ScalePracticeStatus.IDLE
        assert state.note_sequence == ()

    def test_start_builds_sequence(self, chart, clock):
        session = ScalePracticeSession(clock=clock)
        state = session.start(chart, ScaleConfig())
        assert state.status is ScalePracticeStatus.ACTIVE
        assert len(state.note_sequence) == 3
        assert state.note_sequence[0].name == "一"

    def test_correct_note(self, chart, clock):
        session = ScalePracticeSession(clock=clock)
        session.start(chart, ScaleConfig())
        state = session.process(_classified(chart[0]))
        assert len(state.note_results) == 1
        assert state.note_results[0].is_correct
        assert state.note_results[0].actual_note == "一"
        assert state.current_index == 1

    def test_wrong_note_records_cent_offset(self, chart, clock):
        session = ScalePracticeSession(clock=clock)
        session.start(chart, ScaleConfig())
        state = session.process(_classified(chart[1]))
        note_result = state.note_results[0]
        assert not note_result.is_correct
        assert note_result.expected_note == "一"
        assert note_result.actual_note == "二"
        assert note_result.cent_offset == pytest.approx(100.0, abs=0.2)

    def test_silence_is_incorrect(self, chart, clock):
        session = ScalePracticeSession(clock=clock)
        session.start(chart, ScaleConfig())
        state = session.process(None)
        assert state.note_results[0].is_correct is False
        assert state.note_results[0].actual_note is None

    def test_all_notes_finish_with_result(self, chart, clock):
        session = ScalePracticeSession(clock=clock)
        session.start(chart, ScaleConfig())
        for note in chart:
            clock.advance(400.0)
            state = session.process(_classified(note))
        assert state.status is ScalePracticeStatus.FINISHED
        assert state.result is not None
        assert state.result.accuracy == 100.0
        assert len(state.result.note_results) == 3
        assert state.result.average_response_time_ms == 400

    def test_partial_accuracy_is_rounded(self, chart, clock):
        session = ScalePracticeSession(clock=clock)
        session.start(chart, ScaleConfig())
        session.process(_classified(chart[0]))
        session.process(None)
        state = session.process(None)
        assert state.result.accuracy == 33.3

    def test_process_after_finish_is_ignored(self, chart, clock):
        session = ScalePracticeSession(clock=clock)
        session.start(chart, ScaleConfig(pattern=ScalePattern.SKIP))
        session.process(_classified(chart[0]))
        session.process(_classified(chart[2]))
        state = session.process(_classified(chart[1]))
        assert len(state.note_results) == 2

    def test_stop_and_reset(self, chart, clock):
        session = ScalePracticeSession(clock=clock)
        session.start(chart, ScaleConfig())
        assert session.stop().status is ScalePracticeStatus.IDLE
        assert session.process(None).note_results == ()

        state = session.reset()
        assert state.status is ScalePracticeStatus.IDLE
        assert state.note_sequence == ()
