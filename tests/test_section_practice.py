import pytest

from fingering_chart import find_chart_note, get_fingering_chart
from gameplay_models import PitchResult, Register
from score_models import create_empty_score, create_note_event, pitch_from_chart_note, update_measure
from section_practice import (
    SectionConfig,
    SectionPracticeSession,
    SectionPracticeStatus,
    extract_section,
)


def _pitch(number):
    return pitch_from_chart_note(find_chart_note(get_fingering_chart("nana"), number, Register.RO))


def _reading(frequency, confidence=0.95):
    return PitchResult(
        frequency=frequency,
        confidence=confidence,
        note_number=71.0,
        note_name="B4",
        cent_offset=0.0,
        timestamp=0.0,
    )


@pytest.fixture
def score():
    score = create_empty_score(title="テスト曲", tempo=120.0, measure_count=3)
    score = update_measure(
        score,
        1,
        [
            create_note_event(type="note", pitch=_pitch(0), start_beat=0.0),
            create_note_event(type="note", pitch=_pitch(1), start_beat=1.0),
            create_note_event(type="rest", duration_type="half", start_beat=2.0),
        ],
    )
    score = update_measure(score, 2, [create_note_event(type="note", pitch=_pitch(2), start_beat=0.0)])
    return update_measure(score, 3, [create_note_event(type="note", pitch=_pitch(3), start_beat=0.0)])


@pytest.fixture
def config():
    return SectionConfig(start_measure=1, end_measure=2, score_title="テスト曲")


def _play_section(session, clock, offset_ms=0.0):
    for game_note in session.notes:
        clock.now_ms = offset_ms + game_note.time_ms
        session.update(_reading(game_note.frequency))


class TestExtractSection:
    def test_measures_are_renumbered_and_tempo_scaled(self, score):
        section = extract_section(score, SectionConfig(start_measure=2, end_measure=3, tempo_scale=0.5))
        assert [measure.number for measure in section.measures] == [1, 2]
        assert section.metadata.tempo == 60.0
        assert section.measures[0].notes[0].pitch == _pitch(2)

    def test_source_score_is_unchanged(self, score):
        extract_section(score, SectionConfig(start_measure=2, end_measure=2, tempo_scale=0.75))
        assert score.metadata.tempo == 120.0
        assert [measure.number for measure in score.measures] == [1, 2, 3]


class TestSectionConfig:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"start_measure": 0, "end_measure": 1},
            {"start_measure": 3, "end_measure": 2},
            {"start_measure": 1, "end_measure": 1, "tempo_scale": 0.0},
            {"start_measure": 1, "end_measure": 1, "loop_count": 0},
        ],
    )
    def test_invalid_values_raise(self, kwargs):
        with pytest.raises(ValueError):
            SectionConfig(**kwargs)


class TestSession:
    def test_initial_state_is_idle(self):
        state = SectionPracticeSession().state()
        assert state.status is SectionPracticeStatus.IDLE
        assert state.result is None

    def test_start_skips_rests(self, score, config, clock):
        session = SectionPracticeSession(clock=clock)
        state = session.start(score, config)
        assert state.status is SectionPracticeStatus.ACTIVE
        assert state.total_notes == 3
        assert state.current_loop == 1
        assert state.total_loops == 1
        assert [note.time_ms for note in session.notes] == [0.0, 500.0, 2000.0]

    def test_in_tune_reading_advances(self, score, config, clock):
        session = SectionPracticeSession(clock=clock)
        session.start(score, config)
        clock.now_ms = 100.0
        state = session.update(_reading(_pitch(0).frequency))
        assert state.current_note_index == 1
        assert state.mistakes == ()
        assert state.accuracy == 100.0

    def test_out_of_tune_reading_is_a_mistake(self, score, config, clock):
        session = SectionPracticeSession(clock=clock)
        session.start(score, config)
        state = session.update(_reading(_pitch(1).frequency))
        assert state.current_note_index == 1
        assert state.mistakes == (0,)
        assert state.accuracy == 0.0

    def test_low_confidence_reading_is_ignored(self, score, config, clock):
        session = SectionPracticeSession(clock=clock)
        session.start(score, config)
        state = session.update(_reading(_pitch(0).frequency, confidence=0.5))
        assert state.current_note_index == 0
        assert state.mistakes == ()

    def test_early_reading_waits_for_the_window(self, score, config, clock):
        session = SectionPracticeSession(clock=clock)
        session.start(score, config)
        clock.now_ms = 250.0
        session.update(_reading(_pitch(0).frequency))
        state = session.update(_reading(_pitch(1).frequency))
        assert state.current_note_index == 1

        clock.now_ms = 350.0
        state = session.update(_reading(_pitch(1).frequency))
        assert state.current_note_index == 2
        assert state.accuracy == 100.0

    def test_late_note_is_a_mistake(self, score, config, clock):
        session = SectionPracticeSession(clock=clock)
        session.start(score, config)
        clock.now_ms = 600.0
        state = session.update(None)
        assert state.mistakes == (0,)
        assert state.current_note_index == 1

    def test_clean_run_finishes(self, score, config, clock):
        session = SectionPracticeSession(clock=clock)
        session.start(score, config)
        _play_section(session, clock)
        clock.now_ms = 3001.0
        state = session.update(None)
        assert state.status is SectionPracticeStatus.FINISHED
        assert state.result.accuracy == 100.0
        assert state.result.mistake_positions == ()
        assert state.result.timestamp > 0

    def test_second_loop_accumulates_mistakes(self, score, clock):
        session = SectionPracticeSession(clock=clock)
        session.start(score, SectionConfig(start_measure=1, end_measure=2, loop_count=2))
        _play_section(session, clock)
        clock.now_ms = 3001.0
        state = session.update(None)
        assert state.status is SectionPracticeStatus.ACTIVE
        assert state.current_loop == 2
        assert state.total_loops == 2
        assert state.current_note_index == 0
        assert state.current_time_ms == 0.0

        clock.now_ms = 6002.0
        state = session.update(None)
        assert state.status is SectionPracticeStatus.FINISHED
        assert state.result.mistake_positions == (0, 1, 2)
        assert state.result.accuracy == 50.0

    def test_gradual_speed_up_rebuilds_the_timeline(self, score, clock):
        session = SectionPracticeSession(clock=clock)
        session.start(
            score,
            SectionConfig(start_measure=1, end_measure=2, tempo_scale=0.5, loop_count=2, gradual_speed_up=True),
        )
        assert [note.time_ms for note in session.notes] == [0.0, 1000.0, 4000.0]

        clock.now_ms = 5501.0
        session.update(None)
        assert session.tempo_scale == pytest.approx(0.6)
        assert session.notes[1].time_ms == pytest.approx(60000.0 / 72.0)

    def test_speed_up_is_capped_at_score_tempo(self, score, clock):
        session = SectionPracticeSession(clock=clock)
        session.start(score, SectionConfig(start_measure=1, end_measure=2, loop_count=2, gradual_speed_up=True))
        clock.now_ms = 3001.0
        session.update(None)
        assert session.tempo_scale == 1.0

    def test_empty_section_finishes_on_first_frame(self, score, clock):
        session = SectionPracticeSession(clock=clock)
        state = session.start(score, SectionConfig(start_measure=5, end_measure=6))
        assert state.total_notes == 0
        state = session.update(None)
        assert state.status is SectionPracticeStatus.FINISHED
        assert state.result.accuracy == 0.0

    def test_stop_and_reset(self, score, config, clock):
        session = SectionPracticeSession(clock=clock)
        session.start(score, config)
        assert session.stop().status is SectionPracticeStatus.IDLE
        assert session.update(_reading(_pitch(0).frequency)).current_note_index == 0

        state = session.reset()
        assert state.status is SectionPracticeStatus.IDLE
        assert state.total_notes == 0
