import pytest

from fingering_chart import get_fingering_chart
from gameplay_models import ClassifiedNote
from long_tone import LongToneSession, LongToneStatus


@pytest.fixture
def target():
    return get_fingering_chart("nana")[6]


@pytest.fixture
def neighbour():
    return get_fingering_chart("nana")[7]


def _hold(session, clock, frames, classified, frame_ms=100.0):
    state = None
    for _ in range(frames):
        clock.advance(frame_ms)
        state = session.process(classified)
    return state


def test_steady_tone_succeeds(target, clock):
    session = LongToneSession(target, duration_ms=2000.0, tolerance_cents=20.0, clock=clock)
    session.start()
    state = _hold(session, clock, 20, ClassifiedNote(shinobue_note=target, cent_offset=-8.0, confidence=0.9))

    assert state.status is LongToneStatus.FINISHED
    assert state.result.stability == 100.0
    assert state.result.average_deviation == 8.0
    assert state.result.max_deviation == 8.0
    assert state.result.success
    assert state.result.timestamp > 0


def test_silence_counts_against_stability(target, clock):
    session = LongToneSession(target, duration_ms=1000.0, tolerance_cents=20.0, clock=clock)
    session.start()
    _hold(session, clock, 4, ClassifiedNote(shinobue_note=target, cent_offset=0.0, confidence=0.9))
    state = _hold(session, clock, 6, None)

    assert state.result.stability == 40.0
    assert not state.result.success


def test_wrong_note_is_out_of_tolerance(target, neighbour, clock):
    session = LongToneSession(target, duration_ms=500.0, tolerance_cents=20.0, clock=clock)
    session.start()
    state = _hold(session, clock, 5, ClassifiedNote(shinobue_note=neighbour, cent_offset=0.0, confidence=0.9))

    assert state.result.stability == 0.0
    assert state.result.max_deviation == pytest.approx(200.0, abs=0.5)


def test_state_while_active(target, clock):
    session = LongToneSession(target, duration_ms=1000.0, clock=clock)
    session.start()
    state = _hold(session, clock, 3, ClassifiedNote(shinobue_note=target, cent_offset=5.0, confidence=0.9))
    assert state.status is LongToneStatus.ACTIVE
    assert state.elapsed_ms == 300.0
    assert state.in_tolerance_ms == 300.0
    assert state.current_deviation == pytest.approx(5.0)
    assert len(state.deviation_history) == 3
    assert state.result is None


def test_process_is_ignored_unless_active(target, clock):
    session = LongToneSession(target, duration_ms=1000.0, clock=clock)
    state = session.process(ClassifiedNote(shinobue_note=target, cent_offset=0.0, confidence=0.9))
    assert state.status is LongToneStatus.IDLE
    assert state.deviation_history == ()

    session.start()
    session.stop()
    assert session.status is LongToneStatus.IDLE


def test_non_positive_duration_raises(target):
    with pytest.raises(ValueError):
        LongToneSession(target, duration_ms=0.0)
