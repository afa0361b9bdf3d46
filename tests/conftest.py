import numpy as np
import pytest

from score_models import reset_note_id_counter
from timing_model import ManualClock


def generate_sine_wave(freq_hz: float, sample_count: int, sr: int = 44100, amplitude: float = 0.8) -> np.ndarray:
    """Generates a pure sine wave of exactly sample_count samples."""
    t = np.arange(sample_count) / sr
    return (amplitude * np.sin(2 * np.pi * freq_hz * t)).astype(np.float32)


def generate_silence(sample_count: int) -> np.ndarray:
    return np.zeros(sample_count, dtype=np.float32)


def generate_noise(sample_count: int, amplitude: float = 0.5, seed: int = 1234) -> np.ndarray:
    """Generates seeded white noise in [-amplitude, amplitude]."""
    rng = np.random.default_rng(seed)
    return (rng.uniform(-1.0, 1.0, sample_count) * amplitude).astype(np.float32)


@pytest.fixture
def sine():
    return generate_sine_wave


@pytest.fixture
def silence():
    return generate_silence


@pytest.fixture
def noise():
    return generate_noise


@pytest.fixture
def clock():
    return ManualClock(0.0)


@pytest.fixture(autouse=True)
def _fresh_note_ids():
    reset_note_id_counter()
    yield
