# -*- coding: utf-8 -*-
########################
# pitch_detector.py
########################
# Purpose:
# - Fundamental frequency estimation on fixed-size time-domain buffers using the YIN method.
#   Reference: de Cheveigne & Kawahara (2002), "YIN, a fundamental frequency estimator
#   for speech and music".
# - Small helpers used around the detector: median smoothing and RMS level in dB.
#
# Design notes:
# - "No pitch" (silence, noise, out-of-band) is returned as None, never raised.
#   A frequency band that collapses the lag range also returns None.
# - Detection only reads the buffer. Nothing is retained between calls.
# - Samples past the end of a short buffer count as 0.
# - A buffer holding NaN or inf in the analysed span gives None.
# - The CMNDF is indexed over the searched lag range only: index i maps to lag min_lag + i.
#
########################
# Interfaces:
# Public classes:
# - class PitchDetector
#   - __init__(*, sample_rate=44100, buffer_size=2048, threshold=0.15, min_frequency=400.0,
#              max_frequency=4000.0, tuning_a4=440.0, clock=None)
#   - from_config(pitch_config) -> PitchDetector (classmethod)
#   - lag_range() -> tuple[int, int]
#   - detect(buffer) -> Optional[PitchResult]
#
# Public functions:
# - median_filter(values: Sequence[float], window_size: int) -> float
# - rms_decibels(buffer) -> float
#
# Inputs:
# - Real-valued samples in approximately [-1, 1] (list, tuple or numpy array).
#
# Outputs:
# - gameplay_models.PitchResult or None.
#
########################

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

import frequency_math
from gameplay_models import PitchResult

logger = logging.getLogger(__name__)

# Above this CMNDF minimum there is no usable periodicity at all.
_NO_PITCH_CMNDF = 0.5
_PARABOLA_EPSILON = 1e-10


def _default_clock_ms() -> float:
    return time.perf_counter() * 1000.0


class PitchDetector:
    def __init__(
        self,
        *,
        sample_rate: int = 44100,
        buffer_size: int = 2048,
        threshold: float = 0.15,
        min_frequency: float = 400.0,
        max_frequency: float = 4000.0,
        tuning_a4: float = 440.0,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._sample_rate = int(sample_rate)
        self._buffer_size = int(buffer_size)
        self._threshold = float(threshold)
        self._min_frequency = float(min_frequency)
        self._max_frequency = float(max_frequency)
        self._tuning_a4 = float(tuning_a4)
        self._clock: Callable[[], float] = clock if clock is not None else _default_clock_ms
        self._reported_empty_band = False

    @classmethod
    def from_config(cls, pitch_config, clock: Optional[Callable[[], float]] = None) -> "PitchDetector":
        return cls(
            sample_rate=int(pitch_config.sample_rate),
            buffer_size=int(pitch_config.buffer_size),
            threshold=float(pitch_config.threshold),
            min_frequency=float(pitch_config.min_frequency),
            max_frequency=float(pitch_config.max_frequency),
            tuning_a4=float(pitch_config.tuning_a4),
            clock=clock,
        )

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @property
    def tuning_a4(self) -> float:
        return self._tuning_a4

    def lag_range(self) -> Tuple[int, int]:
        half_size = self._buffer_size // 2
        if self._max_frequency <= 0.0 or self._min_frequency <= 0.0:
            return (0, 0)
        min_lag = int(math.floor(self._sample_rate / self._max_frequency))
        max_lag = min(half_size, int(math.floor(self._sample_rate / self._min_frequency)))
        return (min_lag, max_lag)

    def detect(self, buffer) -> Optional[PitchResult]:
        min_lag, max_lag = self.lag_range()
        if max_lag <= min_lag:
            if not self._reported_empty_band:
                logger.debug(
                    "Empty lag range for band %.1f-%.1f Hz at %d Hz (lags %d..%d)",
                    self._min_frequency,
                    self._max_frequency,
                    self._sample_rate,
                    min_lag,
                    max_lag,
                )
                self._reported_empty_band = True
            return None

        half_size = self._buffer_size // 2
        samples = self._prepare_samples(buffer, half_size + max_lag)
        if not np.isfinite(samples).all():
            return None

        diff = self._difference_function(samples, half_size, min_lag, max_lag)
        cmndf = self._cumulative_mean_normalized_difference(diff)

        lag = self._absolute_threshold(cmndf, min_lag)
        if lag is None:
            return None

        refined_lag = self._parabolic_interpolation(cmndf, lag, min_lag)
        if not math.isfinite(refined_lag) or refined_lag <= 0.0:
            return None

        frequency = self._sample_rate / refined_lag
        confidence = 1.0 - float(cmndf[lag - min_lag])

        if frequency < self._min_frequency or frequency > self._max_frequency:
            return None

        note_number = frequency_math.frequency_to_midi(frequency, self._tuning_a4)
        return PitchResult(
            frequency=float(frequency),
            confidence=max(0.0, min(1.0, confidence)),
            note_number=float(note_number),
            note_name=frequency_math.midi_to_name(note_number),
            cent_offset=float(frequency_math.cent_offset_from_nearest_semitone(frequency, self._tuning_a4)),
            timestamp=float(self._clock()),
        )

    @staticmethod
    def _prepare_samples(buffer, needed_length: int) -> np.ndarray:
        samples = np.asarray(buffer, dtype=np.float64).ravel()
        if samples.shape[0] >= needed_length:
            return samples[:needed_length]
        padded = np.zeros(needed_length, dtype=np.float64)
        padded[: samples.shape[0]] = samples
        return padded

    @staticmethod
    def _difference_function(samples: np.ndarray, half_size: int, min_lag: int, max_lag: int) -> np.ndarray:
        # d(tau) = sum_j (x[j] - x[j + tau])^2 for tau in [min_lag, max_lag]
        reference = samples[:half_size]
        frames = np.lib.stride_tricks.sliding_window_view(samples, half_size)[min_lag : max_lag + 1]
        deltas = reference[np.newaxis, :] - frames
        return np.einsum("ij,ij->i", deltas, deltas)

    @staticmethod
    def _cumulative_mean_normalized_difference(diff: np.ndarray) -> np.ndarray:
        # d'(0) = 1, d'(i) = d(i) * i / sum(d[1..i])
        cmndf = np.ones(diff.shape[0], dtype=np.float64)
        if diff.shape[0] < 2:
            return cmndf
        running_sum = np.cumsum(diff[1:])
        weighted = diff[1:] * np.arange(1, diff.shape[0], dtype=np.float64)
        np.divide(weighted, running_sum, out=cmndf[1:], where=running_sum != 0.0)
        return cmndf

    def _absolute_threshold(self, cmndf: np.ndarray, min_lag: int) -> Optional[int]:
        length = int(cmndf.shape[0])

        below = np.flatnonzero(cmndf[1 : length - 1] < self._threshold)
        if below.size > 0:
            index = int(below[0]) + 1
            while index + 1 < length and cmndf[index + 1] < cmndf[index]:
                index += 1
            return index + min_lag

        min_index = int(np.argmin(cmndf))
        if float(cmndf[min_index]) > _NO_PITCH_CMNDF:
            return None
        return min_index + min_lag

    @staticmethod
    def _parabolic_interpolation(cmndf: np.ndarray, lag: int, min_lag: int) -> float:
        index = lag - min_lag
        length = int(cmndf.shape[0])
        if index <= 0 or index >= length - 1:
            return float(lag)

        s0 = float(cmndf[index - 1])
        s1 = float(cmndf[index])
        s2 = float(cmndf[index + 1])

        denominator = 2.0 * s1 - s2 - s0
        if abs(denominator) < _PARABOLA_EPSILON:
            return float(lag)
        return float(lag) + (s2 - s0) / (2.0 * denominator)


def median_filter(values: Sequence[float], window_size: int) -> float:
    """Median of the last window_size values (all values when fewer). 0 for no values."""
    if len(values) == 0:
        return 0.0
    window = list(values)
    if int(window_size) > 0 and len(window) >= int(window_size):
        window = window[-int(window_size) :]
    ordered = sorted(float(value) for value in window)
    return ordered[len(ordered) // 2]


def rms_decibels(buffer) -> float:
    samples = np.asarray(buffer, dtype=np.float64)
    if samples.size == 0:
        return -math.inf
    rms = float(np.sqrt(np.mean(samples * samples)))
    if rms <= 0.0:
        return -math.inf
    return 20.0 * math.log10(rms)


def _run_unit_tests() -> None:
    sample_rate = 44100
    buffer_size = 2048
    detector = PitchDetector(sample_rate=sample_rate, buffer_size=buffer_size, clock=lambda: 0.0)

    t = np.arange(buffer_size) / sample_rate
    result = detector.detect(0.8 * np.sin(2.0 * np.pi * 440.0 * t))
    assert result is not None
    assert abs(result.frequency - 440.0) < 4.4
    assert result.note_name == "A4"
    assert result.confidence > 0.8

    assert detector.detect(np.zeros(buffer_size)) is None
    assert PitchDetector(min_frequency=4000.0, max_frequency=4000.0).detect(np.zeros(buffer_size)) is None

    assert median_filter([1, 3, 2, 5, 4], 5) == 3
    assert median_filter([], 3) == 0
    assert rms_decibels([0.0, 0.0]) == -math.inf


if __name__ == "__main__":
    _run_unit_tests()
    print("pitch_detector.py: ok")
