# -*- coding: utf-8 -*-
########################
# pitch_tracker.py
########################
# Purpose:
# - Per-frame pitch pipeline used by the tuner and practice screens:
#   noise gate -> YIN detection -> confidence gate -> median smoothing -> note classification.
# - Keeps a bounded history of accepted readings for pitch graphs.
#
# Design notes:
# - Owns its own PitchDetector and NoteClassifier instances (one tracker per consumer).
# - Every rejection path returns a TrackerFrame with pitch_result None; nothing raises.
# - Smoothing only sees frequencies that passed the confidence gate. The raw history is
#   bounded to twice the median window.
# - An optional LatestPitchReading receives each accepted, smoothed reading.
#
########################
# Interfaces:
# Public dataclasses:
# - TrackerFrame(pitch_result, classified_note, volume_db, raw_frequency, raw_confidence,
#                noise_gate_active, below_confidence)
#
# Public classes:
# - class PitchTracker
#   - __init__(detector, classifier, *, noise_gate_db=-50.0, confidence_threshold=0.5,
#              median_window=5, history_max=600, feed=None)
#   - from_config(app_config, *, feed=None, clock=None) -> PitchTracker (classmethod)
#   - process(buffer) -> TrackerFrame
#   - pitch_history() -> list[PitchResult]
#   - reset() -> None
#
########################

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import logging
from typing import Callable, Deque, List, Optional

from gameplay_models import ClassifiedNote, PitchResult
from note_classifier import NoteClassifier
from pitch_detector import PitchDetector, median_filter, rms_decibels
from pitch_feed import LatestPitchReading

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackerFrame:
    pitch_result: Optional[PitchResult]
    classified_note: Optional[ClassifiedNote]
    volume_db: float
    raw_frequency: Optional[float] = None
    raw_confidence: Optional[float] = None
    noise_gate_active: bool = False
    below_confidence: bool = False


class PitchTracker:
    def __init__(
        self,
        detector: PitchDetector,
        classifier: NoteClassifier,
        *,
        noise_gate_db: float = -50.0,
        confidence_threshold: float = 0.5,
        median_window: int = 5,
        history_max: int = 600,
        feed: Optional[LatestPitchReading] = None,
    ) -> None:
        self._detector = detector
        self._classifier = classifier
        self._noise_gate_db = float(noise_gate_db)
        self._confidence_threshold = float(confidence_threshold)
        self._median_window = max(1, int(median_window))
        self._feed = feed
        self._raw_frequencies: Deque[float] = deque(maxlen=self._median_window * 2)
        self._pitch_history: Deque[PitchResult] = deque(maxlen=max(1, int(history_max)))

    @classmethod
    def from_config(
        cls,
        app_config,
        *,
        feed: Optional[LatestPitchReading] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> "PitchTracker":
        practice = app_config.practice
        return cls(
            PitchDetector.from_config(app_config.pitch, clock=clock),
            NoteClassifier(practice.shinobue_key),
            noise_gate_db=practice.noise_gate_db,
            confidence_threshold=practice.pitch_confidence_threshold,
            median_window=practice.median_window,
            history_max=practice.history_max,
            feed=feed,
        )

    @property
    def detector(self) -> PitchDetector:
        return self._detector

    @property
    def classifier(self) -> NoteClassifier:
        return self._classifier

    def pitch_history(self) -> List[PitchResult]:
        return list(self._pitch_history)

    def reset(self) -> None:
        self._raw_frequencies.clear()
        self._pitch_history.clear()
        logger.debug("Pitch tracker reset (key=%s)", self._classifier.key)
        if self._feed is not None:
            self._feed.clear()

    def process(self, buffer) -> TrackerFrame:
        volume_db = rms_decibels(buffer)
        if volume_db < self._noise_gate_db:
            self._publish(None)
            return TrackerFrame(
                pitch_result=None,
                classified_note=None,
                volume_db=volume_db,
                noise_gate_active=True,
            )

        raw_result = self._detector.detect(buffer)
        if raw_result is None:
            self._publish(None)
            return TrackerFrame(pitch_result=None, classified_note=None, volume_db=volume_db)

        if raw_result.confidence < self._confidence_threshold:
            self._publish(None)
            return TrackerFrame(
                pitch_result=None,
                classified_note=None,
                volume_db=volume_db,
                raw_frequency=raw_result.frequency,
                raw_confidence=raw_result.confidence,
                below_confidence=True,
            )

        self._raw_frequencies.append(raw_result.frequency)
        smoothed_frequency = median_filter(list(self._raw_frequencies), self._median_window)
        pitch_result = raw_result.with_frequency(smoothed_frequency)
        classified_note = self._classifier.classify(smoothed_frequency, raw_result.confidence)

        self._pitch_history.append(pitch_result)
        self._publish(pitch_result)

        return TrackerFrame(
            pitch_result=pitch_result,
            classified_note=classified_note,
            volume_db=volume_db,
            raw_frequency=raw_result.frequency,
            raw_confidence=raw_result.confidence,
        )

    def _publish(self, reading: Optional[PitchResult]) -> None:
        if self._feed is not None:
            self._feed.publish(reading)
