# -*- coding: utf-8 -*-
########################
# pitch_feed.py
########################
# Purpose:
# - Hand-off point between the audio-processing context and the frame loop.
# - Holds only the most recent pitch reading (latest value wins).
#
# Design notes:
# - Single slot, overwritten on every publish. Not a queue: no backpressure and no buildup.
#   Readings overwritten before anyone looked at them are counted as dropped.
# - Guarded by a threading.Lock so the audio callback thread and the frame loop can share it.
# - None is a valid reading ("nothing detected right now").
#
########################
# Interfaces:
# Public classes:
# - class LatestPitchReading
#   - publish(reading: Optional[PitchResult]) -> None
#   - latest() -> Optional[PitchResult]
#   - take() -> Optional[PitchResult]
#   - clear() -> None
#   - dropped_count -> int
#   - publish_count -> int
#
########################

from __future__ import annotations

import threading
from typing import Optional

from gameplay_models import PitchResult


class LatestPitchReading:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reading: Optional[PitchResult] = None
        self._unread = False
        self._dropped_count = 0
        self._publish_count = 0

    def publish(self, reading: Optional[PitchResult]) -> None:
        with self._lock:
            if self._unread:
                self._dropped_count += 1
            self._reading = reading
            self._unread = True
            self._publish_count += 1

    def latest(self) -> Optional[PitchResult]:
        """Peek at the most recent reading. The reading stays in place for later frames."""
        with self._lock:
            self._unread = False
            return self._reading

    def take(self) -> Optional[PitchResult]:
        with self._lock:
            reading = self._reading
            self._reading = None
            self._unread = False
            return reading

    def clear(self) -> None:
        with self._lock:
            self._reading = None
            self._unread = False

    @property
    def dropped_count(self) -> int:
        with self._lock:
            return self._dropped_count

    @property
    def publish_count(self) -> int:
        with self._lock:
            return self._publish_count


def _run_unit_tests() -> None:
    feed = LatestPitchReading()
    assert feed.latest() is None

    first = PitchResult(frequency=440.0, confidence=0.9, note_number=69.0, note_name="A4", cent_offset=0.0, timestamp=0.0)
    second = first.with_frequency(880.0)
    feed.publish(first)
    feed.publish(second)
    assert feed.dropped_count == 1
    assert feed.latest() is second
    assert feed.latest() is second
    assert feed.take() is second
    assert feed.latest() is None


if __name__ == "__main__":
    _run_unit_tests()
    print("pitch_feed.py: ok")
