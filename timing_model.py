# -*- coding: utf-8 -*-
########################
# timing_model.py
########################
# Purpose:
# - Single source of truth for session time in gameplay.
# - Converts a monotonic wall clock into elapsed session time, with pause compensation
#   and a configurable AV (input latency) offset.
#
# Design notes:
# - Gameplay code must use TimingModel.elapsed_ms.
# - No timer thread. Pausing only changes how the next reading is computed.
# - resume() shifts the start time by the paused duration so note timings stay aligned.
# - The clock is injected (milliseconds) so tests and simulations run deterministically.
#
########################
# Interfaces:
# Public dataclasses:
# - TimingSnapshot(wall_time_ms: float, elapsed_ms: float, av_offset_ms: float, is_running: bool, is_paused: bool)
#
# Public functions:
# - monotonic_ms() -> float
#
# Public classes:
# - class TimingModel
#   - __init__(clock: Optional[Callable[[], float]] = None, av_offset_ms: float = 0.0)
#   - start() -> None
#   - pause() -> None
#   - resume() -> None
#   - elapsed_ms() -> float
#   - is_running -> bool
#   - is_paused -> bool
#   - av_offset_ms() -> float
#   - set_av_offset_ms(av_offset_ms: float) -> None
#   - snapshot() -> TimingSnapshot
# - class ManualClock
#   - __call__() -> float
#   - advance(delta_ms: float) -> float
#
# Inputs:
# - Wall clock readings in ms (time.perf_counter by default).
# - av_offset_ms from configuration. Positive delays the session time (compensates input latency).
#
# Outputs:
# - elapsed_ms used by GameEngine and LongToneSession.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Callable, Optional


def monotonic_ms() -> float:
    return time.perf_counter() * 1000.0


@dataclass(frozen=True)
class TimingSnapshot:
    wall_time_ms: float
    elapsed_ms: float
    av_offset_ms: float
    is_running: bool
    is_paused: bool


class TimingModel:
    def __init__(self, clock: Optional[Callable[[], float]] = None, av_offset_ms: float = 0.0) -> None:
        self._clock: Callable[[], float] = clock if clock is not None else monotonic_ms
        self._av_offset_ms = float(av_offset_ms)
        self._start_ms = 0.0
        self._pause_ms = 0.0
        self._is_running = False
        self._is_paused = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    def now_ms(self) -> float:
        return float(self._clock())

    def start(self) -> None:
        self._start_ms = self.now_ms()
        self._pause_ms = 0.0
        self._is_running = True
        self._is_paused = False

    def pause(self) -> None:
        if not self._is_running or self._is_paused:
            return
        self._pause_ms = self.now_ms()
        self._is_paused = True

    def resume(self) -> None:
        if not self._is_paused:
            return
        self._start_ms += self.now_ms() - self._pause_ms
        self._is_paused = False

    def elapsed_ms(self) -> float:
        if not self._is_running:
            return 0.0
        reference_ms = self._pause_ms if self._is_paused else self.now_ms()
        return (reference_ms - self._start_ms) - self._av_offset_ms

    def av_offset_ms(self) -> float:
        return self._av_offset_ms

    def set_av_offset_ms(self, av_offset_ms: float) -> None:
        self._av_offset_ms = float(av_offset_ms)

    def snapshot(self) -> TimingSnapshot:
        return TimingSnapshot(
            wall_time_ms=self.now_ms(),
            elapsed_ms=self.elapsed_ms(),
            av_offset_ms=self._av_offset_ms,
            is_running=self._is_running,
            is_paused=self._is_paused,
        )


class ManualClock:
    """Settable millisecond clock for simulations and tests."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self.now_ms = float(start_ms)

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, delta_ms: float) -> float:
        self.now_ms += float(delta_ms)
        return self.now_ms


def _run_unit_tests() -> None:
    clock = ManualClock(1000.0)
    model = TimingModel(clock)
    assert model.elapsed_ms() == 0.0

    model.start()
    clock.advance(250.0)
    assert model.elapsed_ms() == 250.0

    model.pause()
    clock.advance(5000.0)
    assert model.elapsed_ms() == 250.0

    model.resume()
    clock.advance(50.0)
    assert model.elapsed_ms() == 300.0

    model.set_av_offset_ms(20.0)
    assert model.snapshot().elapsed_ms == 280.0


if __name__ == "__main__":
    _run_unit_tests()
    print("timing_model.py: ok")
