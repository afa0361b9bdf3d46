# -*- coding: utf-8 -*-
########################
# frequency_math.py
########################
# Purpose:
# - Pure conversions between frequency (Hz), MIDI note numbers, note names and cent offsets.
#
# Design notes:
# - Stateless, no I/O. Safe to call from any frame loop.
# - Degenerate input (zero, negative, non-finite) yields nan or inf instead of raising.
#   Callers guard on the result.
# - Rounding to the nearest semitone rounds halves up (x.5 -> x+1), also for negative values.
#
########################
# Interfaces:
# Public constants:
# - NOTE_NAMES: tuple[str, ...] (12 pitch classes, C based, sharps only)
#
# Public functions:
# - frequency_to_midi(frequency: float, tuning_a4: float = 440.0) -> float
# - midi_to_frequency(midi_note: float, tuning_a4: float = 440.0) -> float
# - midi_to_name(midi_note: float) -> str
# - frequency_to_note_name(frequency: float, tuning_a4: float = 440.0) -> str
# - cent_offset_from_nearest_semitone(frequency: float, tuning_a4: float = 440.0) -> float
# - cents_between(frequency_a: float, frequency_b: float) -> float
#
########################

from __future__ import annotations

import math

NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

A4_MIDI_NOTE = 69


def _log2(value: float) -> float:
    if value > 0.0:
        return math.log2(value)
    if value == 0.0:
        return -math.inf
    return math.nan


def _round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


def frequency_to_midi(frequency: float, tuning_a4: float = 440.0) -> float:
    """A4 (tuning_a4 Hz) maps to MIDI 69. Result may be fractional."""
    if float(tuning_a4) <= 0.0:
        return math.nan
    return A4_MIDI_NOTE + 12.0 * _log2(float(frequency) / float(tuning_a4))


def midi_to_frequency(midi_note: float, tuning_a4: float = 440.0) -> float:
    return float(tuning_a4) * math.pow(2.0, (float(midi_note) - A4_MIDI_NOTE) / 12.0)


def midi_to_name(midi_note: float) -> str:
    """69 -> "A4", 60 -> "C4". Empty string for non-finite input."""
    if not math.isfinite(float(midi_note)):
        return ""
    rounded = _round_half_up(midi_note)
    octave = rounded // 12 - 1
    return f"{NOTE_NAMES[rounded % 12]}{octave}"


def frequency_to_note_name(frequency: float, tuning_a4: float = 440.0) -> str:
    return midi_to_name(frequency_to_midi(frequency, tuning_a4))


def cent_offset_from_nearest_semitone(frequency: float, tuning_a4: float = 440.0) -> float:
    """Deviation from the nearest equal-tempered semitone, in [-50, 50] cents."""
    midi_note = frequency_to_midi(frequency, tuning_a4)
    if not math.isfinite(midi_note):
        return math.nan
    return (midi_note - _round_half_up(midi_note)) * 100.0


def cents_between(frequency_a: float, frequency_b: float) -> float:
    """Positive when frequency_a is sharper than frequency_b."""
    if float(frequency_b) == 0.0:
        return math.nan
    return 1200.0 * _log2(float(frequency_a) / float(frequency_b))


def _run_unit_tests() -> None:
    assert abs(frequency_to_midi(440.0) - 69.0) < 1e-9
    assert abs(frequency_to_midi(880.0) - 81.0) < 1e-9
    assert abs(midi_to_frequency(60) - 261.6256) < 1e-3
    assert midi_to_name(69) == "A4"
    assert midi_to_name(61) == "C#4"
    assert frequency_to_note_name(523.25) == "C5"
    assert abs(cent_offset_from_nearest_semitone(440.0)) < 1e-9
    assert abs(cents_between(880.0, 440.0) - 1200.0) < 1e-9
    assert math.isnan(cents_between(-1.0, 440.0))


if __name__ == "__main__":
    _run_unit_tests()
    print("frequency_math.py: ok")
