# -*- coding: utf-8 -*-
########################
# fingering_chart.py
########################
# Purpose:
# - Built-in fingering charts for the three supported shinobue keys (roku, nana, hachi).
# - Display names for the ro / kan / daikan registers.
#
# Design notes:
# - Charts are immutable tuples of ShinobueNote, ordered by strictly ascending frequency.
# - Each chart holds 8 ro notes (tsutsune, the all-closed open tube note, plus 1..7),
#   7 kan notes and 4 daikan notes. Invariants are checked by the test suite, not at runtime.
# - Unknown keys fall back to the nana chart.
#
########################
# Interfaces:
# Public dataclasses:
# - ShinobueKey(name: str, base_note: str, base_frequency: float, lowest: float, highest: float)
#
# Public constants:
# - FINGERING_CHART_ROKU, FINGERING_CHART_NANA, FINGERING_CHART_HACHI: tuple[ShinobueNote, ...]
# - FINGERING_CHARTS: dict[str, tuple[ShinobueNote, ...]]
# - SHINOBUE_KEYS: dict[str, ShinobueKey]
# - DEFAULT_SHINOBUE_KEY: str
# - FALLBACK_CHART_KEY: str
#
# Public functions:
# - get_fingering_chart(key: str) -> tuple[ShinobueNote, ...]
# - shinobue_display_name(register: Register, number: int) -> str
# - find_chart_note(chart, number: int, register: Register) -> Optional[ShinobueNote]
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from gameplay_models import Register, ShinobueNote

_RO_NAMES = ("筒音", "一", "二", "三", "四", "五", "六", "七")

_C = True
_O = False

# Same fingerings for ro and kan; kan is overblown.
_BASE_FINGERINGS: Tuple[Tuple[bool, ...], ...] = (
    (_C, _C, _C, _C, _C, _C, _C),
    (_C, _C, _C, _C, _C, _C, _O),
    (_C, _C, _C, _C, _C, _O, _O),
    (_C, _C, _C, _C, _O, _O, _O),
    (_C, _C, _C, _O, _O, _O, _O),
    (_C, _C, _O, _O, _O, _O, _O),
    (_C, _O, _O, _O, _O, _O, _O),
    (_O, _O, _O, _O, _O, _O, _O),
)

_DAIKAN_FINGERINGS: Tuple[Tuple[bool, ...], ...] = (
    (_O, _C, _C, _C, _C, _O, _O),
    (_C, _C, _O, _C, _C, _O, _O),
    (_C, _O, _C, _C, _O, _O, _O),
    (_C, _O, _C, _C, _O, _C, _O),
)


@dataclass(frozen=True)
class ShinobueKey:
    name: str
    base_note: str
    base_frequency: float
    lowest: float
    highest: float


def shinobue_display_name(register: Register, number: int) -> str:
    """ro: 筒音, 一..七 / kan: 1..7 / daikan: 大1..大4."""
    register_value = Register(register)
    if register_value is Register.RO:
        if 0 <= int(number) < len(_RO_NAMES):
            return _RO_NAMES[int(number)]
        return str(int(number))
    if register_value is Register.KAN:
        return str(int(number))
    return f"大{int(number)}"


def _build_chart(
    ro: Sequence[Tuple[str, float]],
    kan: Sequence[Tuple[str, float]],
    daikan: Sequence[Tuple[str, float]],
) -> Tuple[ShinobueNote, ...]:
    notes = []
    for number, (western, frequency) in enumerate(ro):
        notes.append(
            ShinobueNote(
                number=number,
                register=Register.RO,
                fingering=_BASE_FINGERINGS[number],
                frequency=float(frequency),
                western=western,
                name=shinobue_display_name(Register.RO, number),
            )
        )
    for index, (western, frequency) in enumerate(kan):
        number = index + 1
        notes.append(
            ShinobueNote(
                number=number,
                register=Register.KAN,
                fingering=_BASE_FINGERINGS[number],
                frequency=float(frequency),
                western=western,
                name=shinobue_display_name(Register.KAN, number),
            )
        )
    for index, (western, frequency) in enumerate(daikan):
        number = index + 1
        notes.append(
            ShinobueNote(
                number=number,
                register=Register.DAIKAN,
                fingering=_DAIKAN_FINGERINGS[index],
                frequency=float(frequency),
                western=western,
                name=shinobue_display_name(Register.DAIKAN, number),
            )
        )
    return tuple(notes)


FINGERING_CHART_ROKU = _build_chart(
    ro=[
        ("A4", 440.0), ("B4", 493.88), ("C5", 523.25), ("D5", 587.33),
        ("E5", 659.25), ("F5", 698.46), ("G5", 783.99), ("A5", 880.0),
    ],
    kan=[
        ("B5", 987.77), ("C6", 1046.5), ("D6", 1174.66), ("E6", 1318.51),
        ("F6", 1396.91), ("G6", 1567.98), ("A6", 1760.0),
    ],
    daikan=[("B6", 1975.53), ("C7", 2093.0), ("D7", 2349.32), ("E7", 2637.02)],
)

FINGERING_CHART_NANA = _build_chart(
    ro=[
        ("B4", 493.88), ("C#5", 554.37), ("D5", 587.33), ("E5", 659.25),
        ("F#5", 739.99), ("G5", 783.99), ("A5", 880.0), ("B5", 987.77),
    ],
    kan=[
        ("C#6", 1108.73), ("D6", 1174.66), ("E6", 1318.51), ("F#6", 1479.98),
        ("G6", 1567.98), ("A6", 1760.0), ("B6", 1975.53),
    ],
    daikan=[("C#7", 2217.46), ("D7", 2349.32), ("E7", 2637.02), ("F#7", 2959.96)],
)

FINGERING_CHART_HACHI = _build_chart(
    ro=[
        ("C5", 523.25), ("D5", 587.33), ("E5", 659.25), ("F5", 698.46),
        ("G5", 783.99), ("A5", 880.0), ("B5", 987.77), ("C6", 1046.5),
    ],
    kan=[
        ("D6", 1174.66), ("E6", 1318.51), ("F6", 1396.91), ("G6", 1567.98),
        ("A6", 1760.0), ("B6", 1975.53), ("C7", 2093.0),
    ],
    daikan=[("D7", 2349.32), ("E7", 2637.02), ("F7", 2793.83), ("G7", 3135.96)],
)

FINGERING_CHARTS: Dict[str, Tuple[ShinobueNote, ...]] = {
    "roku": FINGERING_CHART_ROKU,
    "nana": FINGERING_CHART_NANA,
    "hachi": FINGERING_CHART_HACHI,
}

SHINOBUE_KEYS: Dict[str, ShinobueKey] = {
    "roku": ShinobueKey(name="六本調子", base_note="A4", base_frequency=440.0, lowest=440.0, highest=2637.02),
    "nana": ShinobueKey(name="七本調子", base_note="B4", base_frequency=493.88, lowest=493.88, highest=2959.96),
    "hachi": ShinobueKey(name="八本調子", base_note="C5", base_frequency=523.25, lowest=523.25, highest=3135.96),
}

DEFAULT_SHINOBUE_KEY = "hachi"
FALLBACK_CHART_KEY = "nana"


def get_fingering_chart(key: str) -> Tuple[ShinobueNote, ...]:
    return FINGERING_CHARTS.get(str(key or "").strip().lower(), FINGERING_CHARTS[FALLBACK_CHART_KEY])


def find_chart_note(chart: Sequence[ShinobueNote], number: int, register: Register) -> Optional[ShinobueNote]:
    register_value = Register(register)
    for note in chart:
        if note.number == int(number) and note.register is register_value:
            return note
    return None


def _run_unit_tests() -> None:
    for key, chart in FINGERING_CHARTS.items():
        assert len(chart) == 19, key
        for previous, current in zip(chart, chart[1:]):
            assert current.frequency > previous.frequency, key
        assert all(len(note.fingering) == 7 for note in chart)

    assert get_fingering_chart("unknown") is FINGERING_CHART_NANA
    assert FINGERING_CHART_HACHI[1].western == "D5"
    assert shinobue_display_name(Register.DAIKAN, 2) == "大2"
    assert find_chart_note(FINGERING_CHART_NANA, 7, Register.RO).western == "B5"


if __name__ == "__main__":
    _run_unit_tests()
    print("fingering_chart.py: ok")
