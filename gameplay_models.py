# -*- coding: utf-8 -*-
########################
# gameplay_models.py
########################
# Purpose:
# - Core data models shared by the detection, classification and game pipeline.
# - Defines detector output, fingering chart entries, the game timeline and judgement results.
#
# Design notes:
# - Keep these models stable. Prefer extending with new optional fields rather than breaking changes.
# - Plain dataclasses. Everything is frozen except GameNote, which the engine marks in place.
# - Difficulty presets live here so the judge, the engine and the config layer agree on them.
#
########################
# Interfaces:
# Public enums:
# - class Register(str, enum.Enum): RO | KAN | DAIKAN
# - class JudgementType(str, enum.Enum): PERFECT | GREAT | GOOD | MISS
# - class GameStatus(str, enum.Enum): IDLE | PLAYING | PAUSED | FINISHED
#
# Public dataclasses:
# - PitchResult(frequency, confidence, note_number, note_name, cent_offset, timestamp)
# - ShinobueNote(number, register, fingering, frequency, western, name)
# - ClassifiedNote(shinobue_note, cent_offset, confidence)
# - NearestNote(note, cent_offset)
# - JudgementResult(type, timing_delta, pitch_delta, note_id)
# - GameNote(id, time_ms, duration_ms, frequency, midi_note, shinobue_number, register,
#            western, shinobue_name, judgement, judged)
# - GameState(status, current_time_ms, score, combo, max_combo, notes, judgements, next_note_index)
# - GameResult(score, max_combo, perfect_count, great_count, good_count, miss_count,
#              total_notes, accuracy, rank)
# - DifficultyConfig(scroll_speed, judgement_scale, show_fingering, pitch_meter_size,
#                    require_ornaments, allowed_registers)
#
# Public constants and functions:
# - DIFFICULTY_CONFIGS: dict[str, DifficultyConfig]
# - DEFAULT_DIFFICULTY: str
# - normalize_difficulty(difficulty: str) -> str
#
# Inputs/Outputs:
# - These types are exchanged between PitchDetector, NoteClassifier, NoteScheduler, TimingJudge,
#   ScoreCalculator and GameEngine.
#
########################

from __future__ import annotations

from dataclasses import dataclass, field, replace
import enum
from typing import Dict, FrozenSet, List, Optional, Tuple


class Register(str, enum.Enum):
    RO = "ro"
    KAN = "kan"
    DAIKAN = "daikan"


class JudgementType(str, enum.Enum):
    PERFECT = "perfect"
    GREAT = "great"
    GOOD = "good"
    MISS = "miss"


class GameStatus(str, enum.Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    FINISHED = "finished"


@dataclass(frozen=True)
class PitchResult:
    frequency: float
    confidence: float
    note_number: float
    note_name: str
    cent_offset: float
    timestamp: float

    def with_frequency(self, frequency: float) -> "PitchResult":
        return replace(self, frequency=float(frequency))


@dataclass(frozen=True)
class ShinobueNote:
    number: int
    register: Register
    # Holes 1..7 from the blowing end. True = closed.
    fingering: Tuple[bool, ...]
    frequency: float
    western: str
    name: str


@dataclass(frozen=True)
class ClassifiedNote:
    shinobue_note: ShinobueNote
    cent_offset: float
    confidence: float


@dataclass(frozen=True)
class NearestNote:
    note: ShinobueNote
    cent_offset: float


@dataclass(frozen=True)
class JudgementResult:
    type: JudgementType
    # Positive = late (expected time is in the past).
    timing_delta: float
    pitch_delta: float
    note_id: str


@dataclass
class GameNote:
    id: str
    time_ms: float
    duration_ms: float
    # None marks a rest.
    frequency: Optional[float] = None
    midi_note: Optional[int] = None
    shinobue_number: Optional[int] = None
    register: Optional[Register] = None
    western: Optional[str] = None
    shinobue_name: Optional[str] = None
    judgement: Optional[JudgementResult] = None
    judged: bool = False

    @property
    def is_rest(self) -> bool:
        return self.frequency is None

    @property
    def end_ms(self) -> float:
        return float(self.time_ms) + float(self.duration_ms)


@dataclass(frozen=True)
class GameState:
    status: GameStatus
    current_time_ms: float
    score: int
    combo: int
    max_combo: int
    notes: List[GameNote]
    judgements: List[JudgementResult]
    next_note_index: int


@dataclass(frozen=True)
class GameResult:
    score: int
    max_combo: int
    perfect_count: int
    great_count: int
    good_count: int
    miss_count: int
    total_notes: int
    accuracy: float
    rank: str


@dataclass(frozen=True)
class DifficultyConfig:
    scroll_speed: float
    # 1.0 = normal, > 1.0 widens every judgement window.
    judgement_scale: float
    show_fingering: str
    pitch_meter_size: str
    require_ornaments: bool
    # Notes outside these registers are passed automatically.
    allowed_registers: FrozenSet[Register] = field(default_factory=frozenset)

    def allows(self, register: Optional[Register]) -> bool:
        if register is None:
            return True
        return register in self.allowed_registers


DIFFICULTY_CONFIGS: Dict[str, DifficultyConfig] = {
    "beginner": DifficultyConfig(
        scroll_speed=0.6,
        judgement_scale=1.5,
        show_fingering="always",
        pitch_meter_size="large",
        require_ornaments=False,
        allowed_registers=frozenset({Register.RO}),
    ),
    "intermediate": DifficultyConfig(
        scroll_speed=1.0,
        judgement_scale=1.0,
        show_fingering="always",
        pitch_meter_size="large",
        require_ornaments=False,
        allowed_registers=frozenset({Register.RO, Register.KAN}),
    ),
    "advanced": DifficultyConfig(
        scroll_speed=1.4,
        judgement_scale=0.8,
        show_fingering="next",
        pitch_meter_size="small",
        require_ornaments=True,
        allowed_registers=frozenset({Register.RO, Register.KAN, Register.DAIKAN}),
    ),
    "master": DifficultyConfig(
        scroll_speed=1.8,
        judgement_scale=0.6,
        show_fingering="none",
        pitch_meter_size="hidden",
        require_ornaments=True,
        allowed_registers=frozenset({Register.RO, Register.KAN, Register.DAIKAN}),
    ),
}

DEFAULT_DIFFICULTY = "intermediate"


def normalize_difficulty(difficulty: str) -> str:
    normalized = str(difficulty or DEFAULT_DIFFICULTY).strip().lower() or DEFAULT_DIFFICULTY
    if normalized not in DIFFICULTY_CONFIGS:
        allowed = ", ".join(DIFFICULTY_CONFIGS.keys())
        raise ValueError(f"Unknown difficulty {difficulty!r}. Expected one of: {allowed}")
    return normalized
