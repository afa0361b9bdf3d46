"""
config.py

Typed configuration loading and validation for Shinobue Practice.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If SHINOBUE_CONFIG_PATH is set, that file is used (it must exist).
- Otherwise these paths are searched in order and the first one that exists is used:
  1) ./shinobue_config.json (current working directory)
  2) <user config dir>/ShinobuePractice/shinobue_config.json
- When no file is found the built-in defaults are used.

Example config file (shinobue_config.json)
{
  "pitch": {
    "sample_rate": 48000,
    "buffer_size": 2048,
    "tuning_a4": 442
  },
  "practice": {
    "shinobue_key": "roku",
    "noise_gate_db": -45
  },
  "game": {
    "difficulty": "advanced",
    "av_offset_ms": 25
  }
}
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from fingering_chart import DEFAULT_SHINOBUE_KEY, SHINOBUE_KEYS
from gameplay_models import DEFAULT_DIFFICULTY, normalize_difficulty

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "shinobue_config.json"


class PitchDetectionConfig(BaseModel):
    sample_rate: int = Field(default=44100, ge=8000, le=192000, description="Audio sample rate in Hz.")
    buffer_size: int = Field(default=2048, ge=64, description="Samples per analysis buffer.")
    threshold: float = Field(default=0.15, gt=0.0, lt=1.0, description="YIN absolute threshold.")
    min_frequency: float = Field(default=400.0, gt=0.0, description="Lowest accepted frequency in Hz.")
    max_frequency: float = Field(default=4000.0, gt=0.0, description="Highest accepted frequency in Hz.")
    tuning_a4: float = Field(default=440.0, ge=400.0, le=480.0, description="Reference pitch for A4 in Hz.")

    @model_validator(mode="after")
    def validate_frequency_band(self) -> "PitchDetectionConfig":
        if self.max_frequency <= self.min_frequency:
            raise ValueError("max_frequency must be greater than min_frequency")
        return self


class PracticeConfig(BaseModel):
    shinobue_key: str = Field(default=DEFAULT_SHINOBUE_KEY, description="roku, nana, or hachi")
    noise_gate_db: float = Field(default=-50.0, le=0.0, description="Buffers quieter than this are ignored.")
    pitch_confidence_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    median_window: int = Field(default=5, ge=1, le=64, description="Frames used for median smoothing.")
    history_max: int = Field(default=600, ge=1, description="Accepted readings kept for pitch graphs.")

    @field_validator("shinobue_key")
    @classmethod
    def validate_shinobue_key(cls, value: str) -> str:
        normalized = (value or "").strip().lower()
        if normalized not in SHINOBUE_KEYS:
            raise ValueError("shinobue_key must be one of: " + ", ".join(SHINOBUE_KEYS))
        return normalized


class GameConfig(BaseModel):
    difficulty: str = Field(default=DEFAULT_DIFFICULTY, description="beginner, intermediate, advanced, or master")
    judge_confidence: float = Field(default=0.85, ge=0.0, le=1.0, description="Minimum confidence to judge a note.")
    end_grace_ms: float = Field(default=1000.0, ge=0.0, description="Time after the last note before finishing.")
    av_offset_ms: float = Field(default=0.0, ge=-1000.0, le=1000.0, description="Input latency compensation.")

    @field_validator("difficulty")
    @classmethod
    def validate_difficulty(cls, value: str) -> str:
        return normalize_difficulty(value)


class AppConfig(BaseModel):
    pitch: PitchDetectionConfig = Field(default_factory=PitchDetectionConfig)
    practice: PracticeConfig = Field(default_factory=PracticeConfig)
    game: GameConfig = Field(default_factory=GameConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("ShinobuePractice", appauthor=False))
    return [
        Path.cwd() / CONFIG_FILE_NAME,
        config_directory / CONFIG_FILE_NAME,
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("SHINOBUE_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Environment overrides are optional. The config file is the primary source of truth.

    Override variables:
    - SHINOBUE_SAMPLE_RATE
    - SHINOBUE_BUFFER_SIZE
    - SHINOBUE_YIN_THRESHOLD
    - SHINOBUE_TUNING_A4
    - SHINOBUE_KEY
    - SHINOBUE_NOISE_GATE_DB
    - SHINOBUE_CONFIDENCE_THRESHOLD
    - SHINOBUE_DIFFICULTY
    - SHINOBUE_JUDGE_CONFIDENCE
    - SHINOBUE_AV_OFFSET_MS

    Unparseable numbers are ignored.
    """
    def ensure_nested(config_root: Dict[str, Any], section_name: str) -> Dict[str, Any]:
        section = config_root.get(section_name)
        if isinstance(section, dict):
            section = dict(section)
        else:
            section = {}
        config_root[section_name] = section
        return section

    updated_config = dict(config_dict)

    pitch_section = ensure_nested(updated_config, "pitch")
    practice_section = ensure_nested(updated_config, "practice")
    game_section = ensure_nested(updated_config, "game")

    def override_string(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "")
        if value_text.strip():
            target_dict[key_name] = value_text.strip()

    def override_int(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = int(value_text)
        except ValueError:
            logger.warning("Ignoring %s=%r: not an integer", env_name, value_text)

    def override_float(env_name: str, target_dict: Dict[str, Any], key_name: str) -> None:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            return
        try:
            target_dict[key_name] = float(value_text)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a number", env_name, value_text)

    override_int("SHINOBUE_SAMPLE_RATE", pitch_section, "sample_rate")
    override_int("SHINOBUE_BUFFER_SIZE", pitch_section, "buffer_size")
    override_float("SHINOBUE_YIN_THRESHOLD", pitch_section, "threshold")
    override_float("SHINOBUE_TUNING_A4", pitch_section, "tuning_a4")

    override_string("SHINOBUE_KEY", practice_section, "shinobue_key")
    override_float("SHINOBUE_NOISE_GATE_DB", practice_section, "noise_gate_db")
    override_float("SHINOBUE_CONFIDENCE_THRESHOLD", practice_section, "pitch_confidence_threshold")

    override_string("SHINOBUE_DIFFICULTY", game_section, "difficulty")
    override_float("SHINOBUE_JUDGE_CONFIDENCE", game_section, "judge_confidence")
    override_float("SHINOBUE_AV_OFFSET_MS", game_section, "av_offset_ms")

    return updated_config


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    if resolved_path is None:
        logger.debug("No config file found, using defaults")
        json_dict: Dict[str, Any] = {}
    else:
        json_dict = _read_json_file_utf8(resolved_path)
        logger.info("Loaded config from %s", resolved_path)
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source = resolved_path if resolved_path is not None else "(defaults)"
        raise ValueError(f"Config validation failed for {source}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def to_json(config: AppConfig) -> str:
    return json.dumps(config.model_dump(), ensure_ascii=False, indent=2)


def main() -> int:
    try:
        config, resolved_path = load_config()
    except (OSError, ValueError) as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": json.loads(to_json(config)),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
