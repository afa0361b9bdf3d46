import json

import pytest

import config
from config import AppConfig, GameConfig, PitchDetectionConfig, PracticeConfig, load_config

_ENV_NAMES = (
    "SHINOBUE_CONFIG_PATH",
    "SHINOBUE_SAMPLE_RATE",
    "SHINOBUE_BUFFER_SIZE",
    "SHINOBUE_YIN_THRESHOLD",
    "SHINOBUE_TUNING_A4",
    "SHINOBUE_KEY",
    "SHINOBUE_NOISE_GATE_DB",
    "SHINOBUE_CONFIDENCE_THRESHOLD",
    "SHINOBUE_DIFFICULTY",
    "SHINOBUE_JUDGE_CONFIDENCE",
    "SHINOBUE_AV_OFFSET_MS",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    for env_name in _ENV_NAMES:
        monkeypatch.delenv(env_name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config, "user_config_dir", lambda *args, **kwargs: str(tmp_path / "user"))
    return tmp_path


def _write_config(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_defaults_without_a_file():
    app_config, resolved_path = load_config()
    assert resolved_path is None
    assert app_config.pitch.sample_rate == 44100
    assert app_config.pitch.buffer_size == 2048
    assert app_config.pitch.threshold == 0.15
    assert app_config.pitch.tuning_a4 == 440.0
    assert app_config.practice.shinobue_key == "hachi"
    assert app_config.practice.noise_gate_db == -50.0
    assert app_config.game.difficulty == "intermediate"
    assert app_config.game.judge_confidence == 0.85


def test_file_in_working_directory_is_used(isolated_environment):
    config_path = _write_config(
        isolated_environment / "shinobue_config.json",
        {"practice": {"shinobue_key": "ROKU"}, "game": {"difficulty": "Advanced"}},
    )
    app_config, resolved_path = load_config()
    assert resolved_path.resolve() == config_path.resolve()
    assert app_config.practice.shinobue_key == "roku"
    assert app_config.game.difficulty == "advanced"


def test_user_config_dir_is_searched(isolated_environment):
    user_dir = isolated_environment / "user"
    user_dir.mkdir()
    config_path = _write_config(user_dir / "shinobue_config.json", {"pitch": {"tuning_a4": 442}})
    app_config, resolved_path = load_config()
    assert resolved_path.resolve() == config_path.resolve()
    assert app_config.pitch.tuning_a4 == 442.0


def test_explicit_path_wins(monkeypatch, isolated_environment):
    _write_config(isolated_environment / "shinobue_config.json", {"practice": {"shinobue_key": "roku"}})
    explicit = _write_config(isolated_environment / "other.json", {"practice": {"shinobue_key": "nana"}})
    monkeypatch.setenv("SHINOBUE_CONFIG_PATH", str(explicit))
    app_config, resolved_path = load_config()
    assert resolved_path.resolve() == explicit.resolve()
    assert app_config.practice.shinobue_key == "nana"


def test_environment_overrides(monkeypatch, isolated_environment):
    _write_config(isolated_environment / "shinobue_config.json", {"pitch": {"tuning_a4": 442}})
    monkeypatch.setenv("SHINOBUE_TUNING_A4", "438.5")
    monkeypatch.setenv("SHINOBUE_KEY", "nana")
    monkeypatch.setenv("SHINOBUE_DIFFICULTY", "master")
    monkeypatch.setenv("SHINOBUE_NOISE_GATE_DB", "-40")
    monkeypatch.setenv("SHINOBUE_SAMPLE_RATE", "48000")
    app_config, _ = load_config()
    assert app_config.pitch.tuning_a4 == 438.5
    assert app_config.pitch.sample_rate == 48000
    assert app_config.practice.shinobue_key == "nana"
    assert app_config.practice.noise_gate_db == -40.0
    assert app_config.game.difficulty == "master"


def test_unparseable_numeric_override_is_ignored(monkeypatch):
    monkeypatch.setenv("SHINOBUE_TUNING_A4", "four-forty")
    app_config, _ = load_config()
    assert app_config.pitch.tuning_a4 == 440.0


def test_invalid_json_raises_value_error(isolated_environment):
    (isolated_environment / "shinobue_config.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="not valid JSON"):
        load_config()


def test_non_object_root_raises_value_error(isolated_environment):
    _write_config(isolated_environment / "shinobue_config.json", [1, 2, 3])
    with pytest.raises(ValueError, match="JSON object"):
        load_config()


def test_validation_failure_raises_value_error(isolated_environment):
    _write_config(isolated_environment / "shinobue_config.json", {"game": {"difficulty": "impossible"}})
    with pytest.raises(ValueError, match="validation failed"):
        load_config()


def test_missing_explicit_file_raises(monkeypatch, isolated_environment):
    monkeypatch.setenv("SHINOBUE_CONFIG_PATH", str(isolated_environment / "missing.json"))
    with pytest.raises(FileNotFoundError):
        load_config()


def test_model_validators():
    with pytest.raises(ValueError):
        PitchDetectionConfig(min_frequency=800.0, max_frequency=400.0)
    with pytest.raises(ValueError):
        PracticeConfig(shinobue_key="shaku")
    with pytest.raises(ValueError):
        GameConfig(judge_confidence=1.5)
    assert PracticeConfig(shinobue_key=" Nana ").shinobue_key == "nana"


def test_main_prints_json(capsys):
    assert config.main() == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is True
    assert payload["config_path"] is None
    assert payload["config"]["practice"]["shinobue_key"] == "hachi"
    assert AppConfig.model_validate(payload["config"]) == AppConfig()
