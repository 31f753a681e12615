from __future__ import annotations

import copy
import json
from pathlib import Path

import pytest

import position_vaults.core.config as config

REPO_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def restore_global_config() -> None:
    original = copy.deepcopy(config.CONFIG)
    yield
    config.set_config(original)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("POSITION_VAULTS_CONFIG_PATH", raising=False)
    monkeypatch.delenv("POSITION_VAULTS_CONFIG", raising=False)
    monkeypatch.delenv("POSITION_VAULTS_LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)


def test_resolve_config_path_defaults_to_repo_root(clean_env: None) -> None:
    assert config.resolve_config_path() == REPO_ROOT / "config.json"


def test_resolve_config_path_explicit_path_wins(
    clean_env: None, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("POSITION_VAULTS_CONFIG_PATH", "config.example.json")
    assert config.resolve_config_path(tmp_path / "x.json") == tmp_path / "x.json"


def test_resolve_config_path_env_relative_is_repo_relative(
    clean_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("POSITION_VAULTS_CONFIG_PATH", "config.example.json")
    assert config.resolve_config_path() == REPO_ROOT / "config.example.json"


def test_resolve_config_path_env_absolute(
    clean_env: None, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    target = tmp_path / "custom.json"
    monkeypatch.setenv("POSITION_VAULTS_CONFIG", str(target))
    assert config.resolve_config_path() == target


def test_load_config_json_supports_env_override(
    clean_env: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("POSITION_VAULTS_CONFIG_PATH", "config.example.json")
    cfg = config.load_config_json()
    assert isinstance(cfg.get("vault"), dict)
    assert cfg["vault"]["fee_ppm"] == 0


def test_load_config_json_missing_file(clean_env: None, tmp_path: Path) -> None:
    missing = tmp_path / "missing.json"
    assert config.load_config_json(missing) == {}
    with pytest.raises(FileNotFoundError):
        config.load_config_json(missing, require_exists=True)


def test_load_config_json_unreadable_file(clean_env: None, tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    assert config.load_config_json(broken) == {}
    with pytest.raises(json.JSONDecodeError):
        config.load_config_json(broken, require_exists=True)


def test_write_then_load_config(
    clean_env: None, restore_global_config: None, tmp_path: Path
) -> None:
    path = config.write_config_json(tmp_path / "nested" / "cfg.json", {"vault": {"fee_ppm": 42}})
    config.load_config(path, require_exists=True)
    assert config.CONFIG["vault"]["fee_ppm"] == 42
    assert config.get_fee_ppm() == 42


def test_ppm_getters(restore_global_config: None) -> None:
    config.set_config(
        {"vault": {"fee_ppm": 5_000, "receiver_ppm": "250000", "exclusive_manager_ppm": 0}}
    )
    assert config.get_fee_ppm() == 5_000
    assert config.get_receiver_ppm() == 250_000
    assert config.get_exclusive_manager_ppm() == 0

    config.set_config({})
    assert config.get_fee_ppm() == 0


@pytest.mark.parametrize("value", ["abc", None, 1_000_001, -1])
def test_ppm_getters_reject_invalid_values(restore_global_config: None, value) -> None:
    config.set_config({"vault": {"fee_ppm": value}})
    with pytest.raises(ValueError):
        config.get_fee_ppm()


def test_log_level_prefers_config_then_env(
    clean_env: None, restore_global_config: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    config.set_config({})
    assert config.get_log_level() == "INFO"

    monkeypatch.setenv("POSITION_VAULTS_LOG_LEVEL", "debug")
    assert config.get_log_level() == "DEBUG"

    config.set_config({"system": {"log_level": "warning"}})
    assert config.get_log_level() == "WARNING"
