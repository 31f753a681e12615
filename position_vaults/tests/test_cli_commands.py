"""Tests for the position-vaults command line."""

from __future__ import annotations

import copy
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

import position_vaults.core.config as config
from position_vaults.cli import cli
from position_vaults.core.engine.deployment import ONE

SCENARIO_YAML = """\
name: cli-receiver
funds:
  - USDT:alice:100
receiver: receiver
steps:
  - op: deposit
    account: alice
    amount: 100
  - op: deposit_rewards
    account: sponsor
    amount: 1000
  - op: distribute_rewards
  - op: collect_rewards
    account: alice
"""


@pytest.fixture(autouse=True)
def restore_global_config() -> None:
    original = copy.deepcopy(config.CONFIG)
    yield
    config.set_config(original)


@pytest.fixture
def scenario_file(tmp_path: Path) -> Path:
    path = tmp_path / "scenario.yaml"
    path.write_text(SCENARIO_YAML)
    return path


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"vault": {"receiver_ppm": 250_000}}))
    return path


def test_run_scenario_uses_config_defaults(scenario_file: Path, config_file: Path):
    result = CliRunner().invoke(
        cli,
        [
            "--config",
            str(config_file),
            "--log-level",
            "ERROR",
            "run-scenario",
            str(scenario_file),
            "--no-events",
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["ok"] is True
    report = payload["result"]
    assert "events" not in report
    assert report["accounts"]["receiver"]["USDT"] == 250 * ONE
    assert report["accounts"]["alice"]["USDT"] == 750 * ONE


def test_run_scenario_reports_failed_steps(tmp_path: Path):
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps({"steps": [{"op": "withdraw", "account": "bob"}]}))

    result = CliRunner().invoke(cli, ["--log-level", "ERROR", "run-scenario", str(path)])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["ok"] is False
    assert payload["result"]["steps"][0]["ok"] is False
    assert isinstance(payload["result"]["events"], list)


def test_run_scenario_rejects_invalid_file(tmp_path: Path):
    path = tmp_path / "scenario.yaml"
    path.write_text("steps:\n  - op: teleport\n")

    result = CliRunner().invoke(cli, ["--log-level", "ERROR", "run-scenario", str(path)])

    assert result.exit_code == 2
    payload = json.loads(result.stdout)
    assert payload["error"] == "invalid_scenario"


def test_missing_config_file_fails(tmp_path: Path, scenario_file: Path):
    result = CliRunner().invoke(
        cli, ["--config", str(tmp_path / "nope.json"), "run-scenario", str(scenario_file)]
    )
    assert result.exit_code != 0


def test_show_config(config_file: Path):
    result = CliRunner().invoke(cli, ["--config", str(config_file), "show-config"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["vault"] == {
        "fee_ppm": 0,
        "receiver_ppm": 250_000,
        "exclusive_manager_ppm": 0,
    }
