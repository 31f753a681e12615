from __future__ import annotations

import json
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any

import click
from loguru import logger
from pydantic import ValidationError

from position_vaults.core import config
from position_vaults.core.engine.scenario import load_scenario, run_scenario


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _ppm_to_percent(ppm: int) -> str:
    return str(Decimal(ppm) / 10_000)


def _configure_logging(log_level: str | None) -> None:
    logger.remove()
    logger.add(sys.stderr, level=(log_level or config.get_log_level()).upper())


@click.group(
    name="position-vaults",
    help="Local simulation of share-accounted liquidity vaults and their rewards.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config JSON (defaults to $POSITION_VAULTS_CONFIG_PATH or ./config.json).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
)
def cli(config_path: Path | None, log_level: str | None) -> None:
    if config_path is not None:
        config.load_config(config_path, require_exists=True)
    _configure_logging(log_level)


@cli.command(name="run-scenario", help="Run a YAML/JSON scenario and print a JSON report.")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--events/--no-events",
    default=True,
    show_default=True,
    help="Include the full event log in the report.",
)
def run_scenario_cmd(path: Path, events: bool) -> None:
    try:
        scenario = load_scenario(path)
    except (ValidationError, ValueError) as exc:
        _echo_json({"ok": False, "error": "invalid_scenario", "details": str(exc)})
        sys.exit(2)

    scenario.vault_config = {"fee_ppm": config.get_fee_ppm(), **scenario.vault_config}
    if scenario.receiver_percentage is None:
        scenario.receiver_percentage = _ppm_to_percent(config.get_receiver_ppm())
    if scenario.exclusive_manager_percentage is None:
        scenario.exclusive_manager_percentage = _ppm_to_percent(
            config.get_exclusive_manager_ppm()
        )
    report = run_scenario(scenario)
    if not events:
        report.pop("events", None)
    _echo_json({"ok": all(s["ok"] for s in report["steps"]), "result": report})


@cli.command(name="show-config", help="Print the resolved configuration.")
def show_config_cmd() -> None:
    _echo_json(
        {
            "path": str(config.resolve_config_path()),
            "vault": {
                "fee_ppm": config.get_fee_ppm(),
                "receiver_ppm": config.get_receiver_ppm(),
                "exclusive_manager_ppm": config.get_exclusive_manager_ppm(),
            },
            "log_level": config.get_log_level(),
        }
    )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
