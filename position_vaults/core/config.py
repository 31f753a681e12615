import json
import os
from pathlib import Path
from typing import Any

from loguru import logger

from position_vaults.core.constants import MAX_PERCENTAGE

_CONFIG_ENV_KEYS = ("POSITION_VAULTS_CONFIG_PATH", "POSITION_VAULTS_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"
_DEFAULT_LOG_LEVEL = "INFO"


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        if require_exists:
            raise
        logger.warning(f"Ignoring unreadable config {cfg_path}: {exc}")
        return {}


def write_config_json(path: str | Path | None, config: dict[str, Any]) -> Path:
    cfg_path = resolve_config_path(path)
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    cfg_path.write_text(json.dumps(config, indent=2) + "\n")
    return cfg_path


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    Modules that imported CONFIG at import time see the update.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def _ppm(section: str, key: str, default: int = 0) -> int:
    value = CONFIG.get(section, {}).get(key, default)
    try:
        ppm = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{section}.{key} must be an integer ppm, got {value!r}") from exc
    if not 0 <= ppm <= MAX_PERCENTAGE:
        raise ValueError(f"{section}.{key} must be within [0, {MAX_PERCENTAGE}]")
    return ppm


def get_fee_ppm() -> int:
    return _ppm("vault", "fee_ppm")


def get_receiver_ppm() -> int:
    return _ppm("vault", "receiver_ppm")


def get_exclusive_manager_ppm() -> int:
    return _ppm("vault", "exclusive_manager_ppm")


def get_log_level() -> str:
    system = CONFIG.get("system", {})
    level = system.get("log_level")
    if level:
        return str(level).strip().upper()
    return os.environ.get("POSITION_VAULTS_LOG_LEVEL", _DEFAULT_LOG_LEVEL).upper()
