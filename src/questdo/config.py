"""Configuration file management for questdo.

Reads and writes ~/.questdo/config.json (or $QUESTDO_CONFIG) for settings
such as the display language and the database location.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH: Path = Path.home() / ".questdo" / "config.json"

DEFAULTS: dict[str, Any] = {
    "language": "en",
    "db_path": str(Path.home() / ".questdo" / "data.db"),
    "user_id": "local",
    "badge_catalog": None,
    "celebration_delays": {"level_up": 1.6, "badge": 1.6, "badge_after_level_up": 4.0},
    "animate": False,
}


def _resolve_path(config_path: Path | None) -> Path:
    if config_path is not None:
        return config_path
    env = os.environ.get("QUESTDO_CONFIG")
    return Path(env) if env else DEFAULT_CONFIG_PATH


def load_config(config_path: Path | None = None) -> dict:
    """Load config from JSON file. Returns {} if file missing or invalid."""
    path = _resolve_path(config_path)
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict, config_path: Path | None = None) -> None:
    """Write config dict to JSON file. Creates parent dirs if needed."""
    path = _resolve_path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def get_setting(key: str, config_path: Path | None = None) -> Any:
    """Return a setting, falling back to DEFAULTS (None for unknown keys)."""
    config = load_config(config_path)
    if key in config:
        return config[key]
    return DEFAULTS.get(key)


def set_setting(key: str, value: Any, config_path: Path | None = None) -> None:
    """Persist a single setting, keeping the others."""
    config = load_config(config_path)
    config[key] = value
    save_config(config, config_path)


def get_db_path(config_path: Path | None = None) -> Path:
    return Path(get_setting("db_path", config_path)).expanduser()


def get_badge_catalog_path(config_path: Path | None = None) -> Path | None:
    """Return the configured custom badge catalog, or None if not set."""
    raw = get_setting("badge_catalog", config_path)
    if raw:
        return Path(raw).expanduser()
    return None
