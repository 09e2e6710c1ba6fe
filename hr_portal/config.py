"""Client settings.

Every setting is resolved in the same order:
  1) HR_PORTAL_* environment variable
  2) hr_portal/config.json -> {"api_base_url": "...", ...}
  3) built-in default
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

PKG_DIR = Path(__file__).resolve().parent
CONFIG_PATH = PKG_DIR / "config.json"

DEFAULTS: dict[str, Any] = {
    "api_base_url": "http://127.0.0.1:8000",
    "data_dir": str(PKG_DIR / "database"),
    "autosave_interval_ms": 30000,
    "request_timeout": 30,
}

ENV_VARS = {
    "api_base_url": "HR_PORTAL_API_BASE_URL",
    "data_dir": "HR_PORTAL_DATA_DIR",
    "autosave_interval_ms": "HR_PORTAL_AUTOSAVE_MS",
    "request_timeout": "HR_PORTAL_REQUEST_TIMEOUT",
}


def _read_config_file() -> dict[str, Any]:
    if not CONFIG_PATH.exists():
        return {}
    try:
        with open(CONFIG_PATH, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def get_setting(name: str) -> Any:
    if name not in DEFAULTS:
        raise KeyError(f"Unknown client setting: {name}")
    raw = os.getenv(ENV_VARS[name])
    if raw in (None, ""):
        raw = _read_config_file().get(name)
    if raw in (None, ""):
        return DEFAULTS[name]
    default = DEFAULTS[name]
    if isinstance(default, int):
        try:
            return int(raw)
        except (TypeError, ValueError):
            logger.warning("Setting %s=%r is not a number, using %s", name, raw, default)
            return default
    return str(raw)


def api_base_url() -> str:
    return get_setting("api_base_url").rstrip("/")


def data_dir() -> Path:
    path = Path(get_setting("data_dir"))
    path.mkdir(parents=True, exist_ok=True)
    return path


def autosave_interval_ms() -> int:
    return get_setting("autosave_interval_ms")


def request_timeout() -> int:
    return get_setting("request_timeout")
