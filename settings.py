"""JSON-based settings persistence for the promo calendar."""

import json
import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger

_SETTINGS_PATH = os.path.join(os.path.expanduser("~"), ".promo-calendar-settings.json")

DEFAULT_TIMEZONE = "Asia/Taipei"

_DEFAULTS = {
    "timezone": DEFAULT_TIMEZONE,
    "supabase_url": "",
    "supabase_key": "",
    "table": "promotions",
    "request_timeout": 10.0,
    "share_fallback_url": "",
    "log_level": "INFO",
    "log_file": None,
    "window_width": None,
    "window_height": None,
}

# Environment variables that win over the settings file
_ENV_OVERRIDES = {
    "SUPABASE_URL": "supabase_url",
    "SUPABASE_ANON_KEY": "supabase_key",
}


def load_settings() -> dict:
    """Load settings from disk, returning defaults for missing keys."""
    settings = dict(_DEFAULTS)
    try:
        with open(_SETTINGS_PATH, "r", encoding="utf-8") as f:
            stored = json.load(f)
        if not isinstance(stored, dict):
            stored = {}
        for key in ("timezone", "supabase_url", "supabase_key", "table",
                    "share_fallback_url", "log_level"):
            if key in stored and isinstance(stored[key], str):
                settings[key] = stored[key]
        if "log_file" in stored and isinstance(stored["log_file"], str):
            settings["log_file"] = stored["log_file"]
        if ("request_timeout" in stored
                and isinstance(stored["request_timeout"], (int, float))
                and not isinstance(stored["request_timeout"], bool)
                and stored["request_timeout"] > 0):
            settings["request_timeout"] = float(stored["request_timeout"])
        for key in ("window_width", "window_height"):
            if key in stored and isinstance(stored[key], int):
                settings[key] = stored[key]
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        pass
    for env_name, key in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            settings[key] = value
    return settings


def save_settings(settings: dict) -> None:
    """Persist settings to disk."""
    with open(_SETTINGS_PATH, "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2, ensure_ascii=False)


def get_zone(settings: dict) -> ZoneInfo:
    """Return the configured timezone, falling back to Asia/Taipei."""
    name = settings.get("timezone") or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"[SETTINGS] Unknown timezone {name!r}, using {DEFAULT_TIMEZONE}")
        return ZoneInfo(DEFAULT_TIMEZONE)
