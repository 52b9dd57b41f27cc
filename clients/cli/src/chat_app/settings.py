"""JSON settings for the chat client."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from chat_app.session_store import BASE_DIR

DEFAULT_SETTINGS_FILE = BASE_DIR / "settings.json"
DEFAULT_LOG_FILE = BASE_DIR / "modal_chat.log"


def build_default_settings() -> Dict[str, Any]:
    return {
        "gateway_base_url": "http://localhost:8787",
        "history_page_size": 50,
        "render_interval_ms": 50,
        "log_file": str(DEFAULT_LOG_FILE),
    }


def load_settings(path: Path | str = DEFAULT_SETTINGS_FILE) -> Dict[str, Any]:
    """Read the settings file; missing or unreadable files give ``{}``."""

    try:
        data = json.loads(Path(path).expanduser().read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            return {}
        return data
    except FileNotFoundError:
        return {}
    except json.JSONDecodeError:
        return {}


def resolve_settings(path: Path | str = DEFAULT_SETTINGS_FILE) -> Dict[str, Any]:
    """Defaults overlaid with whatever the settings file provides.

    Numeric values that do not parse fall back to their defaults.
    """

    settings = build_default_settings()
    settings.update(load_settings(path))
    for key in ("history_page_size", "render_interval_ms"):
        try:
            settings[key] = max(1, int(settings[key]))
        except (TypeError, ValueError):
            settings[key] = build_default_settings()[key]
    return settings
