"""Persist gateway credentials for the chat client."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

BASE_DIR = Path.home() / ".modal_chat"
CREDENTIALS_PATH = BASE_DIR / "credentials.json"


@dataclass(frozen=True)
class Credentials:
    base_url: str
    auth_token: str
    device_id: str


def _atomic_write_json(path: Path, payload: Dict[str, object]) -> None:
    path = path.expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    content = json.dumps(payload, indent=2, sort_keys=True)

    fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(content)
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(tmp_path, path)


def load_credentials(path: Path = CREDENTIALS_PATH) -> Optional[Credentials]:
    try:
        data = json.loads(path.expanduser().read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (json.JSONDecodeError, ValueError):
        return None

    if not isinstance(data, dict):
        return None
    try:
        return Credentials(
            base_url=str(data["base_url"]),
            auth_token=str(data["auth_token"]),
            device_id=str(data["device_id"]),
        )
    except KeyError:
        return None


def save_credentials(credentials: Credentials, path: Path = CREDENTIALS_PATH) -> None:
    _atomic_write_json(
        path,
        {
            "base_url": credentials.base_url,
            "auth_token": credentials.auth_token,
            "device_id": credentials.device_id,
        },
    )
