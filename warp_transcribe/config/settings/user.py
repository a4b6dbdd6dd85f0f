from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from warp_transcribe.backend.common.logging import get_logger

from .paths import expand_env, get_user_settings_path

log = get_logger(__name__)


def coerce_path(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    path = Path(value).expanduser()
    try:
        return str(path.resolve())
    except OSError:
        return str(path)


def ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def load_user_settings() -> Dict[str, Any]:
    user_path = get_user_settings_path()
    if not user_path.exists():
        return {}
    try:
        with user_path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        log.warning("user_settings_unreadable", extra={"path": str(user_path), "error": str(exc)})
        return {}
    if not isinstance(data, dict):
        log.warning("user_settings_not_an_object", extra={"path": str(user_path)})
        return {}
    return expand_env(data)


def write_user_settings(payload: Mapping[str, Any]) -> None:
    user_path = get_user_settings_path()
    ensure_parent(user_path)
    with user_path.open("w", encoding="utf-8") as fh:
        json.dump(dict(payload), fh, indent=2, ensure_ascii=False, sort_keys=True)


__all__ = [
    "coerce_path",
    "ensure_parent",
    "load_user_settings",
    "write_user_settings",
]
