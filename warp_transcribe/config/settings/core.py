from __future__ import annotations

import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dataclasses import dataclass, field

from warp_transcribe.backend.common.errors import ConfigError
from warp_transcribe.backend.common.logging import get_logger

from .paths import get_log_dir, get_user_settings_path
from .players import (
    PlayerOverride,
    ProtocolMapping,
    parse_player_overrides,
    parse_protocol_map,
)
from .user import coerce_path, load_user_settings, write_user_settings

log = get_logger(__name__)

_SETTINGS_LOCK = threading.Lock()
_SETTINGS_SINGLETON: Optional["Settings"] = None


@dataclass
class Settings:
    app_name: str
    env: str
    log_level: str
    query_timeout: float
    refresh_interval: float
    rewind_step: int
    end_margin: int
    user_settings_path: os.PathLike[str]
    log_file: Optional[str] = None
    players: Dict[str, PlayerOverride] = field(default_factory=dict)
    protocol_map: List[ProtocolMapping] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "app_name": self.app_name,
            "env": self.env,
            "log_level": self.log_level,
            "log_file": self.log_file,
            "query_timeout": self.query_timeout,
            "refresh_interval": self.refresh_interval,
            "rewind_step": self.rewind_step,
            "end_margin": self.end_margin,
            "user_settings_path": str(self.user_settings_path),
            "players": {name: p.model_dump(exclude_defaults=True) for name, p in self.players.items()},
            "protocol_map": [m.model_dump() for m in self.protocol_map],
        }


def _number(env_name: str, raw: Any, default: float, *, min_value: float, cast=float):
    value = os.getenv(env_name)
    candidate = value if value not in (None, "") else raw
    if candidate is None:
        return cast(default)
    try:
        return max(cast(min_value), cast(candidate))
    except (TypeError, ValueError):
        log.warning("settings_value_invalid", extra={"setting": env_name, "value": candidate})
        return cast(default)


def _build_settings() -> Settings:
    user_cfg = load_user_settings()
    app_name = os.getenv("WARP_TX_APP_NAME", user_cfg.get("app_name", "warp-transcribe"))
    env = os.getenv("WARP_TX_ENV", user_cfg.get("env", "development"))
    log_level = os.getenv("WARP_TX_LOG_LEVEL", user_cfg.get("log_level", "WARNING")).upper()

    log_file = os.getenv("WARP_TX_LOG_FILE") or user_cfg.get("log_file")
    if log_file == "auto":
        log_file = str(get_log_dir() / f"transcribe_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log")
    else:
        log_file = coerce_path(log_file)

    query_timeout = _number("WARP_TX_QUERY_TIMEOUT", user_cfg.get("query_timeout"), 1.0, min_value=0.05)
    refresh_interval = _number("WARP_TX_REFRESH_INTERVAL", user_cfg.get("refresh_interval"), 0.1, min_value=0.0)
    rewind_step = _number("WARP_TX_REWIND_STEP", user_cfg.get("rewind_step"), 3, min_value=1, cast=int)
    end_margin = _number("WARP_TX_END_MARGIN", user_cfg.get("end_margin"), 3, min_value=0, cast=int)

    players_raw = user_cfg.get("players")
    if players_raw is not None and not isinstance(players_raw, dict):
        raise ConfigError("'players' must be an object keyed by protocol name")
    players = parse_player_overrides(players_raw)
    protocol_map = parse_protocol_map(user_cfg.get("protocol_map"))

    return Settings(
        app_name=app_name,
        env=env,
        log_level=log_level,
        log_file=log_file,
        query_timeout=query_timeout,
        refresh_interval=refresh_interval,
        rewind_step=rewind_step,
        end_margin=end_margin,
        user_settings_path=get_user_settings_path(),
        players=players,
        protocol_map=protocol_map,
    )


def get_settings(*, reload: bool = False) -> Settings:
    global _SETTINGS_SINGLETON
    with _SETTINGS_LOCK:
        if _SETTINGS_SINGLETON is None or reload:
            _SETTINGS_SINGLETON = _build_settings()

        return _SETTINGS_SINGLETON


def update_player(
    name: str,
    *,
    program: Optional[str] = None,
    launch_options: Optional[List[str]] = None,
    auto_rewind: Optional[int] = None,
) -> Settings:
    payload = load_user_settings()
    players = dict(payload.get("players") or {})
    entry = dict(players.get(name) or {})
    if program is not None:
        entry["program"] = program
    if launch_options is not None:
        entry["launch_options"] = list(launch_options)
    if auto_rewind is not None:
        entry["auto_rewind"] = auto_rewind
    players[name] = entry
    # validate before anything reaches disk
    parse_player_overrides({name: entry})

    payload["players"] = players
    payload["updated_at"] = datetime.now(timezone.utc).isoformat()
    write_user_settings(payload)

    return get_settings(reload=True)


def add_protocol_mapping(pattern: str, protocol: str) -> Settings:
    payload = load_user_settings()
    mappings = list(payload.get("protocol_map") or [])
    entry = {"pattern": pattern, "protocol": protocol}
    parse_protocol_map([entry])
    # newest mapping first so it overrides older ones
    mappings.insert(0, entry)

    payload["protocol_map"] = mappings
    payload["updated_at"] = datetime.now(timezone.utc).isoformat()
    write_user_settings(payload)

    return get_settings(reload=True)


__all__ = [
    "Settings",
    "add_protocol_mapping",
    "get_settings",
    "update_player",
]
