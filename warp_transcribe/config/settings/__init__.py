from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any

__all__ = [
    "PATHS",
    "PlayerOverride",
    "ProtocolMapping",
    "Settings",
    "add_protocol_mapping",
    "core",
    "get_log_dir",
    "get_settings",
    "get_user_settings_path",
    "load_user_settings",
    "paths",
    "players",
    "update_player",
    "user",
    "write_user_settings",
]

_MODULE_EXPORTS = {
    "core": {
        "Settings",
        "add_protocol_mapping",
        "get_settings",
        "update_player",
    },
    "paths": {
        "PATHS",
        "get_log_dir",
        "get_user_settings_path",
    },
    "players": {
        "PlayerOverride",
        "ProtocolMapping",
    },
    "user": {
        "load_user_settings",
        "write_user_settings",
    },
}

_SUBMODULE_NAMES = {"core", "paths", "players", "user"}

if TYPE_CHECKING:  # pragma: no cover - only for static analysis
    from . import core, paths, players, user
    from .core import Settings, add_protocol_mapping, get_settings, update_player
    from .paths import PATHS, get_log_dir, get_user_settings_path
    from .players import PlayerOverride, ProtocolMapping
    from .user import load_user_settings, write_user_settings


def __getattr__(name: str) -> Any:
    if name in _SUBMODULE_NAMES:
        module = importlib.import_module(f"{__name__}.{name}")
        globals()[name] = module
        return module

    for module_name, symbols in _MODULE_EXPORTS.items():
        if name in symbols:
            module = importlib.import_module(f"{__name__}.{module_name}")
            value = getattr(module, name)
            globals()[name] = value
            return value

    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__() -> list[str]:
    exported = set(__all__)
    exported.update(_SUBMODULE_NAMES)
    for symbols in _MODULE_EXPORTS.values():
        exported.update(symbols)
    exported.update(globals().keys())
    return sorted(exported)
