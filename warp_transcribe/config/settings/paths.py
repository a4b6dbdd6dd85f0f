from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

_CONFIG_DIR = Path(__file__).resolve().parent.parent
_PACKAGE_ROOT = _CONFIG_DIR.parent
_PATH_BASES = [_PACKAGE_ROOT, *_PACKAGE_ROOT.parents]

try:  # pragma: no cover - avoid failing if dotenv misbehaves
    load_dotenv(_PACKAGE_ROOT / ".env")
except OSError:
    pass

_DEFAULT_CONFIG_PATHS = {
    "user_settings": str(Path("~/.warp-transcribe/settings.json").expanduser()),
    "log_dir": str(Path("~/.warp-transcribe/logs").expanduser()),
}

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def expand_env_in_str(value: str) -> str:
    """Expand ``${VAR}`` tokens within a string."""

    def _repl(match: re.Match[str]) -> str:
        var = match.group(1)
        return os.getenv(var, "")

    return _ENV_PATTERN.sub(_repl, value)


def expand_env(obj: Any) -> Any:
    """Recursively expand environment variables in nested structures."""
    if isinstance(obj, str):
        return expand_env_in_str(obj)
    if isinstance(obj, list):
        return [expand_env(v) for v in obj]
    if isinstance(obj, dict):
        return {k: expand_env(v) for k, v in obj.items()}

    return obj


def read_json(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def _resolve_candidate(value: str) -> str:
    candidate = Path(expand_env_in_str(value)).expanduser()
    if candidate.is_absolute():
        return str(candidate.resolve())

    for base in _PATH_BASES:
        resolved = (base / candidate).resolve()
        if resolved.exists() or resolved.parent.exists():
            return str(resolved)

    return str((_PACKAGE_ROOT / candidate).resolve())


def config_paths_file() -> Path:
    override = os.getenv("WARP_TX_CONFIG_PATHS")
    if override:
        return Path(override).expanduser()
    return _CONFIG_DIR / "config_paths.json"


def load_config_paths() -> Dict[str, str]:
    cfg_path = config_paths_file()
    if not cfg_path.exists():
        return {k: str(Path(v).resolve()) for k, v in _DEFAULT_CONFIG_PATHS.items()}

    raw = read_json(cfg_path)
    merged = {**_DEFAULT_CONFIG_PATHS, **(raw or {})}

    for key, value in list(merged.items()):
        merged[key] = _resolve_candidate(value)

    return merged


PATHS: Dict[str, str] = load_config_paths()


def get_user_settings_path() -> Path:
    override = os.getenv("WARP_TX_SETTINGS")
    if override:
        return Path(override).expanduser()
    return Path(PATHS["user_settings"])


def get_log_dir() -> Path:
    path = Path(PATHS["log_dir"])
    path.mkdir(parents=True, exist_ok=True)

    return path


__all__ = [
    "PATHS",
    "config_paths_file",
    "expand_env",
    "expand_env_in_str",
    "get_log_dir",
    "get_user_settings_path",
    "load_config_paths",
    "read_json",
]
