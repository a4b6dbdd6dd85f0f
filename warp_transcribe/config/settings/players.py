"""Validated user configuration for player programs and the protocol registry."""

from __future__ import annotations

import os
import re
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from warp_transcribe.backend.common.errors import ConfigError
from warp_transcribe.backend.player.protocols import BUILTIN_PROTOCOLS


def _known_protocol(name: str) -> str:
    value = (name or "").strip().lower()
    if value not in BUILTIN_PROTOCOLS:
        known = ", ".join(sorted(BUILTIN_PROTOCOLS))
        raise ValueError(f"Unknown player protocol '{name}' (known: {known})")
    return value


class PlayerOverride(BaseModel):
    model_config = ConfigDict(extra="forbid")

    program: Optional[str] = None
    launch_options: Optional[List[str]] = None
    auto_rewind: Optional[int] = None
    disable_auto_rewind: bool = False


class ProtocolMapping(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pattern: str
    protocol: str

    @field_validator("pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid file pattern '{value}': {exc}") from exc
        return value

    @field_validator("protocol")
    @classmethod
    def _check_protocol(cls, value: str) -> str:
        return _known_protocol(value)


def parse_player_overrides(raw: Optional[Mapping[str, Any]]) -> Dict[str, PlayerOverride]:
    overrides: Dict[str, PlayerOverride] = {}
    for name, payload in (raw or {}).items():
        try:
            key = _known_protocol(name)
            overrides[key] = PlayerOverride.model_validate(payload or {})
        except (ValueError, ValidationError) as exc:
            raise ConfigError(f"Invalid settings for player '{name}': {exc}") from exc

    # WARP_TX_<PLAYER>_PROGRAM wins over the settings file
    for name in BUILTIN_PROTOCOLS:
        program = os.getenv(f"WARP_TX_{name.upper()}_PROGRAM")
        if program:
            current = overrides.get(name) or PlayerOverride()
            overrides[name] = current.model_copy(update={"program": program})
    return overrides


def parse_protocol_map(raw: Optional[Any]) -> List[ProtocolMapping]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError("'protocol_map' must be a list of {pattern, protocol} objects")
    mappings: List[ProtocolMapping] = []
    for index, item in enumerate(raw):
        try:
            mappings.append(ProtocolMapping.model_validate(item))
        except ValidationError as exc:
            raise ConfigError(f"Invalid protocol_map entry #{index}: {exc}") from exc
    return mappings


__all__ = [
    "PlayerOverride",
    "ProtocolMapping",
    "parse_player_overrides",
    "parse_protocol_map",
]
