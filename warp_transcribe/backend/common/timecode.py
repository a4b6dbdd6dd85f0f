"""Conversions between whole seconds and ``HH:MM:SS`` strings."""

from __future__ import annotations

import re

_TIMECODE = re.compile(r"^\s*(?:(\d+):)??(?:(\d+):)?(\d+)\s*$")


def format_time(seconds: int) -> str:
    """Render whole seconds as ``HH:MM:SS``; negative input clamps to zero."""

    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def parse_seconds(value: str) -> int:
    """Parse ``HH:MM:SS``, ``MM:SS`` or ``SS`` into whole seconds."""

    match = _TIMECODE.match(value or "")
    if not match:
        raise ValueError(f"Not a timecode: {value!r}")
    hours, minutes, secs = (int(part) if part else 0 for part in match.groups())
    return hours * 3600 + minutes * 60 + secs


__all__ = ["format_time", "parse_seconds"]
