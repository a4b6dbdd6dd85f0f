"""Parsers turning one line of player output into a position update.

Players print plenty of diagnostics; every parser returns ``None`` for a line
it does not recognise and never raises.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Optional

from warp_transcribe.backend.player.state import PositionUpdate

if TYPE_CHECKING:  # pragma: no cover - for static analysis only
    from warp_transcribe.backend.player.protocols import ProtocolDescriptor

_NUMBER = r"(-?\d+(?:\.\d+)?)"

_FRAME_INFO = re.compile(rf"^@F\s+(\d+)\s+(\d+)\s+{_NUMBER}\s+{_NUMBER}")
_POS_STATUS = re.compile(r"Pos:\s*(\d+)\s*s\s*/\s*(\d+)\s*s")
_AV_STATUS = re.compile(rf"^A:\s*{_NUMBER}")
_SLAVE_ANSWER = re.compile(rf"^ANS_(TIME_POSITION|LENGTH)={_NUMBER}")


def interpret_frame_info(line: str) -> Optional[PositionUpdate]:
    """mpg123 remote mode: ``@F <frame> <frames-left> <seconds> <seconds-left>``."""

    match = _FRAME_INFO.match(line)
    if not match:
        return None
    frame = int(match.group(1))
    seconds = float(match.group(3))
    remaining = float(match.group(4))
    frame_rate = int(frame / seconds) if seconds > 0 else None
    return PositionUpdate(
        position=int(seconds),
        length=int(seconds + remaining),
        frame_rate=frame_rate,
    )


def interpret_pos_status(line: str) -> Optional[PositionUpdate]:
    """``Pos: <seconds> s / <total> s`` status lines."""

    match = _POS_STATUS.search(line)
    if not match:
        return None
    return PositionUpdate(position=int(match.group(1)), length=int(match.group(2)))


def interpret_av_status(line: str) -> Optional[PositionUpdate]:
    """mplayer status (``A: 21.6 V: 21.6 A-V: 0.001``) and slave-mode answers."""

    match = _AV_STATUS.match(line)
    if match:
        return PositionUpdate(position=int(float(match.group(1))))
    answer = _SLAVE_ANSWER.match(line)
    if answer:
        value = int(float(answer.group(2)))
        if answer.group(1) == "LENGTH":
            return PositionUpdate(length=value)
        return PositionUpdate(position=value)
    return None


def interpret(protocol: "ProtocolDescriptor", line: str) -> Optional[PositionUpdate]:
    return protocol.interpreter(line.strip())


__all__ = [
    "interpret",
    "interpret_av_status",
    "interpret_frame_info",
    "interpret_pos_status",
]
