"""Playback state shared by sessions, command callbacks and interpreters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from warp_transcribe.backend.common.timecode import format_time

# MP3 at 44.1 kHz: 44100 / 1152 samples per frame
DEFAULT_FRAME_RATE = 38


class PlayerStatus(str, Enum):
    NULL = "null"
    IDLE = "idle"
    PLAYING = "playing"


@dataclass(frozen=True, slots=True)
class PositionUpdate:
    position: Optional[int] = None
    length: Optional[int] = None
    frame_rate: Optional[int] = None


@dataclass(slots=True)
class PlaybackState:
    status: PlayerStatus = PlayerStatus.NULL
    position: int = 0
    length: int = 0
    frame_rate: int = DEFAULT_FRAME_RATE

    @property
    def position_display(self) -> str:
        return format_time(self.position)

    def apply(self, update: PositionUpdate) -> None:
        if update.position is not None:
            self.position = max(0, update.position)
        if update.length is not None:
            self.length = max(0, update.length)
        if update.frame_rate:
            self.frame_rate = update.frame_rate
