"""Transcript persistence helpers for warp-transcribe."""

from .document import (
    CURSOR,
    PLAYBACK_POSITION,
    SOUND_FILE,
    SavedMarkers,
    TranscriptDocument,
)

__all__ = [
    "CURSOR",
    "PLAYBACK_POSITION",
    "SOUND_FILE",
    "SavedMarkers",
    "TranscriptDocument",
]
