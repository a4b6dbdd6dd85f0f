"""Exceptions for the player subsystem."""

from __future__ import annotations

from typing import Optional

from warp_transcribe.backend.common.errors import WarpError


class PlayerError(WarpError):
    """Top-level error raised by the player subsystem."""


class SetupError(PlayerError):
    """Raised when a session cannot be prepared for playback."""


class NoSoundFile(SetupError):
    """Raised when the transcript names no sound file."""


class UnreadableFile(SetupError):
    """Raised when the sound file cannot be opened for reading."""

    def __init__(self, path: str, reason: Optional[str] = None) -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(f"Sound file {path} is not readable{detail}")
        self.path = path


class UnknownProtocol(SetupError):
    """Raised when no player protocol is available for a sound file."""


class NoMatchingProtocol(UnknownProtocol):
    """Raised when no registry pattern matches a file name."""

    def __init__(self, filename: Optional[str]) -> None:
        if filename:
            message = f"No player protocol matches {filename}"
        else:
            message = "No player protocol can be chosen without a sound file"
        super().__init__(message)
        self.filename = filename


class LaunchFailed(PlayerError):
    """Raised when the player program cannot be started."""


class WriteFailed(PlayerError):
    """Raised when a command cannot be delivered to the player process."""


class QueryTimeout(PlayerError):
    """Raised when a query gets no answer in time; ``stale`` holds the cached value."""

    def __init__(self, field: str, stale: int, timeout: float) -> None:
        super().__init__(f"No {field} update within {timeout:.1f}s")
        self.field = field
        self.stale = stale
        self.timeout = timeout
