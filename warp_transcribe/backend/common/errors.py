from __future__ import annotations



class WarpError(Exception):
    """Base for all warp-transcribe exceptions."""


class ConfigError(WarpError):
    """Configuration related issues."""


class TaskError(WarpError):
    """Task scheduling/execution issues."""


class PersistenceError(WarpError):
    """Transcript metadata could not be read or written."""


class MissingMetadataField(PersistenceError):
    """A transcript header lacks a field the position markers need."""

    def __init__(self, path: str, field: str) -> None:
        super().__init__(f"Transcript {path} has no '{field}' header field")
        self.path = path
        self.field = field
