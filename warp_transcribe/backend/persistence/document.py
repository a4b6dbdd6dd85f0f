"""Plain-text transcripts with a ``# Key: value`` metadata header."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from warp_transcribe.backend.common.errors import MissingMetadataField, PersistenceError
from warp_transcribe.backend.common.logging import get_logger

log = get_logger(__name__)

SOUND_FILE = "Sound-File"
PLAYBACK_POSITION = "Playback-Position"
CURSOR = "Cursor"

_HEADER_LINE = re.compile(r"^#\s*([A-Za-z][A-Za-z0-9-]*):\s?(.*)$")


@dataclass
class SavedMarkers:
    position: int = 0
    cursor: int = 0


def _coerce_marker(value: Optional[str], field_name: str, path: Path) -> int:
    if value is None:
        log.warning("transcript_marker_missing", extra={"path": str(path), "field": field_name})
        return 0
    try:
        return max(0, int(value.strip()))
    except ValueError:
        log.warning("transcript_marker_invalid", extra={"path": str(path), "field": field_name, "value": value})
        return 0


@dataclass
class TranscriptDocument:
    path: Path
    header: Dict[str, str] = field(default_factory=dict)
    body: str = ""

    @classmethod
    def create(cls, path: Union[str, Path], sound_file: str, *, body: str = "") -> "TranscriptDocument":
        target = Path(path)
        if target.exists():
            raise PersistenceError(f"Transcript {target} already exists")
        document = cls(
            path=target,
            header={SOUND_FILE: sound_file, PLAYBACK_POSITION: "0", CURSOR: "0"},
            body=body,
        )
        document.save()
        return document

    @classmethod
    def load(cls, path: Union[str, Path]) -> "TranscriptDocument":
        target = Path(path)
        try:
            text = target.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Cannot read transcript {target}: {exc}") from exc

        header: Dict[str, str] = {}
        lines = text.splitlines(keepends=True)
        consumed = 0
        for line in lines:
            match = _HEADER_LINE.match(line.rstrip("\r\n"))
            if not match:
                break
            header[match.group(1)] = match.group(2).strip()
            consumed += 1
        body = "".join(lines[consumed:])
        # a single blank separator line belongs to the header block
        if consumed and body.startswith("\n"):
            body = body[1:]
        return cls(path=target, header=header, body=body)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    @property
    def sound_file(self) -> Optional[str]:
        value = self.header.get(SOUND_FILE)
        if not value:
            return None
        candidate = Path(value).expanduser()
        if not candidate.is_absolute():
            candidate = self.path.parent / candidate
        return str(candidate)

    def markers(self) -> SavedMarkers:
        return SavedMarkers(
            position=_coerce_marker(self.header.get(PLAYBACK_POSITION), PLAYBACK_POSITION, self.path),
            cursor=_coerce_marker(self.header.get(CURSOR), CURSOR, self.path),
        )

    def save_markers(self, position: int, cursor: int) -> None:
        for name in (PLAYBACK_POSITION, CURSOR):
            if name not in self.header:
                raise MissingMetadataField(str(self.path), name)
        self.header[PLAYBACK_POSITION] = str(max(0, int(position)))
        self.header[CURSOR] = str(max(0, int(cursor)))
        self.save()
        log.info("transcript_markers_saved", extra={"path": str(self.path), "position": position, "cursor": cursor})

    # ------------------------------------------------------------------
    # Body editing
    # ------------------------------------------------------------------
    def insert(self, cursor: int, text: str) -> int:
        """Insert ``text`` at ``cursor`` and return the cursor after it."""

        offset = min(max(0, cursor), len(self.body))
        self.body = self.body[:offset] + text + self.body[offset:]
        return offset + len(text)

    def save(self) -> None:
        lines: List[str] = [f"# {key}: {value}\n" for key, value in self.header.items()]
        payload = "".join(lines) + ("\n" if lines else "") + self.body
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Cannot write transcript {self.path}: {exc}") from exc


__all__ = [
    "CURSOR",
    "PLAYBACK_POSITION",
    "SOUND_FILE",
    "SavedMarkers",
    "TranscriptDocument",
]
