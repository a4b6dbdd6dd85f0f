"""Playback state machine and the host commands built on it."""

from __future__ import annotations

from typing import Callable, Optional

from warp_transcribe.backend.common.logging import get_logger
from warp_transcribe.backend.common.types import PlaybackSnapshot
from warp_transcribe.backend.persistence.document import TranscriptDocument
from warp_transcribe.backend.player.exceptions import QueryTimeout, WriteFailed
from warp_transcribe.backend.player.protocols import CommandKind
from warp_transcribe.backend.player.session import PlayerSession
from warp_transcribe.backend.player.state import PlayerStatus

log = get_logger(__name__)


class PlaybackController:
    """Drives one :class:`PlayerSession` through NULL, IDLE and PLAYING."""

    def __init__(
        self,
        session: PlayerSession,
        *,
        document: Optional[TranscriptDocument] = None,
        cursor: Optional[Callable[[], int]] = None,
        rewind_step: int = 3,
        end_margin: int = 3,
    ) -> None:
        self.session = session
        self.document = document
        self._cursor = cursor
        self.rewind_step = rewind_step
        self.end_margin = end_margin

    @property
    def status(self) -> PlayerStatus:
        return self.session.status

    # ------------------------------------------------------------------
    # Playback lifecycle
    # ------------------------------------------------------------------
    def toggle_play(self) -> PlayerStatus:
        status = self.session.status
        if status is PlayerStatus.NULL:
            self.session.ensure_running()
            if self.session.transition(PlayerStatus.PLAYING):
                self._message("starting")
        elif status is PlayerStatus.IDLE:
            self.session.issue(CommandKind.PLAY)
            self.session.transition(PlayerStatus.PLAYING)
            self._message("resuming")
        else:
            protocol = self.session.active_protocol
            if protocol is not None and protocol.auto_rewind:
                self.session.issue(CommandKind.SKIP, protocol.auto_rewind)
            self.session.issue(CommandKind.STOP)
            self.session.transition(PlayerStatus.IDLE)
            self._message(f"stopped at {self.session.position_display}")
        return self.session.status

    def quit(self) -> None:
        """Save the position markers, then ask the player to quit.

        The player is released even when saving fails; the save error is
        raised afterwards.
        """

        try:
            self._persist_position()
        finally:
            self._stop_player()

    def close(self) -> None:
        try:
            self.quit()
        finally:
            self.session.close()

    # ------------------------------------------------------------------
    # Seeking
    # ------------------------------------------------------------------
    def seek(self, seconds: int) -> bool:
        if self.session.status is PlayerStatus.NULL:
            return False
        return self.session.issue(CommandKind.SEEK, max(0, int(seconds)))

    def skip(self, seconds: int) -> bool:
        if self.session.status is PlayerStatus.NULL:
            return False
        return self.session.issue(CommandKind.SKIP, int(seconds))

    def rewind(self, seconds: Optional[int] = None) -> bool:
        step = self.rewind_step if seconds is None else seconds
        return self.skip(-abs(step))

    def seek_home(self) -> bool:
        return self.seek(0)

    def seek_end(self) -> bool:
        length = self.query_length()
        if length <= 0:
            self._message("length unknown")
            return False
        return self.seek(max(0, length - self.end_margin))

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    def timestamp(self) -> str:
        return self.session.position_display

    def query_position(self) -> int:
        return self._query(CommandKind.QUERY_POSITION)

    def query_length(self) -> int:
        return self._query(CommandKind.QUERY_LENGTH)

    def now_playing(self) -> PlaybackSnapshot:
        return self.session.snapshot()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _query(self, kind: CommandKind) -> int:
        if self.session.status is PlayerStatus.NULL:
            return self.session.position if kind is CommandKind.QUERY_POSITION else self.session.length
        try:
            return self.session.query(kind)
        except QueryTimeout as exc:
            log.warning("query_timeout", extra={"field": exc.field, "stale": exc.stale, "timeout": exc.timeout})
            return exc.stale

    def _persist_position(self) -> None:
        session = self.session
        position = session.position
        cursor = self._cursor() if self._cursor is not None else session.saved_document_cursor
        if self.document is not None:
            self.document.save_markers(position, cursor)
        session.saved_playback_position = position
        session.saved_document_cursor = cursor

    def _stop_player(self) -> None:
        if self.session.status is not PlayerStatus.NULL:
            try:
                self.session.issue(CommandKind.QUIT)
            except WriteFailed as exc:
                log.warning("player_quit_failed", extra={"error": str(exc)})
        self.session.release_process()

    def _message(self, text: str) -> None:
        self.session.hooks.message(text)
