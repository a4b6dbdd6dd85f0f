"""Per-transcript player session: protocol, subprocess and playback state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional
import threading
import time

from warp_transcribe.backend.common.logging import get_logger
from warp_transcribe.backend.common.tasks import TaskRunner
from warp_transcribe.backend.common.types import PlaybackSnapshot
from warp_transcribe.backend.player.display import RefreshThrottle, Scheduler, start_timer
from warp_transcribe.backend.player.exceptions import (
    NoSoundFile,
    QueryTimeout,
    UnreadableFile,
    WriteFailed,
)
from warp_transcribe.backend.player.interpreters import interpret
from warp_transcribe.backend.player.process import PlayerProcess, describe_exit
from warp_transcribe.backend.player.protocols import (
    CommandKind,
    ProtocolDescriptor,
    normalize_exit_report,
)
from warp_transcribe.backend.player.registry import ProtocolRegistry
from warp_transcribe.backend.player.state import PlaybackState, PlayerStatus, PositionUpdate

log = get_logger(__name__)

ProcessFactory = Callable[..., PlayerProcess]

_QUERY_FIELDS = {
    CommandKind.QUERY_POSITION: "position",
    CommandKind.QUERY_LENGTH: "length",
}


def _log_message(message: str) -> None:
    log.info("player_message", extra={"text": message})


def _ignore(_value: object) -> None:
    return None


@dataclass(frozen=True)
class SessionHooks:
    """Callbacks into the editing host."""

    message: Callable[[str], None] = _log_message
    display: Callable[[PlaybackSnapshot], None] = _ignore
    restore_cursor: Callable[[int], None] = _ignore


class PlayerSession:
    """Owns at most one player process for one sound file.

    Every mutable field is guarded by one re-entrant lock: output lines and the
    exit report arrive on the I/O task while commands come from the host.
    """

    def __init__(
        self,
        sound_file: Optional[str] = None,
        *,
        registry: Optional[ProtocolRegistry] = None,
        hooks: Optional[SessionHooks] = None,
        saved_position: int = 0,
        saved_cursor: int = 0,
        query_timeout: float = 1.0,
        refresh_interval: float = 0.1,
        process_factory: ProcessFactory = PlayerProcess,
        runner: Optional[TaskRunner] = None,
        clock: Callable[[], float] = time.monotonic,
        schedule: Scheduler = start_timer,
    ) -> None:
        self.sound_file = sound_file
        self.registry = registry or ProtocolRegistry.default()
        self.hooks = hooks or SessionHooks()
        self.saved_playback_position = max(0, int(saved_position))
        self.saved_document_cursor = max(0, int(saved_cursor))
        self.query_timeout = query_timeout
        self._process_factory = process_factory
        self._runner = runner
        self._owns_runner = runner is None
        self._state = PlaybackState(position=self.saved_playback_position)
        self._protocol: Optional[ProtocolDescriptor] = None
        self._process: Optional[PlayerProcess] = None
        self._initialized = False
        self._lock = threading.RLock()
        self._updated = threading.Condition(self._lock)
        self._generations = {"position": 0, "length": 0}
        self._throttle = RefreshThrottle(self._show, refresh_interval, clock=clock, schedule=schedule)

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def status(self) -> PlayerStatus:
        with self._lock:
            return self._state.status

    @property
    def position(self) -> int:
        with self._lock:
            return self._state.position

    @property
    def position_display(self) -> str:
        with self._lock:
            return self._state.position_display

    @property
    def length(self) -> int:
        with self._lock:
            return self._state.length

    @property
    def frame_rate(self) -> int:
        with self._lock:
            return self._state.frame_rate

    @property
    def active_protocol(self) -> Optional[ProtocolDescriptor]:
        with self._lock:
            return self._protocol

    @property
    def process(self) -> Optional[PlayerProcess]:
        with self._lock:
            return self._process

    @property
    def initialized(self) -> bool:
        with self._lock:
            return self._initialized

    def snapshot(self) -> PlaybackSnapshot:
        with self._lock:
            return PlaybackSnapshot(
                status=self._state.status.value,
                position=self._state.position,
                position_display=self._state.position_display,
                length=self._state.length,
                frame_rate=self._state.frame_rate,
                sound_file=self.sound_file,
                protocol=self._protocol.name if self._protocol else None,
            )

    def transition(self, status: PlayerStatus) -> bool:
        """Move to ``status``; a live process is required for IDLE and PLAYING."""

        with self._lock:
            if status is not PlayerStatus.NULL and self._process is None:
                self._state.status = PlayerStatus.NULL
                return False
            self._state.status = status
            return True

    # ------------------------------------------------------------------
    # Setup & process lifecycle
    # ------------------------------------------------------------------
    def reset_protocol(self) -> None:
        """Forget the resolved protocol; the next setup resolves it again."""

        with self._lock:
            self._protocol = None
            self._initialized = False

    def setup(self, force: bool = False) -> ProtocolDescriptor:
        with self._lock:
            if self._initialized and not force and self._protocol is not None:
                return self._protocol
            if not self.sound_file:
                raise NoSoundFile("The transcript does not name a sound file")
            if self._protocol is None or force:
                self._protocol = self.registry.resolve(self.sound_file)
            try:
                with open(self.sound_file, "rb"):
                    pass
            except OSError as exc:
                raise UnreadableFile(self.sound_file, exc.strerror) from exc
            self._initialized = True
            protocol = self._protocol
        log.info("session_ready", extra={"sound_file": self.sound_file, "protocol": protocol.name})
        self.hooks.restore_cursor(self.saved_document_cursor)
        return protocol

    def ensure_running(self) -> PlayerProcess:
        protocol = self.setup()
        with self._lock:
            self.check_process()
            if self._process is not None:
                return self._process
            if self._runner is None:
                self._runner = TaskRunner(max_workers=2, context="player-io")
            process = self._process_factory(
                protocol.argv(self.sound_file),
                on_line=self._handle_line,
                on_exit=self._handle_exit,
                runner=self._runner,
            )
            process.start()
            self._process = process
            # a fresh player starts at the beginning of the file
            self._state.position = 0
        self.issue(CommandKind.LOAD, self.sound_file)
        self.issue(CommandKind.SEEK, self.saved_playback_position)
        with self._lock:
            if self._state.position == 0:
                self._state.position = self.saved_playback_position
        return process

    def check_process(self) -> bool:
        """Release a dead process handle; return whether a live one remains."""

        with self._lock:
            process = self._process
            if process is None:
                return False
            if process.is_alive():
                return True
            self._process = None
            self._state.status = PlayerStatus.NULL
            self._updated.notify_all()
        log.info("player_reaped", extra={"returncode": process.returncode})
        process.close()
        return False

    def release_process(self, *, terminate: bool = False) -> None:
        with self._lock:
            process = self._process
            self._process = None
            self._state.status = PlayerStatus.NULL
            self._updated.notify_all()
        if process is not None:
            process.close(terminate=terminate)

    def close(self) -> None:
        self._throttle.cancel()
        self.release_process(terminate=True)
        with self._lock:
            runner, self._runner = self._runner, None
        if runner is not None and self._owns_runner:
            runner.close(wait=False)

    def _handle_exit(self, process: PlayerProcess, returncode: int) -> None:
        with self._lock:
            owned = process is self._process
            protocol = self._protocol
            if owned:
                self._process = None
                self._state.status = PlayerStatus.NULL
                self._updated.notify_all()
        if not owned:
            log.debug("player_exit_ignored", extra={"returncode": returncode})
            return
        process.close()
        report = describe_exit(returncode)
        name = protocol.name if protocol else "player"
        if protocol is not None:
            report = normalize_exit_report(protocol, report)
        self.hooks.message(f"{name} {report}")
        self.refresh_display(force=True)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def issue(self, kind: CommandKind, *args: object) -> bool:
        kind = CommandKind(kind)
        with self._lock:
            protocol = self._protocol
            command = protocol.command(kind) if protocol else None
            if command is None:
                log.debug("command_unsupported", extra={"command": kind.value})
                return False
            process = self._process
            if process is None:
                raise WriteFailed(f"Cannot send '{kind.value}': no player process")
            line = command.render(self._state, *args)
        if not line.endswith("\n"):
            line += "\n"
        try:
            process.write(line)
        except WriteFailed:
            self.check_process()
            raise
        log.debug("command_sent", extra={"command": kind.value, "line": line.rstrip("\n")})
        return True

    def query(self, kind: CommandKind) -> int:
        """Ask the player for a fresh value and wait briefly for the answer."""

        kind = CommandKind(kind)
        field = _QUERY_FIELDS[kind]
        with self._lock:
            marker = self._generations[field]
        if not self.issue(kind):
            with self._lock:
                return getattr(self._state, field)
        with self._updated:
            answered = self._updated.wait_for(
                lambda: self._generations[field] != marker or self._process is None,
                timeout=self.query_timeout,
            )
            answered = answered and self._generations[field] != marker
            value = getattr(self._state, field)
        if not answered:
            raise QueryTimeout(field, value, self.query_timeout)
        return value

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def _handle_line(self, process: PlayerProcess, line: str) -> None:
        with self._lock:
            owned = process is self._process
        if not owned:
            log.debug("player_output_ignored", extra={"line": line})
            return
        self.feed_line(line)

    def feed_line(self, line: str) -> Optional[PositionUpdate]:
        with self._lock:
            protocol = self._protocol
        update = interpret(protocol, line) if protocol else None
        if update is not None:
            with self._updated:
                self._state.apply(update)
                if update.position is not None:
                    self._generations["position"] += 1
                if update.length is not None:
                    self._generations["length"] += 1
                self._updated.notify_all()
        self.refresh_display()
        return update

    def refresh_display(self, force: bool = False) -> None:
        if force:
            self._throttle.flush(self.snapshot)
        else:
            self._throttle.request(self.snapshot)

    def _show(self, snapshot: PlaybackSnapshot) -> None:
        self.hooks.display(snapshot)


__all__ = ["PlayerSession", "SessionHooks"]
