"""Line-oriented channel to one external player process."""

from __future__ import annotations

import subprocess
import threading
from typing import Callable, Optional, Sequence

from warp_transcribe.backend.common.logging import get_logger
from warp_transcribe.backend.common.tasks import TaskRunner, TaskSpec
from warp_transcribe.backend.player.exceptions import LaunchFailed, WriteFailed

log = get_logger(__name__)

LineHandler = Callable[["PlayerProcess", str], None]
ExitHandler = Callable[["PlayerProcess", int], None]


def describe_exit(returncode: int) -> str:
    if returncode == 0:
        return "finished"
    if returncode < 0:
        return f"killed by signal {-returncode}"
    return f"exited abnormally with code {returncode}"


class PlayerProcess:
    """Owns a player subprocess, pumping its output into ``on_line``.

    Output is read on a background task; once the stream closes the same task
    waits for the exit status and calls ``on_exit``, so every line is handled
    before the exit is reported.
    """

    def __init__(
        self,
        argv: Sequence[str],
        *,
        on_line: LineHandler,
        on_exit: ExitHandler,
        runner: Optional[TaskRunner] = None,
    ) -> None:
        self.argv = list(argv)
        self._on_line = on_line
        self._on_exit = on_exit
        self._runner = runner
        self._owns_runner = runner is None
        self._proc: Optional[subprocess.Popen[str]] = None
        self._write_lock = threading.Lock()

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid if self._proc else None

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.poll() if self._proc else None

    def start(self) -> None:
        try:
            self._proc = subprocess.Popen(
                self.argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as exc:
            raise LaunchFailed(f"Cannot start {self.argv[0]}: {exc}") from exc
        log.info("player_launch", extra={"argv": self.argv, "pid": self._proc.pid})
        if self._runner is None:
            self._runner = TaskRunner(max_workers=1, context="player-io")
        self._runner.submit(TaskSpec(fn=self._pump, name=f"pump:{self.argv[0]}"))

    def is_alive(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    def write(self, line: str) -> None:
        proc = self._proc
        if proc is None or proc.stdin is None:
            raise WriteFailed("Player process is not running")
        with self._write_lock:
            try:
                proc.stdin.write(line)
                proc.stdin.flush()
            except (OSError, ValueError) as exc:
                raise WriteFailed(f"Cannot write to {self.argv[0]}: {exc}") from exc

    def close(self, *, terminate: bool = False) -> None:
        proc = self._proc
        if proc is None:
            return
        if proc.stdin is not None:
            try:
                proc.stdin.close()
            except OSError:
                pass
        if terminate and proc.poll() is None:
            proc.terminate()
        if self._owns_runner and self._runner is not None:
            self._runner.close(wait=False)

    def _pump(self) -> int:
        proc = self._proc
        assert proc is not None and proc.stdout is not None
        # universal newlines turn the carriage-return status lines into lines too
        for raw in proc.stdout:
            line = raw.rstrip("\n")
            if not line:
                continue
            try:
                self._on_line(self, line)
            except Exception:  # noqa: BLE001
                log.exception("player_output_handler_failed", extra={"line": line})
        returncode = proc.wait()
        log.info("player_exit", extra={"argv0": self.argv[0], "returncode": returncode})
        self._on_exit(self, returncode)
        return returncode


__all__ = ["PlayerProcess", "describe_exit"]
