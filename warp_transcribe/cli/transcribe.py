"""Interactive transcription CLI: open a transcript and drive its player."""

from __future__ import annotations

import argparse
import re
import sys
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TextIO

from warp_transcribe.backend.common.errors import PersistenceError, WarpError
from warp_transcribe.backend.common.logging import get_logger, init_logging
from warp_transcribe.backend.common.timecode import format_time, parse_seconds
from warp_transcribe.backend.common.types import PlaybackSnapshot
from warp_transcribe.backend.persistence.document import SOUND_FILE, TranscriptDocument
from warp_transcribe.backend.player import (
    NoMatchingProtocol,
    PlaybackController,
    PlayerSession,
    SessionHooks,
    build_registry,
)
from warp_transcribe.config.settings import Settings, get_settings

from ._utils import (
    build_subparser,
    exit_with_error,
    print_json,
    require_subcommand,
    to_serializable,
)

log = get_logger(__name__)

_RELATIVE_SKIP = re.compile(r"^[+-]\d+$")

HELP_TEXT = """\
play, p          start, pause or resume playback
rewind, r [N]    skip back N seconds (default rewind step)
skip N           skip N seconds (negative goes back)
+N, -N           same as skip N (e.g. +5, -60, +3600)
goto TIME        jump to HH:MM:SS
home, end        jump to the start or near the end
stamp, t         insert the current position at the cursor
note TEXT        insert a line of text at the cursor
length, l        show the length of the sound file
status, s        show the player state
quit, q          save the position and leave"""


class TranscriptionConsole:
    """Line-oriented front end for one transcript and its player."""

    def __init__(
        self,
        controller: PlaybackController,
        document: TranscriptDocument,
        *,
        out: Optional[TextIO] = None,
        cursor: int = 0,
        progress: bool = False,
    ) -> None:
        self.controller = controller
        self.document = document
        self.out = out if out is not None else sys.stdout
        self.cursor = cursor
        self.progress = progress
        self.dirty = False
        self._out_lock = threading.Lock()
        self._verbs: Dict[str, Callable[[str], Optional[bool]]] = {
            "play": self._play,
            "p": self._play,
            "rewind": self._rewind,
            "r": self._rewind,
            "skip": self._skip,
            "goto": self._goto,
            "home": self._home,
            "end": self._end,
            "stamp": self._stamp,
            "t": self._stamp,
            "note": self._note,
            "length": self._length,
            "l": self._length,
            "status": self._status,
            "s": self._status,
            "help": self._help,
            "?": self._help,
            "quit": self._quit,
            "q": self._quit,
        }

    # ------------------------------------------------------------------
    # Host hooks
    # ------------------------------------------------------------------
    def message(self, text: str) -> None:
        self._write(f"* {text}\n")

    def display(self, snapshot: PlaybackSnapshot) -> None:
        if self.progress:
            self._write(f"\r[{snapshot.position_display}] {snapshot.status}  ")

    def restore_cursor(self, cursor: int) -> None:
        self.cursor = min(max(0, cursor), len(self.document.body))

    # ------------------------------------------------------------------
    # Command loop
    # ------------------------------------------------------------------
    def execute(self, line: str) -> bool:
        """Run one console command; return False once the user quits."""

        text = line.strip()
        if not text:
            return True
        verb, _, rest = text.partition(" ")
        rest = rest.strip()
        try:
            if _RELATIVE_SKIP.match(verb):
                self.controller.skip(int(verb))
                return True
            handler = self._verbs.get(verb.lower())
            if handler is None:
                self.message(f"unknown command '{verb}' (try 'help')")
                return True
            return handler(rest) is not False
        except WarpError as exc:
            self.message(f"error: {exc}")
        except ValueError as exc:
            self.message(f"bad argument: {exc}")
        return True

    def run(self, stdin: TextIO) -> None:
        for line in stdin:
            if not self.execute(line):
                break

    def close(self) -> None:
        try:
            self.controller.close()
        except PersistenceError as exc:
            self.message(f"error: {exc}")
        finally:
            if self.dirty:
                self.document.save()
                self.dirty = False

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------
    def _play(self, _rest: str) -> None:
        self.controller.toggle_play()

    def _rewind(self, rest: str) -> None:
        self.controller.rewind(int(rest) if rest else None)

    def _skip(self, rest: str) -> None:
        if not rest:
            raise ValueError("skip needs a number of seconds")
        self.controller.skip(int(rest))

    def _goto(self, rest: str) -> None:
        self.controller.seek(parse_seconds(rest))

    def _home(self, _rest: str) -> None:
        self.controller.seek_home()

    def _end(self, _rest: str) -> None:
        self.controller.seek_end()

    def _stamp(self, _rest: str) -> None:
        stamp = f"[{self.controller.timestamp()}] "
        self._insert(stamp)

    def _note(self, rest: str) -> None:
        if not rest:
            raise ValueError("note needs some text")
        self._insert(rest + "\n")

    def _length(self, _rest: str) -> None:
        self.message(f"length {format_time(self.controller.query_length())}")

    def _status(self, _rest: str) -> None:
        snap = self.controller.now_playing()
        protocol = snap.protocol or "unresolved"
        self.message(f"{snap.status} {snap.position_display} / {format_time(snap.length)} ({protocol})")

    def _help(self, _rest: str) -> None:
        self._write(HELP_TEXT + "\n")

    def _quit(self, _rest: str) -> bool:
        return False

    def _insert(self, text: str) -> None:
        self.cursor = self.document.insert(self.cursor, text)
        self.dirty = True

    def _write(self, text: str) -> None:
        with self._out_lock:
            self.out.write(text)
            self.out.flush()


def open_console(
    document: TranscriptDocument,
    settings: Settings,
    *,
    out: Optional[TextIO] = None,
    progress: bool = False,
    **session_options: Any,
) -> TranscriptionConsole:
    """Wire a document, a player session and a console together."""

    markers = document.markers()
    console: Optional[TranscriptionConsole] = None

    hooks = SessionHooks(
        message=lambda text: console.message(text),
        display=lambda snapshot: console.display(snapshot),
        restore_cursor=lambda cursor: console.restore_cursor(cursor),
    )
    session = PlayerSession(
        document.sound_file,
        registry=build_registry(settings),
        hooks=hooks,
        saved_position=markers.position,
        saved_cursor=markers.cursor,
        query_timeout=settings.query_timeout,
        refresh_interval=settings.refresh_interval,
        **session_options,
    )
    controller = PlaybackController(
        session,
        document=document,
        cursor=lambda: console.cursor,
        rewind_step=settings.rewind_step,
        end_margin=settings.end_margin,
    )
    console = TranscriptionConsole(controller, document, out=out, cursor=markers.cursor, progress=progress)
    return console


# ----------------------------------------------------------------------
# Sub-command handlers
# ----------------------------------------------------------------------
def _load_document(path: str) -> TranscriptDocument:
    try:
        return TranscriptDocument.load(path)
    except PersistenceError as exc:
        exit_with_error(str(exc))


def _handle_new(args: argparse.Namespace) -> None:
    sound_file = str(Path(args.sound_file).expanduser().resolve())
    try:
        document = TranscriptDocument.create(args.document, sound_file)
    except PersistenceError as exc:
        exit_with_error(str(exc))
        return
    print_json(to_serializable({"document": document.path, "header": document.header}))


def _handle_open(args: argparse.Namespace) -> None:
    settings = get_settings()
    init_logging(settings.log_level, stream=sys.stderr, log_file=settings.log_file)

    document = _load_document(args.document)
    if args.sound_file:
        document.header[SOUND_FILE] = str(Path(args.sound_file).expanduser().resolve())

    console = open_console(document, settings, progress=args.progress)
    log.info("transcript_open", extra={"path": str(document.path), "sound_file": document.sound_file})
    console.message(f"{document.path} ({document.sound_file or 'no sound file'}); 'help' lists commands")
    try:
        console.run(sys.stdin)
    except KeyboardInterrupt:
        console.message("interrupted")
    finally:
        try:
            console.close()
        except PersistenceError as exc:
            exit_with_error(str(exc))


def _handle_status(args: argparse.Namespace) -> None:
    settings = get_settings()
    document = _load_document(args.document)
    markers = document.markers()
    try:
        protocol = build_registry(settings).resolve(document.sound_file).name
    except NoMatchingProtocol:
        protocol = None
    print_json(
        to_serializable(
            {
                "document": document.path,
                "sound_file": document.sound_file,
                "playback_position": markers.position,
                "position_display": format_time(markers.position),
                "cursor": markers.cursor,
                "protocol": protocol,
            }
        )
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="warp-transcribe",
        description="Transcribe recordings while controlling an external audio player.",
    )
    subparsers = parser.add_subparsers(dest="command")
    require_subcommand(subparsers)

    new_parser = build_subparser(subparsers, "new", help="Create a transcript bound to a sound file.")
    new_parser.add_argument("document", help="Path of the transcript to create.")
    new_parser.add_argument("sound_file", help="Recording to transcribe.")
    new_parser.set_defaults(func=_handle_new)

    open_parser = build_subparser(subparsers, "open", help="Open a transcript in the interactive console.")
    open_parser.add_argument("document", help="Path of an existing transcript.")
    open_parser.add_argument("--sound-file", help="Use (and record) a different sound file.")
    open_parser.add_argument("--progress", action="store_true", help="Show the playback position while playing.")
    open_parser.set_defaults(func=_handle_open)

    status_parser = build_subparser(subparsers, "status", help="Show the saved markers of a transcript.")
    status_parser.add_argument("document", help="Path of an existing transcript.")
    status_parser.set_defaults(func=_handle_status)

    return parser


def main(argv: Optional[Any] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return
    handler(args)


if __name__ == "__main__":  # pragma: no cover
    main()
