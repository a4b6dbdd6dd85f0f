"""Declarative descriptions of the player programs we know how to drive."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from warp_transcribe.backend.player.interpreters import (
    interpret_av_status,
    interpret_frame_info,
    interpret_pos_status,
)
from warp_transcribe.backend.player.state import PlaybackState, PositionUpdate


class CommandKind(str, Enum):
    LOAD = "load"
    PLAY = "play"
    STOP = "stop"
    SEEK = "seek"
    SKIP = "skip"
    QUIT = "quit"
    QUERY_POSITION = "query-position"
    QUERY_LENGTH = "query-length"


@dataclass(frozen=True, slots=True)
class Template:
    """Command text with positional ``str.format`` placeholders."""

    text: str

    def render(self, state: PlaybackState, *args: Any) -> str:
        return self.text.format(*args)


@dataclass(frozen=True, slots=True)
class Callback:
    """Command computed from the playback state, e.g. seconds to frames."""

    fn: Callable[..., str]

    def render(self, state: PlaybackState, *args: Any) -> str:
        return self.fn(state, *args)


Command = Union[Template, Callback]
Interpreter = Callable[[str], Optional[PositionUpdate]]


@dataclass(frozen=True)
class ProtocolDescriptor:
    name: str
    program: str
    interpreter: Interpreter
    commands: Mapping[CommandKind, Command] = field(default_factory=dict)
    launch_options: tuple[str, ...] = ()
    auto_rewind: Optional[int] = None
    file_argument: bool = True
    benign_exit_codes: frozenset[int] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "commands", MappingProxyType(dict(self.commands)))
        object.__setattr__(self, "launch_options", tuple(self.launch_options))
        object.__setattr__(self, "benign_exit_codes", frozenset(self.benign_exit_codes))

    def command(self, kind: CommandKind) -> Optional[Command]:
        return self.commands.get(CommandKind(kind))

    def supports(self, kind: CommandKind) -> bool:
        return self.command(kind) is not None

    def argv(self, sound_file: str) -> list[str]:
        argv = [self.program, *self.launch_options]
        if self.file_argument:
            argv.append(sound_file)
        return argv

    def with_overrides(
        self,
        *,
        program: Optional[str] = None,
        launch_options: Optional[Sequence[str]] = None,
        auto_rewind: Optional[int] = None,
        clear_auto_rewind: bool = False,
    ) -> "ProtocolDescriptor":
        changes: dict[str, Any] = {}
        if program:
            changes["program"] = program
        if launch_options is not None:
            changes["launch_options"] = tuple(launch_options)
        if clear_auto_rewind:
            changes["auto_rewind"] = None
        elif auto_rewind is not None:
            changes["auto_rewind"] = auto_rewind
        return replace(self, **changes) if changes else self

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "program": self.program,
            "launch_options": list(self.launch_options),
            "auto_rewind": self.auto_rewind,
            "file_argument": self.file_argument,
            "commands": sorted(kind.value for kind in self.commands),
        }


def normalize_exit_report(protocol: ProtocolDescriptor, message: str) -> str:
    """Report ordinary completion for exit codes the player uses when a track ends."""

    for code in protocol.benign_exit_codes:
        if f"exited abnormally with code {code}" in message:
            return "finished"
    return message


# --- mpg123 remote mode: positions are counted in frames -----------------

def _frames(state: PlaybackState, seconds: int) -> int:
    return int(seconds * state.frame_rate)


def _mpg123_seek(state: PlaybackState, seconds: int) -> str:
    return f"jump {_frames(state, seconds)}\n"


def _mpg123_skip(state: PlaybackState, seconds: int) -> str:
    return f"jump {_frames(state, seconds):+d}\n"


MPG123 = ProtocolDescriptor(
    name="mpg123",
    program="mpg123",
    launch_options=("-R",),
    file_argument=False,
    auto_rewind=-2,
    benign_exit_codes=frozenset({1}),
    interpreter=interpret_frame_info,
    commands={
        CommandKind.LOAD: Template("load {0}\n"),
        CommandKind.PLAY: Template("pause\n"),
        CommandKind.STOP: Template("pause\n"),
        CommandKind.SEEK: Callback(_mpg123_seek),
        CommandKind.SKIP: Callback(_mpg123_skip),
        CommandKind.QUIT: Template("quit\n"),
    },
)


# --- ogg123 style remote: absolute seeks only ----------------------------

def _ogg123_skip(state: PlaybackState, seconds: int) -> str:
    return f"r{max(0, state.position + seconds)}\n"


OGG123 = ProtocolDescriptor(
    name="ogg123",
    program="ogg123",
    interpreter=interpret_pos_status,
    commands={
        CommandKind.PLAY: Template("p\n"),
        CommandKind.STOP: Template("p\n"),
        CommandKind.SEEK: Template("r{0}\n"),
        CommandKind.SKIP: Callback(_ogg123_skip),
        CommandKind.QUIT: Template("q\n"),
    },
)


# --- mplayer slave mode: relative seeks only -----------------------------

def _mplayer_seek(state: PlaybackState, seconds: int) -> str:
    return f"seek {seconds - state.position}\n"


MPLAYER = ProtocolDescriptor(
    name="mplayer",
    program="mplayer",
    launch_options=("-slave",),
    interpreter=interpret_av_status,
    commands={
        CommandKind.PLAY: Template("pause\n"),
        CommandKind.STOP: Template("pause\n"),
        CommandKind.SEEK: Callback(_mplayer_seek),
        CommandKind.SKIP: Template("seek {0}\n"),
        CommandKind.QUIT: Template("quit\n"),
        CommandKind.QUERY_POSITION: Template("pausing_keep_force get_time_pos\n"),
        CommandKind.QUERY_LENGTH: Template("pausing_keep_force get_time_length\n"),
    },
)

BUILTIN_PROTOCOLS: Mapping[str, ProtocolDescriptor] = MappingProxyType(
    {protocol.name: protocol for protocol in (MPG123, OGG123, MPLAYER)}
)


__all__ = [
    "BUILTIN_PROTOCOLS",
    "Callback",
    "Command",
    "CommandKind",
    "MPG123",
    "MPLAYER",
    "OGG123",
    "ProtocolDescriptor",
    "Template",
    "normalize_exit_report",
]
