"""Subprocess player control: protocols, sessions and the playback state machine."""

from warp_transcribe.backend.player.controller import PlaybackController
from warp_transcribe.backend.player.exceptions import (
    LaunchFailed,
    NoMatchingProtocol,
    NoSoundFile,
    PlayerError,
    QueryTimeout,
    SetupError,
    UnknownProtocol,
    UnreadableFile,
    WriteFailed,
)
from warp_transcribe.backend.player.protocols import (
    BUILTIN_PROTOCOLS,
    Callback,
    CommandKind,
    ProtocolDescriptor,
    Template,
)
from warp_transcribe.backend.player.registry import ProtocolRegistry, build_registry
from warp_transcribe.backend.player.session import PlayerSession, SessionHooks
from warp_transcribe.backend.player.state import PlayerStatus, PositionUpdate

__all__ = [
    "BUILTIN_PROTOCOLS",
    "Callback",
    "CommandKind",
    "LaunchFailed",
    "NoMatchingProtocol",
    "NoSoundFile",
    "PlaybackController",
    "PlayerError",
    "PlayerSession",
    "PlayerStatus",
    "PositionUpdate",
    "ProtocolDescriptor",
    "ProtocolRegistry",
    "QueryTimeout",
    "SessionHooks",
    "SetupError",
    "Template",
    "UnknownProtocol",
    "UnreadableFile",
    "WriteFailed",
    "build_registry",
]
