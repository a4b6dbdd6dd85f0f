"""Ordered mapping from sound-file name patterns to player protocols."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Optional, Pattern, Tuple, Union

from warp_transcribe.backend.common.logging import get_logger
from warp_transcribe.backend.player.exceptions import NoMatchingProtocol
from warp_transcribe.backend.player.protocols import (
    BUILTIN_PROTOCOLS,
    MPG123,
    MPLAYER,
    OGG123,
    ProtocolDescriptor,
)

log = get_logger(__name__)

PatternLike = Union[str, Pattern[str]]

DEFAULT_MAPPINGS: Tuple[Tuple[str, ProtocolDescriptor], ...] = (
    (r"\.mp3$", MPG123),
    (r"\.ogg$", OGG123),
    (r"\.(avi|wav|mpe?g|mp4|mkv|flac|m4a|webm)$", MPLAYER),
)


def _compile(pattern: PatternLike) -> Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern, re.IGNORECASE)


@dataclass(frozen=True)
class RegistryEntry:
    pattern: Pattern[str]
    protocol: ProtocolDescriptor

    def matches(self, filename: str) -> bool:
        return self.pattern.search(filename) is not None


class ProtocolRegistry:
    """First matching pattern wins; earlier entries override later ones."""

    def __init__(self, entries: Iterable[Tuple[PatternLike, ProtocolDescriptor]] = ()) -> None:
        self._entries: list[RegistryEntry] = [
            RegistryEntry(_compile(pattern), protocol) for pattern, protocol in entries
        ]

    @classmethod
    def default(cls) -> "ProtocolRegistry":
        return cls(DEFAULT_MAPPINGS)

    def register(self, pattern: PatternLike, protocol: ProtocolDescriptor, *, first: bool = False) -> None:
        entry = RegistryEntry(_compile(pattern), protocol)
        if first:
            self._entries.insert(0, entry)
        else:
            self._entries.append(entry)

    def resolve(self, filename: Optional[str]) -> ProtocolDescriptor:
        if not filename:
            raise NoMatchingProtocol(filename)
        for entry in self._entries:
            if entry.matches(filename):
                log.debug(
                    "protocol_resolved",
                    extra={"file": filename, "protocol": entry.protocol.name, "pattern": entry.pattern.pattern},
                )
                return entry.protocol
        raise NoMatchingProtocol(filename)

    def protocols(self) -> dict[str, ProtocolDescriptor]:
        found: dict[str, ProtocolDescriptor] = {}
        for entry in self._entries:
            found.setdefault(entry.protocol.name, entry.protocol)
        return found

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


def build_registry(settings: Any) -> ProtocolRegistry:
    """Apply per-player overrides and put user mappings ahead of the defaults."""

    protocols: Dict[str, ProtocolDescriptor] = {}
    for name, protocol in BUILTIN_PROTOCOLS.items():
        override = settings.players.get(name)
        if override is not None:
            protocol = protocol.with_overrides(
                program=override.program,
                launch_options=override.launch_options,
                auto_rewind=override.auto_rewind,
                clear_auto_rewind=override.disable_auto_rewind,
            )
        protocols[name] = protocol

    entries: list[Tuple[PatternLike, ProtocolDescriptor]] = [
        (mapping.pattern, protocols[mapping.protocol]) for mapping in settings.protocol_map
    ]
    entries.extend((pattern, protocols[protocol.name]) for pattern, protocol in DEFAULT_MAPPINGS)
    return ProtocolRegistry(entries)


__all__ = ["DEFAULT_MAPPINGS", "ProtocolRegistry", "RegistryEntry", "build_registry"]
