from __future__ import annotations

from typing import Literal, Optional, TypedDict

from pydantic import BaseModel, Field


PlayerStatusName = Literal["null", "idle", "playing"]


class HealthReport(TypedDict):
    status: Literal["ok", "degraded", "fail"]
    components: dict[str, Literal["ok", "degraded", "fail"]]


class PlaybackSnapshot(BaseModel):
    """Read-only view of a player session handed to displays and the CLI."""

    status: PlayerStatusName
    position: int = Field(ge=0)
    position_display: str
    length: int = Field(ge=0)
    frame_rate: int = Field(ge=0)
    sound_file: Optional[str] = None
    protocol: Optional[str] = None
