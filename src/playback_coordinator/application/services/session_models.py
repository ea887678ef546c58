"""DTOs returned by the music session facade."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from ...domain.playback.entities import QueuedRequest
from ...domain.playback.value_objects import SkipVoteOutcome
from ...domain.shared.types import ChannelId, NonNegativeInt, ServerId


class PlayStatus(Enum):
    QUEUED = "queued"  # A song was resolved and appended
    JOINED = "joined"  # No URL; the bot only joined the requester's channel


class JoinResult(BaseModel):
    server_id: ServerId
    channel_id: ChannelId
    message: str


class PlayResult(BaseModel):
    status: PlayStatus
    joined: bool = False
    request: QueuedRequest | None = None
    position: NonNegativeInt = 0
    scheduled: bool = False
    message: str


class QueueEntry(BaseModel):
    position: NonNegativeInt
    title: str
    requester_name: str
    duration_formatted: str


class SkipResult(BaseModel):
    outcome: SkipVoteOutcome
    votes: NonNegativeInt = 0
    required: NonNegativeInt = 0
    message: str

    @property
    def forced_stop(self) -> bool:
        return self.outcome.forces_stop


class StatusResult(BaseModel):
    title: str
    elapsed_seconds: int
    duration_seconds: NonNegativeInt
    remaining_seconds: int
    message: str
