"""Core entities for per-server playback sessions."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from playback_coordinator.domain.playback.value_objects import SessionPhase
from playback_coordinator.domain.shared.datetime_utils import completion_key, utcnow
from playback_coordinator.domain.shared.types import (
    ChannelId,
    DurationSeconds,
    HttpUrlStr,
    NonEmptyStr,
    PositiveInt,
    ServerId,
    SongTitleStr,
    UserId,
    UtcDatetimeField,
)
from playback_coordinator.utils.reply import format_duration


class SongItem(BaseModel):
    """Immutable resolved song.

    ``locator`` is whatever the voice gateway streams from: a downloaded
    file path or a direct stream URL.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    title: SongTitleStr
    duration_seconds: DurationSeconds
    uploader: NonEmptyStr
    locator: NonEmptyStr
    webpage_url: HttpUrlStr | None = None

    @property
    def duration_formatted(self) -> str:
        return format_duration(self.duration_seconds)


class QueuedRequest(BaseModel):
    """A resolved song waiting in a server's queue, with who asked for it and where."""

    model_config = ConfigDict(frozen=True, strict=True)

    item: SongItem
    requested_in: ChannelId
    requester_id: UserId
    requester_name: NonEmptyStr

    def was_requested_by(self, user_id: int) -> bool:
        return self.requester_id == user_id


class PlayingRecord(BaseModel):
    """The request currently playing in a server, plus its skip-vote tally."""

    model_config = ConfigDict(strict=True)

    request: QueuedRequest
    skip_votes_required: PositiveInt
    skip_voter_ids: set[int] = Field(default_factory=set)
    started_at: UtcDatetimeField = Field(default_factory=utcnow)

    @property
    def item(self) -> SongItem:
        return self.request.item

    @property
    def vote_count(self) -> int:
        return len(self.skip_voter_ids)

    @property
    def completes_at(self) -> int:
        """Completion-index key for this record."""
        return completion_key(self.started_at, self.item.duration_seconds)

    def elapsed_seconds(self, now: datetime) -> int:
        return int((now - self.started_at).total_seconds())

    def remaining_seconds(self, now: datetime) -> int:
        return self.item.duration_seconds - self.elapsed_seconds(now)


class ServerSession(BaseModel):
    """Per-server aggregate: the FIFO queue and what is playing right now."""

    model_config = ConfigDict(strict=True)

    server_id: ServerId
    queue: list[QueuedRequest] = Field(default_factory=list)
    playing: PlayingRecord | None = None
    created_at: UtcDatetimeField = Field(default_factory=utcnow)

    @property
    def phase(self) -> SessionPhase:
        return SessionPhase.PLAYING if self.playing is not None else SessionPhase.IDLE

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    @property
    def is_idle(self) -> bool:
        return self.playing is None

    def enqueue(self, request: QueuedRequest) -> int:
        """Append to the end of the queue and return the 0-based position."""
        self.queue.append(request)
        return len(self.queue) - 1

    def dequeue(self) -> QueuedRequest | None:
        if not self.queue:
            return None
        return self.queue.pop(0)
