"""Playback bounded context: sessions, queues, skip votes, completion scheduling."""

from playback_coordinator.domain.playback.completion_index import IMMEDIATE, CompletionIndex
from playback_coordinator.domain.playback.entities import (
    PlayingRecord,
    QueuedRequest,
    ServerSession,
    SongItem,
)
from playback_coordinator.domain.playback.session_store import SessionStore
from playback_coordinator.domain.playback.skip_votes import SkipVoteEngine
from playback_coordinator.domain.playback.value_objects import SessionPhase, SkipVoteOutcome

__all__ = [
    "IMMEDIATE",
    "CompletionIndex",
    "PlayingRecord",
    "QueuedRequest",
    "ServerSession",
    "SessionPhase",
    "SessionStore",
    "SkipVoteEngine",
    "SkipVoteOutcome",
    "SongItem",
]
