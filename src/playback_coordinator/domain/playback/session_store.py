"""In-memory store of every server's playback session and the completion index.

One ``asyncio.Lock`` guards sessions and index together. The mutators here
are plain synchronous methods: callers acquire ``store.lock`` (or use
``async with store.locked()``) around the smallest span that must be atomic
and never await gateway or resolver I/O while holding it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Protocol

from playback_coordinator.domain.playback.completion_index import IMMEDIATE, CompletionIndex
from playback_coordinator.domain.playback.entities import (
    PlayingRecord,
    QueuedRequest,
    ServerSession,
)
from playback_coordinator.domain.playback.value_objects import SessionPhase
from playback_coordinator.domain.shared.exceptions import NotConnectedError, QueueFullError
from playback_coordinator.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

DEFAULT_MAX_QUEUE_SIZE = 50


class ConnectionProbe(Protocol):
    def is_connected(self, server_id: int) -> bool: ...


class SessionStore:
    """Authoritative per-server state: queue, playing record, completion schedule."""

    def __init__(self, *, max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE) -> None:
        self._sessions: dict[int, ServerSession] = {}
        self._index = CompletionIndex()
        self._max_queue_size = max_queue_size
        self.lock = asyncio.Lock()

    @asynccontextmanager
    async def locked(self) -> AsyncIterator[SessionStore]:
        async with self.lock:
            yield self

    @property
    def index(self) -> CompletionIndex:
        return self._index

    @property
    def max_queue_size(self) -> int:
        return self._max_queue_size

    # === Reads ===

    def get(self, server_id: int) -> ServerSession | None:
        return self._sessions.get(server_id)

    def phase(self, server_id: int) -> SessionPhase:
        session = self._sessions.get(server_id)
        if session is None:
            return SessionPhase.ABSENT
        return session.phase

    def playing(self, server_id: int) -> PlayingRecord | None:
        session = self._sessions.get(server_id)
        return session.playing if session is not None else None

    def queue_snapshot(self, server_id: int) -> list[QueuedRequest]:
        session = self._sessions.get(server_id)
        return list(session.queue) if session is not None else []

    def server_ids(self) -> list[int]:
        return list(self._sessions)

    def is_idle_and_connected(self, server_id: int, gateway: ConnectionProbe) -> bool:
        """True when nothing is playing here and the gateway holds a voice connection."""
        session = self._sessions.get(server_id)
        if session is not None and session.playing is not None:
            return False
        return gateway.is_connected(server_id)

    # === Session lifecycle ===

    def ensure_session(self, server_id: int) -> ServerSession:
        session = self._sessions.get(server_id)
        if session is None:
            session = ServerSession(server_id=server_id)
            self._sessions[server_id] = session
            logger.debug(LogTemplates.SESSION_CREATED, server_id)
        return session

    def teardown_session(self, server_id: int) -> bool:
        """Forget the server entirely, including any pending completion entry."""
        self._index.remove_server(server_id)
        session = self._sessions.pop(server_id, None)
        if session is None:
            return False

        logger.info(LogTemplates.SESSION_TORN_DOWN, server_id, session.queue_length)
        return True

    # === Queue ===

    def enqueue(self, server_id: int, request: QueuedRequest) -> int:
        """Append *request* to the server's queue and return its 0-based position.

        Raises:
            NotConnectedError: The server has no session.
            QueueFullError: The queue already holds ``max_queue_size`` requests.
        """
        session = self._sessions.get(server_id)
        if session is None:
            raise NotConnectedError(server_id)
        if session.queue_length >= self._max_queue_size:
            raise QueueFullError(server_id, self._max_queue_size)

        position = session.enqueue(request)
        logger.info(LogTemplates.REQUEST_QUEUED, request.item.title, server_id, position)
        return position

    def pop_next(self, server_id: int) -> QueuedRequest | None:
        session = self._sessions.get(server_id)
        if session is None:
            return None
        return session.dequeue()

    # === Playing record ===

    def begin_playback(
        self,
        server_id: int,
        request: QueuedRequest,
        *,
        votes_required: int,
        started_at: datetime,
    ) -> PlayingRecord:
        """Install a new playing record and schedule its completion.

        The request must already have been removed from the queue.
        """
        session = self._sessions.get(server_id)
        if session is None:
            raise NotConnectedError(server_id)

        record = PlayingRecord(
            request=request,
            skip_votes_required=votes_required,
            started_at=started_at,
        )
        session.playing = record
        self._index.register_completion(server_id, record.completes_at)
        return record

    def clear_playing(self, server_id: int) -> PlayingRecord | None:
        """Reset the server to IDLE and unschedule it. Returns the cleared record."""
        self._index.remove_server(server_id)
        session = self._sessions.get(server_id)
        if session is None:
            return None

        record = session.playing
        session.playing = None
        return record

    # === Scheduling ===

    def schedule_immediate_start(self, server_id: int) -> bool:
        """Ask the driver to start this server on its next pass.

        No-op (returns False) when the server is already scheduled anywhere.
        """
        if self._index.contains(server_id):
            return False

        self._index.register_completion(server_id, IMMEDIATE)
        logger.debug(LogTemplates.IMMEDIATE_START_SCHEDULED, server_id)
        return True

    def schedule_pending_start(self, server_id: int) -> bool:
        """Schedule an immediate start if the server is IDLE with requests waiting."""
        session = self._sessions.get(server_id)
        if session is None or not session.is_idle or not session.queue:
            return False
        return self.schedule_immediate_start(server_id)
