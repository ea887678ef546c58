"""Music Session Service - the public join/leave/play/queue/skip/status operations.

Every operation takes the session store lock only around state access. Voice
gateway and resolver calls always happen with the lock released, so a slow
download or voice handshake in one server never blocks another.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from ...domain.playback.entities import QueuedRequest, SongItem
from ...domain.playback.skip_votes import SkipVoteEngine
from ...domain.playback.value_objects import SessionPhase
from ...domain.shared.datetime_utils import utcnow
from ...domain.shared.exceptions import (
    AlreadyConnectedError,
    EmptyQueueError,
    NoSongPlayingError,
    NoTargetChannelError,
    NotConnectedError,
    NothingToDoError,
    ResolutionError,
    SongTooLongError,
    VoiceConnectionError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates, ReplyMessages
from ...domain.shared.types import ChannelId, ServerId, UserId
from ...utils.reply import format_duration
from .session_models import (
    JoinResult,
    PlayResult,
    PlayStatus,
    QueueEntry,
    SkipResult,
    StatusResult,
)

if TYPE_CHECKING:
    from ...config.settings import AudioSettings
    from ...domain.playback.session_store import SessionStore
    from ..interfaces.song_resolver import SongResolver
    from ..interfaces.voice_gateway import VoiceSessionGateway

logger = logging.getLogger(__name__)


class MusicSessionService:
    """Facade composing the session store, skip votes, gateway and resolver."""

    def __init__(
        self,
        *,
        store: SessionStore,
        gateway: VoiceSessionGateway,
        resolver: SongResolver,
        audio_settings: AudioSettings | None = None,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._resolver = resolver
        self._max_duration = (
            audio_settings.max_song_duration_seconds if audio_settings is not None else None
        )

    # === join / leave ===

    async def join(self, server_id: ServerId, channel_id: ChannelId) -> JoinResult:
        """Connect to *channel_id* and open an IDLE session.

        Raises:
            AlreadyConnectedError: The server already has a session.
            VoiceConnectionError: The gateway could not connect.
        """
        async with self._store.locked() as store:
            if store.phase(server_id) is not SessionPhase.ABSENT:
                raise AlreadyConnectedError(server_id)

        await self._connect(server_id, channel_id)
        return JoinResult(server_id=server_id, channel_id=channel_id, message=ReplyMessages.READY)

    async def leave(self, server_id: ServerId) -> None:
        """Disconnect and discard the queue. Safe to call when already absent."""
        try:
            await self._gateway.disconnect(server_id)
        except Exception:
            logger.exception(LogTemplates.VOICE_DISCONNECT_FAILED, server_id)

        async with self._store.locked() as store:
            removed = store.teardown_session(server_id)

        if not removed:
            logger.debug(LogTemplates.SESSION_ALREADY_ABSENT, server_id)

    async def _connect(self, server_id: ServerId, channel_id: ChannelId) -> None:
        if not await self._gateway.connect(server_id, channel_id):
            raise VoiceConnectionError(server_id, channel_id)

        async with self._store.locked() as store:
            store.ensure_session(server_id)

    # === play ===

    async def play(
        self,
        server_id: ServerId,
        requester_id: UserId,
        requester_name: str,
        requested_in: ChannelId,
        url: str | None = None,
    ) -> PlayResult:
        """Queue a song, joining the requester's voice channel first if needed.

        Raises:
            NothingToDoError: Not connected, requester not in voice, and no URL.
            NoTargetChannelError: Not connected and requester not in voice, with a URL.
            VoiceConnectionError: Auto-join failed.
            ResolutionError: The URL could not be resolved (``reason`` is user-safe).
            NotConnectedError: The session was torn down while resolving.
            QueueFullError: The server's queue is at capacity.
        """
        url = (url or "").strip() or None
        joined = False

        async with self._store.locked() as store:
            absent = store.phase(server_id) is SessionPhase.ABSENT

        if absent:
            channel_id = self._gateway.get_member_channel(server_id, requester_id)
            if channel_id is None:
                if url is None:
                    raise NothingToDoError(server_id)
                raise NoTargetChannelError()
            await self._connect(server_id, channel_id)
            joined = True

        if url is None:
            if joined:
                return PlayResult(
                    status=PlayStatus.JOINED,
                    joined=True,
                    message=ReplyMessages.JOINED_NOTHING_QUEUED,
                )
            raise NothingToDoError(server_id)

        item = await self._resolve(server_id, url)
        request = QueuedRequest(
            item=item,
            requested_in=requested_in,
            requester_id=requester_id,
            requester_name=requester_name,
        )

        async with self._store.locked() as store:
            if store.phase(server_id) is SessionPhase.ABSENT and not self._gateway.is_connected(
                server_id
            ):
                raise NotConnectedError(server_id)

            # Must be evaluated before the enqueue below.
            was_idle = store.is_idle_and_connected(server_id, self._gateway)
            store.ensure_session(server_id)
            position = store.enqueue(server_id, request)
            scheduled = store.schedule_immediate_start(server_id) if was_idle else False

        return PlayResult(
            status=PlayStatus.QUEUED,
            joined=joined,
            request=request,
            position=position,
            scheduled=scheduled,
            message=ReplyMessages.QUEUED.format(
                title=item.title, duration=item.duration_formatted
            ),
        )

    async def _resolve(self, server_id: ServerId, url: str) -> SongItem:
        logger.info(LogTemplates.RESOLVING, url, server_id)
        try:
            item = await self._resolver.resolve(url)
        except ResolutionError as e:
            logger.info(LogTemplates.RESOLUTION_FAILED_KNOWN, url, e.reason)
            raise
        except Exception as e:
            logger.exception(LogTemplates.RESOLUTION_FAILED_UNEXPECTED, url)
            raise ResolutionError(ErrorMessages.UNKNOWN_DOWNLOAD_ERROR) from e

        if self._max_duration is not None and item.duration_seconds > self._max_duration:
            raise SongTooLongError(
                format_duration(item.duration_seconds), format_duration(self._max_duration)
            )
        return item

    # === queue / status ===

    async def queue(self, server_id: ServerId) -> list[QueueEntry]:
        """Pending requests in play order.

        Raises:
            EmptyQueueError: No session, or nothing is queued.
        """
        async with self._store.locked() as store:
            pending = store.queue_snapshot(server_id)

        if not pending:
            raise EmptyQueueError(server_id)

        return [
            QueueEntry(
                position=position,
                title=request.item.title,
                requester_name=request.requester_name,
                duration_formatted=request.item.duration_formatted,
            )
            for position, request in enumerate(pending)
        ]

    async def status(self, server_id: ServerId, now: datetime | None = None) -> StatusResult:
        """Progress of the current song.

        Raises:
            NoSongPlayingError: Nothing is playing in this server.
        """
        now = now or utcnow()
        async with self._store.locked() as store:
            record = store.playing(server_id)
            if record is None:
                raise NoSongPlayingError(server_id)
            title = record.item.title
            duration = record.item.duration_seconds
            elapsed = record.elapsed_seconds(now)
            remaining = record.remaining_seconds(now)

        return StatusResult(
            title=title,
            elapsed_seconds=elapsed,
            duration_seconds=duration,
            remaining_seconds=remaining,
            message=ReplyMessages.STATUS.format(
                title=title,
                elapsed=format_duration(elapsed),
                duration=format_duration(duration),
                remaining=format_duration(remaining),
            ),
        )

    # === skip ===

    async def skip(self, server_id: ServerId, voter_id: UserId) -> SkipResult:
        """Register a skip request from *voter_id* against the current song."""
        async with self._store.locked() as store:
            record = store.playing(server_id)
            outcome = SkipVoteEngine.evaluate(record, voter_id)
            votes = record.vote_count if record is not None else 0
            required = record.skip_votes_required if record is not None else 0
            if outcome.forces_stop:
                store.clear_playing(server_id)

        logger.info(LogTemplates.SKIP_VOTE, server_id, voter_id, outcome.value, votes, required)

        if outcome.forces_stop:
            await self._force_stop(server_id, outcome.value)

        return SkipResult(
            outcome=outcome,
            votes=votes,
            required=required,
            message=outcome.get_message(votes=votes, required=required),
        )

    async def _force_stop(self, server_id: ServerId, reason: str) -> None:
        """Stop audio after the record was cleared.

        The gateway's track-end callback normally advances the queue. When the
        gateway had nothing to stop (or failed), nobody will fire it, so the
        pending start is scheduled here instead.
        """
        logger.info(LogTemplates.FORCED_STOP, server_id, reason)

        stopped = False
        try:
            stopped = await self._gateway.stop(server_id)
        except Exception:
            logger.exception(LogTemplates.FORCED_STOP_GATEWAY_FAILED, server_id)

        if not stopped:
            async with self._store.locked() as store:
                store.schedule_pending_start(server_id)
