"""Background loop that advances per-server queues from the completion index.

Each pass handles every server whose key is due, oldest key first:

1. pop the due servers from the index (under the store lock)
2. count listeners for them (gateway I/O, lock released)
3. promote each queue head to a new playing record, or go IDLE (under the lock)
4. start the audio (gateway I/O, lock released)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from ...domain.playback.skip_votes import SkipVoteEngine
from ...domain.shared.datetime_utils import unix_seconds, utcnow
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import ServerId

if TYPE_CHECKING:
    from ...config.settings import VotingSettings
    from ...domain.playback.entities import PlayingRecord, SongItem
    from ...domain.playback.session_store import SessionStore
    from ..interfaces.voice_gateway import VoiceSessionGateway

logger = logging.getLogger(__name__)


@dataclass
class DriverPassStats:
    due: int = 0
    started: list[ServerId] = field(default_factory=list)
    exhausted: list[ServerId] = field(default_factory=list)
    failed: list[ServerId] = field(default_factory=list)


class CompletionDriver:
    def __init__(
        self,
        *,
        store: SessionStore,
        gateway: VoiceSessionGateway,
        voting: VotingSettings,
        tick_seconds: float = 1.0,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._voting = voting
        self._tick_seconds = tick_seconds
        self._running = False
        self._task: asyncio.Task | None = None

        self._gateway.set_on_track_end_callback(self.on_track_end)

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            logger.warning(LogTemplates.DRIVER_ALREADY_RUNNING)
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(LogTemplates.DRIVER_STARTED, self._tick_seconds)

    async def stop(self) -> None:
        self._running = False

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info(LogTemplates.DRIVER_STOPPED)

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await self.run_pass()
            except Exception:
                logger.exception(LogTemplates.DRIVER_PASS_FAILED)

            try:
                await asyncio.sleep(self._tick_seconds)
            except asyncio.CancelledError:
                break

    async def run_pass(self, now: datetime | None = None) -> DriverPassStats:
        """Advance every server that is due at *now*."""
        now = now or utcnow()
        stats = DriverPassStats()

        async with self._store.locked() as store:
            due = store.index.pop_due(unix_seconds(now))
        stats.due = len(due)
        if not due:
            return stats

        listener_counts = {server_id: await self._count_listeners(server_id) for server_id in due}

        to_start: list[tuple[ServerId, PlayingRecord]] = []
        async with self._store.locked() as store:
            for server_id in due:
                if store.get(server_id) is None:
                    logger.debug(LogTemplates.DRIVER_SESSION_GONE, server_id)
                    continue

                # Also drops an immediate start a concurrent play may have scheduled.
                store.clear_playing(server_id)
                logger.debug(
                    LogTemplates.DRIVER_SERVER_DUE, server_id, len(store.queue_snapshot(server_id))
                )

                request = store.pop_next(server_id)
                if request is None:
                    stats.exhausted.append(server_id)
                    logger.info(LogTemplates.DRIVER_QUEUE_EXHAUSTED, server_id)
                    continue

                votes_required = SkipVoteEngine.calculate_votes_required(
                    listener_counts[server_id],
                    ratio=self._voting.skip_ratio,
                    minimum=self._voting.min_votes,
                )
                record = store.begin_playback(
                    server_id, request, votes_required=votes_required, started_at=now
                )
                to_start.append((server_id, record))

        for server_id, record in to_start:
            if await self._start_audio(server_id, record):
                stats.started.append(server_id)
                logger.info(
                    LogTemplates.DRIVER_TRACK_STARTED,
                    record.item.title,
                    server_id,
                    record.completes_at,
                    record.skip_votes_required,
                )
            else:
                stats.failed.append(server_id)

        return stats

    async def _count_listeners(self, server_id: ServerId) -> int:
        try:
            return await self._gateway.get_listener_count(server_id)
        except Exception:
            logger.warning(LogTemplates.DRIVER_LISTENER_COUNT_FAILED, server_id, exc_info=True)
            return 0

    async def _start_audio(self, server_id: ServerId, record: PlayingRecord) -> bool:
        try:
            started = await self._gateway.play(server_id, record.item)
        except Exception:
            logger.exception(LogTemplates.DRIVER_PLAY_FAILED, record.item.title, server_id)
            started = False
        else:
            if not started:
                logger.error(LogTemplates.DRIVER_PLAY_FAILED, record.item.title, server_id)

        if started:
            return True

        async with self._store.locked() as store:
            # Only undo our own record; a skip may already have replaced it.
            if store.playing(server_id) is record:
                store.clear_playing(server_id)
            store.schedule_pending_start(server_id)
        return False

    async def on_track_end(
        self, server_id: ServerId, item: SongItem | None = None, failed: bool = False
    ) -> None:
        """Gateway callback: audio stopped, naturally or because of a forced stop.

        A natural end leaves the server PLAYING until its completion key is
        due, so only IDLE servers (forced stop) are advanced from here. The
        exception is a player error on the current item, which ends the
        record early.
        """
        async with self._store.locked() as store:
            record = store.playing(server_id)
            if failed and record is not None and record.item is item:
                store.clear_playing(server_id)
                store.schedule_pending_start(server_id)
                logger.warning(LogTemplates.DRIVER_TRACK_FAILED, record.item.title, server_id)
                return

            session = store.get(server_id)
            if session is None or not session.is_idle:
                phase = store.phase(server_id)
                logger.debug(LogTemplates.DRIVER_TRACK_END_IGNORED, server_id, phase.value)
                return

            if store.schedule_pending_start(server_id):
                logger.debug(LogTemplates.DRIVER_TRACK_END_RESCHEDULE, server_id)
