"""Dependency Injection Container

Builds the application's object graph lazily: components are created on
first access and cached for reuse. ``initialize`` and ``shutdown`` manage the
only long-running piece, the completion driver.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.song_resolver import SongResolver
    from ..application.interfaces.voice_gateway import VoiceSessionGateway
    from ..application.services.completion_driver import CompletionDriver
    from ..application.services.music_session import MusicSessionService
    from ..domain.playback.session_store import SessionStore
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Tests may pass pre-built collaborators (e.g. a mock gateway) through the
    private fields; anything left as ``None`` is built on first access.
    """

    settings: Settings
    _bot: Bot | None = None

    # Domain state
    _session_store: SessionStore | None = None

    # Infrastructure adapters
    _voice_gateway: VoiceSessionGateway | None = None
    _song_resolver: SongResolver | None = None

    # Application services
    _music_session_service: MusicSessionService | None = None

    # Background jobs
    _completion_driver: CompletionDriver | None = None

    def set_bot(self, bot: Bot) -> None:
        self._bot = bot

    @property
    def bot(self) -> Bot:
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Domain State ===

    @property
    def session_store(self) -> SessionStore:
        if self._session_store is None:
            from ..domain.playback.session_store import SessionStore

            self._session_store = SessionStore(
                max_queue_size=self.settings.queue.max_queue_size
            )
        return self._session_store

    # === Infrastructure Adapters ===

    @property
    def voice_gateway(self) -> VoiceSessionGateway:
        if self._voice_gateway is None:
            from ..infrastructure.discord.adapters.voice_gateway import DiscordVoiceGateway

            self._voice_gateway = DiscordVoiceGateway(self.bot, self.settings.audio)
        return self._voice_gateway

    @property
    def song_resolver(self) -> SongResolver:
        if self._song_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpSongResolver

            self._song_resolver = YtDlpSongResolver(self.settings.audio)
        return self._song_resolver

    # === Application Services ===

    @property
    def music_session_service(self) -> MusicSessionService:
        if self._music_session_service is None:
            from ..application.services.music_session import MusicSessionService

            self._music_session_service = MusicSessionService(
                store=self.session_store,
                gateway=self.voice_gateway,
                resolver=self.song_resolver,
                audio_settings=self.settings.audio,
            )
        return self._music_session_service

    # === Background Jobs ===

    @property
    def completion_driver(self) -> CompletionDriver:
        if self._completion_driver is None:
            from ..application.services.completion_driver import CompletionDriver

            self._completion_driver = CompletionDriver(
                store=self.session_store,
                gateway=self.voice_gateway,
                voting=self.settings.voting,
                tick_seconds=self.settings.driver.tick_seconds,
            )
        return self._completion_driver

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Start the completion driver. Must run inside the event loop."""
        self.completion_driver.start()

    async def shutdown(self) -> None:
        if self._completion_driver is not None:
            try:
                await self._completion_driver.stop()
            except Exception as exc:
                logger.warning(LogTemplates.CONTAINER_SHUTDOWN_ERROR, "completion driver", exc)


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
