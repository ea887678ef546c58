"""Port interface for per-server voice connections."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from playback_coordinator.domain.shared.types import ChannelId, ServerId, UserId

if TYPE_CHECKING:
    from ...domain.playback.entities import SongItem


class VoiceSessionGateway(ABC):
    """Interface for voice channel connection and audio streaming.

    Async methods may block on the network; the coordinator only calls them
    while it is not holding the session store lock. The sync queries must be
    cheap local lookups.
    """

    @abstractmethod
    async def connect(self, server_id: ServerId, channel_id: ChannelId) -> bool:
        """Connect (self-deafened) to a voice channel. Returns False on failure."""
        ...

    @abstractmethod
    async def disconnect(self, server_id: ServerId) -> bool:
        """Disconnect from voice. Must tolerate servers with no connection."""
        ...

    @abstractmethod
    async def play(self, server_id: ServerId, item: SongItem) -> bool:
        """Start streaming *item*, replacing anything already playing."""
        ...

    @abstractmethod
    async def stop(self, server_id: ServerId) -> bool:
        """Stop current audio.

        Returns True only if something was playing, in which case the
        track-end callback will fire for it.
        """
        ...

    @abstractmethod
    def is_connected(self, server_id: ServerId) -> bool:
        ...

    @abstractmethod
    def is_playing(self, server_id: ServerId) -> bool:
        ...

    @abstractmethod
    def current_channel(self, server_id: ServerId) -> ChannelId | None:
        """The voice channel the bot is in for this server, if any."""
        ...

    @abstractmethod
    def get_member_channel(self, server_id: ServerId, user_id: UserId) -> ChannelId | None:
        """The voice channel a member is currently sitting in, if any."""
        ...

    @abstractmethod
    async def get_listener_count(self, server_id: ServerId) -> int:
        """Listeners in the bot's voice channel, excluding bots."""
        ...

    @abstractmethod
    def set_on_track_end_callback(
        self,
        callback: Callable[[ServerId, SongItem, bool], Awaitable[None]],
    ) -> None:
        """Set callback for when a track ends, naturally or via ``stop``.

        The callback receives the server, the item that ended and whether the
        audio player reported an error.
        """
        ...
