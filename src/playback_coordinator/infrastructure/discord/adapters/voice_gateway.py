"""Discord voice gateway implementing VoiceSessionGateway with discord.py."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING

import discord

from playback_coordinator.application.interfaces.voice_gateway import VoiceSessionGateway
from playback_coordinator.config.settings import AudioSettings
from playback_coordinator.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ....domain.playback.entities import SongItem

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT: float = 10.0

VoiceChannelLike = discord.VoiceChannel | discord.StageChannel


class DiscordVoiceGateway(VoiceSessionGateway):
    def __init__(self, bot: discord.Client, settings: AudioSettings | None = None) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()
        self._volume = self._settings.default_volume
        self._ffmpeg_options = self._settings.ffmpeg_options
        self._on_track_end: Callable[[int, SongItem, bool], Awaitable[None]] | None = None

    def _get_guild(self, guild_id: int) -> discord.Guild | None:
        return self._bot.get_guild(guild_id)

    def _get_voice_client(self, guild_id: int) -> discord.VoiceClient | None:
        guild = self._get_guild(guild_id)
        if not guild:
            return None

        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    # === Connection ===

    async def connect(self, guild_id: int, channel_id: int) -> bool:
        guild = self._get_guild(guild_id)
        if not guild:
            logger.warning(LogTemplates.GUILD_NOT_FOUND, guild_id)
            return False

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, VoiceChannelLike):
            logger.warning(LogTemplates.CHANNEL_NOT_VOICE, channel_id)
            return False

        vc = self._get_voice_client(guild_id)
        try:
            async with asyncio.timeout(CONNECT_TIMEOUT):
                if vc is not None and vc.is_connected():
                    # Left over from a session that was torn down without a disconnect.
                    if vc.channel is None or vc.channel.id != channel_id:
                        await vc.move_to(channel)
                else:
                    await channel.connect(self_deaf=True)
            await self._ensure_self_deaf(guild, channel)
            logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
            return True
        except TimeoutError:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            return False
        except discord.Forbidden:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            return False
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return False

    async def _ensure_self_deaf(self, guild: discord.Guild, channel: VoiceChannelLike) -> None:
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except discord.HTTPException as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)

    async def disconnect(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            logger.debug(LogTemplates.VOICE_NOT_CONNECTED, guild_id)
            return True

        await vc.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
        return True

    # === Playback ===

    def _build_source(self, item: SongItem) -> discord.AudioSource:
        before_options = ""
        if item.locator.startswith(("http://", "https://")):
            # Reconnect flags only apply to network inputs.
            before_options = self._ffmpeg_options.get("before_options", "")

        source = discord.FFmpegPCMAudio(
            item.locator,
            before_options=before_options or None,
            options=self._ffmpeg_options.get("options", "-vn"),
        )
        return discord.PCMVolumeTransformer(source, volume=self._volume)

    async def play(self, guild_id: int, item: SongItem) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            logger.warning(LogTemplates.VOICE_NOT_CONNECTED, guild_id)
            return False

        if vc.is_playing() or vc.is_paused():
            vc.stop()

        def after_callback(error: Exception | None = None) -> None:
            logger.info(LogTemplates.TRACK_ENDED, guild_id, error)
            if error:
                logger.warning(LogTemplates.PLAYBACK_ERROR, guild_id, error)

            self._discard_download(item)
            asyncio.run_coroutine_threadsafe(
                self._handle_track_end(guild_id, item, error is not None),
                self._bot.loop,
            )

        try:
            vc.play(self._build_source(item), after=after_callback)
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            self._discard_download(item)
            return False

        logger.info(LogTemplates.PLAYBACK_STARTED, item.title, guild_id)
        return True

    async def stop(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return False

        if vc.is_playing() or vc.is_paused():
            vc.stop()
            logger.info(LogTemplates.PLAYBACK_STOPPED, guild_id)
            return True

        return False

    def _discard_download(self, item: SongItem) -> None:
        """Delete a played file if it lives in the download directory."""
        if not self._settings.download:
            return

        path = Path(item.locator)
        if path.parent.resolve() != Path(self._settings.download_dir).resolve():
            return

        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(LogTemplates.DOWNLOAD_CLEANUP_FAILED, path, e)
            return
        logger.debug(LogTemplates.DOWNLOAD_REMOVED, path)

    async def _handle_track_end(self, guild_id: int, item: SongItem, failed: bool) -> None:
        """Runs on the bot loop, scheduled from FFmpeg's player thread."""
        if self._on_track_end is None:
            return

        try:
            await self._on_track_end(guild_id, item, failed)
        except Exception as e:
            logger.error(LogTemplates.TRACK_END_CALLBACK_ERROR, guild_id, e)

    def set_on_track_end_callback(
        self, callback: Callable[[int, SongItem, bool], Awaitable[None]]
    ) -> None:
        self._on_track_end = callback

    # === Queries ===

    def is_connected(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_connected()

    def is_playing(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_playing()

    def current_channel(self, guild_id: int) -> int | None:
        vc = self._get_voice_client(guild_id)
        if vc and vc.channel:
            return vc.channel.id
        return None

    def get_member_channel(self, guild_id: int, user_id: int) -> int | None:
        guild = self._get_guild(guild_id)
        if not guild:
            return None

        member = guild.get_member(user_id)
        if member is None or member.voice is None or member.voice.channel is None:
            return None
        return member.voice.channel.id

    async def get_listener_count(self, guild_id: int) -> int:
        """Non-bot members in the bot's channel who are not deafened."""
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.channel:
            return 0

        count = 0
        for member in vc.channel.members:
            if member.bot:
                continue
            if member.voice and (member.voice.deaf or member.voice.self_deaf):
                continue
            count += 1
        return count
