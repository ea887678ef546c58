"""Slash-command music cog delegating to the music session service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from playback_coordinator.domain.shared.exceptions import DomainError, NoTargetChannelError
from playback_coordinator.domain.shared.messages import ErrorMessages, LogTemplates, ReplyMessages
from playback_coordinator.utils.reply import truncate_message

if TYPE_CHECKING:
    from ....application.services.music_session import MusicSessionService
    from ....application.services.session_models import QueueEntry
    from ....config.container import Container

logger = logging.getLogger(__name__)


def render_queue(entries: list[QueueEntry], max_length: int) -> str:
    lines = [
        ReplyMessages.QUEUE_LINE.format(
            title=entry.title,
            requester=entry.requester_name,
            duration=entry.duration_formatted,
        )
        for entry in entries
    ]
    return truncate_message("\n".join(lines), max_length)


async def send_reply(interaction: discord.Interaction, content: str) -> None:
    """Reply, or edit the earlier reply if one was already sent."""
    if interaction.response.is_done():
        await interaction.edit_original_response(content=content)
    else:
        await interaction.response.send_message(content)


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @property
    def _service(self) -> MusicSessionService:
        return self.container.music_session_service

    async def _fail(self, interaction: discord.Interaction, error: Exception) -> None:
        if isinstance(error, DomainError):
            await send_reply(interaction, error.message)
            return

        logger.exception(
            LogTemplates.COMMAND_FAILED,
            getattr(interaction.command, "name", "<unknown>"),
            interaction.guild_id,
            exc_info=error,
        )
        await send_reply(interaction, ReplyMessages.GENERIC_FAILURE)

    @app_commands.guild_only()
    @app_commands.command(name="join", description="Join a voice channel.")
    @app_commands.describe(channel="Voice channel to join (defaults to yours)")
    async def join(
        self,
        interaction: discord.Interaction,
        channel: discord.VoiceChannel | None = None,
    ) -> None:
        assert interaction.guild is not None

        try:
            channel_id = channel.id if channel is not None else self._member_channel_id(interaction)
            if channel_id is None:
                raise NoTargetChannelError()
            await interaction.response.defer(thinking=True)
            result = await self._service.join(interaction.guild.id, channel_id)
        except Exception as e:
            await self._fail(interaction, e)
            return

        await send_reply(interaction, result.message)

    @app_commands.guild_only()
    @app_commands.command(name="leave", description="Leave voice and clear the queue.")
    async def leave(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None

        try:
            await self._service.leave(interaction.guild.id)
        except Exception as e:
            await self._fail(interaction, e)
            return

        await send_reply(interaction, ReplyMessages.LEFT)

    @app_commands.guild_only()
    @app_commands.command(name="play", description="Queue a song by URL.")
    @app_commands.describe(url="Song URL. Leave empty to just join your channel.")
    async def play(self, interaction: discord.Interaction, url: str | None = None) -> None:
        assert interaction.guild is not None

        if url and url.strip():
            await interaction.response.send_message(ReplyMessages.DOWNLOADING)
        else:
            await interaction.response.defer(thinking=True)

        try:
            result = await self._service.play(
                interaction.guild.id,
                interaction.user.id,
                interaction.user.display_name,
                interaction.channel_id,
                url,
            )
        except Exception as e:
            await self._fail(interaction, e)
            return

        await send_reply(interaction, result.message)

    @app_commands.guild_only()
    @app_commands.command(name="queue", description="Show the queued songs.")
    async def queue(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None

        try:
            entries = await self._service.queue(interaction.guild.id)
        except Exception as e:
            await self._fail(interaction, e)
            return

        max_length = self.container.settings.queue.max_message_length
        await send_reply(interaction, render_queue(entries, max_length))

    @app_commands.guild_only()
    @app_commands.command(name="skip", description="Vote to skip the current song.")
    async def skip(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None

        try:
            result = await self._service.skip(interaction.guild.id, interaction.user.id)
        except Exception as e:
            await self._fail(interaction, e)
            return

        await send_reply(interaction, result.message)

    @app_commands.guild_only()
    @app_commands.command(name="status", description="Show what is playing.")
    async def status(self, interaction: discord.Interaction) -> None:
        assert interaction.guild is not None

        try:
            result = await self._service.status(interaction.guild.id)
        except Exception as e:
            await self._fail(interaction, e)
            return

        await send_reply(interaction, result.message)

    @staticmethod
    def _member_channel_id(interaction: discord.Interaction) -> int | None:
        user = interaction.user
        if isinstance(user, discord.Member) and user.voice and user.voice.channel:
            return user.voice.channel.id
        return None


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
