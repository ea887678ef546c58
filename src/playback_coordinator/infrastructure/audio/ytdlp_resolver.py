"""SongResolver implementation using yt-dlp.

In download mode (the default) the audio is extracted to an mp3 under
``download_dir`` and the file path becomes the song's locator. Otherwise the
direct stream URL is used and FFmpeg streams it at play time.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, cast

from pydantic import ValidationError
from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError

from playback_coordinator.application.interfaces.song_resolver import SongResolver
from playback_coordinator.config.settings import AudioSettings
from playback_coordinator.domain.playback.entities import SongItem
from playback_coordinator.domain.shared.exceptions import ResolutionError
from playback_coordinator.domain.shared.messages import ErrorMessages, LogTemplates
from playback_coordinator.infrastructure.audio.models import (
    LOG_URL_TRUNCATE,
    YtDlpOpts,
    YtDlpSongInfo,
)

logger = logging.getLogger(__name__)

AUDIO_CODEC = "mp3"
MAX_TITLE_LENGTH = 500


class YtDlpSongResolver(SongResolver):
    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._download_dir = Path(self._settings.download_dir)

    def _get_opts(self, output_base: Path | None) -> YtDlpOpts:
        if output_base is None:
            return YtDlpOpts(format=self._settings.ytdlp_format)

        return YtDlpOpts(
            format=self._settings.ytdlp_format,
            skip_download=False,
            outtmpl=f"{output_base}.%(ext)s",
            postprocessors=[
                {"key": "FFmpegExtractAudio", "preferredcodec": AUDIO_CODEC},
            ],
        )

    def _next_output_base(self) -> Path:
        """A fresh, collision-free file stem in the download directory."""
        self._download_dir.mkdir(parents=True, exist_ok=True)
        return self._download_dir / str(time.time_ns())

    def _resolve_sync(self, url: str) -> SongItem:
        download = self._settings.download
        output_base = self._next_output_base() if download else None

        try:
            with YoutubeDL(params=cast(Any, self._get_opts(output_base).as_params())) as ydl:
                data = ydl.extract_info(url, download=download)
        except DownloadError as e:
            logger.warning(LogTemplates.YTDLP_DOWNLOAD_FAILED, url[:LOG_URL_TRUNCATE], e)
            raise ResolutionError(ErrorMessages.DOWNLOAD_FAILED) from e

        if not isinstance(data, dict):
            logger.warning(LogTemplates.YTDLP_NO_INFO, url[:LOG_URL_TRUNCATE])
            raise ResolutionError(ErrorMessages.SONG_INFO_MISSING)

        try:
            info = YtDlpSongInfo.model_validate(data)
        except ValidationError as e:
            logger.warning(
                LogTemplates.YTDLP_INFO_INVALID, url[:LOG_URL_TRUNCATE], e.error_count()
            )
            raise ResolutionError(ErrorMessages.SONG_INFO_INVALID) from e

        if output_base is not None:
            locator = info.downloaded_path or f"{output_base}.{AUDIO_CODEC}"
        else:
            locator = info.stream_url

        if not locator:
            logger.warning(LogTemplates.YTDLP_NO_INFO, url[:LOG_URL_TRUNCATE])
            raise ResolutionError(ErrorMessages.SONG_INFO_MISSING)

        return SongItem(
            title=info.title[:MAX_TITLE_LENGTH],
            duration_seconds=info.duration,
            uploader=info.uploader_name,
            locator=locator,
            webpage_url=info.webpage_url,
        )

    async def resolve(self, url: str) -> SongItem:
        return await asyncio.to_thread(self._resolve_sync, url)
