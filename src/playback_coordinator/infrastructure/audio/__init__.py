"""Audio infrastructure - yt-dlp song resolution."""

from playback_coordinator.infrastructure.audio.models import (
    AudioFormatInfo,
    RequestedDownload,
    YtDlpOpts,
    YtDlpSongInfo,
)
from playback_coordinator.infrastructure.audio.ytdlp_resolver import YtDlpSongResolver

__all__ = [
    "AudioFormatInfo",
    "RequestedDownload",
    "YtDlpOpts",
    "YtDlpSongInfo",
    "YtDlpSongResolver",
]
