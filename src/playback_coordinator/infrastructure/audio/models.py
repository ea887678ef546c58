"""Pydantic models for yt-dlp data and options.

Infrastructure-only: these parse the loosely typed info dicts yt-dlp returns
and describe the options handed to ``YoutubeDL``.
"""

from __future__ import annotations

import math
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from playback_coordinator.domain.shared.types import (
    DurationSeconds,
    HttpUrlStr,
    NonEmptyStr,
    PositiveInt,
)

DEFAULT_RETRIES: Final[int] = 3
DEFAULT_SOCKET_TIMEOUT: Final[int] = 10
LOG_URL_TRUNCATE: Final[int] = 60
UNKNOWN_UPLOADER: Final[str] = "Unknown"


class AudioFormatInfo(BaseModel):
    """A single format entry from yt-dlp extraction."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: NonEmptyStr | None = None
    acodec: NonEmptyStr | None = None


class RequestedDownload(BaseModel):
    """Where yt-dlp wrote a file, after post-processing."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    filepath: NonEmptyStr | None = None


class YtDlpSongInfo(BaseModel):
    """Trimmed yt-dlp info dict.

    ``title`` and ``duration`` are required: a song without them cannot be
    queued (and live streams have no duration). Optional fields coerce
    garbage to ``None``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: NonEmptyStr
    duration: DurationSeconds
    webpage_url: HttpUrlStr | None = None
    url: NonEmptyStr | None = None
    uploader: NonEmptyStr | None = None
    channel: NonEmptyStr | None = None
    formats: list[AudioFormatInfo] = Field(default_factory=list)
    requested_downloads: list[RequestedDownload] = Field(default_factory=list)

    @field_validator("webpage_url", "url", "uploader", "channel", mode="before")
    @classmethod
    def _coerce_empty_to_none(cls, v: Any) -> str | None:
        if not isinstance(v, str) or not v.strip():
            return None
        return v

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, v: Any) -> Any:
        """yt-dlp reports floats for some extractors; round them up."""
        if isinstance(v, float):
            return math.ceil(v)
        return v

    @property
    def uploader_name(self) -> str:
        return self.uploader or self.channel or UNKNOWN_UPLOADER

    @property
    def downloaded_path(self) -> str | None:
        for download in self.requested_downloads:
            if download.filepath:
                return download.filepath
        return None

    @property
    def stream_url(self) -> str | None:
        if self.url:
            return self.url
        audio_formats = [f for f in self.formats if f.acodec != "none" and f.url]
        if audio_formats:
            return audio_formats[-1].url
        return None


class YtDlpOpts(BaseModel):
    """Typed yt-dlp options passed to ``YoutubeDL``."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = True
    noprogress: bool = True
    noplaylist: bool = True
    forceipv4: bool = True
    retries: PositiveInt = DEFAULT_RETRIES
    socket_timeout: PositiveInt = DEFAULT_SOCKET_TIMEOUT
    format: NonEmptyStr | None = None
    skip_download: bool = True
    updatetime: bool = False
    outtmpl: NonEmptyStr | None = None
    postprocessors: list[dict[str, str]] = Field(default_factory=list)

    def as_params(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
