"""Application Settings and Configuration

Pydantic-based settings loaded from environment variables (and an optional
``.env`` file). Nested groups use ``__`` as the delimiter, e.g.
``VOTING__SKIP_RATIO=0.6``. All settings are frozen after initialization.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.messages import ErrorMessages
from ..domain.shared.types import UnitInterval, VolumeFloat
from ..domain.shared.validators import parse_snowflake_list


class DiscordSettings(BaseModel):
    """Discord bot configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    token: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("token", "bot_token", "discord_token")
    )
    command_prefix: str = Field(
        default="!",
        min_length=1,
        max_length=5,
        validation_alias=AliasChoices("command_prefix", "prefix"),
    )
    owner_ids: tuple[int, ...] = Field(
        default_factory=tuple, validation_alias=AliasChoices("owner_ids", "owners")
    )
    sync_on_startup: bool = True

    @field_validator("owner_ids", mode="before")
    @classmethod
    def validate_snowflake_ids(cls, v: object) -> tuple[int, ...]:
        return parse_snowflake_list(v)  # type: ignore[arg-type]


class AudioSettings(BaseModel):
    """Song resolution and streaming configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    ytdlp_format: str = "bestaudio/best"
    download: bool = Field(
        default=True,
        validation_alias=AliasChoices("download", "download_songs"),
    )
    download_dir: str = Field(
        default="data/songs",
        min_length=1,
        validation_alias=AliasChoices("download_dir", "songs_dir"),
    )
    max_song_duration_seconds: int = Field(
        default=3600,
        ge=1,
        le=86_400,
        validation_alias=AliasChoices("max_song_duration_seconds", "max_duration"),
    )
    default_volume: VolumeFloat = 0.5
    ffmpeg_options: dict[str, str] = Field(
        default_factory=lambda: {
            "before_options": "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5",
            "options": "-vn",
        }
    )


class QueueSettings(BaseModel):
    """Per-server queue limits."""

    model_config = SettingsConfigDict(frozen=True)

    max_queue_size: int = Field(default=50, ge=1, le=1000)
    max_message_length: int = Field(default=2000, ge=100, le=2000)


class VotingSettings(BaseModel):
    """Skip vote threshold policy."""

    model_config = SettingsConfigDict(frozen=True)

    skip_ratio: UnitInterval = 0.5
    min_votes: int = Field(default=1, ge=1)


class DriverSettings(BaseModel):
    """Completion driver loop configuration."""

    model_config = SettingsConfigDict(frozen=True)

    tick_seconds: float = Field(default=1.0, gt=0.0, le=60.0)


class Settings(BaseSettings):
    """Application settings container.

    Environment variable naming:
    - ENVIRONMENT, LOG_LEVEL (top-level)
    - DISCORD__TOKEN, DISCORD__OWNER_IDS, AUDIO__DOWNLOAD_DIR, ... (nested)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    log_level: str = "INFO"

    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    audio: AudioSettings = Field(default_factory=AudioSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    voting: VotingSettings = Field(default_factory=VotingSettings)
    driver: DriverSettings = Field(default_factory=DriverSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=sorted(valid_levels))
            )
        return v_upper


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Loaded from, in order of precedence:
    1. Environment variables
    2. ``.env`` file (if present)
    3. Default values
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
