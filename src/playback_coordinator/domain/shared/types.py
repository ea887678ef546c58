"""Reusable Pydantic Annotated types shared across the domain.

Models annotate their fields with these instead of repeating constraints::

    from playback_coordinator.domain.shared.types import ServerId, NonEmptyStr

    class MyModel(BaseModel):
        server_id: ServerId
        name: NonEmptyStr
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BeforeValidator, Field

from playback_coordinator.domain.shared.messages import ErrorMessages

# ── Numeric constraints ─────────────────────────────────────────────

DiscordSnowflake = Annotated[int, Field(gt=0, lt=2**64)]
"""Positive integer that fits a Discord snowflake (1 … 2^64-1)."""

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveInt = Annotated[int, Field(gt=0)]
"""Integer > 0."""

UnitInterval = Annotated[float, Field(ge=0.0, le=1.0)]
"""Float in [0.0, 1.0], used for the skip vote ratio."""

VolumeFloat = Annotated[float, Field(ge=0.0, le=2.0)]
"""Audio volume multiplier in [0.0, 2.0]."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

SongTitleStr = Annotated[str, Field(min_length=1, max_length=500)]
"""Song title: 1-500 characters."""

HttpUrlStr = Annotated[str, Field(pattern=r"^https?://")]
"""String that starts with http:// or https://."""


# ── Domain-specific numeric constraints ─────────────────────────────

DurationSeconds = Annotated[int, Field(ge=0, le=86_400)]
"""Song duration in seconds: 0 … 86 400 (24 hours)."""


# ── Datetime constraints ────────────────────────────────────────────


def _ensure_utc(v: datetime) -> datetime:
    if isinstance(v, datetime) and v.tzinfo is None:
        raise ValueError(ErrorMessages.TIMEZONE_REQUIRED)
    return v.astimezone(UTC) if isinstance(v, datetime) else v


UtcDatetimeField = Annotated[datetime, BeforeValidator(_ensure_utc)]
"""Timezone-aware datetime, normalised to UTC on input."""


# ── ID aliases ──────────────────────────────────────────────────────
# A "server" is a Discord guild; the coordinator keys everything by it.

ServerId = DiscordSnowflake
UserId = DiscordSnowflake
ChannelId = DiscordSnowflake
