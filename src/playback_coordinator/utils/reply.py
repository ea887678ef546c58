"""Utility functions for formatting chat replies."""

from __future__ import annotations

from functools import cache

DISCORD_MESSAGE_LIMIT = 2000


@cache
def format_duration(seconds: int | float | None) -> str:
    """Render seconds as ``M:SS`` or ``H:MM:SS``. Negative values clamp to zero."""
    if seconds is None:
        return "–"

    total_seconds = max(0, int(seconds))
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def truncate_message(text: str, max_length: int = DISCORD_MESSAGE_LIMIT) -> str:
    """Cut *text* to fit in one chat message, preferring a line boundary."""
    if len(text) <= max_length:
        return text

    cut = text[: max_length - 1]
    newline = cut.rfind("\n")
    if newline > 0:
        return cut[:newline]
    return cut + "…"
