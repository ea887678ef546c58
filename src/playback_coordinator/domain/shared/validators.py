"""Validators for Discord IDs arriving from configuration."""

from __future__ import annotations

from collections.abc import Iterable

from playback_coordinator.domain.shared.messages import ErrorMessages

SNOWFLAKE_LIMIT = 2**64


def validate_discord_snowflake(value: int | str) -> int:
    """Return *value* as an int if it is a valid Discord snowflake.

    Raises:
        ValueError: Not an integer, or outside ``1 .. 2**64 - 1``.
    """
    try:
        snowflake = int(value)
    except (TypeError, ValueError):
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE) from None

    if snowflake <= 0:
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE)
    if snowflake >= SNOWFLAKE_LIMIT:
        raise ValueError(ErrorMessages.SNOWFLAKE_TOO_LARGE)
    return snowflake


def parse_snowflake_list(value: Iterable[int | str] | str | int | None) -> tuple[int, ...]:
    """Normalise an ID list from settings.

    Accepts a single ID, a comma-separated string (``"1,2"``), or any iterable;
    JSON arrays from env vars arrive here already decoded as lists.
    """
    if value is None:
        return ()
    if isinstance(value, int):
        value = [value]
    elif isinstance(value, str):
        value = [part for part in value.split(",") if part.strip()]
    return tuple(validate_discord_snowflake(v) for v in value)
