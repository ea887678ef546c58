"""Date/time helpers.

All timestamps are timezone-aware UTC. Completion keys are whole unix
seconds so that the completion index can order them as plain integers.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime


def utcnow() -> datetime:
    """Timezone-aware ``datetime.now`` in UTC."""
    return datetime.now(UTC)


def unix_seconds(dt: datetime) -> int:
    return int(dt.timestamp())


def completion_key(started_at: datetime, duration_seconds: int) -> int:
    """Unix second at which a song started at *started_at* is expected to end.

    Rounded up so the driver never sees a song as due before it finished.
    """
    return math.ceil(started_at.timestamp()) + duration_seconds
