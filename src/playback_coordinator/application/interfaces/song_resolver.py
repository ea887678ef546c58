"""Port interface for resolving a URL into a playable song."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from playback_coordinator.domain.shared.types import NonEmptyStr

if TYPE_CHECKING:
    from ...domain.playback.entities import SongItem


class SongResolver(ABC):
    """Interface for turning a user-supplied URL into a ``SongItem``."""

    @abstractmethod
    async def resolve(self, url: NonEmptyStr) -> "SongItem":
        """Resolve *url*.

        Raises:
            ResolutionError: A known failure whose ``reason`` can be shown to
                the user as-is. Any other exception is treated as unexpected.
        """
        ...
