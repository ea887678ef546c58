"""Time-keyed index of servers whose current song is due to end (or start).

The driver only looks at keys that are due instead of polling every session.
Keys are unix seconds; ``IMMEDIATE`` (0) sorts before every real timestamp,
so servers waiting for their first song are always handled first.

A reverse map (server -> key) keeps removal O(1) and enforces that a server
is scheduled under at most one key.
"""

from __future__ import annotations

from playback_coordinator.domain.shared.exceptions import CompletionIndexConflictError

IMMEDIATE: int = 0


class CompletionIndex:
    """Ordered mapping of completion key to the servers due at that key.

    Not thread-safe on its own: it lives inside ``SessionStore`` and is only
    touched while the store's lock is held.
    """

    def __init__(self) -> None:
        self._by_key: dict[int, list[int]] = {}
        self._key_of: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._key_of)

    def __contains__(self, server_id: object) -> bool:
        return server_id in self._key_of

    def contains(self, server_id: int) -> bool:
        return server_id in self._key_of

    def key_of(self, server_id: int) -> int | None:
        return self._key_of.get(server_id)

    def register_completion(self, server_id: int, at_key: int) -> None:
        """Schedule *server_id* under *at_key*.

        Raises:
            CompletionIndexConflictError: The server is already scheduled,
                under this key or another one.
        """
        existing = self._key_of.get(server_id)
        if existing is not None:
            raise CompletionIndexConflictError(server_id, existing)

        self._by_key.setdefault(at_key, []).append(server_id)
        self._key_of[server_id] = at_key

    def remove_server(self, server_id: int) -> bool:
        """Drop *server_id* from whichever key holds it. Returns whether it was found."""
        key = self._key_of.pop(server_id, None)
        if key is None:
            return False

        servers = self._by_key[key]
        servers.remove(server_id)
        if not servers:
            del self._by_key[key]
        return True

    def due_keys(self, now_key: int) -> list[int]:
        return sorted(k for k in self._by_key if k <= now_key)

    def pop_due(self, now_key: int) -> list[int]:
        """Remove and return every server due at or before *now_key*.

        Ascending key order, insertion order within a key.
        """
        due: list[int] = []
        for key in self.due_keys(now_key):
            servers = self._by_key.pop(key)
            for server_id in servers:
                del self._key_of[server_id]
            due.extend(servers)
        return due

    def snapshot(self) -> dict[int, tuple[int, ...]]:
        """Read-only copy of the index, ordered by key."""
        return {k: tuple(self._by_key[k]) for k in sorted(self._by_key)}
