"""Exception hierarchy for playback coordination errors.

Three families are user-facing (input, state conflicts, external failures);
their ``message`` is safe to show in chat. ``CompletionIndexConflictError``
signals a broken scheduling invariant and is never shown to users.
"""

from __future__ import annotations

from playback_coordinator.domain.shared.messages import ErrorMessages


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


# === User input ===


class UserInputError(DomainError):
    """Raised when a command is missing or has malformed input."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="USER_INPUT_ERROR")


class NoTargetChannelError(UserInputError):
    def __init__(self) -> None:
        super().__init__(ErrorMessages.NO_TARGET_CHANNEL)


# === State conflicts ===


class StateConflictError(DomainError):
    """Raised when an operation does not fit the session's current state."""

    def __init__(self, server_id: int, message: str) -> None:
        super().__init__(message, code="STATE_CONFLICT")
        self.server_id = server_id


class AlreadyConnectedError(StateConflictError):
    def __init__(self, server_id: int) -> None:
        super().__init__(server_id, ErrorMessages.ALREADY_CONNECTED)


class NotConnectedError(StateConflictError):
    def __init__(self, server_id: int) -> None:
        super().__init__(server_id, ErrorMessages.NOT_CONNECTED)


class NoSongPlayingError(StateConflictError):
    def __init__(self, server_id: int) -> None:
        super().__init__(server_id, ErrorMessages.NO_SONG_PLAYING)


class EmptyQueueError(StateConflictError):
    def __init__(self, server_id: int) -> None:
        super().__init__(server_id, ErrorMessages.EMPTY_QUEUE)


class NothingToDoError(StateConflictError):
    def __init__(self, server_id: int) -> None:
        super().__init__(server_id, ErrorMessages.NOTHING_TO_DO)


class QueueFullError(StateConflictError):
    def __init__(self, server_id: int, max_size: int) -> None:
        super().__init__(server_id, ErrorMessages.QUEUE_FULL.format(max_size=max_size))
        self.max_size = max_size


# === External failures ===


class ExternalFailureError(DomainError):
    """Raised when a collaborator (voice gateway, resolver) fails."""

    def __init__(self, message: str, code: str = "EXTERNAL_FAILURE") -> None:
        super().__init__(message, code=code)


class ResolutionError(ExternalFailureError):
    """A song could not be resolved. ``reason`` is shown to the user verbatim."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason, code="RESOLUTION_ERROR")
        self.reason = reason


class SongTooLongError(ResolutionError):
    def __init__(self, duration: str, max_duration: str) -> None:
        super().__init__(
            ErrorMessages.SONG_TOO_LONG.format(duration=duration, max_duration=max_duration)
        )


class VoiceConnectionError(ExternalFailureError):
    def __init__(self, server_id: int, channel_id: int | None = None) -> None:
        super().__init__(ErrorMessages.COULD_NOT_JOIN_VOICE, code="VOICE_CONNECTION_ERROR")
        self.server_id = server_id
        self.channel_id = channel_id


# === Invariant violations ===


class CompletionIndexConflictError(DomainError):
    """Raised when a server would be scheduled under two completion keys."""

    def __init__(self, server_id: int, existing_key: int) -> None:
        super().__init__(
            ErrorMessages.INDEX_CONFLICT.format(server_id=server_id, existing_key=existing_key),
            code="INDEX_CONFLICT",
        )
        self.server_id = server_id
        self.existing_key = existing_key
