"""
Shared Domain Kernel

Exceptions, message catalogues, and annotated types used by every layer.
"""

from playback_coordinator.domain.shared.exceptions import (
    AlreadyConnectedError,
    CompletionIndexConflictError,
    DomainError,
    EmptyQueueError,
    ExternalFailureError,
    NoSongPlayingError,
    NoTargetChannelError,
    NotConnectedError,
    NothingToDoError,
    QueueFullError,
    ResolutionError,
    SongTooLongError,
    StateConflictError,
    UserInputError,
    VoiceConnectionError,
)

__all__ = [
    "AlreadyConnectedError",
    "CompletionIndexConflictError",
    "DomainError",
    "EmptyQueueError",
    "ExternalFailureError",
    "NoSongPlayingError",
    "NoTargetChannelError",
    "NotConnectedError",
    "NothingToDoError",
    "QueueFullError",
    "ResolutionError",
    "SongTooLongError",
    "StateConflictError",
    "UserInputError",
    "VoiceConnectionError",
]
