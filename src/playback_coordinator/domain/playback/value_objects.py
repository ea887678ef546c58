"""
Playback Domain Value Objects

Enumerations describing a server's session phase and skip-vote outcomes.
"""

from enum import Enum

from playback_coordinator.domain.shared.messages import ReplyMessages


class SessionPhase(Enum):
    """Explicit three-state tag for a server's playback session.

    - ABSENT: not connected to voice; no queue and no playing record exist
    - IDLE: connected, nothing playing; the queue may hold pending requests
    - PLAYING: connected with a playing record
    """

    ABSENT = "absent"
    IDLE = "idle"
    PLAYING = "playing"

    @property
    def is_connected(self) -> bool:
        return self is not SessionPhase.ABSENT


class SkipVoteOutcome(Enum):
    """Result of one user's skip request against the current playing record."""

    NO_SONG_PLAYING = "no_song_playing"  # Nothing to skip
    REQUESTER_SKIP = "requester_skip"  # Requester skipped their own song
    ALREADY_VOTED = "already_voted"  # Vote was already counted
    VOTE_REGISTERED = "vote_registered"  # Vote counted, threshold not reached
    VOTE_PASSED = "vote_passed"  # Vote counted and threshold reached

    @property
    def forces_stop(self) -> bool:
        """Whether this outcome ends the current song immediately."""
        return self in {SkipVoteOutcome.REQUESTER_SKIP, SkipVoteOutcome.VOTE_PASSED}

    def get_message(self, votes: int = 0, required: int = 0) -> str:
        messages = {
            SkipVoteOutcome.NO_SONG_PLAYING: ReplyMessages.NO_SONG_PLAYING,
            SkipVoteOutcome.REQUESTER_SKIP: ReplyMessages.SKIP_REQUESTER,
            SkipVoteOutcome.ALREADY_VOTED: ReplyMessages.SKIP_ALREADY_VOTED,
            SkipVoteOutcome.VOTE_REGISTERED: ReplyMessages.SKIP_VOTE_ADDED.format(
                votes=votes, required=required
            ),
            SkipVoteOutcome.VOTE_PASSED: ReplyMessages.SKIP_VOTE_PASSED.format(
                votes=votes, required=required
            ),
        }
        return messages[self]
