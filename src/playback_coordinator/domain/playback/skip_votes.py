"""
Skip Vote Engine

The voting state machine over a server's playing record, plus the policy
that turns a listener count into the number of votes a skip needs.
"""

import math

from playback_coordinator.domain.playback.entities import PlayingRecord
from playback_coordinator.domain.playback.value_objects import SkipVoteOutcome


class SkipVoteEngine:
    """Domain service for skip votes.

    ``evaluate`` is the only place a ``PlayingRecord``'s voter set changes.
    It does not perform the forced stop itself; callers check
    ``outcome.forces_stop`` and clear the record, the completion index entry
    and the audio.
    """

    MINIMUM_THRESHOLD = 1

    @classmethod
    def calculate_votes_required(
        cls,
        listener_count: int,
        ratio: float = 0.5,
        minimum: int = MINIMUM_THRESHOLD,
    ) -> int:
        """Number of votes needed to skip, given who is listening.

        Args:
            listener_count: Listeners in the voice channel, excluding the bot.
            ratio: Fraction of listeners that must vote (rounded up).
            minimum: Lower bound; never below 1.

        Returns:
            The vote threshold fixed into a new playing record.
        """
        floor = max(cls.MINIMUM_THRESHOLD, minimum)
        if listener_count <= 0:
            return floor
        return max(floor, math.ceil(listener_count * ratio))

    @staticmethod
    def evaluate(record: PlayingRecord | None, voter_id: int) -> SkipVoteOutcome:
        """Apply one skip request to *record*.

        The requester's own skip always passes and is never counted as a vote.
        Registered votes are added to ``record.skip_voter_ids``.
        """
        if record is None:
            return SkipVoteOutcome.NO_SONG_PLAYING

        if record.request.was_requested_by(voter_id):
            return SkipVoteOutcome.REQUESTER_SKIP

        if voter_id in record.skip_voter_ids:
            return SkipVoteOutcome.ALREADY_VOTED

        record.skip_voter_ids.add(voter_id)
        if record.vote_count >= record.skip_votes_required:
            return SkipVoteOutcome.VOTE_PASSED
        return SkipVoteOutcome.VOTE_REGISTERED
