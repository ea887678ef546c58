"""
Unit Tests for MusicSessionService

Tests for:
- join / leave lifecycle and gateway failures
- play: auto-join, resolution errors, duration limit, immediate-start scheduling
- queue and status read models
- skip voting and forced stops
- End-to-end scenarios across join, play, skip and leave
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from conftest import (
    FIXED_NOW,
    OTHER_SERVER_ID,
    REQUESTER_ID,
    SERVER_ID,
    TEXT_CHANNEL_ID,
    VOICE_CHANNEL_ID,
    VOTER_B,
    VOTER_C,
    make_request,
    make_song,
)

from playback_coordinator.application.services.session_models import PlayStatus
from playback_coordinator.domain.playback.completion_index import IMMEDIATE
from playback_coordinator.domain.playback.value_objects import SessionPhase, SkipVoteOutcome
from playback_coordinator.domain.shared.exceptions import (
    AlreadyConnectedError,
    EmptyQueueError,
    NoSongPlayingError,
    NoTargetChannelError,
    NotConnectedError,
    NothingToDoError,
    QueueFullError,
    ResolutionError,
    SongTooLongError,
    VoiceConnectionError,
)

URL = "https://youtube.com/watch?v=test123"


async def _play(service, server_id=SERVER_ID, requester_id=REQUESTER_ID, url=URL, name="alice"):
    return await service.play(server_id, requester_id, name, TEXT_CHANNEL_ID, url)


def _start_playing(store, server_id=SERVER_ID, votes_required=2, requester_id=REQUESTER_ID):
    """Put *server_id* into PLAYING as the driver would."""
    store.ensure_session(server_id)
    return store.begin_playback(
        server_id,
        make_request(requester_id=requester_id),
        votes_required=votes_required,
        started_at=FIXED_NOW,
    )


# =============================================================================
# join / leave
# =============================================================================


class TestJoin:
    @pytest.mark.asyncio
    async def test_join_connects_and_creates_idle_session(self, service, store, mock_gateway):
        result = await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        mock_gateway.connect.assert_awaited_once_with(SERVER_ID, VOICE_CHANNEL_ID)
        assert store.phase(SERVER_ID) is SessionPhase.IDLE
        assert result.message == "Ready to play audio"
        assert result.channel_id == VOICE_CHANNEL_ID

    @pytest.mark.asyncio
    async def test_join_when_connected_is_rejected(self, service, mock_gateway):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        with pytest.raises(AlreadyConnectedError):
            await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        assert mock_gateway.connect.await_count == 1

    @pytest.mark.asyncio
    async def test_join_gateway_failure(self, service, store, mock_gateway):
        mock_gateway.connect.return_value = False

        with pytest.raises(VoiceConnectionError) as exc_info:
            await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        assert exc_info.value.channel_id == VOICE_CHANNEL_ID
        assert store.phase(SERVER_ID) is SessionPhase.ABSENT


class TestLeave:
    @pytest.mark.asyncio
    async def test_leave_disconnects_and_tears_down(self, service, store, mock_gateway):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        await service.leave(SERVER_ID)

        mock_gateway.disconnect.assert_awaited_once_with(SERVER_ID)
        assert store.phase(SERVER_ID) is SessionPhase.ABSENT

    @pytest.mark.asyncio
    async def test_leave_when_absent_is_safe(self, service, mock_gateway):
        await service.leave(SERVER_ID)

        mock_gateway.disconnect.assert_awaited_once_with(SERVER_ID)

    @pytest.mark.asyncio
    async def test_leave_tolerates_gateway_failure(self, service, store, mock_gateway):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)
        mock_gateway.disconnect.side_effect = RuntimeError("socket closed")

        await service.leave(SERVER_ID)

        assert store.phase(SERVER_ID) is SessionPhase.ABSENT

    @pytest.mark.asyncio
    async def test_leave_drops_scheduled_completion(self, service, store):
        _start_playing(store)

        await service.leave(SERVER_ID)

        assert not store.index.contains(SERVER_ID)


# =============================================================================
# play
# =============================================================================


class TestPlay:
    @pytest.mark.asyncio
    async def test_play_when_idle_schedules_immediate_start(self, service, store):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        result = await _play(service)

        assert result.status is PlayStatus.QUEUED
        assert result.position == 0
        assert result.scheduled is True
        assert result.message == "Queued **Test Song** [duration: 3:05]"
        assert store.index.key_of(SERVER_ID) == IMMEDIATE

    @pytest.mark.asyncio
    async def test_play_while_playing_only_enqueues(self, service, store):
        record = _start_playing(store)
        key_before = store.index.key_of(SERVER_ID)

        result = await _play(service)

        assert result.scheduled is False
        assert store.playing(SERVER_ID) is record
        assert store.index.key_of(SERVER_ID) == key_before
        assert len(store.index) == 1

    @pytest.mark.asyncio
    async def test_second_play_while_idle_does_not_double_schedule(self, service, store):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        first = await _play(service)
        second = await _play(service)

        assert first.scheduled is True
        assert second.scheduled is False
        assert second.position == 1
        assert store.index.snapshot() == {IMMEDIATE: (SERVER_ID,)}

    @pytest.mark.asyncio
    async def test_play_appends_to_end_of_own_queue_only(self, service, store, mock_resolver):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)
        await service.join(OTHER_SERVER_ID, VOICE_CHANNEL_ID)
        mock_resolver.resolve.return_value = make_song("Other")
        await _play(service, server_id=OTHER_SERVER_ID)

        mock_resolver.resolve.return_value = make_song("First")
        await _play(service)
        mock_resolver.resolve.return_value = make_song("Second")
        await _play(service)

        titles = [r.item.title for r in store.queue_snapshot(SERVER_ID)]
        assert titles == ["First", "Second"]
        assert [r.item.title for r in store.queue_snapshot(OTHER_SERVER_ID)] == ["Other"]

    @pytest.mark.asyncio
    async def test_play_auto_joins_requesters_channel(self, service, store, mock_gateway):
        result = await _play(service)

        mock_gateway.get_member_channel.assert_called_once_with(SERVER_ID, REQUESTER_ID)
        mock_gateway.connect.assert_awaited_once_with(SERVER_ID, VOICE_CHANNEL_ID)
        assert result.joined is True
        assert result.scheduled is True
        assert store.phase(SERVER_ID) is SessionPhase.IDLE

    @pytest.mark.asyncio
    async def test_play_without_url_only_joins(self, service, store, mock_resolver):
        result = await _play(service, url=None)

        assert result.status is PlayStatus.JOINED
        assert result.joined is True
        assert store.phase(SERVER_ID) is SessionPhase.IDLE
        mock_resolver.resolve.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_play_without_url_or_channel_is_nothing_to_do(
        self, service, store, mock_gateway, mock_resolver
    ):
        mock_gateway.get_member_channel.return_value = None

        with pytest.raises(NothingToDoError):
            await _play(service, url=None)

        mock_gateway.connect.assert_not_awaited()
        mock_resolver.resolve.assert_not_awaited()
        assert store.phase(SERVER_ID) is SessionPhase.ABSENT

    @pytest.mark.asyncio
    async def test_play_without_url_while_connected_is_nothing_to_do(self, service):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        with pytest.raises(NothingToDoError):
            await _play(service, url="   ")

    @pytest.mark.asyncio
    async def test_play_with_url_but_no_channel(self, service, store, mock_gateway, mock_resolver):
        mock_gateway.get_member_channel.return_value = None

        with pytest.raises(NoTargetChannelError):
            await _play(service)

        mock_resolver.resolve.assert_not_awaited()
        assert store.phase(SERVER_ID) is SessionPhase.ABSENT

    @pytest.mark.asyncio
    async def test_auto_join_failure(self, service, store, mock_gateway):
        mock_gateway.connect.return_value = False

        with pytest.raises(VoiceConnectionError):
            await _play(service)

        assert store.phase(SERVER_ID) is SessionPhase.ABSENT

    @pytest.mark.asyncio
    async def test_known_resolution_error_propagates_verbatim(
        self, service, store, mock_resolver
    ):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)
        mock_resolver.resolve.side_effect = ResolutionError("Error downloading song")

        with pytest.raises(ResolutionError) as exc_info:
            await _play(service)

        assert exc_info.value.reason == "Error downloading song"
        assert store.queue_snapshot(SERVER_ID) == []
        assert not store.index.contains(SERVER_ID)

    @pytest.mark.asyncio
    async def test_unexpected_resolution_error_is_generic(self, service, mock_resolver, caplog):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)
        mock_resolver.resolve.side_effect = KeyError("formats")

        with pytest.raises(ResolutionError) as exc_info:
            await _play(service)

        assert exc_info.value.reason == "Unknown error downloading song"
        assert isinstance(exc_info.value.__cause__, KeyError)
        assert "Unexpected error resolving" in caplog.text

    @pytest.mark.asyncio
    async def test_song_too_long(self, service, store, mock_resolver):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)
        mock_resolver.resolve.return_value = make_song(duration=601)

        with pytest.raises(SongTooLongError) as exc_info:
            await _play(service)

        assert exc_info.value.message == "Song is too long (10:01, max 10:00)"
        assert store.queue_snapshot(SERVER_ID) == []

    @pytest.mark.asyncio
    async def test_queue_full(self, service):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)
        for _ in range(5):
            await _play(service)

        with pytest.raises(QueueFullError):
            await _play(service)

    @pytest.mark.asyncio
    async def test_leave_during_resolution(self, service, store, mock_gateway, mock_resolver):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        async def resolve_then_leave(url):
            await service.leave(SERVER_ID)
            mock_gateway.is_connected.return_value = False
            return make_song()

        mock_resolver.resolve.side_effect = resolve_then_leave

        with pytest.raises(NotConnectedError):
            await _play(service)

        assert store.phase(SERVER_ID) is SessionPhase.ABSENT

    @pytest.mark.asyncio
    async def test_lock_is_not_held_while_resolving(self, service, store, mock_resolver):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)
        observed = []

        async def resolve(url):
            observed.append(store.lock.locked())
            return make_song()

        mock_resolver.resolve.side_effect = resolve

        await _play(service)

        assert observed == [False]

    @pytest.mark.asyncio
    async def test_concurrent_plays_schedule_once(self, service, store, mock_resolver):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        async def slow_resolve(url):
            await asyncio.sleep(0)
            return make_song()

        mock_resolver.resolve.side_effect = slow_resolve

        results = await asyncio.gather(*(_play(service) for _ in range(4)))

        assert sum(r.scheduled for r in results) == 1
        assert sorted(r.position for r in results) == [0, 1, 2, 3]
        assert len(store.index) == 1


# =============================================================================
# queue / status
# =============================================================================


class TestQueue:
    @pytest.mark.asyncio
    async def test_queue_absent_server(self, service):
        with pytest.raises(EmptyQueueError):
            await service.queue(SERVER_ID)

    @pytest.mark.asyncio
    async def test_queue_connected_but_empty(self, service):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        with pytest.raises(EmptyQueueError):
            await service.queue(SERVER_ID)

    @pytest.mark.asyncio
    async def test_queue_lists_entries_in_order(self, service, mock_resolver):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)
        mock_resolver.resolve.return_value = make_song("One", 59)
        await _play(service, name="alice")
        mock_resolver.resolve.return_value = make_song("Two", 545)
        await _play(service, requester_id=VOTER_B, name="bob")

        entries = await service.queue(SERVER_ID)

        assert [(e.position, e.title, e.requester_name, e.duration_formatted) for e in entries] == [
            (0, "One", "alice", "0:59"),
            (1, "Two", "bob", "9:05"),
        ]


class TestStatus:
    @pytest.mark.asyncio
    async def test_status_without_playing_record(self, service):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        with pytest.raises(NoSongPlayingError):
            await service.status(SERVER_ID)

    @pytest.mark.asyncio
    async def test_status_reports_progress(self, service, store):
        _start_playing(store)

        result = await service.status(SERVER_ID, now=FIXED_NOW + timedelta(seconds=65))

        assert result.title == "Test Song"
        assert result.elapsed_seconds == 65
        assert result.duration_seconds == 185
        assert result.remaining_seconds == 120
        assert result.message == "Playing **Test Song** [1:05/3:05] [-2:00]"

    @pytest.mark.asyncio
    async def test_status_past_end_clamps_remaining(self, service, store):
        _start_playing(store)

        result = await service.status(SERVER_ID, now=FIXED_NOW + timedelta(seconds=200))

        assert result.remaining_seconds == -15
        assert result.message.endswith("[-0:00]")


# =============================================================================
# skip
# =============================================================================


class TestSkip:
    @pytest.mark.asyncio
    async def test_skip_with_nothing_playing(self, service, store, mock_gateway):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)

        result = await service.skip(SERVER_ID, VOTER_B)

        assert result.outcome is SkipVoteOutcome.NO_SONG_PLAYING
        assert result.message == "No song is currently playing"
        assert store.phase(SERVER_ID) is SessionPhase.IDLE
        mock_gateway.stop.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_vote_registered(self, service, store, mock_gateway):
        record = _start_playing(store)

        result = await service.skip(SERVER_ID, VOTER_B)

        assert result.outcome is SkipVoteOutcome.VOTE_REGISTERED
        assert (result.votes, result.required) == (1, 2)
        assert result.message == "Skip vote added [currently: 1/2]"
        assert record.skip_voter_ids == {VOTER_B}
        mock_gateway.stop.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_repeat_vote_is_already_voted(self, service, store):
        record = _start_playing(store)
        await service.skip(SERVER_ID, VOTER_B)

        result = await service.skip(SERVER_ID, VOTER_B)

        assert result.outcome is SkipVoteOutcome.ALREADY_VOTED
        assert record.skip_voter_ids == {VOTER_B}
        assert store.phase(SERVER_ID) is SessionPhase.PLAYING

    @pytest.mark.parametrize("prior_votes", [0, 1])
    @pytest.mark.asyncio
    async def test_requester_skip_forces_stop_once(
        self, service, store, mock_gateway, prior_votes
    ):
        record = _start_playing(store, votes_required=3)
        for voter in [VOTER_B][:prior_votes]:
            record.skip_voter_ids.add(voter)

        result = await service.skip(SERVER_ID, REQUESTER_ID)

        assert result.outcome is SkipVoteOutcome.REQUESTER_SKIP
        assert result.forced_stop is True
        assert result.message == "Song requester skipped"
        assert store.playing(SERVER_ID) is None
        assert not store.index.contains(SERVER_ID)
        mock_gateway.stop.assert_awaited_once_with(SERVER_ID)

    @pytest.mark.asyncio
    async def test_forced_stop_with_immediate_entry_in_index(self, service, store, mock_gateway):
        _start_playing(store, votes_required=1)
        store.index.remove_server(SERVER_ID)
        store.index.register_completion(SERVER_ID, IMMEDIATE)

        result = await service.skip(SERVER_ID, VOTER_B)

        assert result.outcome is SkipVoteOutcome.VOTE_PASSED
        assert store.playing(SERVER_ID) is None
        assert not store.index.contains(SERVER_ID)

    @pytest.mark.asyncio
    async def test_gateway_stop_failure_keeps_reset(self, service, store, mock_gateway, caplog):
        _start_playing(store)
        store.ensure_session(SERVER_ID)
        store.enqueue(SERVER_ID, make_request("Next"))
        mock_gateway.stop.side_effect = RuntimeError("voice gone")

        result = await service.skip(SERVER_ID, REQUESTER_ID)

        assert result.outcome is SkipVoteOutcome.REQUESTER_SKIP
        assert store.phase(SERVER_ID) is SessionPhase.IDLE
        assert "Gateway failed to stop playback" in caplog.text
        # Nobody will fire the track-end callback, so the next song is scheduled directly.
        assert store.index.key_of(SERVER_ID) == IMMEDIATE

    @pytest.mark.asyncio
    async def test_stop_with_nothing_audible_schedules_next(self, service, store, mock_gateway):
        _start_playing(store)
        store.enqueue(SERVER_ID, make_request("Next"))
        mock_gateway.stop.return_value = False

        await service.skip(SERVER_ID, REQUESTER_ID)

        assert store.index.key_of(SERVER_ID) == IMMEDIATE

    @pytest.mark.asyncio
    async def test_successful_stop_leaves_advance_to_track_end(self, service, store, mock_gateway):
        _start_playing(store)
        store.enqueue(SERVER_ID, make_request("Next"))

        await service.skip(SERVER_ID, REQUESTER_ID)

        assert not store.index.contains(SERVER_ID)

    @pytest.mark.asyncio
    async def test_stop_is_called_outside_lock(self, service, store, mock_gateway):
        _start_playing(store)
        observed = []

        async def stop(server_id):
            observed.append(store.lock.locked())
            return True

        mock_gateway.stop = AsyncMock(side_effect=stop)

        await service.skip(SERVER_ID, REQUESTER_ID)

        assert observed == [False]


# =============================================================================
# Scenarios
# =============================================================================


class TestScenarios:
    @pytest.mark.asyncio
    async def test_join_play_vote_vote(self, service, store, driver, mock_gateway):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)
        assert store.phase(SERVER_ID) is SessionPhase.IDLE

        await _play(service)
        assert len(store.queue_snapshot(SERVER_ID)) == 1
        assert store.index.key_of(SERVER_ID) == IMMEDIATE

        mock_gateway.get_listener_count.return_value = 4
        await driver.run_pass(now=FIXED_NOW)
        assert store.playing(SERVER_ID).skip_votes_required == 2

        first = await service.skip(SERVER_ID, VOTER_B)
        assert first.outcome is SkipVoteOutcome.VOTE_REGISTERED
        assert (first.votes, first.required) == (1, 2)

        second = await service.skip(SERVER_ID, VOTER_C)
        assert second.outcome is SkipVoteOutcome.VOTE_PASSED
        assert store.phase(SERVER_ID) is SessionPhase.IDLE
        assert not store.index.contains(SERVER_ID)
        mock_gateway.stop.assert_awaited_once_with(SERVER_ID)

    @pytest.mark.asyncio
    async def test_leave_discards_queue(self, service, store):
        await service.join(SERVER_ID, VOICE_CHANNEL_ID)
        await _play(service)
        await _play(service)

        await service.leave(SERVER_ID)

        with pytest.raises(EmptyQueueError):
            await service.queue(SERVER_ID)
        assert SERVER_ID not in store.server_ids()
        assert store.phase(SERVER_ID) is SessionPhase.ABSENT
