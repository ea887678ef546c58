from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

SERVER_ID = 111111111111
OTHER_SERVER_ID = 222222222222
VOICE_CHANNEL_ID = 333333333333
TEXT_CHANNEL_ID = 444444444444
REQUESTER_ID = 1001
VOTER_B = 1002
VOTER_C = 1003

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


def make_song(title: str = "Test Song", duration: int = 185, **overrides):
    from playback_coordinator.domain.playback.entities import SongItem

    data = {
        "title": title,
        "duration_seconds": duration,
        "uploader": "Test Uploader",
        "locator": f"data/songs/{title.replace(' ', '_').lower()}.mp3",
        "webpage_url": "https://youtube.com/watch?v=test123",
    }
    data.update(overrides)
    return SongItem(**data)


def make_request(
    title: str = "Test Song",
    duration: int = 185,
    requester_id: int = REQUESTER_ID,
    requester_name: str = "alice",
):
    from playback_coordinator.domain.playback.entities import QueuedRequest

    return QueuedRequest(
        item=make_song(title, duration),
        requested_in=TEXT_CHANNEL_ID,
        requester_id=requester_id,
        requester_name=requester_name,
    )


@pytest.fixture
def sample_song():
    return make_song()


@pytest.fixture
def sample_request():
    return make_request()


@pytest.fixture
def sample_record(sample_request):
    """A playing record needing two skip votes, started at FIXED_NOW."""
    from playback_coordinator.domain.playback.entities import PlayingRecord

    return PlayingRecord(request=sample_request, skip_votes_required=2, started_at=FIXED_NOW)


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def mock_gateway():
    """A VoiceSessionGateway double that reports a live connection everywhere."""
    from playback_coordinator.application.interfaces.voice_gateway import VoiceSessionGateway

    gateway = MagicMock(spec=VoiceSessionGateway)
    gateway.connect = AsyncMock(return_value=True)
    gateway.disconnect = AsyncMock(return_value=True)
    gateway.play = AsyncMock(return_value=True)
    gateway.stop = AsyncMock(return_value=True)
    gateway.get_listener_count = AsyncMock(return_value=3)
    gateway.is_connected.return_value = True
    gateway.is_playing.return_value = False
    gateway.current_channel.return_value = VOICE_CHANNEL_ID
    gateway.get_member_channel.return_value = VOICE_CHANNEL_ID
    return gateway


@pytest.fixture
def mock_resolver(sample_song):
    from playback_coordinator.application.interfaces.song_resolver import SongResolver

    resolver = MagicMock(spec=SongResolver)
    resolver.resolve = AsyncMock(return_value=sample_song)
    return resolver


@pytest.fixture
def store():
    from playback_coordinator.domain.playback.session_store import SessionStore

    return SessionStore(max_queue_size=5)


@pytest.fixture
def audio_settings():
    from playback_coordinator.config.settings import AudioSettings

    return AudioSettings(max_song_duration_seconds=600)


@pytest.fixture
def service(store, mock_gateway, mock_resolver, audio_settings):
    from playback_coordinator.application.services.music_session import MusicSessionService

    return MusicSessionService(
        store=store,
        gateway=mock_gateway,
        resolver=mock_resolver,
        audio_settings=audio_settings,
    )


@pytest.fixture
def driver(store, mock_gateway):
    from playback_coordinator.application.services.completion_driver import CompletionDriver
    from playback_coordinator.config.settings import VotingSettings

    return CompletionDriver(
        store=store,
        gateway=mock_gateway,
        voting=VotingSettings(skip_ratio=0.5, min_votes=1),
        tick_seconds=0.01,
    )
