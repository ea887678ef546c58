"""Centralized message constants for errors, log templates, and user replies."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be a positive integer"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Session State Errors
    ALREADY_CONNECTED = "Already in a voice channel"
    NOT_CONNECTED = "Not connected to a voice channel in this server"
    NO_SONG_PLAYING = "No song is currently playing"
    EMPTY_QUEUE = "No songs are queued"
    NOTHING_TO_DO = "Nothing to queue"
    QUEUE_FULL = "Queue is full (max {max_size} songs)"

    # User Input Errors
    NO_TARGET_CHANNEL = "Must mention a channel or be in one"

    # External Failures
    COULD_NOT_JOIN_VOICE = "Could not connect to the voice channel"
    DOWNLOAD_FAILED = "Error downloading song"
    SONG_INFO_MISSING = "Error getting song info"
    SONG_INFO_INVALID = "Error parsing song info"
    UNKNOWN_DOWNLOAD_ERROR = "Unknown error downloading song"
    SONG_TOO_LONG = "Song is too long ({duration}, max {max_duration})"

    # Internal Contract Violations
    INDEX_CONFLICT = "Server {server_id} is already scheduled under key {existing_key}"
    TIMEZONE_REQUIRED = "datetime must be timezone-aware (UTC)"

    # Configuration Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    BOT_NOT_INITIALIZED = "Bot not initialized. Call set_bot() first."
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for %-style logger calls."""

    # Bot Lifecycle
    BOT_STARTING = "Starting playback coordinator ({environment})"
    BOT_STARTING_RUN = "Connecting to Discord gateway"
    CONFIG_SUMMARY = "Audio mode %s, queue limit %d, skip ratio %.2f, driver tick %.2fs"
    FFMPEG_MISSING = "ffmpeg was not found on PATH; voice playback will fail"
    BOT_STOPPED = "Bot stopped"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down"
    BOT_FATAL_ERROR = "Fatal error while running bot: %r"
    BOT_SETUP = "Running bot setup hook"
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_READY = "Logged in as %s (%s)"
    BOT_SHUTDOWN_SIGNAL = "Received signal %s, shutting down"
    BOT_SHUTDOWN_TIMEOUT = "Shutdown did not finish within %.0fs"
    CONTAINER_SHUTDOWN_ERROR = "Error stopping %s during shutdown: %r"
    COG_LOADED = "Loaded cog %s"
    COMMANDS_SYNCED = "Synced %d application commands"
    COMMANDS_SYNC_FAILED = "Failed to sync application commands: %r"

    # Session Lifecycle
    SESSION_CREATED = "Created playback session for server %s"
    SESSION_TORN_DOWN = "Tore down playback session for server %s (%d queued requests dropped)"
    SESSION_ALREADY_ABSENT = "Leave requested for server %s with no session"
    REQUEST_QUEUED = "Queued '%s' for server %s at position %d"
    IMMEDIATE_START_SCHEDULED = "Scheduled immediate start for server %s"

    # Skip Voting
    SKIP_VOTE = "Skip vote in server %s by user %s: %s (%d/%d)"
    FORCED_STOP = "Forced stop in server %s (%s)"
    FORCED_STOP_GATEWAY_FAILED = "Gateway failed to stop playback in server %s"

    # Resolution
    RESOLVING = "Resolving %s for server %s"
    RESOLUTION_FAILED_KNOWN = "Resolution failed for %s: %s"
    RESOLUTION_FAILED_UNEXPECTED = "Unexpected error resolving %s"
    YTDLP_DOWNLOAD_FAILED = "yt-dlp failed downloading %s: %s"
    YTDLP_NO_INFO = "yt-dlp returned no info for %s"
    YTDLP_INFO_INVALID = "yt-dlp info for %s failed validation: %s"

    # Completion Driver
    DRIVER_STARTED = "Completion driver started (tick=%.2fs)"
    DRIVER_STOPPED = "Completion driver stopped"
    DRIVER_ALREADY_RUNNING = "Completion driver is already running"
    DRIVER_PASS_FAILED = "Error during completion driver pass"
    DRIVER_SERVER_DUE = "Server %s due (queue length %d)"
    DRIVER_QUEUE_EXHAUSTED = "Queue exhausted for server %s, now idle"
    DRIVER_TRACK_STARTED = "Started '%s' in server %s, completes at %d (%d votes to skip)"
    DRIVER_PLAY_FAILED = "Gateway failed to play '%s' in server %s"
    DRIVER_SESSION_GONE = "Session for server %s vanished before playback started"
    DRIVER_TRACK_END_RESCHEDULE = "Track ended in idle server %s, scheduling next request"
    DRIVER_TRACK_END_IGNORED = "Track end in server %s ignored (phase %s)"
    DRIVER_TRACK_FAILED = "Playback of '%s' failed in server %s, advancing queue"
    DRIVER_LISTENER_COUNT_FAILED = "Could not count listeners in server %s, using minimum threshold"

    # Voice Operations
    GUILD_NOT_FOUND = "Guild %s not found"
    CHANNEL_NOT_VOICE = "Channel %s is not a voice channel"
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error in voice operation: %r"
    VOICE_NOT_CONNECTED = "Not connected to voice in guild %s"
    VOICE_DISCONNECT_FAILED = "Failed to disconnect from voice in guild %s"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in guild %s: %r"
    PLAYBACK_STARTED = "Started streaming '%s' in guild %s"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_ERROR = "Playback error in guild %s: %s"
    TRACK_ENDED = "Track ended in guild %s (error=%s)"
    TRACK_END_CALLBACK_ERROR = "Error in track-end callback for guild %s: %r"
    DOWNLOAD_REMOVED = "Removed played download %s"
    DOWNLOAD_CLEANUP_FAILED = "Could not remove download %s: %s"

    # Commands
    COMMAND_FAILED = "Unexpected error in /%s for guild %s"


class ReplyMessages:
    """Plain-text replies sent back to the chat."""

    READY = "Ready to play audio"
    LEFT = "Left the voice channel"
    JOINED_NOTHING_QUEUED = "Joined your voice channel"
    DOWNLOADING = "Downloading..."
    QUEUED = "Queued **{title}** [duration: {duration}]"
    QUEUE_LINE = "- **{title}** requested by _{requester}_ [duration: {duration}]"
    SKIP_VOTE_ADDED = "Skip vote added [currently: {votes}/{required}]"
    SKIP_VOTE_PASSED = "Skip vote passed [{votes}/{required}]"
    SKIP_REQUESTER = "Song requester skipped"
    SKIP_ALREADY_VOTED = "You have already voted to skip this song"
    NO_SONG_PLAYING = "No song is currently playing"
    STATUS = "Playing **{title}** [{elapsed}/{duration}] [-{remaining}]"
    GENERIC_FAILURE = "Something went wrong handling that command"
