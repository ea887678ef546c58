"""Playback coordinator for a Discord music bot.

Per-server request queues, skip voting, and the completion schedule that
tells the background driver when to start the next song.
"""

__version__ = "0.1.0"
