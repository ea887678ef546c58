"""Infrastructure layer - external systems integration.

- audio/: yt-dlp song resolver
- discord/: bot, cog, and voice gateway adapter
"""
