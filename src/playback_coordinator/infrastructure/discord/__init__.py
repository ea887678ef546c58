"""Discord integration: bot, cogs, adapters."""
