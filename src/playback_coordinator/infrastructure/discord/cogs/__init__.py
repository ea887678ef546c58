"""Discord cogs - command handlers."""
