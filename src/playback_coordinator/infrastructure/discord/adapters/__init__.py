"""Adapters implementing application ports with discord.py."""
