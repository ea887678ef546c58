"""Configuration: settings and dependency wiring."""
