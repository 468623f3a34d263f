"""Core infrastructure: settings, environment detection, exceptions and logging."""
