"""Core infrastructure: configuration, logging and the event bus."""
