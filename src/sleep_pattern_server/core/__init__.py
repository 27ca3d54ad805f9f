"""Core infrastructure: configuration, errors, logging and clock utilities."""
