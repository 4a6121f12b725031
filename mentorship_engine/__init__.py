"""Mentorship lifecycle and session scheduling engine."""

__version__ = "1.0.0"
