"""Timebox CLI - purposefully simple personal time tracking."""

__version__ = "0.1.0"
