"""Venue booking conflict detection and contract consistency engine."""

__version__ = "0.1.0"
