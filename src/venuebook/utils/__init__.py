"""Utility modules for VenueBook."""

from venuebook.utils.exceptions import ConfigurationError, VenueBookError

__all__ = [
    "VenueBookError",
    "ConfigurationError",
]
