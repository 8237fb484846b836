"""Custom exceptions for VenueBook."""


class VenueBookError(Exception):
    """Base exception for all VenueBook errors."""

    pass


class ConfigurationError(VenueBookError):
    """Error in configuration or settings."""

    pass
