"""Configuration module for VenueBook."""

from venuebook.config.settings import IsolationLevel, Settings, WriteCoordinatorConfig, get_settings

__all__ = ["IsolationLevel", "Settings", "WriteCoordinatorConfig", "get_settings"]
