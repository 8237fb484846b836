"""Persistence layer for VenueBook."""
