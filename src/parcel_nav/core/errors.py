"""Failure taxonomy for the viewer.

Every failure is local and non-fatal: the component that owns the
user-facing report catches it, tells the user, and the session carries on.
"""
from __future__ import annotations


class ParcelNavError(Exception):
    """Base class for all viewer failures."""


class DataLoadFailure(ParcelNavError):
    """Parcel source unreachable or malformed."""


class NotFound(ParcelNavError):
    """No parcel matches the requested identifier."""

    def __init__(self, identifier: str):
        super().__init__(f"Parcel not found: {identifier}")
        self.identifier = identifier


class UnsupportedEnvironment(ParcelNavError):
    """No location capability is available."""


class LocationError(ParcelNavError):
    """The location source refused or failed (e.g. permission denied)."""


class RouteUnavailable(ParcelNavError):
    """The routing provider returned no route."""
