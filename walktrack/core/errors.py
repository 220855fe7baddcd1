"""Tracking error taxonomy.

Every failure is scoped to a single session and recoverable by starting a
new one. Invalid samples are not errors and never appear here.
"""

from __future__ import annotations


class TrackingError(Exception):
    """Base class for activity tracking failures."""


class SourceUnavailable(TrackingError):
    """Position source could not be acquired when starting a session."""


class SourceInterrupted(TrackingError):
    """Position source failed while a session was active."""


class PersistenceFailure(TrackingError):
    """The finalized activity could not be handed off to storage."""
