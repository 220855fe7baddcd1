"""walktrack Core - Event bus and error taxonomy."""

from .errors import (
    PersistenceFailure,
    SourceInterrupted,
    SourceUnavailable,
    TrackingError,
)
from .events import Event, EventBus, EventType

__all__ = [
    # Events
    "Event",
    "EventBus",
    "EventType",
    # Errors
    "PersistenceFailure",
    "SourceInterrupted",
    "SourceUnavailable",
    "TrackingError",
]
