"""walktrack Domain Layer - Core business models and enums."""

from .models import (
    ActivityRecord,
    ActivityType,
    PositionSample,
    SessionSnapshot,
    SessionState,
    SubscriptionPolicy,
)

__all__ = [
    "ActivityRecord",
    "ActivityType",
    "PositionSample",
    "SessionSnapshot",
    "SessionState",
    "SubscriptionPolicy",
]
