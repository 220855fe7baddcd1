"""Database infrastructure - SQLite and in-memory activity storage."""

from .async_repository import ActivityRepository
from .memory import DailyCalorieLedger, InMemoryActivityStore
from .schema import ACTIVITY_SCHEMA

__all__ = [
    "ACTIVITY_SCHEMA",
    "ActivityRepository",
    "DailyCalorieLedger",
    "InMemoryActivityStore",
]
