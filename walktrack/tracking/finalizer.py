"""Session finalization: activity record construction and hand-off."""

from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Protocol, Sequence

from ..core.errors import PersistenceFailure
from ..core.events import EventBus, EventType
from ..domain.models import ActivityRecord, ActivityType, PositionSample

logger = logging.getLogger(__name__)

KCAL_PER_KM = 50


class ActivityStore(Protocol):
    """Persistence collaborator receiving finished activities."""

    async def save(self, record: ActivityRecord, user_id: str) -> str: ...


class CalorieLedger(Protocol):
    """Collaborator keeping the day's burned-calorie total."""

    def credit_burned(self, day: dt.date, calories: int) -> None: ...


def estimate_calories(distance_km: float) -> int:
    """Flat 50 kcal per km, rounded half up."""
    return int(math.floor(distance_km * KCAL_PER_KM + 0.5))


class SessionFinalizer:
    """
    Builds the activity record for a stopped session and persists it.

    The calorie ledger is credited only after storage confirms the save;
    a failed save credits nothing.
    """

    def __init__(
        self,
        store: ActivityStore,
        ledger: CalorieLedger,
        user_id: str,
        event_bus: EventBus | None = None,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.user_id = user_id
        self._bus = event_bus

    @staticmethod
    def build(
        route: Sequence[PositionSample],
        distance_km: float,
        duration_seconds: int,
        today: dt.date,
    ) -> ActivityRecord:
        return ActivityRecord(
            type=ActivityType.WALK,
            distance_km=distance_km,
            duration_seconds=duration_seconds,
            calories_burned=estimate_calories(distance_km),
            route=tuple(route),
            date=today,
        )

    async def finalize(
        self,
        route: Sequence[PositionSample],
        distance_km: float,
        duration_seconds: int,
        today: dt.date,
    ) -> tuple[str, ActivityRecord]:
        """
        Build, save and credit an activity.

        Returns:
            Tuple of (assigned activity id, record)

        Raises:
            PersistenceFailure: storage rejected the record
        """
        record = self.build(route, distance_km, duration_seconds, today)

        try:
            activity_id = await self.store.save(record, self.user_id)
        except Exception as e:
            logger.error("Failed to save activity for %s: %s", self.user_id, e)
            if self._bus is not None:
                self._bus.emit_sync(EventType.ACTIVITY_SAVE_FAILED, data=str(e), source="finalizer")
            raise PersistenceFailure(f"could not save activity: {e}") from e

        self.ledger.credit_burned(record.date, record.calories_burned)
        logger.info(
            "Saved activity %s: %.2f km, %d s, %d kcal",
            activity_id,
            record.distance_km,
            record.duration_seconds,
            record.calories_burned,
        )
        if self._bus is not None:
            self._bus.emit_sync(EventType.ACTIVITY_SAVED, data=record, source="finalizer")
        return activity_id, record
