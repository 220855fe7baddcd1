"""In-process activity store and calorie ledger."""

from __future__ import annotations

import datetime as dt
import logging
import uuid
from collections import defaultdict

from ...domain.models import ActivityRecord

logger = logging.getLogger(__name__)


class InMemoryActivityStore:
    """Activity store kept in a dict, keyed by assigned id."""

    def __init__(self) -> None:
        self.activities: dict[str, tuple[str, ActivityRecord]] = {}

    async def save(self, record: ActivityRecord, user_id: str) -> str:
        activity_id = uuid.uuid4().hex
        self.activities[activity_id] = (user_id, record)
        return activity_id

    def by_date(self, user_id: str, day: dt.date) -> list[ActivityRecord]:
        return [r for uid, r in self.activities.values() if uid == user_id and r.date == day]


class DailyCalorieLedger:
    """
    Per-day totals of burned calories.

    A day can be opened with the total already stored for it, so later
    credits add on top of earlier sessions.
    """

    def __init__(self) -> None:
        self._burned: dict[dt.date, int] = defaultdict(int)

    def open_day(self, day: dt.date, burned: int) -> None:
        """Set the starting total for a day."""
        if burned < 0:
            raise ValueError(f"opening total must be non-negative: {burned}")
        self._burned[day] = burned

    def credit_burned(self, day: dt.date, calories: int) -> None:
        if calories < 0:
            raise ValueError(f"calorie credit must be non-negative: {calories}")
        self._burned[day] += calories
        logger.debug("Credited %d kcal burned on %s", calories, day)

    def burned_on(self, day: dt.date) -> int:
        return self._burned.get(day, 0)
