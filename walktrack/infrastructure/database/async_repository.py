"""
Async Activity Repository
=========================

Async SQLite storage for finished activities using aiosqlite.

Usage:
    repo = ActivityRepository("data/walktrack.db")
    await repo.init_schema()

    activity_id = await repo.save(record, user_id="u1")
    burned = await repo.burned_on("u1", date.today())
"""

from __future__ import annotations

import datetime as dt
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from ...domain.models import ActivityRecord, PositionSample
from .schema import ACTIVITY_SCHEMA

logger = logging.getLogger(__name__)


class ActivityRepository:
    """
    Async repository for activity persistence.

    Every save writes the activity and its route in one transaction.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialized = False

    async def init_schema(self) -> None:
        """Initialize database schema. Must be called after creation."""
        async with self._get_connection() as conn:
            await conn.executescript(ACTIVITY_SCHEMA)
            await conn.commit()
        self._initialized = True
        logger.info("Activity database initialized: %s", self.db_path)

    @asynccontextmanager
    async def _get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Get async database connection with row factory."""
        conn = await aiosqlite.connect(str(self.db_path), timeout=30.0)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
        finally:
            await conn.close()

    # =========================================================================
    # Activity Operations
    # =========================================================================

    async def save(self, record: ActivityRecord, user_id: str) -> str:
        """Store an activity with its route. Returns the assigned id."""
        if not self._initialized:
            await self.init_schema()

        activity_id = uuid.uuid4().hex
        now = dt.datetime.now(dt.UTC).isoformat()

        async with self._get_connection() as conn:
            await conn.execute(
                """
                INSERT INTO activities
                (id, user_id, type, distance, duration, calories_burned, date, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    activity_id,
                    user_id,
                    record.type.value,
                    record.distance_km,
                    record.duration_seconds,
                    record.calories_burned,
                    record.date.isoformat(),
                    now,
                ),
            )
            await conn.executemany(
                """
                INSERT INTO route_points
                (activity_id, seq, latitude, longitude, captured_at_ms)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (activity_id, seq, p.latitude, p.longitude, p.captured_at_ms)
                    for seq, p in enumerate(record.route)
                ],
            )
            await conn.commit()

        logger.debug("Stored activity %s (%d route points)", activity_id, len(record.route))
        return activity_id

    async def get_activity(self, activity_id: str) -> dict | None:
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM activities WHERE id = ?",
                (activity_id,),
            )
            row = await cursor.fetchone()
            return dict(row) if row else None

    async def get_activities_by_date(self, user_id: str, day: dt.date) -> list[dict]:
        """Activities of a user on one day, newest first, with their point counts."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT a.*,
                       (SELECT COUNT(*) FROM route_points r WHERE r.activity_id = a.id) AS points
                FROM activities a
                WHERE a.user_id = ? AND a.date = ?
                ORDER BY a.created_at DESC, a.rowid DESC
                """,
                (user_id, day.isoformat()),
            )
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def burned_on(self, user_id: str, day: dt.date) -> int:
        """Total calories burned by a user on one day."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT COALESCE(SUM(calories_burned), 0) FROM activities
                WHERE user_id = ? AND date = ?
                """,
                (user_id, day.isoformat()),
            )
            row = await cursor.fetchone()
            return int(row[0]) if row else 0

    async def get_route(self, activity_id: str) -> list[PositionSample]:
        """Route samples of an activity in recorded order."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT latitude, longitude, captured_at_ms
                FROM route_points
                WHERE activity_id = ?
                ORDER BY seq
                """,
                (activity_id,),
            )
            rows = await cursor.fetchall()
            return [PositionSample(**dict(row)) for row in rows]

    # =========================================================================
    # Export
    # =========================================================================

    async def export_gpx(self, activity_id: str, output_path: str | Path) -> int:
        """
        Export an activity route to GPX format.

        Returns:
            Number of track points exported
        """
        output_path = Path(output_path)
        points = await self.get_route(activity_id)

        if not points:
            return 0

        output_path.parent.mkdir(parents=True, exist_ok=True)

        gpx_lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<gpx version="1.1" creator="walktrack">',
            '  <trk>',
            f'    <name>walktrack activity {activity_id}</name>',
            '    <trkseg>',
        ]

        for p in points:
            stamp = dt.datetime.fromtimestamp(p.captured_at_ms / 1000, tz=dt.UTC)
            gpx_lines.append(f'      <trkpt lat="{p.latitude}" lon="{p.longitude}">')
            gpx_lines.append(f'        <time>{stamp.isoformat().replace("+00:00", "Z")}</time>')
            gpx_lines.append('      </trkpt>')

        gpx_lines.extend([
            '    </trkseg>',
            '  </trk>',
            '</gpx>',
        ])

        output_path.write_text("\n".join(gpx_lines), encoding="utf-8")
        logger.info("Exported %d route points to GPX: %s", len(points), output_path)
        return len(points)
